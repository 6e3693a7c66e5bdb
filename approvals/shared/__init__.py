"""Shared utilities: telemetry and cross-cutting helpers.

Used by domain and infrastructure. No business logic.
"""

from approvals.shared.telemetry import get_logger, setup_logging
from approvals.shared.utils import ensure_utc, generate_cuid, utc_now

__all__ = [
    "ensure_utc",
    "generate_cuid",
    "get_logger",
    "setup_logging",
    "utc_now",
]
