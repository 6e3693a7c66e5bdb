"""Shared utilities: datetime and id generators."""

from approvals.shared.utils.datetime import ensure_utc, utc_now
from approvals.shared.utils.generators import generate_cuid

__all__ = [
    "ensure_utc",
    "generate_cuid",
    "utc_now",
]
