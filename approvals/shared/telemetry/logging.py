"""Logging setup for the approvals service and its scripts."""

import logging
import sys

from approvals.core.config import get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging() -> None:
    """Configure root logging once per process.

    DEBUG when settings.debug, else INFO, to stdout. SQLAlchemy engine logs
    stay at WARNING unless database_echo is on.
    """
    settings = get_settings()
    root = logging.getLogger()
    if not any(getattr(h, "_approvals", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._approvals = True  # type: ignore[attr-defined]
        root.addHandler(handler)
    root.setLevel(logging.DEBUG if settings.debug else logging.INFO)
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.database_echo else logging.WARNING
    )


def get_logger(name: str) -> logging.Logger:
    """Module logger; pass __name__."""
    return logging.getLogger(name)
