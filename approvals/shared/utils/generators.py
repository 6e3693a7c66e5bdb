"""Primary-key generation for approval records."""

from cuid2 import cuid_wrapper

_next_cuid = cuid_wrapper()


def generate_cuid() -> str:
    """New CUID2 string, used as the default id of every table."""
    return str(_next_cuid())
