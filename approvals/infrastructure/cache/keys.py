"""Cache key builders. Single place for key format (DRY).

Key components must not contain CACHE_KEY_SEP to avoid colliding keys.
"""

from approvals.core.constants import CACHE_KEY_SEP, CACHE_PREFIX_LOCATION_TREE


def _validate_key_component(value: str, name: str) -> None:
    """Raise ValueError if value contains the cache key separator."""
    if CACHE_KEY_SEP in value:
        raise ValueError(
            f"Cache key component {name!r} must not contain separator {CACHE_KEY_SEP!r}"
        )


def location_tree_key(location_id: str) -> str:
    """Cache key for the descendant-id set of a location."""
    _validate_key_component(location_id, "location_id")
    return f"{CACHE_PREFIX_LOCATION_TREE}{CACHE_KEY_SEP}descendants{CACHE_KEY_SEP}{location_id}"
