"""Core constants: cache key prefixes and shared literal values."""

# Cache key prefixes
CACHE_PREFIX_LOCATION_TREE = "location:tree"

# Delimiter for composite keys
CACHE_KEY_SEP = ":"

# Materialized path delimiter
PATH_SEP = "."

AUTO_RUN_COMMENT_PREFIX = "Auto-run approval"
