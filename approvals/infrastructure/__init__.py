"""Infrastructure layer: persistence, cache and the approval core services."""
