"""Core: configuration, constants, exception handlers, and application lifespan."""
