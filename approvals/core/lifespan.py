"""Application lifespan: startup and shutdown.

Wiring only: logging, cache backend, workflow engine, DB engine dispose.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from approvals.core.config import get_settings
from approvals.infrastructure.cache.memory_cache import MemoryCache
from approvals.infrastructure.persistence.database import dispose_engine, get_session_factory
from approvals.infrastructure.services.workflow_engine import WorkflowEngine
from approvals.shared.telemetry.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run startup then yield; on exit run shutdown.

    Startup: logging, Redis cache when enabled (else in-process cache),
    workflow engine. Shutdown: cache disconnect, SQL engine dispose.
    """
    settings = get_settings()
    setup_logging()

    # ---- Startup ----
    if settings.redis_enabled:
        from approvals.infrastructure.cache.redis_cache import CacheService

        cache = CacheService()
        await cache.connect()
        app.state.cache = cache
    else:
        app.state.cache = MemoryCache()

    app.state.session_factory = get_session_factory()
    app.state.workflow_engine = WorkflowEngine(
        app.state.session_factory, app.state.cache, settings=settings
    )
    logger.info("%s %s started", settings.app_name, settings.app_version)

    yield

    # ---- Shutdown ----
    if settings.redis_enabled:
        await app.state.cache.disconnect()
        logger.info("Cache disconnected")

    await dispose_engine()
    logger.info("Database engine disposed")
