"""Pytest configuration and fixtures for approvals.

Every test gets its own in-memory SQLite database (sqlite+aiosqlite with a
StaticPool so all sessions share one connection), created from ORM
metadata, and its own MemoryCache. OrgBuilder seeds locations, roles,
users and templates through committed transactions so that services
opening their own sessions see the data.
"""

from collections.abc import AsyncIterator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

import approvals.infrastructure.persistence.models  # noqa: F401
from approvals.application.dtos.workflow import WorkflowChangeEvent
from approvals.core.config import Settings
from approvals.domain.enums import RecordStatus, ResourceType
from approvals.domain.step_config import StepConfig
from approvals.infrastructure.cache.memory_cache import MemoryCache
from approvals.infrastructure.persistence.database import Base, build_session_factory
from approvals.infrastructure.persistence.models import (
    Permission,
    Role,
    RolePermission,
    User,
    UserRole,
)
from approvals.infrastructure.persistence.repositories import WorkflowTemplateRepository
from approvals.infrastructure.services import (
    DelegationAuthority,
    LocationHierarchy,
    WorkflowEngine,
)


class RecordingPublisher:
    """Collects published workflow events in order."""

    def __init__(self) -> None:
        self.events: list[WorkflowChangeEvent] = []

    async def publish(self, event: WorkflowChangeEvent) -> None:
        self.events.append(event)


class OrgBuilder:
    """Seeds an organization: locations, permissions, roles, users, assignments, templates."""

    def __init__(self, sessions: async_sessionmaker[AsyncSession], cache: MemoryCache) -> None:
        self.sessions = sessions
        self.cache = cache
        self._permissions: dict[str, str] = {}

    async def location(self, name: str, parent: str | None = None) -> str:
        async with self.sessions.begin() as db:
            location = await LocationHierarchy(db, self.cache).create_location(name, parent)
            return location.id

    async def permission(self, name: str) -> str:
        if name not in self._permissions:
            async with self.sessions.begin() as db:
                perm = Permission(name=name, module=name.split(".", 1)[0])
                db.add(perm)
                await db.flush()
                self._permissions[name] = perm.id
        return self._permissions[name]

    async def role(
        self,
        name: str,
        permissions: list[str],
        status: RecordStatus = RecordStatus.ACTIVE,
    ) -> str:
        permission_ids = [await self.permission(p) for p in permissions]
        async with self.sessions.begin() as db:
            role = Role(name=name, status=status.value)
            db.add(role)
            await db.flush()
            for pid in permission_ids:
                db.add(RolePermission(role_id=role.id, permission_id=pid))
            return role.id

    async def user(
        self,
        user_id: str,
        *,
        location: str | None = None,
        manager: str | None = None,
        status: RecordStatus = RecordStatus.ACTIVE,
    ) -> str:
        async with self.sessions.begin() as db:
            db.add(
                User(
                    id=user_id,
                    name=user_id.title(),
                    manager_id=manager,
                    primary_location_id=location,
                    status=status.value,
                )
            )
        return user_id

    async def assign(
        self,
        user_id: str,
        role_id: str,
        *,
        location: str | None = None,
        include_descendants: bool = False,
    ) -> str:
        async with self.sessions.begin() as db:
            assignment = UserRole(
                user_id=user_id,
                role_id=role_id,
                location_id=location,
                include_descendants=include_descendants,
            )
            db.add(assignment)
            await db.flush()
            return assignment.id

    async def template(
        self,
        steps: list[StepConfig],
        *,
        location: str | None = None,
        resource_type: ResourceType = ResourceType.LEAVE,
        name: str = "Leave approval",
    ) -> str:
        async with self.sessions.begin() as db:
            template = await WorkflowTemplateRepository(db).create_template(
                name, resource_type.value, steps, location_id=location
            )
            return template.id


@pytest.fixture
def settings() -> Settings:
    return Settings(redis_enabled=False)


@pytest.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return build_session_factory(engine)


@pytest.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    """Session for service tests that work within one transaction. Rolls back after test."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def cache() -> MemoryCache:
    return MemoryCache()


@pytest.fixture
def org(session_factory: async_sessionmaker[AsyncSession], cache: MemoryCache) -> OrgBuilder:
    return OrgBuilder(session_factory, cache)


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def workflow_engine(
    session_factory: async_sessionmaker[AsyncSession],
    cache: MemoryCache,
    publisher: RecordingPublisher,
    settings: Settings,
) -> WorkflowEngine:
    return WorkflowEngine(session_factory, cache, publisher=publisher, settings=settings)


@pytest.fixture
def hierarchy(db_session: AsyncSession, cache: MemoryCache) -> LocationHierarchy:
    return LocationHierarchy(db_session, cache, ttl=60)


@pytest.fixture
def authority(
    db_session: AsyncSession, hierarchy: LocationHierarchy, settings: Settings
) -> DelegationAuthority:
    return DelegationAuthority(db_session, hierarchy, settings)


@pytest.fixture
async def client(
    session_factory: async_sessionmaker[AsyncSession],
    workflow_engine: WorkflowEngine,
    cache: MemoryCache,
) -> AsyncIterator[AsyncClient]:
    """Async HTTP client against the FastAPI app (ASGI), wired to the test database."""
    from approvals.infrastructure.persistence.database import get_db, get_db_transactional
    from approvals.main import create_app

    app = create_app()
    app.state.cache = cache
    app.state.workflow_engine = workflow_engine

    async def _db() -> AsyncIterator[AsyncSession]:
        async with session_factory() as session:
            yield session

    async def _db_transactional() -> AsyncIterator[AsyncSession]:
        async with session_factory.begin() as session:
            yield session

    app.dependency_overrides[get_db] = _db
    app.dependency_overrides[get_db_transactional] = _db_transactional
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
