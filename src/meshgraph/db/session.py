from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from meshgraph.config import Settings, get_settings
from meshgraph.core.errors import StorageError
from meshgraph.db.models import Base

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def init_engine(settings: Settings | None = None) -> None:
    """Initialise SQLAlchemy engine lazily with connection pooling."""

    global _engine, _session_factory

    cfg = settings or get_settings()
    if _engine is not None:
        return

    _engine = create_async_engine(
        cfg.database_url,
        echo=cfg.debug,
        pool_size=cfg.db_pool_size,
        max_overflow=cfg.db_max_overflow,
        pool_timeout=cfg.db_pool_timeout,
        pool_recycle=cfg.db_pool_recycle,
        pool_pre_ping=True,
    )
    _session_factory = async_sessionmaker(_engine, expire_on_commit=False)


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Return the shared session factory, initialising the engine if needed."""

    if _session_factory is None:
        init_engine()
        assert _session_factory is not None
    return _session_factory


async def create_schema() -> None:
    """Create the snapshot tables if they do not exist."""

    get_session_factory()
    assert _engine is not None
    try:
        async with _engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    except SQLAlchemyError as exc:
        raise StorageError(
            "Unable to create snapshot tables", details={"error": str(exc)}
        ) from exc


async def dispose_engine() -> None:
    global _engine, _session_factory

    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None
