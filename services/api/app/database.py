"""
Async SQLAlchemy engine + session factory.

Production runs on TiDB (MySQL-protocol) through the aiomysql driver; a
single-node setup can point DATABASE_URL at SQLite (aiosqlite).
The engine is created once at startup and reused across all requests.
"""
import logging

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from app.config import settings

logger = logging.getLogger(__name__)


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"echo": settings.db_echo}
    return {
        "pool_pre_ping": True,
        "pool_size": 20,
        "max_overflow": 10,
        "echo": settings.db_echo,
    }


def enable_sqlite_foreign_keys(sync_engine) -> None:  # noqa: ANN001
    """SQLite ignores FOREIGN KEY clauses unless asked on every connection."""

    @event.listens_for(sync_engine, "connect")
    def _set_pragma(dbapi_connection, connection_record):  # noqa: ANN001
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = create_async_engine(settings.sqlalchemy_url, **_engine_kwargs(settings.sqlalchemy_url))
if settings.sqlalchemy_url.startswith("sqlite"):
    enable_sqlite_foreign_keys(engine.sync_engine)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    pass


async def init_db() -> None:
    """Create all tables if they don't exist (idempotent)."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables initialised")


async def get_db():
    """FastAPI dependency that yields an async DB session."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
