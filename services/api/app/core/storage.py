"""
Transaction helper shared by the core components.

Every mutating operation runs inside `unit_of_work`: its statements are
committed together when the block exits, or rolled back together when
anything raises. Domain errors pass through untouched; any other
SQLAlchemy failure becomes a StorageFailureError.
"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import PhotoStreamError, StorageFailureError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def unit_of_work(db: AsyncSession, action: str) -> AsyncIterator[AsyncSession]:
    try:
        yield db
        await db.commit()
    except PhotoStreamError:
        await db.rollback()
        raise
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error("%s failed, transaction rolled back: %s", action, exc)
        raise StorageFailureError(f"{action} failed", {"action": action}) from exc


@asynccontextmanager
async def reading(action: str) -> AsyncIterator[None]:
    """Read-only counterpart of unit_of_work: translate, don't commit."""
    try:
        yield
    except SQLAlchemyError as exc:
        logger.error("%s failed: %s", action, exc)
        raise StorageFailureError(f"{action} failed", {"action": action}) from exc
