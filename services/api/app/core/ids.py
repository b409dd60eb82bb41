"""
Random identifier generation.

Ids are fixed-length strings drawn uniformly from [A-Za-z0-9] with the
`secrets` CSPRNG. Before an id is handed out the owning table is checked
for it; the primary-key constraint stays the final arbiter, so callers that
hit an IntegrityError on insert ask for another candidate. Both paths share
one bounded attempt budget.
"""
import logging
import secrets
import string
from typing import Awaitable, Callable, Optional, TypeVar

from sqlalchemy import exists, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import InstrumentedAttribute

from app.config import settings
from app.errors import IdExhaustedError
from app.telemetry import ID_COLLISIONS_TOTAL

logger = logging.getLogger(__name__)

ALPHABET = string.ascii_letters + string.digits

T = TypeVar("T")


def random_id(length: Optional[int] = None) -> str:
    length = length or settings.id_length
    return "".join(secrets.choice(ALPHABET) for _ in range(length))


async def id_taken(db: AsyncSession, column: InstrumentedAttribute, candidate: str) -> bool:
    return bool(await db.scalar(select(exists().where(column == candidate))))


async def insert_with_fresh_id(
    db: AsyncSession,
    column: InstrumentedAttribute,
    build: Callable[[str], object],
    on_integrity_error: Optional[Callable[[IntegrityError], Awaitable[None]]] = None,
) -> str:
    """
    Insert the row produced by `build(candidate_id)` and commit it.

    `on_integrity_error` runs after the failed transaction is rolled back;
    it raises when the violation is a domain conflict (e.g. a taken
    username) rather than an id collision. Otherwise a new id is tried.
    """
    table = column.class_.__tablename__
    attempts = settings.id_max_attempts

    for attempt in range(1, attempts + 1):
        candidate = random_id()
        if await id_taken(db, column, candidate):
            ID_COLLISIONS_TOTAL.labels(table=table).inc()
            logger.warning("Id collision on %s (attempt %d/%d)", table, attempt, attempts)
            continue

        db.add(build(candidate))
        try:
            await db.commit()
        except IntegrityError as exc:
            await db.rollback()
            if on_integrity_error is not None:
                await on_integrity_error(exc)
            ID_COLLISIONS_TOTAL.labels(table=table).inc()
            logger.warning(
                "Insert into %s lost an id race (attempt %d/%d)", table, attempt, attempts
            )
            continue
        return candidate

    raise IdExhaustedError(table, attempts)
