"""
Identity store: user records and their unique ids.

Usernames are unique at the storage level; the UNIQUE constraint, not the
pre-insert lookup, decides races between concurrent writers, and its
IntegrityError is reported as ConflictError.
"""
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.ids import insert_with_fresh_id
from app.core.storage import reading, unit_of_work
from app.errors import ConflictError, InvalidArgumentError, NotFoundError, require_id
from app.models import User
from app.schemas import LoginResult, UserOut

logger = logging.getLogger(__name__)


def _username_conflict(username: str) -> ConflictError:
    return ConflictError(f"Username '{username}' already taken", {"username": username})


def _require_username(username: Optional[str]) -> str:
    if not username:
        raise InvalidArgumentError("username must not be empty", {"field": "username"})
    return username


async def _find_by_username(db: AsyncSession, username: str) -> Optional[UserOut]:
    user = await db.scalar(select(User).where(User.username == username))
    return UserOut.model_validate(user) if user else None


async def register(db: AsyncSession, username: str) -> str:
    """Create a user and return its freshly generated id."""
    _require_username(username)

    async def _raise_if_username_taken(exc: IntegrityError) -> None:
        if await _find_by_username(db, username) is not None:
            raise _username_conflict(username) from exc

    async with unit_of_work(db, "register"):
        if await _find_by_username(db, username) is not None:
            raise _username_conflict(username)
        user_id = await insert_with_fresh_id(
            db,
            User.user_id,
            lambda candidate: User(user_id=candidate, username=username),
            on_integrity_error=_raise_if_username_taken,
        )

    logger.info("Created user %s (id=%s)", username, user_id)
    return user_id


async def lookup_by_username(db: AsyncSession, username: str) -> UserOut:
    _require_username(username)
    async with reading("lookup_by_username"):
        user = await _find_by_username(db, username)
    if user is None:
        raise NotFoundError("user", username)
    return user


async def lookup_by_id(db: AsyncSession, user_id: str) -> UserOut:
    require_id(user_id, "user_id")
    async with reading("lookup_by_id"):
        user = await db.get(User, user_id)
        if user is None:
            raise NotFoundError("user", user_id)
        return UserOut.model_validate(user)


async def list_users(db: AsyncSession) -> list[UserOut]:
    async with reading("list_users"):
        rows = await db.scalars(select(User).order_by(User.username))
        return [UserOut.model_validate(u) for u in rows.all()]


async def rename(db: AsyncSession, user_id: str, new_username: str) -> UserOut:
    require_id(user_id, "user_id")
    _require_username(new_username)

    async with unit_of_work(db, "rename"):
        user = await db.get(User, user_id)
        if user is None:
            raise NotFoundError("user", user_id)
        old_username = user.username
        if old_username != new_username:
            holder = await db.scalar(select(User.user_id).where(User.username == new_username))
            if holder is not None:
                raise _username_conflict(new_username)
            user.username = new_username
            try:
                await db.flush()
            except IntegrityError as exc:
                raise _username_conflict(new_username) from exc
        result = UserOut.model_validate(user)

    if old_username != new_username:
        logger.info("User %s renamed %s → %s", user_id, old_username, new_username)
    return result


async def login_or_register(db: AsyncSession, username: str) -> LoginResult:
    """
    Resolve a username to a user, creating it on first sight.

    Lookup and insert are separate statements, so two identical calls can
    both miss the lookup. The loser's insert trips the UNIQUE constraint;
    it then re-reads and reports the winner's record as not created.
    """
    _require_username(username)
    async with reading("login_or_register"):
        existing = await _find_by_username(db, username)
    if existing is not None:
        return LoginResult(user=existing, created=False)

    try:
        user_id = await register(db, username)
    except ConflictError:
        async with reading("login_or_register"):
            winner = await _find_by_username(db, username)
        if winner is None:
            raise
        return LoginResult(user=winner, created=False)

    return LoginResult(user=await lookup_by_id(db, user_id), created=True)
