"""
Relationship graph: follow edges and ban edges between users.

  follow   — idempotent; a re-follow (or a lost insert race) is a no-op
  ban      — a second ban of the same user is a ConflictError, so the
             caller learns the moderation action was already in place
  unfollow / unban — idempotent deletes
"""
import logging

from sqlalchemy import delete, exists, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import identity
from app.core.storage import reading, unit_of_work
from app.errors import ConflictError, InvalidArgumentError, require_id
from app.models import Ban, Follow
from app.schemas import BanOut

logger = logging.getLogger(__name__)


async def _require_users(db: AsyncSession, *user_ids: str) -> None:
    for uid in user_ids:
        await identity.lookup_by_id(db, uid)


# ─────────────────────────── Follows ─────────────────────────────────────

async def follow(db: AsyncSession, follower_id: str, followed_id: str) -> None:
    require_id(follower_id, "follower_id")
    require_id(followed_id, "followed_id")
    if follower_id == followed_id:
        raise InvalidArgumentError("Cannot follow yourself", {"user_id": follower_id})

    await _require_users(db, follower_id, followed_id)

    async with unit_of_work(db, "follow"):
        if await is_following(db, follower_id, followed_id):
            return  # already following — idempotent
        db.add(Follow(follower_id=follower_id, followed_id=followed_id))
        try:
            await db.flush()
        except IntegrityError:
            # A concurrent follow inserted the same edge first
            await db.rollback()
            return

    logger.info("%s followed %s", follower_id, followed_id)


async def unfollow(db: AsyncSession, follower_id: str, followed_id: str) -> None:
    require_id(follower_id, "follower_id")
    require_id(followed_id, "followed_id")
    async with unit_of_work(db, "unfollow"):
        await db.execute(
            delete(Follow).where(
                Follow.follower_id == follower_id,
                Follow.followed_id == followed_id,
            )
        )


async def is_following(db: AsyncSession, follower_id: str, followed_id: str) -> bool:
    require_id(follower_id, "follower_id")
    require_id(followed_id, "followed_id")
    async with reading("is_following"):
        return bool(
            await db.scalar(
                select(
                    exists().where(
                        Follow.follower_id == follower_id,
                        Follow.followed_id == followed_id,
                    )
                )
            )
        )


async def followers_of(db: AsyncSession, user_id: str) -> set[str]:
    require_id(user_id, "user_id")
    async with reading("followers_of"):
        rows = await db.scalars(select(Follow.follower_id).where(Follow.followed_id == user_id))
        return set(rows.all())


async def following_of(db: AsyncSession, user_id: str) -> set[str]:
    require_id(user_id, "user_id")
    async with reading("following_of"):
        rows = await db.scalars(select(Follow.followed_id).where(Follow.follower_id == user_id))
        return set(rows.all())


# ─────────────────────────── Bans ────────────────────────────────────────

def _already_banned(banner_id: str, banned_id: str) -> ConflictError:
    return ConflictError(
        "User is already banned",
        {"banner_id": banner_id, "banned_id": banned_id},
    )


async def ban(db: AsyncSession, banner_id: str, banned_id: str) -> None:
    require_id(banner_id, "banner_id")
    require_id(banned_id, "banned_id")
    if banner_id == banned_id:
        raise InvalidArgumentError("Cannot ban yourself", {"user_id": banner_id})

    await _require_users(db, banner_id, banned_id)

    async with unit_of_work(db, "ban"):
        if await is_banned(db, banner_id, banned_id):
            raise _already_banned(banner_id, banned_id)
        db.add(Ban(banner_id=banner_id, banned_id=banned_id))
        try:
            await db.flush()
        except IntegrityError as exc:
            raise _already_banned(banner_id, banned_id) from exc

    logger.info("User %s banned by %s", banned_id, banner_id)


async def unban(db: AsyncSession, banner_id: str, banned_id: str) -> None:
    require_id(banner_id, "banner_id")
    require_id(banned_id, "banned_id")
    async with unit_of_work(db, "unban"):
        result = await db.execute(
            delete(Ban).where(Ban.banner_id == banner_id, Ban.banned_id == banned_id)
        )
    if result.rowcount:
        logger.info("User %s unbanned by %s", banned_id, banner_id)


async def is_banned(db: AsyncSession, banner_id: str, banned_id: str) -> bool:
    require_id(banner_id, "banner_id")
    require_id(banned_id, "banned_id")
    async with reading("is_banned"):
        return bool(
            await db.scalar(
                select(exists().where(Ban.banner_id == banner_id, Ban.banned_id == banned_id))
            )
        )


async def banned_by(db: AsyncSession, banner_id: str) -> set[str]:
    """Ids of every user `banner_id` has banned."""
    require_id(banner_id, "banner_id")
    async with reading("banned_by"):
        rows = await db.scalars(select(Ban.banned_id).where(Ban.banner_id == banner_id))
        return set(rows.all())


async def list_bans(db: AsyncSession) -> list[BanOut]:
    async with reading("list_bans"):
        rows = await db.scalars(
            select(Ban).order_by(Ban.created_at, Ban.banner_id, Ban.banned_id)
        )
        return [BanOut.model_validate(b) for b in rows.all()]
