"""
Feed assembly — derived, read-only views recomputed on every call.

stream_for
  1. Following set from the relationship graph
  2. Their photos from the content store, newest first (ties by photo id)
  3. Moderation gate drops owners the viewer has banned

profile_for
  User record, follower/following ids, and the user's photos as seen by
  the viewer through the same gate.
"""
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.core import content, graph, identity, moderation
from app.errors import require_id
from app.schemas import ProfileOut

logger = logging.getLogger(__name__)


async def stream_for(db: AsyncSession, user_id: str) -> list[str]:
    require_id(user_id, "user_id")
    await identity.lookup_by_id(db, user_id)

    following = await graph.following_of(db, user_id)
    photos = await content.photos_owned_by(db, following)
    gate = await moderation.gate_for(db, user_id)
    visible = gate.filter(photos, lambda p: p.user_id)

    logger.debug(
        "Stream for %s: %d followed, %d photos, %d visible",
        user_id,
        len(following),
        len(photos),
        len(visible),
    )
    return [p.photo_id for p in visible]


async def profile_for(db: AsyncSession, username: str, viewer_id: str) -> ProfileOut:
    user = await identity.lookup_by_username(db, username)
    gate = await moderation.gate_for(db, viewer_id)

    photos = await content.photos_of(db, user.user_id) if gate(user.user_id) else []
    return ProfileOut(
        user=user,
        followers=sorted(await graph.followers_of(db, user.user_id)),
        following=sorted(await graph.following_of(db, user.user_id)),
        photos=photos,
    )
