"""
Moderation gate: the one place that decides whether a viewer may see a
content owner's photos.

Rule: content is visible unless the *viewer* has banned its owner. Follow
state plays no part, and the owner's own ban list is not consulted.
Listing operations take a VisibilityGate from `gate_for` (one ban-list
read per request) instead of re-deriving the rule.
"""
from dataclasses import dataclass
from typing import Iterable, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from app.core import graph
from app.errors import require_id

T = TypeVar("T")


@dataclass(frozen=True)
class VisibilityGate:
    viewer_id: str
    banned_ids: frozenset[str]

    def __call__(self, owner_id: str) -> bool:
        return owner_id not in self.banned_ids

    def filter(self, items: Iterable[T], owner_of) -> list[T]:  # noqa: ANN001
        return [item for item in items if self(owner_of(item))]


async def gate_for(db: AsyncSession, viewer_id: str) -> VisibilityGate:
    require_id(viewer_id, "viewer_id")
    return VisibilityGate(viewer_id, frozenset(await graph.banned_by(db, viewer_id)))


async def is_visible(db: AsyncSession, viewer_id: str, owner_id: str) -> bool:
    require_id(owner_id, "owner_id")
    gate = await gate_for(db, viewer_id)
    return gate(owner_id)
