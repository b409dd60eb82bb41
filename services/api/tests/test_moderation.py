import pytest

from app.core import graph, moderation
from app.core.moderation import VisibilityGate
from app.errors import InvalidArgumentError


def test_gate_applies_viewer_ban_list() -> None:
    gate = VisibilityGate("viewer", frozenset({"spammer"}))
    assert gate("friend")
    assert not gate("spammer")
    assert gate.filter(["friend", "spammer", "other"], lambda owner: owner) == ["friend", "other"]


@pytest.mark.asyncio
async def test_is_visible_ignores_follow_state(db, users) -> None:
    alice, bob = users["alice"], users["bob"]

    # Not following, not banned: visible
    assert await moderation.is_visible(db, alice, bob)

    await graph.ban(db, alice, bob)
    assert not await moderation.is_visible(db, alice, bob)

    await graph.follow(db, alice, bob)
    assert not await moderation.is_visible(db, alice, bob)

    await graph.unban(db, alice, bob)
    assert await moderation.is_visible(db, alice, bob)


@pytest.mark.asyncio
async def test_gate_for_loads_viewer_bans(db, users) -> None:
    await graph.ban(db, users["alice"], users["bob"])
    await graph.ban(db, users["carol"], users["alice"])

    gate = await moderation.gate_for(db, users["alice"])
    assert gate.viewer_id == users["alice"]
    assert gate.banned_ids == frozenset({users["bob"]})


@pytest.mark.asyncio
async def test_is_visible_requires_ids(db) -> None:
    with pytest.raises(InvalidArgumentError):
        await moderation.is_visible(db, "", "someone")
    with pytest.raises(InvalidArgumentError):
        await moderation.is_visible(db, "someone", "")
