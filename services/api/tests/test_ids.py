import string

import pytest

from app.config import settings
from app.core import identity, ids
from app.errors import IdExhaustedError
from app.models import User


def test_random_id_uses_alphanumeric_alphabet() -> None:
    allowed = set(string.ascii_letters + string.digits)
    for _ in range(200):
        candidate = ids.random_id()
        assert len(candidate) == settings.id_length == 10
        assert set(candidate) <= allowed


def test_random_id_honours_explicit_length() -> None:
    assert len(ids.random_id(24)) == 24


@pytest.mark.asyncio
async def test_taken_candidate_is_skipped(db, monkeypatch) -> None:
    taken = await identity.register(db, "alice")
    candidates = iter([taken, "FreshId123"])
    monkeypatch.setattr(ids, "random_id", lambda length=None: next(candidates))

    user_id = await identity.register(db, "bob")

    assert user_id == "FreshId123"
    assert (await identity.lookup_by_id(db, user_id)).username == "bob"


@pytest.mark.asyncio
async def test_lost_insert_race_retries_with_new_id(db, session_factory, monkeypatch) -> None:
    # The competing writer uses its own session, as a concurrent request would
    async with session_factory() as other:
        taken = await identity.register(other, "alice")
    candidates = iter([taken, "FreshId123"])
    monkeypatch.setattr(ids, "random_id", lambda length=None: next(candidates))

    # Pretend the existence check ran before the competing insert landed
    async def never_taken(db, column, candidate):
        return False

    monkeypatch.setattr(ids, "id_taken", never_taken)

    user_id = await identity.register(db, "bob")
    assert user_id == "FreshId123"


@pytest.mark.asyncio
async def test_generator_gives_up_after_bounded_attempts(db, monkeypatch) -> None:
    taken = await identity.register(db, "alice")
    monkeypatch.setattr(ids, "random_id", lambda length=None: taken)
    monkeypatch.setattr(settings, "id_max_attempts", 3)

    with pytest.raises(IdExhaustedError) as exc:
        await identity.register(db, "bob")

    assert exc.value.details == {"table": User.__tablename__, "attempts": 3}
    assert exc.value.status_code == 500
