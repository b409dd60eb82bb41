import base64

import pytest

IMAGE = b"\x89PNG\r\n\x1a\nfake-png-payload"


async def login(client, name: str) -> dict:
    resp = await client.post("/session", json={"name": name})
    assert resp.status_code in (200, 201)
    return {"Authorization": f"Bearer {resp.json()['identifier']}"}


async def upload(client, headers: dict, payload: bytes = IMAGE) -> str:
    resp = await client.post(
        "/photos",
        json={"image_base64": base64.b64encode(payload).decode()},
        headers=headers,
    )
    assert resp.status_code == 201
    return resp.json()["photo_id"]


@pytest.mark.asyncio
async def test_session_created_then_existing(api_client) -> None:
    first = await api_client.post("/session", json={"name": "alice"})
    second = await api_client.post("/session", json={"name": "alice"})

    assert first.status_code == 201
    assert second.status_code == 200
    assert first.json()["identifier"] == second.json()["identifier"]


@pytest.mark.asyncio
async def test_session_validates_name(api_client) -> None:
    resp = await api_client.post("/session", json={"name": "al"})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_create_user(api_client) -> None:
    created = await api_client.post("/users", json={"username": "alice"})
    assert created.status_code == 201
    assert created.json()["username"] == "alice"

    taken = await api_client.post("/users", json={"username": "alice"})
    assert taken.status_code == 409
    assert taken.json()["code"] == "CONFLICT"

    # The created user can log in and gets the same identifier back
    session = await api_client.post("/session", json={"name": "alice"})
    assert session.status_code == 200
    assert session.json()["identifier"] == created.json()["user_id"]


@pytest.mark.asyncio
async def test_requests_need_known_identity(api_client) -> None:
    assert (await api_client.get("/stream")).status_code == 401
    resp = await api_client.get("/stream", headers={"Authorization": "Bearer nobody0000"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_stream_follow_and_ban_flow(api_client) -> None:
    alice = await login(api_client, "alice")
    bob = await login(api_client, "bob")
    photo_id = await upload(api_client, alice)

    assert (await api_client.post("/users/alice/follows", headers=bob)).status_code == 204
    stream = await api_client.get("/stream", headers=bob)
    assert stream.status_code == 200
    assert stream.json()["photos"] == [photo_id]

    assert (await api_client.post("/users/alice/bans", headers=bob)).status_code == 204
    assert (await api_client.get("/users/alice/bans", headers=bob)).json() == {"banned": True}
    assert (await api_client.get("/stream", headers=bob)).json()["photos"] == []

    again = await api_client.post("/users/alice/bans", headers=bob)
    assert again.status_code == 409
    assert again.json()["code"] == "CONFLICT"

    bans = (await api_client.get("/bans", headers=alice)).json()
    assert len(bans) == 1

    assert (await api_client.delete("/users/alice/bans", headers=bob)).status_code == 204
    assert (await api_client.delete("/users/alice/bans", headers=bob)).status_code == 204
    assert (await api_client.get("/stream", headers=bob)).json()["photos"] == [photo_id]


@pytest.mark.asyncio
async def test_follow_errors(api_client) -> None:
    alice = await login(api_client, "alice")

    self_follow = await api_client.post("/users/alice/follows", headers=alice)
    assert self_follow.status_code == 400
    assert self_follow.json()["code"] == "INVALID_ARGUMENT"

    unknown = await api_client.post("/users/ghost/follows", headers=alice)
    assert unknown.status_code == 404
    assert unknown.json()["code"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_photo_detail_likes_and_comments(api_client) -> None:
    alice = await login(api_client, "alice")
    bob = await login(api_client, "bob")
    photo_id = await upload(api_client, alice)

    assert (await api_client.post(f"/photos/{photo_id}/likes", headers=bob)).status_code == 204
    duplicate = await api_client.post(f"/photos/{photo_id}/likes", headers=bob)
    assert duplicate.status_code == 409
    liked = await api_client.get(f"/photos/{photo_id}/likes/me", headers=bob)
    assert liked.json() == {"liked": True}

    created = await api_client.post(
        f"/photos/{photo_id}/comments", json={"content": "nice!"}, headers=bob
    )
    assert created.status_code == 201
    blank = await api_client.post(
        f"/photos/{photo_id}/comments", json={"content": "   "}, headers=bob
    )
    assert blank.status_code == 400

    detail = (await api_client.get(f"/photos/{photo_id}", headers=bob)).json()
    assert detail["username"] == "alice"
    assert detail["like_count"] == 1
    assert [c["content"] for c in detail["comments"]] == ["nice!"]
    assert base64.b64decode(detail["image"]) == IMAGE

    raw = await api_client.get(f"/photos/{photo_id}/image", headers=bob)
    assert raw.content == IMAGE

    assert (await api_client.delete(f"/photos/{photo_id}/likes", headers=bob)).status_code == 204
    assert (await api_client.delete(f"/photos/{photo_id}/likes", headers=bob)).status_code == 204
    liked = await api_client.get(f"/photos/{photo_id}/likes/me", headers=bob)
    assert liked.json() == {"liked": False}


@pytest.mark.asyncio
async def test_upload_rejects_bad_payloads(api_client) -> None:
    alice = await login(api_client, "alice")
    resp = await api_client.post("/photos", json={"image_base64": "not base64!"}, headers=alice)
    assert resp.status_code == 400
    resp = await api_client.post("/photos", json={"image_base64": ""}, headers=alice)
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_only_owner_deletes_photo(api_client) -> None:
    alice = await login(api_client, "alice")
    bob = await login(api_client, "bob")
    photo_id = await upload(api_client, alice)
    await api_client.post(f"/photos/{photo_id}/comments", json={"content": "nice!"}, headers=alice)

    assert (await api_client.delete(f"/photos/{photo_id}", headers=bob)).status_code == 403
    assert (await api_client.delete(f"/photos/{photo_id}", headers=alice)).status_code == 204
    assert (await api_client.get(f"/photos/{photo_id}", headers=alice)).status_code == 404
    assert (await api_client.get(f"/photos/{photo_id}/comments", headers=alice)).status_code == 404


@pytest.mark.asyncio
async def test_comment_removal_permissions(api_client) -> None:
    alice = await login(api_client, "alice")
    bob = await login(api_client, "bob")
    carol = await login(api_client, "carol")
    photo_id = await upload(api_client, alice)

    first = await api_client.post(
        f"/photos/{photo_id}/comments", json={"content": "first"}, headers=bob
    )
    second = await api_client.post(
        f"/photos/{photo_id}/comments", json={"content": "second"}, headers=bob
    )
    first_id = first.json()["comment_id"]
    second_id = second.json()["comment_id"]

    assert (await api_client.delete(f"/comments/{first_id}", headers=carol)).status_code == 403
    assert (await api_client.delete(f"/comments/{first_id}", headers=bob)).status_code == 204
    # The photo owner may remove comments left on their photo
    assert (await api_client.delete(f"/comments/{second_id}", headers=alice)).status_code == 204
    assert (await api_client.delete(f"/comments/{second_id}", headers=alice)).status_code == 404

    comments = await api_client.get(f"/photos/{photo_id}/comments", headers=alice)
    assert comments.json() == []


@pytest.mark.asyncio
async def test_rename_and_profile(api_client) -> None:
    alice = await login(api_client, "alice")
    bob = await login(api_client, "bob")
    await api_client.post("/users/alice/follows", headers=bob)
    photo_id = await upload(api_client, alice)

    conflict = await api_client.patch("/users/me", json={"username": "bob"}, headers=alice)
    assert conflict.status_code == 409

    renamed = await api_client.patch("/users/me", json={"username": "alicia"}, headers=alice)
    assert renamed.status_code == 200
    assert renamed.json()["username"] == "alicia"

    profile = (await api_client.get("/users/alicia", headers=bob)).json()
    assert profile["user"]["username"] == "alicia"
    assert len(profile["followers"]) == 1
    assert [p["photo_id"] for p in profile["photos"]] == [photo_id]

    followers = (await api_client.get("/users/alicia/followers", headers=bob)).json()
    assert followers["followers"] == profile["followers"]
    following = (await api_client.get("/users/bob/following", headers=bob)).json()
    assert following["following"] == [profile["user"]["user_id"]]

    users = (await api_client.get("/users", headers=bob)).json()
    assert [u["username"] for u in users] == ["alicia", "bob"]
    assert (await api_client.get("/users/alice", headers=bob)).status_code == 404


@pytest.mark.asyncio
async def test_health(api_client) -> None:
    resp = await api_client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"
