"""
User and relationship endpoints:
  POST   /users                       — create a user (409 if the name is taken)
  GET    /users                       — list every user
  PATCH  /users/me                    — change the caller's username
  GET    /users/{username}            — profile as seen by the caller
  GET    /users/{username}/followers  — follower ids
  GET    /users/{username}/following  — ids the user follows
  POST   /users/{username}/follows    — caller follows user
  DELETE /users/{username}/follows    — caller unfollows user
  POST   /users/{username}/bans       — caller bans user
  DELETE /users/{username}/bans       — caller unbans user
  GET    /users/{username}/bans       — has the caller banned user?
"""
import logging

from fastapi import APIRouter, Depends, status
from opentelemetry import trace
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import feed, graph, identity
from app.database import get_db
from app.dependencies import get_current_user
from app.schemas import BanStatus, ProfileOut, RenameRequest, UserCreate, UserOut

logger = logging.getLogger(__name__)
router = APIRouter()
tracer = trace.get_tracer(__name__)


@router.post("", response_model=UserOut, status_code=status.HTTP_201_CREATED)
async def create_user(body: UserCreate, db: AsyncSession = Depends(get_db)):
    with tracer.start_as_current_span("create_user") as span:
        user_id = await identity.register(db, body.username)
        span.set_attribute("user.id", user_id)
        return await identity.lookup_by_id(db, user_id)


@router.get("", response_model=list[UserOut])
async def list_users(
    me: UserOut = Depends(get_current_user), db: AsyncSession = Depends(get_db)
):
    return await identity.list_users(db)


@router.patch("/me", response_model=UserOut)
async def set_my_username(
    body: RenameRequest,
    me: UserOut = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    with tracer.start_as_current_span("set_my_username"):
        return await identity.rename(db, me.user_id, body.username)


@router.get("/{username}", response_model=ProfileOut)
async def get_user_profile(
    username: str,
    me: UserOut = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    with tracer.start_as_current_span("get_user_profile") as span:
        span.set_attribute("viewer.id", me.user_id)
        return await feed.profile_for(db, username, me.user_id)


@router.get("/{username}/followers")
async def list_followers(
    username: str,
    me: UserOut = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    user = await identity.lookup_by_username(db, username)
    followers = await graph.followers_of(db, user.user_id)
    return {"user_id": user.user_id, "followers": sorted(followers)}


@router.get("/{username}/following")
async def list_following(
    username: str,
    me: UserOut = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    user = await identity.lookup_by_username(db, username)
    following = await graph.following_of(db, user.user_id)
    return {"user_id": user.user_id, "following": sorted(following)}


@router.post("/{username}/follows", status_code=status.HTTP_204_NO_CONTENT)
async def follow_user(
    username: str,
    me: UserOut = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    with tracer.start_as_current_span("follow_user"):
        target = await identity.lookup_by_username(db, username)
        await graph.follow(db, me.user_id, target.user_id)


@router.delete("/{username}/follows", status_code=status.HTTP_204_NO_CONTENT)
async def unfollow_user(
    username: str,
    me: UserOut = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    with tracer.start_as_current_span("unfollow_user"):
        target = await identity.lookup_by_username(db, username)
        await graph.unfollow(db, me.user_id, target.user_id)


@router.post("/{username}/bans", status_code=status.HTTP_204_NO_CONTENT)
async def ban_user(
    username: str,
    me: UserOut = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    with tracer.start_as_current_span("ban_user"):
        target = await identity.lookup_by_username(db, username)
        await graph.ban(db, me.user_id, target.user_id)


@router.delete("/{username}/bans", status_code=status.HTTP_204_NO_CONTENT)
async def unban_user(
    username: str,
    me: UserOut = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    with tracer.start_as_current_span("unban_user"):
        target = await identity.lookup_by_username(db, username)
        await graph.unban(db, me.user_id, target.user_id)


@router.get("/{username}/bans", response_model=BanStatus)
async def is_user_banned(
    username: str,
    me: UserOut = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    target = await identity.lookup_by_username(db, username)
    return BanStatus(banned=await graph.is_banned(db, me.user_id, target.user_id))
