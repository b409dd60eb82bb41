"""
Pydantic schemas.

Two families live here:
  • result values returned by app.core operations (detached from the ORM
    session, safe to hand to any caller)
  • request bodies accepted by the HTTP layer
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


# ──────────────────────────── Users ───────────────────────────────────────

class UserOut(BaseModel):
    user_id: str
    username: str
    created_at: datetime

    class Config:
        from_attributes = True


class LoginResult(BaseModel):
    user: UserOut
    created: bool


class ProfileOut(BaseModel):
    user: UserOut
    followers: list[str]
    following: list[str]
    photos: list["PhotoOut"]


class LoginRequest(BaseModel):
    name: str = Field(..., min_length=3, max_length=16)


class LoginResponse(BaseModel):
    identifier: str


class UserCreate(BaseModel):
    username: str = Field(..., min_length=3, max_length=16)


class RenameRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=16)


# ──────────────────────────── Moderation ──────────────────────────────────

class BanOut(BaseModel):
    banner_id: str
    banned_id: str
    created_at: datetime

    class Config:
        from_attributes = True


class BanStatus(BaseModel):
    banned: bool


# ──────────────────────────── Photos ──────────────────────────────────────

class PhotoOut(BaseModel):
    photo_id: str
    user_id: str
    created_at: datetime

    class Config:
        from_attributes = True


class CommentOut(BaseModel):
    comment_id: str
    user_id: str
    photo_id: str
    content: str
    created_at: datetime

    class Config:
        from_attributes = True


class PhotoDetail(BaseModel):
    photo_id: str
    user_id: str
    username: str
    created_at: datetime
    like_count: int
    comments: list[CommentOut]
    # Serialised as base64 in JSON responses
    image: bytes

    class Config:
        ser_json_bytes = "base64"


class PhotoCreate(BaseModel):
    image_base64: str = Field(..., min_length=1)


class PhotoCreated(BaseModel):
    photo_id: str


class LikeStatus(BaseModel):
    liked: bool


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=2200)


class CommentCreated(BaseModel):
    comment_id: str


# ──────────────────────────── Stream ──────────────────────────────────────

class StreamResponse(BaseModel):
    user_id: str
    photos: list[str]
    latency_ms: Optional[float] = None


ProfileOut.model_rebuild()
