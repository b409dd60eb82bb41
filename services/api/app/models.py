"""
SQLAlchemy ORM models.

Tables:
  users    — identities (10-char random id, unique username)
  follows  — social graph edges (follower → followed)
  bans     — moderation edges (banner → banned)
  photos   — uploaded images, stored opaquely
  likes    — user × photo engagement
  comments — user × photo text
"""
from datetime import datetime, timezone

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    LargeBinary,
    String,
    Text,
)
from sqlalchemy.dialects import mysql
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base

ID_COLUMN_LENGTH = 32

# Microsecond precision keeps the stream ordering stable on MySQL/TiDB,
# whose plain DATETIME truncates to whole seconds.
Timestamp = DateTime(timezone=True).with_variant(mysql.DATETIME(fsp=6), "mysql")
ImageBlob = LargeBinary().with_variant(mysql.LONGBLOB(), "mysql")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    user_id: Mapped[str] = mapped_column(String(ID_COLUMN_LENGTH), primary_key=True)
    username: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(Timestamp, default=utcnow, nullable=False)


class Follow(Base):
    __tablename__ = "follows"

    follower_id: Mapped[str] = mapped_column(
        String(ID_COLUMN_LENGTH), ForeignKey("users.user_id"), primary_key=True
    )
    followed_id: Mapped[str] = mapped_column(
        String(ID_COLUMN_LENGTH), ForeignKey("users.user_id"), primary_key=True
    )
    created_at: Mapped[datetime] = mapped_column(Timestamp, default=utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint("follower_id <> followed_id", name="ck_follows_no_self"),
        # "who follows user X?"
        Index("idx_follows_followed", "followed_id"),
    )


class Ban(Base):
    __tablename__ = "bans"

    banner_id: Mapped[str] = mapped_column(
        String(ID_COLUMN_LENGTH), ForeignKey("users.user_id"), primary_key=True
    )
    banned_id: Mapped[str] = mapped_column(
        String(ID_COLUMN_LENGTH), ForeignKey("users.user_id"), primary_key=True
    )
    created_at: Mapped[datetime] = mapped_column(Timestamp, default=utcnow, nullable=False)

    __table_args__ = (Index("idx_bans_created", "created_at"),)


class Photo(Base):
    __tablename__ = "photos"

    photo_id: Mapped[str] = mapped_column(String(ID_COLUMN_LENGTH), primary_key=True)
    user_id: Mapped[str] = mapped_column(
        String(ID_COLUMN_LENGTH), ForeignKey("users.user_id"), nullable=False
    )
    # Raw upload bytes; never decoded or validated beyond non-empty
    image: Mapped[bytes] = mapped_column(ImageBlob, nullable=False, deferred=True)
    created_at: Mapped[datetime] = mapped_column(Timestamp, default=utcnow, nullable=False)

    owner = relationship("User", lazy="joined")

    __table_args__ = (
        Index("idx_photos_user", "user_id"),
        Index("idx_photos_created", "created_at"),
    )


class Like(Base):
    __tablename__ = "likes"

    user_id: Mapped[str] = mapped_column(
        String(ID_COLUMN_LENGTH), ForeignKey("users.user_id"), primary_key=True
    )
    photo_id: Mapped[str] = mapped_column(
        String(ID_COLUMN_LENGTH), ForeignKey("photos.photo_id"), primary_key=True
    )
    created_at: Mapped[datetime] = mapped_column(Timestamp, default=utcnow, nullable=False)

    __table_args__ = (Index("idx_likes_photo", "photo_id"),)


class Comment(Base):
    __tablename__ = "comments"

    comment_id: Mapped[str] = mapped_column(String(ID_COLUMN_LENGTH), primary_key=True)
    user_id: Mapped[str] = mapped_column(
        String(ID_COLUMN_LENGTH), ForeignKey("users.user_id"), nullable=False
    )
    photo_id: Mapped[str] = mapped_column(
        String(ID_COLUMN_LENGTH), ForeignKey("photos.photo_id"), nullable=False
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(Timestamp, default=utcnow, nullable=False)

    __table_args__ = (Index("idx_comments_photo", "photo_id"),)
