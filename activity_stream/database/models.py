"""
activity_stream.database.models — SQLAlchemy 2.0 Data Models
=============================================================

Tables:
- activities         — One row per recorded activity (actor / verb / object)
- activity_replies   — Threaded replies, numbered per activity
- activity_audience  — "Seen by" associations owned by the audience filter
"""

from __future__ import annotations

import copy
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import (
    JSON,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    TypeDecorator,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

# JSONB on PostgreSQL, plain JSON everywhere else (SQLite in tests).
JSONType = JSON().with_variant(JSONB(), "postgresql")


def as_utc(value: datetime | None) -> datetime | None:
    """Return *value* as an aware UTC datetime; naive values are taken as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class UTCDateTime(TypeDecorator):
    """``TIMESTAMP WITH TIME ZONE`` that always hands back aware UTC values.

    SQLite drops the offset on storage, so values are converted to UTC on
    the way in and re-tagged as UTC on the way out.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return as_utc(value)

    def process_result_value(self, value, dialect):
        return as_utc(value)


# Columns compared by the upgrade pipeline to decide whether a record changed.
ACTIVITY_FIELDS: tuple[str, ...] = (
    "actor",
    "display_actor",
    "verb",
    "object",
    "display_object",
    "target",
    "display_target",
    "context",
    "published_date",
    "last_updated_date",
    "parameters",
)


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all activity stream ORM models."""


# ---------------------------------------------------------------------------
# Activity: actor performed verb on object
# ---------------------------------------------------------------------------
class Activity(Base):
    __tablename__ = "activities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    actor: Mapped[str | None] = mapped_column(String(255), default=None)
    display_actor: Mapped[str | None] = mapped_column(String(255), default=None)
    verb: Mapped[str | None] = mapped_column(String(255), default=None)
    object: Mapped[str | None] = mapped_column(String(1024), default=None)
    display_object: Mapped[str | None] = mapped_column(String(1024), default=None)
    target: Mapped[str | None] = mapped_column(String(1024), default=None)
    display_target: Mapped[str | None] = mapped_column(String(1024), default=None)
    context: Mapped[str | None] = mapped_column(String(1024), default=None)
    published_date: Mapped[datetime] = mapped_column(
        UTCDateTime(), nullable=False
    )
    last_updated_date: Mapped[datetime | None] = mapped_column(
        UTCDateTime(), default=None
    )
    parameters: Mapped[dict[str, Any] | None] = mapped_column(JSONType, default=None)
    # Highest reply ordinal ever handed out: never decreases.
    reply_sequence: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    replies: Mapped[list[ActivityReply]] = relationship(
        back_populates="activity",
        cascade="all, delete-orphan",
        order_by="ActivityReply.ordinal",
        lazy="selectin",
    )

    __table_args__ = (
        Index("ix_activities_published", "published_date"),
        Index("ix_activities_verb_published", "verb", "published_date"),
        Index("ix_activities_actor", "actor"),
    )

    def snapshot(self) -> dict[str, Any]:
        """Column values used to detect in-place changes.

        ``parameters`` is deep-copied so mutations of the dict itself show up.
        """
        values = {name: getattr(self, name) for name in ACTIVITY_FIELDS}
        values["parameters"] = copy.deepcopy(values["parameters"])
        return values

    def __repr__(self) -> str:
        return (
            f"<Activity id={self.id} actor={self.actor!r} "
            f"verb={self.verb!r} object={self.object!r}>"
        )


# ---------------------------------------------------------------------------
# ActivityReply: "{activity_id}-reply-{n}"
# ---------------------------------------------------------------------------
class ActivityReply(Base):
    __tablename__ = "activity_replies"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    activity_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("activities.id", ondelete="CASCADE"), nullable=False
    )
    ordinal: Mapped[int] = mapped_column(Integer, nullable=False)
    actor: Mapped[str | None] = mapped_column(String(255), default=None)
    display_actor: Mapped[str | None] = mapped_column(String(255), default=None)
    message: Mapped[str | None] = mapped_column(Text, default=None)
    published_date: Mapped[datetime | None] = mapped_column(
        UTCDateTime(), default=None
    )

    activity: Mapped[Activity] = relationship(back_populates="replies")

    __table_args__ = (
        Index("ix_activity_replies_activity_ordinal", "activity_id", "ordinal", unique=True),
    )

    def __repr__(self) -> str:
        return f"<ActivityReply id={self.id!r} actor={self.actor!r}>"


# ---------------------------------------------------------------------------
# AudienceEntry: activity id ↔ audience member (audience filter storage)
# ---------------------------------------------------------------------------
class AudienceEntry(Base):
    """Rows owned by :class:`~activity_stream.engine.audience.SeenByFilter`.

    Scoped by activity id; the store never touches this table directly,
    it asks the filter to clean up when activities are removed.
    """
    __tablename__ = "activity_audience"

    activity_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("activities.id", ondelete="CASCADE"), primary_key=True
    )
    member: Mapped[str] = mapped_column(String(255), primary_key=True)

    __table_args__ = (
        Index("ix_activity_audience_member", "member"),
    )

    def __repr__(self) -> str:
        return f"<AudienceEntry activity={self.activity_id} member={self.member!r}>"
