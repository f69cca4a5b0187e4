"""
activity_stream.engine.activities — Query Results & Display Messages
=====================================================================

:class:`ActivitiesList` is what :meth:`ActivityStreamService.query`
returns: a plain list of activities with a few helpers on top.

:class:`ActivityMessage` is a display-ready snapshot of an activity that
carries the verb's i18n label key.  Resolving the key into a localized
sentence is left to the host application.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING

from activity_stream.database.models import Activity, ActivityReply

if TYPE_CHECKING:
    from activity_stream.engine.verbs import VerbRegistry


@dataclass(frozen=True, slots=True)
class ReplyMessage:
    id: str
    actor: str | None
    display_actor: str | None
    message: str | None
    published_date: datetime | None

    @classmethod
    def from_reply(cls, reply: ActivityReply) -> ReplyMessage:
        return cls(
            id=reply.id,
            actor=reply.actor,
            display_actor=reply.display_actor,
            message=reply.message,
            published_date=reply.published_date,
        )


@dataclass(frozen=True, slots=True)
class ActivityMessage:
    """Immutable view of an activity for rendering."""

    activity_id: int
    actor: str | None
    display_actor: str | None
    verb: str | None
    label_key: str
    object: str | None
    display_object: str | None
    target: str | None
    display_target: str | None
    published_date: datetime
    last_updated_date: datetime | None
    replies: tuple[ReplyMessage, ...] = field(default_factory=tuple)


class ActivitiesList(list[Activity]):
    """``list`` of activities returned by a filter query."""

    def activity_ids(self) -> list[int]:
        return [a.id for a in self]

    def filter_activities(self, object_ids: Iterable[str]) -> ActivitiesList:
        """Keep the activities whose object or target is in *object_ids*."""
        wanted = set(object_ids)
        return ActivitiesList(
            a for a in self if a.object in wanted or a.target in wanted
        )

    def to_activity_messages(self, verbs: VerbRegistry) -> list[ActivityMessage]:
        messages: list[ActivityMessage] = []
        for activity in self:
            label_key = verbs.get(activity.verb).label_key if activity.verb else ""
            messages.append(ActivityMessage(
                activity_id=activity.id,
                actor=activity.actor,
                display_actor=activity.display_actor,
                verb=activity.verb,
                label_key=label_key,
                object=activity.object,
                display_object=activity.display_object,
                target=activity.target,
                display_target=activity.display_target,
                published_date=activity.published_date,
                last_updated_date=activity.last_updated_date,
                replies=tuple(ReplyMessage.from_reply(r) for r in activity.replies),
            ))
        return messages
