"""
activity_stream.engine.audience — "Seen By" Audience Filter
=============================================================

A filter that owns its own storage: for every activity carrying its
verb (``tweet`` by default) it records one ``activity_audience`` row per
audience member listed under ``activity.parameters["audience"]``.
Querying with ``{"seenBy": "bob"}`` then returns the activities Bob can
see.

Lifecycle of the audience rows:

* written by :meth:`SeenByFilter.on_activity_added`, in the same
  transaction as the activity itself;
* written or deleted during the upgrade pass when an upgrader moves an
  activity into or out of the filter's verb;
* deleted by :meth:`SeenByFilter.cleanup` when the store removes the
  owning activities;
* :meth:`SeenByFilter.remove_member` drops a single association and,
  once an activity has no audience left, the activity too.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from activity_stream.database.models import Activity, ActivityReply, AudienceEntry
from activity_stream.engine.filters import ActivityFilter, newest_first, paginate

logger = logging.getLogger(__name__)

DEFAULT_VERB = "tweet"
DEFAULT_AUDIENCE_KEY = "audience"
SEEN_BY_PARAMETER = "seenBy"


class SeenByFilter(ActivityFilter):
    """Audience-scoped filter backed by the ``activity_audience`` table.

    Parameters
    ----------
    filter_id:
        Registry id.
    verb:
        Activities with this verb are tracked.
    audience_key:
        Key of ``activity.parameters`` holding the member list (a single
        string is accepted as a one-member list).
    include_actor:
        Also add the actor to the audience of their own activities.
    """

    def __init__(
        self,
        filter_id: str,
        *,
        verb: str = DEFAULT_VERB,
        audience_key: str = DEFAULT_AUDIENCE_KEY,
        include_actor: bool = False,
    ) -> None:
        super().__init__(filter_id)
        self.verb = verb
        self.audience_key = audience_key
        self.include_actor = include_actor

    # -- hooks called by the store -----------------------------------------

    def is_interested_in(self, activity: Activity) -> bool:
        return activity.verb == self.verb

    def audience_of(self, activity: Activity) -> list[str]:
        """Members derived from the activity's parameters, de-duplicated."""
        raw: Any = (activity.parameters or {}).get(self.audience_key) or []
        if isinstance(raw, str):
            raw = [raw]
        members = [str(m) for m in raw if m]
        if self.include_actor and activity.actor:
            members.append(activity.actor)
        return list(dict.fromkeys(members))

    def on_activity_added(self, session: Session, activity: Activity) -> None:
        members = self.audience_of(activity)
        for member in members:
            session.add(AudienceEntry(activity_id=activity.id, member=member))
        logger.debug(
            "Filter %s: activity %s visible to %d members", self.id, activity.id, len(members)
        )

    def cleanup(self, session: Session, activity_ids: Iterable[int]) -> None:
        ids = list(activity_ids)
        if not ids:
            return
        result = session.execute(
            delete(AudienceEntry).where(AudienceEntry.activity_id.in_(ids))
        )
        logger.debug("Filter %s: removed %s audience rows", self.id, result.rowcount)

    # -- query --------------------------------------------------------------

    def match(self, session, parameters, offset=0, limit=0):
        member = parameters.get(SEEN_BY_PARAMETER)
        if not member:
            raise ValueError(f"{self.id!r} filter requires the {SEEN_BY_PARAMETER!r} parameter")
        stmt = (
            select(Activity)
            .join(AudienceEntry, AudienceEntry.activity_id == Activity.id)
            .where(AudienceEntry.member == member)
        )
        stmt = paginate(newest_first(stmt), offset, limit)
        return list(session.scalars(stmt).all())

    # -- maintenance --------------------------------------------------------

    def members(self, session: Session, activity_id: int) -> list[str]:
        return list(
            session.scalars(
                select(AudienceEntry.member)
                .where(AudienceEntry.activity_id == activity_id)
                .order_by(AudienceEntry.member)
            ).all()
        )

    def remove_member(self, session: Session, activity_id: int, member: str) -> bool:
        """Drop one association; delete the activity once nobody can see it.

        Returns True when the base activity was deleted as well.
        """
        session.execute(
            delete(AudienceEntry).where(
                AudienceEntry.activity_id == activity_id,
                AudienceEntry.member == member,
            )
        )
        remaining = session.scalar(
            select(func.count())
            .select_from(AudienceEntry)
            .where(AudienceEntry.activity_id == activity_id)
        ) or 0
        if remaining:
            return False

        session.execute(delete(ActivityReply).where(ActivityReply.activity_id == activity_id))
        result = session.execute(delete(Activity).where(Activity.id == activity_id))
        if result.rowcount:
            logger.info(
                "Filter %s: last audience member of activity %s removed — activity deleted",
                self.id, activity_id,
            )
        return bool(result.rowcount)
