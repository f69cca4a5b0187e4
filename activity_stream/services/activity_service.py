"""
activity_stream.services.activity_service — The Activity Store Engine
======================================================================

:class:`ActivityStreamService` is the only component other subsystems
call directly.  It owns no mutable state besides the read-only registries
it was built with; every record lives in the database, and every
operation runs in its own short-lived session (see
:func:`~activity_stream.database.engine.get_session`).

Responsibilities:
1. Persist activities and let interested filters index them.
2. Dispatch queries to the filter registry, with pagination.
3. Number replies per activity — ``{activity_id}-reply-{n}``, never reused.
4. Remove activities together with any filter-owned rows.
5. Drive the upgrader pipeline over every stored activity.

Usage::

    service = ActivityStreamService.from_config(engine, load_config())
    stored = service.add_activity(Activity(actor="user:bob", verb="tweet", object="hi"))
    feed = service.query(ALL_ACTIVITIES, offset=0, limit=20)
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from datetime import UTC, datetime
from typing import Any, TypeVar

from sqlalchemy import Engine, Select, delete, select
from sqlalchemy.orm.attributes import flag_modified

from activity_stream.config import ActivityStoreConfig
from activity_stream.database.engine import get_session
from activity_stream.database.models import Activity, ActivityReply, as_utc
from activity_stream.engine.activities import ActivitiesList, ActivityMessage
from activity_stream.engine.filters import ActivityFilter, FilterRegistry, check_pagination
from activity_stream.engine.streams import ActivityStream, ActivityStreamRegistry
from activity_stream.engine.upgraders import UpgradeReport, UpgraderRegistry
from activity_stream.engine.verbs import ActivityVerb, VerbRegistry
from activity_stream.errors import ActivityNotFoundError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Activity ids scanned per round-trip during an upgrade pass
UPGRADE_BATCH_SIZE = 500

REPLY_ID_FORMAT = "{activity_id}-reply-{ordinal}"


def reply_id(activity_id: int, ordinal: int) -> str:
    return REPLY_ID_FORMAT.format(activity_id=activity_id, ordinal=ordinal)


def lock_activity(activity_id: int) -> Select:
    """``SELECT … FOR UPDATE`` of one activity row.

    Serializes reply numbering per activity.  SQLite has no row locks and
    ignores the clause; there a racing duplicate ordinal fails on the
    unique ``(activity_id, ordinal)`` index instead of being stored.
    """
    return select(Activity).where(Activity.id == activity_id).with_for_update()


class ActivityStreamService:
    """Persistence-backed activity stream store."""

    def __init__(
        self,
        engine: Engine,
        *,
        verbs: VerbRegistry | None = None,
        streams: ActivityStreamRegistry | None = None,
        filters: FilterRegistry | None = None,
        upgraders: UpgraderRegistry | None = None,
    ) -> None:
        self._engine = engine
        self.verbs = verbs if verbs is not None else VerbRegistry.build()
        self.streams = streams if streams is not None else ActivityStreamRegistry.build()
        self.filters = (
            filters if filters is not None else FilterRegistry.build(streams=self.streams)
        )
        self.upgraders = upgraders if upgraders is not None else UpgraderRegistry.build()

    @classmethod
    def from_config(cls, engine: Engine, config: ActivityStoreConfig) -> ActivityStreamService:
        """Build every registry from *config*.

        Raises
        ------
        ConfigurationError
            On duplicate ids or malformed entries — the store must not
            start serving with a broken configuration.
        """
        streams = ActivityStreamRegistry.build(config.streams)
        return cls(
            engine,
            verbs=VerbRegistry.build(config.verbs),
            streams=streams,
            filters=FilterRegistry.build(config.filters, streams=streams),
            upgraders=UpgraderRegistry.build(config.upgraders),
        )

    # ------------------------------------------------------------------
    # Activities
    # ------------------------------------------------------------------
    def add_activity(self, activity: Activity) -> Activity:
        """Persist *activity* and return it with its assigned id.

        ``published_date`` defaults to now; naive datetimes are taken as UTC
        and every stored date is an aware UTC value.  Replies attached before
        insertion are numbered like replies added later.  Filters that are
        interested in the activity index it in the same transaction.
        """
        activity.published_date = as_utc(activity.published_date) or datetime.now(UTC)
        activity.last_updated_date = (
            as_utc(activity.last_updated_date) or activity.published_date
        )
        if activity.reply_sequence is None:
            activity.reply_sequence = 0

        pending_replies = list(activity.replies)
        activity.replies = []

        with get_session(self._engine) as session:
            session.add(activity)
            session.flush()  # assigns activity.id

            for reply in pending_replies:
                reply.published_date = (
                    as_utc(reply.published_date) or activity.published_date
                )
                self._append_reply(activity, reply)

            for flt in self._interested_filters(activity):
                flt.on_activity_added(session, activity)

        logger.debug("Stored %r", activity)
        return activity

    def get_activity(self, activity_id: int) -> Activity | None:
        with get_session(self._engine, read_only=True) as session:
            return session.get(Activity, activity_id)

    def query(
        self,
        filter_id: str,
        parameters: Mapping[str, Any] | None = None,
        offset: int = 0,
        limit: int = 0,
    ) -> ActivitiesList:
        """Run the filter registered as *filter_id*.

        *offset* skips that many matches, *limit* caps the result
        (``0`` = unbounded).  Paging past the end yields an empty list.

        Raises
        ------
        FilterNotFoundError
            If *filter_id* is not registered.
        ValueError
            On negative pagination values.
        """
        flt = self.filters.get(filter_id)
        check_pagination(offset, limit)
        with get_session(self._engine, read_only=True) as session:
            return ActivitiesList(flt.match(session, dict(parameters or {}), offset, limit))

    def remove_activities(self, activities: Iterable[Activity | int]) -> int:
        """Delete *activities* (matched by id) and every filter-owned row tied
        to them, in one transaction.  Unknown ids are ignored.

        Returns the number of activities deleted.
        """
        ids = sorted({a if isinstance(a, int) else a.id for a in activities} - {None})
        if not ids:
            return 0

        with get_session(self._engine) as session:
            for flt in self.filters.all():
                cleanup = getattr(flt, "cleanup", None)
                if callable(cleanup):
                    cleanup(session, ids)
            session.execute(delete(ActivityReply).where(ActivityReply.activity_id.in_(ids)))
            result = session.execute(delete(Activity).where(Activity.id.in_(ids)))
            removed = result.rowcount or 0

        logger.info("Removed %d of %d requested activities", removed, len(ids))
        return removed

    # ------------------------------------------------------------------
    # Replies
    # ------------------------------------------------------------------
    def add_activity_reply(self, activity_id: int, reply: ActivityReply) -> ActivityReply:
        """Append *reply* to an activity and return it with its assigned id.

        The parent row is locked (``SELECT … FOR UPDATE``) so concurrent
        replies to the same activity get distinct ordinals.

        Raises
        ------
        ActivityNotFoundError
            If no activity has *activity_id*.
        """
        with get_session(self._engine) as session:
            activity = session.scalar(lock_activity(activity_id))
            if activity is None:
                raise ActivityNotFoundError(activity_id)

            reply.published_date = as_utc(reply.published_date) or datetime.now(UTC)
            self._append_reply(activity, reply)
            activity.last_updated_date = reply.published_date

        logger.debug("Stored reply %s", reply.id)
        return reply

    def remove_activity_reply(self, activity_id: int, reply_id: str) -> bool:
        """Remove one reply.  Unknown activity or reply ids are a no-op.

        Returns True if a reply was deleted.  Ids are never renumbered.
        """
        with get_session(self._engine) as session:
            reply = session.get(ActivityReply, reply_id)
            if reply is None or reply.activity_id != activity_id:
                return False
            session.delete(reply)

        logger.debug("Removed reply %s", reply_id)
        return True

    @staticmethod
    def _append_reply(activity: Activity, reply: ActivityReply) -> None:
        activity.reply_sequence = (activity.reply_sequence or 0) + 1
        reply.ordinal = activity.reply_sequence
        reply.id = reply_id(activity.id, reply.ordinal)
        activity.replies.append(reply)

    # ------------------------------------------------------------------
    # Upgrades
    # ------------------------------------------------------------------
    def upgrade_activities(self) -> UpgradeReport:
        """Run every registered upgrader over every stored activity.

        Activities are visited in id order, each in its own transaction,
        and written back only if an upgrader changed them.  A record whose
        upgrade raises is rolled back, logged and counted; the pass goes
        on.  Safe to run repeatedly since upgraders are idempotent.
        Filters that gain or lose interest in an upgraded activity are
        indexed or cleaned up in the same transaction.
        """
        report = UpgradeReport()
        if not len(self.upgraders):
            logger.info("No activity upgraders registered — skipping upgrade pass.")
            return report

        for activity_id in self._iter_activity_ids():
            report.scanned += 1
            try:
                if self._upgrade_one(activity_id):
                    report.upgraded += 1
            except Exception as exc:
                logger.warning(
                    "Activity upgrade failed for id=%s — skipped", activity_id, exc_info=True
                )
                report.failed.append((activity_id, str(exc)))

        logger.info(
            "Activity upgrade pass complete — %d scanned, %d upgraded, %d failed",
            report.scanned, report.upgraded, report.failure_count,
        )
        return report

    def _iter_activity_ids(self) -> Iterable[int]:
        last_id = 0
        while True:
            with get_session(self._engine, read_only=True) as session:
                ids = session.scalars(
                    select(Activity.id)
                    .where(Activity.id > last_id)
                    .order_by(Activity.id)
                    .limit(UPGRADE_BATCH_SIZE)
                ).all()
            if not ids:
                return
            yield from ids
            last_id = ids[-1]

    def _upgrade_one(self, activity_id: int) -> bool:
        with get_session(self._engine) as session:
            activity = session.get(Activity, activity_id)
            if activity is None:
                return False
            interested_before = self._interested_filters(activity)
            changed = self.upgraders.apply(activity)
            if changed:
                # JSON columns don't track in-place dict mutation
                flag_modified(activity, "parameters")
                self._reindex(session, activity, interested_before)
            return changed

    def _reindex(self, session, activity: Activity, interested_before: list[Any]) -> None:
        """Index an upgraded activity in filters that just became interested
        and drop it from filters that lost interest.

        Filters interested both before and after keep their rows as they
        are, so associations revoked since insertion stay revoked.
        """
        interested_after = self._interested_filters(activity)
        for flt in interested_before:
            if flt in interested_after:
                continue
            cleanup = getattr(flt, "cleanup", None)
            if callable(cleanup):
                cleanup(session, [activity.id])
        for flt in interested_after:
            if flt not in interested_before:
                flt.on_activity_added(session, activity)

    # ------------------------------------------------------------------
    # Registries & helpers
    # ------------------------------------------------------------------
    def get_filter(self, filter_id: str) -> ActivityFilter:
        return self.filters.get(filter_id)

    def get_activity_stream(self, name: str) -> ActivityStream:
        return self.streams.get(name)

    def get_activity_verb(self, verb_id: str) -> ActivityVerb:
        return self.verbs.get(verb_id)

    def to_activity_messages(self, activities: Iterable[Activity]) -> list[ActivityMessage]:
        return ActivitiesList(activities).to_activity_messages(self.verbs)

    def run(
        self,
        work: Callable[..., T],
        *args: Any,
        read_only: bool = False,
        **kwargs: Any,
    ) -> T:
        """Run ``work(session, *args, **kwargs)`` as one unit of work.

        Used for filter-specific maintenance, e.g.::

            service.run(service.get_filter("tweets").remove_member, activity_id, "bob")
        """
        with get_session(self._engine, read_only=read_only) as session:
            return work(session, *args, **kwargs)

    def _interested_filters(self, activity: Activity) -> list[Any]:
        interested = []
        for flt in self.filters.all():
            hook = getattr(flt, "on_activity_added", None)
            if not callable(hook):
                continue
            wants = getattr(flt, "is_interested_in", None)
            if callable(wants) and not wants(activity):
                continue
            interested.append(flt)
        return interested
