"""
activity_stream.engine.filters — Filter Registry & Built-in Filters
====================================================================

A filter is a named query strategy: given runtime parameters plus an
offset and a limit, it returns an ordered list of matching activities.

Required capability::

    match(session, parameters, offset, limit) -> list[Activity]

Optional capabilities (looked up with ``getattr``, never assumed)::

    is_interested_in(activity) -> bool
    on_activity_added(session, activity) -> None
    cleanup(session, activity_ids) -> None

``cleanup`` lets a filter own supplementary storage scoped by activity id
(see :mod:`activity_stream.engine.audience`); the store calls it on every
filter that exposes it whenever activities are removed.

Two filters are always registered:

* ``allActivities`` — everything, newest first.
* ``activityStream`` — activities whose verb belongs to a named stream.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from activity_stream.config import FilterEntry
from activity_stream.database.models import Activity
from activity_stream.engine.plugins import resolve_reference
from activity_stream.engine.streams import ActivityStreamRegistry
from activity_stream.errors import ConfigurationError, FilterNotFoundError

logger = logging.getLogger(__name__)

ALL_ACTIVITIES = "allActivities"
ACTIVITY_STREAM_FILTER = "activityStream"

# Query parameter names understood by the built-in stream filter
STREAM_PARAMETER = "activityStream"
ACTOR_PARAMETER = "actor"


# ---------------------------------------------------------------------------
# Query helpers shared by every filter
# ---------------------------------------------------------------------------
def check_pagination(offset: int, limit: int) -> None:
    """Reject negative pagination values; ``limit == 0`` means unbounded."""
    if offset < 0:
        raise ValueError(f"offset must be >= 0, got {offset}")
    if limit < 0:
        raise ValueError(f"limit must be >= 0, got {limit}")


def newest_first(stmt: Select) -> Select:
    """Order by ``published_date`` desc; equal dates keep insertion order."""
    return stmt.order_by(Activity.published_date.desc(), Activity.id.asc())


def paginate(stmt: Select, offset: int, limit: int) -> Select:
    if offset:
        stmt = stmt.offset(offset)
    if limit:
        stmt = stmt.limit(limit)
    return stmt


# ---------------------------------------------------------------------------
# Base class
# ---------------------------------------------------------------------------
class ActivityFilter:
    """Base for filters.  Subclasses implement :meth:`match`."""

    def __init__(self, filter_id: str) -> None:
        self.id = filter_id

    def match(
        self,
        session: Session,
        parameters: Mapping[str, Any],
        offset: int = 0,
        limit: int = 0,
    ) -> list[Activity]:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={self.id!r}>"


# ---------------------------------------------------------------------------
# Built-in filters
# ---------------------------------------------------------------------------
class AllActivitiesFilter(ActivityFilter):
    """Every stored activity, newest first.  Ignores parameters."""

    def __init__(self, filter_id: str = ALL_ACTIVITIES) -> None:
        super().__init__(filter_id)

    def match(self, session, parameters, offset=0, limit=0):
        stmt = paginate(newest_first(select(Activity)), offset, limit)
        return list(session.scalars(stmt).all())


class ActivityStreamFilter(ActivityFilter):
    """Activities whose verb belongs to the stream named by the
    ``activityStream`` parameter, optionally narrowed to one ``actor``."""

    def __init__(
        self,
        filter_id: str = ACTIVITY_STREAM_FILTER,
        *,
        streams: ActivityStreamRegistry,
    ) -> None:
        super().__init__(filter_id)
        self._streams = streams

    def match(self, session, parameters, offset=0, limit=0):
        name = parameters.get(STREAM_PARAMETER)
        if not name:
            raise ValueError(f"{self.id!r} filter requires the {STREAM_PARAMETER!r} parameter")
        stream = self._streams.get(name)
        if not stream.verbs:
            return []

        stmt = select(Activity).where(Activity.verb.in_(stream.verbs))
        actor = parameters.get(ACTOR_PARAMETER)
        if actor:
            stmt = stmt.where(Activity.actor == actor)
        stmt = paginate(newest_first(stmt), offset, limit)
        return list(session.scalars(stmt).all())


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------
class FilterRegistry:
    """Read-only ``filter id → filter`` table, closed at startup."""

    def __init__(self, filters: dict[str, ActivityFilter]) -> None:
        self._filters = filters

    @classmethod
    def build(
        cls,
        entries: Iterable[FilterEntry] = (),
        *,
        streams: ActivityStreamRegistry | None = None,
    ) -> FilterRegistry:
        """Register the built-in filters, then instantiate every configured
        entry as ``implementation(id, **options)``.

        Raises
        ------
        ConfigurationError
            On a duplicate id, an unresolvable implementation, or an
            object without a callable ``match``.
        """
        filters: dict[str, Any] = {
            ALL_ACTIVITIES: AllActivitiesFilter(),
            ACTIVITY_STREAM_FILTER: ActivityStreamFilter(
                streams=streams or ActivityStreamRegistry({})
            ),
        }

        for entry in entries:
            if entry.id in filters:
                raise ConfigurationError(f"Duplicate activity stream filter id: {entry.id!r}")
            factory = resolve_reference(entry.implementation)
            try:
                flt = factory(entry.id, **entry.options)
            except TypeError as exc:
                raise ConfigurationError(
                    f"Cannot build filter {entry.id!r} with options {entry.options!r}: {exc}"
                ) from exc
            if not callable(getattr(flt, "match", None)):
                raise ConfigurationError(f"Filter {entry.id!r} does not implement match()")
            filters[entry.id] = flt

        logger.info("Filter registry built: %s", ", ".join(sorted(filters)))
        return cls(filters)

    def get(self, filter_id: str) -> ActivityFilter:
        try:
            return self._filters[filter_id]
        except KeyError:
            raise FilterNotFoundError(filter_id) from None

    def all(self) -> list[ActivityFilter]:
        return list(self._filters.values())

    def ids(self) -> list[str]:
        return list(self._filters)

    def __contains__(self, filter_id: object) -> bool:
        return filter_id in self._filters

    def __len__(self) -> int:
        return len(self._filters)
