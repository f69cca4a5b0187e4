"""
activity_stream.engine.upgraders — Ordered Upgrade Pipeline
============================================================

Upgraders migrate stored activities to the current conventions: verb
renames, actor-field backfills and similar structural fixes.  Each one
mutates a single :class:`~activity_stream.database.models.Activity` in
place and must be idempotent — running the whole pass twice leaves the
data exactly as running it once.

Ordering is a declared integer, ascending, with ties kept in
registration order (a stable sort, no dependency graph).

This module is pure calculation — the store drives the pass and owns
the sessions.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from activity_stream.config import UpgraderEntry
from activity_stream.database.models import Activity
from activity_stream.engine.helpers import get_username, is_user
from activity_stream.engine.plugins import resolve_reference
from activity_stream.errors import ConfigurationError

logger = logging.getLogger(__name__)

Transform = Callable[[Activity], None]


@dataclass(frozen=True, slots=True)
class ActivityUpgrader:
    name: str
    order: int
    transform: Transform

    def upgrade(self, activity: Activity) -> None:
        self.transform(activity)


@dataclass(slots=True)
class UpgradeReport:
    """Outcome of one pass of :meth:`ActivityStreamService.upgrade_activities`."""

    scanned: int = 0
    upgraded: int = 0
    failed: list[tuple[int, str]] = field(default_factory=list)

    @property
    def failure_count(self) -> int:
        return len(self.failed)


class UpgraderRegistry:
    """Read-only upgrader list, ordered at build time."""

    def __init__(self, upgraders: list[ActivityUpgrader]) -> None:
        # sorted() is stable: equal orders keep registration order
        self._ordered = sorted(upgraders, key=lambda u: u.order)

    @classmethod
    def build(cls, entries: Iterable[UpgraderEntry] = ()) -> UpgraderRegistry:
        upgraders: list[ActivityUpgrader] = []
        names: set[str] = set()
        for entry in entries:
            if entry.name in names:
                raise ConfigurationError(f"Duplicate activity upgrader name: {entry.name!r}")
            names.add(entry.name)

            transform = resolve_reference(entry.implementation)
            if entry.options is not None:
                try:
                    transform = transform(**entry.options)
                except TypeError as exc:
                    raise ConfigurationError(
                        f"Cannot build upgrader {entry.name!r} "
                        f"with options {entry.options!r}: {exc}"
                    ) from exc
            if not callable(transform):
                raise ConfigurationError(f"Upgrader {entry.name!r} is not callable")
            upgraders.append(ActivityUpgrader(entry.name, entry.order, transform))

        registry = cls(upgraders)
        logger.info(
            "Upgrader registry built: %s",
            ", ".join(f"{u.name}({u.order})" for u in registry.ordered()) or "(empty)",
        )
        return registry

    def ordered(self) -> list[ActivityUpgrader]:
        """Upgraders ascending by ``order``."""
        return list(self._ordered)

    def apply(self, activity: Activity) -> bool:
        """Run every upgrader over *activity*, in order.

        Returns True if any column value changed.
        """
        before = activity.snapshot()
        for upgrader in self._ordered:
            upgrader.upgrade(activity)
        return activity.snapshot() != before

    def __len__(self) -> int:
        return len(self._ordered)


# ---------------------------------------------------------------------------
# Built-in upgrader factories
# ---------------------------------------------------------------------------
def rename_verb(old: str, new: str) -> Transform:
    """Rewrite verb *old* to *new*.  Already-renamed records are untouched."""

    def _rename(activity: Activity) -> None:
        if activity.verb == old:
            activity.verb = new

    return _rename


def backfill_display_actor() -> Transform:
    """Fill an empty ``display_actor`` from a ``user:<name>`` actor id."""

    def _backfill(activity: Activity) -> None:
        if activity.display_actor or not activity.actor:
            return
        if is_user(activity.actor):
            activity.display_actor = get_username(activity.actor)
        else:
            activity.display_actor = activity.actor

    return _backfill
