"""
activity_stream.engine.streams — Activity Stream Registry
==========================================================

A stream is a named set of verbs that defines a default feed, e.g.
``userActivityStream`` = documents created or modified + circle changes.
Streams are purely declarative; the built-in ``activityStream`` filter
turns one into a query.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from activity_stream.config import StreamEntry
from activity_stream.errors import ConfigurationError, StreamNotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ActivityStream:
    name: str
    verbs: tuple[str, ...]


class ActivityStreamRegistry:
    """Read-only ``name → ActivityStream`` table."""

    def __init__(self, streams: dict[str, ActivityStream]) -> None:
        self._streams = streams

    @classmethod
    def build(cls, entries: Iterable[StreamEntry] = ()) -> ActivityStreamRegistry:
        streams: dict[str, ActivityStream] = {}
        for entry in entries:
            if entry.name in streams:
                raise ConfigurationError(f"Duplicate activity stream name: {entry.name!r}")
            # De-duplicate verbs, keep declaration order
            verbs = tuple(dict.fromkeys(entry.verbs))
            streams[entry.name] = ActivityStream(entry.name, verbs)
        logger.info("Activity stream registry built: %d streams", len(streams))
        return cls(streams)

    def get(self, name: str) -> ActivityStream:
        try:
            return self._streams[name]
        except KeyError:
            raise StreamNotFoundError(name) from None

    def names(self) -> list[str]:
        return list(self._streams)

    def __contains__(self, name: object) -> bool:
        return name in self._streams

    def __len__(self) -> int:
        return len(self._streams)
