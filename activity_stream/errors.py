"""
activity_stream.errors — Error Taxonomy
========================================

Lookup failures subclass :class:`LookupError`; configuration problems
subclass :class:`ValueError` so callers that already catch the builtins
keep working.  Backing-store errors (``sqlalchemy.exc.*``) are never
wrapped; they propagate unchanged.
"""

from __future__ import annotations


class ActivityStreamError(Exception):
    """Base class for every error raised by the activity stream store."""


class FilterNotFoundError(ActivityStreamError, LookupError):
    """A query referenced a filter id that is not registered."""

    def __init__(self, filter_id: str) -> None:
        super().__init__(f"Activity stream filter not registered: {filter_id!r}")
        self.filter_id = filter_id


class ActivityNotFoundError(ActivityStreamError, LookupError):
    """A reply operation referenced an unknown activity id."""

    def __init__(self, activity_id: int) -> None:
        super().__init__(f"Activity not found: {activity_id}")
        self.activity_id = activity_id


class StreamNotFoundError(ActivityStreamError, LookupError):
    """No activity stream is registered under the requested name."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Activity stream not registered: {name!r}")
        self.name = name


class ConfigurationError(ActivityStreamError, ValueError):
    """Duplicate registry ids or malformed declarative entries.

    Raised while the registries are built, so a misconfigured store
    fails at startup instead of at query time.
    """
