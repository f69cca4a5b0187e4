"""
activity_stream.engine.verbs — Verb Registry
=============================================

Maps verb ids to i18n label keys.  ``verb`` is free-form data on an
activity, so looking up an unknown verb never fails: it yields a
placeholder label key derived from the verb itself.

Legacy verb ids are registered as aliases and resolve to the label key
of their canonical entry.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from activity_stream.config import VerbEntry
from activity_stream.errors import ConfigurationError

logger = logging.getLogger(__name__)

LABEL_KEY_PREFIX = "label.activity."

# ---------------------------------------------------------------------------
# Well-known document lifecycle verbs
# ---------------------------------------------------------------------------
DOCUMENT_CREATED = "documentCreated"
DOCUMENT_UPDATED = "documentModified"
DOCUMENT_REMOVED = "documentRemoved"

BUILTIN_VERBS: tuple[VerbEntry, ...] = (
    VerbEntry(DOCUMENT_CREATED, LABEL_KEY_PREFIX + "documentCreated"),
    VerbEntry(DOCUMENT_UPDATED, LABEL_KEY_PREFIX + "documentUpdated"),
    VerbEntry(DOCUMENT_REMOVED, LABEL_KEY_PREFIX + "documentRemoved"),
)


@dataclass(frozen=True, slots=True)
class ActivityVerb:
    id: str
    label_key: str


class VerbRegistry:
    """Read-only verb lookup table.

    Usage:
        verbs = VerbRegistry.build(cfg.verbs)
        verbs.get("documentModified").label_key  # "label.activity.documentUpdated"
    """

    def __init__(self, verbs: dict[str, ActivityVerb], aliases: dict[str, str]) -> None:
        self._verbs = verbs
        # alias id → canonical id
        self._aliases = aliases

    @classmethod
    def build(cls, entries: Iterable[VerbEntry] = ()) -> VerbRegistry:
        """Built-in verbs first, then configured entries.

        A configured entry may override a built-in verb's label key, but
        two configured entries with the same id are a configuration error,
        as is an alias that collides with a canonical id or another alias.
        """
        verbs: dict[str, ActivityVerb] = {
            e.id: ActivityVerb(e.id, e.label_key) for e in BUILTIN_VERBS
        }
        aliases: dict[str, str] = {}
        configured: set[str] = set()

        for entry in entries:
            if entry.id in configured:
                raise ConfigurationError(f"Duplicate activity verb id: {entry.id!r}")
            if entry.id in aliases:
                raise ConfigurationError(
                    f"Activity verb {entry.id!r} is already an alias of {aliases[entry.id]!r}"
                )
            configured.add(entry.id)
            verbs[entry.id] = ActivityVerb(entry.id, entry.label_key)

            for alias in entry.aliases:
                if alias in verbs or alias in aliases:
                    raise ConfigurationError(
                        f"Alias {alias!r} of verb {entry.id!r} is already registered"
                    )
                aliases[alias] = entry.id

        logger.info("Verb registry built: %d verbs, %d aliases", len(verbs), len(aliases))
        return cls(verbs, aliases)

    def get(self, verb_id: str) -> ActivityVerb:
        """Return the verb for *verb_id*; aliases resolve to their canonical
        entry's label key, unknown ids to a placeholder."""
        verb = self._verbs.get(verb_id)
        if verb is not None:
            return verb
        canonical = self._aliases.get(verb_id)
        if canonical is not None:
            return ActivityVerb(verb_id, self._verbs[canonical].label_key)
        return ActivityVerb(verb_id, LABEL_KEY_PREFIX + verb_id)

    def is_registered(self, verb_id: str) -> bool:
        return verb_id in self._verbs or verb_id in self._aliases

    def __len__(self) -> int:
        return len(self._verbs)
