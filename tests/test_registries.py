"""
tests/test_registries.py — Verb, Stream & Filter Registry Tests
================================================================
"""

from __future__ import annotations

import pytest
from conftest import TWEETS_FILTER

from activity_stream.config import FilterEntry, StreamEntry, VerbEntry
from activity_stream.engine.audience import SeenByFilter
from activity_stream.engine.filters import (
    ACTIVITY_STREAM_FILTER,
    ALL_ACTIVITIES,
    FilterRegistry,
    check_pagination,
)
from activity_stream.engine.streams import ActivityStreamRegistry
from activity_stream.engine.verbs import (
    DOCUMENT_CREATED,
    DOCUMENT_REMOVED,
    DOCUMENT_UPDATED,
    VerbRegistry,
)
from activity_stream.errors import (
    ConfigurationError,
    FilterNotFoundError,
    StreamNotFoundError,
)


class NotAFilter:
    def __init__(self, filter_id):
        self.id = filter_id


# ==========================================================================
# VERBS
# ==========================================================================
class TestVerbRegistry:

    def test_builtin_verbs(self):
        verbs = VerbRegistry.build()

        assert verbs.get(DOCUMENT_CREATED).label_key == "label.activity.documentCreated"
        assert verbs.get(DOCUMENT_UPDATED).label_key == "label.activity.documentUpdated"
        assert verbs.get(DOCUMENT_REMOVED).label_key == "label.activity.documentRemoved"
        assert len(verbs) == 3

    def test_configured_verbs(self, service):
        verb = service.get_activity_verb("circle")

        assert verb.id == "circle"
        assert verb.label_key == "label.activity.circle"

    def test_alias_uses_canonical_label(self, service):
        compat = service.get_activity_verb("compatVerb")
        legacy = service.get_activity_verb("oldCompatVerb")

        assert compat.label_key == "label.activity.compatLabel"
        assert legacy.id == "oldCompatVerb"
        assert legacy.label_key == "label.activity.compatLabel"
        assert service.verbs.is_registered("oldCompatVerb")

    def test_unknown_verb_gets_placeholder(self, service):
        verb = service.get_activity_verb("somethingNew")

        assert verb.label_key == "label.activity.somethingNew"
        assert not service.verbs.is_registered("somethingNew")

    def test_configured_entry_overrides_builtin(self):
        verbs = VerbRegistry.build([VerbEntry(DOCUMENT_CREATED, "label.custom.created")])

        assert verbs.get(DOCUMENT_CREATED).label_key == "label.custom.created"

    def test_duplicate_id_rejected(self):
        with pytest.raises(ConfigurationError, match="Duplicate"):
            VerbRegistry.build([
                VerbEntry("circle", "label.activity.circle"),
                VerbEntry("circle", "label.activity.other"),
            ])

    @pytest.mark.parametrize(
        "entries",
        [
            # alias shadows a built-in verb
            [VerbEntry("new", "l.new", aliases=(DOCUMENT_CREATED,))],
            # two verbs claim the same alias
            [VerbEntry("a", "l.a", aliases=("old",)), VerbEntry("b", "l.b", aliases=("old",))],
            # a verb reuses an existing alias
            [VerbEntry("a", "l.a", aliases=("old",)), VerbEntry("old", "l.old")],
        ],
    )
    def test_alias_collisions_rejected(self, entries):
        with pytest.raises(ConfigurationError):
            VerbRegistry.build(entries)


# ==========================================================================
# STREAMS
# ==========================================================================
class TestActivityStreamRegistry:

    def test_configured_streams(self, service):
        stream = service.get_activity_stream("userActivityStream")

        assert stream.verbs == ("documentCreated", "documentModified", "circle")
        assert service.get_activity_stream("anotherStream").verbs == ("documentDeleted",)
        assert set(service.streams.names()) == {"userActivityStream", "anotherStream"}

    def test_unknown_stream(self, service):
        with pytest.raises(StreamNotFoundError) as exc_info:
            service.get_activity_stream("nope")

        assert exc_info.value.name == "nope"

    def test_duplicate_name_rejected(self):
        with pytest.raises(ConfigurationError, match="Duplicate"):
            ActivityStreamRegistry.build([
                StreamEntry("s", ("a",)),
                StreamEntry("s", ("b",)),
            ])

    def test_verbs_deduplicated_in_order(self):
        streams = ActivityStreamRegistry.build([StreamEntry("s", ("b", "a", "b"))])

        assert streams.get("s").verbs == ("b", "a")
        assert "s" in streams
        assert len(streams) == 1


# ==========================================================================
# FILTERS
# ==========================================================================
class TestFilterRegistry:

    def test_builtins_always_present(self):
        filters = FilterRegistry.build()

        assert ALL_ACTIVITIES in filters
        assert ACTIVITY_STREAM_FILTER in filters
        assert len(filters) == 2

    def test_configured_filter(self, service):
        flt = service.get_filter(TWEETS_FILTER)

        assert isinstance(flt, SeenByFilter)
        assert flt.id == TWEETS_FILTER
        assert flt.verb == "tweet"

    def test_unknown_filter(self, service):
        with pytest.raises(FilterNotFoundError) as exc_info:
            service.get_filter("nope")

        assert exc_info.value.filter_id == "nope"

    def test_string_reference(self):
        filters = FilterRegistry.build([
            FilterEntry(
                "shouts",
                "activity_stream.engine.audience:SeenByFilter",
                {"verb": "shout", "include_actor": True},
            ),
        ])
        flt = filters.get("shouts")

        assert isinstance(flt, SeenByFilter)
        assert flt.verb == "shout"
        assert flt.include_actor is True

    def test_duplicate_id_rejected(self):
        with pytest.raises(ConfigurationError, match="Duplicate"):
            FilterRegistry.build([
                FilterEntry("tweets", SeenByFilter),
                FilterEntry("tweets", SeenByFilter),
            ])

    def test_builtin_id_cannot_be_replaced(self):
        with pytest.raises(ConfigurationError):
            FilterRegistry.build([FilterEntry(ALL_ACTIVITIES, SeenByFilter)])

    def test_bad_options_rejected(self):
        with pytest.raises(ConfigurationError, match="Cannot build filter"):
            FilterRegistry.build([FilterEntry("tweets", SeenByFilter, {"colour": "blue"})])

    def test_object_without_match_rejected(self):
        with pytest.raises(ConfigurationError, match="match"):
            FilterRegistry.build([FilterEntry("broken", NotAFilter)])

    def test_unresolvable_reference_rejected(self):
        with pytest.raises(ConfigurationError):
            FilterRegistry.build([FilterEntry("x", "activity_stream.engine.audience:Missing")])


class TestPaginationChecks:

    @pytest.mark.parametrize("offset, limit", [(0, 0), (5, 0), (0, 10)])
    def test_accepts_non_negative(self, offset, limit):
        check_pagination(offset, limit)

    @pytest.mark.parametrize("offset, limit", [(-1, 0), (0, -1)])
    def test_rejects_negative(self, offset, limit):
        with pytest.raises(ValueError):
            check_pagination(offset, limit)
