"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy import Engine, create_engine, func, select
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from activity_stream.config import (
    ActivityStoreConfig,
    FilterEntry,
    StreamEntry,
    UpgraderEntry,
    VerbEntry,
)
from activity_stream.database.models import Activity, Base
from activity_stream.engine.audience import SeenByFilter
from activity_stream.services.activity_service import ActivityStreamService

TWEETS_FILTER = "tweets"
BASE_DATE = datetime(2026, 1, 15, 12, 0, 0, tzinfo=UTC)


def dummy_actor_upgrader(activity: Activity) -> None:
    """Rewrites every actor to a fixed name."""
    if activity.actor != "Dummy Actor":
        activity.actor = "Dummy Actor"


def another_dummy_upgrader(activity: Activity) -> None:
    """No-op upgrader registered with a lower order."""


@pytest.fixture
def db_engine() -> Engine:
    """Create an in-memory SQLite engine with all activity stream tables.

    Uses StaticPool so every session shares the same in-memory database.
    """
    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def store_config() -> ActivityStoreConfig:
    """Registry configuration mirroring a typical deployment."""
    return ActivityStoreConfig(
        enabled=True,
        verbs=(
            VerbEntry("circle", "label.activity.circle"),
            VerbEntry("compatVerb", "label.activity.compatLabel", aliases=("oldCompatVerb",)),
        ),
        streams=(
            StreamEntry("userActivityStream", ("documentCreated", "documentModified", "circle")),
            StreamEntry("anotherStream", ("documentDeleted",)),
        ),
        filters=(
            FilterEntry(TWEETS_FILTER, SeenByFilter, {"verb": "tweet"}),
        ),
        upgraders=(
            UpgraderEntry("dummyUpgrader", 10, dummy_actor_upgrader),
            UpgraderEntry("anotherDummyUpgrader", 5, another_dummy_upgrader),
        ),
    )


@pytest.fixture
def service(db_engine: Engine, store_config: ActivityStoreConfig) -> ActivityStreamService:
    return ActivityStreamService.from_config(db_engine, store_config)


def make_activity(
    object_: str = "yo",
    *,
    actor: str = "Administrator",
    verb: str = "test",
    published_date: datetime | None = BASE_DATE,
    parameters: dict | None = None,
) -> Activity:
    return Activity(
        actor=actor,
        verb=verb,
        object=object_,
        published_date=published_date,
        parameters=parameters,
    )


def add_test_activities(service: ActivityStreamService, count: int) -> list[Activity]:
    """Add ``activity0`` … ``activity{count-1}``, each older than the previous,
    so newest-first order is ``activity0`` first."""
    return [
        service.add_activity(
            make_activity(f"activity{i}", published_date=BASE_DATE - timedelta(minutes=i))
        )
        for i in range(count)
    ]


def count_rows(engine: Engine, model) -> int:
    with Session(engine) as session:
        return session.scalar(select(func.count()).select_from(model)) or 0
