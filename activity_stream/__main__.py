"""
activity_stream.__main__ — Entry point for ``python -m activity_stream``
========================================================================

Runs what a host application does once at startup:

1. Load .env (``DATABASE_URL``, ``ACTIVITY_STREAM_CONFIG``).
2. Load the YAML registry configuration.
3. Create the SQLAlchemy engine and ensure tables exist.
4. Build the ActivityStreamService (fails fast on bad configuration).
5. Fire the "repository ready" hook — runs the activity upgraders.

Run with::

    python -m activity_stream
"""

from __future__ import annotations

import logging
import os
import sys

from dotenv import load_dotenv

from activity_stream.config import DEFAULT_CONFIG_PATH, load_config
from activity_stream.database.engine import create_db_engine, init_db
from activity_stream.errors import ConfigurationError
from activity_stream.services.activity_service import ActivityStreamService
from activity_stream.services.startup import on_repository_ready

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("activity_stream")


def main() -> int:
    """Bootstrap the store and run the upgrade pass."""

    # 1. Environment variables.
    load_dotenv()

    # 2. Registry configuration.
    config_path = os.getenv("ACTIVITY_STREAM_CONFIG", DEFAULT_CONFIG_PATH)
    try:
        cfg = load_config(config_path)
    except (FileNotFoundError, ConfigurationError) as exc:
        logger.critical("Cannot load configuration: %s", exc)
        return 1
    logger.info(
        "Config loaded — %d verbs, %d streams, %d filters, %d upgraders",
        len(cfg.verbs), len(cfg.streams), len(cfg.filters), len(cfg.upgraders),
    )

    # 3. Database.
    engine = create_db_engine()
    init_db(engine)

    # 4. Store engine.
    try:
        service = ActivityStreamService.from_config(engine, cfg)
    except ConfigurationError as exc:
        logger.critical("Invalid activity stream configuration: %s", exc)
        return 1

    # 5. Startup hook.
    report = on_repository_ready(service, cfg)
    if report is not None and report.failed:
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
