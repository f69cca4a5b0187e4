"""
activity_stream.services.startup — Host "Repository Ready" Hook
================================================================

The only coupling to the host's startup sequence: once the host's
storage is ready, it calls :func:`on_repository_ready` with the service
instance it built at process start.  When the store is enabled this runs
the upgrade pass over every stored activity — before traffic begins.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from activity_stream.config import ActivityStoreConfig
    from activity_stream.engine.upgraders import UpgradeReport
    from activity_stream.services.activity_service import ActivityStreamService

logger = logging.getLogger(__name__)


def on_repository_ready(
    service: ActivityStreamService | None,
    config: ActivityStoreConfig,
) -> UpgradeReport | None:
    """Run :meth:`ActivityStreamService.upgrade_activities` if enabled.

    Returns the upgrade report, or None when the store is disabled or no
    service was wired in.
    """
    if not config.enabled:
        logger.info("Activity stream store disabled — skipping activity upgrades.")
        return None
    if service is None:
        logger.warning("Repository ready but no activity stream service is configured.")
        return None

    logger.info("Repository ready — upgrading stored activities…")
    report = service.upgrade_activities()
    if report.failed:
        logger.error(
            "%d activities could not be upgraded: %s",
            report.failure_count,
            ", ".join(str(activity_id) for activity_id, _ in report.failed),
        )
    return report
