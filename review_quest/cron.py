"""Scheduled sync run, triggered by an external cron."""

import logging
import time
from datetime import datetime
from typing import Dict

from .gamification.challenges import refresh_challenges
from .models import utcnow
from .sync.core import GitHubSync
from .sync.status import SCHEDULED


# A completed historical sync newer than this makes the scheduled run incremental
HISTORICAL_FRESHNESS_MINUTES = 24 * 60


def run_scheduled_sync(sync: GitHubSync, now: datetime = None) -> Dict:
    """Run one scheduled sync.

    A historical sync runs when none completed in the last day, otherwise an
    incremental one. Team challenges are refreshed afterwards.

    Args:
        sync: Configured synchronizer for the organization
        now: Reference time (defaults to the current time)

    Returns:
        Dictionary with the sync type that ran, its summary and the duration

    Raises:
        Exception: Whatever stopped the sync; the scheduled status is marked failed first
    """
    clock_given = now is not None
    now = now or utcnow()
    started = time.time()
    tracker = sync.tracker

    tracker.mark_in_progress(SCHEDULED, now)
    try:
        if sync.needs_historical_sync(HISTORICAL_FRESHNESS_MINUTES, now):
            logging.info("No recent historical sync, running historical sync")
            sync_type = 'historical'
            summary = sync.sync_historical(now if clock_given else None)
        else:
            sync_type = 'incremental'
            summary = sync.sync_incremental(now if clock_given else None)
        refresh_challenges(sync.store, sync.organization, now)
    except Exception as e:
        tracker.mark_failed(SCHEDULED, e, now if clock_given else None)
        raise

    duration_ms = int((time.time() - started) * 1000)
    tracker.mark_completed(SCHEDULED, now if clock_given else None, duration_ms=duration_ms)
    logging.info(f"Scheduled {sync_type} sync completed in {duration_ms} ms")
    return {'sync_type': sync_type, 'summary': summary, 'duration_ms': duration_ms}
