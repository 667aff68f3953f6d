"""Incremental sync methods for GitHubSync."""

import logging
import time
from datetime import datetime
from typing import Dict

from ..models import utcnow
from .status import INCREMENTAL


# Window used when no incremental sync has completed yet
FALLBACK_HOURS = 24


def sync_incremental(self, now: datetime = None) -> Dict:
    """Sync PRs updated since the last completed incremental sync.

    Args:
        now: Reference time; defaults to the current time

    Returns:
        Summary of the repository sync, including the 'since' moment used
    """
    clock_given = now is not None
    now = now or utcnow()
    started = time.time()

    # Read before marking in progress, which overwrites the completed row
    since = self.tracker.last_successful_sync_time(INCREMENTAL, FALLBACK_HOURS, now)
    logging.info(f"Starting incremental sync for {self.organization} since {since.isoformat()}")
    self.tracker.mark_in_progress(INCREMENTAL, now)

    try:
        self.sync_users(now)
        repositories = self.sync_repositories()
        summary = self._sync_repository_batches(repositories, since)
        self.save_cache()
        self.gamification.refresh_all(now)
    except Exception as e:
        self.tracker.mark_failed(INCREMENTAL, e, now if clock_given else None)
        raise

    duration_ms = int((time.time() - started) * 1000)
    self.tracker.mark_completed(INCREMENTAL, now if clock_given else None, duration_ms=duration_ms)
    logging.info(f"Incremental sync for {self.organization} completed in {duration_ms} ms")
    summary['since'] = since.isoformat()
    return summary
