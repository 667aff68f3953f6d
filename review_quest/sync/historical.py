"""Historical sync methods for GitHubSync."""

import logging
import time
from datetime import datetime, timedelta
from typing import Dict

from ..models import utcnow
from .status import HISTORICAL


HISTORICAL_DAYS = 365

# A historical sync older than a week is redone
HISTORICAL_THRESHOLD_MINUTES = 7 * 24 * 60


def sync_historical(self, now: datetime = None) -> Dict:
    """Sync the past year of PRs and reviews of every repository.

    Args:
        now: Reference time; defaults to the current time

    Returns:
        Summary of the repository sync

    Raises:
        Exception: Whatever stopped the sync; the status is marked failed first
    """
    clock_given = now is not None
    now = now or utcnow()
    started = time.time()
    since = now - timedelta(days=HISTORICAL_DAYS)

    logging.info(f"Starting historical sync for {self.organization} since {since.date()}")
    self.tracker.mark_in_progress(HISTORICAL, now)

    try:
        self.sync_users(now)
        repositories = self.sync_repositories()
        summary = self._sync_repository_batches(repositories, since)
        self.save_cache()
        self.gamification.refresh_all(now)
    except Exception as e:
        self.tracker.mark_failed(HISTORICAL, e, now if clock_given else None)
        raise

    duration_ms = int((time.time() - started) * 1000)
    self.tracker.mark_completed(HISTORICAL, now if clock_given else None, duration_ms=duration_ms)
    logging.info(f"Historical sync for {self.organization} completed in {duration_ms} ms")
    return summary


def needs_historical_sync(self, threshold_minutes: float = HISTORICAL_THRESHOLD_MINUTES,
                          now: datetime = None) -> bool:
    return self.tracker.is_stale(HISTORICAL, threshold_minutes, now)
