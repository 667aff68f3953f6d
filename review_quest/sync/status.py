"""Per-organization sync status tracking."""

import logging
from datetime import datetime, timedelta
from typing import Optional, Sequence

from ..models import SyncStatus, utcnow
from ..store import Store


NEVER_SYNCED = 'never_synced'
IN_PROGRESS = 'in_progress'
COMPLETED = 'completed'
FAILED = 'failed'

HISTORICAL = 'historical'
INCREMENTAL = 'incremental'
SCHEDULED = 'scheduled'
WEBHOOK = 'webhook'

SYNC_TYPES = (HISTORICAL, INCREMENTAL, SCHEDULED, WEBHOOK)

# Sync types whose completion means the cached data was refreshed
DATA_SYNC_TYPES = (SCHEDULED, INCREMENTAL, WEBHOOK, HISTORICAL)


class SyncTracker:
    """Reads and writes the sync status row of each (organization, sync type)."""

    def __init__(self, store: Store, organization: str):
        self.store = store
        self.organization = organization

    def get_status(self, sync_type: str) -> Optional[SyncStatus]:
        return self.store.get_sync_status(self.organization, sync_type)

    def state(self, sync_type: str) -> str:
        """Return the current state name, NEVER_SYNCED when no row exists."""
        status = self.get_status(sync_type)
        return status.status if status else NEVER_SYNCED

    def mark_in_progress(self, sync_type: str, now: datetime = None) -> SyncStatus:
        return self._save(sync_type, IN_PROGRESS, now)

    def mark_completed(self, sync_type: str, now: datetime = None, duration_ms: int = None,
                       event_type: str = None) -> SyncStatus:
        return self._save(sync_type, COMPLETED, now, duration_ms=duration_ms, event_type=event_type)

    def mark_failed(self, sync_type: str, error, now: datetime = None) -> SyncStatus:
        logging.error(f"{sync_type} sync for {self.organization} failed: {error}")
        return self._save(sync_type, FAILED, now, error_message=str(error))

    def _save(self, sync_type: str, state: str, now: datetime = None, **extra) -> SyncStatus:
        status = SyncStatus(
            organization=self.organization,
            sync_type=sync_type,
            status=state,
            last_sync_time=now or utcnow(),
            **extra
        )
        self.store.save_sync_status(status)
        logging.debug(f"Sync status {self.organization}/{sync_type} -> {state}")
        return status

    def is_stale(self, sync_type: str, threshold_minutes: float, now: datetime = None) -> bool:
        """Decide whether a sync of the given type is due.

        A sync is due when it never ran, when its last run did not complete,
        or when the last completed run is older than the threshold.

        Args:
            sync_type: Sync type to check
            threshold_minutes: Maximum acceptable age in minutes
            now: Reference time (defaults to the current time)

        Returns:
            True if a sync should run
        """
        status = self.get_status(sync_type)
        if status is None or status.status != COMPLETED or status.last_sync_time is None:
            return True
        age_minutes = ((now or utcnow()) - status.last_sync_time).total_seconds() / 60
        return age_minutes > threshold_minutes

    def last_successful_sync_time(self, sync_type: str, fallback_hours: float = 24,
                                  now: datetime = None) -> datetime:
        """Return when the last completed sync ran, or now minus the fallback window."""
        status = self.get_status(sync_type)
        if status is not None and status.status == COMPLETED and status.last_sync_time is not None:
            return status.last_sync_time
        fallback = (now or utcnow()) - timedelta(hours=fallback_hours)
        logging.info(f"No completed {sync_type} sync found, falling back to {fallback.isoformat()}")
        return fallback

    def latest_completed(self, sync_types: Sequence[str] = DATA_SYNC_TYPES) -> Optional[SyncStatus]:
        return self.store.latest_completed_sync(self.organization, sync_types)

    def hours_since_last_sync(self, sync_types: Sequence[str] = DATA_SYNC_TYPES,
                              now: datetime = None) -> Optional[float]:
        latest = self.latest_completed(sync_types)
        if latest is None:
            return None
        return ((now or utcnow()) - latest.last_sync_time).total_seconds() / 3600

    def staleness_report(self, max_staleness_hours: float, now: datetime = None) -> dict:
        """Summarize data freshness across all data-refreshing sync types."""
        latest = self.latest_completed()
        hours = self.hours_since_last_sync(now=now)
        return {
            'is_stale': hours is None or hours > max_staleness_hours,
            'last_sync_time': latest.last_sync_time.isoformat() if latest else None,
            'hours_since_last_sync': round(hours, 2) if hours is not None else None,
        }
