"""GitHub data synchronization and sync status tracking."""

from .core import GitHubSync
from .status import SyncTracker, HISTORICAL, INCREMENTAL, SCHEDULED, WEBHOOK

__all__ = [
    'GitHubSync',
    'SyncTracker',
    'HISTORICAL',
    'INCREMENTAL',
    'SCHEDULED',
    'WEBHOOK',
]
