"""Synchronization of GitHub organization data into the store."""

import logging
from typing import List

from ..api_client import GitHubAPIClient
from ..cache import CacheManager
from ..config import Settings
from ..gamification.service import GamificationService
from ..models import GitHubUser, Repository
from ..store import Store
from .status import SyncTracker


class GitHubSync:
    """Pulls members, repositories, pull requests and reviews of one organization."""

    def __init__(
        self,
        store: Store,
        organization: str,
        token: str = None,
        api_client: GitHubAPIClient = None,
        cache_manager: CacheManager = None,
        batch_size: int = 5,
        batch_delay: float = 2.0,
        gamification: GamificationService = None
    ):
        """Initialize the synchronizer.

        Args:
            store: Store receiving the synced data
            organization: GitHub organization to sync
            token: GitHub personal access token (ignored when api_client is given)
            api_client: Preconfigured API client
            cache_manager: Cache for review listings of closed PRs
            batch_size: Repositories fetched concurrently per batch
            batch_delay: Seconds to wait between batches
            gamification: Service refreshed after each sync
        """
        if not organization:
            raise ValueError("Organization is required")
        self.store = store
        self.organization = organization
        self.api_client = api_client or GitHubAPIClient(token)
        self.cache_manager = cache_manager or CacheManager(use_cache=False)
        self.batch_size = max(1, batch_size)
        self.batch_delay = batch_delay
        self.gamification = gamification or GamificationService(store, organization)
        self.tracker = SyncTracker(store, organization)

        logging.info(f"Initialized sync for organization '{organization}'")

    @classmethod
    def from_settings(cls, settings: Settings, store: Store) -> 'GitHubSync':
        settings.require_github()
        return cls(
            store,
            settings.organization,
            token=settings.github_token,
            cache_manager=CacheManager(settings.cache_file, settings.use_cache),
            batch_size=settings.sync_batch_size,
            batch_delay=settings.sync_batch_delay,
        )

    def sync_users(self, now=None) -> List[GitHubUser]:
        """Fetch organization members into the store and make sure each has a profile."""
        print(f"Fetching members of {self.organization}...")
        users = [GitHubUser.from_api(member) for member in self.api_client.list_org_members(self.organization)]
        self.store.upsert_users(self.organization, users)
        self.gamification.sync_profiles(users, now)
        print(f"  Synced {len(users)} members")
        logging.info(f"Synced {len(users)} users for {self.organization}")
        return users

    def sync_repositories(self) -> List[Repository]:
        print(f"Fetching repositories of {self.organization}...")
        repositories = [Repository.from_api(data) for data in self.api_client.list_org_repos(self.organization)]
        self.store.upsert_repositories(self.organization, repositories)
        print(f"  Found {len(repositories)} repositories")
        return repositories

    def save_cache(self):
        """Save the cache to disk."""
        self.cache_manager.save_cache()


# Import and attach methods from submodules
from .repositories import _sync_repository_batches, _fetch_repository, _fetch_reviews, _store_repository_data
from .historical import sync_historical, needs_historical_sync
from .incremental import sync_incremental

# Attach methods to class
GitHubSync._sync_repository_batches = _sync_repository_batches
GitHubSync._fetch_repository = _fetch_repository
GitHubSync._fetch_reviews = _fetch_reviews
GitHubSync._store_repository_data = _store_repository_data
GitHubSync.sync_historical = sync_historical
GitHubSync.needs_historical_sync = needs_historical_sync
GitHubSync.sync_incremental = sync_incremental
