"""Repository batch processing methods for GitHubSync."""

import logging
import time
from datetime import datetime
from typing import Dict, List, Tuple
from concurrent.futures import ThreadPoolExecutor, as_completed

from ..models import PullRequest, Repository, Review


def _sync_repository_batches(self, repositories: List[Repository], since: datetime) -> Dict:
    """Fetch and store PR data of repositories, a batch at a time.

    Each batch is fetched concurrently; results are written to the store
    sequentially once the batch is done. A repository that fails is logged
    and skipped.

    Args:
        repositories: Repositories to sync
        since: Only PRs updated at or after this moment are synced

    Returns:
        Summary with counts of repositories, pull requests and reviews, and failed repository names
    """
    summary = {'repositories': 0, 'pull_requests': 0, 'reviews': 0, 'failed': []}
    batches = [repositories[i:i + self.batch_size] for i in range(0, len(repositories), self.batch_size)]

    for index, batch in enumerate(batches, start=1):
        print(f"Processing batch {index}/{len(batches)} ({len(batch)} repositories)...")
        results = []

        with ThreadPoolExecutor(max_workers=len(batch)) as executor:
            future_to_repo = {
                executor.submit(self._fetch_repository, repo, since): repo
                for repo in batch
            }

            for future in as_completed(future_to_repo):
                repo = future_to_repo[future]
                try:
                    results.append((repo, future.result()))
                except Exception as e:
                    logging.error(f"Error syncing repository {repo.full_name}: {e}", exc_info=True)
                    summary['failed'].append(repo.full_name)

        for repo, (pull_requests, reviews) in results:
            self._store_repository_data(repo, pull_requests, reviews, since)
            summary['repositories'] += 1
            summary['pull_requests'] += len(pull_requests)
            summary['reviews'] += len(reviews)

        if index < len(batches) and self.batch_delay > 0:
            logging.debug(f"Sleeping {self.batch_delay}s before next batch")
            time.sleep(self.batch_delay)

    logging.info(
        f"Synced {summary['repositories']} repositories: {summary['pull_requests']} PRs, "
        f"{summary['reviews']} reviews, {len(summary['failed'])} failed"
    )
    return summary


def _fetch_repository(self, repo: Repository, since: datetime) -> Tuple[List[PullRequest], List[Review]]:
    """Fetch PRs updated since the given moment and the reviews of each.

    Runs on a worker thread; must not touch the store.
    """
    data = self.api_client.list_pull_requests(self.organization, repo.name, state='all', since=since)
    pull_requests = [PullRequest.from_api(pr, repo.name, repo.id) for pr in data]

    reviews = []
    for pr in pull_requests:
        reviews.extend(self._fetch_reviews(repo, pr))

    logging.debug(f"Fetched {len(pull_requests)} PRs and {len(reviews)} reviews from {repo.full_name}")
    return pull_requests, reviews


def _fetch_reviews(self, repo: Repository, pr: PullRequest) -> List[Review]:
    """Fetch the reviews of one PR; listings of closed PRs go through the cache."""
    should_cache = pr.state == 'closed'
    cache_key = self.cache_manager.get_cache_key(repo.full_name, f"pulls/{pr.number}/reviews")

    data = self.cache_manager.get(cache_key) if should_cache else None
    if data is None:
        data = self.api_client.list_reviews(self.organization, repo.name, pr.number)
        if should_cache:
            self.cache_manager.put(cache_key, data)

    return [Review.from_api(review, pr.id) for review in data]


def _store_repository_data(self, repo: Repository, pull_requests: List[PullRequest],
                           reviews: List[Review], since: datetime):
    """Write one repository's PRs and reviews and log the activity they represent."""
    self.store.upsert_pull_requests(self.organization, pull_requests)
    self.store.upsert_reviews(self.organization, reviews)

    prs_by_id = {pr.id: pr for pr in pull_requests}
    awarded = 0
    for review in reviews:
        if self.gamification.record_review_activity(review, prs_by_id.get(review.pull_request_id)):
            awarded += 1

    for pr in pull_requests:
        if pr.created_at is not None and pr.created_at >= since:
            self.gamification.record_opened_pr(pr)

    logging.debug(f"Stored {repo.full_name}: {len(pull_requests)} PRs, {len(reviews)} reviews, {awarded} new review activities")
