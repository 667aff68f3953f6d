"""Review metrics aggregation over time windows."""

import logging
from collections import defaultdict
from datetime import datetime, timedelta, timezone, date
from typing import Dict, Iterable, List, Optional, Set, Tuple

from .models import ActivitySnapshot, GitHubUser, PullRequest, Review, ReviewMetrics, TimeRange, utcnow


EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# value -> (label, days back; None = since the epoch)
TIME_RANGES = {
    'week': ('Last 7 days', 7),
    'month': ('Last 30 days', 30),
    'quarter': ('Last 90 days', 90),
    'year': ('Last 365 days', 365),
    'all': ('All time', None),
}

DEFAULT_TIME_RANGE = 'month'

FAST_REVIEW_MINUTES = 30
NIGHT_HOUR = 22

SORT_FIELDS = (
    'total_reviewed', 'approved', 'changes_requested', 'commented',
    'assigned', 'opened', 'open_against', 'pending',
)


def time_range(value: str, now: datetime = None) -> TimeRange:
    """Build the time window for a range value.

    Args:
        value: One of week, month, quarter, year, all
        now: End of the window (defaults to the current time)

    Returns:
        TimeRange covering [start, now]

    Raises:
        ValueError: If the value is not a known range
    """
    if value not in TIME_RANGES:
        raise ValueError(f"Unknown time range '{value}'. Choose from: {', '.join(TIME_RANGES)}")
    now = now or utcnow()
    label, days = TIME_RANGES[value]
    start = EPOCH if days is None else now - timedelta(days=days)
    return TimeRange(label=label, value=value, start=start, end=now)


def generate_time_ranges(now: datetime = None) -> List[TimeRange]:
    now = now or utcnow()
    return [time_range(value, now) for value in TIME_RANGES]


def compute_review_metrics(users: Iterable[GitHubUser], pull_requests: Iterable[PullRequest],
                           reviews: Iterable[Review], window: TimeRange) -> List[ReviewMetrics]:
    """Aggregate per-user review counts for one time window.

    Every known user gets an entry, even without any activity. Reviewers who
    are not in the user list (e.g. outside collaborators) are added on the fly.

    Args:
        users: Organization members
        pull_requests: Cached pull requests with their requested reviewers
        reviews: Cached reviews
        window: Time window; bounds are inclusive

    Returns:
        List of ReviewMetrics in user order
    """
    metrics: Dict[int, ReviewMetrics] = {}
    for user in users:
        metrics[user.id] = ReviewMetrics(
            user_id=user.id, login=user.login, name=user.name or user.login, avatar_url=user.avatar_url
        )

    def entry(user_id: int, login: str) -> ReviewMetrics:
        if user_id not in metrics:
            metrics[user_id] = ReviewMetrics(user_id=user_id, login=login, name=login)
        return metrics[user_id]

    pull_requests = list(pull_requests)
    reviews = list(reviews)

    # Every review ever submitted, for the pending check on open PRs
    reviewed_by: Dict[int, Set[int]] = defaultdict(set)
    reviewed_in_window: Dict[int, Set[int]] = defaultdict(set)

    for review in reviews:
        reviewed_by[review.pull_request_id].add(review.user_id)
        if not window.contains(review.submitted_at):
            continue

        m = entry(review.user_id, review.user_login)
        reviewed_in_window[review.user_id].add(review.pull_request_id)
        if review.state == 'APPROVED':
            m.approved += 1
        elif review.state == 'CHANGES_REQUESTED':
            m.changes_requested += 1
        elif review.state == 'COMMENTED':
            m.commented += 1

    for user_id, pr_ids in reviewed_in_window.items():
        metrics[user_id].total_reviewed = len(pr_ids)

    for pr in pull_requests:
        created_in_window = window.contains(pr.created_at)
        if created_in_window:
            entry(pr.user_id, pr.user_login).opened += 1

        for reviewer_id in set(pr.requested_reviewers):
            if reviewer_id not in metrics:
                continue
            m = metrics[reviewer_id]
            if created_in_window:
                m.assigned += 1
            if pr.state == 'open':
                m.open_against += 1
                if reviewer_id not in reviewed_by[pr.id]:
                    m.pending += 1

    logging.debug(f"Computed metrics for {len(metrics)} users in window '{window.value}'")
    return list(metrics.values())


def leaderboard(metrics: Iterable[ReviewMetrics], sort_by: str = 'total_reviewed') -> List[ReviewMetrics]:
    """Order metrics for display, highest first, ties broken by login."""
    if sort_by not in SORT_FIELDS:
        raise ValueError(f"Unknown sort field '{sort_by}'. Choose from: {', '.join(SORT_FIELDS)}")
    return sorted(metrics, key=lambda m: (-getattr(m, sort_by), m.login.lower()))


def calculate_streaks(review_days: Iterable[date], today: date) -> Tuple[int, int]:
    """Compute the current and longest run of consecutive review days.

    The current streak still counts when the last review was yesterday,
    since today may not have seen a review yet.

    Returns:
        Tuple of (current streak, longest streak) in days
    """
    days = sorted(set(review_days))
    if not days:
        return 0, 0

    longest = run = 1
    for previous, current in zip(days, days[1:]):
        run = run + 1 if current - previous == timedelta(days=1) else 1
        longest = max(longest, run)

    current_streak = 0
    if today - days[-1] <= timedelta(days=1):
        current_streak = 1
        for previous, current in zip(reversed(days[:-1]), reversed(days[1:])):
            if current - previous != timedelta(days=1):
                break
            current_streak += 1

    return current_streak, longest


def count_weekend_pairs(review_days: Iterable[date]) -> int:
    """Count weekends where both Saturday and the following Sunday saw a review."""
    days = set(review_days)
    return sum(1 for d in days if d.weekday() == 5 and d + timedelta(days=1) in days)


def build_activity_snapshot(user_id: int, pull_requests: Iterable[PullRequest], reviews: Iterable[Review],
                            now: datetime = None) -> ActivitySnapshot:
    """Collect the per-user figures achievement evaluation runs on.

    Args:
        user_id: Reviewer to summarize
        pull_requests: Cached pull requests (for repository names and creation times)
        reviews: Cached reviews; only the user's submitted reviews are considered
        now: Reference time for the current streak

    Returns:
        ActivitySnapshot for the user
    """
    now = now or utcnow()
    prs_by_id: Dict[int, PullRequest] = {pr.id: pr for pr in pull_requests}
    own_reviews = [r for r in reviews if r.user_id == user_id and r.submitted_at is not None]

    snapshot = ActivitySnapshot()
    reviewed_prs: Set[int] = set()
    repositories: Set[str] = set()
    review_days: Set[date] = set()

    for review in own_reviews:
        reviewed_prs.add(review.pull_request_id)
        review_days.add(review.submitted_at.date())

        if review.state == 'APPROVED':
            snapshot.approved += 1
        elif review.state == 'CHANGES_REQUESTED':
            snapshot.changes_requested += 1
        elif review.state == 'COMMENTED':
            snapshot.commented += 1

        if review.submitted_at.hour >= NIGHT_HOUR:
            snapshot.night_reviews += 1

        pr: Optional[PullRequest] = prs_by_id.get(review.pull_request_id)
        if pr is None:
            continue
        repositories.add(pr.repository)
        if pr.created_at is not None and \
                review.submitted_at - pr.created_at <= timedelta(minutes=FAST_REVIEW_MINUTES):
            snapshot.fast_reviews += 1

    if own_reviews:
        snapshot.last_review_at = max(r.submitted_at for r in own_reviews)
    snapshot.total_reviewed = len(reviewed_prs)
    snapshot.repositories_reviewed = len(repositories)
    snapshot.weekend_pairs = count_weekend_pairs(review_days)
    snapshot.current_streak, snapshot.longest_streak = calculate_streaks(review_days, now.date())
    return snapshot
