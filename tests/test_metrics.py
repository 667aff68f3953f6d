"""
Unit tests for review metrics aggregation
"""

import pytest
from datetime import date, datetime, timedelta, timezone

from review_quest.metrics import (
    EPOCH,
    build_activity_snapshot,
    calculate_streaks,
    compute_review_metrics,
    count_weekend_pairs,
    generate_time_ranges,
    leaderboard,
    time_range,
)
from review_quest.models import GitHubUser, PullRequest, Review, ReviewMetrics
from conftest import NOW


def pr(pr_id, author_id=1, created_at=None, state='open', reviewers=(), repository='api'):
    created_at = created_at or NOW - timedelta(days=3)
    return PullRequest(
        id=pr_id, number=pr_id, title='', html_url='', state=state, user_id=author_id,
        user_login=f'user{author_id}', repository=repository, created_at=created_at,
        updated_at=created_at, requested_reviewers=list(reviewers),
    )


def review(review_id, pr_id, user_id, state='APPROVED', submitted_at=None):
    return Review(
        id=review_id, pull_request_id=pr_id, user_id=user_id, user_login=f'user{user_id}',
        state=state, submitted_at=submitted_at or NOW - timedelta(days=1),
    )


USERS = [GitHubUser(1, 'user1'), GitHubUser(2, 'user2'), GitHubUser(3, 'user3')]


class TestTimeRanges:
    """Test cases for time window construction."""

    def test_week(self):
        window = time_range('week', NOW)
        assert window.start == NOW - timedelta(days=7)
        assert window.end == NOW
        assert window.label == 'Last 7 days'

    def test_all_starts_at_epoch(self):
        assert time_range('all', NOW).start == EPOCH

    def test_unknown_range(self):
        with pytest.raises(ValueError, match='Unknown time range'):
            time_range('decade', NOW)

    def test_generate_all_ranges(self):
        values = [w.value for w in generate_time_ranges(NOW)]
        assert values == ['week', 'month', 'quarter', 'year', 'all']


class TestComputeReviewMetrics:
    """Test cases for per-user aggregation."""

    def test_users_without_activity_are_included(self):
        metrics = compute_review_metrics(USERS, [], [], time_range('week', NOW))

        assert [m.login for m in metrics] == ['user1', 'user2', 'user3']
        assert all(m.total_reviewed == 0 for m in metrics)

    def test_review_states_are_counted(self):
        reviews = [
            review(1, 10, 2, 'APPROVED'),
            review(2, 10, 2, 'COMMENTED'),
            review(3, 11, 2, 'CHANGES_REQUESTED'),
            review(4, 11, 2, 'DISMISSED'),
        ]

        metrics = {m.user_id: m for m in compute_review_metrics(USERS, [pr(10), pr(11)], reviews, time_range('week', NOW))}

        assert metrics[2].approved == 1
        assert metrics[2].commented == 1
        assert metrics[2].changes_requested == 1
        assert metrics[2].total_reviewed == 2

    def test_reviews_outside_window_are_ignored(self):
        reviews = [review(1, 10, 2, submitted_at=NOW - timedelta(days=20))]

        week = {m.user_id: m for m in compute_review_metrics(USERS, [pr(10)], reviews, time_range('week', NOW))}
        month = {m.user_id: m for m in compute_review_metrics(USERS, [pr(10)], reviews, time_range('month', NOW))}

        assert week[2].approved == 0
        assert month[2].approved == 1

    def test_outside_reviewer_is_added(self):
        metrics = compute_review_metrics(USERS, [pr(10)], [review(1, 10, 99)], time_range('week', NOW))

        outsider = [m for m in metrics if m.user_id == 99][0]
        assert outsider.login == 'user99'
        assert outsider.total_reviewed == 1

    def test_assigned_opened_and_pending(self):
        prs = [
            pr(10, author_id=1, reviewers=(2, 3)),
            pr(11, author_id=1, reviewers=(2,), state='closed'),
            pr(12, author_id=3, reviewers=(2,), created_at=NOW - timedelta(days=60)),
        ]
        reviews = [review(1, 10, 3, submitted_at=NOW - timedelta(days=2))]

        metrics = {m.user_id: m for m in compute_review_metrics(USERS, prs, reviews, time_range('week', NOW))}

        assert metrics[1].opened == 2
        assert metrics[2].assigned == 2
        assert metrics[2].open_against == 2
        assert metrics[2].pending == 2
        assert metrics[3].open_against == 1
        assert metrics[3].pending == 0

    def test_pending_uses_reviews_outside_window(self):
        prs = [pr(10, reviewers=(2,))]
        reviews = [review(1, 10, 2, submitted_at=NOW - timedelta(days=20))]

        metrics = {m.user_id: m for m in compute_review_metrics(USERS, prs, reviews, time_range('week', NOW))}

        assert metrics[2].pending == 0


class TestLeaderboard:
    """Test cases for leaderboard ordering."""

    def test_sorted_descending_with_login_tiebreak(self):
        metrics = [
            ReviewMetrics(1, 'carol', total_reviewed=3),
            ReviewMetrics(2, 'Bob', total_reviewed=5),
            ReviewMetrics(3, 'alice', total_reviewed=3),
        ]

        assert [m.login for m in leaderboard(metrics)] == ['Bob', 'alice', 'carol']

    def test_sort_by_other_field(self):
        metrics = [ReviewMetrics(1, 'a', approved=1), ReviewMetrics(2, 'b', approved=4)]
        assert leaderboard(metrics, 'approved')[0].login == 'b'

    def test_unknown_sort_field(self):
        with pytest.raises(ValueError, match='Unknown sort field'):
            leaderboard([], 'karma')


class TestStreaks:
    """Test cases for streak and weekend calculations."""

    def test_empty(self):
        assert calculate_streaks([], date(2024, 6, 12)) == (0, 0)

    def test_current_streak_ending_today(self):
        days = [date(2024, 6, 10), date(2024, 6, 11), date(2024, 6, 12)]
        assert calculate_streaks(days, date(2024, 6, 12)) == (3, 3)

    def test_current_streak_survives_until_tomorrow(self):
        days = [date(2024, 6, 10), date(2024, 6, 11)]
        assert calculate_streaks(days, date(2024, 6, 12)) == (2, 2)

    def test_broken_streak_keeps_longest(self):
        days = [date(2024, 6, 1), date(2024, 6, 2), date(2024, 6, 3), date(2024, 6, 9)]
        assert calculate_streaks(days, date(2024, 6, 12)) == (0, 3)

    def test_duplicate_days(self):
        days = [date(2024, 6, 12), date(2024, 6, 12)]
        assert calculate_streaks(days, date(2024, 6, 12)) == (1, 1)

    def test_weekend_pairs(self):
        days = [
            date(2024, 6, 1), date(2024, 6, 2),   # Sat + Sun
            date(2024, 6, 8),                      # Sat only
            date(2024, 6, 15), date(2024, 6, 16),  # Sat + Sun
        ]
        assert count_weekend_pairs(days) == 2

    def test_sunday_then_saturday_is_not_a_pair(self):
        assert count_weekend_pairs([date(2024, 6, 2), date(2024, 6, 8)]) == 0


class TestActivitySnapshot:
    """Test cases for build_activity_snapshot."""

    def test_snapshot(self):
        created = datetime(2024, 6, 10, 9, 0, tzinfo=timezone.utc)
        prs = [pr(10, created_at=created), pr(11, created_at=created, repository='web')]
        reviews = [
            review(1, 10, 2, 'APPROVED', created + timedelta(minutes=20)),
            review(2, 11, 2, 'COMMENTED', datetime(2024, 6, 11, 22, 30, tzinfo=timezone.utc)),
            review(3, 11, 2, 'CHANGES_REQUESTED', datetime(2024, 6, 12, 8, 0, tzinfo=timezone.utc)),
            review(4, 11, 3, 'APPROVED', datetime(2024, 6, 12, 9, 0, tzinfo=timezone.utc)),
        ]

        snapshot = build_activity_snapshot(2, prs, reviews, NOW)

        assert snapshot.total_reviewed == 2
        assert snapshot.approved == 1
        assert snapshot.commented == 1
        assert snapshot.changes_requested == 1
        assert snapshot.repositories_reviewed == 2
        assert snapshot.fast_reviews == 1
        assert snapshot.night_reviews == 1
        assert snapshot.current_streak == 3
        assert snapshot.longest_streak == 3
        assert snapshot.last_review_at == datetime(2024, 6, 12, 8, 0, tzinfo=timezone.utc)

    def test_unsubmitted_reviews_are_skipped(self):
        reviews = [Review(1, 10, 2, 'user2', 'PENDING', None)]

        snapshot = build_activity_snapshot(2, [pr(10)], reviews, NOW)

        assert snapshot.total_reviewed == 0
        assert snapshot.last_review_at is None
