"""
Unit tests for webhook verification and event handling
"""

import hashlib
import hmac
import pytest
from datetime import timedelta
from unittest.mock import Mock

from review_quest.models import GitHubUser
from review_quest.sync.status import INCREMENTAL, WEBHOOK, SyncTracker
from review_quest.webhooks import WebhookHandler, verify_signature
from conftest import ORG, NOW, pr_payload, review_payload


REPOSITORY = {'id': 100, 'name': 'api', 'full_name': 'acme/api', 'default_branch': 'main'}


def sign(body: bytes, secret: str) -> str:
    return 'sha256=' + hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


def pull_request_event(action='opened', pr_id=10, number=5):
    return {
        'action': action,
        'pull_request': pr_payload(pr_id, number, 1, 'alice', '2024-06-12T10:00:00Z', reviewers=(2,)),
        'repository': REPOSITORY,
    }


def review_event(action='submitted', state='approved'):
    return {
        'action': action,
        'review': review_payload(7, 2, 'bob', state, '2024-06-12T11:00:00Z'),
        'pull_request': pr_payload(10, 5, 1, 'alice', '2024-06-12T10:00:00Z'),
        'repository': REPOSITORY,
    }


class TestSignature:
    """Test cases for X-Hub-Signature-256 verification."""

    def test_valid_signature(self):
        body = b'{"zen": "Keep it logically awesome."}'
        assert verify_signature(body, sign(body, 'secret'), 'secret') is True

    def test_wrong_secret(self):
        body = b'{}'
        assert verify_signature(body, sign(body, 'other'), 'secret') is False

    def test_tampered_body(self):
        assert verify_signature(b'{"a": 2}', sign(b'{"a": 1}', 'secret'), 'secret') is False

    def test_missing_signature(self):
        assert verify_signature(b'{}', None, 'secret') is False
        assert verify_signature(b'{}', '', 'secret') is False


class TestWebhookHandler:
    """Test cases for WebhookHandler.handle."""

    @pytest.fixture
    def run_sync(self):
        return Mock()

    @pytest.fixture
    def handler(self, store, run_sync):
        store.upsert_users(ORG, [GitHubUser(1, 'alice'), GitHubUser(2, 'bob')])
        handler = WebhookHandler(store, ORG, run_incremental_sync=run_sync)
        handler.gamification.sync_profiles(store.list_users(ORG), NOW - timedelta(days=30))
        return handler

    def test_pull_request_opened(self, handler, store, run_sync):
        result = handler.handle('pull_request', pull_request_event(), NOW)

        assert result == {'event': 'pull_request', 'handled': True, 'synced': False}
        pr = store.get_pull_request(10)
        assert pr.repository == 'api'
        assert pr.requested_reviewers == [2]
        status = SyncTracker(store, ORG).get_status(WEBHOOK)
        assert status.status == 'completed'
        assert status.event_type == 'pull_request'
        assert [e['activity_type'] for e in store.list_activity(1)] == ['pr_opened']
        run_sync.assert_not_called()

    def test_pull_request_ignored_action(self, handler, store):
        result = handler.handle('pull_request', pull_request_event(action='labeled'), NOW)

        assert result['handled'] is False
        assert store.get_pull_request(10) is None

    def test_high_activity_repository_triggers_sync(self, handler, store, run_sync):
        for i in range(5):
            store.record_activity(f'seed:{i}', 2, 'review', NOW - timedelta(hours=1), repository='api')

        result = handler.handle('pull_request', pull_request_event(), NOW)

        assert result['synced'] is True
        run_sync.assert_called_once_with()

    def test_old_activity_does_not_count(self, handler, store, run_sync):
        for i in range(10):
            store.record_activity(f'seed:{i}', 2, 'review', NOW - timedelta(days=3), repository='api')

        assert handler.handle('pull_request', pull_request_event(), NOW)['synced'] is False

    def test_review_submitted(self, handler, store, run_sync):
        result = handler.handle('pull_request_review', review_event(), NOW)

        assert result == {'event': 'pull_request_review', 'handled': True, 'synced': True}
        [review] = store.list_reviews(ORG)
        assert review.state == 'APPROVED'
        assert review.pull_request_id == 10
        assert store.get_profile(2).current_xp == 25
        assert SyncTracker(store, ORG).get_status(WEBHOOK).event_type == 'pull_request_review'
        run_sync.assert_called_once_with()

    def test_redelivered_review_awards_once(self, handler, store):
        handler.handle('pull_request_review', review_event(), NOW)
        handler.handle('pull_request_review', review_event(), NOW)

        assert store.get_profile(2).current_xp == 25

    def test_review_edited_is_ignored(self, handler, store, run_sync):
        result = handler.handle('pull_request_review', review_event(action='edited'), NOW)

        assert result['handled'] is False
        run_sync.assert_not_called()

    def test_push_to_default_branch_without_recent_sync(self, handler, run_sync):
        result = handler.handle('push', {'ref': 'refs/heads/main', 'repository': REPOSITORY}, NOW)

        assert result == {'event': 'push', 'handled': True, 'synced': True}
        run_sync.assert_called_once_with()

    def test_push_with_recent_sync(self, handler, store, run_sync):
        SyncTracker(store, ORG).mark_completed(INCREMENTAL, NOW - timedelta(hours=1))

        result = handler.handle('push', {'ref': 'refs/heads/main', 'repository': REPOSITORY}, NOW)

        assert result['handled'] is True
        assert result['synced'] is False

    def test_push_to_other_branch(self, handler, run_sync):
        result = handler.handle('push', {'ref': 'refs/heads/feature', 'repository': REPOSITORY}, NOW)

        assert result['handled'] is False
        run_sync.assert_not_called()

    def test_unknown_event(self, handler):
        assert handler.handle('issues', {'action': 'opened'}, NOW) == {'event': 'issues', 'handled': False, 'synced': False}

    def test_without_sync_callable(self, store):
        handler = WebhookHandler(store, ORG)

        result = handler.handle('push', {'ref': 'refs/heads/main', 'repository': REPOSITORY}, NOW)

        assert result['synced'] is False

    def test_sync_errors_propagate(self, handler, run_sync):
        run_sync.side_effect = RuntimeError("sync failed")

        with pytest.raises(RuntimeError):
            handler.handle('pull_request_review', review_event(), NOW)
