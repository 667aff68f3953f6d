"""GitHub webhook verification and event handling."""

import hmac
import hashlib
import logging
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional

from .gamification.service import GamificationService
from .models import PullRequest, Review, utcnow
from .store import Store
from .sync.status import INCREMENTAL, SCHEDULED, WEBHOOK, SyncTracker


PR_ACTIONS = ('opened', 'closed', 'reopened')

# A repository with more logged activities than this in a day is synced on every PR event
HIGH_ACTIVITY_THRESHOLD = 5
HIGH_ACTIVITY_WINDOW_HOURS = 24

# Pushes trigger a sync only when the last one is older than this
PUSH_SYNC_HOURS = 4


def verify_signature(payload: bytes, signature: Optional[str], secret: str) -> bool:
    """Check an X-Hub-Signature-256 header against the raw request body.

    Args:
        payload: Raw request body
        signature: Header value, 'sha256=<hex digest>'
        secret: Webhook secret shared with GitHub

    Returns:
        True if the signature matches
    """
    if not signature:
        return False
    digest = 'sha256=' + hmac.new(secret.encode(), payload, hashlib.sha256).hexdigest()
    return hmac.compare_digest(digest.encode(), signature.encode())


class WebhookHandler:
    """Applies GitHub webhook events to the store and triggers syncs when warranted."""

    def __init__(self, store: Store, organization: str, run_incremental_sync: Callable[[], object] = None,
                 gamification: GamificationService = None):
        """Initialize the handler.

        Args:
            store: Store receiving webhook data
            organization: Organization the webhooks belong to
            run_incremental_sync: Callable starting an incremental sync (None disables syncing)
            gamification: Service used to log activity and award XP
        """
        self.store = store
        self.organization = organization
        self.run_incremental_sync = run_incremental_sync
        self.gamification = gamification or GamificationService(store, organization)
        self.tracker = SyncTracker(store, organization)

    def handle(self, event_type: str, payload: Dict, now: datetime = None) -> Dict:
        """Process one webhook delivery.

        Args:
            event_type: Value of the X-GitHub-Event header
            payload: Parsed JSON body
            now: Reference time (defaults to the current time)

        Returns:
            Dictionary with the event type, whether it was handled and whether a sync ran
        """
        now = now or utcnow()
        logging.info(f"Received GitHub webhook: {event_type}")

        if event_type == 'pull_request':
            return self._handle_pull_request(payload, now)
        if event_type == 'pull_request_review':
            return self._handle_review(payload, now)
        if event_type == 'push':
            return self._handle_push(payload, now)

        logging.info(f"Ignoring unhandled event type: {event_type}")
        return self._result(event_type, handled=False)

    @staticmethod
    def _result(event_type: str, handled: bool, synced: bool = False) -> Dict:
        return {'event': event_type, 'handled': handled, 'synced': synced}

    def _pull_request(self, payload: Dict) -> PullRequest:
        repository = payload.get('repository') or {}
        return PullRequest.from_api(payload['pull_request'], repository.get('name'), repository.get('id'))

    def _handle_pull_request(self, payload: Dict, now: datetime) -> Dict:
        action = payload.get('action')
        if action not in PR_ACTIONS:
            logging.debug(f"Ignoring pull_request action '{action}'")
            return self._result('pull_request', handled=False)

        pr = self._pull_request(payload)
        self.store.upsert_pull_requests(self.organization, [pr])
        self.gamification.record_pr_activity(pr, action, now)
        self.tracker.mark_completed(WEBHOOK, now, event_type='pull_request')

        synced = False
        if self.is_high_activity(pr.repository, now):
            logging.info(f"Repository {pr.repository} is high-activity, running incremental sync")
            synced = self._sync()
        return self._result('pull_request', handled=True, synced=synced)

    def _handle_review(self, payload: Dict, now: datetime) -> Dict:
        if payload.get('action') != 'submitted':
            logging.debug(f"Ignoring pull_request_review action '{payload.get('action')}'")
            return self._result('pull_request_review', handled=False)

        pr = self._pull_request(payload)
        review = Review.from_api(payload['review'], pr.id)
        self.store.upsert_pull_requests(self.organization, [pr])
        self.store.upsert_reviews(self.organization, [review])
        self.gamification.record_review_activity(review, pr)
        self.tracker.mark_completed(WEBHOOK, now, event_type='pull_request_review')

        # Reviews drive achievements, so always refresh
        synced = self._sync()
        return self._result('pull_request_review', handled=True, synced=synced)

    def _handle_push(self, payload: Dict, now: datetime) -> Dict:
        repository = payload.get('repository') or {}
        default_branch = repository.get('default_branch')
        if not default_branch or payload.get('ref') != f"refs/heads/{default_branch}":
            logging.debug(f"Ignoring push to {payload.get('ref')}")
            return self._result('push', handled=False)

        self.tracker.mark_completed(WEBHOOK, now, event_type='push')

        hours = self.tracker.hours_since_last_sync((INCREMENTAL, SCHEDULED), now)
        synced = False
        if hours is None or hours > PUSH_SYNC_HOURS:
            logging.info("Last sync is older than the push threshold, running incremental sync")
            synced = self._sync()
        return self._result('push', handled=True, synced=synced)

    def is_high_activity(self, repository: str, now: datetime = None) -> bool:
        since = (now or utcnow()) - timedelta(hours=HIGH_ACTIVITY_WINDOW_HOURS)
        return self.store.count_activity(repository=repository, since=since) > HIGH_ACTIVITY_THRESHOLD

    def _sync(self) -> bool:
        if self.run_incremental_sync is None:
            logging.debug("No sync configured, skipping incremental sync")
            return False
        self.run_incremental_sync()
        return True
