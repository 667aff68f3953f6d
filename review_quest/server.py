"""JSON HTTP service: cron and webhook triggers plus read endpoints for dashboards."""

import hmac
import logging
from typing import Callable

from flask import Flask, jsonify, request

from .config import Settings
from .cron import run_scheduled_sync
from .gamification.challenges import challenge_to_dict, classify_challenges
from .gamification.service import GamificationService
from .metrics import DEFAULT_TIME_RANGE, compute_review_metrics, leaderboard, time_range
from .models import utcnow
from .store import Store
from .sync.core import GitHubSync
from .sync.status import SyncTracker
from .webhooks import WebhookHandler, verify_signature


def create_app(settings: Settings, store: Store = None, sync_factory: Callable[[], GitHubSync] = None) -> Flask:
    """Build the Flask application.

    Args:
        settings: Application settings
        store: Store to serve from (opened from settings.database_url when omitted)
        sync_factory: Builds the synchronizer used by cron and webhook triggers

    Returns:
        Configured Flask app
    """
    if store is None:
        store = Store(settings.database_url)
        store.ensure_tables()
    organization = settings.organization or ''
    if sync_factory is None:
        def sync_factory():
            return GitHubSync.from_settings(settings, store)

    app = Flask(__name__)
    app.config['STORE'] = store
    gamification = GamificationService(store, organization)

    @app.route('/health')
    def health():
        return jsonify({'status': 'ok', 'organization': organization})

    @app.route('/api/cron/sync', methods=['GET', 'POST'])
    def cron_sync():
        if settings.cron_secret_token:
            expected = f"Bearer {settings.cron_secret_token}"
            if not hmac.compare_digest(request.headers.get('Authorization', ''), expected):
                logging.warning("Rejected cron request with invalid authorization")
                return jsonify({'error': 'Unauthorized'}), 401

        try:
            result = run_scheduled_sync(sync_factory())
        except Exception as e:
            logging.error(f"Scheduled sync failed: {e}", exc_info=True)
            return jsonify({'success': False, 'error': str(e)}), 500

        return jsonify({
            'success': True,
            'message': f"Scheduled {result['sync_type']} sync completed",
            'duration_ms': result['duration_ms'],
            'timestamp': utcnow().isoformat(),
        })

    @app.route('/api/webhooks/github', methods=['POST'])
    def github_webhook():
        payload = request.get_data()
        if settings.webhook_secret:
            if not verify_signature(payload, request.headers.get('X-Hub-Signature-256'), settings.webhook_secret):
                logging.error("Invalid webhook signature")
                return jsonify({'error': 'Invalid signature'}), 401

        body = request.get_json(silent=True)
        if not isinstance(body, dict):
            return jsonify({'success': False, 'error': 'Malformed JSON payload'}), 400

        event_type = request.headers.get('X-GitHub-Event', '')
        handler = WebhookHandler(
            store, organization,
            run_incremental_sync=lambda: sync_factory().sync_incremental(),
            gamification=gamification,
        )
        try:
            result = handler.handle(event_type, body)
        except Exception as e:
            logging.error(f"Error processing GitHub webhook: {e}", exc_info=True)
            return jsonify({'success': False, 'error': str(e)}), 500

        return jsonify({
            'success': True,
            'message': 'Webhook processed successfully',
            'event': event_type,
            'handled': result['handled'],
            'synced': result['synced'],
        })

    @app.route('/api/sync/status')
    def sync_status():
        report = SyncTracker(store, organization).staleness_report(settings.staleness_hours)
        return jsonify(report)

    @app.route('/api/leaderboard')
    def get_leaderboard():
        range_value = request.args.get('range', DEFAULT_TIME_RANGE)
        sort_by = request.args.get('sort', 'total_reviewed')
        try:
            window = time_range(range_value)
            metrics = compute_review_metrics(
                store.list_users(organization),
                store.list_pull_requests(organization),
                store.list_reviews(organization),
                window,
            )
            ranked = leaderboard(metrics, sort_by)
        except ValueError as e:
            return jsonify({'error': str(e)}), 400

        return jsonify({
            'range': window.value,
            'label': window.label,
            'start': window.start.isoformat(),
            'end': window.end.isoformat(),
            'metrics': [m.to_dict() for m in ranked],
        })

    @app.route('/api/users/<int:user_id>')
    def get_user(user_id):
        profile = gamification.get_user_profile(user_id)
        if profile is None:
            return jsonify({'error': f"Unknown user {user_id}"}), 404
        try:
            achievements = gamification.get_user_achievements(user_id, request.args.get('range', 'all'))
        except ValueError as e:
            return jsonify({'error': str(e)}), 400
        return jsonify({
            'profile': profile,
            'achievements': achievements,
            'notifications': [{
                'id': n.id,
                'type': n.type,
                'title': n.title,
                'message': n.message,
                'read': n.read,
                'created_at': n.created_at.isoformat() if n.created_at else None,
            } for n in store.list_notifications(user_id, unread_only=True)],
        })

    @app.route('/api/users/<int:user_id>/title', methods=['POST'])
    def set_user_title(user_id):
        if store.get_profile(user_id) is None:
            return jsonify({'error': f"Unknown user {user_id}"}), 404
        payload = request.get_json(silent=True)
        title = payload.get('title') if isinstance(payload, dict) else None
        try:
            profile = gamification.set_title(user_id, title)
        except ValueError as e:
            return jsonify({'error': str(e)}), 400
        return jsonify({'userid': profile.userid, 'title': profile.title})

    @app.route('/api/challenges')
    def get_challenges():
        now = utcnow()
        groups = classify_challenges(store.list_challenges(organization), now)
        return jsonify({name: [challenge_to_dict(c, now) for c in challenges] for name, challenges in groups.items()})

    return app
