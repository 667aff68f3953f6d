"""
Shared fixtures and GitHub payload builders
"""

import pytest
from datetime import datetime, timezone

from review_quest.store import Store


ORG = 'acme'
NOW = datetime(2024, 6, 12, 18, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def store(tmp_path):
    """Store backed by a temporary SQLite file."""
    store = Store(f"sqlite:///{tmp_path / 'review_quest.db'}")
    store.ensure_tables()
    yield store
    store.close()


def user_payload(user_id, login):
    return {
        'id': user_id,
        'login': login,
        'avatar_url': f'https://avatars.example.com/{login}',
        'html_url': f'https://github.com/{login}',
    }


def pr_payload(pr_id, number, author_id, author_login, created_at, updated_at=None, state='open',
               reviewers=(), repo_name='api', repo_id=100):
    return {
        'id': pr_id,
        'number': number,
        'title': f'PR {number}',
        'html_url': f'https://github.com/{ORG}/{repo_name}/pull/{number}',
        'state': state,
        'user': {'id': author_id, 'login': author_login},
        'created_at': created_at,
        'updated_at': updated_at or created_at,
        'closed_at': None,
        'merged_at': None,
        'requested_reviewers': [{'id': r, 'login': f'user{r}'} for r in reviewers],
        'base': {'repo': {'id': repo_id, 'name': repo_name}},
    }


def review_payload(review_id, user_id, login, state, submitted_at):
    return {
        'id': review_id,
        'user': {'id': user_id, 'login': login},
        'state': state,
        'submitted_at': submitted_at,
        'html_url': f'https://github.com/{ORG}/api/pull/1#pullrequestreview-{review_id}',
    }
