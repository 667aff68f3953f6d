"""
Unit tests for API client functionality
"""

import pytest
import requests
from datetime import datetime, timezone
from unittest.mock import Mock

from review_quest.api_client import GitHubAPIClient, RateLimitExceeded


def make_response(data, status_code=200, headers=None):
    response = Mock()
    response.status_code = status_code
    response.headers = headers or {}
    response.url = 'https://api.github.com/test'
    response.json.return_value = data
    return response


class TestClientSetup:
    """Test cases for session configuration."""

    def test_token_header(self):
        client = GitHubAPIClient(token='test_token')
        assert client.session.headers['Authorization'] == 'token test_token'
        assert client.session.headers['Accept'] == 'application/vnd.github.v3+json'

    def test_no_token_warns(self, monkeypatch, caplog):
        monkeypatch.delenv('GITHUB_TOKEN', raising=False)
        client = GitHubAPIClient()
        assert 'Authorization' not in client.session.headers
        assert "No GitHub token provided" in caplog.text


class TestPagination:
    """Test cases for get_paginated."""

    @pytest.fixture
    def client(self):
        client = GitHubAPIClient(token='test_token')
        client.session = Mock()
        return client

    def test_single_short_page(self, client):
        client.session.get.return_value = make_response([{'id': 1}, {'id': 2}])

        results = client.get_paginated('https://api.github.com/test')

        assert results == [{'id': 1}, {'id': 2}]
        assert client.session.get.call_count == 1

    def test_follows_full_pages(self, client):
        full_page = [{'id': i} for i in range(100)]
        client.session.get.side_effect = [make_response(full_page), make_response([{'id': 100}])]

        results = client.get_paginated('https://api.github.com/test', {'state': 'all'})

        assert len(results) == 101
        assert client.session.get.call_count == 2
        _, kwargs = client.session.get.call_args
        assert kwargs['params']['page'] == 2
        assert kwargs['params']['per_page'] == 100

    def test_caller_params_are_not_mutated(self, client):
        client.session.get.return_value = make_response([])
        params = {'state': 'all'}

        client.get_paginated('https://api.github.com/test', params)

        assert params == {'state': 'all'}

    def test_should_continue_stops_early(self, client):
        full_page = [{'id': i} for i in range(100)]
        client.session.get.return_value = make_response(full_page)

        results = client.get_paginated('https://api.github.com/test', should_continue=lambda page: False)

        assert len(results) == 100
        assert client.session.get.call_count == 1

    def test_http_error_propagates(self, client):
        response = make_response(None, status_code=404)
        response.raise_for_status.side_effect = requests.exceptions.HTTPError("404 Not Found")
        client.session.get.return_value = response

        with pytest.raises(requests.exceptions.HTTPError):
            client.get_paginated('https://api.github.com/test')

    def test_rate_limit_raises(self, client):
        response = make_response(None, status_code=403, headers={'X-RateLimit-Remaining': '0', 'X-RateLimit-Reset': '1'})
        client.session.get.return_value = response

        with pytest.raises(RateLimitExceeded):
            client.get_paginated('https://api.github.com/test')

    def test_forbidden_without_rate_limit_is_plain_http_error(self, client):
        response = make_response(None, status_code=403, headers={'X-RateLimit-Remaining': '42'})
        response.raise_for_status.side_effect = requests.exceptions.HTTPError("403 Forbidden")
        client.session.get.return_value = response

        with pytest.raises(requests.exceptions.HTTPError) as exc_info:
            client.get_paginated('https://api.github.com/test')
        assert not isinstance(exc_info.value, RateLimitExceeded)

    def test_network_error_propagates(self, client):
        client.session.get.side_effect = requests.exceptions.ConnectionError("Network error")

        with pytest.raises(requests.exceptions.ConnectionError):
            client.get_paginated('https://api.github.com/test')


class TestEndpoints:
    """Test cases for the endpoint helpers."""

    @pytest.fixture
    def client(self):
        client = GitHubAPIClient(token='test_token')
        client.session = Mock()
        return client

    def test_list_org_repos(self, client):
        client.session.get.return_value = make_response([{'id': 1, 'name': 'api'}])

        repos = client.list_org_repos('acme')

        assert repos == [{'id': 1, 'name': 'api'}]
        args, kwargs = client.session.get.call_args
        assert args[0] == 'https://api.github.com/orgs/acme/repos'
        assert kwargs['params']['type'] == 'all'

    def test_list_pull_requests_filters_by_since(self, client):
        client.session.get.return_value = make_response([
            {'id': 1, 'updated_at': '2024-06-10T00:00:00Z'},
            {'id': 2, 'updated_at': '2024-06-05T00:00:00Z'},
            {'id': 3, 'updated_at': '2024-05-01T00:00:00Z'},
        ])
        since = datetime(2024, 6, 1, tzinfo=timezone.utc)

        prs = client.list_pull_requests('acme', 'api', since=since)

        assert [pr['id'] for pr in prs] == [1, 2]
        _, kwargs = client.session.get.call_args
        assert kwargs['params']['sort'] == 'updated'
        assert kwargs['params']['direction'] == 'desc'

    def test_list_pull_requests_stops_at_old_page(self, client):
        page = [{'id': i, 'updated_at': '2024-06-10T00:00:00Z'} for i in range(99)]
        page.append({'id': 99, 'updated_at': '2024-01-01T00:00:00Z'})
        client.session.get.return_value = make_response(page)

        prs = client.list_pull_requests('acme', 'api', since=datetime(2024, 6, 1, tzinfo=timezone.utc))

        assert len(prs) == 99
        assert client.session.get.call_count == 1

    def test_list_reviews_url(self, client):
        client.session.get.return_value = make_response([])

        client.list_reviews('acme', 'api', 7)

        args, _ = client.session.get.call_args
        assert args[0] == 'https://api.github.com/repos/acme/api/pulls/7/reviews'
