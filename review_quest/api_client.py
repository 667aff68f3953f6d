"""GitHub API client for making requests and handling pagination."""

import os
import logging
from datetime import datetime
from typing import Dict, List, Optional, Callable
import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .models import parse_timestamp


API_ROOT = 'https://api.github.com'


class RateLimitExceeded(requests.exceptions.HTTPError):
    """Raised when GitHub refuses a request because the rate limit is used up."""


class GitHubAPIClient:
    """Handles GitHub API requests with retry logic and pagination."""

    def __init__(self, token: str = None, api_root: str = API_ROOT):
        """Initialize the GitHub API client.

        Args:
            token: GitHub personal access token for authentication
            api_root: Base URL of the REST API
        """
        # Use provided token or fall back to environment variable
        self.token = token or os.environ.get('GITHUB_TOKEN')
        self.api_root = api_root.rstrip('/')
        self.session = requests.Session()

        # Repository batches fetch concurrently, so keep enough pooled connections
        adapter = HTTPAdapter(
            pool_connections=20,
            pool_maxsize=20,
            max_retries=Retry(
                total=3,
                backoff_factor=0.3,
                status_forcelist=[500, 502, 503, 504]
            )
        )
        self.session.mount('https://', adapter)
        self.session.mount('http://', adapter)
        self.session.headers.update({'Accept': 'application/vnd.github.v3+json'})

        if self.token:
            self.session.headers.update({'Authorization': f'token {self.token}'})
            logging.info("Initialized GitHub API client with token")
        else:
            logging.warning("No GitHub token provided. Rate limits will be much lower.")
            logging.warning("Set GITHUB_TOKEN environment variable or pass token as argument.")

    def _check_rate_limit(self, response: requests.Response):
        if response.status_code in (403, 429) and response.headers.get('X-RateLimit-Remaining') == '0':
            reset = response.headers.get('X-RateLimit-Reset')
            logging.error(f"Rate limit exceeded (resets at {reset})")
            raise RateLimitExceeded(f"GitHub rate limit exceeded for {response.url}", response=response)

    def get_paginated(self, url: str, params: Dict = None,
                      should_continue: Optional[Callable[[List[Dict]], bool]] = None) -> List[Dict]:
        """Fetch all pages of a paginated GitHub API endpoint.

        Args:
            url: The API endpoint URL
            params: Query parameters
            should_continue: Optional callback function that takes a page of results and returns
                           False to stop pagination early, True to continue

        Returns:
            List of all items from all pages
        """
        results = []
        page = 1
        per_page = 100

        params = dict(params or {})
        params['per_page'] = per_page

        while True:
            params['page'] = page
            logging.debug(f"Fetching page {page} from {url}")
            response = self.session.get(url, params=params)

            self._check_rate_limit(response)
            response.raise_for_status()
            data = response.json()

            if not data:
                break

            results.extend(data)

            # Check early termination callback
            if should_continue and not should_continue(data):
                logging.debug(f"Early termination triggered at page {page}")
                break

            # Check if there are more pages
            if len(data) < per_page:
                break

            page += 1

        logging.debug(f"Fetched {len(results)} total items from {url}")
        return results

    def list_org_members(self, org: str) -> List[Dict]:
        return self.get_paginated(f"{self.api_root}/orgs/{org}/members")

    def list_org_repos(self, org: str) -> List[Dict]:
        return self.get_paginated(f"{self.api_root}/orgs/{org}/repos", {'type': 'all'})

    def list_pull_requests(self, owner: str, repo: str, state: str = 'all',
                           since: datetime = None) -> List[Dict]:
        """List pull requests of a repository, most recently updated first.

        Args:
            owner: Repository owner (the organization)
            repo: Repository name
            state: 'open', 'closed' or 'all'
            since: When given, only PRs updated at or after this moment are returned
                   and paging stops at the first page that reaches older PRs

        Returns:
            List of pull request payloads
        """
        url = f"{self.api_root}/repos/{owner}/{repo}/pulls"
        params = {'state': state, 'sort': 'updated', 'direction': 'desc'}

        if since is None:
            return self.get_paginated(url, params)

        def is_recent(pr: Dict) -> bool:
            updated = parse_timestamp(pr.get('updated_at'))
            return updated is not None and updated >= since

        def page_is_recent(page: List[Dict]) -> bool:
            return all(is_recent(pr) for pr in page)

        prs = self.get_paginated(url, params, should_continue=page_is_recent)
        return [pr for pr in prs if is_recent(pr)]

    def list_reviews(self, owner: str, repo: str, number: int) -> List[Dict]:
        return self.get_paginated(f"{self.api_root}/repos/{owner}/{repo}/pulls/{number}/reviews")
