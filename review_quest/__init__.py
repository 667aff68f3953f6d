"""Review Quest - gamified GitHub pull request review tracking."""

from .models import GitHubUser, PullRequest, Review, ReviewMetrics, TimeRange, UserProfile
from .config import Settings
from .api_client import GitHubAPIClient, RateLimitExceeded
from .cache import CacheManager
from .store import Store
from .metrics import compute_review_metrics, time_range, generate_time_ranges
from .sync import GitHubSync, SyncTracker
from .gamification import GamificationService
from .output import ReportFormatter

__all__ = [
    'GitHubUser',
    'PullRequest',
    'Review',
    'ReviewMetrics',
    'TimeRange',
    'UserProfile',
    'Settings',
    'GitHubAPIClient',
    'RateLimitExceeded',
    'CacheManager',
    'Store',
    'compute_review_metrics',
    'time_range',
    'generate_time_ranges',
    'GitHubSync',
    'SyncTracker',
    'GamificationService',
    'ReportFormatter',
]
