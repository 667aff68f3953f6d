"""Data models for GitHub review tracking and gamification."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional


TIMESTAMP_FORMAT = '%Y-%m-%dT%H:%M:%SZ'

REVIEW_STATES = ('APPROVED', 'CHANGES_REQUESTED', 'COMMENTED', 'DISMISSED', 'PENDING')


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value) -> Optional[datetime]:
    """Parse a GitHub/ISO timestamp into an aware UTC datetime.

    Args:
        value: ISO 8601 string, datetime or None

    Returns:
        Timezone-aware datetime in UTC, or None for empty values
    """
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        dt = datetime.fromisoformat(str(value).replace('Z', '+00:00'))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_timestamp(value) -> Optional[str]:
    """Format a datetime as the fixed-width UTC string used in the store."""
    dt = parse_timestamp(value)
    if dt is None:
        return None
    return dt.strftime(TIMESTAMP_FORMAT)


@dataclass
class GitHubUser:
    """A GitHub account that belongs to the tracked organization."""
    id: int
    login: str
    name: Optional[str] = None
    avatar_url: str = ''
    html_url: str = ''

    @classmethod
    def from_api(cls, data: Dict) -> 'GitHubUser':
        login = data.get('login') or 'unknown'
        return cls(
            id=data.get('id') or 0,
            login=login,
            name=data.get('name') or login,
            avatar_url=data.get('avatar_url') or '',
            html_url=data.get('html_url') or f"https://github.com/{login}"
        )


@dataclass
class Repository:
    id: int
    name: str
    full_name: str
    html_url: str = ''
    description: str = ''

    @classmethod
    def from_api(cls, data: Dict) -> 'Repository':
        return cls(
            id=data['id'],
            name=data['name'],
            full_name=data.get('full_name') or data['name'],
            html_url=data.get('html_url') or '',
            description=data.get('description') or ''
        )


@dataclass
class PullRequest:
    """A pull request as cached in the store."""
    id: int
    number: int
    title: str
    html_url: str
    state: str
    user_id: int
    user_login: str
    repository: str
    created_at: datetime
    updated_at: datetime
    repository_id: Optional[int] = None
    closed_at: Optional[datetime] = None
    merged_at: Optional[datetime] = None
    requested_reviewers: List[int] = field(default_factory=list)

    @classmethod
    def from_api(cls, data: Dict, repository: str = None, repository_id: int = None) -> 'PullRequest':
        """Build a PullRequest from a GitHub REST payload.

        Args:
            data: Pull request JSON from the pulls endpoints or a webhook
            repository: Repository name; taken from the payload base when omitted
            repository_id: Repository id; taken from the payload base when omitted
        """
        user = data.get('user') or {}
        base_repo = (data.get('base') or {}).get('repo') or {}
        return cls(
            id=data['id'],
            number=data['number'],
            title=data.get('title') or '',
            html_url=data.get('html_url') or '',
            state=data.get('state') or 'open',
            user_id=user.get('id') or 0,
            user_login=user.get('login') or 'unknown',
            repository=repository or base_repo.get('name') or '',
            repository_id=repository_id or base_repo.get('id'),
            created_at=parse_timestamp(data.get('created_at')),
            updated_at=parse_timestamp(data.get('updated_at') or data.get('created_at')),
            closed_at=parse_timestamp(data.get('closed_at')),
            merged_at=parse_timestamp(data.get('merged_at')),
            requested_reviewers=[r['id'] for r in data.get('requested_reviewers') or [] if r.get('id')]
        )


@dataclass
class Review:
    id: int
    pull_request_id: int
    user_id: int
    user_login: str
    state: str
    submitted_at: Optional[datetime]
    html_url: str = ''

    @classmethod
    def from_api(cls, data: Dict, pull_request_id: int) -> 'Review':
        user = data.get('user') or {}
        return cls(
            id=data['id'],
            pull_request_id=pull_request_id,
            user_id=user.get('id') or 0,
            user_login=user.get('login') or 'unknown',
            state=(data.get('state') or 'COMMENTED').upper(),
            submitted_at=parse_timestamp(data.get('submitted_at')),
            html_url=data.get('html_url') or ''
        )


@dataclass
class ReviewMetrics:
    """Per-user review counts for one time window."""
    user_id: int
    login: str
    name: Optional[str] = None
    avatar_url: str = ''
    assigned: int = 0
    approved: int = 0
    changes_requested: int = 0
    commented: int = 0
    total_reviewed: int = 0
    opened: int = 0
    open_against: int = 0
    pending: int = 0

    def to_dict(self) -> Dict:
        return {
            'user_id': self.user_id,
            'login': self.login,
            'name': self.name,
            'avatar_url': self.avatar_url,
            'assigned': self.assigned,
            'approved': self.approved,
            'changes_requested': self.changes_requested,
            'commented': self.commented,
            'total_reviewed': self.total_reviewed,
            'opened': self.opened,
            'open_against': self.open_against,
            'pending': self.pending,
        }


@dataclass
class TimeRange:
    label: str
    value: str
    start: datetime
    end: datetime

    def contains(self, moment: Optional[datetime]) -> bool:
        """Return True when the moment lies inside the window (inclusive)."""
        if moment is None:
            return False
        return self.start <= moment <= self.end


@dataclass
class ActivitySnapshot:
    """Everything achievement evaluation needs to know about one user."""
    total_reviewed: int = 0
    approved: int = 0
    changes_requested: int = 0
    commented: int = 0
    repositories_reviewed: int = 0
    fast_reviews: int = 0
    night_reviews: int = 0
    weekend_pairs: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    last_review_at: Optional[datetime] = None


@dataclass
class SyncStatus:
    organization: str
    sync_type: str
    status: str
    last_sync_time: Optional[datetime]
    event_type: Optional[str] = None
    duration_ms: Optional[int] = None
    error_message: Optional[str] = None


@dataclass(frozen=True)
class Achievement:
    id: str
    name: str
    description: str
    icon: str
    category: str
    tier: str
    required_value: int
    is_secret: bool = False


@dataclass
class AchievementProgress:
    """Evaluated state of one achievement for one user."""
    achievement_id: str
    progress: int
    is_complete: bool
    earned_at: Optional[datetime] = None


@dataclass(frozen=True)
class Level:
    id: int
    name: str
    required_xp: int
    icon: str


@dataclass
class UserProfile:
    userid: int
    login: str
    name: Optional[str] = None
    avatar_url: str = ''
    current_xp: int = 0
    level: int = 1
    title: Optional[str] = None
    joined_at: Optional[datetime] = None
    last_active: Optional[datetime] = None
    streak: int = 0
    longest_streak: int = 0
    badges: List[str] = field(default_factory=list)
    selected_badges: List[str] = field(default_factory=list)


@dataclass
class TeamChallenge:
    id: str
    name: str
    description: str
    start_date: datetime
    end_date: datetime
    goal: float
    type: str
    team_id: str
    reward: str = ''
    current_progress: float = 0
    is_active: bool = True


@dataclass
class Notification:
    id: str
    userid: int
    type: str
    title: str
    message: str
    data: Dict = field(default_factory=dict)
    read: bool = False
    created_at: Optional[datetime] = None
