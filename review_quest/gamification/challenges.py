"""Team challenges: classification, progress and refresh."""

import logging
import math
import statistics
import uuid
from datetime import datetime
from typing import Dict, Iterable, List

from ..models import PullRequest, Review, TeamChallenge, TimeRange, utcnow
from ..store import Store


CHALLENGE_TYPES = ('review_count', 'approval_rate', 'response_time')


def classify_challenges(challenges: Iterable[TeamChallenge], now: datetime = None) -> Dict[str, List[TeamChallenge]]:
    """Split challenges into active, upcoming and completed, each sorted by end date."""
    now = now or utcnow()
    groups = {'active': [], 'upcoming': [], 'completed': []}
    for challenge in sorted(challenges, key=lambda c: c.end_date):
        if challenge.is_active and challenge.start_date <= now <= challenge.end_date:
            groups['active'].append(challenge)
        elif challenge.is_active and challenge.start_date > now:
            groups['upcoming'].append(challenge)
        else:
            groups['completed'].append(challenge)
    return groups


def progress_percentage(current: float, goal: float) -> int:
    if not goal or goal <= 0:
        return 0
    return min(100, round(current / goal * 100))


def time_remaining(end_date: datetime, now: datetime = None) -> str:
    now = now or utcnow()
    days = math.ceil((end_date - now).total_seconds() / 86400)
    if days <= 0:
        return 'Ended'
    if days == 1:
        return '1 day left'
    return f"{days} days left"


def is_successful(challenge: TeamChallenge) -> bool:
    """Whether the challenge's current progress meets its goal.

    Response time is better when lower; a zero value means no data yet.
    """
    if challenge.type == 'response_time':
        return 0 < challenge.current_progress <= challenge.goal
    return challenge.current_progress >= challenge.goal


def compute_challenge_progress(challenge: TeamChallenge, pull_requests: Iterable[PullRequest],
                               reviews: Iterable[Review]) -> float:
    """Measure a challenge's metric over its own start and end dates.

    review_count: reviews submitted in the window.
    approval_rate: percentage of those reviews that approved.
    response_time: median hours from PR creation to its first review, over
    PRs created in the window that received a review.
    """
    window = TimeRange(label=challenge.name, value='challenge', start=challenge.start_date, end=challenge.end_date)
    reviews = [r for r in reviews if r.submitted_at is not None]
    in_window = [r for r in reviews if window.contains(r.submitted_at)]

    if challenge.type == 'review_count':
        return float(len(in_window))

    if challenge.type == 'approval_rate':
        if not in_window:
            return 0.0
        approved = sum(1 for r in in_window if r.state == 'APPROVED')
        return round(approved * 100 / len(in_window), 1)

    if challenge.type == 'response_time':
        first_review: Dict[int, datetime] = {}
        for review in reviews:
            current = first_review.get(review.pull_request_id)
            if current is None or review.submitted_at < current:
                first_review[review.pull_request_id] = review.submitted_at

        hours = [
            (first_review[pr.id] - pr.created_at).total_seconds() / 3600
            for pr in pull_requests
            if window.contains(pr.created_at) and pr.id in first_review
        ]
        if not hours:
            return 0.0
        return round(statistics.median(hours), 1)

    raise ValueError(f"Unknown challenge type '{challenge.type}'")


def challenge_to_dict(challenge: TeamChallenge, now: datetime = None) -> Dict:
    return {
        'id': challenge.id,
        'name': challenge.name,
        'description': challenge.description,
        'type': challenge.type,
        'team_id': challenge.team_id,
        'reward': challenge.reward,
        'goal': challenge.goal,
        'current_progress': challenge.current_progress,
        'percentage': progress_percentage(challenge.current_progress, challenge.goal),
        'is_successful': is_successful(challenge),
        'time_remaining': time_remaining(challenge.end_date, now),
        'start_date': challenge.start_date.isoformat(),
        'end_date': challenge.end_date.isoformat(),
        'is_active': challenge.is_active,
    }


def create_challenge(store: Store, organization: str, name: str, challenge_type: str, goal: float,
                     start_date: datetime, end_date: datetime, description: str = '',
                     reward: str = '') -> TeamChallenge:
    """Validate and store a new team challenge for the organization."""
    if challenge_type not in CHALLENGE_TYPES:
        raise ValueError(f"Unknown challenge type '{challenge_type}'. Choose from: {', '.join(CHALLENGE_TYPES)}")
    if goal <= 0:
        raise ValueError("Challenge goal must be positive")
    if end_date < start_date:
        raise ValueError("Challenge must end after it starts")

    challenge = TeamChallenge(
        id=uuid.uuid4().hex,
        name=name,
        description=description,
        start_date=start_date,
        end_date=end_date,
        goal=goal,
        type=challenge_type,
        team_id=organization,
        reward=reward,
    )
    store.save_challenge(organization, challenge)
    logging.info(f"Created {challenge_type} challenge '{name}' for {organization}")
    return challenge


def refresh_challenges(store: Store, organization: str, now: datetime = None) -> List[TeamChallenge]:
    """Recompute and store the progress of active and just-finished challenges.

    Upcoming challenges have no data yet and are left alone.

    Returns:
        The challenges whose progress was recomputed
    """
    now = now or utcnow()
    challenges = [c for c in store.list_challenges(organization) if c.is_active and c.start_date <= now]
    if not challenges:
        return []

    pull_requests = store.list_pull_requests(organization)
    reviews = store.list_reviews(organization)

    for challenge in challenges:
        challenge.current_progress = compute_challenge_progress(challenge, pull_requests, reviews)
        store.save_challenge(organization, challenge)
        logging.debug(f"Challenge '{challenge.name}': {challenge.current_progress}/{challenge.goal}")

    logging.info(f"Refreshed {len(challenges)} team challenges")
    return challenges
