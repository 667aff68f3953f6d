"""Gamification service: profiles, XP, achievements and streaks backed by the store."""

import logging
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional

from ..metrics import build_activity_snapshot, time_range
from ..models import (
    AchievementProgress,
    GitHubUser,
    Notification,
    PullRequest,
    Review,
    UserProfile,
    format_timestamp,
    utcnow,
)
from ..store import Store
from .achievements import (
    ACHIEVEMENTS,
    ACHIEVEMENTS_BY_ID,
    LEVELS,
    STREAK_MILESTONE_DAYS,
    STREAK_MILESTONE_XP,
    TITLES,
    XP_REWARDS,
)
from .evaluator import calculate_level, changed_progress, evaluate_achievements, level_progress, newly_completed, xp_for_review


def activity_key(activity_type: str, user_id: int, reference) -> str:
    """Deterministic identity of an activity so replays never award XP twice."""
    return f"{activity_type}:{user_id}:{reference}"


class GamificationService:
    """Keeps user profiles, achievements and XP in step with cached review data."""

    def __init__(self, store: Store, organization: str):
        self.store = store
        self.organization = organization

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------

    def sync_profiles(self, users: Iterable[GitHubUser], now: datetime = None) -> int:
        """Create profiles for new users and refresh identity fields of existing ones.

        XP, level and streaks of existing profiles are never touched here.

        Returns:
            Number of newly created profiles
        """
        now = now or utcnow()
        existing = {p.userid: p for p in self.store.list_profiles()}
        created = 0

        for user in users:
            profile = existing.get(user.id)
            if profile is None:
                profile = UserProfile(
                    userid=user.id,
                    login=user.login,
                    name=user.name or user.login,
                    avatar_url=user.avatar_url,
                    current_xp=0,
                    level=LEVELS[0].id,
                    title=LEVELS[0].name,
                    joined_at=now,
                    last_active=now,
                )
                created += 1
            else:
                profile.login = user.login
                profile.name = user.name or user.login
                profile.avatar_url = user.avatar_url
            self.store.save_profile(profile)

        logging.info(f"Synced profiles: {created} created")
        return created

    def get_user_profile(self, user_id: int) -> Optional[Dict]:
        """Return a profile with its level progress, or None for unknown users."""
        profile = self.store.get_profile(user_id)
        if profile is None:
            return None

        current, upcoming, percent = level_progress(profile.current_xp)
        return {
            'userid': profile.userid,
            'login': profile.login,
            'name': profile.name,
            'avatar_url': profile.avatar_url,
            'current_xp': profile.current_xp,
            'level': current.id,
            'level_name': current.name,
            'level_icon': current.icon,
            'title': profile.title,
            'next_level': upcoming.id if upcoming else None,
            'next_level_xp': upcoming.required_xp if upcoming else None,
            'level_progress': percent,
            'streak': profile.streak,
            'longest_streak': profile.longest_streak,
            'badges': profile.badges,
            'selected_badges': profile.selected_badges,
            'joined_at': format_timestamp(profile.joined_at),
            'last_active': format_timestamp(profile.last_active),
        }

    def set_title(self, user_id: int, title: str) -> UserProfile:
        """Pick a display title: one of the flavour titles or an unlocked level name."""
        profile = self.store.get_profile(user_id)
        if profile is None:
            raise ValueError(f"No profile for user {user_id}")
        unlocked = [level.name for level in LEVELS if level.id <= profile.level]
        if title not in TITLES and title not in unlocked:
            raise ValueError(f"Title '{title}' is not available")
        profile.title = title
        self.store.set_profile_title(user_id, title)
        return profile

    # ------------------------------------------------------------------
    # XP
    # ------------------------------------------------------------------

    def _award(self, profile: UserProfile, xp: int, activity_type: str, reference,
               occurred_at: datetime = None, last_active: datetime = None, **details) -> bool:
        """Log an activity and add its XP to the stored profile.

        The in-memory profile picks up the new XP total and level.

        Returns:
            True if the activity was new and XP was added
        """
        occurred_at = occurred_at or utcnow()
        key = activity_key(activity_type, profile.userid, reference)
        if not xp:
            return self.store.record_activity(key, profile.userid, activity_type, occurred_at,
                                              login=profile.login, **details)

        total = self.store.record_activity_and_award(
            key, profile.userid, activity_type, occurred_at, xp,
            last_active=last_active, login=profile.login, **details
        )
        if total is None:
            return False

        profile.current_xp = total
        if last_active and (profile.last_active is None or last_active > profile.last_active):
            profile.last_active = last_active
        logging.debug(f"Awarded {xp} XP to {profile.login} for {activity_type} ({reference})")
        self._raise_level(profile, occurred_at)
        return True

    def _raise_level(self, profile: UserProfile, occurred_at: datetime = None) -> bool:
        """Bring the stored level up to the profile's XP and notify on a level-up."""
        level = calculate_level(profile.current_xp)
        if not self.store.raise_profile_level(profile.userid, level.id, level.name, TITLES):
            return False

        profile.level = level.id
        if profile.title not in TITLES:
            profile.title = level.name
        logging.info(f"{profile.login} reached level {level.id} ({level.name})")
        self.store.add_notification(Notification(
            id='',
            userid=profile.userid,
            type='level_up',
            title=f"Level Up! You're now level {level.id}",
            message=f"Congratulations! You've reached level {level.id}: {level.name}",
            data={'level': level.id, 'name': level.name},
            created_at=occurred_at,
        ))
        return True

    def award_xp(self, user_id: int, xp: int, activity_type: str, reference,
                 occurred_at: datetime = None, **details) -> bool:
        """Award XP for an activity unless it was already logged.

        Args:
            user_id: User receiving the XP
            xp: Amount of XP
            activity_type: Kind of activity, e.g. review or achievement
            reference: Identifier of the activity within its type
            occurred_at: When the activity happened
            **details: Extra activity log columns (repository, pr_number, ...)

        Returns:
            True if XP was awarded, False if the user is unknown or the activity was a replay
        """
        profile = self.store.get_profile(user_id)
        if profile is None:
            logging.warning(f"Cannot award XP to unknown user {user_id}")
            return False
        return self._award(profile, xp, activity_type, reference, occurred_at,
                           last_active=occurred_at, **details)

    def record_review_activity(self, review: Review, pull_request: PullRequest = None) -> bool:
        """Log a submitted review and award its XP once."""
        if review.submitted_at is None or review.state == 'PENDING':
            return False
        return self.award_xp(
            review.user_id,
            xp_for_review(review.state),
            'review',
            review.id,
            occurred_at=review.submitted_at,
            review_state=review.state,
            repository=pull_request.repository if pull_request else None,
            pr_number=pull_request.number if pull_request else None,
            review_id=review.id,
        )

    def record_pr_activity(self, pull_request: PullRequest, action: str, occurred_at: datetime = None) -> bool:
        """Log a pull request event (opened, closed, reopened); these carry no XP."""
        occurred_at = occurred_at or pull_request.updated_at or utcnow()
        return self.store.record_activity(
            activity_key(f"pr_{action}", pull_request.user_id, f"{pull_request.id}:{format_timestamp(occurred_at)}"),
            pull_request.user_id,
            f"pr_{action}",
            occurred_at,
            login=pull_request.user_login,
            repository=pull_request.repository,
            pr_number=pull_request.number,
        )

    def record_opened_pr(self, pull_request: PullRequest) -> bool:
        """Log that a user opened a pull request, once per pull request."""
        return self.store.record_activity(
            activity_key('opened_pr', pull_request.user_id, pull_request.id),
            pull_request.user_id,
            'opened_pr',
            pull_request.created_at,
            login=pull_request.user_login,
            repository=pull_request.repository,
            pr_number=pull_request.number,
        )

    # ------------------------------------------------------------------
    # Achievements and streaks
    # ------------------------------------------------------------------

    def update_streak(self, profile: UserProfile, current_streak: int, longest_streak: int,
                      last_review_at: datetime = None) -> List[int]:
        """Store the streak on the profile and pay out streak XP.

        Every day that extends the current streak earns the daily streak bonus,
        and each full week of the streak earns a milestone bonus plus a
        notification. Both are logged per calendar day, so they are paid once.

        Returns:
            Streak lengths at which a milestone was newly reached
        """
        profile.streak = current_streak
        profile.longest_streak = max(profile.longest_streak, longest_streak, current_streak)

        milestones = []
        if current_streak < 2 or last_review_at is None:
            return milestones

        last_day = last_review_at.date()
        for offset in range(current_streak - 1):
            day = last_day - timedelta(days=offset)
            length = current_streak - offset
            occurred_at = datetime.combine(day, last_review_at.timetz())
            self._award(profile, XP_REWARDS['DAILY_STREAK'], 'daily_streak', day.isoformat(), occurred_at)

            if length % STREAK_MILESTONE_DAYS == 0 and \
                    self._award(profile, STREAK_MILESTONE_XP, 'streak_milestone', day.isoformat(), occurred_at):
                milestones.append(length)
                self.store.add_notification(Notification(
                    id='',
                    userid=profile.userid,
                    type='streak',
                    title=f"{length} Day Streak!",
                    message=f"You've been reviewing for {length} days in a row. Keep it up!",
                    data={'streak': length},
                    created_at=occurred_at,
                ))
        return milestones

    def refresh_user(self, user_id: int, now: datetime = None, pull_requests: List[PullRequest] = None,
                     reviews: List[Review] = None) -> List[str]:
        """Re-evaluate achievements, streak and level for one user.

        Args:
            user_id: User to refresh
            now: Reference time; stamped on newly earned achievements
            pull_requests: Preloaded pull requests (loaded from the store when omitted)
            reviews: Preloaded reviews (loaded from the store when omitted)

        Returns:
            Ids of achievements earned by this refresh
        """
        now = now or utcnow()
        profile = self.store.get_profile(user_id)
        if profile is None:
            logging.debug(f"No profile for user {user_id}, skipping refresh")
            return []

        if pull_requests is None:
            pull_requests = self.store.list_pull_requests(self.organization)
        if reviews is None:
            reviews = self.store.list_reviews(self.organization, user_id=user_id)

        snapshot = build_activity_snapshot(user_id, pull_requests, reviews, now)
        existing = self.store.get_user_achievements(user_id)
        evaluated = evaluate_achievements(snapshot, ACHIEVEMENTS, existing, now)

        changed = changed_progress(existing, evaluated)
        if changed:
            self.store.save_user_achievements(user_id, changed)

        earned = newly_completed(existing, evaluated)
        for achievement_id in earned:
            achievement = ACHIEVEMENTS_BY_ID[achievement_id]
            if self._award(profile, XP_REWARDS['ACHIEVEMENT'], 'achievement', achievement_id, now):
                logging.info(f"{profile.login} earned achievement '{achievement.name}'")
                self.store.add_notification(Notification(
                    id='',
                    userid=user_id,
                    type='achievement',
                    title=f"Achievement Unlocked: {achievement.name}",
                    message=achievement.description,
                    data={'achievement_id': achievement_id, 'tier': achievement.tier},
                    created_at=now,
                ))

        profile.badges = [a.id for a in ACHIEVEMENTS if evaluated[a.id].is_complete]
        self.update_streak(profile, snapshot.current_streak, snapshot.longest_streak, snapshot.last_review_at)
        if snapshot.last_review_at and (profile.last_active is None or snapshot.last_review_at > profile.last_active):
            profile.last_active = snapshot.last_review_at
        self.store.update_profile_activity(profile)
        self._raise_level(profile, now)
        return earned

    def refresh_all(self, now: datetime = None) -> Dict[int, List[str]]:
        """Refresh every organization member; failures for one user do not stop the rest."""
        now = now or utcnow()
        users = self.store.list_users(self.organization)
        pull_requests = self.store.list_pull_requests(self.organization)
        reviews = self.store.list_reviews(self.organization)

        results = {}
        for user in users:
            try:
                results[user.id] = self.refresh_user(user.id, now, pull_requests, reviews)
            except Exception as e:
                logging.error(f"Error refreshing gamification for {user.login}: {e}", exc_info=True)

        earned = sum(len(ids) for ids in results.values())
        logging.info(f"Refreshed gamification for {len(results)} users ({earned} new achievements)")
        return results

    def get_user_achievements(self, user_id: int, range_value: str = 'all', now: datetime = None) -> List[Dict]:
        """Merge the catalog with a user's stored progress.

        For any range other than 'all' only achievements earned inside the
        window are returned. Incomplete secret achievements are masked.
        """
        stored = self.store.get_user_achievements(user_id)
        window = time_range(range_value, now) if range_value != 'all' else None

        results = []
        for achievement in ACHIEVEMENTS:
            progress = stored.get(achievement.id) or AchievementProgress(achievement.id, 0, False)
            if window is not None and not (progress.is_complete and window.contains(progress.earned_at)):
                continue

            hidden = achievement.is_secret and not progress.is_complete
            results.append({
                'id': achievement.id,
                'name': '???' if hidden else achievement.name,
                'description': 'Secret achievement' if hidden else achievement.description,
                'icon': achievement.icon,
                'category': achievement.category,
                'tier': achievement.tier,
                'required_value': achievement.required_value,
                'is_secret': achievement.is_secret,
                'progress': progress.progress,
                'is_complete': progress.is_complete,
                'earned_at': format_timestamp(progress.earned_at),
            })
        return results
