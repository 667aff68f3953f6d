"""Pure achievement, XP and level calculations."""

from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from ..models import Achievement, AchievementProgress, ActivitySnapshot, Level
from .achievements import ACHIEVEMENTS, LEVELS, XP_REWARDS


def category_value(achievement: Achievement, snapshot: ActivitySnapshot) -> int:
    """Return the snapshot figure an achievement's category is measured by."""
    category = achievement.category
    if category == 'review_count':
        return snapshot.total_reviewed
    if category == 'approval_count':
        return snapshot.approved
    if category == 'changes_requested_count':
        return snapshot.changes_requested
    if category == 'comment_count':
        return snapshot.commented
    if category == 'streak':
        return max(snapshot.current_streak, snapshot.longest_streak)
    if category == 'cross_team':
        return snapshot.repositories_reviewed
    if category == 'speed':
        return snapshot.fast_reviews

    # Special achievements each watch their own figure
    if achievement.id == 'first_review':
        return snapshot.total_reviewed
    if achievement.id == 'night_owl':
        return snapshot.night_reviews
    if achievement.id == 'weekend_warrior':
        return snapshot.weekend_pairs
    return 0


def evaluate_achievements(snapshot: ActivitySnapshot, catalog: Iterable[Achievement] = None,
                          existing: Dict[str, AchievementProgress] = None,
                          now: datetime = None) -> Dict[str, AchievementProgress]:
    """Evaluate every achievement of the catalog against a user's activity.

    Progress never decreases and completed achievements stay completed with
    their original earned_at, so re-running with the same inputs is a no-op.

    Args:
        snapshot: User activity figures
        catalog: Achievements to evaluate (defaults to the built-in catalog)
        existing: Previously stored progress by achievement id
        now: Timestamp stamped on newly completed achievements

    Returns:
        Dictionary mapping achievement id to its progress
    """
    catalog = ACHIEVEMENTS if catalog is None else catalog
    existing = existing or {}
    results = {}

    for achievement in catalog:
        previous = existing.get(achievement.id)
        progress = min(category_value(achievement, snapshot), achievement.required_value)

        if previous is not None and previous.is_complete:
            results[achievement.id] = AchievementProgress(
                achievement_id=achievement.id,
                progress=max(previous.progress, progress),
                is_complete=True,
                earned_at=previous.earned_at or now,
            )
            continue

        if previous is not None:
            progress = max(previous.progress, progress)

        is_complete = progress >= achievement.required_value
        results[achievement.id] = AchievementProgress(
            achievement_id=achievement.id,
            progress=progress,
            is_complete=is_complete,
            earned_at=now if is_complete else None,
        )

    return results


def newly_completed(before: Dict[str, AchievementProgress],
                    after: Dict[str, AchievementProgress]) -> List[str]:
    """Return ids that are complete in after but were not complete in before."""
    return [
        achievement_id for achievement_id, progress in after.items()
        if progress.is_complete and not (achievement_id in before and before[achievement_id].is_complete)
    ]


def changed_progress(before: Dict[str, AchievementProgress],
                     after: Dict[str, AchievementProgress]) -> List[AchievementProgress]:
    return [p for achievement_id, p in after.items() if before.get(achievement_id) != p]


def calculate_level(xp: int, levels: List[Level] = None) -> Level:
    """Return the highest level whose XP requirement is met."""
    levels = levels or LEVELS
    current = levels[0]
    for level in levels:
        if xp >= level.required_xp:
            current = level
    return current


def next_level(level: Level, levels: List[Level] = None) -> Optional[Level]:
    levels = levels or LEVELS
    for candidate in levels:
        if candidate.required_xp > level.required_xp:
            return candidate
    return None


def level_progress(xp: int) -> Tuple[Level, Optional[Level], int]:
    """Compute how far a user is towards the next level.

    Returns:
        Tuple of (current level, next level or None at the top, percent 0-100)
    """
    current = calculate_level(xp)
    upcoming = next_level(current)
    if upcoming is None:
        return current, None, 100
    span = upcoming.required_xp - current.required_xp
    percent = int((xp - current.required_xp) * 100 / span)
    return current, upcoming, max(0, min(100, percent))


def xp_for_review(state: str) -> int:
    """XP for one submitted review: the base reward plus a bonus for its state."""
    bonus = {
        'APPROVED': XP_REWARDS['APPROVAL'],
        'CHANGES_REQUESTED': XP_REWARDS['CHANGES_REQUESTED'],
        'COMMENTED': XP_REWARDS['COMMENT'],
    }
    return XP_REWARDS['REVIEW'] + bonus.get((state or '').upper(), 0)
