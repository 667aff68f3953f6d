"""XP, levels, achievements and team challenges."""

from .achievements import ACHIEVEMENTS, LEVELS, TITLES, XP_REWARDS
from .evaluator import calculate_level, evaluate_achievements, level_progress, xp_for_review
from .service import GamificationService
from .challenges import classify_challenges, progress_percentage, refresh_challenges, time_remaining

__all__ = [
    'ACHIEVEMENTS',
    'LEVELS',
    'TITLES',
    'XP_REWARDS',
    'calculate_level',
    'evaluate_achievements',
    'level_progress',
    'xp_for_review',
    'GamificationService',
    'classify_challenges',
    'progress_percentage',
    'refresh_challenges',
    'time_remaining',
]
