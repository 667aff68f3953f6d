"""Achievement, level and title catalog."""

from typing import Dict, List

from ..models import Achievement, Level


ACHIEVEMENTS: List[Achievement] = [
    # Review count
    Achievement('review_count_bronze', 'Review Novice', 'Complete 10 PR reviews',
                'medal', 'review_count', 'bronze', 10),
    Achievement('review_count_silver', 'Review Enthusiast', 'Complete 50 PR reviews',
                'medal', 'review_count', 'silver', 50),
    Achievement('review_count_gold', 'Review Expert', 'Complete 100 PR reviews',
                'medal', 'review_count', 'gold', 100),
    Achievement('review_count_platinum', 'Review Master', 'Complete 500 PR reviews',
                'trophy', 'review_count', 'platinum', 500),

    # Approvals
    Achievement('approval_count_bronze', 'Approver Initiate', 'Approve 5 PRs',
                'check-circle', 'approval_count', 'bronze', 5),
    Achievement('approval_count_silver', 'Approver Adept', 'Approve 25 PRs',
                'check-circle', 'approval_count', 'silver', 25),
    Achievement('approval_count_gold', 'Approver Virtuoso', 'Approve 75 PRs',
                'check-circle', 'approval_count', 'gold', 75),

    # Changes requested
    Achievement('changes_requested_bronze', 'Code Guardian', 'Request changes on 5 PRs',
                'shield', 'changes_requested_count', 'bronze', 5),
    Achievement('changes_requested_silver', 'Code Sentinel', 'Request changes on 25 PRs',
                'shield', 'changes_requested_count', 'silver', 25),
    Achievement('changes_requested_gold', 'Code Defender', 'Request changes on 50 PRs',
                'shield', 'changes_requested_count', 'gold', 50),

    # Comments
    Achievement('comment_count_bronze', 'Helpful Commenter', 'Comment on 10 PRs',
                'message-circle', 'comment_count', 'bronze', 10),
    Achievement('comment_count_silver', 'Insightful Commenter', 'Comment on 50 PRs',
                'message-circle', 'comment_count', 'silver', 50),
    Achievement('comment_count_gold', 'Prolific Commenter', 'Comment on 100 PRs',
                'message-circle', 'comment_count', 'gold', 100),

    # Streaks
    Achievement('streak_bronze', 'Consistent Reviewer', 'Review PRs for 5 consecutive days',
                'flame', 'streak', 'bronze', 5),
    Achievement('streak_silver', 'Dedicated Reviewer', 'Review PRs for 10 consecutive days',
                'flame', 'streak', 'silver', 10),
    Achievement('streak_gold', 'Unstoppable Reviewer', 'Review PRs for 20 consecutive days',
                'flame', 'streak', 'gold', 20),

    # Cross-repository work
    Achievement('cross_team_bronze', 'Team Player', 'Review PRs from 3 different repositories',
                'users', 'cross_team', 'bronze', 3),
    Achievement('cross_team_silver', 'Collaborator', 'Review PRs from 5 different repositories',
                'users', 'cross_team', 'silver', 5),
    Achievement('cross_team_gold', 'Organization Ambassador', 'Review PRs from 10 different repositories',
                'users', 'cross_team', 'gold', 10),

    # Special
    Achievement('first_review', 'First Steps', 'Complete your first PR review',
                'star', 'special', 'bronze', 1),
    Achievement('speed_demon', 'Speed Demon', 'Review a PR within 30 minutes of assignment',
                'zap', 'speed', 'silver', 1),
    Achievement('night_owl', 'Night Owl', 'Review a PR after 10 PM',
                'moon', 'special', 'silver', 1, is_secret=True),
    Achievement('weekend_warrior', 'Weekend Warrior', 'Review PRs on both Saturday and Sunday',
                'calendar', 'special', 'gold', 1, is_secret=True),
]

ACHIEVEMENTS_BY_ID: Dict[str, Achievement] = {a.id: a for a in ACHIEVEMENTS}

LEVELS: List[Level] = [
    Level(1, 'Novice Reviewer', 0, 'user'),
    Level(2, 'Apprentice Reviewer', 100, 'user'),
    Level(3, 'Adept Reviewer', 300, 'shield'),
    Level(4, 'Expert Reviewer', 600, 'shield'),
    Level(5, 'Master Reviewer', 1000, 'award'),
    Level(6, 'Grandmaster Reviewer', 1500, 'award'),
    Level(7, 'Legendary Reviewer', 2500, 'crown'),
    Level(8, 'Mythic Reviewer', 4000, 'crown'),
    Level(9, 'Divine Reviewer', 6000, 'star'),
    Level(10, 'Transcendent Reviewer', 10000, 'star'),
]

# Flavour titles a user can pick for display
TITLES = [
    'Code Connoisseur', 'Bug Hunter', 'Syntax Sage', 'Logic Luminary', 'Algorithm Artisan',
    'Pattern Protector', 'Refactoring Royalty', 'Documentation Deity', 'Test Tactician',
    'Performance Prodigy', 'Security Sentinel', 'UI Virtuoso', 'Database Dynamo', 'API Architect',
    'Dependency Detective', 'Git Guardian', 'Merge Master', 'Pull Request Prodigy',
    'Commit Connoisseur', 'Branch Bard',
]

XP_REWARDS = {
    'REVIEW': 10,
    'APPROVAL': 15,
    'CHANGES_REQUESTED': 20,
    'COMMENT': 5,
    'ACHIEVEMENT': 50,
    'DAILY_STREAK': 5,
}

# Bonus paid on top of every full week of consecutive review days
STREAK_MILESTONE_DAYS = 7
STREAK_MILESTONE_XP = 25
