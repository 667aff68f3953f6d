"""Console and HTML reports for leaderboards, profiles and challenges."""

import os
from datetime import datetime
from html import escape
from typing import Dict, List

from .models import ReviewMetrics, TeamChallenge, TimeRange
from .gamification.challenges import progress_percentage, time_remaining


# ANSI color codes
GREEN = '\033[92m'
YELLOW = '\033[93m'
RED = '\033[91m'
CYAN = '\033[96m'
BOLD = '\033[1m'
RESET = '\033[0m'

TIER_COLORS = {
    'bronze': '#cd7f32',
    'silver': '#a8a9ad',
    'gold': '#d4af37',
    'platinum': '#7fb3d5',
}


class ReportFormatter:
    """Formats and prints review leaderboards, profiles and team challenges."""

    def __init__(self, organization: str, sort_by: str = 'total_reviewed'):
        """Initialize the report formatter.

        Args:
            organization: Organization the report covers
            sort_by: Metric the leaderboard is ordered by
        """
        self.organization = organization
        self.sort_by = sort_by

    # ------------------------------------------------------------------
    # Console
    # ------------------------------------------------------------------

    def print_leaderboard(self, metrics: List[ReviewMetrics], window: TimeRange):
        print("\n" + "="*80)
        print(f"REVIEW LEADERBOARD FOR {self.organization} ({window.label})")
        print("="*80)

        if not metrics:
            print("\nNo review activity found.")
            return

        print(f"\n{'#':<4} {'User':<22} {'Reviewed':<10} {'Approved':<10} {'Changes':<10} "
              f"{'Comments':<10} {'Assigned':<10} {'Opened':<8} {'Pending'}")
        print(f"{'-'*100}")

        for rank, m in enumerate(metrics, start=1):
            self._print_leaderboard_row(rank, m)

    def _print_leaderboard_row(self, rank: int, m: ReviewMetrics):
        # Pending reviews are the call to action
        if m.pending == 0:
            color = GREEN if m.total_reviewed else RESET
        elif m.pending < 3:
            color = YELLOW
        else:
            color = RED

        print(f"{color}{rank:<4} {m.login:<22} {m.total_reviewed:<10} {m.approved:<10} {m.changes_requested:<10} "
              f"{m.commented:<10} {m.assigned:<10} {m.opened:<8} {m.pending}{RESET}")

    def print_profile(self, profile: Dict, achievements: List[Dict]):
        print("\n" + "="*80)
        print(f"{BOLD}{profile['login']}{RESET} - {profile['title']}")
        print("="*80)
        print(f"Level {profile['level']} ({profile['level_name']}), {profile['current_xp']:,} XP")
        if profile['next_level']:
            print(f"  {profile['level_progress']}% of the way to level {profile['next_level']} "
                  f"({profile['next_level_xp']:,} XP)")
        print(f"Streak: {profile['streak']} days (longest {profile['longest_streak']})")

        earned = [a for a in achievements if a['is_complete']]
        print(f"\nAchievements ({len(earned)}/{len(achievements)}):")
        for a in achievements:
            if a['is_complete']:
                print(f"  {GREEN}✓ {a['name']:<28}{RESET} {a['description']}")
            else:
                print(f"  {CYAN}  {a['name']:<28}{RESET} {a['progress']}/{a['required_value']}")

    def print_challenges(self, groups: Dict[str, List[TeamChallenge]], now: datetime = None):
        print("\n" + "="*80)
        print("TEAM CHALLENGES")
        print("="*80)

        for name in ('active', 'upcoming', 'completed'):
            challenges = groups.get(name) or []
            print(f"\n{name.capitalize()} ({len(challenges)}):")
            for c in challenges:
                percent = progress_percentage(c.current_progress, c.goal)
                print(f"  {c.name:<30} {c.current_progress:g}/{c.goal:g} ({percent}%)  {time_remaining(c.end_date, now)}")

    # ------------------------------------------------------------------
    # HTML
    # ------------------------------------------------------------------

    def generate_html(self, metrics: List[ReviewMetrics], window: TimeRange, profiles: List[Dict] = None,
                      challenges: Dict[str, List[TeamChallenge]] = None) -> str:
        """Generate an HTML report.

        Args:
            metrics: Leaderboard rows, already sorted
            window: Time window of the metrics
            profiles: Profile dictionaries shown as level cards
            challenges: Classified team challenges

        Returns:
            HTML string containing the full report
        """
        if not metrics:
            return self._generate_empty_html(window)

        html_parts = [self._generate_html_header(window)]
        html_parts.append(self._generate_leaderboard_html(metrics))
        if profiles:
            html_parts.append(self._generate_profiles_html(profiles))
        if challenges:
            html_parts.append(self._generate_challenges_html(challenges))
        html_parts.append(self._generate_html_footer())
        return '\n'.join(html_parts)

    def save_html(self, metrics: List[ReviewMetrics], window: TimeRange, profiles: List[Dict] = None,
                  challenges: Dict[str, List[TeamChallenge]] = None, output_dir: str = None) -> str:
        """Generate and save the HTML report.

        Args:
            metrics: Leaderboard rows, already sorted
            window: Time window of the metrics
            profiles: Profile dictionaries shown as level cards
            challenges: Classified team challenges
            output_dir: Directory to save the HTML file (defaults to ./reports)

        Returns:
            Absolute path to the saved HTML file
        """
        html_content = self.generate_html(metrics, window, profiles, challenges)

        if output_dir is None:
            output_dir = os.path.join(os.getcwd(), 'reports')
        os.makedirs(output_dir, exist_ok=True)

        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
        filename = f'review_quest_{self.organization}_{window.value}_{timestamp}.html'
        filepath = os.path.join(output_dir, filename)

        with open(filepath, 'w', encoding='utf-8') as f:
            f.write(html_content)

        return os.path.abspath(filepath)

    def _generate_empty_html(self, window: TimeRange) -> str:
        html = self._generate_html_header(window)
        html += '<div class="no-data">No review activity found.</div>'
        html += self._generate_html_footer()
        return html

    def _generate_html_header(self, window: TimeRange) -> str:
        timestamp = datetime.now().strftime('%Y-%m-%d %H:%M:%S')
        org = escape(self.organization)
        return f'''<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Review Quest - {org}</title>
    <style>
        * {{ margin: 0; padding: 0; box-sizing: border-box; }}
        body {{
            font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, Oxygen, Ubuntu, Cantarell, sans-serif;
            line-height: 1.6;
            color: #333;
            background: linear-gradient(135deg, #667eea 0%, #764ba2 100%);
            padding: 20px;
            min-height: 100vh;
        }}
        .container {{
            max-width: 1400px;
            margin: 0 auto;
            background: white;
            border-radius: 12px;
            box-shadow: 0 20px 60px rgba(0, 0, 0, 0.3);
            padding: 40px;
        }}
        h1 {{ color: #667eea; margin-bottom: 10px; font-size: 2.5em; text-align: center; }}
        h2 {{
            color: #667eea;
            margin-top: 40px;
            margin-bottom: 20px;
            padding-bottom: 10px;
            border-bottom: 3px solid #667eea;
            font-size: 1.8em;
        }}
        .timestamp {{ text-align: center; color: #666; font-size: 0.9em; margin-bottom: 30px; }}
        table {{
            width: 100%;
            border-collapse: collapse;
            margin: 20px 0;
            border-radius: 8px;
            overflow: hidden;
            box-shadow: 0 2px 8px rgba(0, 0, 0, 0.1);
        }}
        thead {{ background: linear-gradient(135deg, #667eea 0%, #764ba2 100%); color: white; }}
        th {{ padding: 15px; text-align: left; font-weight: 600; text-transform: uppercase; font-size: 0.85em; }}
        td {{ padding: 12px 15px; border-bottom: 1px solid #f0f0f0; }}
        tbody tr:hover {{ background-color: #f8f9fa; }}
        .pending-high {{ color: #dc3545; font-weight: 600; }}
        .pending-low {{ color: #ffc107; font-weight: 600; }}
        .cards {{ display: flex; flex-wrap: wrap; gap: 15px; }}
        .card {{ flex: 1 1 250px; padding: 15px; background: #f8f9fa; border-left: 4px solid #667eea; border-radius: 4px; }}
        .progress {{ height: 8px; background: #e9ecef; border-radius: 4px; overflow: hidden; margin-top: 6px; }}
        .progress-bar {{ height: 100%; background: linear-gradient(135deg, #667eea 0%, #764ba2 100%); }}
        .badge {{ display: inline-block; padding: 2px 8px; margin: 2px; border-radius: 10px; color: white; font-size: 0.8em; }}
        .no-data {{ text-align: center; padding: 40px; color: #666; font-size: 1.2em; }}
    </style>
</head>
<body>
<div class="container">
    <h1>Review Quest - {org}</h1>
    <div class="timestamp">{escape(window.label)} &middot; generated {timestamp}</div>
'''

    def _generate_leaderboard_html(self, metrics: List[ReviewMetrics]) -> str:
        rows = []
        for rank, m in enumerate(metrics, start=1):
            pending_class = 'pending-high' if m.pending >= 3 else 'pending-low' if m.pending else ''
            rows.append(
                f'<tr><td>{rank}</td><td>{escape(m.login)}</td><td>{m.total_reviewed}</td>'
                f'<td>{m.approved}</td><td>{m.changes_requested}</td><td>{m.commented}</td>'
                f'<td>{m.assigned}</td><td>{m.opened}</td><td>{m.open_against}</td>'
                f'<td class="{pending_class}">{m.pending}</td></tr>'
            )
        return f'''    <h2>Leaderboard</h2>
    <table>
        <thead><tr><th>#</th><th>User</th><th>Reviewed</th><th>Approved</th><th>Changes</th>
        <th>Comments</th><th>Assigned</th><th>Opened</th><th>Open</th><th>Pending</th></tr></thead>
        <tbody>
        {''.join(rows)}
        </tbody>
    </table>
'''

    def _generate_profiles_html(self, profiles: List[Dict]) -> str:
        cards = []
        for p in profiles:
            badges = ''.join(
                f'<span class="badge" style="background: {TIER_COLORS.get(b.get("tier"), "#667eea")}">{escape(b["name"])}</span>'
                for b in p.get('earned', [])
            )
            cards.append(
                f'<div class="card"><strong>{escape(p["login"])}</strong> &middot; {escape(p["title"] or "")}<br>'
                f'Level {p["level"]} ({escape(p["level_name"])}), {p["current_xp"]:,} XP, '
                f'streak {p["streak"]}'
                f'<div class="progress"><div class="progress-bar" style="width: {p["level_progress"]}%"></div></div>'
                f'{badges}</div>'
            )
        return f'    <h2>Reviewers</h2>\n    <div class="cards">{"".join(cards)}</div>\n'

    def _generate_challenges_html(self, groups: Dict[str, List[TeamChallenge]]) -> str:
        sections = []
        for name in ('active', 'upcoming', 'completed'):
            for c in groups.get(name) or []:
                percent = progress_percentage(c.current_progress, c.goal)
                sections.append(
                    f'<div class="card"><strong>{escape(c.name)}</strong> ({name})<br>{escape(c.description)}<br>'
                    f'{c.current_progress:g}/{c.goal:g} &middot; {escape(time_remaining(c.end_date))}'
                    f'<div class="progress"><div class="progress-bar" style="width: {percent}%"></div></div></div>'
                )
        return f'    <h2>Team Challenges</h2>\n    <div class="cards">{"".join(sections)}</div>\n'

    def _generate_html_footer(self) -> str:
        return '''</div>
</body>
</html>'''
