"""Command line interface."""

import os
import sys
import logging
import argparse
from typing import List, Optional
from datetime import datetime, timedelta

from dotenv import load_dotenv

from .config import Settings
from .cron import run_scheduled_sync
from .gamification.challenges import CHALLENGE_TYPES, classify_challenges, create_challenge
from .gamification.service import GamificationService
from .metrics import DEFAULT_TIME_RANGE, SORT_FIELDS, TIME_RANGES, compute_review_metrics, leaderboard, time_range
from .models import parse_timestamp
from .output import ReportFormatter
from .server import create_app
from .store import Store
from .sync.core import GitHubSync


def configure_logging():
    """Configure root logging (can be overridden by LOG_LEVEL environment variable)."""
    log_level = os.environ.get('LOG_LEVEL', 'INFO').upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format='%(asctime)s %(levelname)s: %(message)s',
        datefmt='%m/%d/%Y %I:%M:%S %p'
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='review-quest', description="Gamified GitHub PR review tracking.")
    subparsers = parser.add_subparsers(dest='command', required=True)

    sync = subparsers.add_parser('sync', help="Sync GitHub data into the store.")
    mode = sync.add_mutually_exclusive_group()
    mode.add_argument('--historical', action='store_true', help="Sync the past year.")
    mode.add_argument('--incremental', action='store_true', help="Sync changes since the last sync.")
    mode.add_argument('--scheduled', action='store_true', help="Pick historical or incremental like the cron job (default).")

    board = subparsers.add_parser('leaderboard', help="Print the review leaderboard.")
    board.add_argument('--range', default=DEFAULT_TIME_RANGE, choices=list(TIME_RANGES))
    board.add_argument('--sort', default='total_reviewed', choices=SORT_FIELDS)

    profile = subparsers.add_parser('profile', help="Print a reviewer's level and achievements.")
    profile.add_argument('user', help="GitHub login or user id.")
    profile.add_argument('--range', default='all', choices=list(TIME_RANGES))

    report = subparsers.add_parser('report', help="Write an HTML report.")
    report.add_argument('--range', default=DEFAULT_TIME_RANGE, choices=list(TIME_RANGES))
    report.add_argument('--sort', default='total_reviewed', choices=SORT_FIELDS)
    report.add_argument('--output-dir', help="Directory for the report (defaults to ./reports).")

    subparsers.add_parser('challenges', help="List team challenges.")

    add = subparsers.add_parser('add-challenge', help="Create a team challenge.")
    add.add_argument('name')
    add.add_argument('--type', required=True, choices=CHALLENGE_TYPES)
    add.add_argument('--goal', required=True, type=float)
    add.add_argument('--start', required=True, help="Start date, YYYY-MM-DD or ISO timestamp.")
    add.add_argument('--end', required=True, help="End date (inclusive), YYYY-MM-DD or ISO timestamp.")
    add.add_argument('--description', default='')
    add.add_argument('--reward', default='')

    title = subparsers.add_parser('title', help="Choose a reviewer's display title.")
    title.add_argument('user', help="GitHub login or user id.")
    title.add_argument('title', help="A flavour title or an unlocked level name.")

    serve = subparsers.add_parser('serve', help="Run the HTTP service.")
    serve.add_argument('--host', default='127.0.0.1')
    serve.add_argument('--port', type=int, default=5000)

    return parser


def _find_user_id(store: Store, organization: str, user: str) -> Optional[int]:
    if user.isdigit():
        return int(user)
    for candidate in store.list_users(organization):
        if candidate.login.lower() == user.lower():
            return candidate.id
    return None


def _sorted_metrics(store: Store, organization: str, range_value: str, sort_by: str):
    window = time_range(range_value)
    metrics = compute_review_metrics(
        store.list_users(organization),
        store.list_pull_requests(organization),
        store.list_reviews(organization),
        window,
    )
    return leaderboard(metrics, sort_by), window


def run_sync(args, settings: Settings, store: Store) -> int:
    sync = GitHubSync.from_settings(settings, store)
    if args.historical:
        summary = sync.sync_historical()
    elif args.incremental:
        summary = sync.sync_incremental()
    else:
        summary = run_scheduled_sync(sync)['summary']

    print(f"\nSynced {summary['repositories']} repositories, {summary['pull_requests']} PRs, "
          f"{summary['reviews']} reviews")
    if summary['failed']:
        print(f"Failed repositories: {', '.join(summary['failed'])}")
    return 0


def run_leaderboard(args, settings: Settings, store: Store) -> int:
    metrics, window = _sorted_metrics(store, settings.organization, args.range, args.sort)
    ReportFormatter(settings.organization, args.sort).print_leaderboard(metrics, window)
    return 0


def run_profile(args, settings: Settings, store: Store) -> int:
    user_id = _find_user_id(store, settings.organization, args.user)
    gamification = GamificationService(store, settings.organization)
    profile = gamification.get_user_profile(user_id) if user_id is not None else None
    if profile is None:
        logging.error(f"Unknown user '{args.user}'")
        return 1

    achievements = gamification.get_user_achievements(user_id, args.range)
    ReportFormatter(settings.organization).print_profile(profile, achievements)
    return 0


def run_report(args, settings: Settings, store: Store) -> int:
    metrics, window = _sorted_metrics(store, settings.organization, args.range, args.sort)
    gamification = GamificationService(store, settings.organization)

    profiles = []
    for m in metrics:
        profile = gamification.get_user_profile(m.user_id)
        if profile is None:
            continue
        profile['earned'] = [a for a in gamification.get_user_achievements(m.user_id) if a['is_complete']]
        profiles.append(profile)

    challenges = classify_challenges(store.list_challenges(settings.organization))
    formatter = ReportFormatter(settings.organization, args.sort)
    filepath = formatter.save_html(metrics, window, profiles, challenges, args.output_dir)
    print(f"\nHTML report saved to: {filepath}")
    return 0


def run_challenges(args, settings: Settings, store: Store) -> int:
    groups = classify_challenges(store.list_challenges(settings.organization))
    ReportFormatter(settings.organization).print_challenges(groups)
    return 0


def _parse_end(value: str) -> datetime:
    """A date-only end covers that whole day."""
    end = parse_timestamp(value)
    if len(value) == 10:
        end += timedelta(days=1, seconds=-1)
    return end


def run_add_challenge(args, settings: Settings, store: Store) -> int:
    challenge = create_challenge(
        store, settings.organization, args.name, args.type, args.goal,
        parse_timestamp(args.start), _parse_end(args.end),
        description=args.description, reward=args.reward,
    )
    print(f"Created challenge {challenge.id}: {challenge.name}")
    return 0


def run_title(args, settings: Settings, store: Store) -> int:
    user_id = _find_user_id(store, settings.organization, args.user)
    if user_id is None:
        logging.error(f"Unknown user '{args.user}'")
        return 1

    profile = GamificationService(store, settings.organization).set_title(user_id, args.title)
    print(f"{profile.login} is now known as {profile.title}")
    return 0


def run_serve(args, settings: Settings, store: Store) -> int:
    app = create_app(settings, store)
    app.run(host=args.host, port=args.port)
    return 0


COMMANDS = {
    'sync': run_sync,
    'leaderboard': run_leaderboard,
    'profile': run_profile,
    'report': run_report,
    'challenges': run_challenges,
    'add-challenge': run_add_challenge,
    'title': run_title,
    'serve': run_serve,
}


def main(argv: List[str] = None) -> int:
    """Main entry point for the command line."""
    # Load environment variables from .env file if it exists
    load_dotenv()
    configure_logging()

    args = build_parser().parse_args(argv)
    settings = Settings.from_env(dotenv=False)
    if not settings.organization:
        logging.error("GitHub organization is required. Set GITHUB_ORG in the environment or .env file.")
        return 1

    store = Store(settings.database_url)
    try:
        store.ensure_tables()
        return COMMANDS[args.command](args, settings, store)
    except ValueError as e:
        logging.error(str(e))
        return 1
    finally:
        store.close()


if __name__ == '__main__':
    sys.exit(main())
