"""
Runtime configuration for Review Quest.

Settings come from environment variables, optionally loaded from a .env
file in the working directory.
"""

import os
import logging
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


DEFAULT_DATABASE_URL = 'sqlite:///review_quest.db'
DEFAULT_CACHE_FILE = '.review_quest_cache.json'


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None or not value.strip():
        return default
    value = value.strip().lower()
    if value in ('true', '1', 'yes'):
        return True
    if value in ('false', '0', 'no'):
        return False
    logging.warning(f"Invalid {name} value '{value}', using default: {default}")
    return default


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        logging.warning(f"Invalid {name} value '{value}', using default: {default}")
        return default


def _env_float(name: str, default: float) -> float:
    value = os.environ.get(name)
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        logging.warning(f"Invalid {name} value '{value}', using default: {default}")
        return default


def _env_str(name: str) -> Optional[str]:
    value = os.environ.get(name)
    if value is None:
        return None
    return value.strip() or None


@dataclass
class Settings:
    """Application settings."""
    github_token: Optional[str] = None
    organization: Optional[str] = None
    database_url: str = DEFAULT_DATABASE_URL
    cron_secret_token: Optional[str] = None
    webhook_secret: Optional[str] = None
    sync_batch_size: int = 5
    sync_batch_delay: float = 2.0
    staleness_hours: int = 8
    use_cache: bool = True
    cache_file: str = DEFAULT_CACHE_FILE

    @classmethod
    def from_env(cls, dotenv: bool = True) -> 'Settings':
        """Build settings from environment variables.

        Args:
            dotenv: Whether to load a .env file first

        Returns:
            Populated Settings instance
        """
        if dotenv:
            load_dotenv()

        batch_size = _env_int('SYNC_BATCH_SIZE', 5)
        if batch_size < 1:
            logging.warning(f"Invalid SYNC_BATCH_SIZE value '{batch_size}', using default: 5")
            batch_size = 5

        return cls(
            github_token=_env_str('GITHUB_TOKEN'),
            organization=_env_str('GITHUB_ORG'),
            database_url=_env_str('DATABASE_URL') or DEFAULT_DATABASE_URL,
            cron_secret_token=_env_str('CRON_SECRET_TOKEN'),
            webhook_secret=_env_str('GITHUB_WEBHOOK_SECRET'),
            sync_batch_size=batch_size,
            sync_batch_delay=max(0.0, _env_float('SYNC_BATCH_DELAY', 2.0)),
            staleness_hours=_env_int('STALENESS_HOURS', 8),
            use_cache=_env_bool('USE_CACHE', True),
            cache_file=_env_str('CACHE_FILE') or DEFAULT_CACHE_FILE,
        )

    def require_github(self):
        """Raise ValueError unless the GitHub token and organization are set."""
        if not self.github_token:
            raise ValueError("GitHub token is required. Set GITHUB_TOKEN in the environment or .env file.")
        if not self.organization:
            raise ValueError("GitHub organization is required. Set GITHUB_ORG in the environment or .env file.")
