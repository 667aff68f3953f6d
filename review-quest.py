#!/usr/bin/env python3
"""
Review Quest
Tracks GitHub PR review activity of an organization and turns it into XP,
levels, achievements and team challenges.
"""

import sys

from review_quest.cli import main


if __name__ == "__main__":
    sys.exit(main())
