"""
Database queries grouped by domain

Every query takes the Database handle as its first argument; there is no
module-level connection.

Module organization:
- profiles.py: Profiles, XP and level persistence, XP ledger
- habits.py: Habits, completions, streak counters
- achievements.py: Achievement definitions and unlocks
- leaderboard.py: Cross-user rows feeding the leaderboards
"""

from antar.db.queries import achievements, habits, leaderboard, profiles

__all__ = ["achievements", "habits", "leaderboard", "profiles"]
