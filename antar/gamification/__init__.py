"""
Gamification rules for the habit tracker

- XP and leveling curve, pet growth
- Streaks and streak milestone bonuses
- Achievement criteria
- Leaderboard scoring and ranking

Everything here except achievement awarding is pure: stored totals in,
display numbers out.
"""

from antar.gamification.xp_system import calculate_level, level_progress, get_xp_for_difficulty
from antar.gamification.streak_system import calculate_streak, calculate_max_streak
from antar.gamification.achievement_system import check_and_award_achievements, evaluate_criteria
from antar.gamification.leaderboard import (
    calculate_leaderboard_score,
    calculate_period_score,
    rank_entries,
    get_leaderboard_date_range,
)

__all__ = [
    "calculate_level",
    "level_progress",
    "get_xp_for_difficulty",
    "calculate_streak",
    "calculate_max_streak",
    "check_and_award_achievements",
    "evaluate_criteria",
    "calculate_leaderboard_score",
    "calculate_period_score",
    "rank_entries",
    "get_leaderboard_date_range",
]
