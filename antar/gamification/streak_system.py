"""
Streak Calculation

Streaks are derived from completion dates rather than stored counters:
- current streak: consecutive days ending today (or yesterday, so a streak
  is not lost before the user has had a chance to complete today)
- max streak: longest run of consecutive days in any set of dates
- milestones: exact day counts that award one-time bonus XP
"""

from datetime import date, timedelta
from typing import Iterable, Optional

from antar.gamification.xp_system import get_streak_bonus_xp


def calculate_streak(completion_dates: Iterable[date], today: Optional[date] = None) -> int:
    """
    Count consecutive completion days ending today or yesterday

    Args:
        completion_dates: Dates a habit was completed (any order, duplicates allowed)
        today: Reference date (defaults to date.today())

    Returns:
        Current streak length, 0 if the last completion is older than yesterday
    """
    if today is None:
        today = date.today()

    unique = {d for d in completion_dates if d <= today}
    if not unique:
        return 0

    latest = max(unique)
    if (today - latest).days > 1:
        return 0

    streak = 0
    expected = latest
    while expected in unique:
        streak += 1
        expected -= timedelta(days=1)

    return streak


def calculate_max_streak(completion_dates: Iterable[date]) -> int:
    """Longest run of consecutive days in a set of completion dates"""
    ordered = sorted(set(completion_dates))

    max_streak = 0
    run = 0
    previous = None

    for current in ordered:
        if previous is not None and (current - previous).days == 1:
            run += 1
        else:
            run = 1
        max_streak = max(max_streak, run)
        previous = current

    return max_streak


def completion_rate_since(total_completions: int, started: date, today: Optional[date] = None) -> float:
    """
    Share of days since a habit was created on which it was completed (0-100)

    The creation day counts, so a habit created and completed today is at 100.
    """
    if today is None:
        today = date.today()

    days_active = max((today - started).days + 1, 1)
    return min(total_completions / days_active * 100, 100.0)


def streak_milestone_message(streak_days: int) -> Optional[str]:
    """Toast text for a milestone streak, None for any other length"""
    bonus = get_streak_bonus_xp(streak_days)
    if not bonus:
        return None
    return f"🏆 {streak_days}-day streak! +{bonus} XP"

