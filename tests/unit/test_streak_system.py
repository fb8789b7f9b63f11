"""Unit tests for streak calculation (antar/gamification/streak_system.py)"""
import pytest
from datetime import date, timedelta

from antar.gamification.streak_system import (
    calculate_streak,
    calculate_max_streak,
    completion_rate_since,
    streak_milestone_message,
)

TODAY = date(2024, 5, 15)


def _days_back(*offsets: int) -> list[date]:
    return [TODAY - timedelta(days=offset) for offset in offsets]


# ============================================================================
# Current Streak
# ============================================================================

def test_streak_no_completions():
    assert calculate_streak([], today=TODAY) == 0


def test_streak_completed_today_only():
    assert calculate_streak(_days_back(0), today=TODAY) == 1


def test_streak_consecutive_days_ending_today():
    assert calculate_streak(_days_back(0, 1, 2, 3), today=TODAY) == 4


def test_streak_survives_until_today_is_completed():
    """A streak ending yesterday is still current"""
    assert calculate_streak(_days_back(1, 2, 3), today=TODAY) == 3


def test_streak_broken_by_missed_day():
    assert calculate_streak(_days_back(2, 3, 4), today=TODAY) == 0


def test_streak_stops_at_gap():
    assert calculate_streak(_days_back(0, 1, 3, 4, 5), today=TODAY) == 2


def test_streak_ignores_duplicates_and_order():
    dates = _days_back(2, 0, 1, 0, 2)
    assert calculate_streak(dates, today=TODAY) == 3


def test_streak_ignores_future_dates():
    dates = _days_back(0, 1) + [TODAY + timedelta(days=1)]
    assert calculate_streak(dates, today=TODAY) == 2


def test_streak_across_month_boundary():
    today = date(2024, 3, 2)
    dates = [date(2024, 2, 28), date(2024, 2, 29), date(2024, 3, 1), date(2024, 3, 2)]
    assert calculate_streak(dates, today=today) == 4


# ============================================================================
# Max Streak
# ============================================================================

def test_max_streak_empty():
    assert calculate_max_streak([]) == 0


def test_max_streak_single_day():
    assert calculate_max_streak(_days_back(10)) == 1


def test_max_streak_finds_longest_run():
    dates = _days_back(0, 1, 5, 6, 7, 8, 20)
    assert calculate_max_streak(dates) == 4


def test_max_streak_never_below_current():
    dates = _days_back(0, 1, 2, 9)
    assert calculate_max_streak(dates) >= calculate_streak(dates, today=TODAY)


# ============================================================================
# Completion Rate
# ============================================================================

def test_completion_rate_created_today():
    assert completion_rate_since(1, TODAY, today=TODAY) == 100.0


def test_completion_rate_partial():
    started = TODAY - timedelta(days=9)
    assert completion_rate_since(5, started, today=TODAY) == pytest.approx(50.0)


def test_completion_rate_capped():
    assert completion_rate_since(20, TODAY, today=TODAY) == 100.0


# ============================================================================
# Milestones
# ============================================================================

def test_milestone_message_for_milestone():
    assert streak_milestone_message(7) == "🏆 7-day streak! +50 XP"


def test_milestone_message_for_other_lengths():
    assert streak_milestone_message(6) is None
    assert streak_milestone_message(8) is None
