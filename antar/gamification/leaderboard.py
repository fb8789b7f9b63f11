"""
Leaderboard Scoring

Turns per-user statistics into a single 0-100 score and a ranked list.

All-time score (lifetime aggregate):
    30% XP                (saturates at 5000 XP)
    20% current streak    (saturates at 50 days)
    10% longest streak    (saturates at ~67 days)
    20% completion rate   (already 0-100)
    10% total completions (saturates at 200)
    10% achievements      (saturates at 10)

Period score (rolling daily / weekly / monthly window):
    45% XP earned         (saturates at 1000 XP)
    30% completions       (saturates at 20)
    15% completion rate   (already 0-100)
    10% max streak        (saturates at 10 days)

Weights sum to 1.0 in both formulas, so scores are bounded by 100.
"""

import math
from datetime import datetime, timedelta, timezone
from typing import Optional, Sequence, TypeVar, Union

from antar.exceptions import ValidationError
from antar.models.leaderboard import (
    AllTimeStats,
    DateRange,
    LeaderboardEntry,
    LeaderboardPeriod,
    PeriodLeaderboardEntry,
    PeriodStats,
)
from antar.utils.datetime_helpers import get_zone

Entry = TypeVar("Entry", LeaderboardEntry, PeriodLeaderboardEntry)

MAX_COMPONENT_SCORE = 100.0

PERIOD_WINDOWS = {
    LeaderboardPeriod.WEEKLY: timedelta(days=7),
    LeaderboardPeriod.MONTHLY: timedelta(days=30),
}

PERIOD_DISPLAY_NAMES = {
    LeaderboardPeriod.DAILY: "Today",
    LeaderboardPeriod.WEEKLY: "This Week",
    LeaderboardPeriod.MONTHLY: "This Month",
    LeaderboardPeriod.ALL_TIME: "All Time",
}


def _cap(value: float) -> float:
    return min(value, MAX_COMPONENT_SCORE)


def round_score(score: float) -> float:
    """Round to one decimal place, halves rounding up"""
    return math.floor(score * 10 + 0.5) / 10


def calculate_leaderboard_score(stats: AllTimeStats) -> float:
    """
    Calculate the all-time leaderboard score

    Each metric is normalized to 0-100 (saturating, never wrapping) and
    combined with a weighted sum.
    """
    xp_score = _cap(stats.total_xp / 50)
    streak_score = _cap(stats.current_streak * 2)
    longest_streak_score = _cap(stats.longest_streak * 1.5)
    completion_score = stats.completion_rate
    completions_score = _cap(stats.total_completions / 2)
    achievement_score = _cap(stats.achievements_count * 10)

    score = (
        xp_score * 0.3
        + streak_score * 0.2
        + longest_streak_score * 0.1
        + completion_score * 0.2
        + completions_score * 0.1
        + achievement_score * 0.1
    )

    return round_score(score)


def calculate_period_score(stats: PeriodStats) -> float:
    """Calculate the score for a daily, weekly or monthly leaderboard"""
    xp_score = _cap(stats.xp_earned / 10)
    completion_score = _cap(stats.completions * 5)
    rate_score = stats.avg_completion_rate
    streak_score = _cap(stats.max_streak * 10)

    score = (
        xp_score * 0.45
        + completion_score * 0.30
        + rate_score * 0.15
        + streak_score * 0.10
    )

    return round_score(score)


def rank_entries(
    entries: Sequence[Entry],
    limit: Optional[int] = None,
    exclude_zero: bool = False
) -> list[Entry]:
    """
    Sort scored entries and assign 1-based ranks

    Equal scores are ordered by user_id so the ranking does not depend on
    the order rows came back from the database.

    Args:
        entries: Scored entries (rank is ignored)
        limit: Keep only the top N after ranking (None keeps all)
        exclude_zero: Drop entries scoring exactly 0 (period boards)

    Returns:
        New entries with rank set, best first
    """
    if limit is not None and limit < 0:
        raise ValidationError("Limit must be non-negative", field="limit", value=limit)

    candidates = [e for e in entries if not (exclude_zero and e.leaderboard_score == 0)]
    ordered = sorted(candidates, key=lambda e: (-e.leaderboard_score, e.user_id))

    ranked = [
        entry.model_copy(update={"rank": position})
        for position, entry in enumerate(ordered, start=1)
    ]

    if limit is not None:
        ranked = ranked[:limit]

    return ranked


def parse_period(period: Union[LeaderboardPeriod, str]) -> LeaderboardPeriod:
    """Coerce a period string to the enum, raising ValidationError if unknown"""
    try:
        return LeaderboardPeriod(period)
    except ValueError:
        raise ValidationError(
            "Period must be one of all-time, daily, weekly, monthly",
            field="period",
            value=period
        )


def get_leaderboard_date_range(
    period: Union[LeaderboardPeriod, str],
    now: Optional[datetime] = None,
    tz_name: Optional[str] = None
) -> DateRange:
    """
    Resolve a rolling window for a period leaderboard

    - daily: local midnight of the current day through now
    - weekly: now minus 7 days through now
    - monthly: now minus 30 days through now

    Both ends are expressed in tz_name, so their .date() matches the local
    calendar dates completions are stored under.

    Args:
        period: daily, weekly or monthly
        now: Reference time (defaults to current UTC time, naive means UTC)
        tz_name: IANA zone the board's days are counted in (default UTC)

    Raises:
        ValidationError: For all-time or an unknown period
    """
    resolved = parse_period(period)
    if now is None:
        now = datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    now = now.astimezone(get_zone(tz_name))

    if resolved == LeaderboardPeriod.DAILY:
        start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    elif resolved in PERIOD_WINDOWS:
        start = now - PERIOD_WINDOWS[resolved]
    else:
        raise ValidationError(
            "All-time leaderboards have no date range",
            field="period",
            value=resolved.value
        )

    return DateRange(start=start, end=now)


def get_rank_icon(rank: int) -> str:
    """Medal or badge for a rank"""
    if rank == 1:
        return "🥇"
    if rank == 2:
        return "🥈"
    if rank == 3:
        return "🥉"
    if rank <= 10:
        return "⭐"
    if rank <= 50:
        return "✨"
    return "🎯"


def format_score(score: float) -> str:
    return f"{score:.1f}"


def get_period_display_name(period: Union[LeaderboardPeriod, str]) -> str:
    return PERIOD_DISPLAY_NAMES[parse_period(period)]
