"""
LeaderboardService - Leaderboard aggregation

Pulls raw rows across all users, folds them into per-user stats and hands
them to the scoring functions in antar.gamification.leaderboard.
"""

import logging
from collections import defaultdict
from datetime import datetime
from typing import Optional, Union

from antar.config import DEFAULT_LEADERBOARD_LIMIT, LEADERBOARD_TIMEZONE, RANK_LOOKUP_LIMIT
from antar.db.connection import Database
from antar.db.queries import leaderboard as leaderboard_queries
from antar.gamification.leaderboard import (
    calculate_leaderboard_score,
    calculate_period_score,
    get_leaderboard_date_range,
    parse_period,
    rank_entries,
)
from antar.gamification.streak_system import calculate_max_streak
from antar.models.leaderboard import (
    AllTimeStats,
    LeaderboardEntry,
    LeaderboardPeriod,
    PeriodLeaderboardEntry,
    PeriodStats,
)

logger = logging.getLogger(__name__)

# Period completion rate: completions per active day, scaled so 10/day saturates
PERIOD_RATE_SCALE = 10


def _display_name(profile: dict) -> str:
    return profile.get("username") or profile.get("full_name") or "Anonymous"


def aggregate_streak_rows(rows: list[dict]) -> dict[str, dict]:
    """
    Fold per-habit streak rows into per-user lifetime stats

    Returns:
        {user_id: {'current_streak': max, 'longest_streak': max,
                   'total_completions': sum, 'completion_rate': mean,
                   'habits_count': int}}
    """
    grouped: dict[str, list[dict]] = defaultdict(list)
    for row in rows:
        grouped[row["user_id"]].append(row)

    return {
        user_id: {
            "current_streak": max(r["current_streak"] for r in user_rows),
            "longest_streak": max(r["longest_streak"] for r in user_rows),
            "total_completions": sum(r["total_completions"] for r in user_rows),
            "completion_rate": sum(float(r["completion_rate"]) for r in user_rows) / len(user_rows),
            "habits_count": len(user_rows),
        }
        for user_id, user_rows in grouped.items()
    }


def aggregate_period_completions(completions: list[dict]) -> dict[str, PeriodStats]:
    """
    Fold completion events into per-user period stats

    avg_completion_rate is min(completions / active_days * 10, 100) and
    max_streak is the longest run of consecutive active days in the window.
    """
    grouped: dict[str, list[dict]] = defaultdict(list)
    for completion in completions:
        grouped[completion["user_id"]].append(completion)

    stats = {}
    for user_id, events in grouped.items():
        unique_dates = {e["completion_date"] for e in events}
        active_days = len(unique_dates) or 1
        stats[user_id] = PeriodStats(
            xp_earned=sum(e["xp_earned"] for e in events),
            completions=len(events),
            avg_completion_rate=min(len(events) / active_days * PERIOD_RATE_SCALE, 100.0),
            max_streak=calculate_max_streak(unique_dates),
        )
    return stats


class LeaderboardService:
    """Builds all-time and period leaderboards from the database"""

    def __init__(self, db: Database, tz_name: str = LEADERBOARD_TIMEZONE):
        self.db = db
        self.tz_name = tz_name
        logger.debug("LeaderboardService initialized")

    async def get_all_time_leaderboard(self, limit: int = DEFAULT_LEADERBOARD_LIMIT) -> list[LeaderboardEntry]:
        """
        Rank every user with at least one active habit

        Raises:
            ValidationError: Negative limit
        """
        user_stats = aggregate_streak_rows(await leaderboard_queries.get_all_streak_rows(self.db))

        user_ids = sorted(user_stats)
        profiles = await leaderboard_queries.get_profiles_by_ids(self.db, user_ids)
        achievement_counts = await leaderboard_queries.get_achievement_counts(self.db, user_ids)

        entries = []
        for profile in profiles:
            stats = user_stats[profile["id"]]
            all_time = AllTimeStats(
                total_xp=profile["total_xp"],
                current_streak=stats["current_streak"],
                longest_streak=stats["longest_streak"],
                completion_rate=min(stats["completion_rate"], 100.0),
                total_completions=stats["total_completions"],
                achievements_count=achievement_counts.get(profile["id"], 0),
            )
            entries.append(LeaderboardEntry(
                user_id=profile["id"],
                username=_display_name(profile),
                full_name=profile.get("full_name"),
                avatar_url=profile.get("avatar_url"),
                current_level=profile["current_level"],
                habits_count=stats["habits_count"],
                leaderboard_score=calculate_leaderboard_score(all_time),
                **all_time.model_dump(),
            ))

        ranked = rank_entries(entries, limit=limit)
        logger.info(f"All-time leaderboard: {len(ranked)} of {len(entries)} users")
        return ranked

    async def get_period_leaderboard(
        self,
        period: Union[LeaderboardPeriod, str],
        limit: int = DEFAULT_LEADERBOARD_LIMIT,
        now: Optional[datetime] = None
    ) -> list[PeriodLeaderboardEntry]:
        """
        Rank users by activity inside a daily, weekly or monthly window

        Users scoring 0 are left off the board. Days are counted in the
        service timezone, matching the local dates completions carry.

        Raises:
            ValidationError: all-time or unknown period, negative limit
        """
        window = get_leaderboard_date_range(period, now, self.tz_name)
        completions = await leaderboard_queries.get_completions_between(
            self.db, window.start.date(), window.end.date()
        )
        user_stats = aggregate_period_completions(completions)

        profiles = await leaderboard_queries.get_profiles_by_ids(self.db, sorted(user_stats))

        entries = [
            PeriodLeaderboardEntry(
                user_id=profile["id"],
                username=_display_name(profile),
                full_name=profile.get("full_name"),
                avatar_url=profile.get("avatar_url"),
                leaderboard_score=calculate_period_score(user_stats[profile["id"]]),
                **user_stats[profile["id"]].model_dump(),
            )
            for profile in profiles
        ]

        return rank_entries(entries, limit=limit, exclude_zero=True)

    async def get_leaderboard(
        self,
        period: Union[LeaderboardPeriod, str],
        limit: int = DEFAULT_LEADERBOARD_LIMIT,
        now: Optional[datetime] = None
    ) -> list[Union[LeaderboardEntry, PeriodLeaderboardEntry]]:
        """Leaderboard for any period, all-time included"""
        if parse_period(period) == LeaderboardPeriod.ALL_TIME:
            return await self.get_all_time_leaderboard(limit)
        return await self.get_period_leaderboard(period, limit, now)

    async def get_user_rank(
        self,
        user_id: str,
        period: Union[LeaderboardPeriod, str],
        now: Optional[datetime] = None
    ) -> Optional[Union[LeaderboardEntry, PeriodLeaderboardEntry]]:
        """The user's entry on the top-1000 board, or None if they aren't on it"""
        board = await self.get_leaderboard(period, RANK_LOOKUP_LIMIT, now)
        return next((entry for entry in board if entry.user_id == user_id), None)
