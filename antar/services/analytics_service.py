"""
AnalyticsService - Read-side user statistics

Dashboard headline numbers, completion counts over standard windows, the
completion history behind the analytics charts, XP summary and ledger, and
achievement progress.
"""

import logging
import math
from collections import Counter
from datetime import date, datetime, timedelta, timezone
from typing import Optional

from antar.db.connection import Database
from antar.db.queries import habits as habit_queries
from antar.db.queries import profiles as profile_queries
from antar.gamification.achievement_system import get_user_achievements
from antar.gamification.xp_system import level_progress
from antar.models.gamification import XPSummary, XPTransaction
from antar.models.habit import CompletionRecord
from antar.models.profile import (
    CompletionHistory,
    CompletionStats,
    DailyCount,
    DashboardStats,
    MoodEnergyPoint,
)
from antar.utils.datetime_helpers import (
    get_analytics_date_range,
    get_zone,
    now_utc,
    today_for_timezone,
)

logger = logging.getLogger(__name__)

WEEK_DAYS = 7
MONTH_DAYS = 30


def _percent(part: int, whole: int) -> int:
    """Percentage rounded half up, capped at 100 (0 when whole is 0)"""
    if not whole:
        return 0
    return min(math.floor(part / whole * 100 + 0.5), 100)


class AnalyticsService:
    """Service for dashboard and progress statistics"""

    def __init__(self, db: Database):
        self.db = db
        logger.debug("AnalyticsService initialized")

    async def _local_today(self, user_id: str, now: Optional[datetime]) -> tuple[Optional[dict], date]:
        profile = await profile_queries.get_profile(self.db, user_id)
        return profile, today_for_timezone(profile["timezone"] if profile else None, now or now_utc())

    async def get_dashboard_stats(self, user_id: str, now: Optional[datetime] = None) -> DashboardStats:
        """
        Headline numbers for the dashboard

        completion_rate is today's completions over active habits, as a
        rounded percentage. Users without a profile get level 1 defaults.
        """
        profile, today = await self._local_today(user_id, now)

        total_habits = await habit_queries.count_active_habits(self.db, user_id)
        completed_today = await habit_queries.count_completions(self.db, user_id, since=today)
        streak_totals = await habit_queries.get_user_streak_totals(self.db, user_id)

        stats = DashboardStats(
            total_habits=total_habits,
            completed_today=completed_today,
            completion_rate=_percent(completed_today, total_habits),
            active_streaks=streak_totals["active_streaks"],
        )

        if profile:
            stats.total_xp = profile["total_xp"]
            stats.current_level = profile["current_level"]
            stats.xp_for_next_level = level_progress(profile["total_xp"]).xp_for_next

        return stats

    async def get_completion_stats(self, user_id: str, now: Optional[datetime] = None) -> CompletionStats:
        """
        Completion counts: all time, today, last 7 and last 30 calendar days
        (today included)

        completion_rate is the last 7 days' completions over the number of
        possible ones (active habits x 7).
        """
        _, today = await self._local_today(user_id, now)

        total = await habit_queries.count_completions(self.db, user_id)
        today_count = await habit_queries.count_completions(self.db, user_id, since=today)
        this_week = await habit_queries.count_completions(
            self.db, user_id, since=today - timedelta(days=WEEK_DAYS - 1)
        )
        this_month = await habit_queries.count_completions(
            self.db, user_id, since=today - timedelta(days=MONTH_DAYS - 1)
        )
        total_habits = await habit_queries.count_active_habits(self.db, user_id)

        return CompletionStats(
            total=total,
            today=today_count,
            this_week=this_week,
            this_month=this_month,
            completion_rate=_percent(this_week, total_habits * WEEK_DAYS),
        )

    async def get_completion_history(
        self,
        user_id: str,
        range_name: str = "month",
        now: Optional[datetime] = None
    ) -> CompletionHistory:
        """
        Completions over an analytics range (week, month, 3months, all) with
        daily, category, hour-of-day and mood/energy breakdowns

        Hours are in the user's timezone. completion_rate is completions over
        active habits x days in the range.

        Raises:
            ValidationError: Unknown range
        """
        now = now or now_utc()
        window = get_analytics_date_range(range_name, now)
        profile, today = await self._local_today(user_id, now)
        zone = get_zone(profile["timezone"] if profile else None)

        start = window.start if window.start.tzinfo else window.start.replace(tzinfo=timezone.utc)
        start_date = start.astimezone(zone).date()
        days = max((today - start_date).days, 1)

        rows = await habit_queries.get_user_completions(self.db, user_id, start_date, today)
        records = [CompletionRecord(**row) for row in rows]
        total_habits = await habit_queries.count_active_habits(self.db, user_id)

        per_day = Counter(r.completion_date for r in records)
        hourly = [0] * 24
        for record in records:
            completed_at = record.completed_at
            if completed_at.tzinfo is None:
                completed_at = completed_at.replace(tzinfo=timezone.utc)
            hourly[completed_at.astimezone(zone).hour] += 1

        return CompletionHistory(
            range=range_name,
            start_date=start_date,
            end_date=today,
            total_completions=len(records),
            active_days=len(per_day),
            total_xp=sum(r.xp_earned for r in records),
            completion_rate=_percent(len(records), total_habits * days),
            daily_counts=[
                DailyCount(completion_date=day, completions=count)
                for day, count in sorted(per_day.items())
            ],
            category_breakdown=dict(Counter(r.category.value for r in records)),
            hourly_distribution=hourly,
            mood_energy=[
                MoodEnergyPoint(mood=r.mood_rating, energy=r.energy_level)
                for r in records
                if r.mood_rating and r.energy_level
            ],
            completions=records,
        )

    async def get_xp_summary(self, user_id: str) -> XPSummary:
        """XP total with level breakdown; a user with no profile is at 0 XP"""
        profile = await profile_queries.get_profile(self.db, user_id)
        if profile is None:
            return XPSummary(user_id=user_id, total_xp=0, level=level_progress(0))

        return XPSummary(
            user_id=user_id,
            total_xp=profile["total_xp"],
            level=level_progress(profile["total_xp"]),
            pet_type=profile["pet_type"],
            pet_growth_stage=profile["pet_growth_stage"],
        )

    async def get_xp_history(self, user_id: str, limit: int = 50) -> list[XPTransaction]:
        """Recent XP ledger entries, newest first"""
        rows = await profile_queries.get_xp_transactions(self.db, user_id, limit)
        return [XPTransaction(**row) for row in rows]

    async def get_achievements(self, user_id: str) -> dict:
        """Unlocked and locked achievements"""
        return await get_user_achievements(self.db, user_id)
