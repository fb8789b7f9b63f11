"""Leaderboard source queries

These return raw rows across all users; aggregation and scoring happen in
LeaderboardService so the formulas stay in one place.
"""
import logging
from datetime import date
from antar.db.connection import Database

logger = logging.getLogger(__name__)


async def get_all_streak_rows(db: Database) -> list[dict]:
    """Streak counters for every active habit of every user"""
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                SELECT s.user_id, s.current_streak, s.longest_streak,
                       s.total_completions, s.completion_rate
                FROM habit_streaks s
                JOIN habits h ON h.id = s.habit_id
                WHERE NOT h.is_archived
                """
            )
            return [dict(row) for row in await cur.fetchall()]


async def get_completions_between(db: Database, start_date: date, end_date: date) -> list[dict]:
    """Completion events for all users in an inclusive date range"""
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                SELECT user_id, habit_id, xp_earned, completion_date
                FROM habit_completions
                WHERE completion_date >= %s AND completion_date <= %s
                """,
                (start_date, end_date)
            )
            return [dict(row) for row in await cur.fetchall()]


async def get_profiles_by_ids(db: Database, user_ids: list[str]) -> list[dict]:
    """Public leaderboard fields for a set of users"""
    if not user_ids:
        return []

    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                SELECT id, username, full_name, avatar_url, total_xp, current_level
                FROM profiles
                WHERE id = ANY(%s)
                """,
                (user_ids,)
            )
            return [dict(row) for row in await cur.fetchall()]


async def get_achievement_counts(db: Database, user_ids: list[str]) -> dict[str, int]:
    """Unlocked achievement count per user (users with none are omitted)"""
    if not user_ids:
        return {}

    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                SELECT user_id, COUNT(*) AS count
                FROM user_achievements
                WHERE user_id = ANY(%s)
                GROUP BY user_id
                """,
                (user_ids,)
            )
            return {row["user_id"]: int(row["count"]) for row in await cur.fetchall()}
