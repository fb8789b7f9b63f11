"""Habit, completion and streak queries"""
import json
import logging
from datetime import date
from typing import Any, Optional
import psycopg
from antar.db.connection import Database
from antar.exceptions import ConflictError

logger = logging.getLogger(__name__)

HABIT_COLUMNS = """
    id, user_id, name, description, category, color, icon, frequency_type,
    frequency_config, preferred_time, difficulty_level, xp_value, is_archived, created_at
"""

COMPLETION_COLUMNS = """
    id, habit_id, user_id, completion_date, completed_at, mood_rating, energy_level,
    notes, duration_minutes, is_streak_freeze, xp_earned
"""

EDITABLE_HABIT_FIELDS = (
    "name", "description", "category", "color", "icon", "frequency_type",
    "frequency_config", "preferred_time", "difficulty_level", "xp_value",
)

EDITABLE_COMPLETION_FIELDS = ("mood_rating", "energy_level", "notes", "duration_minutes")


# ==========================================
# Habits
# ==========================================

async def create_habit(
    db: Database,
    habit: dict,
    conn: Optional[psycopg.AsyncConnection] = None
) -> dict:
    """Insert a habit and return the stored row"""
    async with db.connection(conn) as conn:
        async with conn.transaction():
            async with conn.cursor() as cur:
                await cur.execute(
                    f"""
                    INSERT INTO habits
                    (user_id, name, description, category, color, icon, frequency_type,
                     frequency_config, preferred_time, difficulty_level, xp_value)
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                    RETURNING {HABIT_COLUMNS}
                    """,
                    (
                        habit["user_id"],
                        habit["name"],
                        habit.get("description"),
                        habit["category"],
                        habit["color"],
                        habit["icon"],
                        habit["frequency_type"],
                        json.dumps(habit.get("frequency_config") or {}),
                        habit.get("preferred_time"),
                        habit["difficulty_level"],
                        habit["xp_value"],
                    )
                )
                row = await cur.fetchone()
    logger.info(f"Created habit {row['id']} for user {habit['user_id']}")
    return dict(row)


async def get_habit(
    db: Database,
    habit_id: str,
    user_id: str,
    conn: Optional[psycopg.AsyncConnection] = None
) -> Optional[dict]:
    """Get one habit owned by the user"""
    async with db.connection(conn) as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                f"SELECT {HABIT_COLUMNS} FROM habits WHERE id = %s AND user_id = %s",
                (habit_id, user_id)
            )
            row = await cur.fetchone()
            return dict(row) if row else None


async def update_habit(
    db: Database,
    habit_id: str,
    user_id: str,
    updates: dict[str, Any]
) -> Optional[dict]:
    """
    Update the editable habit fields present in updates

    Returns:
        The updated row, or None if the user has no such habit
    """
    update_fields = []
    params: list = []
    for field in EDITABLE_HABIT_FIELDS:
        if field not in updates:
            continue
        update_fields.append(f"{field} = %s")
        value = updates[field]
        params.append(json.dumps(value or {}) if field == "frequency_config" else value)

    if not update_fields:
        return await get_habit(db, habit_id, user_id)

    update_fields.append("updated_at = CURRENT_TIMESTAMP")
    params.extend([habit_id, user_id])

    async with db.connection() as conn:
        async with conn.transaction():
            async with conn.cursor() as cur:
                await cur.execute(
                    f"""
                    UPDATE habits
                    SET {', '.join(update_fields)}
                    WHERE id = %s AND user_id = %s
                    RETURNING {HABIT_COLUMNS}
                    """,
                    tuple(params)
                )
                row = await cur.fetchone()
    return dict(row) if row else None


async def get_active_habits(db: Database, user_id: str) -> list[dict]:
    """Get non-archived habits with their streak counters, newest first"""
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                SELECT h.id, h.user_id, h.name, h.description, h.category, h.color, h.icon,
                       h.frequency_type, h.frequency_config, h.preferred_time,
                       h.difficulty_level, h.xp_value, h.is_archived, h.created_at,
                       COALESCE(s.current_streak, 0) AS current_streak,
                       COALESCE(s.longest_streak, 0) AS longest_streak,
                       COALESCE(s.total_completions, 0) AS total_completions,
                       COALESCE(s.completion_rate, 0) AS completion_rate
                FROM habits h
                LEFT JOIN habit_streaks s ON s.habit_id = h.id
                WHERE h.user_id = %s AND NOT h.is_archived
                ORDER BY h.created_at DESC
                """,
                (user_id,)
            )
            return [dict(row) for row in await cur.fetchall()]


async def count_active_habits(
    db: Database,
    user_id: str,
    conn: Optional[psycopg.AsyncConnection] = None
) -> int:
    """Count non-archived habits"""
    async with db.connection(conn) as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                "SELECT COUNT(*) AS count FROM habits WHERE user_id = %s AND NOT is_archived",
                (user_id,)
            )
            row = await cur.fetchone()
            return row["count"] if row else 0


async def archive_habit(db: Database, habit_id: str, user_id: str) -> bool:
    """Archive a habit; returns False if the user has no such habit"""
    async with db.connection() as conn:
        async with conn.transaction():
            async with conn.cursor() as cur:
                await cur.execute(
                    """
                    UPDATE habits
                    SET is_archived = TRUE, updated_at = CURRENT_TIMESTAMP
                    WHERE id = %s AND user_id = %s
                    """,
                    (habit_id, user_id)
                )
                return cur.rowcount > 0


# ==========================================
# Completions
# ==========================================

async def insert_completion(
    db: Database,
    completion: dict,
    conn: Optional[psycopg.AsyncConnection] = None
) -> dict:
    """
    Insert a habit completion

    Raises:
        ConflictError: If the habit is already completed on that date
    """
    async with db.connection(conn) as conn:
        try:
            async with conn.transaction():
                async with conn.cursor() as cur:
                    await cur.execute(
                        f"""
                        INSERT INTO habit_completions
                        (habit_id, user_id, completion_date, completed_at, mood_rating,
                         energy_level, notes, duration_minutes, is_streak_freeze, xp_earned)
                        VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                        RETURNING {COMPLETION_COLUMNS}
                        """,
                        (
                            completion["habit_id"],
                            completion["user_id"],
                            completion["completion_date"],
                            completion["completed_at"],
                            completion.get("mood_rating"),
                            completion.get("energy_level"),
                            completion.get("notes"),
                            completion.get("duration_minutes"),
                            completion.get("is_streak_freeze", False),
                            completion["xp_earned"],
                        )
                    )
                    row = await cur.fetchone()
        except psycopg.errors.UniqueViolation as e:
            raise ConflictError(
                "Already completed today",
                user_id=completion["user_id"],
                operation="insert_completion",
                context={"habit_id": completion["habit_id"]},
                cause=e
            )
    return dict(row)


async def update_completion(
    db: Database,
    completion_id: str,
    user_id: str,
    updates: dict[str, Any]
) -> Optional[dict]:
    """
    Edit the journal fields of a completion (mood, energy, notes, duration)

    The date and XP of a completion never change here.

    Returns:
        The updated row, or None if the user has no such completion
    """
    update_fields = []
    params: list = []
    for field in EDITABLE_COMPLETION_FIELDS:
        if field in updates:
            update_fields.append(f"{field} = %s")
            params.append(updates[field])

    if not update_fields:
        return None

    params.extend([completion_id, user_id])

    async with db.connection() as conn:
        async with conn.transaction():
            async with conn.cursor() as cur:
                await cur.execute(
                    f"""
                    UPDATE habit_completions
                    SET {', '.join(update_fields)}
                    WHERE id = %s AND user_id = %s
                    RETURNING {COMPLETION_COLUMNS}
                    """,
                    tuple(params)
                )
                row = await cur.fetchone()
    return dict(row) if row else None


async def delete_completion(
    db: Database,
    habit_id: str,
    user_id: str,
    completion_date: date,
    conn: Optional[psycopg.AsyncConnection] = None
) -> Optional[dict]:
    """Delete a completion, returning the deleted row (None if there was none)"""
    async with db.connection(conn) as conn:
        async with conn.transaction():
            async with conn.cursor() as cur:
                await cur.execute(
                    f"""
                    DELETE FROM habit_completions
                    WHERE habit_id = %s AND user_id = %s AND completion_date = %s
                    RETURNING {COMPLETION_COLUMNS}
                    """,
                    (habit_id, user_id, completion_date)
                )
                row = await cur.fetchone()
    return dict(row) if row else None


async def get_completion_dates(
    db: Database,
    habit_id: str,
    conn: Optional[psycopg.AsyncConnection] = None
) -> list[date]:
    """All completion dates for a habit, newest first"""
    async with db.connection(conn) as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                SELECT completion_date FROM habit_completions
                WHERE habit_id = %s
                ORDER BY completion_date DESC
                """,
                (habit_id,)
            )
            return [row["completion_date"] for row in await cur.fetchall()]


async def get_habit_completions(db: Database, habit_id: str, user_id: str, limit: int = 30) -> list[dict]:
    """A habit's most recent completions, newest first"""
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                f"""
                SELECT {COMPLETION_COLUMNS}
                FROM habit_completions
                WHERE habit_id = %s AND user_id = %s
                ORDER BY completion_date DESC
                LIMIT %s
                """,
                (habit_id, user_id, limit)
            )
            return [dict(row) for row in await cur.fetchall()]


async def get_user_completions(
    db: Database,
    user_id: str,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    limit: Optional[int] = None
) -> list[dict]:
    """A user's completions joined with the habit name and category, newest first"""
    conditions = ["c.user_id = %s"]
    params: list = [user_id]
    if start_date:
        conditions.append("c.completion_date >= %s")
        params.append(start_date)
    if end_date:
        conditions.append("c.completion_date <= %s")
        params.append(end_date)

    query = f"""
        SELECT c.id, c.habit_id, h.name AS habit_name, h.category, c.completion_date,
               c.completed_at, c.mood_rating, c.energy_level, c.notes,
               c.duration_minutes, c.xp_earned
        FROM habit_completions c
        JOIN habits h ON h.id = c.habit_id
        WHERE {' AND '.join(conditions)}
        ORDER BY c.completion_date DESC, c.completed_at DESC
    """
    if limit is not None:
        query += " LIMIT %s"
        params.append(limit)

    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(query, tuple(params))
            return [dict(row) for row in await cur.fetchall()]


async def count_completions(
    db: Database,
    user_id: str,
    since: Optional[date] = None,
    conn: Optional[psycopg.AsyncConnection] = None
) -> int:
    """Count a user's completions, optionally only on or after a date"""
    query = "SELECT COUNT(*) AS count FROM habit_completions WHERE user_id = %s"
    params: tuple = (user_id,)
    if since is not None:
        query += " AND completion_date >= %s"
        params = (user_id, since)

    async with db.connection(conn) as conn:
        async with conn.cursor() as cur:
            await cur.execute(query, params)
            row = await cur.fetchone()
            return row["count"] if row else 0


# ==========================================
# Streaks
# ==========================================

async def upsert_habit_streak(
    db: Database,
    streak: dict,
    conn: Optional[psycopg.AsyncConnection] = None
) -> None:
    """Insert or replace the streak counters for a habit"""
    async with db.connection(conn) as conn:
        async with conn.transaction():
            async with conn.cursor() as cur:
                await cur.execute(
                    """
                    INSERT INTO habit_streaks
                    (habit_id, user_id, current_streak, longest_streak, total_completions,
                     completion_rate, last_completed_date, streak_start_date)
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
                    ON CONFLICT (habit_id) DO UPDATE SET
                        current_streak = EXCLUDED.current_streak,
                        longest_streak = EXCLUDED.longest_streak,
                        total_completions = EXCLUDED.total_completions,
                        completion_rate = EXCLUDED.completion_rate,
                        last_completed_date = EXCLUDED.last_completed_date,
                        streak_start_date = EXCLUDED.streak_start_date,
                        updated_at = CURRENT_TIMESTAMP
                    """,
                    (
                        streak["habit_id"],
                        streak["user_id"],
                        streak["current_streak"],
                        streak["longest_streak"],
                        streak["total_completions"],
                        streak["completion_rate"],
                        streak.get("last_completed_date"),
                        streak.get("streak_start_date"),
                    )
                )


async def get_habit_streak(db: Database, habit_id: str) -> Optional[dict]:
    """Get the streak counters for one habit"""
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                SELECT habit_id, user_id, current_streak, longest_streak, total_completions,
                       completion_rate, last_completed_date, streak_start_date
                FROM habit_streaks WHERE habit_id = %s
                """,
                (habit_id,)
            )
            row = await cur.fetchone()
            return dict(row) if row else None


async def claim_streak_bonus(
    db: Database,
    habit_id: str,
    user_id: str,
    streak_start_date: date,
    milestone: int,
    conn: Optional[psycopg.AsyncConnection] = None
) -> bool:
    """
    Record that a streak run has been paid its milestone bonus

    Returns:
        True the first time a run reaches the milestone, False afterwards
    """
    async with db.connection(conn) as conn:
        async with conn.transaction():
            async with conn.cursor() as cur:
                await cur.execute(
                    """
                    INSERT INTO streak_bonus_awards (habit_id, user_id, streak_start_date, milestone)
                    VALUES (%s, %s, %s, %s)
                    ON CONFLICT (habit_id, streak_start_date, milestone) DO NOTHING
                    """,
                    (habit_id, user_id, streak_start_date, milestone)
                )
                return cur.rowcount > 0


async def get_user_streak_totals(
    db: Database,
    user_id: str,
    conn: Optional[psycopg.AsyncConnection] = None
) -> dict:
    """
    Aggregate a user's streak rows for active habits

    Returns:
        {
            'current_streak': int (best current streak),
            'longest_streak': int (best longest streak),
            'total_completions': int (sum),
            'active_streaks': int (habits with current_streak > 0)
        }
    """
    async with db.connection(conn) as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                SELECT COALESCE(MAX(s.current_streak), 0) AS current_streak,
                       COALESCE(MAX(s.longest_streak), 0) AS longest_streak,
                       COALESCE(SUM(s.total_completions), 0) AS total_completions,
                       COUNT(*) FILTER (WHERE s.current_streak > 0) AS active_streaks
                FROM habit_streaks s
                JOIN habits h ON h.id = s.habit_id
                WHERE s.user_id = %s AND NOT h.is_archived
                """,
                (user_id,)
            )
            row = await cur.fetchone()
            return {
                "current_streak": int(row["current_streak"]),
                "longest_streak": int(row["longest_streak"]),
                "total_completions": int(row["total_completions"]),
                "active_streaks": int(row["active_streaks"]),
            }
