"""Achievement queries"""
import logging
from typing import Optional
import psycopg
from antar.db.connection import Database

logger = logging.getLogger(__name__)


async def get_all_achievements(
    db: Database,
    conn: Optional[psycopg.AsyncConnection] = None
) -> list[dict]:
    """Get every achievement definition, rarest first"""
    async with db.connection(conn) as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                SELECT id, code, name, description, icon, xp_reward, rarity, category, criteria
                FROM achievements
                ORDER BY CASE rarity
                    WHEN 'legendary' THEN 0
                    WHEN 'epic' THEN 1
                    WHEN 'rare' THEN 2
                    ELSE 3
                END, xp_reward DESC
                """
            )
            return [dict(row) for row in await cur.fetchall()]


async def get_user_achievements(
    db: Database,
    user_id: str,
    conn: Optional[psycopg.AsyncConnection] = None
) -> list[dict]:
    """Get a user's unlocked achievements with their definitions, newest first"""
    async with db.connection(conn) as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                SELECT a.id AS achievement_id, a.code, a.name, a.description, a.icon,
                       a.xp_reward, a.rarity, ua.unlocked_at
                FROM user_achievements ua
                JOIN achievements a ON a.id = ua.achievement_id
                WHERE ua.user_id = %s
                ORDER BY ua.unlocked_at DESC
                """,
                (user_id,)
            )
            return [dict(row) for row in await cur.fetchall()]


async def unlock_achievement(
    db: Database,
    user_id: str,
    achievement_id: str,
    conn: Optional[psycopg.AsyncConnection] = None
) -> bool:
    """
    Record an unlocked achievement

    Returns:
        True if newly unlocked, False if the user already had it
    """
    async with db.connection(conn) as conn:
        async with conn.transaction():
            async with conn.cursor() as cur:
                await cur.execute(
                    """
                    INSERT INTO user_achievements (user_id, achievement_id)
                    VALUES (%s, %s)
                    ON CONFLICT (user_id, achievement_id) DO NOTHING
                    """,
                    (user_id, achievement_id)
                )
                return cur.rowcount > 0
