"""Profile and XP ledger queries"""
import logging
from typing import Any, Optional
import psycopg
from antar.db.connection import Database
from antar.exceptions import ConflictError

logger = logging.getLogger(__name__)

PROFILE_COLUMNS = """
    id, username, full_name, avatar_url, timezone, streak_freeze_count,
    total_xp, current_level, pet_type, pet_growth_stage, created_at
"""

EDITABLE_PROFILE_FIELDS = ("username", "full_name", "avatar_url", "timezone")


async def create_profile(
    db: Database,
    user_id: str,
    username: Optional[str] = None,
    full_name: Optional[str] = None,
    timezone: str = "UTC",
    conn: Optional[psycopg.AsyncConnection] = None
) -> dict:
    """Create a profile, returning the existing row if it is already there"""
    async with db.connection(conn) as conn:
        async with conn.transaction():
            async with conn.cursor() as cur:
                await cur.execute(
                    f"""
                    INSERT INTO profiles (id, username, full_name, timezone)
                    VALUES (%s, %s, %s, %s)
                    ON CONFLICT (id) DO UPDATE SET updated_at = profiles.updated_at
                    RETURNING {PROFILE_COLUMNS}
                    """,
                    (user_id, username, full_name, timezone)
                )
                row = await cur.fetchone()
    logger.info(f"Created profile: {user_id}")
    return dict(row)


async def get_profile(
    db: Database,
    user_id: str,
    for_update: bool = False,
    conn: Optional[psycopg.AsyncConnection] = None
) -> Optional[dict]:
    """
    Get a user's profile

    With for_update the row stays locked until the caller's transaction
    ends, so two completions for one user apply their XP one after the other.
    """
    query = f"SELECT {PROFILE_COLUMNS} FROM profiles WHERE id = %s"
    if for_update:
        query += " FOR UPDATE"

    async with db.connection(conn) as conn:
        async with conn.cursor() as cur:
            await cur.execute(query, (user_id,))
            row = await cur.fetchone()
            return dict(row) if row else None


async def update_profile(
    db: Database,
    user_id: str,
    updates: dict[str, Any],
    conn: Optional[psycopg.AsyncConnection] = None
) -> Optional[dict]:
    """
    Update the user-editable profile fields present in updates

    Returns:
        The updated row, or None if the profile does not exist

    Raises:
        ConflictError: The username belongs to someone else
    """
    update_fields = []
    params: list = []
    for field in EDITABLE_PROFILE_FIELDS:
        if field in updates:
            update_fields.append(f"{field} = %s")
            params.append(updates[field])

    if not update_fields:
        return await get_profile(db, user_id, conn=conn)

    update_fields.append("updated_at = CURRENT_TIMESTAMP")
    params.append(user_id)

    async with db.connection(conn) as conn:
        try:
            async with conn.transaction():
                async with conn.cursor() as cur:
                    await cur.execute(
                        f"""
                        UPDATE profiles
                        SET {', '.join(update_fields)}
                        WHERE id = %s
                        RETURNING {PROFILE_COLUMNS}
                        """,
                        tuple(params)
                    )
                    row = await cur.fetchone()
        except psycopg.errors.UniqueViolation as e:
            raise ConflictError(
                "Username is already taken",
                user_id=user_id,
                operation="update_profile",
                context={"username": updates.get("username")},
                cause=e
            )
    return dict(row) if row else None


async def update_profile_progress(
    db: Database,
    user_id: str,
    total_xp: int,
    current_level: int,
    pet_type: str,
    pet_growth_stage: int,
    conn: Optional[psycopg.AsyncConnection] = None
) -> None:
    """
    Store recomputed XP, level and pet state

    Level and pet are always derived from totals by the caller; this only
    persists them so other readers (leaderboards) can select them directly.
    Callers hold the row lock from get_profile(for_update=True).
    """
    async with db.connection(conn) as conn:
        async with conn.transaction():
            async with conn.cursor() as cur:
                await cur.execute(
                    """
                    UPDATE profiles
                    SET total_xp = %s,
                        current_level = %s,
                        pet_type = %s,
                        pet_growth_stage = %s,
                        updated_at = CURRENT_TIMESTAMP
                    WHERE id = %s
                    """,
                    (total_xp, current_level, pet_type, pet_growth_stage, user_id)
                )


async def add_xp_transaction(
    db: Database,
    user_id: str,
    amount: int,
    source_type: str,
    source_id: Optional[str],
    reason: str,
    conn: Optional[psycopg.AsyncConnection] = None
) -> Optional[str]:
    """
    Add XP transaction

    Args:
        db: Database handle
        user_id: Profile ID
        amount: XP amount (negative when a completion is undone)
        source_type: 'completion', 'streak_bonus', 'achievement', 'uncomplete'
        source_id: Optional ID of the source record
        reason: Human-readable description
        conn: Connection of an open transaction, if any

    Returns:
        Transaction ID
    """
    async with db.connection(conn) as conn:
        async with conn.transaction():
            async with conn.cursor() as cur:
                await cur.execute(
                    """
                    INSERT INTO xp_transactions (user_id, amount, source_type, source_id, reason)
                    VALUES (%s, %s, %s, %s, %s)
                    RETURNING id
                    """,
                    (user_id, amount, source_type, source_id, reason)
                )
                result = await cur.fetchone()
    return str(result['id']) if result else None


async def get_xp_transactions(db: Database, user_id: str, limit: int = 50) -> list[dict]:
    """Get recent XP transactions for user, newest first"""
    async with db.connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                SELECT id, amount, source_type, source_id, reason, awarded_at
                FROM xp_transactions
                WHERE user_id = %s
                ORDER BY awarded_at DESC
                LIMIT %s
                """,
                (user_id, limit)
            )
            return [dict(row) for row in await cur.fetchall()]
