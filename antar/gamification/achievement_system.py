"""
Achievement System

Achievements are rows in the `achievements` table whose `criteria` column
holds {"type": ..., "value": ...}. Supported criteria types:
- streak: best current or longest streak reaches value
- total_completions: lifetime completions reach value
- level: level reaches value
- total_xp: lifetime XP reaches value
- habits_count: active habits reach value

Unknown criteria types never unlock, so new definitions can be added to the
table before the code that understands them ships.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import logging

import psycopg

from antar.db.connection import Database
from antar.db.queries import achievements as achievement_queries
from antar.models.achievement import Achievement, ProgressSnapshot, UnlockedAchievement

logger = logging.getLogger(__name__)


def evaluate_criteria(criteria: Dict[str, Any], snapshot: ProgressSnapshot) -> bool:
    """Check whether a user's totals satisfy an achievement's criteria"""
    criteria_type = criteria.get("type")
    target = criteria.get("value")
    if target is None:
        return False

    if criteria_type == "streak":
        return max(snapshot.current_streak, snapshot.longest_streak) >= target
    if criteria_type == "total_completions":
        return snapshot.total_completions >= target
    if criteria_type == "level":
        return snapshot.level >= target
    if criteria_type == "total_xp":
        return snapshot.total_xp >= target
    if criteria_type == "habits_count":
        return snapshot.habits_count >= target

    logger.debug(f"Unknown achievement criteria type: {criteria_type}")
    return False


async def check_and_award_achievements(
    db: Database,
    user_id: str,
    snapshot: ProgressSnapshot,
    conn: Optional[psycopg.AsyncConnection] = None
) -> List[UnlockedAchievement]:
    """
    Unlock every achievement the user now qualifies for

    Args:
        db: Database handle
        user_id: Profile ID
        snapshot: User totals after the triggering activity
        conn: Connection of the transaction recording that activity

    Returns:
        Newly unlocked achievements (XP rewards are credited by the caller)
    """
    definitions = [Achievement(**row) for row in await achievement_queries.get_all_achievements(db, conn=conn)]
    unlocked_ids = {row["achievement_id"] for row in await achievement_queries.get_user_achievements(db, user_id, conn=conn)}

    newly_unlocked = []

    for achievement in definitions:
        if achievement.id in unlocked_ids:
            continue
        if not evaluate_criteria(achievement.criteria, snapshot):
            continue

        # Another request may have unlocked it between the read and this write
        if not await achievement_queries.unlock_achievement(db, user_id, achievement.id, conn=conn):
            continue

        newly_unlocked.append(UnlockedAchievement(
            achievement_id=achievement.id,
            code=achievement.code,
            name=achievement.name,
            description=achievement.description,
            icon=achievement.icon,
            xp_reward=achievement.xp_reward,
            rarity=achievement.rarity,
            unlocked_at=datetime.now(timezone.utc),
        ))

        logger.info(
            f"User {user_id} unlocked achievement: {achievement.code} "
            f"({achievement.name}) +{achievement.xp_reward} XP"
        )

    return newly_unlocked


async def get_user_achievements(db: Database, user_id: str) -> Dict[str, List[Dict[str, Any]]]:
    """
    Split achievement definitions into unlocked and locked for a user

    Returns:
        {
            'unlocked': [definition + unlocked_at, ...],
            'locked': [definition, ...]
        }
    """
    definitions = await achievement_queries.get_all_achievements(db)
    unlocked_rows = {
        row["achievement_id"]: row
        for row in await achievement_queries.get_user_achievements(db, user_id)
    }

    unlocked = []
    locked = []
    for definition in definitions:
        row = unlocked_rows.get(definition["id"])
        if row:
            unlocked.append({**definition, "unlocked_at": row["unlocked_at"]})
        else:
            locked.append(definition)

    return {"unlocked": unlocked, "locked": locked}
