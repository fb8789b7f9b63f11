"""Global test fixtures and utilities for antar tests"""
import pytest
from datetime import date, datetime, timezone
from unittest.mock import AsyncMock, MagicMock


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture
def mock_cursor():
    """Mock database cursor with standard query results"""
    cursor = AsyncMock()
    cursor.fetchone = AsyncMock(return_value=None)
    cursor.fetchall = AsyncMock(return_value=[])
    cursor.execute = AsyncMock()
    cursor.rowcount = 0
    return cursor


def _async_cm(value=None) -> MagicMock:
    cm = MagicMock()
    cm.__aenter__ = AsyncMock(return_value=value)
    cm.__aexit__ = AsyncMock(return_value=False)
    return cm


@pytest.fixture
def mock_conn(mock_cursor):
    """Connection whose cursor() yields mock_cursor and whose transaction() is a no-op block"""
    conn = MagicMock()
    conn.cursor = MagicMock(return_value=_async_cm(mock_cursor))
    conn.transaction = MagicMock(side_effect=lambda: _async_cm())
    return conn


@pytest.fixture
def mock_db(mock_conn):
    """Database whose connection() and transaction() both yield mock_conn"""
    db = MagicMock()
    db.connection = MagicMock(return_value=_async_cm(mock_conn))
    db.transaction = MagicMock(return_value=_async_cm(mock_conn))
    db.ping = AsyncMock(return_value=True)
    return db


# ============================================================================
# Clock Fixtures
# ============================================================================

@pytest.fixture
def fixed_now():
    """Wednesday 2024-05-15 14:30 UTC"""
    return datetime(2024, 5, 15, 14, 30, tzinfo=timezone.utc)


@pytest.fixture
def today(fixed_now):
    return fixed_now.date()


# ============================================================================
# Row Fixtures
# ============================================================================

@pytest.fixture
def sample_profile():
    return {
        "id": "user-1",
        "username": "alice",
        "full_name": "Alice Example",
        "avatar_url": None,
        "timezone": "UTC",
        "total_xp": 90,
        "current_level": 1,
        "pet_type": "seed",
        "pet_growth_stage": 4,
        "total_completions": 4,
        "created_at": datetime(2024, 5, 1, tzinfo=timezone.utc),
    }


@pytest.fixture
def sample_habit_row():
    return {
        "id": "habit-1",
        "user_id": "user-1",
        "name": "Read",
        "description": None,
        "category": "learning",
        "color": "#6366f1",
        "icon": "book",
        "frequency_type": "daily",
        "frequency_config": {},
        "preferred_time": None,
        "difficulty_level": "medium",
        "xp_value": 20,
        "is_archived": False,
        "created_at": datetime(2024, 5, 1, tzinfo=timezone.utc),
    }


@pytest.fixture
def sample_achievement_rows():
    return [
        {
            "id": "ach-first",
            "code": "first_step",
            "name": "First Step",
            "description": "Complete your first habit",
            "icon": "👣",
            "xp_reward": 10,
            "rarity": "common",
            "category": "milestone",
            "criteria": {"type": "total_completions", "value": 1},
        },
        {
            "id": "ach-week",
            "code": "week_warrior",
            "name": "Week Warrior",
            "description": "Reach a 7-day streak",
            "icon": "🔥",
            "xp_reward": 50,
            "rarity": "rare",
            "category": "streak",
            "criteria": {"type": "streak", "value": 7},
        },
    ]


