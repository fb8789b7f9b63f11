"""Unit tests for LeaderboardService (antar/services/leaderboard_service.py)"""
import pytest
from datetime import date, datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

from antar.exceptions import ValidationError
from antar.services.leaderboard_service import (
    LeaderboardService,
    aggregate_period_completions,
    aggregate_streak_rows,
)

NOW = datetime(2024, 5, 15, 14, 30, tzinfo=timezone.utc)


def _profile(user_id, total_xp=0, username=None, full_name=None, level=1):
    return {
        "id": user_id,
        "username": username,
        "full_name": full_name,
        "avatar_url": None,
        "total_xp": total_xp,
        "current_level": level,
    }


def _streak_row(user_id, current, longest, completions, rate):
    return {
        "user_id": user_id,
        "current_streak": current,
        "longest_streak": longest,
        "total_completions": completions,
        "completion_rate": rate,
    }


def _completion(user_id, day, xp=20):
    return {"user_id": user_id, "completion_date": date(2024, 5, day), "xp_earned": xp}


@pytest.fixture
def leaderboard_queries():
    with patch('antar.services.leaderboard_service.leaderboard_queries') as mock:
        mock.get_all_streak_rows = AsyncMock(return_value=[])
        mock.get_completions_between = AsyncMock(return_value=[])
        mock.get_profiles_by_ids = AsyncMock(return_value=[])
        mock.get_achievement_counts = AsyncMock(return_value={})
        yield mock


@pytest.fixture
def leaderboard_service(leaderboard_queries):
    return LeaderboardService(MagicMock())


# ============================================================================
# Aggregation
# ============================================================================

def test_aggregate_streak_rows_folds_per_user():
    stats = aggregate_streak_rows([
        _streak_row("a", 3, 10, 20, 50.0),
        _streak_row("a", 5, 6, 10, 100.0),
        _streak_row("b", 1, 1, 1, 10.0),
    ])

    assert stats["a"] == {
        "current_streak": 5,
        "longest_streak": 10,
        "total_completions": 30,
        "completion_rate": 75.0,
        "habits_count": 2,
    }
    assert stats["b"]["habits_count"] == 1


def test_aggregate_period_completions():
    stats = aggregate_period_completions([
        _completion("a", 13),
        _completion("a", 14),
        _completion("a", 14, xp=30),
        _completion("a", 15),
    ])

    a = stats["a"]
    assert a.xp_earned == 90
    assert a.completions == 4
    assert a.max_streak == 3
    # 4 completions over 3 active days, scaled by 10
    assert a.avg_completion_rate == pytest.approx(40 / 3)


def test_aggregate_period_completions_rate_below_cap():
    stats = aggregate_period_completions([_completion("a", 10), _completion("a", 12)])

    assert stats["a"].avg_completion_rate == 10.0
    assert stats["a"].max_streak == 1


# ============================================================================
# All-time
# ============================================================================

@pytest.mark.asyncio
async def test_all_time_leaderboard_ranks_users(leaderboard_service, leaderboard_queries):
    leaderboard_queries.get_all_streak_rows.return_value = [
        _streak_row("a", 1, 1, 1, 10.0),
        _streak_row("b", 50, 67, 200, 100.0),
    ]
    leaderboard_queries.get_profiles_by_ids.return_value = [
        _profile("a", total_xp=100, username="amy"),
        _profile("b", total_xp=5000, full_name="Bob Builder", level=8),
    ]
    leaderboard_queries.get_achievement_counts.return_value = {"b": 10}

    entries = await leaderboard_service.get_all_time_leaderboard()

    assert [(e.user_id, e.rank) for e in entries] == [("b", 1), ("a", 2)]
    assert entries[0].leaderboard_score == 100.0
    assert entries[0].username == "Bob Builder"
    assert entries[0].achievements_count == 10
    assert entries[1].achievements_count == 0


@pytest.mark.asyncio
async def test_all_time_leaderboard_anonymous_name(leaderboard_service, leaderboard_queries):
    leaderboard_queries.get_all_streak_rows.return_value = [_streak_row("a", 1, 1, 1, 10.0)]
    leaderboard_queries.get_profiles_by_ids.return_value = [_profile("a")]

    entries = await leaderboard_service.get_all_time_leaderboard()

    assert entries[0].username == "Anonymous"


@pytest.mark.asyncio
async def test_all_time_leaderboard_limit(leaderboard_service, leaderboard_queries):
    leaderboard_queries.get_all_streak_rows.return_value = [
        _streak_row(uid, 1, 1, n, 10.0) for n, uid in enumerate(["a", "b", "c"], start=1)
    ]
    leaderboard_queries.get_profiles_by_ids.return_value = [_profile(uid) for uid in ["a", "b", "c"]]

    entries = await leaderboard_service.get_all_time_leaderboard(limit=2)

    assert [e.user_id for e in entries] == ["c", "b"]


@pytest.mark.asyncio
async def test_all_time_leaderboard_negative_limit(leaderboard_service):
    with pytest.raises(ValidationError):
        await leaderboard_service.get_all_time_leaderboard(limit=-5)


# ============================================================================
# Periods
# ============================================================================

@pytest.mark.asyncio
async def test_period_leaderboard_ranks_by_activity(leaderboard_service, leaderboard_queries):
    leaderboard_queries.get_completions_between.return_value = [
        _completion("a", 15, xp=0),
        _completion("b", 15),
    ]
    leaderboard_queries.get_profiles_by_ids.return_value = [_profile("a"), _profile("b")]

    entries = await leaderboard_service.get_period_leaderboard("daily", now=NOW)

    assert [e.user_id for e in entries] == ["b", "a"]
    assert all(e.leaderboard_score > 0 for e in entries)


@pytest.mark.asyncio
async def test_period_leaderboard_queries_window(leaderboard_service, leaderboard_queries):
    await leaderboard_service.get_period_leaderboard("weekly", now=NOW)

    args = leaderboard_queries.get_completions_between.call_args.args
    assert args[1] == date(2024, 5, 8)
    assert args[2] == date(2024, 5, 15)


@pytest.mark.asyncio
async def test_period_leaderboard_days_follow_board_timezone(leaderboard_queries):
    """20:00 UTC is already the next calendar day on a Tokyo board"""
    service = LeaderboardService(MagicMock(), tz_name="Asia/Tokyo")

    await service.get_period_leaderboard("daily", now=datetime(2024, 5, 15, 20, 0, tzinfo=timezone.utc))

    args = leaderboard_queries.get_completions_between.call_args.args
    assert args[1] == date(2024, 5, 16)
    assert args[2] == date(2024, 5, 16)


@pytest.mark.asyncio
async def test_period_leaderboard_rejects_all_time(leaderboard_service):
    with pytest.raises(ValidationError):
        await leaderboard_service.get_period_leaderboard("all-time", now=NOW)


@pytest.mark.asyncio
async def test_get_leaderboard_dispatches(leaderboard_service, leaderboard_queries):
    await leaderboard_service.get_leaderboard("all-time")
    leaderboard_queries.get_all_streak_rows.assert_called_once()
    leaderboard_queries.get_completions_between.assert_not_called()

    await leaderboard_service.get_leaderboard("monthly", now=NOW)
    leaderboard_queries.get_completions_between.assert_called_once()


@pytest.mark.asyncio
async def test_get_leaderboard_unknown_period(leaderboard_service):
    with pytest.raises(ValidationError):
        await leaderboard_service.get_leaderboard("yearly")


# ============================================================================
# User Rank
# ============================================================================

@pytest.mark.asyncio
async def test_get_user_rank(leaderboard_service, leaderboard_queries):
    leaderboard_queries.get_completions_between.return_value = [
        _completion("a", 15),
        _completion("b", 15, xp=100),
    ]
    leaderboard_queries.get_profiles_by_ids.return_value = [_profile("a"), _profile("b")]

    entry = await leaderboard_service.get_user_rank("a", "daily", now=NOW)

    assert entry.user_id == "a"
    assert entry.rank == 2


@pytest.mark.asyncio
async def test_get_user_rank_unranked(leaderboard_service):
    assert await leaderboard_service.get_user_rank("ghost", "daily", now=NOW) is None


def test_aggregate_period_completions_rate_capped():
    stats = aggregate_period_completions([_completion("a", 15) for _ in range(12)])

    assert stats["a"].avg_completion_rate == 100.0
