"""Leaderboard input records, ranked entries and period windows"""
from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class LeaderboardPeriod(str, Enum):
    """Leaderboard scopes"""
    ALL_TIME = "all-time"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class AllTimeStats(BaseModel):
    """Lifetime statistics for one user, aggregated across all their habits"""
    total_xp: int = Field(0, ge=0)
    current_streak: int = Field(0, ge=0)
    longest_streak: int = Field(0, ge=0)
    completion_rate: float = Field(0.0, ge=0, le=100)
    total_completions: int = Field(0, ge=0)
    achievements_count: int = Field(0, ge=0)


class PeriodStats(BaseModel):
    """Statistics for one user inside a rolling window"""
    xp_earned: int = Field(0, ge=0)
    completions: int = Field(0, ge=0)
    avg_completion_rate: float = Field(0.0, ge=0, le=100)
    max_streak: int = Field(0, ge=0)


class LeaderboardUser(BaseModel):
    """Public identity shown next to a leaderboard row"""
    user_id: str
    username: str = "Anonymous"
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None


class LeaderboardEntry(LeaderboardUser, AllTimeStats):
    """All-time leaderboard row"""
    current_level: int = Field(1, ge=1)
    habits_count: int = Field(0, ge=0)
    leaderboard_score: float = 0.0
    rank: int = Field(0, ge=0)  # 0 until ranked


class PeriodLeaderboardEntry(LeaderboardUser, PeriodStats):
    """Daily / weekly / monthly leaderboard row"""
    leaderboard_score: float = 0.0
    rank: int = Field(0, ge=0)


class DateRange(BaseModel):
    """Inclusive time window"""
    start: datetime
    end: datetime
