"""Pydantic models for API request/response validation"""
from datetime import date, datetime, time
from typing import Any, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, Field

from antar.models.achievement import AchievementRarity
from antar.models.ai import HabitSuggestion
from antar.models.gamification import DifficultyTier, XPTransaction
from antar.models.habit import FrequencyType, HabitCategory
from antar.models.leaderboard import LeaderboardEntry, PeriodLeaderboardEntry


# ==========================================
# Habits
# ==========================================

class HabitCreateRequest(BaseModel):
    """Request to create a habit"""
    name: str = Field(..., min_length=1, max_length=100, description="Habit name")
    description: Optional[str] = Field(None, max_length=500)
    category: HabitCategory = HabitCategory.CUSTOM
    difficulty_level: DifficultyTier = Field(
        DifficultyTier.MEDIUM,
        description="easy (10 XP), medium (20 XP) or hard (30 XP) per completion"
    )
    color: str = Field("#6366f1", max_length=20)
    icon: str = Field("target", max_length=50)
    frequency_type: FrequencyType = FrequencyType.DAILY
    frequency_config: Dict[str, Any] = Field(default_factory=dict)
    preferred_time: Optional[time] = None


class HabitUpdateRequest(BaseModel):
    """Fields to change on a habit; omitted fields are left alone"""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    category: Optional[HabitCategory] = None
    difficulty_level: Optional[DifficultyTier] = Field(
        None,
        description="Changing it resets the habit's XP per completion"
    )
    color: Optional[str] = Field(None, max_length=20)
    icon: Optional[str] = Field(None, max_length=50)
    frequency_type: Optional[FrequencyType] = None
    frequency_config: Optional[Dict[str, Any]] = None
    preferred_time: Optional[time] = None


class CompletionRequest(BaseModel):
    """Request to complete a habit"""
    completion_date: Optional[date] = Field(
        None,
        description="Day being completed (defaults to today in the user's timezone)"
    )
    mood_rating: Optional[int] = Field(None, ge=1, le=5)
    energy_level: Optional[int] = Field(None, ge=1, le=5)
    notes: Optional[str] = Field(None, max_length=1000)
    duration_minutes: Optional[int] = Field(None, ge=0)


class CompletionUpdateRequest(BaseModel):
    """Journal fields of a completion; XP and date cannot change"""
    mood_rating: Optional[int] = Field(None, ge=1, le=5)
    energy_level: Optional[int] = Field(None, ge=1, le=5)
    notes: Optional[str] = Field(None, max_length=1000)
    duration_minutes: Optional[int] = Field(None, ge=0)


class ArchiveResponse(BaseModel):
    habit_id: str
    archived: bool = True


# ==========================================
# Progress
# ==========================================

class ProfileUpdateRequest(BaseModel):
    """Profile fields a user can edit; omitted fields are left alone"""
    username: Optional[str] = Field(None, min_length=1, max_length=50)
    full_name: Optional[str] = Field(None, max_length=100)
    avatar_url: Optional[str] = Field(None, max_length=500)
    timezone: Optional[str] = Field(None, max_length=64, description="IANA name, e.g. Europe/Stockholm")


class AchievementStatus(BaseModel):
    """Achievement definition with the user's unlock state"""
    id: str
    code: str
    name: str
    description: str
    icon: str
    xp_reward: int
    rarity: AchievementRarity
    category: Optional[str] = None
    unlocked_at: Optional[datetime] = None


class AchievementsResponse(BaseModel):
    """Response with a user's unlocked and locked achievements"""
    user_id: str
    unlocked: List[AchievementStatus]
    locked: List[AchievementStatus]


class XPHistoryResponse(BaseModel):
    user_id: str
    transactions: List[XPTransaction]


# ==========================================
# Leaderboards
# ==========================================

class LeaderboardResponse(BaseModel):
    """Ranked leaderboard for one period"""
    period: str
    display_name: str
    entries: List[Union[LeaderboardEntry, PeriodLeaderboardEntry]]
    generated_at: datetime


class UserRankResponse(BaseModel):
    """A user's position on a leaderboard (entry is None when unranked)"""
    period: str
    user_id: str
    entry: Optional[Union[LeaderboardEntry, PeriodLeaderboardEntry]] = None
    rank_icon: Optional[str] = None
    formatted_score: Optional[str] = None


# ==========================================
# AI copywriting
# ==========================================

class MotivationalRequest(BaseModel):
    user_name: str = Field("there", max_length=50)
    current_streak: int = Field(0, ge=0)
    completion_rate: float = Field(0, ge=0, le=100)
    recent_completions: int = Field(0, ge=0)
    time_of_day: Optional[str] = Field(
        None,
        max_length=20,
        description="morning / afternoon / evening (derived from the server clock if omitted)"
    )


class MessageResponse(BaseModel):
    message: str


class HabitBrief(BaseModel):
    name: str = Field(..., max_length=100)
    category: str = "custom"


class SuggestHabitsRequest(BaseModel):
    current_habits: List[HabitBrief] = Field(default_factory=list, max_length=50)
    user_goals: Optional[str] = Field(None, max_length=500)


class SuggestHabitsResponse(BaseModel):
    suggestions: List[HabitSuggestion]


class HabitDescriptionRequest(BaseModel):
    habit_name: str = Field(..., min_length=1, max_length=100)
    category: str = "custom"


class HabitDescriptionResponse(BaseModel):
    description: str


class PatternCompletion(BaseModel):
    """One completion as sent for pattern analysis"""
    date: str
    time: str
    mood: Optional[int] = Field(None, ge=1, le=5)
    energy: Optional[int] = Field(None, ge=1, le=5)
    habit_name: str


class AnalyzePatternsRequest(BaseModel):
    completions: List[PatternCompletion] = Field(default_factory=list)


class StreakAlertRequest(BaseModel):
    habit_name: str = Field(..., min_length=1, max_length=100)
    streak_days: int = Field(..., ge=0)
    last_completion: Optional[str] = None
    preferred_time: Optional[str] = None


class ProgressReportRequest(BaseModel):
    period: Literal["weekly", "monthly"] = "weekly"
    total_completions: int = Field(0, ge=0)
    streaks: List[int] = Field(default_factory=list)
    completion_rate: float = Field(0, ge=0, le=100)
    top_habits: List[str] = Field(default_factory=list)
    improvements: List[str] = Field(default_factory=list)


# ==========================================
# Infrastructure
# ==========================================

class HealthCheckResponse(BaseModel):
    """Health check response"""
    status: str = Field(..., description="Service status")
    database: str = Field(..., description="Database connection status")
    version: str
    timestamp: datetime = Field(..., description="Check timestamp")


class ErrorResponse(BaseModel):
    """Error response model"""
    error: str = Field(..., description="Error type")
    message: str = Field(..., description="User-facing error message")
    request_id: Optional[str] = None
    timestamp: datetime
