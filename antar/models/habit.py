"""Habit, completion and streak records"""
from datetime import date, datetime, time
from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, Field

from antar.models.achievement import UnlockedAchievement
from antar.models.gamification import DifficultyTier, LevelProgress


class HabitCategory(str, Enum):
    HEALTH = "health"
    PRODUCTIVITY = "productivity"
    MINDFULNESS = "mindfulness"
    LEARNING = "learning"
    SOCIAL = "social"
    CUSTOM = "custom"


class FrequencyType(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    SPECIFIC_DAYS = "specific_days"
    CUSTOM = "custom"


class Habit(BaseModel):
    """A habit owned by one user"""
    id: str
    user_id: str
    name: str
    description: Optional[str] = None
    category: HabitCategory = HabitCategory.CUSTOM
    color: str = "#6366f1"
    icon: str = "target"
    frequency_type: FrequencyType = FrequencyType.DAILY
    frequency_config: dict[str, Any] = Field(default_factory=dict)
    preferred_time: Optional[time] = None
    difficulty_level: DifficultyTier = DifficultyTier.MEDIUM
    xp_value: int = Field(20, ge=0)
    is_archived: bool = False
    created_at: Optional[datetime] = None


class HabitCompletion(BaseModel):
    """One completion of a habit on a calendar day"""
    id: str
    habit_id: str
    user_id: str
    completion_date: date
    completed_at: datetime
    mood_rating: Optional[int] = Field(None, ge=1, le=5)
    energy_level: Optional[int] = Field(None, ge=1, le=5)
    notes: Optional[str] = None
    duration_minutes: Optional[int] = Field(None, ge=0)
    is_streak_freeze: bool = False
    xp_earned: int = Field(10, ge=0)


class HabitStreak(BaseModel):
    """Per-habit streak counters"""
    habit_id: str
    user_id: str
    current_streak: int = Field(0, ge=0)
    longest_streak: int = Field(0, ge=0)
    total_completions: int = Field(0, ge=0)
    completion_rate: float = Field(0.0, ge=0, le=100)
    last_completed_date: Optional[date] = None
    streak_start_date: Optional[date] = None


class CompletionResult(BaseModel):
    """Everything the UI needs to render after a habit is checked off"""
    completion: HabitCompletion
    xp_awarded: int
    streak_bonus_xp: int = 0
    achievement_xp: int = 0
    total_xp: int
    leveled_up: bool = False
    level: LevelProgress
    current_streak: int
    longest_streak: int
    achievements_unlocked: list[UnlockedAchievement] = Field(default_factory=list)
    message: str = ""


class HabitSummary(Habit):
    """Active habit with its streak counters, as listed on the dashboard"""
    current_streak: int = Field(0, ge=0)
    longest_streak: int = Field(0, ge=0)
    total_completions: int = Field(0, ge=0)
    completion_rate: float = Field(0.0, ge=0, le=100)


class UncompleteResult(BaseModel):
    """Effect of undoing a completion"""
    habit_id: str
    completion_date: date
    xp_removed: int
    total_xp: int
    level: LevelProgress
    current_streak: int
    longest_streak: int


class HabitDetail(HabitSummary):
    """One habit with its streak dates and latest completions"""
    last_completed_date: Optional[date] = None
    streak_start_date: Optional[date] = None
    recent_completions: list[HabitCompletion] = Field(default_factory=list)


class CompletionRecord(BaseModel):
    """A completion joined with its habit's name and category"""
    id: str
    habit_id: str
    habit_name: str
    category: HabitCategory = HabitCategory.CUSTOM
    completion_date: date
    completed_at: datetime
    mood_rating: Optional[int] = None
    energy_level: Optional[int] = None
    notes: Optional[str] = None
    duration_minutes: Optional[int] = None
    xp_earned: int = 0
