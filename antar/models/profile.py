"""User profile and dashboard models"""
from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, Field

from antar.models.gamification import PetType
from antar.models.habit import CompletionRecord


class Profile(BaseModel):
    """User profile with XP and pet state"""
    id: str
    username: Optional[str] = None
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    timezone: str = "UTC"
    streak_freeze_count: int = Field(0, ge=0)
    total_xp: int = Field(0, ge=0)
    current_level: int = Field(1, ge=1)
    pet_type: PetType = PetType.SEED
    pet_growth_stage: int = Field(0, ge=0, le=100)
    created_at: Optional[datetime] = None

    @property
    def display_name(self) -> str:
        return self.username or self.full_name or "Anonymous"


class DashboardStats(BaseModel):
    """Headline numbers for the dashboard"""
    total_habits: int = 0
    completed_today: int = 0
    completion_rate: int = 0
    active_streaks: int = 0
    total_xp: int = 0
    current_level: int = 1
    xp_for_next_level: int = 100


class CompletionStats(BaseModel):
    """Completion counts over standard windows"""
    total: int = 0
    today: int = 0
    this_week: int = 0
    this_month: int = 0
    completion_rate: int = 0


class DailyCount(BaseModel):
    completion_date: date
    completions: int = 0


class MoodEnergyPoint(BaseModel):
    mood: int
    energy: int


class CompletionHistory(BaseModel):
    """
    A user's completions over an analytics range with the breakdowns the
    analytics page charts: per day, per category, per local hour, and
    mood against energy.
    """
    range: str
    start_date: date
    end_date: date
    total_completions: int = 0
    active_days: int = 0
    total_xp: int = 0
    completion_rate: int = 0
    daily_counts: list[DailyCount] = Field(default_factory=list)
    category_breakdown: dict[str, int] = Field(default_factory=dict)
    hourly_distribution: list[int] = Field(default_factory=lambda: [0] * 24)
    mood_energy: list[MoodEnergyPoint] = Field(default_factory=list)
    completions: list[CompletionRecord] = Field(default_factory=list)
