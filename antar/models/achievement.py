"""Achievement models for gamification"""
from enum import Enum
from pydantic import BaseModel
from typing import Optional, Any
from datetime import datetime


class AchievementRarity(str, Enum):
    """Achievement rarity levels"""
    COMMON = "common"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"


class Achievement(BaseModel):
    """Achievement definition"""
    id: str
    code: str
    name: str
    description: str
    icon: str
    xp_reward: int = 0
    rarity: AchievementRarity = AchievementRarity.COMMON
    category: Optional[str] = None
    criteria: dict[str, Any]


class UnlockedAchievement(BaseModel):
    """Achievement a user has unlocked"""
    achievement_id: str
    code: str
    name: str
    description: str
    icon: str
    xp_reward: int = 0
    rarity: AchievementRarity = AchievementRarity.COMMON
    unlocked_at: datetime


class ProgressSnapshot(BaseModel):
    """User totals that achievement criteria are evaluated against"""
    total_xp: int = 0
    level: int = 1
    total_completions: int = 0
    longest_streak: int = 0
    current_streak: int = 0
    habits_count: int = 0


class UserAchievement(BaseModel):
    """Stored unlock record"""
    id: str
    user_id: str
    achievement_id: str
    unlocked_at: datetime
