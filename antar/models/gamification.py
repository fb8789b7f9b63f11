"""XP, level and pet models"""
from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class DifficultyTier(str, Enum):
    """Habit difficulty, each bound to a base XP award"""
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class PetType(str, Enum):
    """Virtual pet stages, grown by total completions"""
    SEED = "seed"
    SPROUT = "sprout"
    PLANT = "plant"
    TREE = "tree"
    FOREST = "forest"


class UserXPState(BaseModel):
    """Lifetime XP total; level is always derived from it"""
    total_xp: int = Field(..., ge=0)


class LevelProgress(BaseModel):
    """Level badge and progress bar breakdown for a total XP value"""
    current_level: int = Field(..., ge=1)
    xp_current: int = Field(..., ge=0)  # XP earned inside the current level
    xp_for_next: int = Field(..., gt=0)  # width of the current level band
    progress: float = Field(..., ge=0)  # >= 1 means ready to level up

    @property
    def xp_remaining(self) -> int:
        return max(self.xp_for_next - self.xp_current, 0)


class XPSummary(BaseModel):
    """A user's XP total with its level breakdown and pet state"""
    user_id: str
    total_xp: int = Field(0, ge=0)
    level: LevelProgress
    pet_type: PetType = PetType.SEED
    pet_growth_stage: int = Field(0, ge=0, le=100)


class XPTransaction(BaseModel):
    """One entry in the XP ledger"""
    id: str
    amount: int
    source_type: str
    source_id: Optional[str] = None
    reason: Optional[str] = None
    awarded_at: datetime
