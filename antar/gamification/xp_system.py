"""
XP and Leveling System

Pure functions that turn stored totals into displayable numbers.

Leveling Curve:
    level = floor(sqrt(total_xp / 100)) + 1

    Level 1:    0 XP
    Level 2:  100 XP
    Level 3:  400 XP
    Level 4:  900 XP
    Level n:  (n - 1)^2 * 100 XP

XP Award Rules:
- Habit completion: 10 / 20 / 30 XP for easy / medium / hard
- Streak milestones (exact day counts only): 7 → 50, 30 → 200,
  100 → 500, 365 → 1000
- Achievement unlocks: per-achievement xp_reward
"""

import math
from typing import Union

from antar.exceptions import ValidationError
from antar.models.gamification import DifficultyTier, LevelProgress, PetType

XP_PER_LEVEL_UNIT = 100

DIFFICULTY_XP = {
    DifficultyTier.EASY: 10,
    DifficultyTier.MEDIUM: 20,
    DifficultyTier.HARD: 30,
}

STREAK_BONUS_XP = {
    7: 50,
    30: 200,
    100: 500,
    365: 1000,
}

# Upper bound (exclusive) on completions for each pet stage
PET_STAGES = [
    (10, PetType.SEED),
    (30, PetType.SPROUT),
    (60, PetType.PLANT),
    (90, PetType.TREE),
]

MAX_PET_GROWTH = 100


def calculate_level(total_xp: Union[int, float]) -> int:
    """
    Calculate level from total XP

    Raises:
        ValidationError: If total_xp is negative
    """
    if total_xp < 0:
        raise ValidationError("XP total must be non-negative", field="total_xp", value=total_xp)

    # isqrt keeps level boundaries exact: 400 XP is level 3, never 2.999...
    return math.isqrt(int(total_xp // XP_PER_LEVEL_UNIT)) + 1


def xp_for_level(level: int) -> int:
    """Cumulative XP needed to reach the start of a level"""
    if level < 1:
        raise ValidationError("Level must be at least 1", field="level", value=level)
    return (level - 1) ** 2 * XP_PER_LEVEL_UNIT


def xp_for_next_level(level: int) -> int:
    """Cumulative XP needed to reach the level after this one"""
    return xp_for_level(level + 1)


def level_progress(total_xp: Union[int, float]) -> LevelProgress:
    """
    Break a lifetime XP total into level, in-level XP and bar fill

    Args:
        total_xp: Lifetime XP (non-negative; fractions are dropped)

    Returns:
        LevelProgress with current_level, xp_current (XP earned since
        entering the level), xp_for_next (width of the level band) and
        progress (xp_current / xp_for_next)
    """
    current_level = calculate_level(total_xp)
    total_xp = int(total_xp)
    level_start = xp_for_level(current_level)
    level_end = xp_for_level(current_level + 1)

    xp_current = total_xp - level_start
    xp_for_next = level_end - level_start

    return LevelProgress(
        current_level=current_level,
        xp_current=xp_current,
        xp_for_next=xp_for_next,
        progress=xp_current / xp_for_next,
    )


def get_xp_for_difficulty(difficulty: Union[DifficultyTier, str]) -> int:
    """
    Base XP for completing a habit of the given difficulty

    Raises:
        ValidationError: If difficulty is not easy, medium or hard
    """
    try:
        tier = DifficultyTier(difficulty)
    except ValueError:
        raise ValidationError(
            "Difficulty must be one of easy, medium, hard",
            field="difficulty",
            value=difficulty
        )
    return DIFFICULTY_XP[tier]


def get_streak_bonus_xp(streak_days: int) -> int:
    """One-time bonus for hitting an exact streak milestone, else 0"""
    return STREAK_BONUS_XP.get(streak_days, 0)


def get_pet_type(completions: int) -> PetType:
    """Pet stage for a lifetime completion count"""
    for upper_bound, pet_type in PET_STAGES:
        if completions < upper_bound:
            return pet_type
    return PetType.FOREST


def get_pet_growth_stage(completions: int) -> int:
    """Pet growth bar (0-100)"""
    return max(min(completions, MAX_PET_GROWTH), 0)
