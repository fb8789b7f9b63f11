"""Unit tests for XP and Leveling System (antar/gamification/xp_system.py)"""
import pytest

from antar.exceptions import ValidationError
from antar.gamification.xp_system import (
    calculate_level,
    xp_for_level,
    xp_for_next_level,
    level_progress,
    get_xp_for_difficulty,
    get_streak_bonus_xp,
    get_pet_type,
    get_pet_growth_stage,
)
from antar.models.gamification import DifficultyTier, PetType


# ============================================================================
# Level Calculation Tests
# ============================================================================

def test_calculate_level_zero_xp():
    """Test level 1 with 0 XP"""
    assert calculate_level(0) == 1


@pytest.mark.parametrize("total_xp,expected", [
    (99, 1),
    (100, 2),
    (399, 2),
    (400, 3),
    (899, 3),
    (900, 4),
    (10000, 11),
])
def test_calculate_level_boundaries(total_xp, expected):
    """Level boundaries sit exactly at (n-1)^2 * 100 XP"""
    assert calculate_level(total_xp) == expected


def test_calculate_level_accepts_float():
    assert calculate_level(400.0) == 3


def test_calculate_level_negative_rejected():
    with pytest.raises(ValidationError) as exc_info:
        calculate_level(-1)

    assert exc_info.value.field == "total_xp"


def test_calculate_level_is_monotonic():
    levels = [calculate_level(xp) for xp in range(0, 5000, 7)]
    assert levels == sorted(levels)


# ============================================================================
# Level Thresholds
# ============================================================================

def test_xp_for_level():
    assert xp_for_level(1) == 0
    assert xp_for_level(2) == 100
    assert xp_for_level(5) == 1600


def test_xp_for_next_level():
    assert xp_for_next_level(1) == 100
    assert xp_for_next_level(3) == 900


def test_xp_for_level_below_one_rejected():
    with pytest.raises(ValidationError):
        xp_for_level(0)


def test_level_threshold_round_trip():
    """Reaching a level's threshold puts you at that level"""
    for level in range(1, 30):
        assert calculate_level(xp_for_level(level)) == level


# ============================================================================
# Level Progress
# ============================================================================

def test_level_progress_mid_level():
    """250 XP: level 2, 150 into a 300 XP band"""
    progress = level_progress(250)

    assert progress.current_level == 2
    assert progress.xp_current == 150
    assert progress.xp_for_next == 300
    assert progress.progress == pytest.approx(0.5)
    assert progress.xp_remaining == 150


def test_level_progress_at_boundary():
    progress = level_progress(400)

    assert progress.current_level == 3
    assert progress.xp_current == 0
    assert progress.progress == 0


def test_level_progress_fractional_xp_floors():
    assert level_progress(150.5) == level_progress(150)


def test_level_progress_zero():
    progress = level_progress(0)

    assert progress.current_level == 1
    assert progress.xp_for_next == 100


# ============================================================================
# XP Awards
# ============================================================================

@pytest.mark.parametrize("difficulty,expected", [
    ("easy", 10),
    ("medium", 20),
    ("hard", 30),
    (DifficultyTier.HARD, 30),
])
def test_get_xp_for_difficulty(difficulty, expected):
    assert get_xp_for_difficulty(difficulty) == expected


def test_get_xp_for_unknown_difficulty():
    with pytest.raises(ValidationError) as exc_info:
        get_xp_for_difficulty("legendary")

    assert exc_info.value.field == "difficulty"


@pytest.mark.parametrize("streak,expected", [
    (7, 50),
    (30, 200),
    (100, 500),
    (365, 1000),
    (8, 0),
    (0, 0),
    (14, 0),
])
def test_get_streak_bonus_xp(streak, expected):
    """Only exact milestone lengths earn a bonus"""
    assert get_streak_bonus_xp(streak) == expected


# ============================================================================
# Pet
# ============================================================================

@pytest.mark.parametrize("completions,expected", [
    (0, PetType.SEED),
    (9, PetType.SEED),
    (10, PetType.SPROUT),
    (30, PetType.PLANT),
    (60, PetType.TREE),
    (90, PetType.FOREST),
    (500, PetType.FOREST),
])
def test_get_pet_type(completions, expected):
    assert get_pet_type(completions) == expected


def test_get_pet_growth_stage_is_clamped():
    assert get_pet_growth_stage(45) == 45
    assert get_pet_growth_stage(250) == 100
    assert get_pet_growth_stage(-3) == 0
