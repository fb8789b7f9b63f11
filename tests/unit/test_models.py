"""Unit tests for Pydantic models (antar/models, antar/api/models.py)"""
import pytest
from pydantic import ValidationError as PydanticValidationError

from antar.api.models import CompletionRequest, HabitCreateRequest, ProgressReportRequest
from antar.models.gamification import DifficultyTier, LevelProgress, UserXPState
from antar.models.habit import HabitCategory
from antar.models.profile import Profile


def test_user_xp_state_rejects_negative():
    with pytest.raises(PydanticValidationError):
        UserXPState(total_xp=-1)


def test_level_progress_xp_remaining():
    progress = LevelProgress(current_level=2, xp_current=250, xp_for_next=300, progress=250 / 300)

    assert progress.xp_remaining == 50


def test_profile_display_name_fallbacks():
    assert Profile(id="u", username="sam").display_name == "sam"
    assert Profile(id="u", full_name="Sam Smith").display_name == "Sam Smith"
    assert Profile(id="u").display_name == "Anonymous"


def test_habit_create_request_defaults():
    request = HabitCreateRequest(name="Read")

    assert request.category == HabitCategory.CUSTOM
    assert request.difficulty_level == DifficultyTier.MEDIUM
    assert request.frequency_config == {}


def test_habit_create_request_rejects_unknown_difficulty():
    with pytest.raises(PydanticValidationError):
        HabitCreateRequest(name="Read", difficulty_level="impossible")


def test_habit_create_request_requires_name():
    with pytest.raises(PydanticValidationError):
        HabitCreateRequest(name="")


@pytest.mark.parametrize("field", ["mood_rating", "energy_level"])
def test_completion_request_ratings_bounded(field):
    with pytest.raises(PydanticValidationError):
        CompletionRequest(**{field: 6})


def test_progress_report_request_period():
    assert ProgressReportRequest().period == "weekly"

    with pytest.raises(PydanticValidationError):
        ProgressReportRequest(period="daily")
