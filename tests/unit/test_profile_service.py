"""Unit tests for ProfileService (antar/services/profile_service.py)"""
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from antar.exceptions import ConflictError, RecordNotFoundError, ValidationError
from antar.services.profile_service import ProfileService


@pytest.fixture
def profile_queries(sample_profile):
    with patch('antar.services.profile_service.profile_queries') as mock:
        mock.EDITABLE_PROFILE_FIELDS = ("username", "full_name", "avatar_url", "timezone")
        mock.get_profile = AsyncMock(return_value=sample_profile)
        mock.update_profile = AsyncMock(side_effect=lambda db, user_id, changes: {
            **sample_profile, **changes
        })
        yield mock


@pytest.fixture
def profile_service(profile_queries):
    return ProfileService(MagicMock())


@pytest.mark.asyncio
async def test_get_profile(profile_service):
    profile = await profile_service.get_profile("user-1")

    assert profile.username == "alice"
    assert profile.total_xp == 90


@pytest.mark.asyncio
async def test_get_profile_missing(profile_service, profile_queries):
    profile_queries.get_profile.return_value = None

    with pytest.raises(RecordNotFoundError) as exc_info:
        await profile_service.get_profile("ghost")

    assert exc_info.value.record_type == "Profile"


@pytest.mark.asyncio
async def test_update_profile_sanitizes_username(profile_service, profile_queries):
    profile = await profile_service.update_profile("user-1", {"username": "Alice.Smith!"})

    assert profile_queries.update_profile.call_args.args[2] == {"username": "alicesmith"}
    assert profile.username == "alicesmith"


@pytest.mark.asyncio
async def test_update_profile_rejects_empty_username(profile_service, profile_queries):
    with pytest.raises(ValidationError) as exc_info:
        await profile_service.update_profile("user-1", {"username": "!!!"})

    assert exc_info.value.field == "username"
    profile_queries.update_profile.assert_not_called()


@pytest.mark.asyncio
async def test_update_profile_strips_markup_and_clears_empty(profile_service, profile_queries):
    await profile_service.update_profile("user-1", {"full_name": "<b>Alice</b>", "avatar_url": ""})

    assert profile_queries.update_profile.call_args.args[2] == {"full_name": "Alice", "avatar_url": None}


@pytest.mark.asyncio
async def test_update_profile_timezone(profile_service, profile_queries):
    profile = await profile_service.update_profile("user-1", {"timezone": "Europe/Stockholm"})

    assert profile.timezone == "Europe/Stockholm"


@pytest.mark.asyncio
async def test_update_profile_unknown_timezone(profile_service, profile_queries):
    with pytest.raises(ValidationError) as exc_info:
        await profile_service.update_profile("user-1", {"timezone": "Mars/Olympus_Mons"})

    assert exc_info.value.field == "timezone"
    profile_queries.update_profile.assert_not_called()


@pytest.mark.asyncio
async def test_update_profile_never_touches_xp(profile_service, profile_queries):
    with pytest.raises(ValidationError):
        await profile_service.update_profile("user-1", {"total_xp": 100000, "current_level": 50})

    profile_queries.update_profile.assert_not_called()


@pytest.mark.asyncio
async def test_update_profile_username_taken(profile_service, profile_queries):
    profile_queries.update_profile.side_effect = ConflictError("Username is already taken")

    with pytest.raises(ConflictError):
        await profile_service.update_profile("user-1", {"username": "bob"})


@pytest.mark.asyncio
async def test_update_profile_missing(profile_service, profile_queries):
    profile_queries.update_profile.side_effect = None
    profile_queries.update_profile.return_value = None

    with pytest.raises(RecordNotFoundError):
        await profile_service.update_profile("ghost", {"full_name": "Ghost"})
