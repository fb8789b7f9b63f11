"""Fixtures for API route tests"""
import pytest
from unittest.mock import AsyncMock, MagicMock
from fastapi.testclient import TestClient

from antar.ai.copywriter import Copywriter
from antar.ai.text_generator import StaticTextGenerator
from antar.api.auth import verify_api_key
from antar.api.dependencies import get_container
from antar.api.middleware import limiter
from antar.api.server import create_api_application


@pytest.fixture
def container():
    """Service container with mocked services and a static copywriter"""
    container = MagicMock()
    container.db.ping = AsyncMock(return_value=True)
    container.profile_service = AsyncMock()
    container.habit_service = AsyncMock()
    container.analytics_service = AsyncMock()
    container.leaderboard_service = AsyncMock()
    container.copywriter = Copywriter(StaticTextGenerator(), choose=lambda options: options[0])
    return container


@pytest.fixture
def app(container):
    app = create_api_application()
    app.dependency_overrides[get_container] = lambda: container
    app.dependency_overrides[verify_api_key] = lambda: "test-key"
    return app


@pytest.fixture
def client(app):
    """Client that skips the lifespan (no database pool is opened)"""
    limiter.enabled = False
    yield TestClient(app)
    limiter.enabled = True
