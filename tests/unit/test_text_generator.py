"""Unit tests for text generation backends (antar/ai/text_generator.py)"""
import asyncio
import pybreaker
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from antar import config
from antar.ai.text_generator import (
    OpenAITextGenerator,
    StaticTextGenerator,
    create_text_generator,
)


def _completion(content):
    response = MagicMock()
    response.choices = [MagicMock(message=MagicMock(content=content))]
    return response


@pytest.fixture
def breaker():
    return pybreaker.CircuitBreaker(fail_max=10, reset_timeout=60, name="test_ai")


@pytest.fixture
def mock_client():
    client = MagicMock()
    client.chat.completions.create = AsyncMock(return_value=_completion("Keep it up! 💪"))
    return client


def _generator(client, breaker, models=("model-a", "model-b")):
    return OpenAITextGenerator(
        api_key="test-key",
        models=list(models),
        timeout=1.0,
        max_retries=0,
        breaker=breaker,
        client=client
    )


# ============================================================================
# Static Generator
# ============================================================================

@pytest.mark.asyncio
async def test_static_generator_returns_reply_and_records_prompt():
    generator = StaticTextGenerator(reply="canned")

    assert await generator.generate("hello") == "canned"
    assert generator.prompts == ["hello"]


@pytest.mark.asyncio
async def test_static_generator_default_is_none():
    assert await StaticTextGenerator().generate("hello") is None


# ============================================================================
# OpenAI-compatible Generator
# ============================================================================

@pytest.mark.asyncio
async def test_generate_uses_primary_model(mock_client, breaker):
    generator = _generator(mock_client, breaker)

    result = await generator.generate("Motivate me", system_prompt="Be kind")

    assert result == "Keep it up! 💪"
    kwargs = mock_client.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == "model-a"
    assert kwargs["messages"] == [
        {"role": "system", "content": "Be kind"},
        {"role": "user", "content": "Motivate me"},
    ]


@pytest.mark.asyncio
async def test_generate_falls_back_to_next_model(mock_client, breaker):
    mock_client.chat.completions.create.side_effect = [
        RuntimeError("model-a down"),
        _completion("From model b"),
    ]
    generator = _generator(mock_client, breaker)

    result = await generator.generate("prompt")

    assert result == "From model b"
    models = [c.kwargs["model"] for c in mock_client.chat.completions.create.call_args_list]
    assert models == ["model-a", "model-b"]


@pytest.mark.asyncio
async def test_empty_response_moves_to_next_model(mock_client, breaker):
    mock_client.chat.completions.create.side_effect = [
        _completion("   "),
        _completion("Real text"),
    ]
    generator = _generator(mock_client, breaker)

    assert await generator.generate("prompt") == "Real text"


@pytest.mark.asyncio
async def test_all_models_fail_returns_none(mock_client, breaker):
    mock_client.chat.completions.create.side_effect = RuntimeError("everything down")
    generator = _generator(mock_client, breaker)

    assert await generator.generate("prompt") is None
    assert mock_client.chat.completions.create.call_count == 2


@pytest.mark.asyncio
async def test_timeout_returns_none(mock_client, breaker):
    mock_client.chat.completions.create.side_effect = asyncio.TimeoutError()
    generator = _generator(mock_client, breaker, models=["model-a"])

    assert await generator.generate("prompt") is None


@pytest.mark.asyncio
async def test_open_breaker_skips_provider(mock_client, breaker):
    breaker.open()
    generator = _generator(mock_client, breaker)

    assert await generator.generate("prompt") is None
    mock_client.chat.completions.create.assert_not_called()


@pytest.mark.asyncio
async def test_no_models_configured(mock_client, breaker):
    generator = _generator(mock_client, breaker, models=[])

    assert await generator.generate("prompt") is None
    mock_client.chat.completions.create.assert_not_called()


@pytest.mark.asyncio
@patch('antar.resilience.retry.calculate_backoff', return_value=0)
async def test_transient_error_is_retried(mock_backoff, mock_client, breaker):
    mock_client.chat.completions.create.side_effect = [
        asyncio.TimeoutError(),
        _completion("Second try"),
    ]
    generator = OpenAITextGenerator(
        api_key="test-key",
        models=["model-a"],
        max_retries=1,
        breaker=breaker,
        client=mock_client
    )

    assert await generator.generate("prompt") == "Second try"
    mock_backoff.assert_called_once_with(0)


# ============================================================================
# Factory
# ============================================================================

def test_create_text_generator_without_key():
    with patch.object(config, "AI_API_KEY", ""):
        assert isinstance(create_text_generator(), StaticTextGenerator)


def test_create_text_generator_with_key():
    with patch.object(config, "AI_API_KEY", "sk-test"):
        assert isinstance(create_text_generator(), OpenAITextGenerator)
