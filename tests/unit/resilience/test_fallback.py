"""Unit tests for fallback strategies (antar/resilience/fallback.py)"""
import pytest
from unittest.mock import AsyncMock, patch

from antar.resilience.fallback import FallbackStrategy, execute_with_fallbacks


@pytest.mark.asyncio
async def test_primary_success_skips_fallbacks():
    primary = AsyncMock(return_value="primary")
    secondary = AsyncMock(return_value="secondary")

    result = await execute_with_fallbacks([
        FallbackStrategy("primary", primary, priority=1),
        FallbackStrategy("secondary", secondary, priority=2),
    ], "prompt")

    assert result == "primary"
    primary.assert_called_once_with("prompt")
    secondary.assert_not_called()


@pytest.mark.asyncio
async def test_falls_back_in_priority_order():
    """Strategies run by priority, not list order"""
    order = []

    async def make(name, fail):
        order.append(name)
        if fail:
            raise RuntimeError(name)
        return name

    strategies = [
        FallbackStrategy("third", lambda: make("third", False), priority=3),
        FallbackStrategy("first", lambda: make("first", True), priority=1),
        FallbackStrategy("second", lambda: make("second", True), priority=2),
    ]

    result = await execute_with_fallbacks(strategies)

    assert result == "third"
    assert order == ["first", "second", "third"]


@pytest.mark.asyncio
async def test_all_fail_raises_last_exception():
    strategies = [
        FallbackStrategy("a", AsyncMock(side_effect=RuntimeError("a down")), priority=1),
        FallbackStrategy("b", AsyncMock(side_effect=TimeoutError("b slow")), priority=2),
    ]

    with pytest.raises(TimeoutError, match="b slow"):
        await execute_with_fallbacks(strategies)


@pytest.mark.asyncio
async def test_empty_strategies_rejected():
    with pytest.raises(ValueError):
        await execute_with_fallbacks([])


@pytest.mark.asyncio
@patch('antar.resilience.fallback.record_fallback')
async def test_fallback_metrics_recorded_for_secondary(mock_record):
    await execute_with_fallbacks([
        FallbackStrategy("gpt-4o", AsyncMock(side_effect=RuntimeError()), priority=1),
        FallbackStrategy("gpt-4o-mini", AsyncMock(return_value="ok"), priority=2),
    ])

    mock_record.assert_called_once_with("gpt-4o", "gpt-4o-mini", success=True)
