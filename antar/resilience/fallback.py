"""Fallback strategies for provider failures

Tries strategies in priority order until one succeeds. The AI layer uses it
to walk the configured model list before giving up on generated text.
"""

import logging
from typing import Any, Callable, List, TypeVar
from dataclasses import dataclass

from antar.resilience.metrics import record_fallback

logger = logging.getLogger(__name__)

T = TypeVar('T')


@dataclass
class FallbackStrategy:
    """
    A fallback strategy with priority ordering.

    Attributes:
        name: Human-readable name for logging
        handler: Async callable that implements the strategy
        priority: Priority level (lower = higher priority, 1 = primary)
    """
    name: str
    handler: Callable[..., T]
    priority: int


async def execute_with_fallbacks(
    strategies: List[FallbackStrategy],
    *args: Any,
    **kwargs: Any
) -> T:
    """
    Execute strategies in priority order until one succeeds.

    Args:
        strategies: Strategies to try
        *args, **kwargs: Arguments to pass to each strategy handler

    Returns:
        Result from the first successful strategy

    Raises:
        The last exception if every strategy fails, ValueError if none were given

    Example:
        strategies = [
            FallbackStrategy("gpt-4o", call_primary, priority=1),
            FallbackStrategy("gpt-4o-mini", call_secondary, priority=2),
        ]
        result = await execute_with_fallbacks(strategies, prompt="hi")
    """
    if not strategies:
        raise ValueError("No fallback strategies given")

    sorted_strategies = sorted(strategies, key=lambda s: s.priority)
    primary_api = sorted_strategies[0].name
    last_exception = None

    for strategy in sorted_strategies:
        try:
            logger.info(f"[FALLBACK] Trying strategy: {strategy.name}")
            result = await strategy.handler(*args, **kwargs)
            logger.info(f"[FALLBACK] Strategy '{strategy.name}' succeeded")

            if strategy.priority > 1:
                record_fallback(primary_api, strategy.name, success=True)

            return result

        except Exception as e:
            logger.warning(
                f"[FALLBACK] Strategy '{strategy.name}' failed: "
                f"{type(e).__name__}: {e}"
            )
            last_exception = e

            if strategy.priority > 1:
                record_fallback(primary_api, strategy.name, success=False)

    logger.error(
        f"[FALLBACK] All {len(sorted_strategies)} fallback strategies exhausted"
    )
    raise last_exception
