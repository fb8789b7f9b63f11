"""
Text generation backends

OpenAITextGenerator talks to any OpenAI-compatible chat completions endpoint
and walks a list of models in priority order. Each model call is:
- bounded by a timeout
- retried on transient errors (rate limits, timeouts, 5xx)
- routed through the shared AI provider circuit breaker

When every model fails, generate() returns None and callers use static copy.
"""

import asyncio
import logging
import time
from functools import partial
from typing import Optional, Protocol

import httpx
import pybreaker
from openai import AsyncOpenAI

from antar import config
from antar.exceptions import AIProviderError
from antar.resilience import (
    AI_PROVIDER_BREAKER,
    FallbackStrategy,
    execute_with_fallbacks,
    record_api_call,
    with_circuit_breaker,
    with_retry,
)

logger = logging.getLogger(__name__)


class TextGenerator(Protocol):
    """Anything that can turn a prompt into text, or None when it can't"""

    async def generate(self, prompt: str, system_prompt: Optional[str] = None) -> Optional[str]:
        ...


class StaticTextGenerator:
    """
    Generator that never calls out

    Used when no API key is configured and in tests. With no reply set it
    always returns None, which sends every Copywriter operation to its
    static fallback.
    """

    def __init__(self, reply: Optional[str] = None):
        self.reply = reply
        self.prompts: list[str] = []

    async def generate(self, prompt: str, system_prompt: Optional[str] = None) -> Optional[str]:
        self.prompts.append(prompt)
        return self.reply


class OpenAITextGenerator:
    """Chat completions with model fallback, retry, timeout and circuit breaker"""

    def __init__(
        self,
        api_key: str,
        base_url: str = config.AI_BASE_URL,
        models: Optional[list[str]] = None,
        timeout: float = config.AI_TIMEOUT_SECONDS,
        temperature: float = config.AI_TEMPERATURE,
        max_tokens: int = config.AI_MAX_TOKENS,
        max_retries: int = 1,
        breaker: pybreaker.CircuitBreaker = AI_PROVIDER_BREAKER,
        client: Optional[AsyncOpenAI] = None
    ):
        self.models = list(models if models is not None else config.AI_MODELS)
        self.timeout = timeout
        self.temperature = temperature
        self.max_tokens = max_tokens

        # Retries are handled here, not by the SDK
        self.client = client or AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=httpx.Timeout(timeout, connect=5.0),
            max_retries=0
        )

        self._protected_call = with_circuit_breaker(breaker)(
            with_retry(max_retries=max_retries)(self._call_model)
        )

    async def _call_model(self, model: str, prompt: str, system_prompt: Optional[str] = None) -> str:
        """
        One chat completion request

        Raises:
            asyncio.TimeoutError: If the model doesn't answer in time
            AIProviderError: If the model answers with no text
        """
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        start = time.monotonic()
        try:
            response = await asyncio.wait_for(
                self.client.chat.completions.create(
                    model=model,
                    messages=messages,
                    temperature=self.temperature,
                    max_tokens=self.max_tokens
                ),
                timeout=self.timeout
            )
        except Exception:
            record_api_call(model, success=False, duration=time.monotonic() - start)
            raise

        text = response.choices[0].message.content if response.choices else None
        if not text or not text.strip():
            record_api_call(model, success=False, duration=time.monotonic() - start)
            raise AIProviderError(f"{model} returned an empty response", model=model)

        record_api_call(model, success=True, duration=time.monotonic() - start)
        logger.info(f"[AI] {model} responded ({len(text)} chars)")
        return text

    async def generate(self, prompt: str, system_prompt: Optional[str] = None) -> Optional[str]:
        """
        Generate text with the first model that answers

        Returns:
            Generated text, or None if every model failed or none are configured
        """
        if not self.models:
            logger.warning("[AI] No models configured, using static fallback")
            return None

        strategies = [
            FallbackStrategy(name=model, handler=partial(self._protected_call, model), priority=priority)
            for priority, model in enumerate(self.models, start=1)
        ]

        try:
            return await execute_with_fallbacks(strategies, prompt, system_prompt)
        except Exception as e:
            logger.warning(
                f"[AI] All {len(self.models)} models failed, using static fallback: "
                f"{type(e).__name__}: {e}"
            )
            return None


def create_text_generator() -> TextGenerator:
    """Text generator for the configured provider, static when no key is set"""
    if not config.AI_API_KEY:
        logger.warning("AI_API_KEY not set, AI copywriting will use static fallbacks")
        return StaticTextGenerator()

    return OpenAITextGenerator(api_key=config.AI_API_KEY)
