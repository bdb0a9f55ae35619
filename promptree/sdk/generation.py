"""Generation backends.

Every backend is exposed as an async callable
``generate(prompt, temperature) -> str``; the graph core knows nothing else
about it. Supports OpenAI and Anthropic (Claude) models, plus an offline
backend that produces dummy text without touching the network.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Awaitable, Callable

from promptree.config import Settings
from promptree.errors import GenerationError

logger = logging.getLogger(__name__)

Generate = Callable[[str, float], Awaitable[str]]

DEFAULT_ANTHROPIC_MAX_TOKENS = 4096


def openai_generator(
    api_key: str | None,
    model: str,
    max_tokens: int | None = None,
) -> Generate:
    """Backend calling the OpenAI chat completions API."""
    import openai

    if not api_key:
        raise ValueError("OPENAI_API_KEY environment variable not set")
    client = openai.AsyncOpenAI(api_key=api_key)

    async def generate(prompt: str, temperature: float) -> str:
        params = {
            "model": model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": temperature,
        }
        if max_tokens:
            params["max_tokens"] = max_tokens
        try:
            response = await client.chat.completions.create(**params)
        except Exception as e:
            raise GenerationError(f"OpenAI API error: {e}") from e
        return response.choices[0].message.content or ""

    return generate


def anthropic_generator(
    api_key: str | None,
    model: str,
    max_tokens: int | None = None,
) -> Generate:
    """Backend calling the Anthropic messages API."""
    import anthropic

    if not api_key:
        raise ValueError("ANTHROPIC_API_KEY environment variable not set")
    client = anthropic.AsyncAnthropic(api_key=api_key)

    async def generate(prompt: str, temperature: float) -> str:
        try:
            # anthropic requires max_tokens
            response = await client.messages.create(
                model=model,
                max_tokens=max_tokens or DEFAULT_ANTHROPIC_MAX_TOKENS,
                temperature=temperature,
                messages=[{"role": "user", "content": prompt}],
            )
        except Exception as e:
            raise GenerationError(f"Anthropic API error: {e}") from e
        if not response.content:
            return ""
        return "".join(
            block.text for block in response.content
            if hasattr(block, "text")
        )

    return generate


def offline_generator() -> Generate:
    """Deterministic dummy output, for running without an API key."""

    async def generate(prompt: str, temperature: float) -> str:
        digest = hashlib.sha1(f"{prompt}|{temperature:.4f}".encode("utf-8")).hexdigest()[:8]
        headline = prompt.strip().split("\n")[0][:60] or "<empty prompt>"
        return (
            f"[offline {digest}] Response to: {headline}\n"
            f"(temperature {temperature:.2f}; configure PROMPTREE_PROVIDER for real output)"
        )

    return generate


def build_generator(settings: Settings) -> Generate:
    """Pick the backend named by ``settings.provider``."""
    provider = settings.provider.lower()
    logger.info("using %s generation backend (model %s)", provider, settings.model)

    if provider == "openai":
        return openai_generator(settings.openai_api_key, settings.model, settings.max_tokens)
    elif provider == "anthropic":
        return anthropic_generator(settings.anthropic_api_key, settings.model, settings.max_tokens)
    elif provider == "offline":
        return offline_generator()
    else:
        raise ValueError(
            f"Unsupported provider: {settings.provider}. Supported: openai, anthropic, offline"
        )
