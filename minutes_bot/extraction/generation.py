"""Text-generation clients and response text extraction."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol

import anthropic
from anthropic import AsyncAnthropic
from openai import APIError, APIStatusError, AsyncOpenAI

from minutes_bot.errors import ServiceCallError
from minutes_bot.pipeline_config import GenerationProvider


class GenerationClient(Protocol):
    """One system instruction plus one user text in, raw response mapping out."""

    async def generate(self, system: str, user_text: str, *, model: str) -> dict[str, Any]: ...


class OpenAIGenerationClient:
    """Generate text with the OpenAI Responses API."""

    def __init__(self, api_key: str, timeout: float = 60.0) -> None:
        self._client = AsyncOpenAI(api_key=api_key, timeout=timeout, max_retries=0)

    async def generate(self, system: str, user_text: str, *, model: str) -> dict[str, Any]:
        try:
            response = await self._client.responses.create(
                model=model,
                input=[
                    {"role": "system", "content": [{"type": "input_text", "text": system}]},
                    {"role": "user", "content": [{"type": "input_text", "text": user_text}]},
                ],
            )
        except APIStatusError as exc:
            raise ServiceCallError("Generation", exc.status_code, exc.response.text) from exc
        except APIError as exc:
            raise ServiceCallError("Generation", None, str(exc)) from exc
        return response.model_dump()


class AnthropicGenerationClient:
    """Generate text with the Anthropic Messages API."""

    def __init__(self, api_key: str, max_tokens: int = 4096, timeout: float = 60.0) -> None:
        self._client = AsyncAnthropic(api_key=api_key, timeout=timeout, max_retries=0)
        self._max_tokens = max_tokens

    async def generate(self, system: str, user_text: str, *, model: str) -> dict[str, Any]:
        try:
            response = await self._client.messages.create(
                model=model,
                max_tokens=self._max_tokens,
                system=system,
                messages=[{"role": "user", "content": user_text}],
            )
        except anthropic.APIStatusError as exc:
            raise ServiceCallError("Generation", exc.status_code, exc.response.text) from exc
        except anthropic.APIError as exc:
            raise ServiceCallError("Generation", None, str(exc)) from exc
        return response.model_dump()


def build_generation_client(
    provider: GenerationProvider,
    *,
    openai_api_key: str = "",
    anthropic_api_key: str = "",
    max_tokens: int = 4096,
    timeout: float = 60.0,
) -> GenerationClient:
    """Create the client for the configured text-generation provider."""
    if provider is GenerationProvider.ANTHROPIC:
        return AnthropicGenerationClient(anthropic_api_key, max_tokens=max_tokens, timeout=timeout)
    return OpenAIGenerationClient(openai_api_key, timeout=timeout)


def extract_output_text(response: Mapping[str, Any] | None) -> str:
    """Pull the generated text out of a raw response.

    Prefers the first structured content block's ``text`` (Responses API
    ``output[0].content[0]``, Messages API ``content[0]``), then a flattened
    top-level ``output_text``/``text`` field.  A response with no text yields
    ``""``; shape ambiguity is never an error.
    """
    if not response:
        return ""

    blocks = response.get("output") or response.get("content")
    if isinstance(blocks, list) and blocks and isinstance(blocks[0], Mapping):
        first = blocks[0]
        inner = first.get("content")
        if isinstance(inner, list) and inner and isinstance(inner[0], Mapping):
            text = inner[0].get("text")
            if isinstance(text, str):
                return text
        text = first.get("text")
        if isinstance(text, str):
            return text

    for key in ("output_text", "text"):
        text = response.get(key)
        if isinstance(text, str):
            return text
    return ""
