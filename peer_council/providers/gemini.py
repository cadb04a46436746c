"""Gemini provider using google-genai SDK with native async."""

import asyncio
import logging
import os
import time

from google import genai
from google.genai import types as genai_types

from config.config_loader import ModelConfig
from peer_council.models import Completion
from peer_council.providers.base import AIProvider, Message, ProviderError

logger = logging.getLogger(__name__)


def _to_contents(messages: list[Message]) -> tuple[str | None, list[genai_types.Content]]:
    """Split system text out and map assistant turns to Gemini's "model" role."""
    system_parts: list[str] = []
    contents: list[genai_types.Content] = []
    for m in messages:
        if m["role"] == "system":
            system_parts.append(m["content"])
            continue
        role = "model" if m["role"] == "assistant" else "user"
        contents.append(genai_types.Content(role=role, parts=[genai_types.Part(text=m["content"])]))
    return ("\n\n".join(system_parts) if system_parts else None), contents


class GeminiProvider(AIProvider):
    """Google Gemini provider via google-genai SDK."""

    def __init__(self, config: ModelConfig) -> None:
        self._config = config
        api_key = os.environ.get(config.api_key_env, "").strip()
        if not api_key:
            raise ProviderError(config.model_id, f"Missing API key: {config.api_key_env}")
        self._client = genai.Client(api_key=api_key)

    def name(self) -> str:
        return self._config.model_id

    def model_string(self) -> str:
        return self._config.model

    async def generate(self, messages: list[Message]) -> Completion:
        system, contents = _to_contents(messages)
        start = time.monotonic()
        try:
            response = await asyncio.wait_for(
                self._client.aio.models.generate_content(
                    model=self._config.model,
                    contents=contents,
                    config=genai_types.GenerateContentConfig(
                        max_output_tokens=self._config.max_tokens,
                        system_instruction=system,
                    ),
                ),
                timeout=self._config.timeout_sec,
            )
        except TimeoutError as exc:
            raise ProviderError(self._config.model_id, f"Request timed out after {self._config.timeout_sec}s") from exc
        except Exception as exc:
            raise ProviderError(self._config.model_id, f"API call failed: {exc}") from exc

        latency = time.monotonic() - start

        if not response.text:
            raise ProviderError(self._config.model_id, "Empty response text")

        token_count: int | None = None
        if response.usage_metadata:
            token_count = response.usage_metadata.total_token_count

        logger.info("%s: %.2fs, %s tokens", self._config.model_id, latency, token_count)

        return Completion(
            model_id=self._config.model_id,
            content=response.text,
            latency_sec=latency,
            token_count=token_count,
        )
