"""Anthropic Claude provider using anthropic SDK with native async."""

import asyncio
import logging
import os
import time

import anthropic as anthropic_sdk

from config.config_loader import ModelConfig
from peer_council.models import Completion
from peer_council.providers.base import AIProvider, Message, ProviderError

logger = logging.getLogger(__name__)


def _split_system(messages: list[Message]) -> tuple[str | None, list[Message]]:
    """Anthropic takes the system prompt as a separate argument."""
    system_parts = [m["content"] for m in messages if m["role"] == "system"]
    chat = [{"role": m["role"], "content": m["content"]} for m in messages if m["role"] != "system"]
    return ("\n\n".join(system_parts) if system_parts else None), chat


class AnthropicProvider(AIProvider):
    """Anthropic Claude provider via anthropic SDK."""

    def __init__(self, config: ModelConfig) -> None:
        self._config = config
        api_key = os.environ.get(config.api_key_env, "").strip()
        if not api_key:
            raise ProviderError(config.model_id, f"Missing API key: {config.api_key_env}")
        self._client = anthropic_sdk.AsyncAnthropic(api_key=api_key)

    def name(self) -> str:
        return self._config.model_id

    def model_string(self) -> str:
        return self._config.model

    async def generate(self, messages: list[Message]) -> Completion:
        system, chat = _split_system(messages)
        kwargs = {
            "model": self._config.model,
            "max_tokens": self._config.max_tokens,
            "messages": chat,
        }
        if system:
            kwargs["system"] = system

        start = time.monotonic()
        try:
            response = await asyncio.wait_for(
                self._client.messages.create(**kwargs),
                timeout=self._config.timeout_sec,
            )
        except TimeoutError as exc:
            raise ProviderError(self._config.model_id, f"Request timed out after {self._config.timeout_sec}s") from exc
        except Exception as exc:
            raise ProviderError(self._config.model_id, f"API call failed: {exc}") from exc

        latency = time.monotonic() - start

        if not response.content:
            raise ProviderError(self._config.model_id, "Empty response content")

        text_blocks = [b.text for b in response.content if b.type == "text"]
        if not text_blocks:
            raise ProviderError(self._config.model_id, "No text blocks in response")

        token_count: int | None = None
        if response.usage:
            token_count = response.usage.input_tokens + response.usage.output_tokens

        logger.info("%s: %.2fs, %s tokens", self._config.model_id, latency, token_count)

        return Completion(
            model_id=self._config.model_id,
            content="\n".join(text_blocks),
            latency_sec=latency,
            token_count=token_count,
        )
