"""Route completion requests to the provider configured for each model id."""

import logging

from config.config_loader import AppConfig
from peer_council.models import Completion
from peer_council.providers.anthropic import AnthropicProvider
from peer_council.providers.base import AIProvider, CompletionService, Message, ProviderError
from peer_council.providers.gemini import GeminiProvider
from peer_council.providers.openai_provider import OpenAIProvider

logger = logging.getLogger(__name__)

PROVIDER_CLASSES: dict[str, type[AIProvider]] = {
    "openai": OpenAIProvider,
    "anthropic": AnthropicProvider,
    "gemini": GeminiProvider,
}


class ProviderRegistry(CompletionService):
    """CompletionService over a fixed set of providers keyed by model id."""

    def __init__(self, providers: dict[str, AIProvider]) -> None:
        self._providers = dict(providers)

    def model_ids(self) -> list[str]:
        return list(self._providers)

    def __contains__(self, model_id: str) -> bool:
        return model_id in self._providers

    def without(self, model_ids: set[str]) -> "ProviderRegistry":
        return ProviderRegistry({k: v for k, v in self._providers.items() if k not in model_ids})

    async def generate(self, model_id: str, messages: list[Message]) -> Completion:
        """Call the provider, retrying once on timeout with 1.5x the timeout."""
        provider = self._providers.get(model_id)
        if provider is None:
            raise ProviderError(model_id, "No provider configured for this model")

        try:
            return await provider.generate(messages)
        except ProviderError as exc:
            if "timed out" not in str(exc).lower():
                raise

            cfg = getattr(provider, "_config", None)
            original_timeout: int | None = None
            if cfg is not None and hasattr(cfg, "timeout_sec"):
                original_timeout = cfg.timeout_sec
                cfg.timeout_sec = int(original_timeout * 1.5)
                logger.warning("%s timed out, retrying with %ds (1.5x)", model_id, cfg.timeout_sec)
            else:
                logger.warning("%s timed out, retrying", model_id)
            try:
                return await provider.generate(messages)
            finally:
                if cfg is not None and original_timeout is not None:
                    cfg.timeout_sec = original_timeout

    async def complete(self, model_id: str, messages: list[Message]) -> str:
        completion = await self.generate(model_id, messages)
        return completion.content


def build_registry(config: AppConfig) -> ProviderRegistry:
    """Instantiate a provider for every model with an API key. Unknown SDKs are skipped."""
    providers: dict[str, AIProvider] = {}
    for model_id in config.available_models:
        model_cfg = config.models[model_id]
        provider_cls = PROVIDER_CLASSES.get(model_cfg.sdk)
        if provider_cls is None:
            logger.warning("Model '%s' uses unknown sdk '%s', skipping", model_id, model_cfg.sdk)
            continue
        try:
            providers[model_id] = provider_cls(model_cfg)
        except Exception as exc:
            logger.warning("Failed to instantiate provider for '%s': %s", model_id, exc)
    return ProviderRegistry(providers)
