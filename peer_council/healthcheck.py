"""Provider health checks: ping each model before starting a council."""

import asyncio
import logging

from peer_council.providers.base import CompletionService

logger = logging.getLogger(__name__)

_PING_PROMPT = "Reply with the word OK only."
_TIMEOUT_SEC = 15.0


async def _check_one(service: CompletionService, model_id: str) -> tuple[str, bool, str]:
    """Ping a single model. Returns (model_id, ok, error_message)."""
    try:
        await asyncio.wait_for(
            service.complete(model_id, [{"role": "user", "content": _PING_PROMPT}]),
            timeout=_TIMEOUT_SEC,
        )
        return model_id, True, ""
    except Exception as exc:
        logger.debug("Health check failed for %s: %s", model_id, exc)
        return model_id, False, str(exc) or type(exc).__name__


async def run_health_checks(
    service: CompletionService,
    model_ids: list[str],
) -> dict[str, tuple[bool, str]]:
    """Ping all models in parallel.

    Returns:
        Dict mapping model id -> (ok, error_message).
        error_message is "" when ok is True.
    """
    results = await asyncio.gather(*(_check_one(service, m) for m in model_ids))
    return {model_id: (ok, err) for model_id, ok, err in results}
