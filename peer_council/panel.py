"""Stage 1: ask every panel model the question in parallel to get candidate responses."""

import asyncio
import logging
import time

from peer_council.models import CandidateResponse
from peer_council.performance import PerformanceStore, calculate_quality_score
from peer_council.prompts import ANSWER_PROMPT
from peer_council.providers.base import CompletionService

logger = logging.getLogger(__name__)


async def _ask_model(
    service: CompletionService,
    model_id: str,
    model_name: str,
    prompt: str,
    performance: PerformanceStore | None,
    task_type: str = "general",
) -> CandidateResponse | None:
    """Ask one model. Never raises. Failures are logged and recorded, then return None."""
    start = time.monotonic()
    try:
        content = await service.complete(model_id, [{"role": "user", "content": prompt}])
    except Exception as exc:
        elapsed = time.monotonic() - start
        logger.warning("Model %s failed to answer: %s", model_id, exc)
        if performance is not None:
            performance.record_interaction(
                model_id, model_name, response_time=elapsed, error=str(exc), task_type=task_type,
            )
        return None

    elapsed = time.monotonic() - start
    if performance is not None:
        performance.record_interaction(
            model_id,
            model_name,
            response_time=elapsed,
            quality_score=calculate_quality_score(content, elapsed),
            task_type=task_type,
        )
    return CandidateResponse(model_id=model_id, model_name=model_name, content=content)


async def gather_responses(
    query: str,
    model_ids: list[str],
    service: CompletionService,
    names: dict[str, str] | None = None,
    template: str = ANSWER_PROMPT,
    performance: PerformanceStore | None = None,
    task_type: str = "general",
) -> list[CandidateResponse]:
    """Collect one answer per panel model, in panel order, skipping failures.

    Args:
        query: The user question.
        model_ids: Panel model ids.
        service: Completion service.
        names: Optional model id -> display name.
        template: Answer prompt with a {query} placeholder.
        performance: When given, every attempt is recorded for later ranker weighting.
        task_type: Category recorded with each attempt, for per-task best-model stats.
    """
    names = names or {}
    prompt = template.format(query=query)

    logger.info("Asking %d panel models", len(model_ids))
    results = await asyncio.gather(
        *(_ask_model(service, m, names.get(m, m), prompt, performance, task_type) for m in model_ids)
    )
    responses = [r for r in results if r is not None]
    logger.info("Panel answered: %d/%d models", len(responses), len(model_ids))
    return responses
