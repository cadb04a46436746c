"""Stage 2: every candidate model ranks the anonymized responses."""

import asyncio
import logging
import string

from peer_council.errors import InsufficientResponsesError, LabelOverflowError, RankingTransportError
from peer_council.models import CandidateResponse, ModelRef, RawRanking
from peer_council.parsing import extract_ranking_criteria, parse_ranking_with_confidence, validate_ranking
from peer_council.prompts import RANKING_PROMPT
from peer_council.providers.base import CompletionService

logger = logging.getLogger(__name__)

LABELS = string.ascii_uppercase


def assign_labels(responses: list[CandidateResponse]) -> dict[str, ModelRef]:
    """Map A, B, C... to responses in input order.

    Raises:
        LabelOverflowError: More responses than single-letter labels.
    """
    if len(responses) > len(LABELS):
        raise LabelOverflowError(len(responses), len(LABELS))
    return {
        label: ModelRef(model_id=r.model_id, model_name=r.model_name)
        for label, r in zip(LABELS, responses)
    }


def _anonymize_responses(responses: list[CandidateResponse]) -> str:
    """Label responses by position; model identities never reach the prompt."""
    return "\n\n".join(
        f"Response {label}:\n{r.content}" for label, r in zip(LABELS, responses)
    )


def build_ranking_prompt(query: str, responses: list[CandidateResponse], template: str = RANKING_PROMPT) -> str:
    return template.format(query=query, responses=_anonymize_responses(responses))


def build_ranking(model_id: str, model_name: str, text: str, expected_count: int) -> RawRanking:
    """Parse one ranker's reply into a RawRanking."""
    order, confidence = parse_ranking_with_confidence(text)
    return RawRanking(
        model_id=model_id,
        model_name=model_name,
        full_ranking_text=text,
        parsed_order=order,
        confidence_by_label=confidence,
        criteria=extract_ranking_criteria(text),
        is_valid=validate_ranking(order, expected_count),
    )


async def _request_ranking(
    service: CompletionService,
    ranker: CandidateResponse,
    prompt: str,
    expected_count: int,
) -> RawRanking:
    """Ask one model for its ranking.

    Never raises: a failed request becomes an invalid ranking carrying the error.
    """
    try:
        text = await service.complete(ranker.model_id, [{"role": "user", "content": prompt}])
    except Exception as exc:
        err = RankingTransportError(ranker.model_id, str(exc))
        logger.warning("Error getting ranking from %s: %s", ranker.model_name, err)
        return RawRanking(
            model_id=ranker.model_id,
            model_name=ranker.model_name,
            full_ranking_text=f"Error: {exc}",
            criteria=None,
            is_valid=False,
            error=str(exc),
        )
    return build_ranking(ranker.model_id, ranker.model_name, text, expected_count)


async def collect_rankings(
    query: str,
    responses: list[CandidateResponse],
    service: CompletionService,
    template: str = RANKING_PROMPT,
) -> tuple[list[RawRanking], dict[str, ModelRef]]:
    """Have each candidate model rank all anonymized responses, in parallel.

    Args:
        query: The original user question.
        responses: Candidate responses; their models are also the rankers.
        service: Completion service used for every ranking request.
        template: Ranking prompt with {query} and {responses} placeholders.

    Returns:
        (rankings in ranker order, label -> model mapping)

    Raises:
        InsufficientResponsesError: Fewer than two responses.
        LabelOverflowError: More than 26 responses.
    """
    if len(responses) < 2:
        raise InsufficientResponsesError(len(responses))

    label_to_model = assign_labels(responses)
    logger.debug("Ranking label map: %s", {k: v.model_id for k, v in label_to_model.items()})

    prompt = build_ranking_prompt(query, responses, template)
    expected_count = len(label_to_model)

    logger.info("Collecting rankings from %d models", len(responses))
    rankings = await asyncio.gather(
        *(_request_ranking(service, r, prompt, expected_count) for r in responses)
    )

    valid = sum(1 for r in rankings if r.is_valid)
    logger.info("Rankings collected: %d/%d valid", valid, len(rankings))
    return list(rankings), label_to_model
