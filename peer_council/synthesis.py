"""Stage 3: the chairman turns responses and peer rankings into one answer."""

import logging

from peer_council.errors import SynthesisTransportError
from peer_council.models import CandidateResponse, RawRanking, Synthesis
from peer_council.prompts import SYNTHESIS_PROMPT
from peer_council.providers.base import CompletionService

logger = logging.getLogger(__name__)

_DEFAULT_CHAIRMAN_NAME = "Chairman"


def _format_responses(responses: list[CandidateResponse]) -> str:
    return "\n\n".join(f"Model: {r.model_name}\nResponse: {r.content}" for r in responses)


def _format_rankings(rankings: list[RawRanking]) -> str:
    return "\n\n".join(f"Model: {r.model_name}\nRanking: {r.full_ranking_text}" for r in rankings)


def build_synthesis_prompt(
    query: str,
    responses: list[CandidateResponse],
    rankings: list[RawRanking],
    template: str = SYNTHESIS_PROMPT,
) -> str:
    return template.format(
        query=query,
        responses=_format_responses(responses),
        rankings=_format_rankings(rankings),
    )


async def synthesize(
    query: str,
    responses: list[CandidateResponse],
    rankings: list[RawRanking],
    chairman_model_id: str,
    service: CompletionService,
    template: str = SYNTHESIS_PROMPT,
) -> Synthesis:
    """Ask the chairman for the final answer.

    Responses are shown with their model names; every ranking is included,
    invalid ones too.

    Never raises on transport failure; the returned Synthesis carries an
    error description as its content instead.
    """
    prompt = build_synthesis_prompt(query, responses, rankings, template)
    logger.info("Running synthesis via %s", chairman_model_id)

    try:
        content = await service.complete(chairman_model_id, [{"role": "user", "content": prompt}])
    except Exception as exc:
        err = SynthesisTransportError(chairman_model_id, str(exc))
        logger.error("Error in chairman synthesis: %s", err)
        return Synthesis(
            model_id=chairman_model_id,
            model_name=_DEFAULT_CHAIRMAN_NAME,
            content=f"Error synthesizing response: {exc}",
            error=str(exc),
        )

    chairman_name = next(
        (r.model_name for r in responses if r.model_id == chairman_model_id),
        _DEFAULT_CHAIRMAN_NAME,
    )
    return Synthesis(model_id=chairman_model_id, model_name=chairman_name, content=content)
