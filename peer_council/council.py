"""Council orchestration: rankings, aggregation, disagreement analysis, synthesis."""

import enum
import logging
import time
from collections.abc import Callable

from config.config_loader import PromptsConfig
from peer_council.aggregation import StatsSource, aggregate_rankings
from peer_council.disagreement import analyze_disagreements
from peer_council.errors import InsufficientResponsesError, LabelOverflowError
from peer_council.models import (
    CandidateResponse,
    CouncilOptions,
    CouncilResult,
    InvalidRanking,
    RawRanking,
    ValidationSummary,
)
from peer_council.providers.base import CompletionService
from peer_council.ranking import LABELS, collect_rankings
from peer_council.synthesis import synthesize

logger = logging.getLogger(__name__)


class CouncilStage(enum.Enum):
    INIT = "init"
    COLLECTING_RANKINGS = "collecting_rankings"
    AGGREGATING = "aggregating"
    SYNTHESIZING = "synthesizing"
    DONE = "done"
    ABORTED = "aborted"


def _validation_summary(rankings: list[RawRanking], invalid: list[RawRanking]) -> ValidationSummary:
    return ValidationSummary(
        total_rankings=len(rankings),
        valid_count=len(rankings) - len(invalid),
        invalid_count=len(invalid),
        invalid_details=[
            InvalidRanking(model_name=r.model_name, error=r.error or "Incomplete ranking")
            for r in invalid
        ],
    )


async def run_council(
    query: str,
    responses: list[CandidateResponse],
    service: CompletionService,
    chairman_model_id: str | None = None,
    options: CouncilOptions | None = None,
    performance: StatsSource | None = None,
    prompts: PromptsConfig | None = None,
    on_stage: Callable[[CouncilStage], None] | None = None,
) -> CouncilResult:
    """Run peer ranking and chairman synthesis over existing candidate responses.

    Args:
        query: The original user question.
        responses: At least two candidate responses; their models rank each other.
        service: Completion service for ranking and synthesis requests.
        chairman_model_id: Synthesizing model; defaults to the first response's model.
        options: Aggregation weighting switches.
        performance: Historical stats for weighting rankers; None weighs all equally.
        prompts: Prompt templates; built-in defaults when None.
        on_stage: Optional callback invoked on every stage transition.

    Returns:
        CouncilResult with rankings, aggregate order, disagreement analysis and synthesis.

    Raises:
        InsufficientResponsesError: Fewer than two responses.
        LabelOverflowError: More than 26 responses.
    """
    options = options or CouncilOptions()
    prompts = prompts or PromptsConfig()

    def enter(stage: CouncilStage) -> None:
        logger.info("Council stage: %s", stage.value)
        if on_stage:
            on_stage(stage)

    start = time.monotonic()
    enter(CouncilStage.INIT)
    if len(responses) < 2:
        enter(CouncilStage.ABORTED)
        raise InsufficientResponsesError(len(responses))
    if len(responses) > len(LABELS):
        enter(CouncilStage.ABORTED)
        raise LabelOverflowError(len(responses), len(LABELS))

    chairman = chairman_model_id or responses[0].model_id

    enter(CouncilStage.COLLECTING_RANKINGS)
    rankings, label_to_model = await collect_rankings(query, responses, service, prompts.ranking)

    valid = [r for r in rankings if r.is_valid]
    invalid = [r for r in rankings if not r.is_valid]

    warnings: list[str] = []
    if invalid and len(invalid) >= len(rankings) / 2:
        message = f"{len(invalid)} out of {len(rankings)} rankings are invalid"
        logger.warning("Warning: %s", message)
        warnings.append(message)

    enter(CouncilStage.AGGREGATING)
    scored = valid if valid else rankings
    aggregate = aggregate_rankings(scored, label_to_model, options, performance)
    disagreement = analyze_disagreements(scored, label_to_model)

    enter(CouncilStage.SYNTHESIZING)
    synthesis = await synthesize(query, responses, rankings, chairman, service, prompts.synthesis)
    if synthesis.error:
        warnings.append(f"Synthesis failed: {synthesis.error}")

    enter(CouncilStage.DONE)
    return CouncilResult(
        query=query,
        rankings=rankings,
        label_to_model=label_to_model,
        aggregate_rankings=aggregate,
        synthesis=synthesis,
        disagreement_analysis=disagreement,
        validation_summary=_validation_summary(rankings, invalid),
        warnings=warnings,
        duration_sec=time.monotonic() - start,
    )
