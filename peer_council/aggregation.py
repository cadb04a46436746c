"""Weighted aggregation of peer rankings into a single order."""

import logging
from abc import ABC, abstractmethod

from peer_council.models import (
    CONFIDENCE_LEVELS,
    HIGH,
    LOW,
    MEDIUM,
    AggregateEntry,
    CouncilOptions,
    ModelRef,
    ModelStats,
    RawRanking,
)

logger = logging.getLogger(__name__)

CONFIDENCE_WEIGHTS = {HIGH: 1.0, MEDIUM: 0.7, LOW: 0.4}
_NEUTRAL_QUALITY = 0.5


class StatsSource(ABC):
    """Historical per-model statistics used to weight rankers."""

    @abstractmethod
    def stats_for(self, model_id: str) -> ModelStats | None:
        """Return aggregate stats for ``model_id``, or None without history."""
        ...


def model_weight(stats: ModelStats | None) -> float:
    """Historical reliability weight, roughly in [0.5, 1.5].

    No history means 1.0. A missing (or zero) quality score counts as the
    neutral 0.5.
    """
    if stats is None:
        return 1.0
    quality = stats.avg_quality_score / 100 if stats.avg_quality_score else _NEUTRAL_QUALITY
    return 0.5 + quality * (1 - (stats.error_rate or 0.0))


def aggregate_rankings(
    rankings: list[RawRanking],
    label_to_model: dict[str, ModelRef],
    options: CouncilOptions | None = None,
    performance: StatsSource | None = None,
) -> list[AggregateEntry]:
    """Combine rankings into one order, best (lowest weighted rank) first.

    Rankings that are invalid and empty are skipped; invalid but non-empty
    rankings still contribute. Ties keep first-seen label order.
    """
    options = options or CouncilOptions()

    # label -> [(position, weight)], insertion order is first-seen order
    positions_by_label: dict[str, list[tuple[int, float]]] = {}
    confidences_by_label: dict[str, list[str]] = {}

    for ranking in rankings:
        if not ranking.is_valid and not ranking.parsed_order:
            continue

        weight = 1.0
        if options.use_weighted_aggregation and performance is not None:
            weight = model_weight(performance.stats_for(ranking.model_id))

        for index, label in enumerate(ranking.parsed_order):
            confidence = ranking.confidence_by_label.get(label)
            effective = weight
            if options.use_confidence_weighting and confidence:
                effective *= CONFIDENCE_WEIGHTS.get(confidence, CONFIDENCE_WEIGHTS[MEDIUM])
            positions_by_label.setdefault(label, []).append((index + 1, effective))
            confidences_by_label.setdefault(label, []).append(confidence or MEDIUM)

    aggregate: list[AggregateEntry] = []
    for label, weighted_positions in positions_by_label.items():
        ref = label_to_model.get(label)
        if ref is None or not weighted_positions:
            continue

        total_weight = sum(w for _, w in weighted_positions)
        if total_weight <= 0:
            continue
        weighted_rank = sum(p * w for p, w in weighted_positions) / total_weight

        confidences = confidences_by_label[label]
        distribution = {level: confidences.count(level) for level in CONFIDENCE_LEVELS}
        avg_confidence = sum(CONFIDENCE_WEIGHTS.get(c, CONFIDENCE_WEIGHTS[MEDIUM]) for c in confidences) / len(confidences)

        aggregate.append(
            AggregateEntry(
                label=label,
                model_id=ref.model_id,
                model_name=ref.model_name,
                weighted_average_rank=weighted_rank,
                votes_counted=len(weighted_positions),
                average_confidence=avg_confidence,
                confidence_distribution=distribution,
                total_weight=total_weight,
            )
        )

    aggregate.sort(key=lambda e: e.weighted_average_rank)
    logger.debug("Aggregate order: %s", [e.label for e in aggregate])
    return aggregate
