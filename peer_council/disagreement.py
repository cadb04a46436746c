"""Rank variance across rankers and an overall consensus score."""

import logging
import math

from peer_council.models import Disagreement, DisagreementReport, LabelStats, ModelRef, RawRanking

logger = logging.getLogger(__name__)

# Std dev above which rankers are considered to disagree on a response
DISAGREEMENT_STD_DEV = 1.0


def analyze_disagreements(
    rankings: list[RawRanking],
    label_to_model: dict[str, ModelRef],
) -> DisagreementReport:
    """Measure how differently the valid rankings place each response.

    Only valid, non-empty rankings count. With fewer than two of them there is
    nothing to disagree about and consensus is 1.0.

    The consensus normalisation divides total variance by
    ``label_count * label_count**2 / 12``, the variance of a discrete uniform
    distribution over ranks, times the number of labels.
    """
    valid = [r for r in rankings if r.is_valid and r.parsed_order]
    if len(valid) < 2:
        return DisagreementReport(consensus=1.0)

    labels = list(label_to_model)
    position_matrix: dict[str, list[int]] = {label: [] for label in labels}
    for ranking in valid:
        for index, label in enumerate(ranking.parsed_order):
            if label in position_matrix:
                position_matrix[label].append(index + 1)

    per_label: dict[str, LabelStats] = {}
    for label in labels:
        positions = position_matrix[label]
        if not positions:
            continue
        mean = sum(positions) / len(positions)
        variance = sum((p - mean) ** 2 for p in positions) / len(positions)
        per_label[label] = LabelStats(
            mean=mean,
            variance=variance,
            std_dev=math.sqrt(variance),
            positions=positions,
        )

    most_contested: str | None = None
    for label, stats in per_label.items():
        if most_contested is None or stats.variance > per_label[most_contested].variance:
            most_contested = label

    total_variance = sum(s.variance for s in per_label.values())
    label_count = len(labels)
    max_possible_variance = label_count ** 2 / 12
    consensus = max(0.0, 1 - total_variance / (max_possible_variance * label_count))

    disagreements = [
        Disagreement(
            label=label,
            model_name=label_to_model[label].model_name,
            variance=stats.variance,
            std_dev=stats.std_dev,
            positions=stats.positions,
            rank_min=min(stats.positions),
            rank_max=max(stats.positions),
        )
        for label, stats in per_label.items()
        if stats.std_dev > DISAGREEMENT_STD_DEV
    ]
    disagreements.sort(key=lambda d: d.variance, reverse=True)

    logger.info(
        "Consensus %.2f across %d rankings (%d contested)",
        consensus, len(valid), len(disagreements),
    )

    return DisagreementReport(
        consensus=consensus,
        per_label_variance=per_label,
        most_contested=most_contested,
        disagreements=disagreements,
        position_matrix=position_matrix,
    )
