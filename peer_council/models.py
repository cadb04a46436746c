"""Pure dataclasses for the council pipeline. No logic, no deps."""

from dataclasses import dataclass, field

# Confidence tags a ranker may attach to a ranked position
HIGH = "HIGH"
MEDIUM = "MEDIUM"
LOW = "LOW"
CONFIDENCE_LEVELS = (HIGH, MEDIUM, LOW)


@dataclass(frozen=True)
class CandidateResponse:
    model_id: str
    model_name: str
    content: str


@dataclass(frozen=True)
class ModelRef:
    model_id: str
    model_name: str


@dataclass
class Completion:
    model_id: str
    content: str
    latency_sec: float
    token_count: int | None


@dataclass
class RawRanking:
    model_id: str
    model_name: str
    full_ranking_text: str
    parsed_order: list[str] = field(default_factory=list)
    confidence_by_label: dict[str, str] = field(default_factory=dict)
    criteria: list[str] | None = None
    is_valid: bool = False
    error: str | None = None


@dataclass
class AggregateEntry:
    label: str
    model_id: str
    model_name: str
    weighted_average_rank: float
    votes_counted: int
    average_confidence: float
    confidence_distribution: dict[str, int]
    total_weight: float


@dataclass
class LabelStats:
    mean: float
    variance: float
    std_dev: float
    positions: list[int]


@dataclass
class Disagreement:
    label: str
    model_name: str
    variance: float
    std_dev: float
    positions: list[int]
    rank_min: int
    rank_max: int


@dataclass
class DisagreementReport:
    consensus: float
    per_label_variance: dict[str, LabelStats] = field(default_factory=dict)
    most_contested: str | None = None
    disagreements: list[Disagreement] = field(default_factory=list)
    position_matrix: dict[str, list[int]] = field(default_factory=dict)


@dataclass
class Synthesis:
    model_id: str
    model_name: str
    content: str
    error: str | None = None


@dataclass
class InvalidRanking:
    model_name: str
    error: str


@dataclass
class ValidationSummary:
    total_rankings: int
    valid_count: int
    invalid_count: int
    invalid_details: list[InvalidRanking] = field(default_factory=list)


@dataclass
class CouncilOptions:
    use_weighted_aggregation: bool = True
    use_confidence_weighting: bool = True


@dataclass
class CouncilResult:
    query: str
    rankings: list[RawRanking]
    label_to_model: dict[str, ModelRef]
    aggregate_rankings: list[AggregateEntry]
    synthesis: Synthesis
    disagreement_analysis: DisagreementReport
    validation_summary: ValidationSummary
    warnings: list[str] = field(default_factory=list)
    duration_sec: float = 0.0


@dataclass
class ModelStats:
    model_id: str
    model_name: str
    total_interactions: int
    avg_quality_score: float | None
    error_rate: float
    avg_response_time: float
    total_tokens: int
    last_used: float
