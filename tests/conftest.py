"""Shared pytest fixtures."""

from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from config.config_loader import AppConfig, DefaultsConfig, ModelConfig, PromptsConfig
from peer_council.models import CandidateResponse, Completion, ModelStats, RawRanking
from peer_council.providers.base import AIProvider, CompletionService, Message, ProviderError
from peer_council.aggregation import StatsSource


def ranking_text(*labels: str, confidence: str = "HIGH") -> str:
    """A well-formed ranker reply ranking ``labels`` best first."""
    lines = [f"{i}. Response {label} ({confidence})" for i, label in enumerate(labels, start=1)]
    return "Response A is accurate. Response B lacks depth.\n\nFINAL RANKING:\n" + "\n".join(lines)


def make_ranking(
    model_id: str,
    order: list[str],
    confidence: str = "HIGH",
    is_valid: bool = True,
    error: str | None = None,
) -> RawRanking:
    return RawRanking(
        model_id=model_id,
        model_name=model_id.upper(),
        full_ranking_text="Error: " + error if error else ranking_text(*order, confidence=confidence),
        parsed_order=list(order),
        confidence_by_label={label: confidence for label in order},
        criteria=None,
        is_valid=is_valid,
        error=error,
    )


class MockService(CompletionService):
    """Test double CompletionService.

    ``replies`` maps model id to reply text, or to an exception to raise.
    Every call is recorded as (model_id, messages).
    """

    def __init__(self, replies: dict[str, str | Exception] | None = None, default: str = "Mock reply") -> None:
        self.replies = dict(replies or {})
        self.default = default
        self.calls: list[tuple[str, list[Message]]] = []

    async def complete(self, model_id: str, messages: list[Message]) -> str:
        self.calls.append((model_id, messages))
        reply = self.replies.get(model_id, self.default)
        if isinstance(reply, Exception):
            raise reply
        return reply

    def calls_for(self, model_id: str) -> list[list[Message]]:
        return [messages for m, messages in self.calls if m == model_id]


class MockProvider(AIProvider):
    """Test double AIProvider."""

    def __init__(self, model_id: str = "mock", response_content: str = "Mock response") -> None:
        self._model_id = model_id
        self._response_content = response_content
        # Shadow the class method with an AsyncMock at the instance level.
        # ABC check passes because generate is defined in the class body below.
        self.generate = AsyncMock(  # type: ignore[assignment]
            return_value=Completion(
                model_id=model_id,
                content=response_content,
                latency_sec=0.1,
                token_count=10,
            )
        )

    def name(self) -> str:
        return self._model_id

    def model_string(self) -> str:
        return "mock-model"

    async def generate(self, messages: list[Message]) -> Completion:  # type: ignore[override]
        """Default implementation; replaced by AsyncMock in __init__."""
        return Completion(self._model_id, self._response_content, 0.1, 10)


class FixedStats(StatsSource):
    """StatsSource returning canned ModelStats."""

    def __init__(self, stats: dict[str, ModelStats]) -> None:
        self._stats = stats

    def stats_for(self, model_id: str) -> ModelStats | None:
        return self._stats.get(model_id)


def model_stats(model_id: str, quality: float | None, error_rate: float) -> ModelStats:
    return ModelStats(
        model_id=model_id,
        model_name=model_id,
        total_interactions=10,
        avg_quality_score=quality,
        error_rate=error_rate,
        avg_response_time=1.0,
        total_tokens=100,
        last_used=0.0,
    )


@pytest.fixture
def sample_model_config() -> ModelConfig:
    return ModelConfig(
        model_id="test/model",
        name="Test Model",
        sdk="openai",
        model="test-model-1",
        api_key_env="TEST_API_KEY",
        timeout_sec=30,
        max_tokens=1024,
        base_url=None,
    )


@pytest.fixture
def sample_defaults_config(tmp_path: Path) -> DefaultsConfig:
    return DefaultsConfig(
        output_dir=tmp_path / "output",
        analytics_path=tmp_path / "output" / "analytics.json",
        panel=["anthropic/claude", "openai/gpt", "google/gemini"],
        chairman="anthropic/claude",
    )


@pytest.fixture
def sample_app_config(sample_defaults_config: DefaultsConfig) -> AppConfig:
    model_cfg = ModelConfig(
        model_id="anthropic/claude",
        name="Claude",
        sdk="anthropic",
        model="claude-sonnet-4-20250514",
        api_key_env="ANTHROPIC_API_KEY",
        timeout_sec=60,
        max_tokens=4096,
    )
    return AppConfig(
        defaults=sample_defaults_config,
        models={"anthropic/claude": model_cfg},
        prompts=PromptsConfig(),
        available_models={"anthropic/claude"},
    )


@pytest.fixture
def sample_query() -> str:
    return "Should we use YAML or JSON for config?"


@pytest.fixture
def three_responses() -> list[CandidateResponse]:
    return [
        CandidateResponse("model-a", "Model A", "Use YAML for human-edited config."),
        CandidateResponse("model-b", "Model B", "Use JSON; it is stricter."),
        CandidateResponse("model-c", "Model C", "YAML for humans, JSON for machines."),
    ]


@pytest.fixture
def provider_error() -> ProviderError:
    return ProviderError("model-x", "429 rate limited")
