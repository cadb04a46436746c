"""Tests for peer_council/synthesis.py."""

import logging

from peer_council.models import Synthesis
from peer_council.providers.base import ProviderError
from peer_council.synthesis import build_synthesis_prompt, synthesize
from tests.conftest import MockService, make_ranking


def test_synthesis_prompt_attributes_models(sample_query, three_responses):
    rankings = [make_ranking("model-a", ["C", "B", "A"]), make_ranking("model-b", [], is_valid=False, error="boom")]
    prompt = build_synthesis_prompt(sample_query, three_responses, rankings)
    assert f"Original Question: {sample_query}" in prompt
    assert "Model: Model A\nResponse: Use YAML for human-edited config." in prompt
    assert "Model: MODEL-A\nRanking: " in prompt
    # Invalid rankings are still shown to the chairman
    assert "Model: MODEL-B\nRanking: Error: boom" in prompt


async def test_synthesize_returns_chairman_content(sample_query, three_responses):
    service = MockService({"model-b": "## Answer\nUse YAML for humans."})
    result = await synthesize(sample_query, three_responses, [], "model-b", service)
    assert result == Synthesis(model_id="model-b", model_name="Model B", content="## Answer\nUse YAML for humans.")
    assert len(service.calls_for("model-b")) == 1


async def test_synthesize_unknown_chairman_name(sample_query, three_responses):
    service = MockService(default="Final answer.")
    result = await synthesize(sample_query, three_responses, [], "outside/judge", service)
    assert result.model_id == "outside/judge"
    assert result.model_name == "Chairman"


async def test_synthesize_transport_failure_degrades(sample_query, three_responses, caplog):
    service = MockService({"model-a": ProviderError("model-a", "401 unauthorized")})
    with caplog.at_level(logging.ERROR):
        result = await synthesize(sample_query, three_responses, [], "model-a", service)
    assert result.content.startswith("Error synthesizing response:")
    assert "401 unauthorized" in result.content
    assert result.model_name == "Chairman"
    assert result.error is not None
    assert "model-a" in caplog.text
