"""Tests for CLI panel/chairman selection logic in peer_council/cli.py."""

from pathlib import Path

from click.testing import CliRunner

from peer_council.cli import _determine_panel, _pick_chairman, _read_question_file, main
from peer_council.performance import JsonFileRepository, PerformanceStore
from peer_council.providers.registry import ProviderRegistry
from tests.conftest import MockProvider


def _registry(*model_ids: str) -> ProviderRegistry:
    return ProviderRegistry({m: MockProvider(m) for m in model_ids})


def test_determine_panel_default(sample_app_config):
    panel = _determine_panel(sample_app_config, models_arg=None, meta={})
    assert panel == sample_app_config.defaults.panel


def test_determine_panel_models_arg(sample_app_config):
    panel = _determine_panel(sample_app_config, models_arg="openai/gpt, google/gemini,", meta={})
    assert panel == ["openai/gpt", "google/gemini"]


def test_determine_panel_models_arg_beats_front_matter(sample_app_config):
    panel = _determine_panel(sample_app_config, models_arg="a,b", meta={"models": ["c", "d"]})
    assert panel == ["a", "b"]


def test_determine_panel_front_matter_list(sample_app_config):
    panel = _determine_panel(sample_app_config, models_arg=None, meta={"models": ["c", "d"]})
    assert panel == ["c", "d"]


def test_determine_panel_front_matter_string(sample_app_config):
    panel = _determine_panel(sample_app_config, models_arg=None, meta={"models": "c, d"})
    assert panel == ["c", "d"]


def test_determine_panel_returns_copy(sample_app_config):
    panel = _determine_panel(sample_app_config, models_arg=None, meta={})
    panel.append("extra")
    assert "extra" not in sample_app_config.defaults.panel


def test_pick_chairman_available():
    assert _pick_chairman("b", _registry("a", "b")) == "b"


def test_pick_chairman_unavailable_defers_to_council():
    assert _pick_chairman("z", _registry("a", "b")) is None


def test_pick_chairman_none():
    assert _pick_chairman(None, _registry("a", "b")) is None


def test_read_question_file_with_front_matter(tmp_path: Path):
    path = tmp_path / "question.md"
    path.write_text(
        "---\nmodels:\n  - openai/gpt-4o\n  - x-ai/grok-3\nchairman: openai/gpt-4o\n---\n\nREST or GraphQL?\n",
        encoding="utf-8",
    )
    text, meta = _read_question_file(path)
    assert text == "REST or GraphQL?"
    assert meta["models"] == ["openai/gpt-4o", "x-ai/grok-3"]
    assert meta["chairman"] == "openai/gpt-4o"


def test_read_question_file_plain(tmp_path: Path):
    path = tmp_path / "question.md"
    path.write_text("Tabs or spaces?\n", encoding="utf-8")
    assert _read_question_file(path) == ("Tabs or spaces?", {})


def test_main_requires_question(monkeypatch):
    monkeypatch.setattr("peer_council.cli.load_dotenv", lambda: None)
    result = CliRunner().invoke(main, [])
    assert result.exit_code == 1
    assert "Provide a QUESTION" in result.output


def test_main_needs_two_models(monkeypatch):
    monkeypatch.setattr("peer_council.cli.load_dotenv", lambda: None)
    for env in ("ANTHROPIC_API_KEY", "OPENAI_API_KEY", "GEMINI_API_KEY",
                "XAI_API_KEY", "DEEPSEEK_API_KEY", "OPENROUTER_API_KEY"):
        monkeypatch.delenv(env, raising=False)
    result = CliRunner().invoke(main, ["Is this thing on?"])
    assert result.exit_code == 1
    assert "Need at least 2 available models" in result.output


def test_main_stats_shows_history(sample_app_config, monkeypatch):
    monkeypatch.setattr("peer_council.cli.load_dotenv", lambda: None)
    monkeypatch.setattr("peer_council.cli.load_config", lambda: sample_app_config)
    with JsonFileRepository(sample_app_config.defaults.analytics_path) as repo:
        store = PerformanceStore(repo)
        store.record_interaction("m1", "Model One", quality_score=60, task_type="code")
        store.record_interaction("m2", "Model Two", quality_score=90, task_type="code")
        store.record_interaction("m2", "Model Two", error="rate limited", task_type="code")

    result = CliRunner().invoke(main, ["--stats", "--task-type", "code"])

    assert result.exit_code == 0, result.output
    assert "Model One" in result.output
    assert "Best for code: m2" in result.output
    assert "rate limited" in result.output


def test_main_stats_without_history(sample_app_config, monkeypatch):
    monkeypatch.setattr("peer_council.cli.load_dotenv", lambda: None)
    monkeypatch.setattr("peer_council.cli.load_config", lambda: sample_app_config)
    result = CliRunner().invoke(main, ["--stats"])
    assert result.exit_code == 0
    assert "No interactions recorded yet." in result.output
