"""Load settings.yaml into typed dataclasses. Validates API keys at startup."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from peer_council.prompts import ANSWER_PROMPT, RANKING_PROMPT, SYNTHESIS_PROMPT

logger = logging.getLogger(__name__)

_SETTINGS_PATH = Path(__file__).parent / "settings.yaml"


@dataclass
class ModelConfig:
    model_id: str
    name: str
    sdk: str
    model: str
    api_key_env: str
    timeout_sec: int
    max_tokens: int
    base_url: str | None = None


@dataclass
class PromptsConfig:
    answer: str = ANSWER_PROMPT
    ranking: str = RANKING_PROMPT
    synthesis: str = SYNTHESIS_PROMPT


@dataclass
class DefaultsConfig:
    output_dir: Path
    analytics_path: Path
    panel: list[str] = field(default_factory=list)
    chairman: str | None = None
    use_weighted_aggregation: bool = True
    use_confidence_weighting: bool = True


@dataclass
class AppConfig:
    defaults: DefaultsConfig
    models: dict[str, ModelConfig]
    prompts: PromptsConfig = field(default_factory=PromptsConfig)
    available_models: set[str] = field(default_factory=set)

    def display_name(self, model_id: str) -> str:
        model_cfg = self.models.get(model_id)
        return model_cfg.name if model_cfg else model_id


def load_config(settings_path: Path = _SETTINGS_PATH) -> AppConfig:
    """Load and validate configuration from settings.yaml.

    Raises FileNotFoundError if settings file missing.
    Logs missing API keys but does not raise; callers check
    available_models count.
    """
    if not settings_path.exists():
        raise FileNotFoundError(f"Settings file not found: {settings_path}")

    with settings_path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)

    defaults_raw = raw["defaults"]
    chairman = defaults_raw.get("chairman")
    defaults = DefaultsConfig(
        output_dir=Path(defaults_raw["output_dir"]),
        analytics_path=Path(defaults_raw["analytics_path"]),
        panel=list(defaults_raw.get("panel", [])),
        chairman=str(chairman) if chairman else None,
        use_weighted_aggregation=bool(defaults_raw.get("use_weighted_aggregation", True)),
        use_confidence_weighting=bool(defaults_raw.get("use_confidence_weighting", True)),
    )

    # Prompt overrides are optional; anything omitted keeps the built-in template
    prompts_raw = raw.get("prompts") or {}
    prompts = PromptsConfig(**{k: str(v) for k, v in prompts_raw.items() if k in ("answer", "ranking", "synthesis")})

    models: dict[str, ModelConfig] = {}
    available_models: set[str] = set()

    for model_id, model_raw in raw["models"].items():
        model_cfg = ModelConfig(
            model_id=model_id,
            name=str(model_raw.get("name", model_id)),
            sdk=model_raw["sdk"],
            model=model_raw.get("model", model_id),
            api_key_env=model_raw["api_key_env"],
            timeout_sec=int(model_raw["timeout_sec"]),
            max_tokens=int(model_raw["max_tokens"]),
            base_url=model_raw.get("base_url"),
        )
        models[model_id] = model_cfg

        api_key = os.environ.get(model_raw["api_key_env"], "").strip()
        if api_key:
            available_models.add(model_id)
            logger.info("Model available: %s", model_id)
        else:
            logger.info(
                "Model skipped (no API key): %s (set %s in .env)",
                model_id,
                model_raw["api_key_env"],
            )

    return AppConfig(
        defaults=defaults,
        models=models,
        prompts=prompts,
        available_models=available_models,
    )
