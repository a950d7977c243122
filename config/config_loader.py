"""Load settings.yaml into typed dataclasses. Credentials are resolved at call time."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

_SETTINGS_PATH = Path(__file__).parent / "settings.yaml"


@dataclass
class ModelConfig:
    name: str              # canonical model id, e.g. "gemini-flash"
    model: str             # Replicate model ref, e.g. "google/gemini-2.5-flash"
    timeout_sec: int
    max_tokens: int


@dataclass
class ReplicateConfig:
    api_key_env: str
    probe_model: str
    probe_timeout_sec: int = 15


@dataclass
class AnalysisConfig:
    api_key_env: str
    model: str
    base_url: str | None = None
    temperature: float = 0.2
    timeout_sec: int = 90
    model_env: str | None = None

    def effective_model(self) -> str:
        """The configured model, unless overridden by the model_env variable."""
        if self.model_env:
            return get_secret(self.model_env) or self.model
        return self.model


@dataclass
class PromptsConfig:
    system_instruction: str
    analyst: str


@dataclass
class DefaultsConfig:
    temperature: float = 0.7
    output_dir: Path = Path("./output")


@dataclass
class AppConfig:
    defaults: DefaultsConfig
    replicate: ReplicateConfig
    models: dict[str, ModelConfig]
    analysis: AnalysisConfig
    prompts: PromptsConfig
    available_services: set[str] = field(default_factory=set)


def get_secret(env_name: str) -> str | None:
    """Return the stripped value of an env var, or None when unset or blank."""
    value = os.environ.get(env_name, "").strip()
    return value or None


def load_config(settings_path: Path = _SETTINGS_PATH) -> AppConfig:
    """Load and validate configuration from settings.yaml.

    Raises FileNotFoundError if settings file missing.
    Missing credentials are logged, not raised: the readiness probe and the
    service report them when a call is attempted.
    """
    if not settings_path.exists():
        raise FileNotFoundError(f"Settings file not found: {settings_path}")

    with settings_path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)

    defaults_raw = raw.get("defaults", {})
    defaults = DefaultsConfig(
        temperature=float(defaults_raw.get("temperature", 0.7)),
        output_dir=Path(defaults_raw.get("output_dir", "./output")),
    )

    replicate_raw = raw["replicate"]
    replicate = ReplicateConfig(
        api_key_env=replicate_raw["api_key_env"],
        probe_model=replicate_raw["probe_model"],
        probe_timeout_sec=int(replicate_raw.get("probe_timeout_sec", 15)),
    )

    models: dict[str, ModelConfig] = {}
    for model_id, model_raw in raw["models"].items():
        models[model_id] = ModelConfig(
            name=model_id,
            model=model_raw["model"],
            timeout_sec=int(model_raw["timeout_sec"]),
            max_tokens=int(model_raw["max_tokens"]),
        )

    analysis_raw = raw["analysis"]
    model_env = analysis_raw.get("model_env")
    analysis = AnalysisConfig(
        api_key_env=analysis_raw["api_key_env"],
        model=analysis_raw["model"],
        base_url=analysis_raw.get("base_url"),
        temperature=float(analysis_raw.get("temperature", 0.2)),
        timeout_sec=int(analysis_raw.get("timeout_sec", 90)),
        model_env=model_env,
    )

    prompts_raw = raw["prompts"]
    prompts = PromptsConfig(
        system_instruction=str(prompts_raw["system_instruction"]).strip(),
        analyst=str(prompts_raw["analyst"]).strip(),
    )

    available_services: set[str] = set()
    for service_name, env_name in (("replicate", replicate.api_key_env), ("analysis", analysis.api_key_env)):
        if get_secret(env_name):
            available_services.add(service_name)
            logger.info("Service configured: %s", service_name)
        else:
            logger.info("Service not configured: %s (set %s in .env)", service_name, env_name)

    return AppConfig(
        defaults=defaults,
        replicate=replicate,
        models=models,
        analysis=analysis,
        prompts=prompts,
        available_services=available_services,
    )
