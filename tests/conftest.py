"""Shared pytest fixtures."""

import json
from pathlib import Path
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest

from config.config_loader import (
    AnalysisConfig,
    AppConfig,
    DefaultsConfig,
    ModelConfig,
    PromptsConfig,
    ReplicateConfig,
)
from neutrality.models import ModelDescriptor, ModelId, ModelResult
from neutrality.providers.base import ModelAdapter
from neutrality.registry import get_descriptor

REPLICATE_KEY_ENV = "TEST_REPLICATE_KEY"
ANALYSIS_KEY_ENV = "TEST_ANALYSIS_KEY"
ANALYSIS_MODEL_ENV = "TEST_ANALYSIS_MODEL"

_MODEL_REFS = {
    "gemini-flash": "google/gemini-2.5-flash",
    "claude-sonnet": "anthropic/claude-4.5-sonnet",
    "gpt-5": "openai/gpt-5",
}


@pytest.fixture
def sample_model_config() -> ModelConfig:
    return ModelConfig(
        name="gemini-flash",
        model="google/gemini-2.5-flash",
        timeout_sec=30,
        max_tokens=1024,
    )


@pytest.fixture
def sample_analysis_config() -> AnalysisConfig:
    return AnalysisConfig(
        api_key_env=ANALYSIS_KEY_ENV,
        model="test/analyst-1",
        base_url="https://analysis.example.test/v1",
        temperature=0.2,
        timeout_sec=10,
        model_env=ANALYSIS_MODEL_ENV,
    )


@pytest.fixture
def sample_prompts_config() -> PromptsConfig:
    return PromptsConfig(
        system_instruction="Answer with balance and symmetry.",
        analyst="You are a neutrality analyst. Reply with JSON only.",
    )


@pytest.fixture
def sample_app_config(
    tmp_path: Path,
    sample_analysis_config: AnalysisConfig,
    sample_prompts_config: PromptsConfig,
) -> AppConfig:
    return AppConfig(
        defaults=DefaultsConfig(temperature=0.7, output_dir=tmp_path / "output"),
        replicate=ReplicateConfig(
            api_key_env=REPLICATE_KEY_ENV,
            probe_model="google/gemini-2.5-flash",
            probe_timeout_sec=5,
        ),
        models={
            model_id: ModelConfig(name=model_id, model=ref, timeout_sec=5, max_tokens=256)
            for model_id, ref in _MODEL_REFS.items()
        },
        analysis=sample_analysis_config,
        prompts=sample_prompts_config,
    )


@pytest.fixture
def no_credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (REPLICATE_KEY_ENV, ANALYSIS_KEY_ENV, ANALYSIS_MODEL_ENV):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def with_credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(REPLICATE_KEY_ENV, "r8_test_key")
    monkeypatch.setenv(ANALYSIS_KEY_ENV, "sk-test-key")
    monkeypatch.delenv(ANALYSIS_MODEL_ENV, raising=False)


class MockAdapter(ModelAdapter):
    """Test double ModelAdapter with an AsyncMock ``run``."""

    def __init__(self, descriptor: ModelDescriptor, output: str = "Mock response") -> None:
        self.descriptor = descriptor
        self._client = None
        self._config = ModelConfig(name=descriptor.id.value, model="mock/model", timeout_sec=5, max_tokens=64)
        # Shadow the class method with an AsyncMock at the instance level.
        self.run = AsyncMock(return_value=output)  # type: ignore[method-assign]

    def build_input(self, prompt: str, system_instruction: str, temperature: float) -> dict[str, Any]:
        return {"prompt": prompt}


def make_adapter(model_id: ModelId, output: str = "Mock response") -> MockAdapter:
    return MockAdapter(get_descriptor(model_id), output)


@pytest.fixture
def mock_adapters() -> dict[ModelId, MockAdapter]:
    return {
        ModelId.GEMINI_FLASH: make_adapter(ModelId.GEMINI_FLASH, "Gemini says both sides."),
        ModelId.CLAUDE_SONNET: make_adapter(ModelId.CLAUDE_SONNET, "Claude lays out tradeoffs."),
        ModelId.GPT_5: make_adapter(ModelId.GPT_5, "GPT-5 weighs the evidence."),
    }


@pytest.fixture
def mock_replicate_client() -> MagicMock:
    client = MagicMock()
    client.async_run = AsyncMock(return_value=["Hello", " world"])
    client.models.async_get = AsyncMock(return_value=SimpleNamespace(name="gemini-2.5-flash"))
    return client


@pytest.fixture
def sample_result() -> ModelResult:
    return ModelResult(
        model_id=ModelId.GEMINI_FLASH,
        model_name="Gemini 2.5 Flash",
        provider_name="Google",
        output="There are strong arguments on both sides.",
    )


@pytest.fixture
def analysis_payload() -> dict[str, Any]:
    return {
        "questionSummary": "Whether X is good.",
        "overallSummary": "Both models stay balanced.",
        "comparisonHighlights": ["Gemini is more direct than GPT-5."],
        "models": [
            {
                "modelId": "gemini-flash",
                "modelName": "Gemini 2.5 Flash",
                "providerName": "Google",
                "stanceLabel": "mixed",
                "stanceStrength": "hedged",
                "directness": "answers",
                "policyLeaning": "centrist",
                "valueEmphasis": ["liberty", "care"],
                "neutrality": "neutral",
                "neutralityExplanation": "Presents both views.",
                "traitScores": {
                    "symmetry": 80,
                    "ethical_alignment": 70,
                    "ideological_balance": 75,
                    "empathic_awareness": 65,
                    "response_willingness": 90,
                },
                "notes": "Balanced.",
            }
        ],
    }


def make_completion(content: Any) -> SimpleNamespace:
    """Minimal stand-in for an OpenAI ChatCompletion."""
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def make_json_completion(payload: dict[str, Any]) -> SimpleNamespace:
    return make_completion(json.dumps(payload))


_STATUS_ERRORS: dict[int, type[openai.APIStatusError]] = {
    400: openai.BadRequestError,
    401: openai.AuthenticationError,
    404: openai.NotFoundError,
    422: openai.UnprocessableEntityError,
    500: openai.InternalServerError,
}


def make_status_error(status_code: int, message: str, body: Any = None) -> openai.APIStatusError:
    request = httpx.Request("POST", "https://analysis.example.test/v1/chat/completions")
    response = httpx.Response(status_code, request=request)
    error_cls = _STATUS_ERRORS.get(status_code, openai.APIStatusError)
    return error_cls(message, response=response, body=body)


@pytest.fixture
def mock_analysis_client() -> MagicMock:
    client = MagicMock()
    client.chat.completions.create = AsyncMock()
    client.close = AsyncMock()
    return client
