"""Boundary request/response schemas shared by the HTTP API and the CLI."""

from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from neutrality.models import ModelId, ModelResult, NeutralityTestResult

MIN_PROMPT_LENGTH = 4
MIN_TEMPERATURE = 0.0
MAX_TEMPERATURE = 2.0


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, protected_namespaces=())


def _trim_prompt(value: str) -> str:
    # Length is checked on the raw prompt; trimming happens afterwards.
    trimmed = value.strip()
    if not trimmed:
        raise ValueError("Prompt must not be blank")
    return trimmed


class NeutralityTestRequest(_CamelModel):
    prompt: str = Field(..., min_length=MIN_PROMPT_LENGTH)
    models: list[ModelId] = Field(default_factory=lambda: list(ModelId), min_length=1)
    temperature: float | None = Field(default=None, ge=MIN_TEMPERATURE, le=MAX_TEMPERATURE)

    @field_validator("prompt")
    @classmethod
    def _validate_prompt(cls, value: str) -> str:
        return _trim_prompt(value)

    @field_validator("models")
    @classmethod
    def _dedupe_models(cls, value: list[ModelId]) -> list[ModelId]:
        return list(dict.fromkeys(value))


class NeutralityModelRequest(_CamelModel):
    prompt: str = Field(..., min_length=MIN_PROMPT_LENGTH)
    model_id: ModelId
    temperature: float | None = Field(default=None, ge=MIN_TEMPERATURE, le=MAX_TEMPERATURE)

    @field_validator("prompt")
    @classmethod
    def _validate_prompt(cls, value: str) -> str:
        return _trim_prompt(value)


class AnalysisResponseInput(_CamelModel):
    model_id: str
    model_name: str
    provider_name: str
    output: str = Field(..., min_length=1)

    @field_validator("output")
    @classmethod
    def _validate_output(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Output must not be blank")
        return value

    @classmethod
    def from_result(cls, result: ModelResult) -> "AnalysisResponseInput":
        return cls(
            model_id=result.model_id.value,
            model_name=result.model_name,
            provider_name=result.provider_name,
            output=result.output,
        )


class AnalyzeRequest(_CamelModel):
    question: str = Field(..., min_length=1)
    responses: list[AnalysisResponseInput] = Field(..., min_length=1)

    @field_validator("question")
    @classmethod
    def _validate_question(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Question must not be empty")
        return value.strip()


class ModelResultPayload(_CamelModel):
    model_id: ModelId
    model_name: str
    provider_name: str
    output: str
    error: str | None = None

    @classmethod
    def from_result(cls, result: ModelResult) -> "ModelResultPayload":
        return cls(
            model_id=result.model_id,
            model_name=result.model_name,
            provider_name=result.provider_name,
            output=result.output,
            error=result.error,
        )


class NeutralityTestResponse(_CamelModel):
    prompt: str
    responses: list[ModelResultPayload]

    @classmethod
    def from_result(cls, result: NeutralityTestResult) -> "NeutralityTestResponse":
        return cls(
            prompt=result.prompt,
            responses=[ModelResultPayload.from_result(r) for r in result.responses],
        )


class ReadinessPayload(BaseModel):
    ready: bool
    reason: str | None = None


def eligible_for_analysis(results: Iterable[ModelResult]) -> list[AnalysisResponseInput]:
    """Keep only successful results with non-blank output, in order."""
    return [AnalysisResponseInput.from_result(r) for r in results if r.succeeded]
