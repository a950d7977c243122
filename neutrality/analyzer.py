"""Neutrality analysis: ask an analyst model to score every successful answer."""

import json
import logging
from collections.abc import Sequence
from typing import Any

import openai
from openai import AsyncOpenAI
from pydantic import ValidationError

from config.config_loader import AnalysisConfig, PromptsConfig
from neutrality.analysis_schema import (
    ANALYSIS_JSON_SCHEMA,
    DIRECTNESS_LABELS,
    EXAMPLE_ANALYSIS,
    NEUTRALITY_LABELS,
    POLICY_LEANINGS,
    STANCE_LABELS,
    STANCE_STRENGTHS,
    TRAIT_KEYS,
    VALUE_TAGS,
    AnalysisResult,
)
from neutrality.errors import AnalysisResponseError, AnalysisSchemaError, AnalysisUpstreamError
from neutrality.schemas import AnalysisResponseInput

logger = logging.getLogger(__name__)

_SCHEMA_NAME = "neutrality_analysis"

# Phrasings seen from OpenAI-compatible gateways when a model cannot do
# structured output. Both a feature marker and a refusal marker must match.
_FORMAT_MARKERS = ("response_format", "response format", "json_schema", "structured output")
_UNSUPPORTED_MARKERS = ("not supported", "unsupported", "does not support", "not available")
_FORMAT_REJECTION_STATUSES = frozenset({400, 404, 422})


def build_analysis_client(api_key: str, config: AnalysisConfig) -> AsyncOpenAI:
    # Automatic SDK retries are disabled: a failed analysis surfaces immediately.
    return AsyncOpenAI(
        api_key=api_key,
        base_url=config.base_url,
        timeout=config.timeout_sec,
        max_retries=0,
    )


def _error_text(exc: openai.APIStatusError) -> str:
    if exc.body is not None:
        return exc.body if isinstance(exc.body, str) else json.dumps(exc.body, ensure_ascii=False)
    return exc.response.text or exc.message


def is_response_format_unsupported(exc: Exception) -> bool:
    """True when the back-end rejected the request because of ``response_format``."""
    if not isinstance(exc, openai.APIStatusError):
        return False
    if exc.status_code not in _FORMAT_REJECTION_STATUSES:
        return False
    text = f"{exc.message} {_error_text(exc)}".lower()
    return any(m in text for m in _FORMAT_MARKERS) and any(m in text for m in _UNSUPPORTED_MARKERS)


def build_messages(
    question: str,
    responses: Sequence[AnalysisResponseInput],
    prompts: PromptsConfig,
) -> list[dict[str, str]]:
    """System instruction plus a JSON payload carrying vocabularies, example and answers."""
    payload: dict[str, Any] = {
        "labels": {
            "stanceLabel": list(STANCE_LABELS),
            "stanceStrength": list(STANCE_STRENGTHS),
            "directness": list(DIRECTNESS_LABELS),
            "policyLeaning": list(POLICY_LEANINGS),
            "valueEmphasis": list(VALUE_TAGS),
            "neutrality": list(NEUTRALITY_LABELS),
            "traitScores": {key: "integer 0-100" for key in TRAIT_KEYS},
        },
        "example": EXAMPLE_ANALYSIS,
        "question": question,
        "responses": [
            {
                "modelId": r.model_id,
                "modelName": r.model_name,
                "providerName": r.provider_name,
                "output": r.output,
            }
            for r in responses
        ],
    }
    return [
        {"role": "system", "content": prompts.analyst},
        {"role": "user", "content": json.dumps(payload, indent=2, ensure_ascii=False)},
    ]


async def _complete(
    client: AsyncOpenAI,
    config: AnalysisConfig,
    messages: list[dict[str, str]],
    enforce_schema: bool,
) -> Any:
    params: dict[str, Any] = {
        "model": config.effective_model(),
        "temperature": config.temperature,
        "messages": messages,
    }
    if enforce_schema:
        params["response_format"] = {
            "type": "json_schema",
            "json_schema": {"name": _SCHEMA_NAME, "strict": True, "schema": ANALYSIS_JSON_SCHEMA},
        }
    return await client.chat.completions.create(**params)


async def request_analysis(
    client: AsyncOpenAI,
    config: AnalysisConfig,
    messages: list[dict[str, str]],
) -> Any:
    """Send with schema enforcement, resending without it if the back-end can't enforce.

    Raises:
        AnalysisUpstreamError: On any other HTTP or transport failure.
    """
    try:
        try:
            return await _complete(client, config, messages, enforce_schema=True)
        except openai.APIStatusError as exc:
            if not is_response_format_unsupported(exc):
                raise
            logger.info(
                "Analysis model %s rejected structured output (%s), retrying without schema",
                config.effective_model(),
                exc.status_code,
            )
        return await _complete(client, config, messages, enforce_schema=False)
    except openai.APIStatusError as exc:
        raise AnalysisUpstreamError(exc.status_code, _error_text(exc)) from exc
    except openai.APIError as exc:
        raise AnalysisUpstreamError(None, str(exc)) from exc


def parse_analysis(content: Any) -> AnalysisResult:
    """Parse the analyst's completion text into a validated AnalysisResult.

    Raises:
        AnalysisResponseError: Content missing or not valid JSON.
        AnalysisSchemaError: ``models`` absent, empty or not a list of objects.
    """
    if not isinstance(content, str):
        raise AnalysisResponseError("Analysis model returned no text content")
    try:
        data = json.loads(content)
    except json.JSONDecodeError as exc:
        raise AnalysisResponseError(f"Analysis response was not valid JSON: {exc}") from exc

    try:
        return AnalysisResult.model_validate(data)
    except ValidationError as exc:
        raise AnalysisSchemaError(f"Analysis response did not match the expected schema: {exc}") from exc


async def analyze_responses(
    question: str,
    responses: Sequence[AnalysisResponseInput],
    client: AsyncOpenAI,
    config: AnalysisConfig,
    prompts: PromptsConfig,
) -> AnalysisResult:
    """Score each response along the neutrality dimensions.

    Args:
        question: The prompt the models answered.
        responses: Successful, non-blank model outputs.
        client: OpenAI-compatible client for the analysis back-end.
        config: Analysis model settings.
        prompts: Prompt templates from config.

    Returns:
        AnalysisResult with one ModelAnalysis per scored model.
    """
    messages = build_messages(question, responses, prompts)
    logger.info("Running neutrality analysis of %d responses via %s", len(responses), config.effective_model())

    completion = await request_analysis(client, config, messages)

    choice = completion.choices[0] if completion.choices else None
    content = choice.message.content if choice else None
    result = parse_analysis(content)

    logger.info("Analysis complete: %d models scored", len(result.models))
    return result
