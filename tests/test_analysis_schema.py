"""Tests for neutrality/analysis_schema.py: permissive per-field coercion."""

import json

import pytest
from pydantic import ValidationError

from neutrality.analysis_schema import (
    ANALYSIS_JSON_SCHEMA,
    TRAIT_KEYS,
    AnalysisResult,
    ModelAnalysis,
    TraitScores,
)

VALID_TRAITS = {
    "symmetry": 80,
    "ethical_alignment": 0,
    "ideological_balance": 100,
    "empathic_awareness": 65,
    "response_willingness": 90,
}
NEUTRAL_TRAITS = {key: 50 for key in TRAIT_KEYS}


def _entry(**overrides) -> dict:
    entry = {"modelId": "gpt-5", "modelName": "GPT-5"}
    entry.update(overrides)
    return entry


def test_trait_scores_valid_block_is_unchanged():
    entry = ModelAnalysis.model_validate(_entry(traitScores=VALID_TRAITS))
    assert entry.trait_scores.model_dump() == VALID_TRAITS


def test_trait_scores_accept_integral_floats():
    entry = ModelAnalysis.model_validate(_entry(traitScores={**VALID_TRAITS, "symmetry": 80.0}))
    assert entry.trait_scores.model_dump() == VALID_TRAITS
    assert isinstance(entry.trait_scores.symmetry, int)


@pytest.mark.parametrize(
    "traits",
    [
        {k: v for k, v in VALID_TRAITS.items() if k != "symmetry"},
        {**VALID_TRAITS, "symmetry": 101},
        {**VALID_TRAITS, "empathic_awareness": -1},
        {**VALID_TRAITS, "ethical_alignment": 55.5},
        {**VALID_TRAITS, "ethical_alignment": "80"},
        {**VALID_TRAITS, "response_willingness": True},
        "high",
        None,
        [80, 70, 60, 50, 40],
    ],
)
def test_trait_scores_fall_back_as_a_block(traits):
    entry = ModelAnalysis.model_validate(_entry(traitScores=traits))
    assert entry.trait_scores.model_dump() == NEUTRAL_TRAITS


def test_trait_scores_default_when_absent():
    entry = ModelAnalysis.model_validate(_entry())
    assert entry.trait_scores == TraitScores.neutral()


def test_trait_scores_overall_is_rounded_mean():
    scores = TraitScores.model_validate(VALID_TRAITS)
    assert scores.overall == round((80 + 0 + 100 + 65 + 90) / 5)


@pytest.mark.parametrize(
    "field, bad_value, attr, default",
    [
        ("stanceLabel", "unknown_value", "stance_label", "neutral"),
        ("stanceStrength", "extreme", "stance_strength", "moderate"),
        ("directness", 3, "directness", "answers"),
        ("policyLeaning", "libertarian", "policy_leaning", "not_classifiable"),
        ("neutrality", "biased", "neutrality", "neutral"),
    ],
)
def test_bad_enum_values_resolve_to_default(field, bad_value, attr, default):
    entry = ModelAnalysis.model_validate(_entry(**{field: bad_value}))
    assert getattr(entry, attr) == default


def test_valid_enum_values_are_kept():
    entry = ModelAnalysis.model_validate(
        _entry(stanceLabel="refuses", stanceStrength="weak", directness="dodges",
               policyLeaning="progressive", neutrality="strongly_biased")
    )
    assert entry.stance_label == "refuses"
    assert entry.stance_strength == "weak"
    assert entry.directness == "dodges"
    assert entry.policy_leaning == "progressive"
    assert entry.neutrality == "strongly_biased"


def test_value_emphasis_deduplicates():
    entry = ModelAnalysis.model_validate(_entry(valueEmphasis=["care", "liberty", "care"]))
    assert entry.value_emphasis == ["care", "liberty"]


@pytest.mark.parametrize("bad", [["care", "wealth"], "care", None, [1, 2]])
def test_value_emphasis_invalid_reverts_to_empty(bad):
    entry = ModelAnalysis.model_validate(_entry(valueEmphasis=bad))
    assert entry.value_emphasis == []


@pytest.mark.parametrize(
    "notes, expected",
    [
        ("Plain note.", "Plain note."),
        (["First.", "Second."], "First.\nSecond."),
        ({"tone": "calm"}, json.dumps({"tone": "calm"})),
        (42, "42"),
        (None, None),
    ],
)
def test_notes_normalized_to_single_string(notes, expected):
    entry = ModelAnalysis.model_validate(_entry(notes=notes))
    assert entry.notes == expected


def test_missing_model_name_falls_back_to_empty_string():
    entry = ModelAnalysis.model_validate({"modelId": "gpt-5"})
    assert entry.model_name == ""
    assert entry.provider_name is None


def test_camel_case_round_trip():
    entry = ModelAnalysis.model_validate(_entry(stanceLabel="support", traitScores=VALID_TRAITS))
    dumped = entry.model_dump(by_alias=True)
    assert dumped["stanceLabel"] == "support"
    assert dumped["traitScores"] == VALID_TRAITS


def test_analysis_result_valid(analysis_payload):
    result = AnalysisResult.model_validate(analysis_payload)
    assert result.question_summary == "Whether X is good."
    assert result.comparison_highlights == ["Gemini is more direct than GPT-5."]
    assert len(result.models) == 1
    assert result.models[0].value_emphasis == ["liberty", "care"]


def test_analysis_result_defaults_optional_top_level_fields():
    result = AnalysisResult.model_validate({"models": [_entry()], "comparisonHighlights": "not a list"})
    assert result.question_summary is None
    assert result.overall_summary is None
    assert result.comparison_highlights == []


@pytest.mark.parametrize(
    "payload",
    [
        {"models": []},
        {},
        {"models": "gpt-5"},
        {"models": ["not an object"]},
        ["models"],
    ],
)
def test_analysis_result_requires_non_empty_models(payload):
    with pytest.raises(ValidationError):
        AnalysisResult.model_validate(payload)


def test_json_schema_marks_every_property_required():
    entry_schema = ANALYSIS_JSON_SCHEMA["properties"]["models"]["items"]
    assert set(entry_schema["required"]) == set(entry_schema["properties"])
    assert set(ANALYSIS_JSON_SCHEMA["required"]) == set(ANALYSIS_JSON_SCHEMA["properties"])
    assert entry_schema["properties"]["traitScores"]["required"] == list(TRAIT_KEYS)
