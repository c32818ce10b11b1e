"""Risk assessment engine: prompt bounds, normalization and the fallback result."""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest

import clinscribe.services.risk_assessment as risk_service
from clinscribe.models.risk import RiskAssessment, default_risk_assessment
from clinscribe.models.visit import PatientData, VisitData
from clinscribe.prompts.risk import RISK_SYSTEM_PROMPT
from clinscribe.services.risk_assessment import (
    analyze_visit_risk,
    build_visit_risk_prompt,
    normalize_follow_up_urgency,
    normalize_risk_assessment,
    normalize_risk_level,
    normalize_risk_score,
    parse_risk_response,
)

FALLBACK = {
    "riskLevel": "low",
    "riskScore": 0,
    "riskFactors": [],
    "summary": "Unable to perform risk assessment",
    "concerns": [],
    "recommendations": ["Manual review recommended"],
    "followUpUrgency": "routine",
}


def _run(coro):
    return asyncio.run(coro)


def _public(assessment: RiskAssessment) -> dict:
    return assessment.model_dump(by_alias=True, exclude={"assessment_quality"})


class TestNormalization:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            (-5, 0),
            (150, 100),
            ("abc", 0),
            ("95", 95),
            ("88 points", 88),
            (42.7, 42),
            (float("nan"), 0),
            (float("inf"), 100),
            (float("-inf"), 0),
            (10**400, 100),
            (True, 0),
            (None, 0),
            ([50], 0),
            (0, 0),
            (100, 100),
        ],
    )
    def test_score_is_clamped_integer(self, raw, expected):
        score = normalize_risk_score(raw)
        assert isinstance(score, int)
        assert score == expected

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("HIGH", "high"),
            ("High", "high"),
            ("high", "high"),
            (" Critical ", "critical"),
            ("MODERATE", "moderate"),
            ("bogus", "low"),
            ("", "low"),
            (None, "low"),
            (3, "low"),
        ],
    )
    def test_level_is_contained(self, raw, expected):
        assert normalize_risk_level(raw) == expected

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("IMMEDIATE", "immediate"),
            ("Soon", "soon"),
            ("urgent", "urgent"),
            ("asap", "routine"),
            (None, "routine"),
        ],
    )
    def test_urgency_is_contained(self, raw, expected):
        assert normalize_follow_up_urgency(raw) == expected

    def test_fields_default_independently(self):
        result = normalize_risk_assessment(
            {"riskLevel": "high", "riskScore": 70, "riskFactors": "not a list"}
        )

        assert result.risk_level == "high"
        assert result.risk_score == 70
        assert result.concerns == []
        assert result.risk_factors == []
        assert result.recommendations == []
        assert result.summary == ""
        assert result.follow_up_urgency == "routine"
        assert result.assessment_quality == "ok"

    def test_list_items_are_cleaned(self):
        result = normalize_risk_assessment({"concerns": [" chest pain ", "", None, 3, {"x": 1}]})
        assert result.concerns == ["chest pain", "3"]

    def test_prose_without_json_gives_fallback(self):
        result = parse_risk_response("The patient appears to be at low risk overall.")

        assert _public(result) == FALLBACK
        assert result.assessment_quality == "degraded"

    def test_infinite_score_from_json_is_clamped(self):
        result = parse_risk_response('{"riskLevel": "high", "riskScore": Infinity}')
        assert result.risk_score == 100

    def test_malformed_reply_with_nested_object_gives_fallback(self):
        result = parse_risk_response(
            '{"riskLevel": "critical", "riskScore": 95, "vitals": {"bp": "190/120"}, '
            '"followUpUrgency": "immediate",}'
        )

        assert _public(result) == FALLBACK
        assert result.assessment_quality == "degraded"


class TestPromptContext:
    def test_long_transcription_is_truncated(self):
        transcription = "x" * 1000 + "Z" * 500
        context = build_visit_risk_prompt(
            VisitData(transcription=transcription), PatientData(name="A")
        )

        assert "x" * 1000 + "..." in context
        assert "Z" not in context
        assert transcription not in context

    def test_short_transcription_is_kept_whole(self):
        context = build_visit_risk_prompt(
            VisitData(transcription="cough for two days"), PatientData(name="A")
        )
        assert "cough for two days" in context
        assert "cough for two days..." not in context

    def test_note_sections_are_capped(self):
        visit = VisitData(note_content={"subjective": "a" * 600, "plan": "rest"})
        context = build_visit_risk_prompt(visit, PatientData(name="A"))

        assert "[SUBJECTIVE]\n" + "a" * 500 + "..." in context
        assert "a" * 501 not in context
        assert "[PLAN]\nrest" in context

    def test_history_is_capped_to_three_most_recent(self):
        history = [VisitData(chief_complaint=f"complaint-{i}") for i in range(1, 6)]
        context = build_visit_risk_prompt(
            VisitData(chief_complaint="today"), PatientData(name="A"), history
        )

        for i in (1, 2, 3):
            assert f"complaint-{i}" in context
        assert "complaint-4" not in context
        assert "complaint-5" not in context
        assert "--- Previous Visit 4 ---" not in context
        assert "showing 3 of 5" in context

    def test_accepts_plain_mappings(self):
        context = build_visit_risk_prompt(
            {"chiefComplaint": "headache", "vitals": {"bp": "150/95"}},
            {"name": "J. Doe", "age": 70},
        )
        assert "- Chief Complaint: headache" in context
        assert "BP: 150/95" in context
        assert "- Age: 70" in context


class TestAnalyzeVisitRisk:
    def test_example_scenario(self, fake_model):
        fake_model.reply = json.dumps(
            {
                "riskLevel": "CRITICAL",
                "riskScore": "95",
                "riskFactors": ["hypertensive crisis"],
                "summary": "Severe BP elevation",
                "concerns": [],
                "recommendations": ["ER referral"],
                "followUpUrgency": "IMMEDIATE",
            }
        )

        result = _run(
            analyze_visit_risk(
                VisitData(vitals={"bp": "190/120"}), PatientData(name="J. Doe", age=70)
            )
        )

        assert _public(result) == {
            "riskLevel": "critical",
            "riskScore": 95,
            "riskFactors": ["hypertensive crisis"],
            "summary": "Severe BP elevation",
            "concerns": [],
            "recommendations": ["ER referral"],
            "followUpUrgency": "immediate",
        }
        assert result.assessment_quality == "ok"
        user_message = fake_model.calls[0][-1].content
        assert "- Name: J. Doe" in user_message
        assert "BP: 190/120" in user_message

    def test_missing_concerns_keeps_valid_fields(self, fake_model):
        fake_model.reply = 'Assessment: {"riskLevel": "moderate", "riskScore": 35}'

        result = _run(analyze_visit_risk(VisitData(), PatientData(name="A")))

        assert result.risk_level == "moderate"
        assert result.risk_score == 35
        assert result.concerns == []

    def test_call_failure_resolves_to_fallback(self, fake_model):
        fake_model.error = TimeoutError("upstream timed out")

        result = _run(analyze_visit_risk(VisitData(), PatientData(name="A")))

        assert _public(result) == FALLBACK
        assert result.assessment_quality == "degraded"
        assert result == default_risk_assessment()

    def test_unavailable_model_resolves_to_fallback(self, monkeypatch):
        monkeypatch.setattr(
            "clinscribe.llm.text_generation.get_chat_model", lambda *a, **kw: None
        )

        result = _run(analyze_visit_risk(VisitData(), PatientData(name="A")))

        assert _public(result) == FALLBACK

    def test_prose_reply_resolves_to_fallback(self, fake_model):
        fake_model.reply = "I cannot determine the risk from this information."

        result = _run(analyze_visit_risk(VisitData(), PatientData(name="A")))

        assert _public(result) == FALLBACK

    def test_invalid_input_resolves_to_fallback(self, fake_model):
        fake_model.reply = '{"riskLevel": "high"}'

        result = _run(analyze_visit_risk({"vitals": "not a mapping"}, PatientData(name="A")))

        assert _public(result) == FALLBACK
        assert fake_model.calls == []

    def test_call_parameters(self, monkeypatch):
        fake_generate = AsyncMock(return_value='{"riskLevel": "low", "riskScore": 5}')
        monkeypatch.setattr(risk_service, "generate_text", fake_generate)

        _run(analyze_visit_risk(VisitData(), PatientData(name="A")))

        args, kwargs = fake_generate.call_args
        assert args[1] == RISK_SYSTEM_PROMPT
        assert args[2] == 0.3
        assert args[3] == 1500
        assert kwargs["agent_key"] == "RISK"
        assert args[0][0].role == "user"

    def test_each_call_reaches_the_model(self, fake_model):
        fake_model.reply = '{"riskLevel": "low"}'
        visit, patient = VisitData(chief_complaint="cough"), PatientData(name="A")

        _run(analyze_visit_risk(visit, patient))
        _run(analyze_visit_risk(visit, patient))

        assert len(fake_model.calls) == 2
