"""Tests for prompt text and context builders."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from clinscribe.models.visit import PatientData, VisitData
from clinscribe.prompts.extraction import build_clinical_info_context, build_extraction_context
from clinscribe.prompts.notes import (
    NOTE_TEMPLATES,
    available_note_types,
    build_note_context,
    get_note_template,
)
from clinscribe.prompts.risk import RISK_SYSTEM_PROMPT, build_risk_context, clip


class TestRiskPrompt:
    def test_system_prompt_names_every_field(self):
        for field in (
            "riskLevel",
            "riskScore",
            "riskFactors",
            "summary",
            "concerns",
            "recommendations",
            "followUpUrgency",
        ):
            assert f'"{field}"' in RISK_SYSTEM_PROMPT

    def test_absent_fields_are_left_out(self):
        context = build_risk_context(VisitData(), PatientData(name="A"))

        assert "- Name: A" in context
        assert "- Age:" not in context
        assert "- Allergies:" not in context
        assert "- Vitals:" not in context
        assert "TRANSCRIPTION EXCERPT" not in context
        assert "PREVIOUS VISITS" not in context
        assert "FULL CLINICAL NOTE" not in context

    def test_full_context(self):
        patient = PatientData(
            name="J. Doe",
            age=70,
            gender="female",
            diagnoses=["Hypertension", "CKD stage 3"],
            medications=["Lisinopril"],
            allergies=["Sulfa"],
        )
        visit = VisitData(
            chief_complaint="Headache",
            diagnosis="Hypertensive urgency",
            vitals={"bp": "190/120", "heartRate": 96, "temperature": 37.2, "oxygenSaturation": 97},
            summary="BP very high",
            treatment_plan="IV labetalol",
        )

        context = build_risk_context(visit, patient)

        assert "- Known Diagnoses: Hypertension, CKD stage 3" in context
        assert "- Current Medications: Lisinopril" in context
        assert "- Allergies: Sulfa" in context
        assert "- Vitals: BP: 190/120 HR: 96bpm Temp: 37.2°C SpO2: 97%" in context
        assert "- Treatment Plan: IV labetalol" in context
        assert context.index("PATIENT INFORMATION:") < context.index("CURRENT VISIT:")

    def test_non_text_note_values_are_ignored(self):
        context = build_risk_context(
            VisitData(note_content={"assessment": "stable", "meta": {"id": 1}, "plan": ""}),
            PatientData(name="A"),
        )
        assert "[ASSESSMENT]\nstable" in context
        assert "[META]" not in context
        assert "[PLAN]" not in context

    def test_clip(self):
        assert clip("abc", 3) == "abc"
        assert clip("abcd", 3) == "abc..."


class TestNoteTemplates:
    def test_all_types_are_listed(self):
        assert [t for t, _ in available_note_types()] == ["SOAP", "Progress", "Consultation", "H&P"]

    def test_every_template_ends_with_codes(self):
        for template in NOTE_TEMPLATES.values():
            assert template.section_keys[-2:] == ["icd10", "cpt"]
            for key in template.section_keys:
                assert f'"{key}"' in template.system_prompt

    def test_unknown_type_falls_back_to_soap(self):
        assert get_note_template("Discharge").type == "SOAP"
        assert get_note_template("Consultation").type == "Consultation"

    def test_note_context_embeds_transcription(self):
        assert build_note_context("hello", "SOAP").endswith("hello")


class TestExtractionPrompts:
    def test_extraction_context_lists_sections(self):
        context = build_extraction_context({"subjective": "cough", "objective": "  "})
        assert "[SUBJECTIVE]\ncough" in context
        assert "[OBJECTIVE]" not in context

    def test_clinical_info_context(self):
        assert build_clinical_info_context("notes").endswith("notes")
