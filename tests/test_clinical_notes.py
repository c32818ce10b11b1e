import asyncio
import json

import pytest

from clinscribe.services.clinical_notes import (
    extract_clinical_information,
    generate_clinical_note_summary,
    generate_structured_note,
)

SOAP_KEYS = ["subjective", "objective", "assessment", "plan", "icd10", "cpt"]


def _run(coro):
    return asyncio.run(coro)


def test_soap_note_fills_missing_sections(fake_model):
    fake_model.reply = "```json\n" + json.dumps(
        {
            "subjective": "Headache for 3 days",
            "objective": "  ",
            "assessment": "Tension headache",
            "plan": ["Ibuprofen 400 mg", "Return if worse"],
        }
    ) + "\n```"

    note = _run(generate_structured_note("doctor: how are you...", "SOAP"))

    assert list(note) == SOAP_KEYS
    assert note["subjective"] == "Headache for 3 days"
    assert note["objective"] == "Not documented"
    assert note["plan"] == "Ibuprofen 400 mg\nReturn if worse"
    assert note["icd10"] == "Not documented"
    assert note["cpt"] == "Not documented"
    factory_kwargs = fake_model.factory.call_args.kwargs
    assert factory_kwargs["temperature"] == 0.3
    assert factory_kwargs["max_tokens"] == 2048


def test_unparsed_reply_is_kept_in_first_section(fake_model):
    fake_model.reply = "Patient reports a mild headache."

    note = _run(generate_structured_note("...", "SOAP"))

    assert note == {
        "subjective": "Patient reports a mild headache.",
        "objective": "Unable to parse structured response",
        "assessment": "Please review and edit manually",
        "plan": "Please review and edit manually",
        "icd10": "Not documented",
        "cpt": "Not documented",
    }


def test_call_failure_gives_error_placeholders(fake_model):
    fake_model.error = ConnectionError("offline")

    note = _run(generate_structured_note("...", "Progress"))

    assert note == {
        "interval_history": "Error generating note content",
        "current_status": "Please try again or enter manually",
        "response_to_treatment": "Error occurred during AI processing",
        "assessment_update": "Please review and complete manually",
        "plan_modification": "Please review and complete manually",
        "icd10": "Not documented",
        "cpt": "Not documented",
    }


def test_unknown_note_type_uses_soap(fake_model):
    fake_model.reply = "{}"

    note = _run(generate_structured_note("...", "Discharge"))

    assert list(note) == SOAP_KEYS
    assert set(note.values()) == {"Not documented"}


def test_history_and_physical_sections(fake_model):
    fake_model.reply = '{"chief_complaint": "Chest pain"}'

    note = _run(generate_structured_note("...", "H&P"))

    assert len(note) == 12
    assert note["chief_complaint"] == "Chest pain"
    assert note["review_of_systems"] == "Not documented"


def test_summary_returns_model_text(fake_model):
    fake_model.reply = "**Chief Complaint:** cough"

    assert _run(generate_clinical_note_summary("...")) == "**Chief Complaint:** cough"


def test_summary_errors_propagate(fake_model):
    fake_model.error = ConnectionError("offline")

    with pytest.raises(ConnectionError):
        _run(generate_clinical_note_summary("..."))


def test_clinical_information_extraction(fake_model):
    fake_model.reply = json.dumps(
        {
            "diagnosis": ["Type 2 diabetes"],
            "medications": ["Metformin 500 mg BID", ""],
            "labOrders": ["HbA1c"],
            "followUpInstructions": "Return in 3 months",
        }
    )

    info = _run(extract_clinical_information("..."))

    assert info.to_payload() == {
        "diagnosis": ["Type 2 diabetes"],
        "medications": ["Metformin 500 mg BID"],
        "labOrders": ["HbA1c"],
        "followUpInstructions": "Return in 3 months",
    }
    assert fake_model.factory.call_args.kwargs["temperature"] == 0.1


@pytest.mark.parametrize("reply,error", [("no json here", None), ("", ConnectionError("x"))])
def test_clinical_information_failure_is_empty(fake_model, reply, error):
    fake_model.reply = reply
    fake_model.error = error

    info = _run(extract_clinical_information("..."))

    assert info.to_payload() == {
        "diagnosis": [],
        "medications": [],
        "labOrders": [],
        "followUpInstructions": "",
    }
