import asyncio
import json
from unittest.mock import AsyncMock

import pytest

import clinscribe.services.structured_data as structured_service
from clinscribe.services.structured_data import (
    blood_pressure_status,
    extract_structured_data,
    normalize_structured_data,
    parse_structured_data_response,
    temperature_status,
)

EMPTY = {"vitals": {}, "clinicalInfo": {}, "symptoms": []}


def _run(coro):
    return asyncio.run(coro)


def test_unparseable_output_gives_empty_default():
    assert parse_structured_data_response("No vitals were recorded.").to_payload() == EMPTY


def test_call_failure_gives_empty_default(fake_model):
    fake_model.error = ConnectionError("offline")

    result = _run(extract_structured_data({"objective": "BP 120/80"}))

    assert result.to_payload() == EMPTY


def test_extraction_call_parameters(monkeypatch):
    fake_generate = AsyncMock(return_value="{}")
    monkeypatch.setattr(structured_service, "generate_text", fake_generate)

    result = _run(extract_structured_data({"objective": "HR 72", "plan": ""}))

    args, kwargs = fake_generate.call_args
    assert args[2] == 0.1
    assert kwargs["agent_key"] == "EXTRACTOR"
    assert "[OBJECTIVE]\nHR 72" in args[0][0].content
    assert "[PLAN]" not in args[0][0].content
    assert result.to_payload() == EMPTY


@pytest.mark.parametrize(
    "systolic,diastolic,expected",
    [
        (110, 70, "normal"),
        (119, 79, "normal"),
        (120, 79, "elevated"),
        (129, 70, "elevated"),
        (125, 80, "high"),
        (130, 70, "high"),
        (179, 119, "high"),
        (180, 90, "critical"),
        (150, 120, "critical"),
    ],
)
def test_blood_pressure_banding(systolic, diastolic, expected):
    assert blood_pressure_status(systolic, diastolic) == expected


@pytest.mark.parametrize(
    "value,unit,expected",
    [
        (94.9, "F", "low"),
        (98.6, "F", "normal"),
        (100.4, "F", "fever"),
        (104, "F", "high-fever"),
        (37.0, "C", "normal"),
        (38.5, "C", "fever"),
        (41.0, None, "high-fever"),
    ],
)
def test_temperature_banding(value, unit, expected):
    assert temperature_status(value, unit) == expected


def test_model_status_is_recomputed_from_numbers(fake_model):
    fake_model.reply = json.dumps(
        {
            "vitals": {
                "bloodPressure": {"systolic": 190, "diastolic": 120, "status": "normal"},
                "heartRate": {"value": 110, "status": "normal"},
                "o2Saturation": {"value": 88, "status": "normal"},
                "respiratoryRate": {"value": 24},
            }
        }
    )

    vitals = _run(extract_structured_data({"objective": "..."})).to_payload()["vitals"]

    assert vitals["bloodPressure"] == {"systolic": 190, "diastolic": 120, "status": "critical"}
    assert vitals["heartRate"] == {"value": 110, "status": "high"}
    assert vitals["o2Saturation"] == {"value": 88, "status": "critical"}
    assert vitals["respiratoryRate"] == {"value": 24, "status": "high"}


def test_loose_vital_shapes():
    data = normalize_structured_data(
        {"vitals": {"bloodPressure": "118/76", "heartRate": 55, "temperature": {"value": 38.5}}}
    )

    assert data.vitals.blood_pressure.status == "normal"
    assert data.vitals.heart_rate.status == "low"
    assert data.vitals.temperature.unit == "C"
    assert data.vitals.temperature.status == "fever"


def test_weight_change_is_derived():
    data = normalize_structured_data(
        {"vitals": {"weight": {"value": 78, "unit": "KG", "previousValue": 80, "status": "gained"}}}
    )

    assert data.vitals.weight.change == -2
    assert data.vitals.weight.status == "lost"
    assert data.vitals.weight.unit == "kg"


def test_status_without_number_is_kept_only_when_allowed():
    data = normalize_structured_data(
        {"vitals": {"o2Saturation": {"status": "low"}, "heartRate": {"status": "racing"}}}
    )

    assert data.vitals.o2_saturation.status == "low"
    assert data.vitals.o2_saturation.value is None
    assert data.vitals.heart_rate is None


def test_clinical_info_and_symptoms():
    data = normalize_structured_data(
        {
            "clinicalInfo": {
                "chiefComplaint": "Shortness of breath",
                "diagnoses": ["COPD exacerbation", ""],
                "medicationsMentioned": [
                    {"name": "Albuterol", "dosage": "2.5 mg", "route": "nebulized"},
                    "Prednisone",
                    {"dosage": "no name"},
                ],
                "labValues": [
                    {"testName": "WBC", "value": 13.2, "unit": "K/uL", "status": "HIGH"},
                    {"testName": "CRP", "value": "pending", "status": "weird"},
                ],
                "allergies": ["penicillin"],
            },
            "symptoms": [
                {"name": "wheezing", "severity": "Severe", "duration": "2 days"},
                {"name": "cough", "severity": "unbearable"},
                "fatigue",
            ],
            "confidence": 150,
        }
    )
    payload = data.to_payload()

    info = payload["clinicalInfo"]
    assert info["chiefComplaint"] == "Shortness of breath"
    assert info["diagnoses"] == ["COPD exacerbation"]
    assert [m["name"] for m in info["medicationsMentioned"]] == ["Albuterol", "Prednisone"]
    assert info["medicationsMentioned"][0] == {
        "name": "Albuterol",
        "dosage": "2.5 mg",
        "route": "nebulized",
    }
    assert info["labValues"][0] == {"testName": "WBC", "value": 13.2, "unit": "K/uL", "status": "high"}
    assert info["labValues"][1] == {"testName": "CRP", "value": "pending"}
    assert info["allergies"] == ["penicillin"]

    assert payload["symptoms"] == [
        {"name": "wheezing", "severity": "severe", "duration": "2 days"},
        {"name": "cough"},
        {"name": "fatigue"},
    ]
    assert payload["confidence"] == 100


def test_absent_facts_stay_absent():
    payload = normalize_structured_data({"vitals": {"heartRate": {"value": 72}}}).to_payload()
    assert payload == {"vitals": {"heartRate": {"value": 72, "status": "normal"}}, "clinicalInfo": {}, "symptoms": []}


def test_oversized_number_only_drops_its_own_field(fake_model):
    fake_model.reply = (
        '{"symptoms": [{"name": "cough"}], "vitals": {"heartRate": {"value": 1'
        + "0" * 400
        + '}, "o2Saturation": {"value": 97}}, "confidence": 1'
        + "0" * 400
        + "}"
    )

    payload = _run(extract_structured_data({"objective": "..."})).to_payload()

    assert payload["symptoms"] == [{"name": "cough"}]
    assert payload["vitals"] == {"o2Saturation": {"value": 97, "status": "normal"}}
    assert "confidence" not in payload
