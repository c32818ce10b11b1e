"""Structured data extraction from clinical notes.

The model reads the note and reports vitals, clinical info and symptoms. After
parsing, every vital that carries a number gets its qualitative status
recomputed from the reference ranges below; the model's own status is only
kept when there is no number to check it against.
"""

from __future__ import annotations

import math
import re
from typing import Any, Callable, Mapping, Optional, get_args

from clinscribe.config.logger import get_logger, log_stage
from clinscribe.llm.text_generation import Message, generate_text
from clinscribe.models.structured_data import (
    BloodPressure,
    BloodPressureStatus,
    ClinicalInfo,
    HeartRate,
    HeartRateStatus,
    LabStatus,
    LabValue,
    Medication,
    O2Saturation,
    O2SaturationStatus,
    RespiratoryRate,
    RespiratoryRateStatus,
    StructuredData,
    Symptom,
    SymptomSeverity,
    Temperature,
    TemperatureStatus,
    TemperatureUnit,
    Vitals,
    Weight,
    WeightStatus,
    WeightUnit,
)
from clinscribe.prompts.extraction import STRUCTURED_DATA_SYSTEM_PROMPT, build_extraction_context
from clinscribe.utils.json_extract import extract_json_object

logger = get_logger(__name__)

EXTRACTION_TEMPERATURE = 0.1
EXTRACTION_MAX_TOKENS = 2048

_BP_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*/\s*(\d+(?:\.\d+)?)\s*$")


# ── Reference ranges ───────────────────────────────────────────────
def blood_pressure_status(systolic: Optional[float], diastolic: Optional[float]) -> Optional[str]:
    if systolic is None and diastolic is None:
        return None
    sys_v = systolic if systolic is not None else 0
    dia_v = diastolic if diastolic is not None else 0
    if sys_v >= 180 or dia_v >= 120:
        return "critical"
    if sys_v >= 130 or dia_v >= 80:
        return "high"
    if sys_v >= 120:
        return "elevated"
    return "normal"


def heart_rate_status(bpm: float) -> str:
    if bpm < 60:
        return "low"
    if bpm > 100:
        return "high"
    return "normal"


def infer_temperature_unit(value: float) -> str:
    # Nobody alive is below 50°F, nobody is above 50°C.
    return "C" if value < 50 else "F"


def temperature_status(value: float, unit: Optional[str] = None) -> str:
    unit = unit or infer_temperature_unit(value)
    fahrenheit = value * 9 / 5 + 32 if unit == "C" else value
    if fahrenheit < 95:
        return "low"
    if fahrenheit < 100.4:
        return "normal"
    if fahrenheit < 104:
        return "fever"
    return "high-fever"


def o2_saturation_status(percent: float) -> str:
    if percent < 90:
        return "critical"
    if percent < 95:
        return "low"
    return "normal"


def respiratory_rate_status(per_minute: float) -> str:
    if per_minute < 12:
        return "low"
    if per_minute > 20:
        return "high"
    return "normal"


def weight_status(change: float) -> str:
    if change > 0:
        return "gained"
    if change < 0:
        return "lost"
    return "stable"


# ── Field coercion ─────────────────────────────────────────────────
def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        try:
            float(value)
        except OverflowError:
            return None
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, str):
        try:
            parsed = float(value.strip())
        except ValueError:
            return None
        if not math.isfinite(parsed):
            return None
        return int(parsed) if parsed.is_integer() else parsed
    return None


def _choice(value: Any, literal: Any) -> Optional[str]:
    """Case-insensitive match against a Literal's options, else None."""
    if not isinstance(value, str):
        return None
    lowered = value.strip().lower()
    for option in get_args(literal):
        if option.lower() == lowered:
            return option
    return None


def _text(value: Any) -> Optional[str]:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _text_list(value: Any) -> Optional[list[str]]:
    if not isinstance(value, list):
        return None
    return [text for text in (_text(item) for item in value) if text is not None]


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _value_mapping(raw: Any) -> Mapping[str, Any]:
    """Accept either ``{"value": 72, ...}`` or a bare number."""
    if isinstance(raw, Mapping):
        return raw
    if _number(raw) is not None:
        return {"value": raw}
    return {}


# ── Vitals ─────────────────────────────────────────────────────────
def _blood_pressure(raw: Any) -> Optional[BloodPressure]:
    if isinstance(raw, str):
        match = _BP_PATTERN.match(raw)
        raw = {"systolic": match.group(1), "diastolic": match.group(2)} if match else {}
    raw = _mapping(raw)
    if not raw:
        return None
    systolic = _number(raw.get("systolic"))
    diastolic = _number(raw.get("diastolic"))
    status = blood_pressure_status(systolic, diastolic) or _choice(
        raw.get("status"), BloodPressureStatus
    )
    if status is None:
        return None
    return BloodPressure(systolic=systolic, diastolic=diastolic, status=status)


def _scored_vital(raw: Any, model: type, status_literal: Any, classify: Callable[[float], str]):
    raw = _value_mapping(raw)
    if not raw:
        return None
    value = _number(raw.get("value"))
    if value is not None:
        status = classify(value)
    else:
        status = _choice(raw.get("status"), status_literal)
    if status is None:
        return None
    return model(value=value, status=status)


def _temperature(raw: Any) -> Optional[Temperature]:
    raw = _value_mapping(raw)
    if not raw:
        return None
    value = _number(raw.get("value"))
    unit = _choice(raw.get("unit"), TemperatureUnit)
    if value is not None:
        unit = unit or infer_temperature_unit(value)
        status = temperature_status(value, unit)
    else:
        status = _choice(raw.get("status"), TemperatureStatus)
    if status is None:
        return None
    return Temperature(value=value, unit=unit, status=status)


def _weight(raw: Any) -> Optional[Weight]:
    raw = _value_mapping(raw)
    if not raw:
        return None
    value = _number(raw.get("value"))
    previous = _number(raw.get("previousValue"))
    change = _number(raw.get("change"))
    if value is not None and previous is not None:
        change = round(value - previous, 2)
        if isinstance(change, float) and change.is_integer():
            change = int(change)
    if change is not None:
        status = weight_status(change)
    else:
        status = _choice(raw.get("status"), WeightStatus)
    if value is None and status is None:
        return None
    return Weight(
        value=value,
        unit=_choice(raw.get("unit"), WeightUnit),
        previous_value=previous,
        change=change,
        status=status,
    )


def normalize_vitals(raw: Any) -> Vitals:
    raw = _mapping(raw)
    return Vitals(
        blood_pressure=_blood_pressure(raw.get("bloodPressure")),
        heart_rate=_scored_vital(
            raw.get("heartRate"), HeartRate, HeartRateStatus, heart_rate_status
        ),
        temperature=_temperature(raw.get("temperature")),
        weight=_weight(raw.get("weight")),
        o2_saturation=_scored_vital(
            raw.get("o2Saturation"), O2Saturation, O2SaturationStatus, o2_saturation_status
        ),
        respiratory_rate=_scored_vital(
            raw.get("respiratoryRate"),
            RespiratoryRate,
            RespiratoryRateStatus,
            respiratory_rate_status,
        ),
    )


# ── Clinical info and symptoms ─────────────────────────────────────
def _medications(raw: Any) -> Optional[list[Medication]]:
    if not isinstance(raw, list):
        return None
    medications: list[Medication] = []
    for item in raw:
        if isinstance(item, str) and item.strip():
            medications.append(Medication(name=item.strip()))
            continue
        item = _mapping(item)
        name = _text(item.get("name"))
        if name is None:
            continue
        medications.append(
            Medication(
                name=name,
                dosage=_text(item.get("dosage")),
                frequency=_text(item.get("frequency")),
                route=_text(item.get("route")),
            )
        )
    return medications


def _lab_values(raw: Any) -> Optional[list[LabValue]]:
    if not isinstance(raw, list):
        return None
    labs: list[LabValue] = []
    for item in raw:
        item = _mapping(item)
        test_name = _text(item.get("testName"))
        if test_name is None:
            continue
        value = item.get("value")
        numeric = _number(value) if not isinstance(value, str) else None
        labs.append(
            LabValue(
                test_name=test_name,
                value=numeric if numeric is not None else _text(value),
                unit=_text(item.get("unit")),
                reference_range=_text(item.get("referenceRange")),
                status=_choice(item.get("status"), LabStatus),
            )
        )
    return labs


def normalize_clinical_info(raw: Any) -> ClinicalInfo:
    raw = _mapping(raw)
    return ClinicalInfo(
        chief_complaint=_text(raw.get("chiefComplaint")),
        diagnoses=_text_list(raw.get("diagnoses")),
        medications_mentioned=_medications(raw.get("medicationsMentioned")),
        lab_values=_lab_values(raw.get("labValues")),
        allergies=_text_list(raw.get("allergies")),
    )


def normalize_symptoms(raw: Any) -> list[Symptom]:
    if not isinstance(raw, list):
        return []
    symptoms: list[Symptom] = []
    for item in raw:
        if isinstance(item, str) and item.strip():
            symptoms.append(Symptom(name=item.strip()))
            continue
        item = _mapping(item)
        name = _text(item.get("name"))
        if name is None:
            continue
        symptoms.append(
            Symptom(
                name=name,
                severity=_choice(item.get("severity"), SymptomSeverity),
                duration=_text(item.get("duration")),
            )
        )
    return symptoms


def _confidence(raw: Any) -> Optional[int]:
    value = _number(raw)
    if value is None:
        return None
    return min(100, max(0, int(value)))


def normalize_structured_data(raw: Mapping[str, Any]) -> StructuredData:
    return StructuredData(
        vitals=normalize_vitals(raw.get("vitals")),
        clinical_info=normalize_clinical_info(raw.get("clinicalInfo")),
        symptoms=normalize_symptoms(raw.get("symptoms")),
        confidence=_confidence(raw.get("confidence")),
    )


def parse_structured_data_response(response: str) -> StructuredData:
    parsed = extract_json_object(response)
    if parsed is None:
        logger.warning("[extract] no JSON object in model response, returning empty data")
        return StructuredData()
    return normalize_structured_data(parsed)


async def extract_structured_data(note_content: Mapping[str, Any]) -> StructuredData:
    """Extract vitals, clinical info and symptoms from a note. Never raises."""
    try:
        context = build_extraction_context(note_content or {})
        log_stage(logger, "extract.context", context)
        response = await generate_text(
            [Message(role="user", content=context)],
            STRUCTURED_DATA_SYSTEM_PROMPT,
            EXTRACTION_TEMPERATURE,
            EXTRACTION_MAX_TOKENS,
            agent_key="EXTRACTOR",
        )
        log_stage(logger, "extract.response", response)
        return parse_structured_data_response(response)
    except Exception:
        logger.exception("[extract] error extracting structured data")
        return StructuredData()
