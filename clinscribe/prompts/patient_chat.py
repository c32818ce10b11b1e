"""System prompt for chatting about one patient's chart."""

from __future__ import annotations

from typing import Optional, Sequence

from clinscribe.models.visit import PatientData, VisitData, VisitVitals
from clinscribe.prompts.risk import fmt_number

TRANSCRIPTION_TRUNCATION_MARKER = "... [truncated]"

PATIENT_CHAT_INTRO = (
    "You are an AI Clinical Assistant helping a healthcare provider with information "
    "about a specific patient. You have detailed access to this patient's medical "
    "records and history."
)

PATIENT_CHAT_INSTRUCTIONS = """INSTRUCTIONS:
- Answer questions specifically about this patient
- Provide relevant medical insights based on their history
- Help with clinical decision-making for this patient
- Suggest follow-up care based on their conditions
- Be professional, accurate, and always recommend verifying critical information
- When you don't know something, clearly state that
- Always prioritize patient safety and encourage the doctor to use their clinical judgment
- Reference specific information from the patient's records and clinical notes when relevant
- You have access to the full clinical notes including SOAP notes, transcriptions, and structured data"""

_GENDER_LABELS = {"m": "Male", "male": "Male", "f": "Female", "female": "Female"}


def _gender_label(gender: Optional[str]) -> str:
    return _GENDER_LABELS.get((gender or "").strip().lower(), "Other/Unknown")


def _date_label(value: Optional[str]) -> str:
    # SQLite timestamps read "YYYY-MM-DD HH:MM:SS"; ISO ones use "T".
    text = (value or "").strip().replace("T", " ")
    return text.split(" ", 1)[0] if text else "Unknown date"


def _listing(title: str, items: Sequence[str]) -> str:
    return title + "\n" + "\n".join(f"- {item}" for item in items)


def _vitals_text(vitals: VisitVitals) -> str:
    parts: list[str] = []
    if vitals.bp:
        parts.append(f"BP: {vitals.bp}")
    if vitals.weight is not None:
        parts.append(f"Weight: {fmt_number(vitals.weight)}kg")
    if vitals.temperature is not None:
        parts.append(f"Temp: {fmt_number(vitals.temperature)}°C")
    if vitals.heart_rate is not None:
        parts.append(f"HR: {fmt_number(vitals.heart_rate)}bpm")
    if vitals.oxygen_saturation is not None:
        parts.append(f"SpO2: {fmt_number(vitals.oxygen_saturation)}%")
    return ", ".join(parts)


def _visit_block(
    index: int, visit: VisitData, visit_date: Optional[str], transcription_limit: int
) -> str:
    lines = [f"--- Visit {index} ({_date_label(visit_date)}) ---"]
    if visit.chief_complaint:
        lines.append(f"Chief Complaint: {visit.chief_complaint}")
    if visit.vitals is not None and not visit.vitals.is_empty():
        lines.append(f"Vitals: {_vitals_text(visit.vitals)}")
    if visit.summary:
        lines.append(f"Summary: {visit.summary}")
    if visit.diagnosis:
        lines.append(f"Diagnosis: {visit.diagnosis}")
    if visit.treatment_plan:
        lines.append(f"Treatment Plan: {visit.treatment_plan}")

    sections = [
        f"{key}:\n{value.strip()}"
        for key, value in (visit.note_content or {}).items()
        if isinstance(value, str) and value.strip()
    ]
    transcription = visit.transcription or ""
    if sections or transcription:
        lines.append("\n** Full Clinical Note **")
        for section in sections:
            lines.append("\n" + section)
        if transcription:
            if len(transcription) > transcription_limit:
                transcription = transcription[:transcription_limit] + TRANSCRIPTION_TRUNCATION_MARKER
            lines.append("\nOriginal Transcription:\n" + transcription)
    return "\n".join(lines)


def build_patient_chat_prompt(
    patient: PatientData,
    visits: Sequence[VisitData] = (),
    visit_dates: Optional[Sequence[Optional[str]]] = None,
    *,
    visit_limit: int = 10,
    transcription_limit: int = 3000,
) -> str:
    """System prompt carrying the patient's record and recent visits.

    ``visits`` is expected newest first and ``visit_dates`` lines up with it
    by index. Only the first ``visit_limit`` visits are written out, and each
    transcription is cut at ``transcription_limit`` characters followed by
    ``TRANSCRIPTION_TRUNCATION_MARKER``.
    """
    info = [
        "PATIENT INFORMATION:",
        f"- Name: {patient.name}",
        f"- Age: {patient.age if patient.age else 'Unknown'}",
        f"- Gender: {_gender_label(patient.gender)}",
    ]
    blocks = [PATIENT_CHAT_INTRO, "\n".join(info)]

    if patient.diagnoses:
        blocks.append(_listing("DIAGNOSES:", patient.diagnoses))
    if patient.medications:
        blocks.append(_listing("CURRENT MEDICATIONS:", patient.medications))
    if patient.allergies:
        blocks.append(_listing("ALLERGIES:", patient.allergies))

    if visits:
        dates = list(visit_dates or [])
        history = [f"VISIT HISTORY ({len(visits)} visits):"]
        for index, visit in enumerate(list(visits)[:visit_limit], start=1):
            visit_date = dates[index - 1] if index <= len(dates) else None
            history.append(_visit_block(index, visit, visit_date, transcription_limit))
        blocks.append("\n\n".join(history))

    blocks.append(PATIENT_CHAT_INSTRUCTIONS)
    return "\n\n".join(blocks)
