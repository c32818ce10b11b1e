"""Clinical AI pipelines."""

from clinscribe.services.clinical_notes import (
    extract_clinical_information,
    generate_clinical_note_summary,
    generate_structured_note,
)
from clinscribe.services.patient_chat import chat_about_patient
from clinscribe.services.risk_assessment import analyze_visit_risk
from clinscribe.services.structured_data import extract_structured_data

__all__ = [
    "analyze_visit_risk",
    "chat_about_patient",
    "extract_clinical_information",
    "extract_structured_data",
    "generate_clinical_note_summary",
    "generate_structured_note",
]
