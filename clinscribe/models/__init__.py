"""Typed inputs and outputs of the clinical pipelines."""

from clinscribe.models.notes import ClinicalInformation, NoteSection, NoteTemplate, NoteType
from clinscribe.models.risk import RiskAssessment, default_risk_assessment
from clinscribe.models.structured_data import StructuredData
from clinscribe.models.visit import PatientData, VisitData, VisitVitals

__all__ = [
    "ClinicalInformation",
    "NoteSection",
    "NoteTemplate",
    "NoteType",
    "PatientData",
    "RiskAssessment",
    "StructuredData",
    "VisitData",
    "VisitVitals",
    "default_risk_assessment",
]
