from __future__ import annotations

from typing import Any, Optional, Union

from pydantic import Field

from clinscribe.models.base import CamelModel

Number = Union[int, float]


class VisitVitals(CamelModel):
    bp: Optional[str] = Field(
        default=None,
        description="Blood pressure as 'systolic/diastolic', e.g. '128/82'.",
    )
    heart_rate: Optional[Number] = Field(default=None, description="Beats per minute.")
    temperature: Optional[Number] = Field(default=None, description="Degrees Celsius.")
    weight: Optional[Number] = Field(default=None, description="Kilograms.")
    oxygen_saturation: Optional[Number] = Field(default=None, description="SpO2 percent.")

    def is_empty(self) -> bool:
        return all(
            value is None
            for value in (
                self.bp,
                self.heart_rate,
                self.temperature,
                self.weight,
                self.oxygen_saturation,
            )
        )


class VisitData(CamelModel):
    """Whatever the caller knows about one encounter. Every field is optional."""

    chief_complaint: Optional[str] = None
    diagnosis: Optional[str] = None
    vitals: Optional[VisitVitals] = None
    summary: Optional[str] = None
    treatment_plan: Optional[str] = None
    note_content: Optional[dict[str, Any]] = Field(
        default=None,
        description="Note section title -> section text. Non-string values are ignored.",
    )
    transcription: Optional[str] = None


class PatientData(CamelModel):
    name: str = ""
    age: Optional[int] = None
    gender: Optional[str] = None
    diagnoses: list[str] = Field(default_factory=list)
    medications: list[str] = Field(default_factory=list)
    allergies: list[str] = Field(default_factory=list)
