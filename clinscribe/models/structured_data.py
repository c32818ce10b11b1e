from __future__ import annotations

from typing import Literal, Optional, Union

from pydantic import Field

from clinscribe.models.base import CamelModel

Number = Union[int, float]

BloodPressureStatus = Literal["normal", "elevated", "high", "critical"]
HeartRateStatus = Literal["normal", "low", "high"]
TemperatureStatus = Literal["normal", "low", "fever", "high-fever"]
WeightStatus = Literal["stable", "gained", "lost"]
O2SaturationStatus = Literal["normal", "low", "critical"]
RespiratoryRateStatus = Literal["normal", "low", "high"]
LabStatus = Literal["normal", "high", "low", "critical"]
SymptomSeverity = Literal["mild", "moderate", "severe"]
TemperatureUnit = Literal["C", "F"]
WeightUnit = Literal["lbs", "kg"]


class BloodPressure(CamelModel):
    systolic: Optional[Number] = None
    diastolic: Optional[Number] = None
    status: Optional[BloodPressureStatus] = None


class HeartRate(CamelModel):
    value: Optional[Number] = None
    status: Optional[HeartRateStatus] = None


class Temperature(CamelModel):
    value: Optional[Number] = None
    unit: Optional[TemperatureUnit] = None
    status: Optional[TemperatureStatus] = None


class Weight(CamelModel):
    value: Optional[Number] = None
    unit: Optional[WeightUnit] = None
    previous_value: Optional[Number] = None
    change: Optional[Number] = None
    status: Optional[WeightStatus] = None


class O2Saturation(CamelModel):
    value: Optional[Number] = None
    status: Optional[O2SaturationStatus] = None


class RespiratoryRate(CamelModel):
    value: Optional[Number] = None
    status: Optional[RespiratoryRateStatus] = None


class Vitals(CamelModel):
    blood_pressure: Optional[BloodPressure] = None
    heart_rate: Optional[HeartRate] = None
    temperature: Optional[Temperature] = None
    weight: Optional[Weight] = None
    o2_saturation: Optional[O2Saturation] = None
    respiratory_rate: Optional[RespiratoryRate] = None


class Medication(CamelModel):
    name: str
    dosage: Optional[str] = None
    frequency: Optional[str] = None
    route: Optional[str] = None


class LabValue(CamelModel):
    test_name: str
    value: Optional[Union[Number, str]] = None
    unit: Optional[str] = None
    reference_range: Optional[str] = None
    status: Optional[LabStatus] = None


class ClinicalInfo(CamelModel):
    chief_complaint: Optional[str] = None
    diagnoses: Optional[list[str]] = None
    medications_mentioned: Optional[list[Medication]] = None
    lab_values: Optional[list[LabValue]] = None
    allergies: Optional[list[str]] = None


class Symptom(CamelModel):
    name: str
    severity: Optional[SymptomSeverity] = None
    duration: Optional[str] = None


class StructuredData(CamelModel):
    """Facts mentioned in a note. Absent facts stay absent."""

    vitals: Vitals = Field(default_factory=Vitals)
    clinical_info: ClinicalInfo = Field(default_factory=ClinicalInfo)
    symptoms: list[Symptom] = Field(default_factory=list)
    confidence: Optional[int] = Field(default=None, ge=0, le=100)
