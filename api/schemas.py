from typing import Optional

from pydantic import Field

from clinscribe.llm.text_generation import Message
from clinscribe.models.base import CamelModel
from clinscribe.models.risk import RiskAssessment, RiskLevel, RiskSource
from clinscribe.models.visit import PatientData, VisitData


class RiskAnalyzeRequest(CamelModel):
    visit: VisitData = Field(default_factory=VisitData)
    patient: PatientData = Field(default_factory=PatientData)
    previous_visits: list[VisitData] = Field(default_factory=list)


class ExtractRequest(CamelModel):
    note_content: dict[str, str] = Field(default_factory=dict)


class NoteGenerateRequest(CamelModel):
    transcription: str
    note_type: str = "SOAP"


class NoteSummaryRequest(CamelModel):
    transcription: str


class ClinicalInfoRequest(CamelModel):
    notes: str


class NoteTypeItem(CamelModel):
    type: str
    description: str
    sections: list[str]


class ChatRequest(CamelModel):
    messages: list[Message] = Field(min_length=1)
    system_prompt: Optional[str] = None
    temperature: float = Field(default=0.5, ge=0, le=2)
    max_tokens: int = Field(default=1024, gt=0)


class PatientChatRequest(CamelModel):
    messages: list[Message] = Field(min_length=1)


class ChatResponse(CamelModel):
    content: str


class PatientCreate(PatientData):
    name: str = Field(min_length=1)


class PatientRecord(PatientData):
    id: int
    risk_level: Optional[RiskLevel] = None
    risk_score: Optional[int] = None
    risk_factors: Optional[list[str]] = None
    risk_notes: Optional[str] = None
    created_at: Optional[str] = None


class VisitRiskResponse(CamelModel):
    visit_id: int
    assessment: RiskAssessment


class ManualRiskUpdate(CamelModel):
    risk_level: RiskLevel
    risk_score: int = Field(ge=0, le=100)
    risk_factors: list[str] = Field(default_factory=list)
    notes: str = ""


class RiskHistoryItem(CamelModel):
    id: int
    patient_id: int
    visit_id: Optional[int] = None
    risk_level: RiskLevel
    risk_score: int
    risk_factors: list[str] = Field(default_factory=list)
    source: RiskSource
    notes: Optional[str] = None
    created_at: Optional[str] = None
