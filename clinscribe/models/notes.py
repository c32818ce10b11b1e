from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from clinscribe.models.base import CamelModel

NoteType = Literal["SOAP", "Progress", "Consultation", "H&P"]


class NoteSection(BaseModel):
    key: str
    label: str
    description: str
    placeholder: str


class NoteTemplate(BaseModel):
    type: NoteType
    description: str
    sections: list[NoteSection]
    system_prompt: str

    @property
    def section_keys(self) -> list[str]:
        return [section.key for section in self.sections]


class ClinicalInformation(CamelModel):
    diagnosis: list[str] = Field(default_factory=list)
    medications: list[str] = Field(default_factory=list)
    lab_orders: list[str] = Field(default_factory=list)
    follow_up_instructions: str = ""
