"""Clinical note generation from visit transcriptions."""

from __future__ import annotations

from typing import Any, Mapping

from clinscribe.config.logger import get_logger, log_stage
from clinscribe.llm.text_generation import Message, generate_text
from clinscribe.models.notes import ClinicalInformation, NoteTemplate
from clinscribe.prompts.extraction import CLINICAL_INFO_SYSTEM_PROMPT, build_clinical_info_context
from clinscribe.prompts.notes import (
    CLINICAL_SUMMARY_PROMPT,
    CODE_SECTION_KEYS,
    NOT_DOCUMENTED,
    build_note_context,
    build_summary_context,
    get_note_template,
)
from clinscribe.utils.json_extract import extract_json_object

logger = get_logger(__name__)

NOTE_TEMPERATURE = 0.3
NOTE_MAX_TOKENS = 2048
SUMMARY_TEMPERATURE = 0.3
SUMMARY_MAX_TOKENS = 1024
CLINICAL_INFO_TEMPERATURE = 0.1
CLINICAL_INFO_MAX_TOKENS = 1024

UNPARSED_PLACEHOLDERS = (
    "Unable to parse structured response",
    "Please review and edit manually",
)
ERROR_PLACEHOLDERS = (
    "Error generating note content",
    "Please try again or enter manually",
    "Error occurred during AI processing",
    "Please review and complete manually",
)


def _placeholder_note(template: NoteTemplate, leading: list[str], filler: str) -> dict[str, str]:
    """Fill prose sections in order from ``leading`` then ``filler``; codes stay undocumented."""
    note: dict[str, str] = {}
    queue = list(leading)
    for key in template.section_keys:
        if key in CODE_SECTION_KEYS:
            note[key] = NOT_DOCUMENTED
        else:
            note[key] = queue.pop(0) if queue else filler
    return note


def normalize_note(template: NoteTemplate, raw: Mapping[str, Any]) -> dict[str, str]:
    note: dict[str, str] = {}
    for key in template.section_keys:
        value = raw.get(key)
        if isinstance(value, list):
            value = "\n".join(str(item) for item in value if item)
        note[key] = value.strip() if isinstance(value, str) and value.strip() else NOT_DOCUMENTED
    return note


async def generate_structured_note(transcription: str, note_type: str = "SOAP") -> dict[str, str]:
    """Return one entry per template section. Never raises."""
    template = get_note_template(note_type)
    try:
        response = await generate_text(
            [Message(role="user", content=build_note_context(transcription, template.type))],
            template.system_prompt,
            NOTE_TEMPERATURE,
            NOTE_MAX_TOKENS,
            agent_key="NOTES",
        )
    except Exception:
        logger.exception("[notes] error generating %s note", template.type)
        return _placeholder_note(template, list(ERROR_PLACEHOLDERS[:3]), ERROR_PLACEHOLDERS[3])

    log_stage(logger, f"notes.{template.type}", response)
    parsed = extract_json_object(response)
    if parsed is None:
        logger.warning("[notes] no JSON object in %s note response", template.type)
        return _placeholder_note(
            template, [response, UNPARSED_PLACEHOLDERS[0]], UNPARSED_PLACEHOLDERS[1]
        )
    return normalize_note(template, parsed)


async def generate_clinical_note_summary(transcription: str) -> str:
    return await generate_text(
        [Message(role="user", content=build_summary_context(transcription))],
        CLINICAL_SUMMARY_PROMPT,
        SUMMARY_TEMPERATURE,
        SUMMARY_MAX_TOKENS,
        agent_key="NOTES",
    )


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item).strip() for item in value if isinstance(item, (str, int, float)) and str(item).strip()]


async def extract_clinical_information(notes: str) -> ClinicalInformation:
    """Diagnoses, medications, lab orders and follow-up. Empty record on any failure."""
    try:
        response = await generate_text(
            [Message(role="user", content=build_clinical_info_context(notes))],
            CLINICAL_INFO_SYSTEM_PROMPT,
            CLINICAL_INFO_TEMPERATURE,
            CLINICAL_INFO_MAX_TOKENS,
            agent_key="EXTRACTOR",
        )
    except Exception:
        logger.exception("[notes] error extracting clinical information")
        return ClinicalInformation()

    parsed = extract_json_object(response)
    if parsed is None:
        return ClinicalInformation()
    follow_up = parsed.get("followUpInstructions")
    return ClinicalInformation(
        diagnosis=_string_list(parsed.get("diagnosis")),
        medications=_string_list(parsed.get("medications")),
        lab_orders=_string_list(parsed.get("labOrders")),
        follow_up_instructions=follow_up if isinstance(follow_up, str) else "",
    )
