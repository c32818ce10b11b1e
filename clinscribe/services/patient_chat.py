"""Conversation about a single patient, grounded in their stored chart."""

from __future__ import annotations

from typing import Optional, Sequence

from clinscribe.config.logger import get_logger, log_stage
from clinscribe.config.settings import settings
from clinscribe.llm.text_generation import MessageLike, generate_text
from clinscribe.models.visit import PatientData, VisitData
from clinscribe.prompts.patient_chat import build_patient_chat_prompt

logger = get_logger(__name__)

PATIENT_CHAT_TEMPERATURE = 0.7
PATIENT_CHAT_MAX_TOKENS = 2048


def recent_messages(messages: Sequence[MessageLike], history_limit: int) -> list[MessageLike]:
    """The latest message plus at most ``history_limit`` messages before it."""
    messages = list(messages)
    if not messages:
        return []
    earlier = messages[:-1][-history_limit:] if history_limit > 0 else []
    return earlier + messages[-1:]


async def chat_about_patient(
    patient: PatientData,
    visits: Sequence[VisitData],
    messages: Sequence[MessageLike],
    visit_dates: Optional[Sequence[Optional[str]]] = None,
) -> str:
    """Answer the latest message with the patient's chart as system context.

    Generation errors propagate; callers decide how to surface them.
    """
    system_prompt = build_patient_chat_prompt(
        patient,
        visits,
        visit_dates,
        visit_limit=settings.PATIENT_CHAT_VISIT_LIMIT,
        transcription_limit=settings.PATIENT_CHAT_TRANSCRIPTION_LIMIT,
    )
    log_stage(logger, "patient_chat.context", system_prompt)

    conversation = recent_messages(messages, settings.PATIENT_CHAT_HISTORY_MESSAGES)
    content = await generate_text(
        conversation,
        system_prompt,
        PATIENT_CHAT_TEMPERATURE,
        PATIENT_CHAT_MAX_TOKENS,
        agent_key="CHAT",
    )
    log_stage(logger, "patient_chat.reply", content)
    return content
