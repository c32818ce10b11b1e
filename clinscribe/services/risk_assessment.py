"""Visit risk assessment: prompt -> hosted model -> validated RiskAssessment.

:func:`analyze_visit_risk` never raises. Anything that goes wrong (model
unavailable, transport error, no JSON in the reply, invalid input) yields
:func:`default_risk_assessment`, flagged ``assessment_quality="degraded"``.
"""

from __future__ import annotations

import math
import re
from typing import Any, Mapping, Optional, Sequence, Union

from clinscribe.config.logger import get_logger, log_stage
from clinscribe.config.settings import settings
from clinscribe.llm.text_generation import Message, generate_text
from clinscribe.models.risk import (
    FOLLOW_UP_URGENCIES,
    RISK_LEVELS,
    RiskAssessment,
    default_risk_assessment,
)
from clinscribe.models.visit import PatientData, VisitData
from clinscribe.prompts.risk import RISK_SYSTEM_PROMPT, build_risk_context
from clinscribe.utils.json_extract import extract_json_object

logger = get_logger(__name__)

RISK_TEMPERATURE = 0.3
RISK_MAX_TOKENS = 1500

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")

VisitLike = Union[VisitData, Mapping[str, Any]]
PatientLike = Union[PatientData, Mapping[str, Any]]


def normalize_risk_level(value: Any) -> str:
    if isinstance(value, str) and value.strip().lower() in RISK_LEVELS:
        return value.strip().lower()
    return "low"


def normalize_follow_up_urgency(value: Any) -> str:
    if isinstance(value, str) and value.strip().lower() in FOLLOW_UP_URGENCIES:
        return value.strip().lower()
    return "routine"


def normalize_risk_score(value: Any) -> int:
    """Integer in [0, 100]. Leading-integer parse; NaN and anything unparseable is 0."""
    score = 0
    if isinstance(value, bool):
        score = 0
    elif isinstance(value, int):
        score = value
    elif isinstance(value, float):
        if math.isnan(value):
            score = 0
        elif math.isinf(value):
            score = 100 if value > 0 else 0
        else:
            score = int(value)
    elif isinstance(value, str):
        match = _LEADING_INT.match(value)
        score = int(match.group(1)) if match else 0
    return min(100, max(0, score))


def normalize_text_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    items: list[str] = []
    for item in value:
        if isinstance(item, bool):
            continue
        if isinstance(item, (int, float)):
            items.append(str(item))
        elif isinstance(item, str) and item.strip():
            items.append(item.strip())
    return items


def normalize_risk_assessment(raw: Mapping[str, Any]) -> RiskAssessment:
    """Each field defaults on its own; one bad field never voids the rest."""
    summary = raw.get("summary")
    return RiskAssessment(
        risk_level=normalize_risk_level(raw.get("riskLevel")),
        risk_score=normalize_risk_score(raw.get("riskScore")),
        risk_factors=normalize_text_list(raw.get("riskFactors")),
        summary=summary if isinstance(summary, str) else "",
        concerns=normalize_text_list(raw.get("concerns")),
        recommendations=normalize_text_list(raw.get("recommendations")),
        follow_up_urgency=normalize_follow_up_urgency(raw.get("followUpUrgency")),
        assessment_quality="ok",
    )


def parse_risk_response(response: str) -> RiskAssessment:
    parsed = extract_json_object(response)
    if parsed is None:
        logger.warning("[risk] no JSON object in model response, using fallback assessment")
        return default_risk_assessment()
    return normalize_risk_assessment(parsed)


def _as_visit(visit: Optional[VisitLike]) -> VisitData:
    if isinstance(visit, VisitData):
        return visit
    return VisitData.model_validate(visit or {})


def _as_patient(patient: Optional[PatientLike]) -> PatientData:
    if isinstance(patient, PatientData):
        return patient
    return PatientData.model_validate(patient or {})


def build_visit_risk_prompt(
    visit_data: VisitLike,
    patient_data: PatientLike,
    previous_visits: Optional[Sequence[VisitLike]] = None,
) -> str:
    history = [_as_visit(v) for v in previous_visits] if previous_visits else None
    return build_risk_context(
        _as_visit(visit_data),
        _as_patient(patient_data),
        history,
        transcription_limit=settings.RISK_TRANSCRIPTION_LIMIT,
        section_limit=settings.RISK_NOTE_SECTION_LIMIT,
        history_limit=settings.RISK_HISTORY_LIMIT,
    )


async def analyze_visit_risk(
    visit_data: VisitLike,
    patient_data: PatientLike,
    previous_visits: Optional[Sequence[VisitLike]] = None,
) -> RiskAssessment:
    """Assess the risk of one visit. Always returns, never raises."""
    try:
        context = build_visit_risk_prompt(visit_data, patient_data, previous_visits)
        log_stage(logger, "risk.context", context)
        response = await generate_text(
            [Message(role="user", content=context)],
            RISK_SYSTEM_PROMPT,
            RISK_TEMPERATURE,
            RISK_MAX_TOKENS,
            agent_key="RISK",
        )
        log_stage(logger, "risk.response", response)
        assessment = parse_risk_response(response)
    except Exception:
        logger.exception("[risk] error analyzing visit risk")
        return default_risk_assessment()

    logger.info(
        "[risk] level=%s score=%s urgency=%s quality=%s",
        assessment.risk_level,
        assessment.risk_score,
        assessment.follow_up_urgency,
        assessment.assessment_quality,
    )
    return assessment
