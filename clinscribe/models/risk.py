from __future__ import annotations

from typing import Literal, get_args

from pydantic import Field

from clinscribe.models.base import CamelModel

RiskLevel = Literal["low", "moderate", "high", "critical"]
FollowUpUrgency = Literal["routine", "soon", "urgent", "immediate"]
AssessmentQuality = Literal["ok", "degraded"]
RiskSource = Literal["ai", "manual"]

RISK_LEVELS: tuple[str, ...] = get_args(RiskLevel)
FOLLOW_UP_URGENCIES: tuple[str, ...] = get_args(FollowUpUrgency)

FALLBACK_SUMMARY = "Unable to perform risk assessment"
FALLBACK_RECOMMENDATION = "Manual review recommended"


class RiskAssessment(CamelModel):
    risk_level: RiskLevel = Field(
        default="low",
        description="Lowercase risk band; unrecognized model values collapse to 'low'.",
    )
    risk_score: int = Field(default=0, ge=0, le=100)
    risk_factors: list[str] = Field(default_factory=list)
    summary: str = ""
    concerns: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    follow_up_urgency: FollowUpUrgency = "routine"
    assessment_quality: AssessmentQuality = Field(
        default="ok",
        description="'degraded' when the pipeline failed and returned the fallback.",
    )


def default_risk_assessment() -> RiskAssessment:
    """Conservative result used whenever the model output cannot be used."""
    return RiskAssessment(
        risk_level="low",
        risk_score=0,
        risk_factors=[],
        summary=FALLBACK_SUMMARY,
        concerns=[],
        recommendations=[FALLBACK_RECOMMENDATION],
        follow_up_urgency="routine",
        assessment_quality="degraded",
    )
