"""Prompt text and context builder for visit risk assessment."""

from __future__ import annotations

from typing import Any, Optional, Sequence

from clinscribe.models.visit import PatientData, VisitData, VisitVitals

TRUNCATION_MARKER = "..."

RISK_SYSTEM_PROMPT = """You are a clinical risk assessment AI assistant. Analyze the provided patient visit information and generate a risk assessment.

CRITICAL: Read ALL the clinical note content carefully. Pay close attention to severity indicators, location of care, and patient condition.

Your response MUST be valid JSON in this exact format:
{
  "riskLevel": "low" | "moderate" | "high" | "critical",
  "riskScore": <number 0-100>,
  "riskFactors": ["factor1", "factor2", ...],
  "summary": "Brief summary of the risk assessment",
  "concerns": ["concern1", "concern2", ...],
  "recommendations": ["recommendation1", "recommendation2", ...],
  "followUpUrgency": "routine" | "soon" | "urgent" | "immediate"
}

Risk Level Guidelines:
- LOW (0-25): Stable outpatient, routine visit, no concerning symptoms
- MODERATE (26-50): Some concerns that need monitoring, follow-up within 2-4 weeks
- HIGH (51-75): Significant concerns, abnormal vitals, needs close monitoring
- CRITICAL (76-100): Life-threatening, ICU admission, severe/critical condition

AUTOMATIC HIGH/CRITICAL RISK INDICATORS (if ANY of these are present, risk should be HIGH or CRITICAL):
- Patient is in ICU, CCU, or intensive care
- Condition described as "severe", "critical", "life-threatening", "unstable"
- Blood pressure extremely high (>180/120) or extremely low (<90/60)
- Chest pain, difficulty breathing, stroke symptoms
- Acute emergencies: heart attack, stroke, sepsis, respiratory failure
- Recent surgery or post-operative complications
- Uncontrolled bleeding or hemorrhage
- Altered mental status, unconsciousness
- Oxygen saturation below 90%
- High fever (>39°C/102°F) with infection
- Diabetic emergencies (DKA, hypoglycemia with altered consciousness)

MODERATE RISK INDICATORS:
- Hypertension (140-179 systolic) requiring medication adjustment
- Controlled chronic conditions with minor flare-ups
- Infections requiring antibiotics
- Pain requiring prescription management
- Mental health concerns requiring intervention

LOW RISK INDICATORS:
- Routine check-ups with normal findings
- Minor ailments (cold, mild allergies)
- Stable chronic conditions with good control
- Preventive care visits

Consider ALL information in the clinical notes including:
1. Location of care (ICU = critical, ER = at least high, outpatient = varies)
2. Words describing condition severity (severe, critical, stable, improving)
3. Vital signs abnormalities
4. Chief complaint and diagnosis severity
5. Treatment intensity (IV medications, monitoring, ventilator = higher risk)
6. Patient age and comorbidities
7. Changes from previous visits"""

RISK_CONTEXT_INSTRUCTIONS = """=== IMPORTANT INSTRUCTIONS ===
1. Read the FULL CLINICAL NOTE above carefully
2. Look for severity keywords: ICU, severe, critical, emergency, unstable, etc.
3. Look for location of care: ICU patients are automatically HIGH or CRITICAL risk
4. Look for vital sign abnormalities mentioned in text
5. A patient described as "severe" or in "ICU" should NEVER be rated as "low" risk

Please analyze ALL the information above and provide a risk assessment in JSON format."""


def clip(text: str, limit: int) -> str:
    """Cut ``text`` to ``limit`` characters and append ``TRUNCATION_MARKER`` when anything was dropped."""
    if len(text) <= limit:
        return text
    return text[:limit] + TRUNCATION_MARKER


def fmt_number(value: float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _patient_lines(patient: PatientData) -> list[str]:
    lines = ["PATIENT INFORMATION:"]
    if patient.name:
        lines.append(f"- Name: {patient.name}")
    if patient.age is not None:
        lines.append(f"- Age: {patient.age}")
    if patient.gender:
        lines.append(f"- Gender: {patient.gender}")
    if patient.diagnoses:
        lines.append(f"- Known Diagnoses: {', '.join(patient.diagnoses)}")
    if patient.medications:
        lines.append(f"- Current Medications: {', '.join(patient.medications)}")
    if patient.allergies:
        lines.append(f"- Allergies: {', '.join(patient.allergies)}")
    return lines


def _vitals_line(vitals: VisitVitals) -> str:
    parts: list[str] = []
    if vitals.bp:
        parts.append(f"BP: {vitals.bp}")
    if vitals.heart_rate is not None:
        parts.append(f"HR: {fmt_number(vitals.heart_rate)}bpm")
    if vitals.temperature is not None:
        parts.append(f"Temp: {fmt_number(vitals.temperature)}°C")
    if vitals.weight is not None:
        parts.append(f"Weight: {fmt_number(vitals.weight)}kg")
    if vitals.oxygen_saturation is not None:
        parts.append(f"SpO2: {fmt_number(vitals.oxygen_saturation)}%")
    return "- Vitals: " + " ".join(parts)


def _note_sections(note_content: dict[str, Any], section_limit: int) -> list[str]:
    blocks = [
        f"[{title.upper()}]\n{clip(value, section_limit)}"
        for title, value in note_content.items()
        if isinstance(value, str) and value
    ]
    if not blocks:
        return []
    return [
        "===== FULL CLINICAL NOTE (READ CAREFULLY - PRIMARY SOURCE) =====",
        "\n\n".join(blocks),
        "===== END OF CLINICAL NOTE =====",
    ]


def _previous_visit_lines(previous_visits: Sequence[VisitData], history_limit: int) -> list[str]:
    shown = list(previous_visits)[:history_limit]
    lines = [f"PREVIOUS VISITS (showing {len(shown)} of {len(previous_visits)}):"]
    for index, visit in enumerate(shown, start=1):
        lines.append(f"--- Previous Visit {index} ---")
        if visit.chief_complaint:
            lines.append(f"Complaint: {visit.chief_complaint}")
        if visit.diagnosis:
            lines.append(f"Diagnosis: {visit.diagnosis}")
        if visit.vitals is not None and visit.vitals.bp:
            lines.append(f"BP: {visit.vitals.bp}")
    return lines


def build_risk_context(
    visit: VisitData,
    patient: PatientData,
    previous_visits: Optional[Sequence[VisitData]] = None,
    *,
    transcription_limit: int = 1000,
    section_limit: int = 500,
    history_limit: int = 3,
) -> str:
    """Serialize patient + visit (+ history) into the user message.

    Absent optional fields are left out entirely. ``previous_visits`` is
    expected newest first; only the first ``history_limit`` are included.
    """
    blocks: list[str] = ["\n".join(_patient_lines(patient))]

    current = ["CURRENT VISIT:"]
    if visit.chief_complaint:
        current.append(f"- Chief Complaint: {visit.chief_complaint}")
    if visit.diagnosis:
        current.append(f"- Diagnosis: {visit.diagnosis}")
    if visit.vitals is not None and not visit.vitals.is_empty():
        current.append(_vitals_line(visit.vitals))
    if visit.summary:
        current.append(f"- Summary: {visit.summary}")
    if visit.treatment_plan:
        current.append(f"- Treatment Plan: {visit.treatment_plan}")
    blocks.append("\n".join(current))

    if visit.note_content:
        note_lines = _note_sections(visit.note_content, section_limit)
        if note_lines:
            blocks.append("\n".join(note_lines))

    if visit.transcription:
        blocks.append(
            "TRANSCRIPTION EXCERPT:\n" + clip(visit.transcription, transcription_limit)
        )

    if previous_visits:
        blocks.append("\n".join(_previous_visit_lines(previous_visits, history_limit)))

    blocks.append(RISK_CONTEXT_INSTRUCTIONS)
    return "\n\n".join(blocks)
