"""Note templates and prompts for clinical note generation."""

from __future__ import annotations

import json

from clinscribe.models.notes import NoteSection, NoteTemplate

NOT_DOCUMENTED = "Not documented"
CODE_SECTION_KEYS = frozenset({"icd10", "cpt"})

CLINICAL_SUMMARY_PROMPT = """You are a clinical documentation specialist. Your task is to analyze transcribed clinical notes and provide a structured, professional summary.
Focus on:
- Chief Complaint
- History of Present Illness
- Physical Examination Findings
- Assessment and Plan
- Return instructions and follow-up care

Format the response clearly with section headers."""

CLINICAL_ASSISTANT_PROMPT = """You are an AI Clinical Assistant helping a healthcare provider. You assist with:
- Answering questions about patient history and clinical information
- Helping with clinical decision-making
- Suggesting follow-up care based on patient conditions
- Providing medical information and best practices

Be professional, accurate, and always recommend verifying critical information with the patient or other medical sources.
When you don't know something or it requires external verification, clearly state that.
Always prioritize patient safety and encourage the clinician to use their clinical judgment."""

_NOTE_PROMPT_TEMPLATE = """You are a clinical documentation specialist. Generate a structured {title} from the transcribed patient conversation.

IMPORTANT: You MUST return a JSON object with ALL these exact keys (do not skip any):
{shape}

Guidelines:
- {guideline}
- If information is not available for a section, write "Not documented"
- Return ONLY valid JSON, no additional text, markdown, or code blocks
- Ensure all string values are properly escaped for JSON"""

_ICD10 = NoteSection(
    key="icd10",
    label="ICD-10 Codes",
    description="ICD-10 diagnosis codes (format: 'Code - Description' on separate lines)",
    placeholder="Code - Description (one per line)",
)
_CPT = NoteSection(
    key="cpt",
    label="CPT Codes",
    description="CPT procedure codes (format: 'Code - Description' on separate lines)",
    placeholder="Code - Description (one per line)",
)


def _section(key: str, label: str, description: str, placeholder: str) -> NoteSection:
    return NoteSection(key=key, label=label, description=description, placeholder=placeholder)


def _system_prompt(title: str, guideline: str, sections: list[NoteSection]) -> str:
    shape = json.dumps({s.key: s.description for s in sections}, indent=2, ensure_ascii=False)
    return _NOTE_PROMPT_TEMPLATE.format(title=title, shape=shape, guideline=guideline)


def _template(note_type, description, title, guideline, sections) -> NoteTemplate:
    sections = [*sections, _ICD10, _CPT]
    return NoteTemplate(
        type=note_type,
        description=description,
        sections=sections,
        system_prompt=_system_prompt(title, guideline, sections),
    )


NOTE_TEMPLATES: dict[str, NoteTemplate] = {
    "SOAP": _template(
        "SOAP",
        "Standard SOAP note format",
        "SOAP note",
        "Be thorough and professional",
        [
            _section("subjective", "Subjective",
                     "Patient's reported symptoms, history, and concerns",
                     "What the patient tells you about their condition..."),
            _section("objective", "Objective",
                     "Clinical findings, vital signs, physical exam findings, test results",
                     "Vital signs, physical examination findings, lab results..."),
            _section("assessment", "Assessment",
                     "Clinical impression, diagnosis, differential diagnoses",
                     "Clinical impression and diagnoses..."),
            _section("plan", "Plan",
                     "Treatment plan, medications, follow-up instructions, referrals",
                     "Treatment recommendations and follow-up plan..."),
        ],
    ),
    "Progress": _template(
        "Progress",
        "Progress/Update note format",
        "Progress note",
        "Be concise and focus on changes from previous visits",
        [
            _section("interval_history", "Interval History",
                     "Events and changes since last visit",
                     "What has changed since the last appointment..."),
            _section("current_status", "Current Status",
                     "Current symptoms, vital signs, and clinical findings",
                     "Current clinical status and findings..."),
            _section("response_to_treatment", "Response to Treatment",
                     "How patient is responding to ongoing treatment",
                     "Treatment efficacy and patient response..."),
            _section("assessment_update", "Assessment Update",
                     "Updated clinical impression",
                     "Updated assessment and diagnosis..."),
            _section("plan_modification", "Plan Modification",
                     "Changes to the treatment plan",
                     "Any changes to medications, dosages, or follow-up..."),
        ],
    ),
    "Consultation": _template(
        "Consultation",
        "Consultation note format",
        "Consultation note",
        "Be thorough and provide clear recommendations",
        [
            _section("reason_for_consultation", "Reason for Consultation",
                     "Why the patient was referred",
                     "Chief complaint and reason for this consultation..."),
            _section("history_of_present_illness", "History of Present Illness",
                     "Detailed history related to the consultation",
                     "Detailed history related to the consultation..."),
            _section("relevant_past_history", "Relevant Past History",
                     "Relevant medical and family history",
                     "Past medical history relevant to consultation..."),
            _section("physical_examination", "Physical Examination",
                     "Focused physical examination findings",
                     "Physical examination findings..."),
            _section("findings_and_impression", "Findings and Impression",
                     "Consultant findings and clinical impression",
                     "Consultant impression and findings..."),
            _section("recommendations", "Recommendations",
                     "Treatment recommendations and follow-up plan",
                     "Treatment recommendations and follow-up plan..."),
        ],
    ),
    "H&P": _template(
        "H&P",
        "History and Physical Examination format",
        "History and Physical (H&P) note",
        "Be thorough and complete, as this is a comprehensive initial evaluation",
        [
            _section("chief_complaint", "Chief Complaint",
                     "Primary reason for the visit",
                     "Chief complaint in patient's own words..."),
            _section("history_of_present_illness", "History of Present Illness",
                     "Detailed story of current illness",
                     "Chronological development of current symptoms..."),
            _section("past_medical_history", "Past Medical History",
                     "Significant past medical conditions",
                     "Previous diagnoses, surgeries, hospitalizations..."),
            _section("medications_and_allergies", "Medications & Allergies",
                     "Current medications and known allergies",
                     "Medications, dosages, and documented allergies..."),
            _section("family_history", "Family History",
                     "Relevant family medical history",
                     "Significant family medical history..."),
            _section("social_history", "Social History",
                     "Lifestyle and social factors",
                     "Occupation, tobacco/alcohol use, living situation..."),
            _section("review_of_systems", "Review of Systems",
                     "Systematic review of body systems",
                     "Symptoms by organ system..."),
            _section("physical_examination", "Physical Examination",
                     "Comprehensive physical exam findings",
                     "Vital signs, general appearance, and organ systems..."),
            _section("assessment", "Assessment",
                     "Clinical assessment and diagnoses",
                     "Clinical impression and diagnoses..."),
            _section("plan", "Plan",
                     "Initial treatment and management plan",
                     "Initial treatment plan and follow-up..."),
        ],
    ),
}


def get_note_template(note_type: str) -> NoteTemplate:
    """Template for ``note_type``; unknown types fall back to SOAP."""
    return NOTE_TEMPLATES.get(note_type) or NOTE_TEMPLATES["SOAP"]


def available_note_types() -> list[tuple[str, str]]:
    return [(template.type, template.description) for template in NOTE_TEMPLATES.values()]


def build_note_context(transcription: str, note_type: str) -> str:
    return (
        f"Generate a structured {note_type} note from this transcribed patient "
        f"conversation:\n\n{transcription}"
    )


def build_summary_context(transcription: str) -> str:
    return (
        "Please create a structured clinical note summary from the following "
        f"transcribed text:\n\n{transcription}"
    )
