import time

from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse

from api.schemas import (
    ChatRequest,
    ChatResponse,
    ClinicalInfoRequest,
    ExtractRequest,
    ManualRiskUpdate,
    NoteGenerateRequest,
    NoteSummaryRequest,
    NoteTypeItem,
    PatientChatRequest,
    PatientCreate,
    PatientRecord,
    RiskAnalyzeRequest,
    RiskHistoryItem,
    VisitRiskResponse,
)
from clinscribe.config.logger import configure_logging, get_logger
from clinscribe.config.settings import settings
from clinscribe.llm.text_generation import generate_text
from clinscribe.models.notes import ClinicalInformation
from clinscribe.models.risk import RiskAssessment
from clinscribe.models.visit import PatientData, VisitData
from clinscribe.prompts.notes import CLINICAL_ASSISTANT_PROMPT, NOTE_TEMPLATES
from clinscribe.runtime.streaming import stream_text_events
from clinscribe.services.clinical_notes import (
    extract_clinical_information,
    generate_clinical_note_summary,
    generate_structured_note,
)
from clinscribe.services.patient_chat import chat_about_patient
from clinscribe.services.risk_assessment import analyze_visit_risk
from clinscribe.services.structured_data import extract_structured_data
from clinscribe.utils.db import (
    create_patient,
    create_risk_history_entry,
    get_patient,
    get_previous_visits,
    get_risk_history,
    init_db,
    save_visit,
    update_patient_risk,
    update_visit_risk,
)

configure_logging()
logger = get_logger(__name__)

app = FastAPI(title="ClinScribe Clinical AI Service")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request, call_next):
    start = time.perf_counter()
    logger.info("[request.start] %s %s", request.method, request.url.path)
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - start) * 1000
    logger.info(
        "[request.end] %s %s status=%s elapsed=%.1fms",
        request.method,
        request.url.path,
        response.status_code,
        elapsed_ms,
    )
    return response


@app.on_event("startup")
async def startup():
    await init_db()


async def _require_patient(patient_id: int) -> dict:
    patient = await get_patient(patient_id)
    if patient is None:
        raise HTTPException(status_code=404, detail=f"Patient {patient_id} not found")
    return patient


def _patient_data(patient: dict) -> PatientData:
    return PatientData(
        name=patient.get("name") or "",
        age=patient.get("age"),
        gender=patient.get("gender"),
        diagnoses=patient.get("diagnoses") or [],
        medications=patient.get("medications") or [],
        allergies=patient.get("allergies") or [],
    )


def _visit_data(row: dict) -> VisitData:
    return VisitData(
        chief_complaint=row.get("chief_complaint"),
        diagnosis=row.get("diagnosis"),
        vitals=row.get("vitals"),
        summary=row.get("summary"),
        treatment_plan=row.get("treatment_plan"),
        note_content=row.get("note_content"),
        transcription=row.get("transcription"),
    )


def _patient_record(patient: dict) -> PatientRecord:
    return PatientRecord(
        **_patient_data(patient).model_dump(),
        id=patient["id"],
        risk_level=patient.get("risk_level"),
        risk_score=patient.get("risk_score"),
        risk_factors=patient.get("risk_factors"),
        risk_notes=patient.get("risk_notes"),
        created_at=patient.get("created_at"),
    )


@app.get("/api/health")
async def health():
    return {"ok": True}


# ── Pipelines ───────────────────────────────────────────────────────
@app.post("/api/risk/analyze", response_model=RiskAssessment)
async def analyze_risk(payload: RiskAnalyzeRequest):
    return await analyze_visit_risk(payload.visit, payload.patient, payload.previous_visits)


@app.post("/api/structured-data/extract")
async def extract_data(payload: ExtractRequest):
    data = await extract_structured_data(payload.note_content)
    return data.to_payload()


@app.get("/api/notes/templates", response_model=list[NoteTypeItem])
async def list_note_templates():
    return [
        NoteTypeItem(
            type=template.type,
            description=template.description,
            sections=template.section_keys,
        )
        for template in NOTE_TEMPLATES.values()
    ]


@app.post("/api/notes/generate")
async def generate_note(payload: NoteGenerateRequest):
    return await generate_structured_note(payload.transcription, payload.note_type)


@app.post("/api/notes/summary", response_model=ChatResponse)
async def summarize_note(payload: NoteSummaryRequest):
    try:
        content = await generate_clinical_note_summary(payload.transcription)
    except Exception as exc:
        raise HTTPException(status_code=502, detail=f"Text generation failed: {exc}") from exc
    return ChatResponse(content=content)


@app.post("/api/notes/clinical-info", response_model=ClinicalInformation)
async def clinical_info(payload: ClinicalInfoRequest):
    return await extract_clinical_information(payload.notes)


@app.post("/api/chat", response_model=ChatResponse)
async def chat(payload: ChatRequest):
    try:
        content = await generate_text(
            payload.messages,
            payload.system_prompt or CLINICAL_ASSISTANT_PROMPT,
            payload.temperature,
            payload.max_tokens,
        )
    except Exception as exc:
        raise HTTPException(status_code=502, detail=f"Text generation failed: {exc}") from exc
    return ChatResponse(content=content)


@app.post("/api/chat/stream")
async def chat_stream(payload: ChatRequest):
    return StreamingResponse(
        stream_text_events(
            payload.messages,
            payload.system_prompt or CLINICAL_ASSISTANT_PROMPT,
            payload.temperature,
            payload.max_tokens,
        ),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


# ── Patients, visits and risk history ───────────────────────────────
@app.post("/api/patients", response_model=PatientRecord, status_code=201)
async def add_patient(payload: PatientCreate):
    patient = await create_patient(
        payload.name,
        age=payload.age,
        gender=payload.gender,
        diagnoses=payload.diagnoses,
        medications=payload.medications,
        allergies=payload.allergies,
    )
    return _patient_record(patient)


@app.get("/api/patients/{patient_id}", response_model=PatientRecord)
async def read_patient(patient_id: int):
    return _patient_record(await _require_patient(patient_id))


@app.post("/api/patients/{patient_id}/visits", response_model=VisitRiskResponse, status_code=201)
async def record_visit(patient_id: int, visit: VisitData):
    patient = await _require_patient(patient_id)
    visit_id = await save_visit(patient_id, visit.model_dump(exclude_none=True))
    history = await get_previous_visits(
        patient_id, limit=settings.RISK_HISTORY_LIMIT, exclude_visit_id=visit_id
    )

    assessment = await analyze_visit_risk(
        visit, _patient_data(patient), [_visit_data(row) for row in history]
    )

    # Sequential writes; a failure part-way leaves earlier rows in place.
    await update_visit_risk(
        visit_id, assessment.risk_level, assessment.risk_score, assessment.risk_factors
    )
    await create_risk_history_entry(
        patient_id,
        visit_id,
        assessment.risk_level,
        assessment.risk_score,
        assessment.risk_factors,
        source="ai",
        notes=assessment.summary,
    )
    await update_patient_risk(
        patient_id,
        assessment.risk_level,
        assessment.risk_score,
        assessment.risk_factors,
        assessment.summary,
    )
    logger.info(
        "[visit] patient=%s visit=%s risk=%s/%s quality=%s",
        patient_id,
        visit_id,
        assessment.risk_level,
        assessment.risk_score,
        assessment.assessment_quality,
    )
    return VisitRiskResponse(visit_id=visit_id, assessment=assessment)


@app.put("/api/patients/{patient_id}/risk", response_model=PatientRecord)
async def set_patient_risk(patient_id: int, payload: ManualRiskUpdate):
    await _require_patient(patient_id)
    updated = await update_patient_risk(
        patient_id, payload.risk_level, payload.risk_score, payload.risk_factors, payload.notes
    )
    await create_risk_history_entry(
        patient_id,
        None,
        payload.risk_level,
        payload.risk_score,
        payload.risk_factors,
        source="manual",
        notes=payload.notes,
    )
    return _patient_record(updated)


@app.get("/api/patients/{patient_id}/risk-history", response_model=list[RiskHistoryItem])
async def read_risk_history(patient_id: int):
    await _require_patient(patient_id)
    return [RiskHistoryItem(**row) for row in await get_risk_history(patient_id)]


@app.post("/api/patients/{patient_id}/chat", response_model=ChatResponse)
async def patient_chat(patient_id: int, payload: PatientChatRequest):
    patient = await _require_patient(patient_id)
    rows = await get_previous_visits(patient_id, limit=settings.PATIENT_CHAT_VISIT_LIMIT)
    try:
        content = await chat_about_patient(
            _patient_data(patient),
            [_visit_data(row) for row in rows],
            payload.messages,
            [row.get("created_at") for row in rows],
        )
    except Exception as exc:
        raise HTTPException(status_code=502, detail=f"Text generation failed: {exc}") from exc
    return ChatResponse(content=content)
