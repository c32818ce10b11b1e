import json
import os
from typing import Any

import aiosqlite

from clinscribe.config.settings import settings


def _db_path() -> str:
    return settings.DB_PATH


def _dumps(value: Any) -> str:
    return json.dumps(value if value is not None else [], ensure_ascii=False)


def _decode(row: aiosqlite.Row | None, json_fields: tuple[str, ...]) -> dict | None:
    if row is None:
        return None
    record = dict(row)
    for field in json_fields:
        raw = record.get(field)
        record[field] = json.loads(raw) if raw else None
    return record


_PATIENT_JSON = ("diagnoses", "medications", "allergies", "risk_factors")
_VISIT_JSON = ("vitals", "note_content", "risk_factors")
_HISTORY_JSON = ("risk_factors",)


async def init_db():
    directory = os.path.dirname(_db_path())
    if directory:
        os.makedirs(directory, exist_ok=True)
    async with aiosqlite.connect(_db_path()) as db:
        await db.execute("""
            CREATE TABLE IF NOT EXISTS patients (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                age INTEGER,
                gender TEXT,
                diagnoses TEXT,
                medications TEXT,
                allergies TEXT,
                risk_level TEXT,
                risk_score INTEGER,
                risk_factors TEXT,
                risk_notes TEXT,
                created_at TEXT DEFAULT (datetime('now'))
            )
        """)
        await db.execute("""
            CREATE TABLE IF NOT EXISTS visits (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                patient_id INTEGER NOT NULL,
                chief_complaint TEXT,
                diagnosis TEXT,
                vitals TEXT,
                summary TEXT,
                treatment_plan TEXT,
                note_content TEXT,
                transcription TEXT,
                risk_level TEXT,
                risk_score INTEGER,
                risk_factors TEXT,
                created_at TEXT DEFAULT (datetime('now')),
                FOREIGN KEY (patient_id) REFERENCES patients(id)
            )
        """)
        await db.execute("""
            CREATE TABLE IF NOT EXISTS risk_history (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                patient_id INTEGER NOT NULL,
                visit_id INTEGER,
                risk_level TEXT NOT NULL,
                risk_score INTEGER NOT NULL,
                risk_factors TEXT,
                source TEXT NOT NULL CHECK (source IN ('ai', 'manual')),
                notes TEXT,
                created_at TEXT DEFAULT (datetime('now')),
                FOREIGN KEY (patient_id) REFERENCES patients(id),
                FOREIGN KEY (visit_id) REFERENCES visits(id)
            )
        """)
        await db.commit()


async def create_patient(
    name: str,
    age: int | None = None,
    gender: str | None = None,
    diagnoses: list[str] | None = None,
    medications: list[str] | None = None,
    allergies: list[str] | None = None,
) -> dict:
    async with aiosqlite.connect(_db_path()) as db:
        db.row_factory = aiosqlite.Row
        cursor = await db.execute(
            "INSERT INTO patients (name, age, gender, diagnoses, medications, allergies) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            (name, age, gender, _dumps(diagnoses), _dumps(medications), _dumps(allergies)),
        )
        await db.commit()
        cursor = await db.execute("SELECT * FROM patients WHERE id = ?", (cursor.lastrowid,))
        return _decode(await cursor.fetchone(), _PATIENT_JSON)


async def get_patient(patient_id: int) -> dict | None:
    async with aiosqlite.connect(_db_path()) as db:
        db.row_factory = aiosqlite.Row
        cursor = await db.execute("SELECT * FROM patients WHERE id = ?", (patient_id,))
        return _decode(await cursor.fetchone(), _PATIENT_JSON)


async def save_visit(patient_id: int, visit: dict) -> int:
    """Store one visit (snake_case VisitData dump) and return its id."""
    async with aiosqlite.connect(_db_path()) as db:
        cursor = await db.execute(
            "INSERT INTO visits (patient_id, chief_complaint, diagnosis, vitals, summary, "
            "treatment_plan, note_content, transcription) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
            (
                patient_id,
                visit.get("chief_complaint"),
                visit.get("diagnosis"),
                json.dumps(visit.get("vitals"), ensure_ascii=False) if visit.get("vitals") else None,
                visit.get("summary"),
                visit.get("treatment_plan"),
                json.dumps(visit.get("note_content"), ensure_ascii=False) if visit.get("note_content") else None,
                visit.get("transcription"),
            ),
        )
        await db.commit()
        return cursor.lastrowid


async def get_previous_visits(
    patient_id: int, limit: int = 3, exclude_visit_id: int | None = None
) -> list[dict]:
    """Newest first."""
    async with aiosqlite.connect(_db_path()) as db:
        db.row_factory = aiosqlite.Row
        cursor = await db.execute(
            "SELECT * FROM visits WHERE patient_id = ? AND id != ? "
            "ORDER BY created_at DESC, id DESC LIMIT ?",
            (patient_id, exclude_visit_id if exclude_visit_id is not None else -1, limit),
        )
        return [_decode(r, _VISIT_JSON) for r in await cursor.fetchall()]


async def update_visit_risk(
    visit_id: int, risk_level: str, risk_score: int, risk_factors: list[str]
) -> None:
    async with aiosqlite.connect(_db_path()) as db:
        await db.execute(
            "UPDATE visits SET risk_level = ?, risk_score = ?, risk_factors = ? WHERE id = ?",
            (risk_level, risk_score, _dumps(risk_factors), visit_id),
        )
        await db.commit()


async def update_patient_risk(
    patient_id: int,
    risk_level: str,
    risk_score: int,
    risk_factors: list[str],
    risk_notes: str = "",
) -> dict | None:
    async with aiosqlite.connect(_db_path()) as db:
        db.row_factory = aiosqlite.Row
        await db.execute(
            "UPDATE patients SET risk_level = ?, risk_score = ?, risk_factors = ?, risk_notes = ? "
            "WHERE id = ?",
            (risk_level, risk_score, _dumps(risk_factors), risk_notes, patient_id),
        )
        await db.commit()
        cursor = await db.execute("SELECT * FROM patients WHERE id = ?", (patient_id,))
        return _decode(await cursor.fetchone(), _PATIENT_JSON)


async def create_risk_history_entry(
    patient_id: int,
    visit_id: int | None,
    risk_level: str,
    risk_score: int,
    risk_factors: list[str],
    source: str,
    notes: str = "",
) -> int:
    async with aiosqlite.connect(_db_path()) as db:
        cursor = await db.execute(
            "INSERT INTO risk_history (patient_id, visit_id, risk_level, risk_score, "
            "risk_factors, source, notes) VALUES (?, ?, ?, ?, ?, ?, ?)",
            (patient_id, visit_id, risk_level, risk_score, _dumps(risk_factors), source, notes),
        )
        await db.commit()
        return cursor.lastrowid


async def get_risk_history(patient_id: int) -> list[dict]:
    """Newest first."""
    async with aiosqlite.connect(_db_path()) as db:
        db.row_factory = aiosqlite.Row
        cursor = await db.execute(
            "SELECT * FROM risk_history WHERE patient_id = ? ORDER BY created_at DESC, id DESC",
            (patient_id,),
        )
        return [_decode(r, _HISTORY_JSON) for r in await cursor.fetchall()]
