from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.odontogram import OdontogramTooth
from app.models.treatment import Treatment
from app.models.user import User
from app.services.audit import log_event
from app.services.odontogram import (
    ToothRecord,
    coerce_teeth,
    is_valid_tooth,
    normalize_surfaces,
    parse_condition,
)

logger = logging.getLogger("dental_clinic.odontogram")


def list_tooth_rows(db: Session, patient_id: int) -> list[OdontogramTooth]:
    return list(
        db.scalars(
            select(OdontogramTooth)
            .where(OdontogramTooth.patient_id == patient_id)
            .order_by(OdontogramTooth.tooth_number)
        ).unique()
    )


def load_records(db: Session, patient_id: int) -> dict[int, ToothRecord]:
    return coerce_teeth({row.tooth_number: row for row in list_tooth_rows(db, patient_id)})


def _tooth_snapshot(row: OdontogramTooth | None) -> dict[str, Any] | None:
    if row is None:
        return None
    return {
        "tooth_number": row.tooth_number,
        "condition": row.condition.value,
        "surfaces": dict(row.surfaces or {}),
        "notes": row.notes,
        "treatment_needed": row.treatment_needed,
        "treatment_id": row.treatment_id,
    }


def upsert_tooth(
    db: Session,
    *,
    patient_id: int,
    tooth_number: int,
    actor: User,
    condition: Any = "healthy",
    surfaces: Any = None,
    notes: str | None = None,
    treatment_needed: str | None = None,
    treatment_id: int | None = None,
    request_id: str | None = None,
) -> tuple[OdontogramTooth, bool]:
    """Insert or replace the record of one tooth; returns (row, created)."""
    if not is_valid_tooth(tooth_number):
        raise ValueError(f"Invalid FDI tooth number: {tooth_number}")
    parsed = parse_condition(condition)
    if parsed is None:
        raise ValueError(f"Unknown tooth condition: {condition}")
    if treatment_id is not None:
        treatment = db.get(Treatment, treatment_id)
        if not treatment or not treatment.is_active:
            raise ValueError("Treatment not found or inactive")

    row = db.scalar(
        select(OdontogramTooth).where(
            OdontogramTooth.patient_id == patient_id,
            OdontogramTooth.tooth_number == tooth_number,
        )
    )
    before = _tooth_snapshot(row)
    created = row is None
    if row is None:
        row = OdontogramTooth(
            patient_id=patient_id,
            tooth_number=tooth_number,
        )
    row.condition = parsed
    row.surfaces = {surface.value: finding for surface, finding in normalize_surfaces(surfaces).items()}
    row.notes = notes or None
    row.treatment_needed = treatment_needed or None
    row.treatment_id = treatment_id
    row.stamp(actor)
    db.add(row)
    db.flush()
    log_event(
        db,
        actor=actor,
        action="odontogram.tooth.created" if created else "odontogram.tooth.updated",
        entity_type="odontogram",
        entity_id=f"{patient_id}:{tooth_number}",
        patient_id=patient_id,
        before_data=before,
        after_data=_tooth_snapshot(row),
        request_id=request_id,
    )
    db.commit()
    db.refresh(row)
    logger.info(
        "Tooth %s saved for patient %s (condition=%s, created=%s)",
        tooth_number,
        patient_id,
        parsed.value,
        created,
    )
    return row, created
