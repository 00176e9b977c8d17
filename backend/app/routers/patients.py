from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.deps import get_request_id, require_permission
from app.models.patient import Patient
from app.models.user import User
from app.schemas.patient import PatientCreate, PatientOut, PatientUpdate
from app.services.audit import log_event, snapshot_model

router = APIRouter(prefix="/patients", tags=["patients"])

can_view_patients = require_permission("patients", "view_patients")
can_edit_patients = require_permission("patients")


def get_patient_or_404(db: Session, patient_id: int) -> Patient:
    patient = db.get(Patient, patient_id)
    if not patient or patient.is_deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Patient not found")
    return patient


@router.get("", response_model=list[PatientOut])
def list_patients(
    db: Session = Depends(get_db),
    _user: User = Depends(can_view_patients),
    q: str | None = Query(default=None, description="Name, document or email fragment"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
):
    stmt = select(Patient).where(Patient.deleted_at.is_(None))
    if q and q.strip():
        like = f"%{q.strip()}%"
        stmt = stmt.where(
            or_(
                Patient.first_name.ilike(like),
                Patient.last_name.ilike(like),
                Patient.document_number.ilike(like),
                Patient.email.ilike(like),
            )
        )
    stmt = stmt.order_by(Patient.last_name, Patient.first_name, Patient.id).offset(offset).limit(limit)
    return list(db.scalars(stmt))


@router.post("", response_model=PatientOut, status_code=status.HTTP_201_CREATED)
def create_patient(
    payload: PatientCreate,
    db: Session = Depends(get_db),
    user: User = Depends(can_edit_patients),
    request_id: str | None = Depends(get_request_id),
):
    patient = Patient(**payload.model_dump())
    patient.stamp(user)
    db.add(patient)
    db.flush()
    log_event(
        db,
        actor=user,
        action="patient.created",
        entity_type="patient",
        entity_id=str(patient.id),
        patient_id=patient.id,
        after_data=payload.model_dump(mode="json"),
        request_id=request_id,
    )
    db.commit()
    db.refresh(patient)
    return patient


@router.get("/{patient_id}", response_model=PatientOut)
def get_patient(
    patient_id: int,
    db: Session = Depends(get_db),
    _user: User = Depends(can_view_patients),
):
    return get_patient_or_404(db, patient_id)


@router.patch("/{patient_id}", response_model=PatientOut)
def update_patient(
    patient_id: int,
    payload: PatientUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(can_edit_patients),
    request_id: str | None = Depends(get_request_id),
):
    patient = get_patient_or_404(db, patient_id)
    before_data = snapshot_model(patient)
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(patient, field, value)
    patient.stamp(user)
    db.flush()
    log_event(
        db,
        actor=user,
        action="patient.updated",
        entity_type="patient",
        entity_id=str(patient.id),
        patient_id=patient.id,
        before_data=before_data,
        after_obj=patient,
        request_id=request_id,
    )
    db.commit()
    db.refresh(patient)
    return patient


@router.delete("/{patient_id}", status_code=status.HTTP_204_NO_CONTENT)
def archive_patient(
    patient_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(can_edit_patients),
    request_id: str | None = Depends(get_request_id),
):
    patient = get_patient_or_404(db, patient_id)
    patient.archive()
    patient.stamp(user)
    log_event(
        db,
        actor=user,
        action="patient.archived",
        entity_type="patient",
        entity_id=str(patient.id),
        patient_id=patient.id,
        request_id=request_id,
    )
    db.commit()
