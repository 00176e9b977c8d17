from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.deps import get_current_user, require_permission
from app.models.treatment import Treatment
from app.models.user import User
from app.schemas.treatment import TreatmentCreate, TreatmentOut, TreatmentUpdate
from app.services.audit import log_event, snapshot_model

router = APIRouter(prefix="/treatments", tags=["treatments"])


def get_treatment_or_404(db: Session, treatment_id: int) -> Treatment:
    treatment = db.get(Treatment, treatment_id)
    if not treatment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Treatment not found")
    return treatment


@router.get("", response_model=list[TreatmentOut])
def list_treatments(
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
    include_inactive: bool = Query(default=False),
    category: str | None = Query(default=None),
):
    stmt = select(Treatment).order_by(Treatment.name)
    if not include_inactive:
        stmt = stmt.where(Treatment.is_active.is_(True))
    if category:
        stmt = stmt.where(Treatment.category == category)
    return list(db.scalars(stmt))


@router.post("", response_model=TreatmentOut, status_code=status.HTTP_201_CREATED)
def create_treatment(
    payload: TreatmentCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("treatments")),
):
    treatment = Treatment(**payload.model_dump())
    treatment.stamp(user)
    db.add(treatment)
    db.flush()
    log_event(
        db,
        actor=user,
        action="treatment.created",
        entity_type="treatment",
        entity_id=str(treatment.id),
        after_obj=treatment,
    )
    db.commit()
    db.refresh(treatment)
    return treatment


@router.get("/{treatment_id}", response_model=TreatmentOut)
def get_treatment(
    treatment_id: int,
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
):
    return get_treatment_or_404(db, treatment_id)


@router.patch("/{treatment_id}", response_model=TreatmentOut)
def update_treatment(
    treatment_id: int,
    payload: TreatmentUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("treatments")),
):
    treatment = get_treatment_or_404(db, treatment_id)
    before_data = snapshot_model(treatment)
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(treatment, field, value)
    treatment.stamp(user)
    db.add(treatment)
    log_event(
        db,
        actor=user,
        action="treatment.updated",
        entity_type="treatment",
        entity_id=str(treatment.id),
        before_data=before_data,
        after_obj=treatment,
    )
    db.commit()
    db.refresh(treatment)
    return treatment
