from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.deps import require_permission
from app.models.user import User
from app.schemas.audit_log import AuditLogOut
from app.services.audit import list_events

router = APIRouter(prefix="/audit", tags=["audit"])


@router.get("", response_model=list[AuditLogOut])
def list_audit(
    db: Session = Depends(get_db),
    _user: User = Depends(require_permission("view_audit_logs")),
    action: str | None = Query(default=None),
    entity_type: str | None = Query(default=None),
    actor_email: str | None = Query(default=None),
    date_from: datetime | None = Query(default=None),
    date_to: datetime | None = Query(default=None),
    limit: int = Query(default=50, ge=1, le=200),
):
    return list_events(
        db,
        action=action,
        entity_type=entity_type,
        actor_email=actor_email,
        date_from=date_from,
        date_to=date_to,
        limit=limit,
    )


@router.get("/patients/{patient_id}", response_model=list[AuditLogOut])
def patient_audit(
    patient_id: int,
    db: Session = Depends(get_db),
    _user: User = Depends(require_permission("view_audit_logs")),
    action: str | None = Query(default=None),
    limit: int = Query(default=50, ge=1, le=200),
):
    return list_events(db, patient_id=patient_id, action=action, limit=limit)
