from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from app.core.settings import settings
from app.db.session import get_db
from app.deps import get_request_id, require_permission
from app.models.user import User
from app.routers.patients import get_patient_or_404
from app.schemas.odontogram import ChartViewOut, OdontogramOut, ToothRecordOut, ToothUpsert
from app.services.odontogram import is_valid_tooth
from app.services.odontogram_chart import ChartView, build_chart
from app.services.odontogram_drawing import render_chart_pdf, render_chart_svg
from app.services.odontogram_store import list_tooth_rows, upsert_tooth
from app.services.permissions import ODONTOGRAM_READ_PERMISSIONS, has_permission

router = APIRouter(prefix="/patients/{patient_id}", tags=["odontogram"])

require_odontogram_read = require_permission(*ODONTOGRAM_READ_PERMISSIONS)


def _chart_for(
    db: Session,
    patient_id: int,
    user: User,
    *,
    selected: int | None,
    read_only: bool,
) -> tuple[list, ChartView]:
    rows = list_tooth_rows(db, patient_id)
    # Users who cannot edit teeth always get a locked chart.
    locked = read_only or not has_permission(user.role, "odontogram")
    view = build_chart(
        {row.tooth_number: row for row in rows},
        selected_tooth=selected,
        read_only=locked,
    )
    return rows, view


@router.get("/odontogram", response_model=OdontogramOut)
def get_odontogram(
    patient_id: int,
    selected: int | None = Query(default=None),
    read_only: bool = Query(default=False),
    db: Session = Depends(get_db),
    user: User = Depends(require_odontogram_read),
):
    get_patient_or_404(db, patient_id)
    rows, view = _chart_for(db, patient_id, user, selected=selected, read_only=read_only)
    return OdontogramOut(
        patient_id=patient_id,
        teeth={row.tooth_number: ToothRecordOut.model_validate(row) for row in rows},
        chart=ChartViewOut.model_validate(view),
    )


@router.get("/odontogram.svg")
def get_odontogram_svg(
    patient_id: int,
    selected: int | None = Query(default=None),
    db: Session = Depends(get_db),
    user: User = Depends(require_odontogram_read),
):
    get_patient_or_404(db, patient_id)
    _, view = _chart_for(db, patient_id, user, selected=selected, read_only=True)
    return Response(content=render_chart_svg(view), media_type="image/svg+xml")


@router.get("/odontogram.pdf")
def get_odontogram_pdf(
    patient_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_odontogram_read),
):
    if not settings.feature_odontogram_pdf:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Odontogram PDF disabled")
    patient = get_patient_or_404(db, patient_id)
    _, view = _chart_for(db, patient_id, user, selected=None, read_only=True)
    pdf_bytes = render_chart_pdf(view, patient_name=patient.full_name)
    headers = {"Content-Disposition": f'attachment; filename="odontograma-{patient_id}.pdf"'}
    return Response(content=pdf_bytes, media_type="application/pdf", headers=headers)


@router.put("/odontogram/{tooth_number}", response_model=ToothRecordOut)
def put_tooth(
    patient_id: int,
    tooth_number: int,
    payload: ToothUpsert,
    response: Response,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("odontogram")),
    request_id: str | None = Depends(get_request_id),
):
    get_patient_or_404(db, patient_id)
    if not is_valid_tooth(tooth_number):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Invalid FDI tooth number: {tooth_number}",
        )
    try:
        row, created = upsert_tooth(
            db,
            patient_id=patient_id,
            tooth_number=tooth_number,
            actor=user,
            condition=payload.condition,
            surfaces=payload.surfaces,
            notes=payload.notes,
            treatment_needed=payload.treatment_needed,
            treatment_id=payload.treatment_id,
            request_id=request_id,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    if created:
        response.status_code = status.HTTP_201_CREATED
    return row
