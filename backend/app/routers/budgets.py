from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.deps import get_request_id, require_permission
from app.models.budget import Budget
from app.models.user import User
from app.routers.patients import get_patient_or_404
from app.schemas.budget import (
    BudgetCreate,
    BudgetLineOut,
    BudgetOut,
    BudgetPreviewOut,
    BudgetPreviewRequest,
    BudgetUpdate,
)
from app.services.audit import log_event
from app.services.budget_pdf import build_budget_pdf
from app.services.budgets import BudgetLine, compute_totals, create_budget, preview_from_odontogram

patient_router = APIRouter(prefix="/patients/{patient_id}/budgets", tags=["budgets"])
router = APIRouter(prefix="/budgets", tags=["budgets"])


def get_budget_or_404(db: Session, budget_id: int) -> Budget:
    budget = db.get(Budget, budget_id)
    if not budget or budget.patient.is_deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Budget not found")
    return budget


@patient_router.post("/preview", response_model=BudgetPreviewOut)
def preview_budget(
    patient_id: int,
    payload: BudgetPreviewRequest | None = None,
    db: Session = Depends(get_db),
    _user: User = Depends(require_permission("budgets")),
):
    get_patient_or_404(db, patient_id)
    discount_percent = payload.discount_percent if payload else 0
    lines = preview_from_odontogram(db, patient_id)
    totals = compute_totals(lines, discount_percent)
    return BudgetPreviewOut(
        items=[BudgetLineOut.model_validate(line) for line in lines],
        subtotal_cents=totals.subtotal_cents,
        discount_percent=totals.discount_percent,
        discount_amount_cents=totals.discount_amount_cents,
        total_cents=totals.total_cents,
    )


@patient_router.post("", response_model=BudgetOut, status_code=status.HTTP_201_CREATED)
def save_budget(
    patient_id: int,
    payload: BudgetCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("budgets")),
    request_id: str | None = Depends(get_request_id),
):
    get_patient_or_404(db, patient_id)
    lines = [BudgetLine(**item.model_dump()) for item in payload.items]
    try:
        return create_budget(
            db,
            patient_id=patient_id,
            lines=lines,
            actor=user,
            discount_percent=payload.discount_percent,
            notes=payload.notes,
            request_id=request_id,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@patient_router.get("", response_model=list[BudgetOut])
def list_budgets(
    patient_id: int,
    db: Session = Depends(get_db),
    _user: User = Depends(require_permission("budgets")),
):
    get_patient_or_404(db, patient_id)
    stmt = select(Budget).where(Budget.patient_id == patient_id).order_by(Budget.created_at.desc(), Budget.id.desc())
    return list(db.scalars(stmt).unique())


@router.get("/{budget_id}", response_model=BudgetOut)
def get_budget(
    budget_id: int,
    db: Session = Depends(get_db),
    _user: User = Depends(require_permission("budgets")),
):
    return get_budget_or_404(db, budget_id)


@router.patch("/{budget_id}", response_model=BudgetOut)
def update_budget(
    budget_id: int,
    payload: BudgetUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("budgets")),
    request_id: str | None = Depends(get_request_id),
):
    budget = get_budget_or_404(db, budget_id)
    before_data = {"status": budget.status.value, "notes": budget.notes}
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(budget, field, value)
    budget.stamp(user)
    db.add(budget)
    log_event(
        db,
        actor=user,
        action="budget.updated",
        entity_type="budget",
        entity_id=str(budget.id),
        patient_id=budget.patient_id,
        before_data=before_data,
        after_data={"status": budget.status.value, "notes": budget.notes},
        request_id=request_id,
    )
    db.commit()
    db.refresh(budget)
    return budget


@router.get("/{budget_id}/pdf")
def get_budget_pdf(
    budget_id: int,
    db: Session = Depends(get_db),
    _user: User = Depends(require_permission("budgets")),
):
    budget = get_budget_or_404(db, budget_id)
    pdf_bytes = build_budget_pdf(budget)
    headers = {"Content-Disposition": f'attachment; filename="presupuesto-{budget.id}.pdf"'}
    return Response(content=pdf_bytes, media_type="application/pdf", headers=headers)
