from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Mapping

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.budget import Budget, BudgetItem, BudgetStatus
from app.models.treatment import Treatment
from app.models.user import User
from app.services.audit import log_event
from app.services.odontogram import ToothCondition, ToothRecord, is_valid_tooth
from app.services.odontogram_store import load_records

logger = logging.getLogger("dental_clinic.budgets")


@dataclass
class BudgetLine:
    description: str
    unit_price_cents: int
    quantity: int = 1
    treatment_id: int | None = None
    tooth_number: int | None = None

    @property
    def total_cents(self) -> int:
        return max(self.quantity, 0) * self.unit_price_cents


@dataclass(frozen=True)
class BudgetTotals:
    subtotal_cents: int
    discount_percent: int
    discount_amount_cents: int
    total_cents: int


def compute_totals(lines: Iterable[BudgetLine], discount_percent: int = 0) -> BudgetTotals:
    if discount_percent < 0 or discount_percent > 100:
        raise ValueError("discount_percent must be between 0 and 100")
    subtotal = sum(line.total_cents for line in lines)
    # Half-up rounding to whole cents.
    discount = (subtotal * discount_percent + 50) // 100
    return BudgetTotals(
        subtotal_cents=subtotal,
        discount_percent=discount_percent,
        discount_amount_cents=discount,
        total_cents=subtotal - discount,
    )


def lines_from_odontogram(
    records: Mapping[int, ToothRecord],
    treatments: Mapping[int, Treatment],
) -> list[BudgetLine]:
    """One line per tooth that needs work and points at an active treatment."""
    lines: list[BudgetLine] = []
    for tooth_number in sorted(records):
        record = records[tooth_number]
        if record.treatment_id is None or record.condition == ToothCondition.healthy:
            continue
        treatment = treatments.get(record.treatment_id)
        if treatment is None or not treatment.is_active:
            continue
        lines.append(
            BudgetLine(
                description=f"{treatment.name} - Diente {tooth_number}",
                unit_price_cents=treatment.base_price_cents,
                treatment_id=treatment.id,
                tooth_number=tooth_number,
            )
        )
    return lines


def preview_from_odontogram(db: Session, patient_id: int) -> list[BudgetLine]:
    records = load_records(db, patient_id)
    treatment_ids = {record.treatment_id for record in records.values() if record.treatment_id is not None}
    treatments: dict[int, Treatment] = {}
    if treatment_ids:
        treatments = {
            treatment.id: treatment
            for treatment in db.scalars(select(Treatment).where(Treatment.id.in_(treatment_ids))).unique()
        }
    return lines_from_odontogram(records, treatments)


def _check_lines(db: Session, lines: list[BudgetLine]) -> None:
    for line in lines:
        if line.tooth_number is not None and not is_valid_tooth(line.tooth_number):
            raise ValueError(f"Invalid FDI tooth number: {line.tooth_number}")
    treatment_ids = {line.treatment_id for line in lines if line.treatment_id is not None}
    if not treatment_ids:
        return
    active_ids = set(
        db.scalars(
            select(Treatment.id).where(Treatment.id.in_(treatment_ids), Treatment.is_active.is_(True))
        )
    )
    missing = sorted(treatment_ids - active_ids)
    if missing:
        raise ValueError(f"Treatment not found or inactive: {missing[0]}")


def create_budget(
    db: Session,
    *,
    patient_id: int,
    lines: list[BudgetLine],
    actor: User,
    discount_percent: int = 0,
    notes: str | None = None,
    request_id: str | None = None,
) -> Budget:
    if not lines:
        raise ValueError("A budget needs at least one item")
    _check_lines(db, lines)
    totals = compute_totals(lines, discount_percent)
    budget = Budget(
        patient_id=patient_id,
        subtotal_cents=totals.subtotal_cents,
        discount_percent=totals.discount_percent,
        discount_amount_cents=totals.discount_amount_cents,
        total_cents=totals.total_cents,
        status=BudgetStatus.pending,
        notes=notes,
    )
    budget.stamp(actor)
    for index, line in enumerate(lines, start=1):
        budget.items.append(
            BudgetItem(
                treatment_id=line.treatment_id,
                tooth_number=line.tooth_number,
                description=line.description,
                quantity=line.quantity,
                unit_price_cents=line.unit_price_cents,
                total_cents=line.total_cents,
                sort_order=index,
            )
        )
    db.add(budget)
    db.flush()
    log_event(
        db,
        actor=actor,
        action="budget.created",
        entity_type="budget",
        entity_id=str(budget.id),
        patient_id=patient_id,
        after_data={
            "items": len(lines),
            "subtotal_cents": totals.subtotal_cents,
            "discount_percent": totals.discount_percent,
            "total_cents": totals.total_cents,
        },
        request_id=request_id,
    )
    db.commit()
    db.refresh(budget)
    logger.info("Budget %s created for patient %s (%s items)", budget.id, patient_id, len(lines))
    return budget
