from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.budget import BudgetStatus


class BudgetLineIn(BaseModel):
    treatment_id: Optional[int] = None
    tooth_number: Optional[int] = None
    description: str = Field(min_length=1)
    quantity: int = Field(default=1, ge=1)
    unit_price_cents: int = Field(ge=0)


class BudgetLineOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    treatment_id: Optional[int] = None
    tooth_number: Optional[int] = None
    description: str
    quantity: int
    unit_price_cents: int
    total_cents: int


class BudgetPreviewRequest(BaseModel):
    discount_percent: int = Field(default=0, ge=0, le=100)


class BudgetPreviewOut(BaseModel):
    items: list[BudgetLineOut]
    subtotal_cents: int
    discount_percent: int
    discount_amount_cents: int
    total_cents: int


class BudgetCreate(BaseModel):
    items: list[BudgetLineIn]
    discount_percent: int = Field(default=0, ge=0, le=100)
    notes: Optional[str] = None


class BudgetUpdate(BaseModel):
    status: Optional[BudgetStatus] = None
    notes: Optional[str] = None

    @field_validator("status")
    @classmethod
    def status_not_null(cls, value: Optional[BudgetStatus]) -> BudgetStatus:
        if value is None:
            raise ValueError("status cannot be null")
        return value


class BudgetItemOut(BudgetLineOut):
    id: int
    sort_order: int


class BudgetOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    patient_id: int
    subtotal_cents: int
    discount_percent: int
    discount_amount_cents: int
    total_cents: int
    status: BudgetStatus
    notes: Optional[str] = None
    created_by_user_id: int
    created_at: datetime
    updated_at: datetime
    items: list[BudgetItemOut]
