from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TreatmentCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    category: Optional[str] = None
    description: Optional[str] = None
    base_price_cents: int = Field(default=0, ge=0)
    is_active: bool = True


class TreatmentUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    category: Optional[str] = None
    description: Optional[str] = None
    base_price_cents: Optional[int] = Field(default=None, ge=0)
    is_active: Optional[bool] = None

    @field_validator("name", "base_price_cents", "is_active")
    @classmethod
    def required_columns_not_null(cls, value):
        if value is None:
            raise ValueError("field cannot be null")
        return value


class TreatmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    category: Optional[str] = None
    description: Optional[str] = None
    base_price_cents: int
    is_active: bool
    created_at: datetime
