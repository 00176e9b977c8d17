from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class _DocumentNumberMixin(BaseModel):
    @field_validator("document_number", check_fields=False)
    @classmethod
    def clean_document_number(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        cleaned = value.replace(" ", "").replace("-", "").upper()
        return cleaned or None


class PatientBase(_DocumentNumberMixin):
    first_name: str = Field(min_length=1, max_length=120)
    last_name: str = Field(min_length=1, max_length=120)
    document_number: Optional[str] = Field(default=None, max_length=32)
    date_of_birth: Optional[date] = None
    phone: Optional[str] = Field(default=None, max_length=50)
    email: Optional[EmailStr] = None
    allergies: Optional[str] = None
    notes: Optional[str] = None


class PatientCreate(PatientBase):
    pass


class PatientUpdate(_DocumentNumberMixin):
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=120)
    document_number: Optional[str] = Field(default=None, max_length=32)
    date_of_birth: Optional[date] = None
    phone: Optional[str] = Field(default=None, max_length=50)
    email: Optional[EmailStr] = None
    allergies: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("first_name", "last_name")
    @classmethod
    def names_not_null(cls, value: Optional[str]) -> str:
        if value is None:
            raise ValueError("name cannot be null")
        return value


class PatientOut(PatientBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    full_name: str
    created_at: datetime
    updated_at: datetime
