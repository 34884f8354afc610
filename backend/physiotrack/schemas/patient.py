from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


def _blank_email_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


class PatientBase(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    age: int = Field(ge=0, le=150)
    gender: str = Field(min_length=1, max_length=32)
    phone: str = Field(min_length=1, max_length=50)
    email: Optional[EmailStr] = None
    address: Optional[str] = None
    medical_history: Optional[str] = None
    emergency_contact: Optional[str] = None

    @field_validator("email", mode="before")
    @classmethod
    def _coerce_blank_email(cls, value):
        return _blank_email_to_none(value)


class PatientCreate(PatientBase):
    pass


class PatientUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    age: Optional[int] = Field(default=None, ge=0, le=150)
    gender: Optional[str] = Field(default=None, min_length=1, max_length=32)
    phone: Optional[str] = Field(default=None, min_length=1, max_length=50)
    email: Optional[EmailStr] = None
    address: Optional[str] = None
    medical_history: Optional[str] = None
    emergency_contact: Optional[str] = None

    @field_validator("email", mode="before")
    @classmethod
    def _coerce_blank_email(cls, value):
        return _blank_email_to_none(value)


class PatientOut(PatientBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    balance: Decimal
    created_at: datetime


class PatientBalanceOut(BaseModel):
    patient_id: int
    balance: Decimal
    recomputed_balance: Decimal
    drift: Decimal
