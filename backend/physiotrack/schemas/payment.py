from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from physiotrack.models.payment import PaymentMethod, PaymentType
from physiotrack.schemas.patient import PatientOut
from physiotrack.services.clock import to_local_naive


class PaymentBase(BaseModel):
    patient_id: int
    visit_id: Optional[int] = None
    amount: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    payment_type: PaymentType
    payment_method: PaymentMethod
    payment_date: datetime
    notes: Optional[str] = None

    @field_validator("payment_date")
    @classmethod
    def _to_clinic_time(cls, value: datetime) -> datetime:
        return to_local_naive(value)


class PaymentCreate(PaymentBase):
    pass


class PaymentUpdate(BaseModel):
    patient_id: Optional[int] = None
    visit_id: Optional[int] = None
    amount: Optional[Decimal] = Field(default=None, gt=0, max_digits=10, decimal_places=2)
    payment_type: Optional[PaymentType] = None
    payment_method: Optional[PaymentMethod] = None
    payment_date: Optional[datetime] = None
    notes: Optional[str] = None

    @field_validator("payment_date")
    @classmethod
    def _to_clinic_time(cls, value: datetime | None) -> datetime | None:
        return to_local_naive(value)


class PaymentOut(PaymentBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: datetime


class PaymentWithPatientOut(PaymentOut):
    patient: PatientOut
