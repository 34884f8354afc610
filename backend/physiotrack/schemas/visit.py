from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from physiotrack.schemas.patient import PatientOut
from physiotrack.services.clock import to_local_naive


class VisitBase(BaseModel):
    patient_id: int
    visit_date: datetime
    treatment_provided: str = Field(min_length=1)
    duration: int = Field(ge=1)
    notes: Optional[str] = None
    charges: Decimal = Field(ge=0, max_digits=10, decimal_places=2)

    @field_validator("visit_date")
    @classmethod
    def _to_clinic_time(cls, value: datetime) -> datetime:
        return to_local_naive(value)


class VisitCreate(VisitBase):
    pass


class VisitUpdate(BaseModel):
    patient_id: Optional[int] = None
    visit_date: Optional[datetime] = None
    treatment_provided: Optional[str] = Field(default=None, min_length=1)
    duration: Optional[int] = Field(default=None, ge=1)
    notes: Optional[str] = None
    charges: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)

    @field_validator("visit_date")
    @classmethod
    def _to_clinic_time(cls, value: datetime | None) -> datetime | None:
        return to_local_naive(value)


class VisitOut(VisitBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: datetime


class VisitWithPatientOut(VisitOut):
    patient: PatientOut
    has_payment: bool = False
