from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from physiotrack.core.errors import NotFoundError
from physiotrack.db.session import get_db
from physiotrack.models.patient import Patient
from physiotrack.models.payment import Payment
from physiotrack.models.visit import Visit
from physiotrack.schemas.patient import (
    PatientBalanceOut,
    PatientCreate,
    PatientOut,
    PatientUpdate,
)
from physiotrack.schemas.payment import PaymentOut
from physiotrack.schemas.visit import VisitOut
from physiotrack.services.ledger import normalize_money, recompute_balance

router = APIRouter(prefix="/patients", tags=["patients"])

NULLABLE_FIELDS = {"email", "address", "medical_history", "emergency_contact"}


def get_patient_or_404(db: Session, patient_id: int) -> Patient:
    patient = db.get(Patient, patient_id)
    if not patient:
        raise NotFoundError("Patient not found")
    return patient


@router.get("", response_model=list[PatientOut])
def list_patients(
    db: Session = Depends(get_db),
    q: str | None = Query(default=None),
    limit: int | None = Query(default=None, ge=1),
    offset: int = Query(default=0, ge=0),
):
    stmt = select(Patient).order_by(Patient.created_at.desc(), Patient.id.desc())
    if q and q.strip():
        like = f"%{q.strip()}%"
        stmt = stmt.where(or_(Patient.name.ilike(like), Patient.phone.ilike(like)))
    if limit is not None:
        stmt = stmt.limit(limit)
    stmt = stmt.offset(offset)
    return list(db.scalars(stmt))


@router.post("", response_model=PatientOut, status_code=status.HTTP_201_CREATED)
def create_patient(payload: PatientCreate, db: Session = Depends(get_db)):
    patient = Patient(**payload.model_dump())
    db.add(patient)
    db.commit()
    db.refresh(patient)
    return patient


@router.get("/{patient_id}", response_model=PatientOut)
def get_patient(patient_id: int, db: Session = Depends(get_db)):
    return get_patient_or_404(db, patient_id)


@router.put("/{patient_id}", response_model=PatientOut)
def update_patient(patient_id: int, payload: PatientUpdate, db: Session = Depends(get_db)):
    patient = get_patient_or_404(db, patient_id)
    for field, value in payload.model_dump(exclude_unset=True).items():
        if value is None and field not in NULLABLE_FIELDS:
            continue
        setattr(patient, field, value)
    db.add(patient)
    db.commit()
    db.refresh(patient)
    return patient


@router.delete("/{patient_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_patient(patient_id: int, db: Session = Depends(get_db)):
    patient = get_patient_or_404(db, patient_id)
    db.delete(patient)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{patient_id}/visits", response_model=list[VisitOut])
def list_patient_visits(patient_id: int, db: Session = Depends(get_db)):
    get_patient_or_404(db, patient_id)
    stmt = (
        select(Visit)
        .where(Visit.patient_id == patient_id)
        .order_by(Visit.visit_date.desc(), Visit.id.desc())
    )
    return list(db.scalars(stmt))


@router.get("/{patient_id}/payments", response_model=list[PaymentOut])
def list_patient_payments(patient_id: int, db: Session = Depends(get_db)):
    get_patient_or_404(db, patient_id)
    stmt = (
        select(Payment)
        .where(Payment.patient_id == patient_id)
        .order_by(Payment.payment_date.desc(), Payment.id.desc())
    )
    return list(db.scalars(stmt))


@router.get("/{patient_id}/balance", response_model=PatientBalanceOut)
def get_patient_balance(patient_id: int, db: Session = Depends(get_db)):
    patient = get_patient_or_404(db, patient_id)
    balance = normalize_money(patient.balance)
    recomputed = recompute_balance(db, patient_id)
    return PatientBalanceOut(
        patient_id=patient_id,
        balance=balance,
        recomputed_balance=recomputed,
        drift=balance - recomputed,
    )
