from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from physiotrack.core.errors import NotFoundError
from physiotrack.db.session import get_db
from physiotrack.models.payment import Payment, PaymentType
from physiotrack.routers.patients import get_patient_or_404
from physiotrack.routers.visits import get_visit_or_404
from physiotrack.schemas.payment import (
    PaymentCreate,
    PaymentOut,
    PaymentUpdate,
    PaymentWithPatientOut,
)
from physiotrack.services.ledger import apply_balance_delta, kind_for_payment_type

router = APIRouter(prefix="/payments", tags=["payments"])

NULLABLE_FIELDS = {"visit_id", "notes"}


def get_payment_or_404(db: Session, payment_id: int) -> Payment:
    payment = db.get(Payment, payment_id)
    if not payment:
        raise NotFoundError("Payment not found")
    return payment


def ensure_visit_belongs_to_patient(db: Session, visit_id: int, patient_id: int) -> None:
    visit = get_visit_or_404(db, visit_id)
    if visit.patient_id != patient_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Visit does not belong to this patient",
        )


@router.get("", response_model=list[PaymentWithPatientOut])
def list_payments(
    db: Session = Depends(get_db),
    payment_type: PaymentType | None = Query(default=None),
):
    stmt = select(Payment).order_by(Payment.payment_date.desc(), Payment.id.desc())
    if payment_type:
        stmt = stmt.where(Payment.payment_type == payment_type)
    return list(db.scalars(stmt))


@router.post("", response_model=PaymentOut, status_code=status.HTTP_201_CREATED)
def create_payment(payload: PaymentCreate, db: Session = Depends(get_db)):
    get_patient_or_404(db, payload.patient_id)
    if payload.visit_id is not None:
        ensure_visit_belongs_to_patient(db, payload.visit_id, payload.patient_id)

    payment = Payment(**payload.model_dump())
    db.add(payment)
    db.flush()
    apply_balance_delta(
        db, payment.patient_id, payment.amount, kind_for_payment_type(payment.payment_type)
    )
    db.commit()
    db.refresh(payment)
    return payment


@router.get("/{payment_id}", response_model=PaymentOut)
def get_payment(payment_id: int, db: Session = Depends(get_db)):
    return get_payment_or_404(db, payment_id)


@router.put("/{payment_id}", response_model=PaymentOut)
def update_payment(payment_id: int, payload: PaymentUpdate, db: Session = Depends(get_db)):
    payment = get_payment_or_404(db, payment_id)
    changes = payload.model_dump(exclude_unset=True)
    patient_id = changes.get("patient_id") or payment.patient_id
    if changes.get("patient_id") is not None:
        get_patient_or_404(db, patient_id)
    visit_id = changes["visit_id"] if "visit_id" in changes else payment.visit_id
    if visit_id is not None:
        ensure_visit_belongs_to_patient(db, visit_id, patient_id)

    # Amount and type edits are not re-posted to the patient balance.
    for field, value in changes.items():
        if value is None and field not in NULLABLE_FIELDS:
            continue
        setattr(payment, field, value)
    db.add(payment)
    db.commit()
    db.refresh(payment)
    return payment


@router.delete("/{payment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_payment(payment_id: int, db: Session = Depends(get_db)):
    payment = get_payment_or_404(db, payment_id)
    db.delete(payment)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
