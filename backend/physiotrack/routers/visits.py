import logging

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from physiotrack.core.errors import ConflictError, NotFoundError
from physiotrack.db.session import get_db
from physiotrack.models.payment import Payment
from physiotrack.models.visit import Visit
from physiotrack.routers.patients import get_patient_or_404
from physiotrack.schemas.payment import PaymentOut
from physiotrack.schemas.visit import VisitCreate, VisitOut, VisitUpdate, VisitWithPatientOut
from physiotrack.services.ledger import BalanceEntryKind, apply_balance_delta

router = APIRouter(prefix="/visits", tags=["visits"])
logger = logging.getLogger("physiotrack.visits")

NULLABLE_FIELDS = {"notes"}


def get_visit_or_404(db: Session, visit_id: int) -> Visit:
    visit = db.get(Visit, visit_id)
    if not visit:
        raise NotFoundError("Visit not found")
    return visit


def count_visit_payments(db: Session, visit_id: int) -> int:
    return int(
        db.scalar(select(func.count()).select_from(Payment).where(Payment.visit_id == visit_id))
        or 0
    )


@router.get("", response_model=list[VisitWithPatientOut])
def list_visits(db: Session = Depends(get_db)):
    visits = list(db.scalars(select(Visit).order_by(Visit.visit_date.desc(), Visit.id.desc())))
    paid_visit_ids = set(
        db.scalars(select(Payment.visit_id).where(Payment.visit_id.is_not(None)).distinct())
    )
    return [
        VisitWithPatientOut.model_validate(visit).model_copy(
            update={"has_payment": visit.id in paid_visit_ids}
        )
        for visit in visits
    ]


@router.post("", response_model=VisitOut, status_code=status.HTTP_201_CREATED)
def create_visit(payload: VisitCreate, db: Session = Depends(get_db)):
    get_patient_or_404(db, payload.patient_id)
    visit = Visit(**payload.model_dump())
    db.add(visit)
    db.flush()
    # Row insert and balance posting commit together or not at all.
    apply_balance_delta(db, visit.patient_id, visit.charges, BalanceEntryKind.charge)
    db.commit()
    db.refresh(visit)
    return visit


@router.get("/{visit_id}", response_model=VisitOut)
def get_visit(visit_id: int, db: Session = Depends(get_db)):
    return get_visit_or_404(db, visit_id)


@router.put("/{visit_id}", response_model=VisitOut)
def update_visit(visit_id: int, payload: VisitUpdate, db: Session = Depends(get_db)):
    visit = get_visit_or_404(db, visit_id)
    changes = payload.model_dump(exclude_unset=True)
    new_patient_id = changes.get("patient_id")
    if new_patient_id is not None and new_patient_id != visit.patient_id:
        get_patient_or_404(db, new_patient_id)
        payments_count = count_visit_payments(db, visit_id)
        if payments_count > 0:
            logger.warning(
                "Visit reassignment refused",
                extra={"visit_id": visit_id, "payments_count": payments_count},
            )
            raise ConflictError(
                "Cannot move visit with associated payments to another patient",
                payments_count=payments_count,
            )
    # Editing charges does not re-post to the patient balance.
    for field, value in changes.items():
        if value is None and field not in NULLABLE_FIELDS:
            continue
        setattr(visit, field, value)
    db.add(visit)
    db.commit()
    db.refresh(visit)
    return visit


@router.delete("/{visit_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_visit(visit_id: int, db: Session = Depends(get_db)):
    visit = get_visit_or_404(db, visit_id)
    payments_count = count_visit_payments(db, visit_id)
    if payments_count > 0:
        logger.warning(
            "Visit deletion refused",
            extra={"visit_id": visit_id, "payments_count": payments_count},
        )
        raise ConflictError(
            "Cannot delete visit with associated payments", payments_count=payments_count
        )
    # The charge already posted to the patient balance is left in place.
    db.delete(visit)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{visit_id}/payments", response_model=list[PaymentOut])
def list_visit_payments(visit_id: int, db: Session = Depends(get_db)):
    get_visit_or_404(db, visit_id)
    stmt = (
        select(Payment)
        .where(Payment.visit_id == visit_id)
        .order_by(Payment.payment_date.desc(), Payment.id.desc())
    )
    return list(db.scalars(stmt))
