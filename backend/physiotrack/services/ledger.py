"""Per-patient running balance.

The stored ``Patient.balance`` is adjusted incrementally when a visit is billed
or a payment is recorded. It is never rebuilt from the visit and payment rows,
so later edits or deletions of those rows leave it untouched; use
``recompute_balance`` to see what the rows currently add up to.
"""

from __future__ import annotations

import enum
import logging
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from physiotrack.core.errors import NotFoundError
from physiotrack.models.patient import Patient
from physiotrack.models.payment import Payment, PaymentType
from physiotrack.models.visit import Visit

logger = logging.getLogger("physiotrack.ledger")

CENT = Decimal("0.01")


class BalanceEntryKind(str, enum.Enum):
    charge = "charge"
    payment = "payment"
    advance = "advance"


def normalize_money(value: float | int | str | Decimal | None) -> Decimal:
    if value is None:
        return Decimal("0.00")
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def kind_for_payment_type(payment_type: PaymentType) -> BalanceEntryKind:
    if payment_type == PaymentType.advance:
        return BalanceEntryKind.advance
    return BalanceEntryKind.payment


def balance_delta(amount: Decimal, kind: BalanceEntryKind) -> Decimal:
    # Payments and advances move the balance identically; the type only
    # matters to reporting.
    if kind == BalanceEntryKind.charge:
        return -amount
    return amount


def apply_balance_delta(
    db: Session, patient_id: int, amount: Decimal, kind: BalanceEntryKind
) -> None:
    """Post ``amount`` against the patient's stored balance.

    The patient row is selected ``FOR UPDATE`` so concurrent postings against
    the same patient serialise on databases that honour row locks. The change
    is flushed into the caller's transaction; committing is left to the caller.
    """
    amount = normalize_money(amount)
    if amount < 0:
        raise ValueError("Ledger amount must be a non-negative magnitude")

    patient = db.scalar(
        select(Patient)
        .where(Patient.id == patient_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    if patient is None:
        raise NotFoundError("Patient not found")

    new_balance = normalize_money(patient.balance) + balance_delta(amount, kind)
    patient.balance = new_balance
    db.flush()
    logger.info(
        "Balance updated",
        extra={
            "patient_id": patient_id,
            "kind": kind.value,
            "amount": str(amount),
            "balance": str(new_balance),
        },
    )


def recompute_balance(db: Session, patient_id: int) -> Decimal:
    """Balance implied by the patient's current visit and payment rows."""
    paid = db.scalar(
        select(func.coalesce(func.sum(Payment.amount), 0)).where(
            Payment.patient_id == patient_id,
            Payment.payment_type.in_([PaymentType.payment, PaymentType.advance]),
        )
    )
    charged = db.scalar(
        select(func.coalesce(func.sum(Visit.charges), 0)).where(Visit.patient_id == patient_id)
    )
    return normalize_money(paid) - normalize_money(charged)
