from __future__ import annotations

import argparse
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from physiotrack.db.session import SessionLocal
from physiotrack.models.patient import Patient
from physiotrack.services.ledger import normalize_money, recompute_balance


@dataclass(frozen=True)
class BalanceDrift:
    patient_id: int
    name: str
    stored: Decimal
    recomputed: Decimal

    @property
    def drift(self) -> Decimal:
        return self.stored - self.recomputed


def find_drift(session: Session, patient_id: int | None = None) -> list[BalanceDrift]:
    stmt = select(Patient).order_by(Patient.id.asc())
    if patient_id is not None:
        stmt = stmt.where(Patient.id == patient_id)
    drifts: list[BalanceDrift] = []
    for patient in session.scalars(stmt):
        stored = normalize_money(patient.balance)
        recomputed = recompute_balance(session, patient.id)
        if stored != recomputed:
            drifts.append(
                BalanceDrift(
                    patient_id=patient.id,
                    name=patient.name,
                    stored=stored,
                    recomputed=recomputed,
                )
            )
    return drifts


def apply_recomputed(session: Session, drifts: list[BalanceDrift]) -> int:
    updated = 0
    for item in drifts:
        patient = session.get(Patient, item.patient_id)
        if patient is None:
            continue
        patient.balance = item.recomputed
        updated += 1
    return updated


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Compare stored patient balances with their visit and payment rows."
    )
    parser.add_argument("--patient-id", type=int, default=None, help="Check a single patient.")
    parser.add_argument(
        "--apply",
        action="store_true",
        help="Overwrite drifting balances with the recomputed value.",
    )
    args = parser.parse_args(argv)

    session = SessionLocal()
    try:
        drifts = find_drift(session, patient_id=args.patient_id)
        print("Balance reconciliation")
        for item in drifts:
            print(
                f"Patient {item.patient_id} ({item.name}): stored={item.stored} "
                f"recomputed={item.recomputed} drift={item.drift}"
            )
        updated = 0
        if args.apply:
            updated = apply_recomputed(session, drifts)
            session.commit()
        print(f"Patients with drift: {len(drifts)} updated={updated}")
        if not args.apply:
            print("Dry run only. Use --apply to persist changes.")
        return 0
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


if __name__ == "__main__":
    raise SystemExit(main())
