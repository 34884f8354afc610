from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from physiotrack.models.patient import Patient
from physiotrack.models.payment import Payment, PaymentType
from physiotrack.models.visit import Visit
from physiotrack.schemas.dashboard import DashboardStatsOut, MonthlyVisitsOut, RevenuePointOut
from physiotrack.services.clock import day_window, local_now, month_window
from physiotrack.services.ledger import normalize_money

logger = logging.getLogger("physiotrack.dashboard")

VISIT_TREND_MONTHS = 12
REVENUE_MONTHS = 6
ZERO = Decimal("0.00")


def _month_label(start: datetime) -> str:
    return start.strftime("%b")


def _revenue_between(db: Session, start: datetime, end: datetime | None = None) -> Decimal:
    stmt = select(func.coalesce(func.sum(Payment.amount), 0)).where(
        Payment.payment_type == PaymentType.payment,
        Payment.payment_date >= start,
    )
    if end is not None:
        stmt = stmt.where(Payment.payment_date < end)
    return normalize_money(db.scalar(stmt))


def _visit_count_between(db: Session, start: datetime, end: datetime) -> int:
    stmt = (
        select(func.count())
        .select_from(Visit)
        .where(Visit.visit_date >= start, Visit.visit_date < end)
    )
    return int(db.scalar(stmt) or 0)


def _outstanding_for_month(db: Session, start: datetime, end: datetime) -> Decimal:
    # Charges billed on visits in the month, less the regular payments linked
    # to those same visits, whenever the payments were made.
    charges = db.scalar(
        select(func.coalesce(func.sum(Visit.charges), 0)).where(
            Visit.visit_date >= start, Visit.visit_date < end
        )
    )
    paid = db.scalar(
        select(func.coalesce(func.sum(Payment.amount), 0))
        .join(Visit, Payment.visit_id == Visit.id)
        .where(
            Payment.payment_type == PaymentType.payment,
            Visit.visit_date >= start,
            Visit.visit_date < end,
        )
    )
    return max(ZERO, normalize_money(charges) - normalize_money(paid))


def _global_outstanding(db: Session) -> Decimal:
    # Recomputed from rows; independent of the per-patient stored balances.
    charges = db.scalar(select(func.coalesce(func.sum(Visit.charges), 0)))
    paid = db.scalar(
        select(func.coalesce(func.sum(Payment.amount), 0)).where(
            Payment.payment_type == PaymentType.payment
        )
    )
    return max(ZERO, normalize_money(charges) - normalize_money(paid))


def compute_dashboard_stats(db: Session, now: datetime | None = None) -> DashboardStatsOut:
    """Recompute every dashboard figure from the current rows.

    ``now`` is a naive clinic-local datetime; it defaults to the current time
    in the configured clinic timezone. Advance payments never count as revenue.
    """
    now = now or local_now()
    current_month_start, _ = month_window(now, 0)
    today_start, tomorrow_start = day_window(now)

    total_patients = int(db.scalar(select(func.count()).select_from(Patient)) or 0)
    monthly_revenue = _revenue_between(db, current_month_start)
    outstanding_balance = _global_outstanding(db)
    todays_visits = _visit_count_between(db, today_start, tomorrow_start)

    monthly_visit_trends: list[MonthlyVisitsOut] = []
    for months_back in range(VISIT_TREND_MONTHS - 1, -1, -1):
        start, end = month_window(now, months_back)
        monthly_visit_trends.append(
            MonthlyVisitsOut(month=_month_label(start), visits=_visit_count_between(db, start, end))
        )

    revenue_data: list[RevenuePointOut] = []
    for months_back in range(REVENUE_MONTHS - 1, -1, -1):
        start, end = month_window(now, months_back)
        revenue_data.append(
            RevenuePointOut(
                month=_month_label(start),
                revenue=_revenue_between(db, start, end),
                outstanding=_outstanding_for_month(db, start, end),
            )
        )

    logger.debug(
        "Dashboard stats computed",
        extra={"total_patients": total_patients, "todays_visits": todays_visits},
    )
    return DashboardStatsOut(
        total_patients=total_patients,
        monthly_revenue=monthly_revenue,
        outstanding_balance=outstanding_balance,
        todays_visits=todays_visits,
        monthly_visit_trends=monthly_visit_trends,
        revenue_data=revenue_data,
    )
