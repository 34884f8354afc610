from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Integer, Numeric, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from physiotrack.models.base import Base, CreatedAtMixin


class Visit(Base, CreatedAtMixin):
    __tablename__ = "visits"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    patient_id: Mapped[int] = mapped_column(
        ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True
    )
    visit_date: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    treatment_provided: Mapped[str] = mapped_column(Text, nullable=False)
    duration: Mapped[int] = mapped_column(Integer, nullable=False)  # minutes
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    charges: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    patient = relationship("Patient", back_populates="visits", lazy="joined")
    payments = relationship(
        "Payment",
        back_populates="visit",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    inventory_usage = relationship(
        "InventoryUsage",
        back_populates="visit",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
