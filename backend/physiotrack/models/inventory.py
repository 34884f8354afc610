from __future__ import annotations

import enum
from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from physiotrack.models.base import Base, CreatedAtMixin


class InventoryCategory(str, enum.Enum):
    equipment = "equipment"
    supplies = "supplies"


class InventoryItem(Base, CreatedAtMixin):
    __tablename__ = "inventory"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    category: Mapped[InventoryCategory] = mapped_column(
        Enum(InventoryCategory, name="inventory_category", native_enum=False, length=16),
        nullable=False,
    )
    current_stock: Mapped[int] = mapped_column(Integer, nullable=False)
    # Reorder threshold; only reported on, never enforced.
    min_stock_level: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    supplier: Mapped[str | None] = mapped_column(String(200), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    last_restocked: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    usage = relationship(
        "InventoryUsage",
        back_populates="inventory_item",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def is_low_stock(self) -> bool:
        return self.current_stock <= self.min_stock_level


class InventoryUsage(Base, CreatedAtMixin):
    """Consumption of an item, optionally during a visit.

    Kept for schema parity; nothing in the application reads or writes it yet.
    """

    __tablename__ = "inventory_usage"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    inventory_id: Mapped[int] = mapped_column(
        ForeignKey("inventory.id", ondelete="CASCADE"), nullable=False, index=True
    )
    visit_id: Mapped[int | None] = mapped_column(
        ForeignKey("visits.id", ondelete="CASCADE"), nullable=True, index=True
    )
    quantity_used: Mapped[int] = mapped_column(Integer, nullable=False)
    usage_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    inventory_item = relationship("InventoryItem", back_populates="usage")
    visit = relationship("Visit", back_populates="inventory_usage")
