from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from physiotrack.core.errors import InsufficientStockError, NotFoundError
from physiotrack.models.inventory import InventoryItem

logger = logging.getLogger("physiotrack.inventory")


def reduce_stock(db: Session, item_id: int, quantity: int) -> InventoryItem:
    item = db.scalar(
        select(InventoryItem)
        .where(InventoryItem.id == item_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    if item is None:
        raise NotFoundError("Inventory item not found")

    new_stock = item.current_stock - quantity
    if new_stock < 0:
        logger.warning(
            "Stock reduction refused",
            extra={"item_id": item_id, "requested": quantity, "available": item.current_stock},
        )
        raise InsufficientStockError(available=item.current_stock, requested=quantity)

    item.current_stock = new_stock
    db.flush()
    logger.info(
        "Stock reduced",
        extra={"item_id": item_id, "quantity": quantity, "current_stock": new_stock},
    )
    return item


def list_low_stock(db: Session) -> list[InventoryItem]:
    stmt = (
        select(InventoryItem)
        .where(InventoryItem.current_stock <= InventoryItem.min_stock_level)
        .order_by(InventoryItem.current_stock.asc(), InventoryItem.name.asc())
    )
    return list(db.scalars(stmt))
