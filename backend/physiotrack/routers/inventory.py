from fastapi import APIRouter, Depends, Response, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from physiotrack.core.errors import NotFoundError
from physiotrack.db.session import get_db
from physiotrack.models.inventory import InventoryItem
from physiotrack.schemas.inventory import (
    InventoryItemCreate,
    InventoryItemOut,
    InventoryItemUpdate,
    ReduceStockIn,
)
from physiotrack.services.inventory import list_low_stock, reduce_stock

router = APIRouter(prefix="/inventory", tags=["inventory"])

NULLABLE_FIELDS = {"unit_price", "supplier", "description", "last_restocked"}


def get_item_or_404(db: Session, item_id: int) -> InventoryItem:
    item = db.get(InventoryItem, item_id)
    if not item:
        raise NotFoundError("Inventory item not found")
    return item


@router.get("", response_model=list[InventoryItemOut])
def list_inventory(db: Session = Depends(get_db)):
    return list(db.scalars(select(InventoryItem).order_by(InventoryItem.name, InventoryItem.id)))


@router.get("/low-stock", response_model=list[InventoryItemOut])
def low_stock_items(db: Session = Depends(get_db)):
    return list_low_stock(db)


@router.post("", response_model=InventoryItemOut, status_code=status.HTTP_201_CREATED)
def create_inventory_item(payload: InventoryItemCreate, db: Session = Depends(get_db)):
    item = InventoryItem(**payload.model_dump())
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


@router.get("/{item_id}", response_model=InventoryItemOut)
def get_inventory_item(item_id: int, db: Session = Depends(get_db)):
    return get_item_or_404(db, item_id)


@router.put("/{item_id}", response_model=InventoryItemOut)
def update_inventory_item(
    item_id: int, payload: InventoryItemUpdate, db: Session = Depends(get_db)
):
    item = get_item_or_404(db, item_id)
    for field, value in payload.model_dump(exclude_unset=True).items():
        if value is None and field not in NULLABLE_FIELDS:
            continue
        setattr(item, field, value)
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_inventory_item(item_id: int, db: Session = Depends(get_db)):
    item = get_item_or_404(db, item_id)
    db.delete(item)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{item_id}/reduce", response_model=InventoryItemOut)
def reduce_inventory_stock(item_id: int, payload: ReduceStockIn, db: Session = Depends(get_db)):
    item = reduce_stock(db, item_id, payload.quantity)
    db.commit()
    db.refresh(item)
    return item
