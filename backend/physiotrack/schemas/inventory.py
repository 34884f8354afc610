from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from physiotrack.models.inventory import InventoryCategory
from physiotrack.services.clock import to_local_naive


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


class InventoryItemBase(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    category: InventoryCategory
    current_stock: int = Field(ge=0)
    min_stock_level: int = Field(ge=0)
    unit_price: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    supplier: Optional[str] = None
    description: Optional[str] = None
    last_restocked: Optional[datetime] = None

    @field_validator("unit_price", "last_restocked", mode="before")
    @classmethod
    def _coerce_blank(cls, value):
        return _blank_to_none(value)

    @field_validator("last_restocked")
    @classmethod
    def _to_clinic_time(cls, value: datetime | None) -> datetime | None:
        return to_local_naive(value)


class InventoryItemCreate(InventoryItemBase):
    pass


class InventoryItemUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    category: Optional[InventoryCategory] = None
    current_stock: Optional[int] = Field(default=None, ge=0)
    min_stock_level: Optional[int] = Field(default=None, ge=0)
    unit_price: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    supplier: Optional[str] = None
    description: Optional[str] = None
    last_restocked: Optional[datetime] = None

    @field_validator("unit_price", "last_restocked", mode="before")
    @classmethod
    def _coerce_blank(cls, value):
        return _blank_to_none(value)

    @field_validator("last_restocked")
    @classmethod
    def _to_clinic_time(cls, value: datetime | None) -> datetime | None:
        return to_local_naive(value)


class InventoryItemOut(InventoryItemBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: datetime
    is_low_stock: bool


class ReduceStockIn(BaseModel):
    quantity: int = Field(gt=0)
