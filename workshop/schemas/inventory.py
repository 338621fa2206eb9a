"""
Pydantic schemas for inventory items.
"""
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class InventoryItemBase(BaseModel):
    """Base inventory schema with common fields."""
    name: str = Field(..., min_length=1, max_length=100)
    category: Optional[str] = None
    description: Optional[str] = None
    unit: str = "pcs"
    unit_price: Decimal = Field(..., ge=0)
    min_stock_level: int = Field(5, ge=0)
    location: Optional[str] = None


class InventoryItemCreate(InventoryItemBase):
    """Schema for adding a part to inventory."""
    item_number: str = Field(..., min_length=1, max_length=40)
    quantity_on_hand: int = Field(0, ge=0)


class InventoryItemUpdate(BaseModel):
    """Schema for updating a part. Stock levels change through adjustments."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    category: Optional[str] = None
    description: Optional[str] = None
    unit: Optional[str] = None
    unit_price: Optional[Decimal] = Field(None, ge=0)
    min_stock_level: Optional[int] = Field(None, ge=0)
    location: Optional[str] = None


class StockAdjustment(BaseModel):
    quantity_on_hand: int = Field(..., ge=0)
    reason: str = Field(..., min_length=1)
