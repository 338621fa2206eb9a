"""
Pydantic schemas for suppliers and purchase orders.
"""
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field


class SupplierBase(BaseModel):
    """Base supplier schema with common fields."""
    name: str = Field(..., min_length=1, max_length=120)
    contact_person: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None


class SupplierCreate(SupplierBase):
    pass


class SupplierUpdate(BaseModel):
    name: Optional[str] = None
    contact_person: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None


class PurchaseOrderLineIn(BaseModel):
    item_id: int
    quantity: int = Field(..., gt=0)
    unit_price: Decimal = Field(..., ge=0)


class PurchaseOrderCreate(BaseModel):
    supplier_id: int
    lines: List[PurchaseOrderLineIn] = Field(..., min_length=1)


class PurchaseOrderStatusChange(BaseModel):
    status: str
