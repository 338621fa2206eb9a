"""
Pydantic schemas for request validation.
"""
from workshop.schemas.base import parse_payload
from workshop.schemas.user import UserBase, UserCreate, UserStatusChange, LoginRequest
from workshop.schemas.vehicle import VehicleBase, VehicleCreate, VehicleUpdate
from workshop.schemas.inventory import (
    InventoryItemBase, InventoryItemCreate, InventoryItemUpdate, StockAdjustment,
)
from workshop.schemas.job_card import (
    PartLine, JobCardCreate, JobCardQuickCreate, JobCardUpdate, JobAssign, PartsReplace,
    StatusChange, WorkLogCreate, PartsRequestCreate, PartsRequestReview,
)
from workshop.schemas.purchasing import (
    SupplierBase, SupplierCreate, SupplierUpdate, PurchaseOrderLineIn, PurchaseOrderCreate,
    PurchaseOrderStatusChange,
)

__all__ = [
    "parse_payload",
    "UserBase", "UserCreate", "UserStatusChange", "LoginRequest",
    "VehicleBase", "VehicleCreate", "VehicleUpdate",
    "InventoryItemBase", "InventoryItemCreate", "InventoryItemUpdate", "StockAdjustment",
    "PartLine", "JobCardCreate", "JobCardQuickCreate", "JobCardUpdate", "JobAssign",
    "PartsReplace", "StatusChange", "WorkLogCreate", "PartsRequestCreate", "PartsRequestReview",
    "SupplierBase", "SupplierCreate", "SupplierUpdate", "PurchaseOrderLineIn",
    "PurchaseOrderCreate", "PurchaseOrderStatusChange",
]
