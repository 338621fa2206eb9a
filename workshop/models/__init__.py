"""
SQLAlchemy database models.
"""
from workshop.models.user import User, UserRole, STAFF_ROLES, bcrypt
from workshop.models.vehicle import Vehicle
from workshop.models.inventory import InventoryItem, UsageLog, UsageLogType
from workshop.models.job_card import (
    JobCard, JobCardPart, JobCardUpdate, JobStatus, PartsRequest, PartsRequestStatus,
    UpdateType, WORKSHOP_STATUSES, ACTIVE_WORK_STATUSES, COMPLETED_STATUSES, CLOSED_STATUSES,
)
from workshop.models.invoice import Invoice
from workshop.models.purchasing import Supplier, PurchaseOrder, PurchaseOrderLine, PurchaseOrderStatus

__all__ = [
    "User", "UserRole", "STAFF_ROLES", "bcrypt",
    "Vehicle",
    "InventoryItem", "UsageLog", "UsageLogType",
    "JobCard", "JobCardPart", "JobCardUpdate", "JobStatus", "PartsRequest",
    "PartsRequestStatus", "UpdateType", "WORKSHOP_STATUSES", "ACTIVE_WORK_STATUSES",
    "COMPLETED_STATUSES", "CLOSED_STATUSES",
    "Invoice",
    "Supplier", "PurchaseOrder", "PurchaseOrderLine", "PurchaseOrderStatus",
]
