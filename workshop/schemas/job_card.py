"""
Pydantic schemas for job cards and parts requests.
"""
from decimal import Decimal
from typing import List, Optional, Union

from pydantic import BaseModel, Field, field_validator

from workshop.schemas.base import blank_to_none


class PartLine(BaseModel):
    """One requested part and how many of it."""
    item_id: int
    quantity: int

    def as_tuple(self):
        return self.item_id, self.quantity


class JobCardCreate(BaseModel):
    """Schema for a service request against a registered vehicle."""
    vehicle_id: int
    issue_description: str = Field(..., min_length=1)
    urgency: str = "medium"


class JobCardQuickCreate(BaseModel):
    """Schema for front-desk intake by registration number."""
    registration_number: str = Field(..., min_length=1, max_length=20)
    issue_description: str = Field(..., min_length=1)
    driver_id: Optional[int] = None
    urgency: str = "medium"

    blank_driver = field_validator("driver_id", mode="before")(blank_to_none)


class JobCardUpdate(BaseModel):
    """
    Schema for the full job card edit.

    ``status`` and ``labor_cost`` are checked by the status engine so the
    caller gets its specific messages.
    """
    status: str
    labor_cost: Union[Decimal, str]
    assigned_mechanic_id: Optional[int] = None
    service_advisor_id: Optional[int] = None
    cancellation_reason: Optional[str] = None
    parts: List[PartLine] = []

    blank_ids = field_validator(
        "assigned_mechanic_id", "service_advisor_id", mode="before"
    )(blank_to_none)


class JobAssign(BaseModel):
    assigned_mechanic_id: int
    labor_cost: Optional[Union[Decimal, str]] = None
    service_advisor_id: Optional[int] = None
    parts: List[PartLine] = []

    blank_ids = field_validator("service_advisor_id", "labor_cost", mode="before")(blank_to_none)


class PartsReplace(BaseModel):
    parts: List[PartLine]


class StatusChange(BaseModel):
    status: str
    reason: Optional[str] = None


class WorkLogCreate(BaseModel):
    description: str = Field(..., min_length=1)


class PartsRequestCreate(BaseModel):
    job_card_id: int
    item_id: int
    quantity: int


class PartsRequestReview(BaseModel):
    approve: bool
