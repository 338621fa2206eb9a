"""
Pydantic schemas for Vehicle.
"""
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from workshop.schemas.base import blank_to_none


class VehicleBase(BaseModel):
    """Base vehicle schema with common fields."""
    make: str = Field(..., min_length=1, max_length=50)
    model: str = Field(..., min_length=1, max_length=50)
    year: Optional[int] = Field(None, ge=1900, le=2100)
    registration_number: str = Field(..., min_length=1, max_length=20)
    color: Optional[str] = None
    mileage: int = Field(0, ge=0)
    engine_number: Optional[str] = None
    chassis_number: Optional[str] = None
    fuel_type: Optional[str] = None
    notes: Optional[str] = None


class VehicleCreate(VehicleBase):
    """Schema for registering a vehicle."""
    driver_id: Optional[int] = None

    blank_driver = field_validator("driver_id", "year", mode="before")(blank_to_none)


class VehicleUpdate(BaseModel):
    """Schema for updating a vehicle."""
    mileage: Optional[int] = Field(None, ge=0)
    color: Optional[str] = None
    driver_id: Optional[int] = None
    notes: Optional[str] = None

    blank_driver = field_validator("driver_id", mode="before")(blank_to_none)
