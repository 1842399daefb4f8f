from __future__ import annotations

from datetime import datetime
from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field

from .blood_group import BloodGroup

MIN_AGE = 18
MAX_AGE = 65
MAX_NOTES_LENGTH = 500
PHONE_PATTERN = r"^[0-9]{10}$"


class MongoBaseModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)


class DonorCreate(MongoBaseModel):
    name: str = Field(min_length=2)
    age: int = Field(ge=MIN_AGE, le=MAX_AGE)
    phone_number: str = Field(alias="phoneNumber", pattern=PHONE_PATTERN)
    blood_group: BloodGroup = Field(alias="bloodGroup")
    country: str = Field(min_length=2)
    state: str = Field(min_length=2)
    district: str = Field(min_length=2)
    city: str = Field(min_length=2)
    notes: str | None = Field(default=None, max_length=MAX_NOTES_LENGTH)


class DonorSummary(MongoBaseModel):
    """Public card of a donor as listed by the blood group lookup."""

    id: str = Field(alias="_id")
    name: str
    age: int
    city: str
    state: str
    blood_group: BloodGroup = Field(alias="bloodGroup")
    created_at: datetime = Field(alias="createdAt")


class DonorCreatedResponse(BaseModel):
    status: Literal["success"] = "success"
    message: str = "Donor profile created successfully"
    donorId: str


class DonorListResponse(BaseModel):
    status: Literal["success"] = "success"
    donors: List[DonorSummary]


class ErrorResponse(BaseModel):
    status: Literal["error"] = "error"
    message: str
    errors: List[str] | None = None


class HealthResponse(BaseModel):
    status: Literal["ok"] = "ok"
    message: str = "LifePulse API is running"
    timestamp: datetime
