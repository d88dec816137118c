"""Booking schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from sessionbook.core.enums import BookingStatusEnum, RoleEnum, SessionTypeEnum


class BookingCreate(BaseModel):
    """Create booking request."""

    provider_id: UUID
    start_at: datetime
    end_at: datetime
    availability_id: UUID | None = None
    session_type: SessionTypeEnum = SessionTypeEnum.VIRTUAL
    notes: str = Field(default="", max_length=5000)


class BookingCancelRequest(BaseModel):
    """Cancel booking request."""

    cancellation_reason: str | None = Field(default=None, max_length=512)


class BookingStatusUpdate(BaseModel):
    """Move booking to another lifecycle status."""

    status: BookingStatusEnum
    cancellation_reason: str | None = Field(default=None, max_length=512)


class BookingFilters(BaseModel):
    """Query filters for booking listings."""

    status: BookingStatusEnum | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    student_id: UUID | None = None
    provider_id: UUID | None = None


class BookingRead(BaseModel):
    """Booking response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    student_id: UUID
    provider_id: UUID
    availability_id: UUID | None
    start_at: datetime
    end_at: datetime
    day_of_week: int
    status: BookingStatusEnum
    session_type: SessionTypeEnum
    notes: str
    cancellation_reason: str | None
    student_name: str
    provider_name: str
    provider_role: RoleEnum
    confirmed_at: datetime | None
    cancelled_at: datetime | None
    completed_at: datetime | None
    created_at: datetime
    updated_at: datetime
