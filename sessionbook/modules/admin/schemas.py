"""Admin schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel


class TopProviderRead(BaseModel):
    """Provider ranked by booking count."""

    provider_id: UUID
    provider_name: str
    booking_count: int


class BookingStatisticsRead(BaseModel):
    """Booking dashboard snapshot."""

    generated_at: datetime
    total_bookings: int
    pending_bookings: int
    confirmed_bookings: int
    cancelled_bookings: int
    completed_bookings: int
    bookings_this_month: int
    bookings_last_month: int
    growth_rate: float
    top_providers: list[TopProviderRead]
