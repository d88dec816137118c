"""Admin repository layer."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from sessionbook.core.enums import BookingStatusEnum
from sessionbook.modules.booking.models import Booking


class AdminRepository:
    """Aggregate queries backing the admin dashboard."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def count_bookings_by_status(self) -> dict[BookingStatusEnum, int]:
        stmt = select(Booking.status, func.count(Booking.id)).group_by(Booking.status)
        rows = (await self.session.execute(stmt)).all()
        return {status: int(count) for status, count in rows}

    async def count_bookings_created_between(self, start: datetime, end: datetime) -> int:
        stmt = select(func.count(Booking.id)).where(Booking.created_at >= start, Booking.created_at < end)
        return int((await self.session.scalar(stmt)) or 0)

    async def top_providers(self, limit: int) -> list[tuple[UUID, str, int]]:
        booking_count = func.count(Booking.id)
        stmt = (
            select(Booking.provider_id, Booking.provider_name, booking_count)
            .group_by(Booking.provider_id, Booking.provider_name)
            .order_by(booking_count.desc())
            .limit(limit)
        )
        rows = (await self.session.execute(stmt)).all()
        return [(provider_id, name, int(count)) for provider_id, name, count in rows]
