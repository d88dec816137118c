"""Booking repository layer."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import Select, and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from sessionbook.core.enums import ACTIVE_BOOKING_STATUSES, BookingStatusEnum
from sessionbook.modules.booking.models import Booking
from sessionbook.modules.booking.schemas import BookingFilters


class BookingRepository:
    """DB operations for booking domain."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_booking(self, **fields) -> Booking:
        booking = Booking(status=BookingStatusEnum.PENDING, **fields)
        self.session.add(booking)
        await self.session.flush()
        return booking

    async def get_booking_by_id(self, booking_id: UUID, *, lock: bool = False) -> Booking | None:
        stmt = select(Booking).where(Booking.id == booking_id)
        if lock:
            stmt = stmt.with_for_update()
        return await self.session.scalar(stmt)

    async def find_conflicting_booking(
        self,
        provider_id: UUID,
        start_at: datetime,
        end_at: datetime,
    ) -> Booking | None:
        """Active booking that overlaps ``[start_at, end_at)`` or lies inside it."""
        stmt = (
            select(Booking)
            .where(
                Booking.provider_id == provider_id,
                Booking.status.in_(ACTIVE_BOOKING_STATUSES),
                or_(
                    and_(Booking.start_at < end_at, Booking.end_at > start_at),
                    and_(Booking.start_at >= start_at, Booking.end_at <= end_at),
                ),
            )
            .order_by(Booking.start_at.asc())
            .limit(1)
        )
        return await self.session.scalar(stmt)

    def _filtered(self, filters: BookingFilters) -> Select[tuple[Booking]]:
        stmt: Select[tuple[Booking]] = select(Booking)
        if filters.status is not None:
            stmt = stmt.where(Booking.status == filters.status)
        if filters.start_date is not None:
            stmt = stmt.where(Booking.start_at >= filters.start_date)
        if filters.end_date is not None:
            stmt = stmt.where(Booking.end_at <= filters.end_date)
        if filters.student_id is not None:
            stmt = stmt.where(Booking.student_id == filters.student_id)
        if filters.provider_id is not None:
            stmt = stmt.where(Booking.provider_id == filters.provider_id)
        return stmt

    async def list_bookings(
        self,
        filters: BookingFilters,
        limit: int,
        offset: int,
        *,
        newest_first: bool = False,
    ) -> tuple[list[Booking], int]:
        base_stmt = self._filtered(filters)

        count_stmt = select(func.count()).select_from(base_stmt.subquery())
        total = int((await self.session.scalar(count_stmt)) or 0)

        order = Booking.start_at.desc() if newest_first else Booking.start_at.asc()
        stmt = base_stmt.order_by(order).limit(limit).offset(offset)
        items = list((await self.session.scalars(stmt)).all())
        return items, total

    async def list_pending_for_provider(self, provider_id: UUID) -> list[Booking]:
        stmt = (
            select(Booking)
            .where(Booking.provider_id == provider_id, Booking.status == BookingStatusEnum.PENDING)
            .order_by(Booking.created_at.desc())
        )
        return list((await self.session.scalars(stmt)).all())

    async def list_for_provider(
        self,
        provider_id: UUID,
        status: BookingStatusEnum | None,
    ) -> list[Booking]:
        stmt = select(Booking).where(Booking.provider_id == provider_id)
        if status is not None:
            stmt = stmt.where(Booking.status == status)
        stmt = stmt.order_by(Booking.start_at.desc())
        return list((await self.session.scalars(stmt)).all())

    async def count_upcoming_for_slot(self, availability_id: UUID, now: datetime) -> int:
        stmt = select(func.count()).where(
            Booking.availability_id == availability_id,
            Booking.status.in_(ACTIVE_BOOKING_STATUSES),
            Booking.end_at > now,
        )
        return int((await self.session.scalar(stmt)) or 0)

    async def save(self, booking: Booking) -> Booking:
        await self.session.flush()
        return booking

    async def delete_booking(self, booking: Booking) -> None:
        await self.session.delete(booking)
        await self.session.flush()
