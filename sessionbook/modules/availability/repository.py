"""Availability repository layer."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from sessionbook.core.enums import RoleEnum
from sessionbook.modules.availability.models import AvailabilitySlot


class AvailabilityRepository:
    """DB access for provider availability."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_slots(
        self,
        provider_id: UUID,
        provider_name: str,
        provider_role: RoleEnum,
        items: list[dict],
    ) -> list[AvailabilitySlot]:
        slots = [
            AvailabilitySlot(
                provider_id=provider_id,
                provider_name=provider_name,
                provider_role=provider_role,
                **item,
            )
            for item in items
        ]
        self.session.add_all(slots)
        await self.session.flush()
        return slots

    async def get_slot_by_id(self, slot_id: UUID) -> AvailabilitySlot | None:
        stmt = select(AvailabilitySlot).where(AvailabilitySlot.id == slot_id)
        return await self.session.scalar(stmt)

    async def list_for_provider(self, provider_id: UUID, active_only: bool) -> list[AvailabilitySlot]:
        stmt: Select[tuple[AvailabilitySlot]] = select(AvailabilitySlot).where(
            AvailabilitySlot.provider_id == provider_id,
        )
        if active_only:
            stmt = stmt.where(AvailabilitySlot.is_active.is_(True))
        stmt = stmt.order_by(AvailabilitySlot.day_of_week.asc(), AvailabilitySlot.start_minute.asc())
        return list((await self.session.scalars(stmt)).all())

    async def list_active_for_day(
        self,
        provider_id: UUID,
        day_of_week: int,
        exclude_slot_id: UUID | None = None,
    ) -> list[AvailabilitySlot]:
        stmt = select(AvailabilitySlot).where(
            AvailabilitySlot.provider_id == provider_id,
            AvailabilitySlot.day_of_week == day_of_week,
            AvailabilitySlot.is_active.is_(True),
        )
        if exclude_slot_id is not None:
            stmt = stmt.where(AvailabilitySlot.id != exclude_slot_id)
        stmt = stmt.order_by(AvailabilitySlot.start_minute.asc())
        return list((await self.session.scalars(stmt)).all())

    async def list_active_for_providers(self, provider_ids: list[UUID]) -> list[AvailabilitySlot]:
        if not provider_ids:
            return []
        stmt = (
            select(AvailabilitySlot)
            .where(
                AvailabilitySlot.provider_id.in_(provider_ids),
                AvailabilitySlot.is_active.is_(True),
            )
            .order_by(AvailabilitySlot.day_of_week.asc(), AvailabilitySlot.start_minute.asc())
        )
        return list((await self.session.scalars(stmt)).all())

    async def find_covering_slot(
        self,
        provider_id: UUID,
        day_of_week: int,
        start_second: int,
        end_second: int,
    ) -> AvailabilitySlot | None:
        """First active slot on ``day_of_week`` whose window contains the offsets."""
        stmt = (
            select(AvailabilitySlot)
            .where(
                AvailabilitySlot.provider_id == provider_id,
                AvailabilitySlot.day_of_week == day_of_week,
                AvailabilitySlot.is_active.is_(True),
                AvailabilitySlot.start_minute * 60 <= start_second,
                AvailabilitySlot.end_minute * 60 >= end_second,
            )
            .order_by(AvailabilitySlot.start_minute.asc())
            .limit(1)
        )
        return await self.session.scalar(stmt)

    async def update_slot(self, slot: AvailabilitySlot, **changes) -> AvailabilitySlot:
        for key, value in changes.items():
            setattr(slot, key, value)
        await self.session.flush()
        return slot

    async def delete_slot(self, slot: AvailabilitySlot) -> None:
        await self.session.delete(slot)
        await self.session.flush()
