"""Availability business logic layer."""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from sessionbook.core.database import get_db_session
from sessionbook.core.metrics import AVAILABILITY_SLOTS_CREATED_TOTAL, record_conflict
from sessionbook.modules.availability.models import AvailabilitySlot
from sessionbook.modules.availability.repository import AvailabilityRepository
from sessionbook.modules.availability.schemas import SlotCreate, SlotUpdate
from sessionbook.modules.booking.repository import BookingRepository
from sessionbook.modules.identity.models import User
from sessionbook.modules.identity.repository import IdentityRepository
from sessionbook.shared.exceptions import (
    ConflictException,
    NotFoundException,
    PermissionDeniedException,
    ValidationException,
)
from sessionbook.shared.intervals import format_minutes, overlaps, to_minutes
from sessionbook.shared.utils import utc_now

logger = logging.getLogger(__name__)

DAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")


def describe_window(day_of_week: int, start_minute: int, end_minute: int) -> str:
    return f"{DAY_NAMES[day_of_week]} {format_minutes(start_minute)}-{format_minutes(end_minute)}"


def validate_day(label: str, day_of_week: object) -> int:
    if isinstance(day_of_week, bool) or not isinstance(day_of_week, int) or not 0 <= day_of_week <= 6:
        raise ValidationException(f"{label}: day_of_week must be between 0 (Sunday) and 6 (Saturday)")
    return day_of_week


def parse_time(label: str, value: str) -> int:
    try:
        return to_minutes(value)
    except ValidationException as exc:
        raise ValidationException(f"{label}: {exc.message}") from exc


class AvailabilityService:
    """Owns provider weekly availability and its no-overlap invariant."""

    def __init__(
        self,
        repository: AvailabilityRepository,
        identity_repository: IdentityRepository,
        booking_repository: BookingRepository,
    ) -> None:
        self.repository = repository
        self.identity_repository = identity_repository
        self.booking_repository = booking_repository

    async def _lock_provider(self, provider_id: UUID) -> User:
        provider = await self.identity_repository.get_provider(provider_id, lock=True)
        if provider is None:
            raise PermissionDeniedException("Only tutors and counselors can manage availability")
        return provider

    async def create_slots(self, items: list[SlotCreate], actor: User) -> list[AvailabilitySlot]:
        """Validate and persist a batch of slots; any failing item rejects the batch."""
        if not actor.role.is_provider:
            raise PermissionDeniedException("Only tutors and counselors can set availability")
        if not items:
            raise ValidationException("No availability slots provided")

        provider = await self._lock_provider(actor.id)

        existing_by_day: dict[int, list[AvailabilitySlot]] = {}
        accepted: list[dict] = []
        for position, item in enumerate(items, start=1):
            label = f"Slot {position}"
            day = validate_day(label, item.day_of_week)
            start = parse_time(label, item.start_time)
            end = parse_time(label, item.end_time)
            if end <= start:
                raise ValidationException(f"{label}: end time must be after start time")

            if item.is_active:
                if day not in existing_by_day:
                    existing_by_day[day] = await self.repository.list_active_for_day(provider.id, day)
                for existing in existing_by_day[day]:
                    if overlaps(start, end, existing.start_minute, existing.end_minute):
                        record_conflict("availability_overlap")
                        raise ConflictException(
                            f"{label} ({describe_window(day, start, end)}) overlaps existing slot "
                            f"{existing.id} ({describe_window(day, existing.start_minute, existing.end_minute)})",
                        )
                for earlier_position, earlier in enumerate(accepted, start=1):
                    if (
                        earlier["is_active"]
                        and earlier["day_of_week"] == day
                        and overlaps(start, end, earlier["start_minute"], earlier["end_minute"])
                    ):
                        record_conflict("availability_overlap")
                        raise ConflictException(
                            f"{label} ({describe_window(day, start, end)}) overlaps slot "
                            f"{earlier_position} of the same request",
                        )

            accepted.append(
                {
                    "day_of_week": day,
                    "start_minute": start,
                    "end_minute": end,
                    "is_active": item.is_active,
                    "recurrence": item.recurrence,
                },
            )

        slots = await self.repository.create_slots(
            provider_id=provider.id,
            provider_name=provider.full_name,
            provider_role=provider.role,
            items=accepted,
        )
        AVAILABILITY_SLOTS_CREATED_TOTAL.inc(len(slots))
        logger.info("Created %d availability slot(s) for provider %s", len(slots), provider.id)
        return slots

    async def _get_owned_slot(self, slot_id: UUID, actor: User) -> AvailabilitySlot:
        slot = await self.repository.get_slot_by_id(slot_id)
        if slot is None:
            raise NotFoundException("Availability slot not found")
        if slot.provider_id != actor.id:
            raise PermissionDeniedException("You can only manage your own availability slots")
        return slot

    async def update_slot(self, slot_id: UUID, payload: SlotUpdate, actor: User) -> AvailabilitySlot:
        """Apply a partial update and re-check the window against sibling slots."""
        slot = await self._get_owned_slot(slot_id, actor)
        changes = payload.model_dump(exclude_none=True)

        day = slot.day_of_week
        if "day_of_week" in changes:
            day = validate_day("Update", changes["day_of_week"])
        start = parse_time("Update", changes["start_time"]) if "start_time" in changes else slot.start_minute
        end = parse_time("Update", changes["end_time"]) if "end_time" in changes else slot.end_minute

        if end <= start:
            if "start_time" in changes and "end_time" in changes:
                raise ValidationException("End time must be after start time")
            if "start_time" in changes:
                raise ValidationException("New start time would be after existing end time")
            raise ValidationException("New end time would be before existing start time")

        is_active = changes.get("is_active", slot.is_active)
        window_changed = (day, start, end) != (slot.day_of_week, slot.start_minute, slot.end_minute)
        if is_active and (window_changed or not slot.is_active):
            await self._lock_provider(slot.provider_id)
            siblings = await self.repository.list_active_for_day(slot.provider_id, day, exclude_slot_id=slot.id)
            for sibling in siblings:
                if overlaps(start, end, sibling.start_minute, sibling.end_minute):
                    record_conflict("availability_overlap")
                    raise ConflictException(
                        f"Updated slot ({describe_window(day, start, end)}) overlaps existing slot "
                        f"{sibling.id} ({describe_window(day, sibling.start_minute, sibling.end_minute)})",
                    )

        return await self.repository.update_slot(
            slot,
            day_of_week=day,
            start_minute=start,
            end_minute=end,
            is_active=is_active,
            recurrence=changes.get("recurrence", slot.recurrence),
        )

    async def delete_slot(self, slot_id: UUID, actor: User) -> None:
        """Hard-delete a slot unless it still backs upcoming bookings."""
        slot = await self._get_owned_slot(slot_id, actor)

        upcoming = await self.booking_repository.count_upcoming_for_slot(slot.id, utc_now())
        if upcoming:
            raise ConflictException(
                f"Availability slot has {upcoming} upcoming booking(s); "
                "cancel them or deactivate the slot instead",
            )

        await self.repository.delete_slot(slot)
        logger.info("Deleted availability slot %s of provider %s", slot.id, slot.provider_id)

    async def list_for_provider(
        self,
        provider_id: UUID,
        active_only: bool = True,
    ) -> tuple[User, list[AvailabilitySlot]]:
        """Return provider and slots ordered by day then start time."""
        provider = await self.identity_repository.get_provider(provider_id)
        if provider is None:
            raise NotFoundException("Provider not found or is not a tutor/counselor")
        slots = await self.repository.list_for_provider(provider_id, active_only)
        return provider, slots

    async def list_my_slots(self, actor: User) -> list[AvailabilitySlot]:
        """Caller's own slots, inactive ones included."""
        if not actor.role.is_provider:
            raise PermissionDeniedException("Only tutors and counselors can view their availability")
        return await self.repository.list_for_provider(actor.id, active_only=False)

    async def list_all_providers(self) -> list[tuple[User, list[AvailabilitySlot]]]:
        """Every provider with its active slots."""
        providers = await self.identity_repository.list_providers()
        slots = await self.repository.list_active_for_providers([provider.id for provider in providers])
        grouped: dict[UUID, list[AvailabilitySlot]] = {provider.id: [] for provider in providers}
        for slot in slots:
            grouped[slot.provider_id].append(slot)
        return [(provider, grouped[provider.id]) for provider in providers]


async def get_availability_service(session: AsyncSession = Depends(get_db_session)) -> AvailabilityService:
    """Dependency provider for availability service."""
    return AvailabilityService(
        repository=AvailabilityRepository(session),
        identity_repository=IdentityRepository(session),
        booking_repository=BookingRepository(session),
    )
