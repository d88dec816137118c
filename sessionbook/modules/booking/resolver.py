"""Booking resolution: match a requested window to availability and reserve it."""

from __future__ import annotations

import logging
from zoneinfo import ZoneInfo

from sqlalchemy.exc import IntegrityError

from sessionbook.core.config import get_settings
from sessionbook.core.enums import RoleEnum
from sessionbook.core.metrics import record_conflict
from sessionbook.modules.availability.models import AvailabilitySlot
from sessionbook.modules.availability.repository import AvailabilityRepository
from sessionbook.modules.booking.models import Booking
from sessionbook.modules.booking.repository import BookingRepository
from sessionbook.modules.booking.schemas import BookingCreate
from sessionbook.modules.identity.models import User
from sessionbook.modules.identity.repository import IdentityRepository
from sessionbook.shared.exceptions import (
    ConflictException,
    NotFoundException,
    PermissionDeniedException,
    ValidationException,
)
from sessionbook.shared.intervals import contains, day_of_week, seconds_since_midnight
from sessionbook.shared.utils import ensure_utc, to_zone

logger = logging.getLogger(__name__)

NOT_AVAILABLE_MESSAGE = "Provider is not available at the requested time"
ALREADY_BOOKED_MESSAGE = "The provider already has a booking during this time"


class BookingResolver:
    """Validates a booking request against availability and existing bookings."""

    def __init__(
        self,
        booking_repository: BookingRepository,
        availability_repository: AvailabilityRepository,
        identity_repository: IdentityRepository,
        schedule_zone: ZoneInfo | None = None,
    ) -> None:
        self.booking_repository = booking_repository
        self.availability_repository = availability_repository
        self.identity_repository = identity_repository
        self.schedule_zone = schedule_zone or get_settings().schedule_zone

    async def _match_slot(
        self,
        payload: BookingCreate,
        provider: User,
        day: int,
        start_second: int,
        end_second: int,
    ) -> AvailabilitySlot:
        if payload.availability_id is not None:
            slot = await self.availability_repository.get_slot_by_id(payload.availability_id)
            if slot is None or slot.provider_id != provider.id or not slot.is_active:
                raise NotFoundException("The selected availability slot does not exist or is not available")
            if slot.day_of_week != day or not contains(
                slot.start_minute * 60,
                slot.end_minute * 60,
                start_second,
                end_second,
            ):
                raise ValidationException(NOT_AVAILABLE_MESSAGE)
            return slot

        slot = await self.availability_repository.find_covering_slot(
            provider.id,
            day,
            start_second,
            end_second,
        )
        if slot is None:
            raise ValidationException(NOT_AVAILABLE_MESSAGE)
        return slot

    async def resolve_and_create(self, payload: BookingCreate, actor: User) -> Booking:
        """Create a pending booking for ``actor`` or raise the first failing rule."""
        if actor.role != RoleEnum.STUDENT:
            raise PermissionDeniedException("Only students can book sessions")

        # Locks the provider row until the request transaction ends.
        provider = await self.identity_repository.get_provider(payload.provider_id, lock=True)
        if provider is None:
            raise NotFoundException("Provider not found")

        start_at = ensure_utc(payload.start_at)
        end_at = ensure_utc(payload.end_at)
        if start_at >= end_at:
            raise ValidationException("End time must be after start time")

        local_start = to_zone(start_at, self.schedule_zone)
        local_end = to_zone(end_at, self.schedule_zone)
        day = day_of_week(local_start)
        start_second = seconds_since_midnight(local_start)
        end_second = seconds_since_midnight(local_end, reference=local_start)

        slot = await self._match_slot(payload, provider, day, start_second, end_second)

        existing = await self.booking_repository.find_conflicting_booking(provider.id, start_at, end_at)
        if existing is not None:
            record_conflict("booking_overlap")
            logger.info(
                "Rejected booking for provider %s at %s: overlaps booking %s",
                provider.id,
                start_at.isoformat(),
                existing.id,
            )
            raise ConflictException(ALREADY_BOOKED_MESSAGE)

        try:
            booking = await self.booking_repository.create_booking(
                student_id=actor.id,
                provider_id=provider.id,
                availability_id=slot.id,
                start_at=start_at,
                end_at=end_at,
                day_of_week=day,
                session_type=payload.session_type,
                notes=payload.notes,
                student_name=actor.full_name,
                provider_name=provider.full_name,
                provider_role=provider.role,
            )
        except IntegrityError as exc:
            record_conflict("booking_exclusion_constraint")
            raise ConflictException(ALREADY_BOOKED_MESSAGE) from exc

        logger.info(
            "Created booking %s: student %s with provider %s at %s",
            booking.id,
            actor.id,
            provider.id,
            start_at.isoformat(),
        )
        return booking
