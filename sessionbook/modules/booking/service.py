"""Booking business logic layer."""

from __future__ import annotations

import logging
from datetime import timedelta
from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from sessionbook.core.config import get_settings
from sessionbook.core.database import get_db_session
from sessionbook.core.enums import BookingStatusEnum, RoleEnum
from sessionbook.core.metrics import record_booking_transition
from sessionbook.modules.availability.repository import AvailabilityRepository
from sessionbook.modules.booking import lifecycle
from sessionbook.modules.booking.models import Booking
from sessionbook.modules.booking.repository import BookingRepository
from sessionbook.modules.booking.resolver import BookingResolver
from sessionbook.modules.booking.schemas import (
    BookingCancelRequest,
    BookingCreate,
    BookingFilters,
    BookingStatusUpdate,
)
from sessionbook.modules.identity.models import User
from sessionbook.modules.identity.repository import IdentityRepository
from sessionbook.modules.notifications.dispatcher import NotificationDispatcher, OutboxNotificationDispatcher
from sessionbook.modules.notifications.repository import OutboxRepository
from sessionbook.shared.exceptions import (
    InvalidStateException,
    NotFoundException,
    PermissionDeniedException,
    ValidationException,
)
from sessionbook.shared.utils import utc_now

logger = logging.getLogger(__name__)

settings = get_settings()

REQUEST_RESPONSES = (BookingStatusEnum.CONFIRMED, BookingStatusEnum.CANCELLED)


class BookingService:
    """Booking domain service: creation, visibility and lifecycle transitions."""

    def __init__(
        self,
        booking_repository: BookingRepository,
        resolver: BookingResolver,
        dispatcher: NotificationDispatcher,
        *,
        cancellation_window_hours: int | None = None,
    ) -> None:
        self.booking_repository = booking_repository
        self.resolver = resolver
        self.dispatcher = dispatcher
        if cancellation_window_hours is None:
            cancellation_window_hours = settings.booking_cancellation_window_hours
        self.cancellation_window = timedelta(hours=cancellation_window_hours)

    async def create_booking(self, payload: BookingCreate, actor: User) -> Booking:
        """Resolve availability and create a pending booking."""
        return await self.resolver.resolve_and_create(payload, actor)

    async def get_booking(self, booking_id: UUID, actor: User) -> Booking:
        """Single booking, visible to its participants and admins."""
        booking = await self.booking_repository.get_booking_by_id(booking_id)
        if booking is None:
            raise NotFoundException("Booking not found")
        if not lifecycle.parties_for(booking, actor):
            raise PermissionDeniedException("You are not authorized to view this booking")
        return booking

    async def list_bookings(
        self,
        actor: User,
        filters: BookingFilters,
        limit: int,
        offset: int,
    ) -> tuple[list[Booking], int]:
        """List bookings for actor according to role."""
        if actor.role == RoleEnum.STUDENT:
            filters = filters.model_copy(update={"student_id": actor.id, "provider_id": None})
        elif actor.role.is_provider:
            filters = filters.model_copy(update={"provider_id": actor.id, "student_id": None})
        return await self.booking_repository.list_bookings(filters, limit, offset)

    async def cancel_booking(self, booking_id: UUID, payload: BookingCancelRequest, actor: User) -> Booking:
        """Cancel booking; students must respect the lead-time window."""
        return await self._transition(
            booking_id,
            BookingStatusEnum.CANCELLED,
            actor,
            reason=payload.cancellation_reason,
        )

    async def update_status(self, booking_id: UUID, payload: BookingStatusUpdate, actor: User) -> Booking:
        """Move booking to confirmed, completed or cancelled."""
        if payload.status == BookingStatusEnum.PENDING:
            raise ValidationException("Status must be one of: confirmed, completed, cancelled")
        return await self._transition(booking_id, payload.status, actor, reason=payload.cancellation_reason)

    async def respond_to_request(self, booking_id: UUID, payload: BookingStatusUpdate, actor: User) -> Booking:
        """Provider accepts or declines a pending request."""
        if payload.status not in REQUEST_RESPONSES:
            raise ValidationException("A session request can only be confirmed or cancelled")

        booking = await self.booking_repository.get_booking_by_id(booking_id, lock=True)
        if booking is None:
            raise NotFoundException("Session request not found")
        if booking.provider_id != actor.id:
            raise PermissionDeniedException("You can only respond to your own session requests")
        if booking.status != BookingStatusEnum.PENDING:
            raise InvalidStateException("Session request has already been processed")

        return await self._apply(booking, payload.status, actor, reason=payload.cancellation_reason)

    async def _transition(
        self,
        booking_id: UUID,
        target: BookingStatusEnum,
        actor: User,
        *,
        reason: str | None = None,
    ) -> Booking:
        booking = await self.booking_repository.get_booking_by_id(booking_id, lock=True)
        if booking is None:
            raise NotFoundException("Booking not found")
        return await self._apply(booking, target, actor, reason=reason)

    async def _apply(
        self,
        booking: Booking,
        target: BookingStatusEnum,
        actor: User,
        *,
        reason: str | None = None,
    ) -> Booking:
        now = utc_now()
        party = lifecycle.check_transition(
            booking,
            target,
            actor,
            now=now,
            cancellation_window=self.cancellation_window,
        )
        previous = lifecycle.apply_transition(booking, target, party, now=now, reason=reason)
        await self.booking_repository.save(booking)

        record_booking_transition(previous, target)
        logger.info("Booking %s moved %s -> %s by %s %s", booking.id, previous, target, party, actor.id)

        await self._notify(booking, lifecycle.counterparties(booking, actor), f"booking.{target}")
        return booking

    async def _notify(self, booking: Booking, recipients: list[UUID], kind: str) -> None:
        payload = {
            "booking_id": str(booking.id),
            "student_id": str(booking.student_id),
            "provider_id": str(booking.provider_id),
            "student_name": booking.student_name,
            "provider_name": booking.provider_name,
            "start_at": booking.start_at.isoformat(),
            "end_at": booking.end_at.isoformat(),
            "status": str(booking.status),
            "cancellation_reason": booking.cancellation_reason,
        }
        for recipient_id in recipients:
            try:
                await self.dispatcher.notify(recipient_id, kind, payload)
            except Exception:
                logger.exception("Failed to queue %s notification for booking %s", kind, booking.id)


async def get_booking_service(session: AsyncSession = Depends(get_db_session)) -> BookingService:
    """Dependency provider for booking service."""
    booking_repository = BookingRepository(session)
    return BookingService(
        booking_repository=booking_repository,
        resolver=BookingResolver(
            booking_repository=booking_repository,
            availability_repository=AvailabilityRepository(session),
            identity_repository=IdentityRepository(session),
        ),
        dispatcher=OutboxNotificationDispatcher(OutboxRepository(session)),
    )

