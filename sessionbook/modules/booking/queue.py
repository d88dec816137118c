"""Provider-facing inbox of booking requests."""

from __future__ import annotations

from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from sessionbook.core.database import get_db_session
from sessionbook.core.enums import BookingStatusEnum, RoleEnum
from sessionbook.modules.booking.models import Booking
from sessionbook.modules.booking.repository import BookingRepository
from sessionbook.modules.identity.models import User
from sessionbook.modules.identity.repository import IdentityRepository
from sessionbook.shared.exceptions import (
    NotFoundException,
    PermissionDeniedException,
    ValidationException,
)


class RequestQueueService:
    """Pending and historical requests addressed to one provider."""

    def __init__(self, booking_repository: BookingRepository, identity_repository: IdentityRepository) -> None:
        self.booking_repository = booking_repository
        self.identity_repository = identity_repository

    async def _resolve_provider_id(self, actor: User, provider_id: UUID | None) -> UUID:
        if actor.role == RoleEnum.ADMIN:
            if provider_id is None:
                raise ValidationException("provider_id is required when an admin views a request inbox")
            provider = await self.identity_repository.get_provider(provider_id)
            if provider is None:
                raise NotFoundException("Provider not found or is not a tutor/counselor")
            return provider.id

        if actor.role.is_provider:
            if provider_id is not None and provider_id != actor.id:
                raise PermissionDeniedException("You can only view your own session requests")
            return actor.id

        raise PermissionDeniedException("Only tutors, counselors and admins can view session requests")

    async def list_pending(self, actor: User, provider_id: UUID | None = None) -> list[Booking]:
        """Pending requests, newest first."""
        resolved_id = await self._resolve_provider_id(actor, provider_id)
        return await self.booking_repository.list_pending_for_provider(resolved_id)

    async def list_all(
        self,
        actor: User,
        provider_id: UUID | None = None,
        status: BookingStatusEnum | None = None,
    ) -> list[Booking]:
        """Every request of the provider, latest start first."""
        resolved_id = await self._resolve_provider_id(actor, provider_id)
        return await self.booking_repository.list_for_provider(resolved_id, status)


async def get_request_queue_service(session: AsyncSession = Depends(get_db_session)) -> RequestQueueService:
    """Dependency provider for the provider request inbox."""
    return RequestQueueService(
        booking_repository=BookingRepository(session),
        identity_repository=IdentityRepository(session),
    )
