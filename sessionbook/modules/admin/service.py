"""Admin business logic layer."""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from sessionbook.core.database import get_db_session
from sessionbook.core.enums import BookingStatusEnum, RoleEnum
from sessionbook.modules.admin.repository import AdminRepository
from sessionbook.modules.admin.schemas import BookingStatisticsRead, TopProviderRead
from sessionbook.modules.booking.models import Booking
from sessionbook.modules.booking.queue import RequestQueueService
from sessionbook.modules.booking.repository import BookingRepository
from sessionbook.modules.booking.schemas import BookingFilters
from sessionbook.modules.identity.models import User
from sessionbook.modules.identity.repository import IdentityRepository
from sessionbook.shared.exceptions import NotFoundException, PermissionDeniedException
from sessionbook.shared.utils import month_start, utc_now

logger = logging.getLogger(__name__)

TOP_PROVIDERS_LIMIT = 5


def growth_rate(this_month: int, last_month: int) -> float:
    """Month-over-month growth in percent; 100.0 when there is no baseline."""
    if last_month == 0:
        return 100.0
    return round((this_month - last_month) / last_month * 100, 2)


class AdminService:
    """Admin domain service."""

    def __init__(
        self,
        repository: AdminRepository,
        booking_repository: BookingRepository,
        request_queue: RequestQueueService,
    ) -> None:
        self.repository = repository
        self.booking_repository = booking_repository
        self.request_queue = request_queue

    @staticmethod
    def _ensure_admin(actor: User, action: str) -> None:
        if actor.role != RoleEnum.ADMIN:
            raise PermissionDeniedException(f"Only admin can {action}")

    async def list_bookings(
        self,
        actor: User,
        filters: BookingFilters,
        limit: int,
        offset: int,
    ) -> tuple[list[Booking], int]:
        """All bookings, latest start first."""
        self._ensure_admin(actor, "list all bookings")
        return await self.booking_repository.list_bookings(filters, limit, offset, newest_first=True)

    async def get_booking_statistics(self, actor: User) -> BookingStatisticsRead:
        """Counts by status, monthly volume and busiest providers."""
        self._ensure_admin(actor, "view booking statistics")

        now = utc_now()
        this_month_start = month_start(now)
        last_month_start = month_start(now, months_back=1)

        counts = await self.repository.count_bookings_by_status()
        this_month = await self.repository.count_bookings_created_between(this_month_start, now)
        last_month = await self.repository.count_bookings_created_between(last_month_start, this_month_start)
        top = await self.repository.top_providers(TOP_PROVIDERS_LIMIT)

        return BookingStatisticsRead(
            generated_at=now,
            total_bookings=sum(counts.values()),
            pending_bookings=counts.get(BookingStatusEnum.PENDING, 0),
            confirmed_bookings=counts.get(BookingStatusEnum.CONFIRMED, 0),
            cancelled_bookings=counts.get(BookingStatusEnum.CANCELLED, 0),
            completed_bookings=counts.get(BookingStatusEnum.COMPLETED, 0),
            bookings_this_month=this_month,
            bookings_last_month=last_month,
            growth_rate=growth_rate(this_month, last_month),
            top_providers=[
                TopProviderRead(provider_id=provider_id, provider_name=name, booking_count=count)
                for provider_id, name, count in top
            ],
        )

    async def delete_booking(self, booking_id: UUID, actor: User) -> None:
        """Hard-delete a booking regardless of its status."""
        self._ensure_admin(actor, "delete bookings")
        booking = await self.booking_repository.get_booking_by_id(booking_id, lock=True)
        if booking is None:
            raise NotFoundException("Booking not found")
        await self.booking_repository.delete_booking(booking)
        logger.info("Admin %s deleted booking %s (%s)", actor.id, booking_id, booking.status)

    async def list_provider_requests(
        self,
        actor: User,
        provider_id: UUID,
        status: BookingStatusEnum | None = None,
    ) -> list[Booking]:
        """Request inbox of any provider."""
        self._ensure_admin(actor, "view provider requests")
        return await self.request_queue.list_all(actor, provider_id, status)


async def get_admin_service(session: AsyncSession = Depends(get_db_session)) -> AdminService:
    """Dependency provider for admin service."""
    booking_repository = BookingRepository(session)
    return AdminService(
        repository=AdminRepository(session),
        booking_repository=booking_repository,
        request_queue=RequestQueueService(
            booking_repository=booking_repository,
            identity_repository=IdentityRepository(session),
        ),
    )
