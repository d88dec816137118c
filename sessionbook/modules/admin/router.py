"""Admin API router."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from sessionbook.core.enums import BookingStatusEnum
from sessionbook.modules.admin.schemas import BookingStatisticsRead
from sessionbook.modules.admin.service import AdminService, get_admin_service
from sessionbook.modules.booking.schemas import BookingFilters, BookingRead
from sessionbook.modules.identity.service import get_current_user
from sessionbook.shared.pagination import Page, build_page, get_pagination_params

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/bookings", response_model=Page[BookingRead])
async def list_all_bookings(
    booking_status: BookingStatusEnum | None = Query(default=None, alias="status"),
    start_date: datetime | None = Query(default=None),
    end_date: datetime | None = Query(default=None),
    student_id: UUID | None = Query(default=None),
    provider_id: UUID | None = Query(default=None),
    pagination=Depends(get_pagination_params),
    service: AdminService = Depends(get_admin_service),
    current_user=Depends(get_current_user),
) -> Page[BookingRead]:
    """List every booking with optional filters."""
    filters = BookingFilters(
        status=booking_status,
        start_date=start_date,
        end_date=end_date,
        student_id=student_id,
        provider_id=provider_id,
    )
    items, total = await service.list_bookings(current_user, filters, pagination.limit, pagination.offset)
    serialized = [BookingRead.model_validate(item) for item in items]
    return build_page(serialized, total, pagination)


@router.get("/bookings/statistics", response_model=BookingStatisticsRead)
async def get_booking_statistics(
    service: AdminService = Depends(get_admin_service),
    current_user=Depends(get_current_user),
) -> BookingStatisticsRead:
    """Booking statistics for the dashboard."""
    return await service.get_booking_statistics(current_user)


@router.get("/providers/{provider_id}/requests", response_model=list[BookingRead])
async def list_provider_requests(
    provider_id: UUID,
    booking_status: BookingStatusEnum | None = Query(default=None, alias="status"),
    service: AdminService = Depends(get_admin_service),
    current_user=Depends(get_current_user),
) -> list[BookingRead]:
    """Session requests of one provider."""
    bookings = await service.list_provider_requests(current_user, provider_id, booking_status)
    return [BookingRead.model_validate(item) for item in bookings]


@router.delete("/bookings/{booking_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_booking(
    booking_id: UUID,
    service: AdminService = Depends(get_admin_service),
    current_user=Depends(get_current_user),
) -> Response:
    """Remove a booking outright."""
    await service.delete_booking(booking_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
