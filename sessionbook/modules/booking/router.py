"""Booking API router."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from sessionbook.core.enums import BookingStatusEnum
from sessionbook.modules.booking.queue import RequestQueueService, get_request_queue_service
from sessionbook.modules.booking.schemas import (
    BookingCancelRequest,
    BookingCreate,
    BookingFilters,
    BookingRead,
    BookingStatusUpdate,
)
from sessionbook.modules.booking.service import BookingService, get_booking_service
from sessionbook.modules.identity.service import get_current_user
from sessionbook.shared.pagination import Page, build_page, get_pagination_params

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.post("", response_model=BookingRead, status_code=status.HTTP_201_CREATED)
async def create_booking(
    payload: BookingCreate,
    service: BookingService = Depends(get_booking_service),
    current_user=Depends(get_current_user),
) -> BookingRead:
    """Book a session inside the provider's availability."""
    booking = await service.create_booking(payload, current_user)
    return BookingRead.model_validate(booking)


@router.get("", response_model=Page[BookingRead])
async def list_bookings(
    booking_status: BookingStatusEnum | None = Query(default=None, alias="status"),
    start_date: datetime | None = Query(default=None),
    end_date: datetime | None = Query(default=None),
    pagination=Depends(get_pagination_params),
    service: BookingService = Depends(get_booking_service),
    current_user=Depends(get_current_user),
) -> Page[BookingRead]:
    """List bookings visible to current user."""
    filters = BookingFilters(status=booking_status, start_date=start_date, end_date=end_date)
    items, total = await service.list_bookings(current_user, filters, pagination.limit, pagination.offset)
    serialized = [BookingRead.model_validate(item) for item in items]
    return build_page(serialized, total, pagination)


@router.get("/requests/pending", response_model=list[BookingRead])
async def list_pending_requests(
    provider_id: UUID | None = Query(default=None),
    queue: RequestQueueService = Depends(get_request_queue_service),
    current_user=Depends(get_current_user),
) -> list[BookingRead]:
    """Pending session requests of a provider."""
    bookings = await queue.list_pending(current_user, provider_id)
    return [BookingRead.model_validate(item) for item in bookings]


@router.get("/requests/all", response_model=list[BookingRead])
async def list_all_requests(
    provider_id: UUID | None = Query(default=None),
    booking_status: BookingStatusEnum | None = Query(default=None, alias="status"),
    queue: RequestQueueService = Depends(get_request_queue_service),
    current_user=Depends(get_current_user),
) -> list[BookingRead]:
    """All session requests of a provider."""
    bookings = await queue.list_all(current_user, provider_id, booking_status)
    return [BookingRead.model_validate(item) for item in bookings]


@router.put("/requests/{booking_id}", response_model=BookingRead)
async def respond_to_request(
    booking_id: UUID,
    payload: BookingStatusUpdate,
    service: BookingService = Depends(get_booking_service),
    current_user=Depends(get_current_user),
) -> BookingRead:
    """Confirm or decline a pending request."""
    booking = await service.respond_to_request(booking_id, payload, current_user)
    return BookingRead.model_validate(booking)


@router.get("/{booking_id}", response_model=BookingRead)
async def get_booking(
    booking_id: UUID,
    service: BookingService = Depends(get_booking_service),
    current_user=Depends(get_current_user),
) -> BookingRead:
    """Booking details."""
    booking = await service.get_booking(booking_id, current_user)
    return BookingRead.model_validate(booking)


@router.put("/{booking_id}/cancel", response_model=BookingRead)
async def cancel_booking(
    booking_id: UUID,
    payload: BookingCancelRequest | None = None,
    service: BookingService = Depends(get_booking_service),
    current_user=Depends(get_current_user),
) -> BookingRead:
    """Cancel booking."""
    booking = await service.cancel_booking(booking_id, payload or BookingCancelRequest(), current_user)
    return BookingRead.model_validate(booking)


@router.patch("/{booking_id}/status", response_model=BookingRead)
async def update_booking_status(
    booking_id: UUID,
    payload: BookingStatusUpdate,
    service: BookingService = Depends(get_booking_service),
    current_user=Depends(get_current_user),
) -> BookingRead:
    """Confirm, complete or cancel a booking."""
    booking = await service.update_status(booking_id, payload, current_user)
    return BookingRead.model_validate(booking)
