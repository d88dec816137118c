from __future__ import annotations

from datetime import UTC, datetime, timedelta
from types import SimpleNamespace
from uuid import UUID, uuid4

import pytest

import sessionbook.modules.booking.service as booking_service_module
from sessionbook.core.enums import BookingStatusEnum, RoleEnum
from sessionbook.modules.booking.schemas import BookingCancelRequest, BookingFilters, BookingStatusUpdate
from sessionbook.modules.booking.service import BookingService
from sessionbook.shared.exceptions import (
    InvalidStateException,
    NotFoundException,
    PermissionDeniedException,
    ValidationException,
)

NOW = datetime(2024, 1, 8, 8, 0, tzinfo=UTC)


class FakeBookingRepository:
    def __init__(self, *bookings: SimpleNamespace) -> None:
        self.bookings = {booking.id: booking for booking in bookings}
        self.locked: list[UUID] = []
        self.saved: list[UUID] = []
        self.last_filters: BookingFilters | None = None

    async def get_booking_by_id(self, booking_id: UUID, *, lock: bool = False) -> SimpleNamespace | None:
        if lock:
            self.locked.append(booking_id)
        return self.bookings.get(booking_id)

    async def save(self, booking: SimpleNamespace) -> SimpleNamespace:
        self.saved.append(booking.id)
        return booking

    async def list_bookings(self, filters: BookingFilters, limit: int, offset: int):
        self.last_filters = filters
        return list(self.bookings.values()), len(self.bookings)


class RecordingDispatcher:
    def __init__(self, *, fail: bool = False) -> None:
        self.sent: list[tuple[UUID, str, dict]] = []
        self.fail = fail

    async def notify(self, user_id: UUID, kind: str, payload: dict) -> None:
        if self.fail:
            raise RuntimeError("outbox unavailable")
        self.sent.append((user_id, kind, payload))


def make_user(role: RoleEnum) -> SimpleNamespace:
    return SimpleNamespace(id=uuid4(), role=role)


def make_booking(
    student: SimpleNamespace,
    provider: SimpleNamespace,
    *,
    status: BookingStatusEnum = BookingStatusEnum.PENDING,
    starts_in: timedelta = timedelta(days=2),
) -> SimpleNamespace:
    start_at = NOW + starts_in
    return SimpleNamespace(
        id=uuid4(),
        student_id=student.id,
        provider_id=provider.id,
        student_name="Sam Student",
        provider_name="Tia Tutor",
        start_at=start_at,
        end_at=start_at + timedelta(hours=1),
        status=status,
        cancellation_reason=None,
        confirmed_at=None,
        cancelled_at=None,
        completed_at=None,
    )


def make_service(
    booking: SimpleNamespace,
    *,
    dispatcher: RecordingDispatcher | None = None,
) -> tuple[BookingService, FakeBookingRepository, RecordingDispatcher]:
    repo = FakeBookingRepository(booking)
    dispatcher = dispatcher or RecordingDispatcher()
    service = BookingService(
        booking_repository=repo,  # type: ignore[arg-type]
        resolver=None,  # type: ignore[arg-type]
        dispatcher=dispatcher,
        cancellation_window_hours=24,
    )
    return service, repo, dispatcher


@pytest.fixture(autouse=True)
def frozen_clock(monkeypatch) -> None:
    monkeypatch.setattr(booking_service_module, "utc_now", lambda: NOW)


@pytest.fixture
def student() -> SimpleNamespace:
    return make_user(RoleEnum.STUDENT)


@pytest.fixture
def provider() -> SimpleNamespace:
    return make_user(RoleEnum.TUTOR)


@pytest.mark.asyncio
async def test_student_cancels_outside_window_with_default_reason(student, provider) -> None:
    booking = make_booking(student, provider)
    service, repo, dispatcher = make_service(booking)

    result = await service.cancel_booking(booking.id, BookingCancelRequest(), student)

    assert result.status == BookingStatusEnum.CANCELLED
    assert result.cancellation_reason == "Cancelled by student"
    assert result.cancelled_at == NOW
    assert repo.locked == [booking.id]
    assert repo.saved == [booking.id]
    assert [(user_id, kind) for user_id, kind, _ in dispatcher.sent] == [(provider.id, "booking.cancelled")]


@pytest.mark.asyncio
async def test_student_cannot_cancel_inside_window(student, provider) -> None:
    booking = make_booking(student, provider, starts_in=timedelta(hours=10))
    service, repo, dispatcher = make_service(booking)

    with pytest.raises(ValidationException) as exc:
        await service.cancel_booking(booking.id, BookingCancelRequest(), student)

    assert exc.value.message == "Bookings can only be cancelled at least 24 hours in advance"
    assert booking.status == BookingStatusEnum.PENDING
    assert repo.saved == []
    assert dispatcher.sent == []


@pytest.mark.asyncio
async def test_student_cancel_exactly_at_window_edge_is_rejected(student, provider) -> None:
    booking = make_booking(student, provider, starts_in=timedelta(hours=24))
    service, _, _ = make_service(booking)

    with pytest.raises(ValidationException):
        await service.cancel_booking(booking.id, BookingCancelRequest(), student)


@pytest.mark.asyncio
async def test_provider_may_cancel_inside_window(student, provider) -> None:
    booking = make_booking(student, provider, status=BookingStatusEnum.CONFIRMED, starts_in=timedelta(hours=10))
    service, _, dispatcher = make_service(booking)

    result = await service.cancel_booking(
        booking.id,
        BookingCancelRequest(cancellation_reason="Sick"),
        provider,
    )

    assert result.status == BookingStatusEnum.CANCELLED
    assert result.cancellation_reason == "Sick"
    assert [user_id for user_id, _, _ in dispatcher.sent] == [student.id]


@pytest.mark.asyncio
async def test_admin_cancel_notifies_both_participants(student, provider) -> None:
    booking = make_booking(student, provider, starts_in=timedelta(hours=1))
    service, _, dispatcher = make_service(booking)
    admin = make_user(RoleEnum.ADMIN)

    result = await service.cancel_booking(booking.id, BookingCancelRequest(), admin)

    assert result.cancellation_reason == "Cancelled by admin"
    assert sorted(user_id for user_id, _, _ in dispatcher.sent) == sorted([student.id, provider.id])


@pytest.mark.asyncio
async def test_cancelling_twice_is_invalid_state(student, provider) -> None:
    booking = make_booking(student, provider, status=BookingStatusEnum.CANCELLED)
    service, _, _ = make_service(booking)

    with pytest.raises(InvalidStateException) as exc:
        await service.cancel_booking(booking.id, BookingCancelRequest(), provider)

    assert exc.value.message == "Booking is already cancelled"


@pytest.mark.asyncio
async def test_completed_booking_cannot_be_cancelled_even_by_outsider(student, provider) -> None:
    booking = make_booking(student, provider, status=BookingStatusEnum.COMPLETED)
    service, _, _ = make_service(booking)

    with pytest.raises(InvalidStateException) as exc:
        await service.cancel_booking(booking.id, BookingCancelRequest(), make_user(RoleEnum.STUDENT))

    assert exc.value.message == "Cannot modify a completed booking"


@pytest.mark.asyncio
async def test_outsider_cannot_cancel(student, provider) -> None:
    booking = make_booking(student, provider)
    service, _, _ = make_service(booking)

    with pytest.raises(PermissionDeniedException):
        await service.cancel_booking(booking.id, BookingCancelRequest(), make_user(RoleEnum.COUNSELOR))


@pytest.mark.asyncio
async def test_missing_booking_is_not_found(student) -> None:
    service, _, _ = make_service(make_booking(student, make_user(RoleEnum.TUTOR)))

    with pytest.raises(NotFoundException):
        await service.cancel_booking(uuid4(), BookingCancelRequest(), student)


@pytest.mark.asyncio
async def test_provider_confirms_then_completes(student, provider) -> None:
    booking = make_booking(student, provider)
    service, _, dispatcher = make_service(booking)

    await service.update_status(booking.id, BookingStatusUpdate(status=BookingStatusEnum.CONFIRMED), provider)
    await service.update_status(booking.id, BookingStatusUpdate(status=BookingStatusEnum.COMPLETED), provider)

    assert booking.status == BookingStatusEnum.COMPLETED
    assert booking.confirmed_at == NOW
    assert booking.completed_at == NOW
    assert [kind for _, kind, _ in dispatcher.sent] == ["booking.confirmed", "booking.completed"]


@pytest.mark.asyncio
async def test_pending_cannot_jump_to_completed(student, provider) -> None:
    booking = make_booking(student, provider)
    service, _, _ = make_service(booking)

    with pytest.raises(InvalidStateException):
        await service.update_status(booking.id, BookingStatusUpdate(status=BookingStatusEnum.COMPLETED), provider)


@pytest.mark.asyncio
async def test_student_cannot_confirm(student, provider) -> None:
    booking = make_booking(student, provider)
    service, _, _ = make_service(booking)

    with pytest.raises(PermissionDeniedException):
        await service.update_status(booking.id, BookingStatusUpdate(status=BookingStatusEnum.CONFIRMED), student)


@pytest.mark.asyncio
async def test_status_update_back_to_pending_is_rejected(student, provider) -> None:
    booking = make_booking(student, provider, status=BookingStatusEnum.CONFIRMED)
    service, _, _ = make_service(booking)

    with pytest.raises(ValidationException):
        await service.update_status(booking.id, BookingStatusUpdate(status=BookingStatusEnum.PENDING), provider)


@pytest.mark.asyncio
async def test_notification_failure_does_not_undo_transition(student, provider) -> None:
    booking = make_booking(student, provider)
    service, repo, _ = make_service(booking, dispatcher=RecordingDispatcher(fail=True))

    result = await service.update_status(
        booking.id,
        BookingStatusUpdate(status=BookingStatusEnum.CONFIRMED),
        provider,
    )

    assert result.status == BookingStatusEnum.CONFIRMED
    assert repo.saved == [booking.id]


@pytest.mark.asyncio
async def test_notification_payload_describes_booking(student, provider) -> None:
    booking = make_booking(student, provider)
    service, _, dispatcher = make_service(booking)

    await service.update_status(booking.id, BookingStatusUpdate(status=BookingStatusEnum.CONFIRMED), provider)

    _, _, payload = dispatcher.sent[0]
    assert payload["booking_id"] == str(booking.id)
    assert payload["provider_name"] == "Tia Tutor"
    assert payload["status"] == "confirmed"
    assert payload["start_at"] == booking.start_at.isoformat()


@pytest.mark.asyncio
async def test_provider_accepts_request(student, provider) -> None:
    booking = make_booking(student, provider)
    service, repo, _ = make_service(booking)

    result = await service.respond_to_request(
        booking.id,
        BookingStatusUpdate(status=BookingStatusEnum.CONFIRMED),
        provider,
    )

    assert result.status == BookingStatusEnum.CONFIRMED
    assert repo.locked == [booking.id]


@pytest.mark.asyncio
async def test_provider_declines_request_with_default_reason(student, provider) -> None:
    booking = make_booking(student, provider, starts_in=timedelta(hours=2))
    service, _, _ = make_service(booking)

    result = await service.respond_to_request(
        booking.id,
        BookingStatusUpdate(status=BookingStatusEnum.CANCELLED),
        provider,
    )

    assert result.cancellation_reason == "Cancelled by provider"


@pytest.mark.asyncio
async def test_processed_request_cannot_be_answered_again(student, provider) -> None:
    booking = make_booking(student, provider, status=BookingStatusEnum.CONFIRMED)
    service, _, _ = make_service(booking)

    with pytest.raises(InvalidStateException) as exc:
        await service.respond_to_request(
            booking.id,
            BookingStatusUpdate(status=BookingStatusEnum.CANCELLED),
            provider,
        )

    assert exc.value.message == "Session request has already been processed"


@pytest.mark.asyncio
async def test_only_addressed_provider_may_answer_request(student, provider) -> None:
    booking = make_booking(student, provider)
    service, _, _ = make_service(booking)

    with pytest.raises(PermissionDeniedException):
        await service.respond_to_request(
            booking.id,
            BookingStatusUpdate(status=BookingStatusEnum.CONFIRMED),
            make_user(RoleEnum.ADMIN),
        )


@pytest.mark.asyncio
async def test_request_answer_must_be_confirm_or_cancel(student, provider) -> None:
    booking = make_booking(student, provider)
    service, _, _ = make_service(booking)

    with pytest.raises(ValidationException):
        await service.respond_to_request(
            booking.id,
            BookingStatusUpdate(status=BookingStatusEnum.COMPLETED),
            provider,
        )


@pytest.mark.asyncio
async def test_get_booking_hidden_from_outsiders(student, provider) -> None:
    booking = make_booking(student, provider)
    service, _, _ = make_service(booking)

    assert await service.get_booking(booking.id, student) is booking
    assert await service.get_booking(booking.id, make_user(RoleEnum.ADMIN)) is booking
    with pytest.raises(PermissionDeniedException):
        await service.get_booking(booking.id, make_user(RoleEnum.STUDENT))


@pytest.mark.asyncio
async def test_list_bookings_scopes_to_actor(student, provider) -> None:
    booking = make_booking(student, provider)
    service, repo, _ = make_service(booking)

    await service.list_bookings(student, BookingFilters(provider_id=uuid4()), limit=20, offset=0)
    assert repo.last_filters.student_id == student.id
    assert repo.last_filters.provider_id is None

    await service.list_bookings(provider, BookingFilters(student_id=uuid4()), limit=20, offset=0)
    assert repo.last_filters.provider_id == provider.id
    assert repo.last_filters.student_id is None

    other = uuid4()
    await service.list_bookings(make_user(RoleEnum.ADMIN), BookingFilters(provider_id=other), limit=20, offset=0)
    assert repo.last_filters.provider_id == other
