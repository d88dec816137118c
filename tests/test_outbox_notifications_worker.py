from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

import pytest

from sessionbook.core.enums import NotificationStatusEnum, OutboxStatusEnum
from sessionbook.modules.notifications.outbox_worker import NotificationsOutboxWorker


@dataclass
class FakeOutboxEvent:
    id: UUID
    event_type: str
    payload: dict
    status: OutboxStatusEnum = OutboxStatusEnum.PENDING
    retries: int = 0
    occurred_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    processed_at: datetime | None = None
    error_message: str | None = None


@dataclass
class FakeNotification:
    id: UUID
    user_id: UUID
    kind: str
    title: str
    body: str
    payload: dict
    status: NotificationStatusEnum = NotificationStatusEnum.UNREAD


class FakeOutboxRepository:
    def __init__(self, events: list[FakeOutboxEvent]) -> None:
        self.events = events

    async def list_pending_outbox(self, limit: int) -> list[FakeOutboxEvent]:
        return [event for event in self.events if event.status == OutboxStatusEnum.PENDING][:limit]

    async def list_failed_outbox(self, limit: int, max_retries: int) -> list[FakeOutboxEvent]:
        return [
            event
            for event in self.events
            if event.status == OutboxStatusEnum.FAILED and event.retries < max_retries
        ][:limit]

    async def mark_outbox_pending(self, event: FakeOutboxEvent) -> FakeOutboxEvent:
        event.status = OutboxStatusEnum.PENDING
        event.error_message = None
        event.updated_at = datetime.now(UTC)
        return event

    async def mark_outbox_processed(
        self,
        event: FakeOutboxEvent,
        processed_at: datetime,
    ) -> FakeOutboxEvent:
        event.status = OutboxStatusEnum.PROCESSED
        event.processed_at = processed_at
        event.error_message = None
        event.updated_at = processed_at
        return event

    async def mark_outbox_failed(
        self,
        event: FakeOutboxEvent,
        error_message: str,
    ) -> FakeOutboxEvent:
        event.status = OutboxStatusEnum.FAILED
        event.retries += 1
        event.error_message = error_message
        event.updated_at = datetime.now(UTC)
        return event


class FakeNotificationsRepository:
    def __init__(self) -> None:
        self.notifications: list[FakeNotification] = []

    async def create_notification(
        self,
        user_id: UUID,
        kind: str,
        title: str,
        body: str,
        payload: dict,
    ) -> FakeNotification:
        notification = FakeNotification(
            id=uuid4(),
            user_id=user_id,
            kind=kind,
            title=title,
            body=body,
            payload=payload,
        )
        self.notifications.append(notification)
        return notification


def make_worker(
    events: list[FakeOutboxEvent],
    *,
    now: datetime | None = None,
    base_backoff_seconds: int = 30,
) -> tuple[NotificationsOutboxWorker, FakeOutboxRepository, FakeNotificationsRepository]:
    now_point = now or datetime.now(UTC)
    outbox_repo = FakeOutboxRepository(events)
    notifications_repo = FakeNotificationsRepository()
    worker = NotificationsOutboxWorker(
        outbox_repository=outbox_repo,  # type: ignore[arg-type]
        notifications_repository=notifications_repo,  # type: ignore[arg-type]
        now_provider=lambda: now_point,
        base_backoff_seconds=base_backoff_seconds,
    )
    return worker, outbox_repo, notifications_repo


def booking_payload(recipient_id: UUID, student_id: UUID, **extra) -> dict:
    payload = {
        "booking_id": str(uuid4()),
        "student_id": str(student_id),
        "provider_id": str(uuid4()),
        "student_name": "Sam Student",
        "provider_name": "Tia Tutor",
        "start_at": "2026-03-02T09:15:00+00:00",
        "recipient_id": str(recipient_id),
    }
    payload.update(extra)
    return payload


@pytest.mark.asyncio
async def test_worker_processes_booking_confirmed_into_notification() -> None:
    student_id = uuid4()
    event = FakeOutboxEvent(
        id=uuid4(),
        event_type="booking.confirmed",
        payload=booking_payload(student_id, student_id),
    )
    worker, _, notifications_repo = make_worker(
        [event],
        now=datetime(2026, 2, 23, 12, 0, tzinfo=UTC),
    )

    stats = await worker.run_once()

    assert stats == {"requeued": 0, "processed": 1, "failed": 0, "dispatched": 1}
    assert event.status == OutboxStatusEnum.PROCESSED
    assert len(notifications_repo.notifications) == 1
    notification = notifications_repo.notifications[0]
    assert notification.user_id == student_id
    assert notification.kind == "booking.confirmed"
    assert notification.status == NotificationStatusEnum.UNREAD
    assert "Tia Tutor" in notification.body


@pytest.mark.asyncio
async def test_worker_names_student_when_provider_is_recipient() -> None:
    provider_id = uuid4()
    event = FakeOutboxEvent(
        id=uuid4(),
        event_type="booking.cancelled",
        payload=booking_payload(provider_id, uuid4(), cancellation_reason="Cancelled by student"),
    )
    worker, _, notifications_repo = make_worker([event])

    await worker.run_once()

    notification = notifications_repo.notifications[0]
    assert notification.user_id == provider_id
    assert notification.title == "Session cancelled"
    assert "Sam Student" in notification.body
    assert "Cancelled by student" in notification.body


@pytest.mark.asyncio
async def test_worker_processes_unknown_event_without_dispatch() -> None:
    event = FakeOutboxEvent(
        id=uuid4(),
        event_type="unknown.event",
        payload={},
    )
    worker, _, notifications_repo = make_worker(
        [event],
        now=datetime(2026, 2, 23, 12, 0, tzinfo=UTC),
    )

    stats = await worker.run_once()

    assert stats == {"requeued": 0, "processed": 1, "failed": 0, "dispatched": 0}
    assert event.status == OutboxStatusEnum.PROCESSED
    assert notifications_repo.notifications == []


@pytest.mark.asyncio
async def test_worker_requeues_failed_event_after_backoff() -> None:
    student_id = uuid4()
    now_point = datetime(2026, 2, 23, 12, 0, tzinfo=UTC)
    event = FakeOutboxEvent(
        id=uuid4(),
        event_type="booking.completed",
        payload=booking_payload(student_id, student_id),
        status=OutboxStatusEnum.FAILED,
        retries=1,
        occurred_at=now_point - timedelta(minutes=10),
        updated_at=now_point - timedelta(minutes=2),
    )
    worker, _, notifications_repo = make_worker(
        [event],
        now=now_point,
        base_backoff_seconds=30,
    )

    stats = await worker.run_once()

    assert stats["requeued"] == 1
    assert stats["processed"] == 1
    assert event.status == OutboxStatusEnum.PROCESSED
    assert len(notifications_repo.notifications) == 1


@pytest.mark.asyncio
async def test_worker_keeps_failed_event_until_backoff_elapses() -> None:
    now_point = datetime(2026, 2, 23, 12, 0, tzinfo=UTC)
    event = FakeOutboxEvent(
        id=uuid4(),
        event_type="booking.completed",
        payload={},
        status=OutboxStatusEnum.FAILED,
        retries=3,
        updated_at=now_point - timedelta(seconds=60),
    )
    worker, _, _ = make_worker([event], now=now_point, base_backoff_seconds=30)

    stats = await worker.run_once()

    assert stats["requeued"] == 0
    assert event.status == OutboxStatusEnum.FAILED


@pytest.mark.asyncio
async def test_worker_marks_event_failed_when_recipient_missing() -> None:
    event = FakeOutboxEvent(
        id=uuid4(),
        event_type="booking.confirmed",
        payload={},
    )
    worker, _, notifications_repo = make_worker(
        [event],
        now=datetime(2026, 2, 23, 12, 0, tzinfo=UTC),
    )

    stats = await worker.run_once()

    assert stats["processed"] == 0
    assert stats["failed"] == 1
    assert event.status == OutboxStatusEnum.FAILED
    assert event.retries == 1
    assert notifications_repo.notifications == []
