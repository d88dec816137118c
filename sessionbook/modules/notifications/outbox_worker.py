"""Outbox consumer that materializes booking events into notifications."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from uuid import UUID

from sessionbook.modules.notifications.models import OutboxEvent
from sessionbook.modules.notifications.repository import NotificationsRepository, OutboxRepository
from sessionbook.shared.utils import utc_now

logger = logging.getLogger(__name__)

BOOKING_TITLES = {
    "booking.confirmed": "Session confirmed",
    "booking.cancelled": "Session cancelled",
    "booking.completed": "Session completed",
}


@dataclass(slots=True)
class NotificationMessage:
    user_id: UUID
    kind: str
    title: str
    body: str
    payload: dict


class NotificationsOutboxWorker:
    """Process outbox events and create user notifications."""

    def __init__(
        self,
        outbox_repository: OutboxRepository,
        notifications_repository: NotificationsRepository,
        *,
        batch_size: int = 100,
        max_retries: int = 5,
        base_backoff_seconds: int = 30,
        max_backoff_seconds: int = 300,
        now_provider=utc_now,
    ) -> None:
        self.outbox_repository = outbox_repository
        self.notifications_repository = notifications_repository
        self.batch_size = batch_size
        self.max_retries = max_retries
        self.base_backoff_seconds = base_backoff_seconds
        self.max_backoff_seconds = max_backoff_seconds
        self.now_provider = now_provider

    async def run_once(self) -> dict[str, int]:
        """Run one processing cycle."""
        stats = {"requeued": 0, "processed": 0, "failed": 0, "dispatched": 0}
        stats["requeued"] = await self._requeue_retryable_failed_events()

        events = await self.outbox_repository.list_pending_outbox(limit=self.batch_size)
        for event in events:
            try:
                for message in self._build_messages(event):
                    await self.notifications_repository.create_notification(
                        user_id=message.user_id,
                        kind=message.kind,
                        title=message.title,
                        body=message.body,
                        payload=message.payload,
                    )
                    stats["dispatched"] += 1

                await self.outbox_repository.mark_outbox_processed(event, self.now_provider())
                stats["processed"] += 1
            except Exception as exc:
                logger.warning("Outbox event %s (%s) failed: %s", event.id, event.event_type, exc)
                await self.outbox_repository.mark_outbox_failed(event, str(exc))
                stats["failed"] += 1
        return stats

    async def _requeue_retryable_failed_events(self) -> int:
        now = self.now_provider()
        failed_events = await self.outbox_repository.list_failed_outbox(
            limit=self.batch_size,
            max_retries=self.max_retries,
        )
        requeued = 0
        for event in failed_events:
            if self._is_backoff_elapsed(event, now):
                await self.outbox_repository.mark_outbox_pending(event)
                requeued += 1
        return requeued

    def _is_backoff_elapsed(self, event: OutboxEvent, now: datetime) -> bool:
        retries = max(event.retries, 1)
        backoff_seconds = min(
            self.max_backoff_seconds,
            self.base_backoff_seconds * (2 ** (retries - 1)),
        )
        last_attempt_at = event.updated_at or event.occurred_at
        return now >= last_attempt_at + timedelta(seconds=backoff_seconds)

    def _build_messages(self, event: OutboxEvent) -> list[NotificationMessage]:
        payload = event.payload or {}
        title = BOOKING_TITLES.get(event.event_type)
        if title is None:
            return []

        recipient_id = self._required_uuid(payload, "recipient_id")
        start_at = payload.get("start_at", "unknown time")
        with_whom = (
            payload.get("provider_name")
            if str(recipient_id) == str(payload.get("student_id"))
            else payload.get("student_name")
        ) or "your counterpart"

        if event.event_type == "booking.confirmed":
            body = f"Your session with {with_whom} on {start_at} has been confirmed."
        elif event.event_type == "booking.completed":
            body = f"Your session with {with_whom} on {start_at} has been marked as completed."
        else:
            reason = payload.get("cancellation_reason") or "no reason given"
            body = f"Your session with {with_whom} on {start_at} has been cancelled: {reason}."

        return [
            NotificationMessage(
                user_id=recipient_id,
                kind=event.event_type,
                title=title,
                body=body,
                payload=payload,
            ),
        ]

    @staticmethod
    def _required_uuid(payload: dict, key: str) -> UUID:
        value = payload.get(key)
        if value is None:
            raise ValueError(f"Missing required key: {key}")
        return UUID(str(value))
