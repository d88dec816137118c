"""Notification emission used by booking lifecycle transitions."""

from __future__ import annotations

from typing import Protocol
from uuid import UUID

from sessionbook.modules.notifications.repository import OutboxRepository


class NotificationDispatcher(Protocol):
    async def notify(self, user_id: UUID, kind: str, payload: dict) -> None: ...


class OutboxNotificationDispatcher:
    """Queues one outbox event per recipient inside a SAVEPOINT.

    A failed write rolls back only the savepoint, leaving the surrounding
    booking transaction usable; the error still propagates to the caller.
    """

    def __init__(self, outbox_repository: OutboxRepository) -> None:
        self.outbox_repository = outbox_repository

    async def notify(self, user_id: UUID, kind: str, payload: dict) -> None:
        async with self.outbox_repository.session.begin_nested():
            await self.outbox_repository.create_outbox_event(
                aggregate_type="booking",
                aggregate_id=str(payload.get("booking_id", "")),
                event_type=kind,
                payload={**payload, "recipient_id": str(user_id)},
            )
