"""Notifications schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from sessionbook.core.enums import NotificationStatusEnum


class NotificationRead(BaseModel):
    """Notification response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    kind: str
    title: str
    body: str
    payload: dict
    status: NotificationStatusEnum
    read_at: datetime | None
    created_at: datetime
    updated_at: datetime
