"""Notifications business logic layer."""

from __future__ import annotations

from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from sessionbook.core.database import get_db_session
from sessionbook.core.enums import NotificationStatusEnum
from sessionbook.modules.identity.models import User
from sessionbook.modules.notifications.models import Notification
from sessionbook.modules.notifications.repository import NotificationsRepository
from sessionbook.shared.exceptions import NotFoundException, PermissionDeniedException
from sessionbook.shared.utils import utc_now


class NotificationsService:
    """Read side of the notifications materialized by the outbox worker."""

    def __init__(self, repository: NotificationsRepository) -> None:
        self.repository = repository

    async def list_my_notifications(self, actor: User, limit: int, offset: int) -> tuple[list[Notification], int]:
        """List notifications for current user."""
        return await self.repository.list_notifications_for_user(actor.id, limit, offset)

    async def mark_read(self, notification_id: UUID, actor: User) -> Notification:
        """Mark a notification read; only its recipient may do so."""
        notification = await self.repository.get_notification_by_id(notification_id)
        if notification is None:
            raise NotFoundException("Notification not found")
        if notification.user_id != actor.id:
            raise PermissionDeniedException("Only the recipient can update this notification")
        if notification.status == NotificationStatusEnum.READ:
            return notification
        return await self.repository.mark_read(notification, utc_now())


async def get_notifications_service(session: AsyncSession = Depends(get_db_session)) -> NotificationsService:
    """Dependency provider for notifications service."""
    return NotificationsService(repository=NotificationsRepository(session))
