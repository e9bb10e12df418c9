from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from ..common.datetime_utils import now_utc
from ..core.constants import NOTIFICATION_LIST_LIMIT
from ..core.enums import NotificationCategory, NotificationType, Priority
from ..core.exceptions import DocumentNotFoundError, NotFoundError, ValidationError
from ..mirror.store import FlatMirrorStore
from .model import Notification

logger = logging.getLogger(__name__)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _newest_first(items: list[Notification]) -> list[Notification]:
    return sorted(items, key=lambda n: n.created_at or _EPOCH, reverse=True)


class NotificationService:
    def __init__(self, notifications: FlatMirrorStore, *, clock: Callable[[], datetime] = now_utc):
        self._notifications = notifications
        self._clock = clock

    async def create_notification(
        self,
        *,
        user_id: str,
        title: str,
        message: str,
        type: NotificationType = NotificationType.INFO,
        category: NotificationCategory = NotificationCategory.SYSTEM,
        priority: Priority = Priority.MEDIUM,
        action_required: bool = False,
        details: Optional[dict[str, Any]] = None,
    ) -> str:
        if not user_id:
            raise ValidationError("Notification needs a target user")
        notification = Notification(
            notification_id="",
            user_id=str(user_id),
            title=title,
            message=message,
            type=type,
            category=category,
            priority=priority,
            action_required=action_required,
            details=dict(details or {}),
            created_at=self._clock(),
        )
        notification_id = await self._notifications.add(notification.to_document())
        logger.info("Notification %s created for user %s (%s)", notification_id, user_id, category.value)
        return notification_id

    async def get_notifications_by_user(self, user_id: str, *, limit: int = NOTIFICATION_LIST_LIMIT) -> list[Notification]:
        docs = await self._notifications.query_by_user(user_id)
        items = []
        for doc in docs:
            try:
                items.append(Notification.from_document(doc))
            except ValidationError as e:
                logger.warning("Skipping malformed notification %s: %s", doc.get("id"), e)
        return _newest_first(items)[: int(limit)]

    async def _update(self, notification_id: str, data: dict[str, Any]) -> None:
        try:
            await self._notifications.update(notification_id, data)
        except DocumentNotFoundError:
            raise NotFoundError(f"Notification {notification_id} not found")

    async def mark_as_read(self, notification_id: str) -> None:
        await self._update(notification_id, {"read": True, "readAt": self._clock()})

    async def archive(self, notification_id: str) -> None:
        await self._update(notification_id, {"archived": True, "archivedAt": self._clock()})

    async def delete(self, notification_id: str) -> bool:
        return await self._notifications.delete(notification_id)

    async def get_unread_count(self, user_id: str) -> int:
        return len(await self._notifications.query(userId=user_id, read=False))
