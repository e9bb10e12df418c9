from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal, Mapping, Optional

from ..common.serialization import compact, parse_timestamp
from ..core.enums import NotificationCategory, NotificationType, Priority
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class Notification:
    notification_id: str
    user_id: str
    title: str
    message: str
    type: NotificationType = NotificationType.INFO
    category: NotificationCategory = NotificationCategory.SYSTEM
    priority: Priority = Priority.MEDIUM
    action_required: bool = False
    read: bool = False
    archived: bool = False
    details: dict[str, Any] = field(default_factory=dict, hash=False, compare=False)
    created_at: Optional[datetime] = None
    read_at: Optional[datetime] = None
    kind: Literal["notification"] = "notification"

    def to_document(self) -> dict[str, Any]:
        return compact(
            {
                "kind": self.kind,
                "userId": self.user_id,
                "title": self.title,
                "message": self.message,
                "type": self.type.value,
                "category": self.category.value,
                "priority": self.priority.value,
                "actionRequired": self.action_required,
                "read": self.read,
                "archived": self.archived,
                "details": self.details or None,
                "createdAt": self.created_at,
                "readAt": self.read_at,
            }
        )

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "Notification":
        notification_id = str(doc.get("id") or "").strip()
        if not notification_id or not doc.get("userId"):
            raise ValidationError("Notification document without id or userId")
        try:
            return cls(
                notification_id=notification_id,
                user_id=str(doc["userId"]),
                title=str(doc.get("title") or ""),
                message=str(doc.get("message") or ""),
                type=NotificationType(doc.get("type") or NotificationType.INFO.value),
                category=NotificationCategory(doc.get("category") or NotificationCategory.SYSTEM.value),
                priority=Priority(doc.get("priority") or Priority.MEDIUM.value),
                action_required=bool(doc.get("actionRequired", False)),
                read=bool(doc.get("read", False)),
                archived=bool(doc.get("archived", False)),
                details=dict(doc.get("details") or doc.get("data") or {}),
                created_at=parse_timestamp(doc.get("createdAt")),
                read_at=parse_timestamp(doc.get("readAt")),
            )
        except ValueError as e:
            raise ValidationError(f"Invalid notification {notification_id}: {e}")
