import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from college_attendance.core.enums import NotificationCategory, NotificationType
from college_attendance.core.exceptions import NotFoundError, ValidationError
from college_attendance.database.memory_store import InMemoryDocumentStore
from college_attendance.mirror.store import FlatMirrorStore
from college_attendance.notifications.service import NotificationService


def _service():
    ticks = iter(datetime(2024, 1, 1, tzinfo=timezone.utc) + timedelta(minutes=i) for i in range(1000))
    return NotificationService(FlatMirrorStore(InMemoryDocumentStore(), "notifications"), clock=lambda: next(ticks))


def test_list_is_newest_first_and_capped():
    svc = _service()

    async def run():
        for i in range(55):
            await svc.create_notification(user_id="U1", title=f"n{i}", message="m")
        await svc.create_notification(user_id="U2", title="other", message="m")
        return await svc.get_notifications_by_user("U1")

    items = asyncio.run(run())
    assert len(items) == 50
    assert items[0].title == "n54"
    assert all(n.user_id == "U1" for n in items)


def test_unread_count_and_mark_as_read():
    svc = _service()

    async def run():
        first = await svc.create_notification(
            user_id="U1", title="t", message="m", type=NotificationType.WARNING, category=NotificationCategory.LEAVE
        )
        await svc.create_notification(user_id="U1", title="t2", message="m")
        await svc.mark_as_read(first)
        return await svc.get_unread_count("U1"), await svc.get_notifications_by_user("U1")

    unread, items = asyncio.run(run())
    assert unread == 1
    read = [n for n in items if n.read]
    assert read[0].type == NotificationType.WARNING
    assert read[0].read_at is not None


def test_missing_notification_and_target_user():
    svc = _service()

    with pytest.raises(NotFoundError):
        asyncio.run(svc.archive("missing"))
    with pytest.raises(ValidationError):
        asyncio.run(svc.create_notification(user_id="", title="t", message="m"))


def test_delete_removes_notification():
    svc = _service()

    async def run():
        nid = await svc.create_notification(user_id="U1", title="t", message="m")
        return await svc.delete(nid), await svc.get_notifications_by_user("U1")

    removed, items = asyncio.run(run())
    assert removed is True
    assert items == []
