from __future__ import annotations

import logging
from typing import Iterable

from .document_store import DocumentStore
from .store_config import CollectionNames

logger = logging.getLogger(__name__)

DEMO_USER_IDS = ("teacher001", "hod001", "principal001", "registrar001", "student001")

DEMO_TEACHERS = {
    "teacher001": {
        "name": "Teacher Demo",
        "email": "teacher.demo@college.edu",
        "department": "Computer Science",
        "isDepartmentHead": False,
        "isActive": True,
    },
    "hod001": {
        "name": "HOD Demo",
        "email": "hod.demo@college.edu",
        "department": "Computer Science",
        "isDepartmentHead": True,
        "isActive": True,
    },
}

DEMO_USERS = {
    "teacher001": {"name": "Teacher Demo", "email": "teacher.demo@college.edu", "role": "teacher"},
    "hod001": {"name": "HOD Demo", "email": "hod.demo@college.edu", "role": "hod"},
    "student001": {
        "name": "Student Demo",
        "email": "student.demo@college.edu",
        "role": "student",
        "rollNumber": "CS001",
        "year": "2nd",
        "sem": "3",
        "div": "A",
        "department": "Computer Science",
    },
}


def ensure_persistent_backend(settings: dict) -> None:
    """Maintenance scripts run in their own process, so an in-memory store would vanish on exit."""
    backend = str(settings.get("STORE_BACKEND", "memory")).lower()
    if backend == "memory":
        raise RuntimeError("STORE_BACKEND=memory: changes would be lost when the script exits; set STORE_BACKEND=mongo")


async def seed_demo_users(store: DocumentStore, names: CollectionNames) -> int:
    """Upsert the demo faculty and student accounts; safe to run repeatedly."""
    for user_id, data in DEMO_USERS.items():
        await store.set((names.users,), user_id, {**data, "userId": user_id})
    for teacher_id, data in DEMO_TEACHERS.items():
        await store.set((names.teachers,), teacher_id, {**data, "userId": teacher_id})
    count = len(DEMO_USERS) + len(DEMO_TEACHERS)
    logger.info("Seeded %d demo user/teacher documents", count)
    return count


async def delete_user_data(
    store: DocumentStore,
    names: CollectionNames,
    user_ids: Iterable[str] = DEMO_USER_IDS,
) -> dict[str, int]:
    """Remove flat leave/attendance/notification documents owned by ``user_ids``.

    Accounts in ``users``/``teachers`` are kept. Hierarchical copies are left in
    place; they are only reachable through a class scope.
    """
    deleted: dict[str, int] = {}
    for collection in (names.leave_requests, names.attendance, names.notifications):
        deleted[collection] = 0
        for user_id in user_ids:
            docs = await store.query((collection,), {"userId": user_id})
            if not docs:
                logger.debug("[%s] nothing for userId %s", collection, user_id)
                continue
            for doc in docs:
                if await store.delete((collection,), doc["id"]):
                    deleted[collection] += 1
            logger.info("[%s] deleted %d documents for userId %s", collection, len(docs), user_id)
    return deleted
