import asyncio

import pytest

from college_attendance.database.bootstrap import (
    DEMO_TEACHERS,
    delete_user_data,
    ensure_persistent_backend,
    seed_demo_users,
)
from college_attendance.database.memory_store import InMemoryDocumentStore
from college_attendance.database.store_config import CollectionNames


def test_seed_is_idempotent():
    store = InMemoryDocumentStore()
    names = CollectionNames()

    async def run():
        await seed_demo_users(store, names)
        await seed_demo_users(store, names)
        return await store.list_documents((names.teachers,)), await store.query((names.users,), {"role": "student"})

    teachers, students = asyncio.run(run())
    assert len(teachers) == len(DEMO_TEACHERS)
    assert [s["rollNumber"] for s in students] == ["CS001"]


def test_delete_user_data_keeps_accounts_and_other_users():
    store = InMemoryDocumentStore()
    names = CollectionNames()

    async def run():
        await seed_demo_users(store, names)
        await store.add((names.leave_requests,), {"userId": "student001"})
        await store.add((names.notifications,), {"userId": "student001"})
        await store.add((names.notifications,), {"userId": "real-user"})
        deleted = await delete_user_data(store, names, ["student001"])
        return (
            deleted,
            await store.list_documents((names.notifications,)),
            await store.list_documents((names.users,)),
        )

    deleted, notifications, users = asyncio.run(run())
    assert deleted == {"leaveRequests": 1, "attendance": 0, "notifications": 1}
    assert [n["userId"] for n in notifications] == ["real-user"]
    assert len(users) == 3


@pytest.mark.parametrize("backend", ["memory", "MEMORY"])
def test_scripts_refuse_the_in_memory_backend(backend):
    with pytest.raises(RuntimeError, match="lost"):
        ensure_persistent_backend({"STORE_BACKEND": backend})


def test_scripts_accept_mongo_backend():
    ensure_persistent_backend({"STORE_BACKEND": "mongo"})
