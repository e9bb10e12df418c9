import asyncio

import pytest

from college_attendance.core.exceptions import DocumentNotFoundError
from college_attendance.database.memory_store import InMemoryDocumentStore


def test_set_merges_by_default_and_replaces_on_request():
    store = InMemoryDocumentStore()

    async def run():
        await store.set(("c",), "d1", {"a": 1, "b": 2})
        await store.set(("c",), "d1", {"b": 3})
        merged = await store.get(("c",), "d1")
        await store.set(("c",), "d1", {"z": 0}, merge=False)
        return merged, await store.get(("c",), "d1")

    merged, replaced = asyncio.run(run())
    assert merged == {"id": "d1", "a": 1, "b": 3}
    assert replaced == {"id": "d1", "z": 0}


def test_returned_documents_are_copies():
    store = InMemoryDocumentStore()

    async def run():
        await store.set(("c",), "d1", {"tags": ["x"]})
        doc = await store.get(("c",), "d1")
        doc["tags"].append("y")
        return await store.get(("c",), "d1")

    assert asyncio.run(run())["tags"] == ["x"]


def test_update_of_missing_document_raises():
    with pytest.raises(DocumentNotFoundError):
        asyncio.run(InMemoryDocumentStore().update(("c",), "nope", {"a": 1}))


def test_query_supports_dotted_keys():
    store = InMemoryDocumentStore()

    async def run():
        await store.set(("c",), "d1", {"assignedTo": {"id": "T1"}, "status": "pending"})
        await store.set(("c",), "d2", {"assignedTo": {"id": "T2"}, "status": "pending"})
        return await store.query(("c",), {"assignedTo.id": "T2", "status": "pending"})

    assert [d["id"] for d in asyncio.run(run())] == ["d2"]


def test_child_collections_disappear_when_emptied():
    store = InMemoryDocumentStore()

    async def run():
        await store.set(("root", "2024", "01", "05"), "r1", {})
        await store.set(("root", "2024", "01", "07"), "r2", {})
        before = await store.list_child_collections(("root", "2024", "01"))
        await store.delete(("root", "2024", "01", "05"), "r1")
        after = await store.list_child_collections(("root", "2024", "01"))
        return before, after

    before, after = asyncio.run(run())
    assert before == ["05", "07"]
    assert after == ["07"]
