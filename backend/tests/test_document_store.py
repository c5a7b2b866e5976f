import json
from datetime import datetime, timezone

import pytest

from app.services import CaseStore, DocumentCollection, StoreError
from app.services.document_store import matches
from conftest import make_payload


def _doc(doc_id, device="D1", status="none", second=0):
    return {
        **make_payload(device),
        "id": doc_id,
        "deviceId": device,
        "status": status,
        "timestamp": datetime(2026, 1, 1, 0, 0, second, tzinfo=timezone.utc),
    }


def test_matches_equality_and_in():
    doc = {"status": "accepted", "deviceId": "D1"}

    assert matches(doc, None)
    assert matches(doc, {"deviceId": "D1"})
    assert matches(doc, {"status": {"$in": ["accepted", "rejected"]}})
    assert not matches(doc, {"status": "none"})
    assert not matches(doc, {"deviceId": "D1", "status": {"$in": ["none"]}})


async def test_find_sorts_and_filters():
    collection = DocumentCollection()
    await collection.open()
    await collection.insert_one(_doc("a", second=1))
    await collection.insert_one(_doc("b", device="D2", second=3))
    await collection.insert_one(_doc("c", status="accepted", second=2))

    newest_first = await collection.find(sort_desc_by="timestamp")
    assert [d["id"] for d in newest_first] == ["b", "c", "a"]

    device = await collection.find({"deviceId": "D1"}, sort_desc_by="timestamp")
    assert [d["id"] for d in device] == ["c", "a"]

    assert await collection.count({"status": "none"}) == 2


async def test_returned_documents_are_copies():
    collection = DocumentCollection()
    inserted = await collection.insert_one(_doc("a"))
    inserted["status"] = "accepted"

    (found,) = await collection.find()
    found["status"] = "rejected"

    assert (await collection.find())[0]["status"] == "none"


async def test_update_delete_and_delete_many():
    collection = DocumentCollection()
    for doc_id in ("a", "b", "c"):
        await collection.insert_one(_doc(doc_id))
    await collection.insert_one(_doc("d", device="D2"))

    updated = await collection.find_one_and_update("a", {"status": "accepted"})
    assert updated["status"] == "accepted"
    assert await collection.find_one_and_update("missing", {"status": "accepted"}) is None

    assert await collection.delete_many({"deviceId": "D1", "status": "none"}) == 2
    assert await collection.delete_many({"deviceId": "D1", "status": "none"}) == 0
    assert [d["id"] for d in await collection.find({"deviceId": "D1"})] == ["a"]

    assert (await collection.find_one_and_delete("a"))["id"] == "a"
    assert await collection.find_one_and_delete("a") is None
    assert await collection.find({"deviceId": "D1"}) == []
    assert await collection.count() == 1


async def test_duplicate_id_rejected():
    collection = DocumentCollection()
    await collection.insert_one(_doc("a"))

    with pytest.raises(StoreError):
        await collection.insert_one(_doc("a"))


async def test_file_round_trip(tmp_path):
    path = tmp_path / "cases.json"
    collection = DocumentCollection(path)
    await collection.open()
    await collection.insert_one(_doc("a", second=5))
    await collection.find_one_and_update("a", {"status": "rejected"})

    on_disk = json.loads(path.read_text(encoding="utf-8"))
    assert on_disk["a"]["timestamp"] == "2026-01-01T00:00:05+00:00"

    await collection.close()

    reopened = DocumentCollection(path)
    await reopened.open()
    (doc,) = await reopened.find({"deviceId": "D1"})
    assert doc["status"] == "rejected"
    assert doc["timestamp"] == datetime(2026, 1, 1, 0, 0, 5, tzinfo=timezone.utc)


async def test_corrupted_file_is_backed_up(tmp_path):
    path = tmp_path / "cases.json"
    path.write_text("{not json", encoding="utf-8")

    collection = DocumentCollection(path)
    await collection.open()

    assert await collection.count() == 0
    assert path.with_suffix(".json.backup").read_text(encoding="utf-8") == "{not json"


async def test_write_failure_raises_and_rolls_back(tmp_path):
    # A directory where the file should be makes every save fail
    path = tmp_path / "cases"
    path.mkdir()
    collection = DocumentCollection(path)

    with pytest.raises(StoreError):
        await collection.insert_one(_doc("a"))

    assert await collection.count() == 0
    assert await collection.find({"deviceId": "D1"}) == []


async def test_bad_records_skipped_on_load(tmp_path):
    path = tmp_path / "cases.json"
    good = {**_doc("good", second=1), "timestamp": "2026-01-01T00:00:01+00:00"}
    unknown_status = {**_doc("unknown-status", second=2), "status": "pending"}
    unknown_status["timestamp"] = "2026-01-01T00:00:02+00:00"
    no_timestamp = {**_doc("no-timestamp"), "timestamp": None}
    path.write_text(
        json.dumps({"good": good, "unknown-status": unknown_status, "no-timestamp": no_timestamp}),
        encoding="utf-8",
    )

    store = CaseStore(DocumentCollection(path))
    await store.open()

    assert [c.id for c in await store.list_all()] == ["good"]
    assert [c.id for c in await store.list_pending()] == ["good"]
    assert (await store.buzzer_status()).count == 1
