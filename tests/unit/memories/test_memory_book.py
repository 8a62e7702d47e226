from __future__ import annotations

import json
from datetime import UTC, datetime

import pytest

from memory_box.errors import MemoryNotFoundError, StorageQuotaExceededError
from memory_box.memories import STORAGE_KEY, MemoryBook
from memory_box.storage import InMemoryStorage

PHOTO = "data:image/jpeg;base64,AAAA"


def _stored(storage: InMemoryStorage) -> list[dict]:
    return json.loads(storage.get(STORAGE_KEY) or "[]")


# ── Loading ──────────────────────────────────────────────────────────


def test_starts_empty(book: MemoryBook) -> None:
    assert book.memories == []
    assert len(book) == 0


def test_loads_existing_collection(storage: InMemoryStorage) -> None:
    storage.set(
        STORAGE_KEY,
        json.dumps(
            [
                {
                    "id": "m-1",
                    "createdAt": "2024-05-01T12:00:00.000Z",
                    "photoDataUrl": PHOTO,
                    "diary": "今天学会了拍手",
                }
            ]
        ),
    )
    book = MemoryBook(storage)
    assert [m.id for m in book.memories] == ["m-1"]


def test_corrupt_collection_loads_as_empty_and_is_overwritten(
    storage: InMemoryStorage,
) -> None:
    storage.set(STORAGE_KEY, "{oops")
    book = MemoryBook(storage)
    assert book.memories == []

    book.add_memory("新的开始", PHOTO)
    assert len(_stored(storage)) == 1


def test_unparseable_timestamp_loads_as_empty(storage: InMemoryStorage) -> None:
    storage.set(
        STORAGE_KEY,
        json.dumps(
            [
                {
                    "id": "a",
                    "createdAt": "Tue May 01 2024",
                    "photoDataUrl": PHOTO,
                    "diary": "d",
                }
            ]
        ),
    )
    book = MemoryBook(storage)

    assert len(book) == 0
    assert book.stats().total == 0


# ── Mutations ────────────────────────────────────────────────────────


def test_add_memory_without_optional_fields(
    book: MemoryBook, storage: InMemoryStorage
) -> None:
    memory = book.add_memory("今天学会了拍手", PHOTO)

    assert memory.diary == "今天学会了拍手"
    assert memory.nickname is None and memory.age is None and memory.keywords is None
    [record] = _stored(storage)
    assert set(record) == {"id", "createdAt", "photoDataUrl", "diary"}
    assert record["id"] == memory.id


def test_add_memory_prepends(book: MemoryBook) -> None:
    first = book.add_memory("第一天", PHOTO)
    second = book.add_memory("第二天", PHOTO)
    assert [m.id for m in book.memories] == [second.id, first.id]


def test_memories_survive_a_new_book(storage: InMemoryStorage) -> None:
    book = MemoryBook(storage)
    memory = book.add_memory("d", PHOTO, nickname="小米", age="2 岁", keywords="拍手")
    book.close()

    reopened = MemoryBook(storage)
    assert reopened.memories == [memory]


def test_memories_property_returns_a_copy(book: MemoryBook) -> None:
    book.add_memory("d", PHOTO)
    book.memories.clear()
    assert len(book) == 1


def test_update_changes_only_given_fields(book: MemoryBook) -> None:
    original = book.add_memory("旧日记", PHOTO, nickname="小米", keywords="拍手")

    updated = book.update_memory(original.id, diary="新日记")

    assert updated.diary == "新日记"
    assert updated.id == original.id
    assert updated.created_at == original.created_at
    assert updated.photo_data_url == original.photo_data_url
    assert updated.nickname == "小米"
    assert updated.keywords == "拍手"
    assert book.get(original.id) == updated


def test_update_keeps_position(book: MemoryBook) -> None:
    older = book.add_memory("a", PHOTO)
    newer = book.add_memory("b", PHOTO)
    book.update_memory(older.id, keywords="k")
    assert [m.id for m in book.memories] == [newer.id, older.id]


def test_update_unknown_id_raises(book: MemoryBook) -> None:
    with pytest.raises(MemoryNotFoundError) as exc_info:
        book.update_memory("nope", diary="x")
    assert exc_info.value.memory_id == "nope"


def test_delete_memory(book: MemoryBook, storage: InMemoryStorage) -> None:
    keep = book.add_memory("keep", PHOTO)
    drop = book.add_memory("drop", PHOTO)

    book.delete_memory(drop.id)

    assert [m.id for m in book.memories] == [keep.id]
    assert [r["id"] for r in _stored(storage)] == [keep.id]


def test_delete_unknown_id_is_noop(book: MemoryBook) -> None:
    book.add_memory("keep", PHOTO)
    book.delete_memory("nope")
    assert len(book) == 1


def test_quota_failure_leaves_state_untouched() -> None:
    storage = InMemoryStorage(quota_bytes=600)
    book = MemoryBook(storage)
    kept = book.add_memory("第一篇", PHOTO)
    before = storage.get(STORAGE_KEY)

    with pytest.raises(StorageQuotaExceededError):
        book.add_memory("第二篇", "data:image/jpeg;base64," + "A" * 2000)

    assert book.memories == [kept]
    assert storage.get(STORAGE_KEY) == before


# ── Cross-instance sync ──────────────────────────────────────────────


def test_other_book_sees_writes(storage: InMemoryStorage) -> None:
    tab_a = MemoryBook(storage)
    tab_b = MemoryBook(storage)

    memory = tab_a.add_memory("来自另一个标签页", PHOTO)
    assert tab_b.memories == [memory]

    tab_b.delete_memory(memory.id)
    assert tab_a.memories == []


def test_closed_book_stops_syncing(storage: InMemoryStorage) -> None:
    tab_a = MemoryBook(storage)
    tab_b = MemoryBook(storage)
    tab_b.close()

    tab_a.add_memory("d", PHOTO)
    assert tab_b.memories == []

    tab_b.refresh()
    assert len(tab_b) == 1


def test_external_removal_clears_book(storage: InMemoryStorage) -> None:
    book = MemoryBook(storage)
    book.add_memory("d", PHOTO)
    storage.remove(STORAGE_KEY)
    assert book.memories == []


def test_unrelated_keys_are_ignored(storage: InMemoryStorage) -> None:
    book = MemoryBook(storage)
    book.add_memory("d", PHOTO)
    storage.set("memory-box/profile", "{}")
    assert len(book) == 1


# ── Stats ────────────────────────────────────────────────────────────


def _seed(storage: InMemoryStorage, *timestamps: str) -> MemoryBook:
    storage.set(
        STORAGE_KEY,
        json.dumps(
            [
                {"id": f"m-{i}", "createdAt": ts, "photoDataUrl": PHOTO, "diary": "d"}
                for i, ts in enumerate(timestamps)
            ]
        ),
    )
    return MemoryBook(storage)


def test_stats_empty(book: MemoryBook) -> None:
    stats = book.stats()
    assert stats.total == 0
    assert stats.first_date is None
    assert stats.days_together == 0


def test_stats_counts_from_earliest_memory(storage: InMemoryStorage) -> None:
    book = _seed(storage, "2024-01-03T12:00:00.000Z", "2024-01-01T00:00:00.000Z")

    stats = book.stats(now=datetime(2024, 1, 5, tzinfo=UTC))

    assert stats.total == 2
    assert stats.first_date == datetime(2024, 1, 1, tzinfo=UTC)
    assert stats.days_together == 4


def test_stats_rounds_partial_days_up(storage: InMemoryStorage) -> None:
    book = _seed(storage, "2024-01-01T00:00:00.000Z")
    stats = book.stats(now=datetime(2024, 1, 2, 1, 0, tzinfo=UTC))
    assert stats.days_together == 2


def test_stats_is_at_least_one_day(storage: InMemoryStorage) -> None:
    book = _seed(storage, "2024-01-01T00:00:00.000Z")
    stats = book.stats(now=datetime(2024, 1, 1, tzinfo=UTC))
    assert stats.days_together == 1
