from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import UTC, datetime

from memory_box.errors import MemoryNotFoundError, StorageQuotaExceededError
from memory_box.memories.codec import STORAGE_KEY, parse_memories, serialize_memories
from memory_box.models import Memory
from memory_box.storage.base import KeyValueStorage, StorageEvent

logger = logging.getLogger(__name__)

_SECONDS_PER_DAY = 24 * 60 * 60


@dataclass(frozen=True)
class MemoryStats:
    total: int
    first_date: datetime | None
    days_together: int


class MemoryBook:
    """Read-modify-write collection of memories over a key-value storage.

    The whole collection is read once on construction and rewritten on
    every mutation.  In-memory state only changes after the storage
    write succeeded, so a ``StorageQuotaExceededError`` leaves
    :attr:`memories` exactly as it was.

    Writes made to the same storage by another ``MemoryBook`` (another
    "tab") replace this book's state wholesale; there is no merge.
    """

    def __init__(self, storage: KeyValueStorage, key: str = STORAGE_KEY) -> None:
        self._storage = storage
        self._key = key
        self._memories: list[Memory] = parse_memories(storage.get(key))
        self._unsubscribe = storage.subscribe(self._on_storage_event, origin=self)

    @property
    def memories(self) -> list[Memory]:
        return list(self._memories)

    def __len__(self) -> int:
        return len(self._memories)

    def get(self, memory_id: str) -> Memory | None:
        return next((m for m in self._memories if m.id == memory_id), None)

    def refresh(self) -> None:
        self._memories = parse_memories(self._storage.get(self._key))

    def close(self) -> None:
        self._unsubscribe()

    # ── Mutations ────────────────────────────────────────────────────

    def add_memory(
        self,
        diary: str,
        photo_data_url: str,
        nickname: str | None = None,
        age: str | None = None,
        keywords: str | None = None,
    ) -> Memory:
        memory = Memory.create(
            diary=diary,
            photo_data_url=photo_data_url,
            nickname=nickname,
            age=age,
            keywords=keywords,
        )
        self._persist([memory, *self._memories])
        logger.info("Added memory %s", memory.id)
        return memory

    def update_memory(
        self,
        memory_id: str,
        *,
        diary: str | None = None,
        nickname: str | None = None,
        age: str | None = None,
        keywords: str | None = None,
    ) -> Memory:
        """Update the editable fields of one memory.

        ``None`` keeps the current value.  ``id``, ``created_at`` and the
        photo are never touched.
        """
        current = self.get(memory_id)
        if current is None:
            raise MemoryNotFoundError(memory_id)

        updated = current.model_copy(
            update={
                "diary": diary if diary is not None else current.diary,
                "nickname": nickname if nickname is not None else current.nickname,
                "age": age if age is not None else current.age,
                "keywords": keywords if keywords is not None else current.keywords,
            }
        )
        self._persist([updated if m.id == memory_id else m for m in self._memories])
        return updated

    def delete_memory(self, memory_id: str) -> None:
        self._persist([m for m in self._memories if m.id != memory_id])
        logger.info("Deleted memory %s", memory_id)

    # ── Derived ──────────────────────────────────────────────────────

    def stats(self, now: datetime | None = None) -> MemoryStats:
        if not self._memories:
            return MemoryStats(total=0, first_date=None, days_together=0)
        first = min(m.created_datetime for m in self._memories)
        elapsed = ((now or datetime.now(UTC)) - first).total_seconds()
        days = max(1, math.ceil(elapsed / _SECONDS_PER_DAY))
        return MemoryStats(
            total=len(self._memories), first_date=first, days_together=days
        )

    # ── Internals ────────────────────────────────────────────────────

    def _persist(self, next_memories: list[Memory]) -> None:
        try:
            self._storage.set(
                self._key, serialize_memories(next_memories), origin=self
            )
        except StorageQuotaExceededError:
            logger.error("Failed to persist memories: storage quota exceeded")
            raise
        self._memories = next_memories

    def _on_storage_event(self, event: StorageEvent) -> None:
        if event.key != self._key:
            return
        self._memories = parse_memories(event.new_value)
