from __future__ import annotations

from memory_box.errors import StorageQuotaExceededError
from memory_box.storage.base import KeyValueStorage


def _size(key: str, value: str) -> int:
    return len(key.encode("utf-8")) + len(value.encode("utf-8"))


class InMemoryStorage(KeyValueStorage):
    """Storage backed by a plain dict.

    ``quota_bytes`` caps the UTF-8 size of all keys plus values; ``None``
    disables the limit.
    """

    def __init__(self, quota_bytes: int | None = None) -> None:
        super().__init__()
        self._data: dict[str, str] = {}
        self._quota_bytes = quota_bytes

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def keys(self) -> list[str]:
        return sorted(self._data)

    def used_bytes(self) -> int:
        return sum(_size(k, v) for k, v in self._data.items())

    def _write(self, key: str, value: str) -> None:
        if self._quota_bytes is not None:
            current = self._data.get(key)
            used = self.used_bytes()
            if current is not None:
                used -= _size(key, current)
            if used + _size(key, value) > self._quota_bytes:
                raise StorageQuotaExceededError(key)
        self._data[key] = value

    def _delete(self, key: str) -> None:
        self._data.pop(key, None)
