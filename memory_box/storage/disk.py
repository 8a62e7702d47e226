from __future__ import annotations

import errno
import logging
import os
import tempfile
from pathlib import Path
from urllib.parse import quote, unquote

from memory_box.errors import StorageQuotaExceededError
from memory_box.storage.base import KeyValueStorage, StorageEvent

logger = logging.getLogger(__name__)

_SUFFIX = ".json"
_QUOTA_ERRNOS = {errno.ENOSPC, getattr(errno, "EDQUOT", errno.ENOSPC)}


class DiskStorage(KeyValueStorage):
    """Local filesystem storage: one UTF-8 file per key under ``base_path``.

    Keys are percent-encoded into file names, so ``memory-box/memories``
    lands in ``memory-box%2Fmemories.json``.  Writes go through a temp
    file and ``os.replace`` so a failed write never truncates the old value.

    Other processes writing to the same directory are picked up by
    :meth:`poll`, which emits a ``StorageEvent`` for every key whose file
    changed since the last poll.
    """

    def __init__(self, base_path: str, quota_bytes: int | None = None) -> None:
        super().__init__()
        self._base = Path(base_path)
        self._base.mkdir(parents=True, exist_ok=True)
        self._quota_bytes = quota_bytes
        self._stamps: dict[str, tuple[int, int] | None] = self._scan()

    def _resolve(self, key: str) -> Path:
        return self._base / (quote(key, safe="") + _SUFFIX)

    def _key_for(self, path: Path) -> str:
        return unquote(path.name[: -len(_SUFFIX)])

    @staticmethod
    def _stamp(path: Path) -> tuple[int, int] | None:
        try:
            st = path.stat()
        except FileNotFoundError:
            return None
        return st.st_mtime_ns, st.st_size

    def _scan(self) -> dict[str, tuple[int, int] | None]:
        return {
            self._key_for(p): self._stamp(p) for p in self._base.glob("*" + _SUFFIX)
        }

    # ---- interface ----

    def get(self, key: str) -> str | None:
        try:
            return self._resolve(key).read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def keys(self) -> list[str]:
        return sorted(self._key_for(p) for p in self._base.glob("*" + _SUFFIX))

    def used_bytes(self) -> int:
        return sum(p.stat().st_size for p in self._base.glob("*" + _SUFFIX))

    def _write(self, key: str, value: str) -> None:
        path = self._resolve(key)
        data = value.encode("utf-8")

        if self._quota_bytes is not None:
            used = self.used_bytes()
            if path.exists():
                used -= path.stat().st_size
            if used + len(data) > self._quota_bytes:
                raise StorageQuotaExceededError(key)

        tmp_name: str | None = None
        try:
            fd, tmp_name = tempfile.mkstemp(dir=self._base, prefix=".tmp-")
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp_name, path)
        except OSError as exc:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            if exc.errno in _QUOTA_ERRNOS:
                raise StorageQuotaExceededError(key) from exc
            raise
        self._stamps[key] = self._stamp(path)

    def _delete(self, key: str) -> None:
        self._resolve(key).unlink(missing_ok=True)
        self._stamps[key] = None

    def poll(self) -> list[StorageEvent]:
        """Detect changes made outside this instance and notify listeners."""
        current = self._scan()
        events: list[StorageEvent] = []
        for key in sorted(set(current) | set(self._stamps)):
            if current.get(key) == self._stamps.get(key):
                continue
            events.append(StorageEvent(key=key, new_value=self.get(key)))
        self._stamps = current
        for event in events:
            logger.info("Detected external change to %s", event.key)
            self._notify(event, None)
        return events
