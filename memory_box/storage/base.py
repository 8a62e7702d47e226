from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StorageEvent:
    """Notification that ``key`` changed; ``new_value`` is ``None`` on removal."""

    key: str
    new_value: str | None


StorageListener = Callable[[StorageEvent], None]


class KeyValueStorage(ABC):
    """Abstract string key-value store.

    Writers pass an ``origin`` token; listeners subscribed under the same
    origin are not notified of their own writes, mirroring how a browser
    only fires ``storage`` events in *other* tabs.
    """

    def __init__(self) -> None:
        self._listeners: list[tuple[object | None, StorageListener]] = []

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the value stored under ``key``, or ``None``."""
        ...

    @abstractmethod
    def _write(self, key: str, value: str) -> None:
        """Persist ``value``. Must raise ``StorageQuotaExceededError`` when full
        and leave the previous value in place on failure."""
        ...

    @abstractmethod
    def _delete(self, key: str) -> None: ...

    @abstractmethod
    def keys(self) -> list[str]:
        """List all stored keys."""
        ...

    def set(self, key: str, value: str, *, origin: object | None = None) -> None:
        self._write(key, value)
        self._notify(StorageEvent(key=key, new_value=value), origin)

    def remove(self, key: str, *, origin: object | None = None) -> None:
        self._delete(key)
        self._notify(StorageEvent(key=key, new_value=None), origin)

    def subscribe(
        self, listener: StorageListener, *, origin: object | None = None
    ) -> Callable[[], None]:
        """Register ``listener`` and return a callable that unregisters it."""
        entry = (origin, listener)
        self._listeners.append(entry)

        def unsubscribe() -> None:
            if entry in self._listeners:
                self._listeners.remove(entry)

        return unsubscribe

    def _notify(self, event: StorageEvent, origin: object | None) -> None:
        for listener_origin, listener in list(self._listeners):
            if origin is not None and listener_origin is origin:
                continue
            try:
                listener(event)
            except Exception:
                logger.error(
                    "Storage listener failed for key %s", event.key, exc_info=True
                )
