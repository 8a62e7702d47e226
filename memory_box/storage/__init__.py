from memory_box.storage.base import KeyValueStorage, StorageEvent, StorageListener
from memory_box.storage.disk import DiskStorage
from memory_box.storage.memory import InMemoryStorage

__all__ = [
    "DiskStorage",
    "InMemoryStorage",
    "KeyValueStorage",
    "StorageEvent",
    "StorageListener",
]
