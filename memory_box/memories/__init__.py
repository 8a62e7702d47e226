from memory_box.memories.book import MemoryBook, MemoryStats
from memory_box.memories.codec import STORAGE_KEY, parse_memories, serialize_memories

__all__ = [
    "STORAGE_KEY",
    "MemoryBook",
    "MemoryStats",
    "parse_memories",
    "serialize_memories",
]
