"""Domain models for the memory box.

These pydantic models are the canonical shapes of everything that is
persisted (``Memory``, ``Profile``).  The JSON layout they produce is
the on-disk format, so aliases must stay stable across versions.
"""

from memory_box.models.memory import Memory
from memory_box.models.profile import Profile
from memory_box.models.utils import generate_id, parse_iso_timestamp, utc_now_iso

__all__ = [
    "Memory",
    "Profile",
    "generate_id",
    "parse_iso_timestamp",
    "utc_now_iso",
]
