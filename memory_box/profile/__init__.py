from memory_box.profile.age import calculate_age_label
from memory_box.profile.codec import (
    PROFILE_STORAGE_KEY,
    parse_profile,
    serialize_profile,
)
from memory_box.profile.store import ProfileStore

__all__ = [
    "PROFILE_STORAGE_KEY",
    "ProfileStore",
    "calculate_age_label",
    "parse_profile",
    "serialize_profile",
]
