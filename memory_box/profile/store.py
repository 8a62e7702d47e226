from __future__ import annotations

import logging
from datetime import date

from pydantic import ValidationError

from memory_box.errors import ProfileValidationError
from memory_box.models import Profile
from memory_box.profile.age import calculate_age_label
from memory_box.profile.codec import (
    PROFILE_STORAGE_KEY,
    parse_profile,
    serialize_profile,
)
from memory_box.storage.base import KeyValueStorage, StorageEvent

logger = logging.getLogger(__name__)


class ProfileStore:
    """Singleton child profile kept under one storage key."""

    def __init__(
        self, storage: KeyValueStorage, key: str = PROFILE_STORAGE_KEY
    ) -> None:
        self._storage = storage
        self._key = key
        self._profile: Profile | None = parse_profile(storage.get(key))
        self._unsubscribe = storage.subscribe(self._on_storage_event, origin=self)

    @property
    def profile(self) -> Profile | None:
        return self._profile

    def save_profile(self, nickname: str, birthdate: str) -> Profile:
        trimmed = nickname.strip()
        if not trimmed:
            raise ProfileValidationError("孩子昵称不能为空")
        try:
            profile = Profile(nickname=trimmed, birthdate=birthdate)
        except ValidationError as exc:
            raise ProfileValidationError(
                f"出生日期格式不正确（应为 YYYY-MM-DD）：{birthdate}"
            ) from exc

        self._storage.set(self._key, serialize_profile(profile), origin=self)
        self._profile = profile
        logger.info("Saved profile for %s", trimmed)
        return profile

    def clear_profile(self) -> None:
        self._storage.remove(self._key, origin=self)
        self._profile = None

    def age_label(self, reference_date: date | None = None) -> str:
        if self._profile is None:
            return ""
        return calculate_age_label(self._profile.birthdate, reference_date)

    def refresh(self) -> None:
        self._profile = parse_profile(self._storage.get(self._key))

    def close(self) -> None:
        self._unsubscribe()

    def _on_storage_event(self, event: StorageEvent) -> None:
        if event.key == self._key:
            self._profile = parse_profile(event.new_value)
