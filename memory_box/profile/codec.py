from __future__ import annotations

import json
import logging

from memory_box.errors import SchemaValidationError
from memory_box.models import Profile
from memory_box.schemas import validate_profile

logger = logging.getLogger(__name__)

PROFILE_STORAGE_KEY = "memory-box/profile"


def parse_profile(raw: str | None) -> Profile | None:
    """Decode a stored profile. Corrupt data is treated as no profile."""
    if not raw:
        return None
    try:
        decoded = json.loads(raw)
    except json.JSONDecodeError:
        logger.error("Failed to parse stored profile", exc_info=True)
        return None
    try:
        return validate_profile(decoded)
    except SchemaValidationError as exc:
        logger.warning("Stored profile failed schema validation: %s", exc.detail)
        return None


def serialize_profile(profile: Profile) -> str:
    return json.dumps(profile.to_json_dict(), ensure_ascii=False)
