from __future__ import annotations

import json
import logging

from memory_box.errors import SchemaValidationError
from memory_box.models import Memory
from memory_box.schemas import validate_memories

logger = logging.getLogger(__name__)

STORAGE_KEY = "memory-box/memories"


def parse_memories(raw: str | None) -> list[Memory]:
    """Decode a stored collection. Corrupt data is treated as no data."""
    if not raw:
        return []
    try:
        decoded = json.loads(raw)
    except json.JSONDecodeError:
        logger.error("Failed to parse stored memories", exc_info=True)
        return []
    try:
        return validate_memories(decoded)
    except SchemaValidationError as exc:
        logger.warning("Stored memories failed schema validation: %s", exc.detail)
        return []


def serialize_memories(memories: list[Memory]) -> str:
    return json.dumps([m.to_json_dict() for m in memories], ensure_ascii=False)
