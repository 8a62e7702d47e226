"""Validation of decoded JSON against the persisted record shapes.

Both validators are pure: they take an already-decoded JSON value and
either return the typed entity or raise ``SchemaValidationError``.
"""

from __future__ import annotations

from typing import Any

from pydantic import TypeAdapter, ValidationError

from memory_box.errors import SchemaValidationError
from memory_box.models import Memory, Profile

_MEMORY_LIST = TypeAdapter(list[Memory])


def validate_memories(raw: Any) -> list[Memory]:
    """Validate a decoded memory collection (a JSON array of records)."""
    try:
        return _MEMORY_LIST.validate_python(raw)
    except ValidationError as exc:
        raise SchemaValidationError("memories", str(exc)) from exc


def validate_profile(raw: Any) -> Profile:
    """Validate a decoded profile (a JSON object)."""
    try:
        return Profile.model_validate(raw)
    except ValidationError as exc:
        raise SchemaValidationError("profile", str(exc)) from exc
