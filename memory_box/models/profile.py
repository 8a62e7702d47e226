from __future__ import annotations

import re
from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

_ISO_DATE = re.compile(r"\d{4}-\d{2}-\d{2}")


class Profile(BaseModel):
    """The child's profile. One per store, overwritten wholesale on save."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    nickname: str
    birthdate: str

    @field_validator("nickname")
    @classmethod
    def _nickname_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("nickname must not be empty")
        return value

    @field_validator("birthdate")
    @classmethod
    def _birthdate_is_date(cls, value: str) -> str:
        if not _ISO_DATE.fullmatch(value):
            raise ValueError("birthdate must be YYYY-MM-DD")
        date.fromisoformat(value)
        return value

    @property
    def birth_date(self) -> date:
        return date.fromisoformat(self.birthdate)

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump()
