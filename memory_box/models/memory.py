from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from memory_box.models.utils import generate_id, parse_iso_timestamp, utc_now_iso


class Memory(BaseModel):
    """A single diary entry with its photo, as kept in the memory box.

    Field names follow Python conventions; the persisted JSON uses the
    camelCase aliases (``createdAt``, ``photoDataUrl``).  Optional fields
    that were never supplied stay ``None`` and are left out of the JSON.

    ``id`` and ``created_at`` are required when validating stored data;
    use :meth:`create` to mint a new record.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    id: str
    created_at: str = Field(alias="createdAt")
    photo_data_url: str = Field(alias="photoDataUrl")
    diary: str
    nickname: str | None = None
    age: str | None = None
    keywords: str | None = None

    @field_validator("created_at")
    @classmethod
    def _created_at_is_iso(cls, value: str) -> str:
        parse_iso_timestamp(value)
        return value

    @classmethod
    def create(
        cls,
        *,
        diary: str,
        photo_data_url: str,
        nickname: str | None = None,
        age: str | None = None,
        keywords: str | None = None,
    ) -> Memory:
        return cls(
            id=generate_id(),
            created_at=utc_now_iso(),
            photo_data_url=photo_data_url,
            diary=diary,
            nickname=nickname,
            age=age,
            keywords=keywords,
        )

    @property
    def created_datetime(self) -> datetime:
        return parse_iso_timestamp(self.created_at)

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)
