from __future__ import annotations

from datetime import UTC, datetime

import pytest

from memory_box.errors import SchemaValidationError
from memory_box.models import Memory, parse_iso_timestamp, utc_now_iso
from memory_box.schemas import validate_memories, validate_profile


def _record(**overrides) -> dict:
    record = {
        "id": "m-1",
        "createdAt": "2024-05-01T12:00:00.000Z",
        "photoDataUrl": "data:image/jpeg;base64,AAAA",
        "diary": "今天学会了拍手",
    }
    record.update(overrides)
    return record


# ── Memory ───────────────────────────────────────────────────────────


def test_memory_accepts_camel_case_and_defaults_optionals() -> None:
    [memory] = validate_memories([_record()])
    assert memory.id == "m-1"
    assert memory.created_at == "2024-05-01T12:00:00.000Z"
    assert memory.photo_data_url == "data:image/jpeg;base64,AAAA"
    assert memory.nickname is None
    assert memory.age is None
    assert memory.keywords is None


def test_memory_json_omits_absent_fields() -> None:
    memory = Memory.create(diary="今天学会了拍手", photo_data_url="data:x;base64,")
    payload = memory.to_json_dict()
    assert set(payload) == {"id", "createdAt", "photoDataUrl", "diary"}


def test_memory_json_keeps_supplied_fields() -> None:
    memory = Memory.create(
        diary="d", photo_data_url="p", nickname="小米", age="2 岁", keywords="拍手"
    )
    payload = memory.to_json_dict()
    assert payload["nickname"] == "小米"
    assert payload["age"] == "2 岁"
    assert payload["keywords"] == "拍手"


def test_memory_create_mints_id_and_timestamp() -> None:
    a = Memory.create(diary="d", photo_data_url="p")
    b = Memory.create(diary="d", photo_data_url="p")
    assert a.id != b.id
    assert a.created_at.endswith("Z")
    assert a.created_datetime.tzinfo is not None


def test_unknown_keys_are_ignored() -> None:
    [memory] = validate_memories([_record(extra="ignored")])
    assert not hasattr(memory, "extra")


@pytest.mark.parametrize("missing", ["id", "createdAt", "photoDataUrl", "diary"])
def test_memory_missing_required_field_is_rejected(missing: str) -> None:
    record = _record()
    del record[missing]
    with pytest.raises(SchemaValidationError) as exc_info:
        validate_memories([record])
    assert exc_info.value.entity == "memories"


def test_memories_must_be_a_list() -> None:
    with pytest.raises(SchemaValidationError):
        validate_memories(_record())


def test_memory_wrong_type_is_rejected() -> None:
    with pytest.raises(SchemaValidationError):
        validate_memories([_record(diary=123)])


@pytest.mark.parametrize(
    "created_at", ["Tue May 01 2024", "", "2024-13-01T00:00:00Z", "yesterday"]
)
def test_memory_created_at_must_be_iso_8601(created_at: str) -> None:
    with pytest.raises(SchemaValidationError):
        validate_memories([_record(createdAt=created_at)])


# ── Profile ──────────────────────────────────────────────────────────


def test_profile_round_trip() -> None:
    profile = validate_profile({"nickname": "小米", "birthdate": "2022-01-15"})
    assert profile.birth_date.year == 2022
    assert profile.to_json_dict() == {"nickname": "小米", "birthdate": "2022-01-15"}


@pytest.mark.parametrize(
    "raw",
    [
        {"nickname": "   ", "birthdate": "2022-01-15"},
        {"nickname": "小米", "birthdate": "15/01/2022"},
        {"nickname": "小米", "birthdate": "20220115"},
        {"nickname": "小米", "birthdate": "2022-W02-6"},
        {"nickname": "小米"},
        ["小米", "2022-01-15"],
    ],
)
def test_invalid_profile_is_rejected(raw) -> None:
    with pytest.raises(SchemaValidationError) as exc_info:
        validate_profile(raw)
    assert exc_info.value.entity == "profile"


# ── Timestamps ───────────────────────────────────────────────────────


def test_utc_now_iso_has_millisecond_precision() -> None:
    value = utc_now_iso()
    assert value.endswith("Z")
    assert len(value.split(".")[1]) == 4  # "123Z"


def test_parse_iso_timestamp_accepts_z_and_naive() -> None:
    expected = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)
    assert parse_iso_timestamp("2024-05-01T12:00:00.000Z") == expected
    assert parse_iso_timestamp("2024-05-01T12:00:00") == expected
