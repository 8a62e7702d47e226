from __future__ import annotations

import json
import logging

from memory_box.memories import parse_memories, serialize_memories
from memory_box.models import Memory


def test_empty_or_missing_is_no_memories() -> None:
    assert parse_memories(None) == []
    assert parse_memories("") == []
    assert parse_memories("[]") == []


def test_malformed_json_is_no_memories(caplog) -> None:
    with caplog.at_level(logging.ERROR):
        assert parse_memories("{not json") == []
    assert "Failed to parse stored memories" in caplog.text


def test_schema_mismatch_is_no_memories(caplog) -> None:
    with caplog.at_level(logging.WARNING):
        assert parse_memories(json.dumps({"id": "x"})) == []
        assert parse_memories(json.dumps([{"id": "x"}])) == []
    assert "failed schema validation" in caplog.text


def test_serialize_keeps_order_and_unicode() -> None:
    first = Memory.create(diary="今天学会了拍手", photo_data_url="p1")
    second = Memory.create(diary="第一次吃草莓", photo_data_url="p2", age="1 岁")

    raw = serialize_memories([first, second])

    assert "今天学会了拍手" in raw
    assert parse_memories(raw) == [first, second]
    assert "age" not in json.loads(raw)[0]
