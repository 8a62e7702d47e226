from __future__ import annotations

import io
from pathlib import Path

import pytest
from PIL import Image

from memory_box.generation import DiaryResult
from memory_box.llm.base import BaseLLMClient, DiaryCompletion, TokenUsage
from memory_box.memories.book import MemoryBook
from memory_box.profile.store import ProfileStore
from memory_box.storage.memory import InMemoryStorage

_ENV_VARS = (
    "OPENAI_API_KEY",
    "OPENAI_BASE_URL",
    "OPENAI_MODEL_ID",
    "MEMORY_BOX_DATA_DIR",
    "MEMORY_BOX_STORAGE",
    "MEMORY_BOX_STORAGE_QUOTA",
    "MEMORY_BOX_PROMPT_PATH",
    "MEMORY_BOX_HOST",
    "MEMORY_BOX_PORT",
)


def make_image_bytes(
    size: tuple[int, int] = (64, 48),
    fmt: str = "PNG",
    mode: str = "RGB",
    color: tuple[int, ...] = (230, 120, 90),
) -> bytes:
    """Encode a solid-colour image in memory."""
    buf = io.BytesIO()
    Image.new(mode, size, color).save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the config file at a temp path and clear all overrides."""
    path = tmp_path / "config" / "config.toml"
    monkeypatch.setenv("MEMORY_BOX_CONFIG", str(path))
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return path


@pytest.fixture()
def png_bytes() -> bytes:
    return make_image_bytes()


@pytest.fixture()
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture()
def book(storage: InMemoryStorage) -> MemoryBook:
    return MemoryBook(storage)


@pytest.fixture()
def profiles(storage: InMemoryStorage) -> ProfileStore:
    return ProfileStore(storage)


class FakeLLMClient(BaseLLMClient):
    """Records every call and answers with a canned completion."""

    def __init__(
        self,
        text: str = "今天你第一次拍手，笑得眼睛弯弯的。",
        usage: TokenUsage | None = None,
        error: Exception | None = None,
    ) -> None:
        self.text = text
        self.usage = usage
        self.error = error
        self.calls: list[tuple[str, str, str]] = []

    async def generate_diary(
        self,
        system_prompt: str,
        user_prompt: str,
        image_data_url: str,
    ) -> DiaryCompletion:
        self.calls.append((system_prompt, user_prompt, image_data_url))
        if self.error is not None:
            raise self.error
        return DiaryCompletion(text=self.text, usage=self.usage)


class FakeGenerator:
    """Stands in for ``DiaryGenerator`` in flow tests."""

    def __init__(
        self,
        diary: str = "阳光落在你的小手上，你认真地拍了拍。",
        error: Exception | None = None,
    ) -> None:
        self.diary = diary
        self.error = error
        self.calls: list[dict] = []

    async def generate(
        self,
        photo: bytes | None,
        media_type: str | None,
        nickname: str | None = None,
        age: str | None = None,
        keywords: str | None = None,
    ) -> DiaryResult:
        self.calls.append(
            {
                "photo": photo,
                "media_type": media_type,
                "nickname": nickname,
                "age": age,
                "keywords": keywords,
            }
        )
        if self.error is not None:
            raise self.error
        return DiaryResult(diary=self.diary, usage=TokenUsage(total_tokens=42))


@pytest.fixture()
def make_image():
    return make_image_bytes


@pytest.fixture()
def llm_client() -> FakeLLMClient:
    return FakeLLMClient()


@pytest.fixture()
def generator() -> FakeGenerator:
    return FakeGenerator()
