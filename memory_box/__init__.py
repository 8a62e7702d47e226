from __future__ import annotations

from pathlib import Path

from memory_box.config import Config, build_storage, load_config
from memory_box.errors import MemoryNotFoundError
from memory_box.flow import AuthoringFlow, Generator
from memory_box.generation import DiaryGenerator, DiaryResult
from memory_box.llm.litellm import LiteLLMVisionClient
from memory_box.memories.book import MemoryBook, MemoryStats
from memory_box.models import Memory, Profile
from memory_box.postcard import export_postcard
from memory_box.profile.store import ProfileStore
from memory_box.storage.base import KeyValueStorage

__all__ = [
    "Config",
    "DiaryGenerator",
    "DiaryResult",
    "Memory",
    "MemoryBook",
    "MemoryBox",
    "MemoryStats",
    "Profile",
    "ProfileStore",
]


class MemoryBox:
    """Main entry point tying storage, the two stores and generation together.

    Usage::

        box = MemoryBox.from_config(load_config())
        flow = box.authoring_flow()
        flow.start()
        flow.select_photo(photo_bytes, "image/jpeg")
        await flow.generate()
        memory = flow.save()
        box.export_postcard(memory.id)
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        config: Config | None = None,
    ) -> None:
        self._storage = storage
        self._config = config or Config()
        self.memories = MemoryBook(storage)
        self.profiles = ProfileStore(storage)

    @classmethod
    def from_config(cls, config: Config | None = None) -> MemoryBox:
        """Construct a MemoryBox whose storage backend is chosen by ``config``."""
        cfg = config or load_config()
        return cls(build_storage(cfg), cfg)

    @property
    def config(self) -> Config:
        return self._config

    @property
    def storage(self) -> KeyValueStorage:
        return self._storage

    def diary_generator(self) -> DiaryGenerator:
        """Build a generator against the configured model endpoint."""
        client = LiteLLMVisionClient(
            api_key=self._config.require_api_key(),
            base_url=self._config.openai_base_url,
            model=self._config.openai_model_id,
        )
        return DiaryGenerator(client, prompt_path=self._config.prompt_path or None)

    def authoring_flow(self, generator: Generator | None = None) -> AuthoringFlow:
        return AuthoringFlow(
            generator or self.diary_generator(), self.memories, self.profiles
        )

    def export_postcard(
        self,
        memory_id: str,
        out_dir: str | Path | None = None,
        font_path: str | Path | None = None,
    ) -> Path:
        memory = self.memories.get(memory_id)
        if memory is None:
            raise MemoryNotFoundError(memory_id)
        return export_postcard(
            memory, out_dir or self._config.postcards_dir, font_path=font_path
        )

    def close(self) -> None:
        self.memories.close()
        self.profiles.close()
