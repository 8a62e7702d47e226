"""Configuration management for memory-box.

Reads/writes a TOML config file and provides a typed Config dataclass.
Default location: ``~/.config/memory-box/config.toml``.
Override with the ``MEMORY_BOX_CONFIG`` environment variable.
Environment variables always take precedence over the file, and the
generation endpoint re-reads them on every request.

Data directory layout::

    data/
      storage/     <- persisted key-value records (memories, profile)
      postcards/   <- exported postcard images
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from memory_box.errors import MissingApiKeyError
from memory_box.llm.base import DEFAULT_BASE_URL, DEFAULT_MODEL_ID
from memory_box.storage.base import KeyValueStorage

_DEFAULT_CONFIG_DIR = Path("~/.config/memory-box").expanduser()
_DEFAULT_DATA_DIR = Path("./data")

# Browsers give each origin roughly 5 MiB of local storage.
DEFAULT_STORAGE_QUOTA_BYTES = 5 * 1024 * 1024


def _config_path() -> Path:
    env = os.environ.get("MEMORY_BOX_CONFIG")
    if env:
        return Path(env).expanduser()
    return _DEFAULT_CONFIG_DIR / "config.toml"


@dataclass
class Config:
    openai_api_key: str = ""
    openai_base_url: str = DEFAULT_BASE_URL
    openai_model_id: str = DEFAULT_MODEL_ID

    # Storage backend: "disk" (default) or "memory"
    storage_provider: str = "disk"
    # 0 disables the quota
    storage_quota_bytes: int = DEFAULT_STORAGE_QUOTA_BYTES

    data_dir: str = str(_DEFAULT_DATA_DIR)
    prompt_path: str = ""

    host: str = "127.0.0.1"
    port: int = 8000

    @property
    def is_configured(self) -> bool:
        return bool(self.openai_api_key)

    @property
    def storage_path(self) -> str:
        return str(Path(self.data_dir) / "storage")

    @property
    def postcards_dir(self) -> Path:
        return Path(self.data_dir) / "postcards"

    @property
    def quota(self) -> int | None:
        return self.storage_quota_bytes or None

    def require_api_key(self) -> str:
        if not self.openai_api_key:
            raise MissingApiKeyError()
        return self.openai_api_key


def load_config() -> Config:
    """Load config from disk, falling back to defaults + env overrides."""
    path = _config_path()
    cfg = Config()

    if path.exists():
        with open(path, "rb") as f:
            data = tomllib.load(f)
        openai_section = data.get("openai", {})
        storage_section = data.get("storage", {})
        data_section = data.get("data", {})
        server_section = data.get("server", {})

        cfg.openai_api_key = openai_section.get("api_key", cfg.openai_api_key)
        cfg.openai_base_url = openai_section.get("base_url", cfg.openai_base_url)
        cfg.openai_model_id = openai_section.get("model_id", cfg.openai_model_id)

        cfg.storage_provider = storage_section.get("provider", cfg.storage_provider)
        cfg.storage_quota_bytes = int(
            storage_section.get("quota_bytes", cfg.storage_quota_bytes)
        )

        cfg.data_dir = data_section.get("dir", cfg.data_dir)
        cfg.prompt_path = data_section.get("prompt_path", cfg.prompt_path)

        cfg.host = server_section.get("host", cfg.host)
        cfg.port = int(server_section.get("port", cfg.port))

    # Environment variables always take precedence
    cfg.openai_api_key = os.environ.get("OPENAI_API_KEY", cfg.openai_api_key)
    cfg.openai_base_url = os.environ.get("OPENAI_BASE_URL") or cfg.openai_base_url
    cfg.openai_model_id = os.environ.get("OPENAI_MODEL_ID") or cfg.openai_model_id
    cfg.storage_provider = os.environ.get("MEMORY_BOX_STORAGE", cfg.storage_provider)
    cfg.storage_quota_bytes = int(
        os.environ.get("MEMORY_BOX_STORAGE_QUOTA", str(cfg.storage_quota_bytes))
    )
    cfg.data_dir = os.environ.get("MEMORY_BOX_DATA_DIR", cfg.data_dir)
    cfg.prompt_path = os.environ.get("MEMORY_BOX_PROMPT_PATH", cfg.prompt_path)
    cfg.host = os.environ.get("MEMORY_BOX_HOST", cfg.host)
    cfg.port = int(os.environ.get("MEMORY_BOX_PORT", str(cfg.port)))

    return cfg


def save_config(cfg: Config) -> Path:
    """Write config to the TOML file. Returns the path written."""
    path = _config_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    lines = [
        "[openai]",
        f'api_key = "{cfg.openai_api_key}"',
        f'base_url = "{cfg.openai_base_url}"',
        f'model_id = "{cfg.openai_model_id}"',
        "",
        "[storage]",
        f'provider = "{cfg.storage_provider}"',
        f"quota_bytes = {cfg.storage_quota_bytes}",
        "",
        "[data]",
        f'dir = "{cfg.data_dir}"',
    ]
    if cfg.prompt_path:
        lines.append(f'prompt_path = "{cfg.prompt_path}"')
    lines.extend(
        [
            "",
            "[server]",
            f'host = "{cfg.host}"',
            f"port = {cfg.port}",
            "",
        ]
    )

    path.write_text("\n".join(lines), encoding="utf-8")
    return path


def config_exists() -> bool:
    return _config_path().exists()


def config_path_display() -> str:
    return str(_config_path())


# ── Storage backends ────────────────────────────────────────────────


class _StorageRegistry:
    """Lazily-populated factory registry for key-value storage backends.

    Each factory is called as ``factory(**config)``.
    """

    def __init__(self) -> None:
        self._factories: dict[str, type[KeyValueStorage]] = {}
        self._defaults_loaded = False

    def register(self, name: str, cls: type[KeyValueStorage]) -> None:
        self._factories[name] = cls

    def build(self, provider: str, config: dict[str, Any]) -> KeyValueStorage:
        if not self._defaults_loaded:
            self._load_defaults()
            self._defaults_loaded = True

        factory = self._factories.get(provider)
        if factory is None:
            raise ValueError(
                f"Unknown storage provider '{provider}'. "
                f"Available: {list(self._factories)}"
            )
        return factory(**config)

    def _load_defaults(self) -> None:
        from memory_box.storage.disk import DiskStorage
        from memory_box.storage.memory import InMemoryStorage

        self.register("disk", DiskStorage)
        self.register("memory", InMemoryStorage)


storage_registry = _StorageRegistry()


def build_storage(cfg: Config) -> KeyValueStorage:
    """Build the storage backend named by ``cfg.storage_provider``."""
    config: dict[str, Any] = {"quota_bytes": cfg.quota}
    if cfg.storage_provider == "disk":
        config["base_path"] = cfg.storage_path
    return storage_registry.build(cfg.storage_provider, config)
