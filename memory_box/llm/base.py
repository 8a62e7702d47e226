from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_MODEL_ID = "gpt-4o-mini"

MAX_DIARY_TOKENS = 200
DIARY_TEMPERATURE = 0.7


class TokenUsage(BaseModel):
    """Token counters reported by the provider, serialized in camelCase."""

    model_config = ConfigDict(populate_by_name=True)

    prompt_tokens: int | None = Field(default=None, alias="promptTokens")
    completion_tokens: int | None = Field(default=None, alias="completionTokens")
    total_tokens: int | None = Field(default=None, alias="totalTokens")

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


@dataclass
class DiaryCompletion:
    """Raw outcome of one diary completion call.

    ``text`` is already extracted from the provider's message content and
    trimmed; it may be empty.
    """

    text: str
    usage: TokenUsage | None = None


class BaseLLMClient(ABC):
    """Abstract hosted multimodal chat-completion client."""

    @abstractmethod
    async def generate_diary(
        self,
        system_prompt: str,
        user_prompt: str,
        image_data_url: str,
    ) -> DiaryCompletion:
        """Send the system prompt plus one user turn (text + inlined image)."""
        ...
