from __future__ import annotations

import logging
from typing import Any

import litellm

from memory_box.llm.base import (
    DEFAULT_BASE_URL,
    DEFAULT_MODEL_ID,
    DIARY_TEMPERATURE,
    MAX_DIARY_TOKENS,
    BaseLLMClient,
    DiaryCompletion,
    TokenUsage,
)

logger = logging.getLogger(__name__)


def _get(obj: Any, name: str) -> Any:
    """Attribute-or-key access; provider objects and plain dicts both occur."""
    if obj is None:
        return None
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


def extract_message_text(content: Any) -> str:
    """Flatten message content into plain text.

    Handles a flat string as well as a list of typed content parts, in
    which case only ``text`` parts (and bare strings) are concatenated.
    """
    if isinstance(content, str):
        return content.strip()
    if isinstance(content, list):
        pieces: list[str] = []
        for part in content:
            if isinstance(part, str):
                pieces.append(part)
            elif _get(part, "type") == "text":
                pieces.append(_get(part, "text") or "")
        return "".join(pieces).strip()
    return ""


def extract_usage(response: Any) -> TokenUsage | None:
    usage = _get(response, "usage")
    if usage is None:
        return None
    return TokenUsage(
        prompt_tokens=_get(usage, "prompt_tokens"),
        completion_tokens=_get(usage, "completion_tokens"),
        total_tokens=_get(usage, "total_tokens"),
    )


def build_messages(
    system_prompt: str, user_prompt: str, image_data_url: str
) -> list[dict[str, Any]]:
    return [
        {"role": "system", "content": system_prompt},
        {
            "role": "user",
            "content": [
                {"type": "text", "text": user_prompt},
                {"type": "image_url", "image_url": {"url": image_data_url}},
            ],
        },
    ]


class LiteLLMVisionClient(BaseLLMClient):
    """OpenAI-compatible vision chat client backed by litellm.

    Any endpoint speaking the OpenAI chat-completions protocol works; the
    base URL and model id are passed through unchanged.  Calls are not
    retried.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        model: str = DEFAULT_MODEL_ID,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url
        self._model = model

    @property
    def model(self) -> str:
        return self._model

    async def generate_diary(
        self,
        system_prompt: str,
        user_prompt: str,
        image_data_url: str,
    ) -> DiaryCompletion:
        response = await litellm.acompletion(
            model=self._model,
            messages=build_messages(system_prompt, user_prompt, image_data_url),
            api_key=self._api_key,
            api_base=self._base_url,
            custom_llm_provider="openai",
            max_tokens=MAX_DIARY_TOKENS,
            temperature=DIARY_TEMPERATURE,
        )

        choices = _get(response, "choices") or []
        message = _get(choices[0], "message") if choices else None
        text = extract_message_text(_get(message, "content"))
        usage = extract_usage(response)

        logger.info(
            "Diary completion from %s: %d chars, %s total tokens",
            self._model,
            len(text),
            usage.total_tokens if usage else "?",
        )
        return DiaryCompletion(text=text, usage=usage)
