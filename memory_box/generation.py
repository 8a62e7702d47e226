"""Turn one photo (plus optional context) into a diary entry."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from memory_box.errors import EmptyDiaryError, InvalidPhotoError
from memory_box.images import to_data_url
from memory_box.llm.base import BaseLLMClient, TokenUsage
from memory_box.prompt import build_user_prompt, load_vision_prompt

logger = logging.getLogger(__name__)

UNSUPPORTED_TYPE_MESSAGE = "Unsupported file type. Please upload a JPG or PNG image."


def check_photo_type(media_type: str | None) -> str:
    """Return the effective media type, rejecting anything but ``image/*``."""
    media_type = media_type or "application/octet-stream"
    if not media_type.startswith("image/"):
        raise InvalidPhotoError(UNSUPPORTED_TYPE_MESSAGE)
    return media_type


@dataclass
class DiaryResult:
    diary: str
    usage: TokenUsage | None = None

    def to_json_dict(self) -> dict:
        payload: dict = {"diary": self.diary}
        if self.usage is not None:
            payload["usage"] = self.usage.to_json_dict()
        return payload


class DiaryGenerator:
    """Validate the photo, compose the prompts and ask the model for a diary.

    The system prompt is re-read through ``prompt_loader`` on every call.
    Nothing is retried; upstream errors propagate to the caller.
    """

    def __init__(
        self,
        client: BaseLLMClient,
        prompt_path: str | Path | None = None,
        prompt_loader: Callable[[str | Path | None], str] = load_vision_prompt,
    ) -> None:
        self._client = client
        self._prompt_path = prompt_path
        self._prompt_loader = prompt_loader

    async def generate(
        self,
        photo: bytes | None,
        media_type: str | None,
        nickname: str | None = None,
        age: str | None = None,
        keywords: str | None = None,
    ) -> DiaryResult:
        if not isinstance(photo, (bytes, bytearray)):
            raise InvalidPhotoError()

        media_type = check_photo_type(media_type)

        system_prompt = self._prompt_loader(self._prompt_path)
        user_prompt = build_user_prompt(nickname, age, keywords)
        image_data_url = to_data_url(bytes(photo), media_type)

        completion = await self._client.generate_diary(
            system_prompt, user_prompt, image_data_url
        )
        if not completion.text:
            raise EmptyDiaryError()

        logger.info("Generated diary (%d chars)", len(completion.text))
        return DiaryResult(diary=completion.text, usage=completion.usage)
