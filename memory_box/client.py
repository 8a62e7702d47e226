"""Client for a remote memory-box service's ``POST /api/generate``."""

from __future__ import annotations

import logging

import httpx

from memory_box.errors import MemoryBoxError
from memory_box.flow import GENERATION_FAILED_MESSAGE
from memory_box.generation import DiaryResult
from memory_box.llm.base import TokenUsage

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60.0


class RemoteGenerationError(MemoryBoxError):
    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(message)


class HttpDiaryGenerator:
    """Generates diaries by posting the photo to a running memory-box server.

    Has the same ``generate`` signature as ``DiaryGenerator`` so the
    authoring flow can use either.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    async def generate(
        self,
        photo: bytes | None,
        media_type: str | None,
        nickname: str | None = None,
        age: str | None = None,
        keywords: str | None = None,
    ) -> DiaryResult:
        files = {
            "photo": ("photo", photo or b"", media_type or "application/octet-stream")
        }
        data = {
            name: value
            for name, value in (
                ("childNickname", nickname),
                ("childAge", age),
                ("recentKeywords", keywords),
            )
            if value
        }

        async with httpx.AsyncClient(
            base_url=self._base_url, timeout=self._timeout, transport=self._transport
        ) as client:
            r = await client.post("/api/generate", files=files, data=data)

        try:
            payload = r.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}

        if r.status_code != 200:
            message = payload.get("error")
            if not isinstance(message, str) or not message:
                message = GENERATION_FAILED_MESSAGE
            logger.warning(
                "Remote generation failed (%d): %s", r.status_code, message
            )
            raise RemoteGenerationError(r.status_code, message)

        diary = payload.get("diary")
        if not isinstance(diary, str) or not diary.strip():
            logger.warning("Remote generation returned no diary text")
            raise RemoteGenerationError(r.status_code, GENERATION_FAILED_MESSAGE)

        usage = payload.get("usage")
        return DiaryResult(
            diary=diary,
            usage=TokenUsage.model_validate(usage) if isinstance(usage, dict) else None,
        )
