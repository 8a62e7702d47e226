"""Authoring flow: intro → upload → preparing → generating → editing.

The view state is an explicit enum with a transition table, so the flow
can be driven (and tested) without any UI.  ``AuthoringFlow`` holds the
in-progress draft and wires the state changes to the diary generator and
the two persistence stores.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date
from enum import StrEnum
from typing import Protocol

from memory_box.errors import (
    DraftValidationError,
    InvalidPhotoError,
    InvalidTransitionError,
    MemoryBoxError,
    ProfileRequiredError,
    StorageQuotaExceededError,
)
from memory_box.generation import DiaryResult
from memory_box.images import compress_image
from memory_box.llm.base import TokenUsage
from memory_box.memories.book import MemoryBook
from memory_box.models import Memory
from memory_box.profile.store import ProfileStore

logger = logging.getLogger(__name__)

PROFILE_REQUIRED_MESSAGE = "请先补充孩子的信息，再来记录闪光时刻。"
UNSUPPORTED_PHOTO_MESSAGE = "仅支持上传 JPG 或 PNG 图片。"
NO_PHOTO_SELECTED_MESSAGE = "请先选择一张照片。"
PHOTO_MISSING_MESSAGE = "貌似没有找到这张照片，试着重新上传一次吧。"
EMPTY_DIARY_MESSAGE = "日记还空着呢，补充几句再收藏吧。"
GENERATION_FAILED_MESSAGE = "唔…这张照片有点害羞，能再换一张吗？"
STORAGE_FULL_MESSAGE = "成长手账装不下更多照片了，可以先删除旧记录或压缩图片后再试。"


class ViewState(StrEnum):
    INTRO = "intro"
    UPLOAD = "upload"
    PREPARING = "preparing"
    GENERATING = "generating"
    EDITING = "editing"


class FlowEvent(StrEnum):
    START = "start"
    PHOTO_SELECTED = "photo_selected"
    GENERATE = "generate"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SAVED = "saved"
    RESET = "reset"


TRANSITIONS: dict[tuple[ViewState, FlowEvent], ViewState] = {
    (ViewState.INTRO, FlowEvent.START): ViewState.UPLOAD,
    (ViewState.UPLOAD, FlowEvent.PHOTO_SELECTED): ViewState.PREPARING,
    (ViewState.UPLOAD, FlowEvent.RESET): ViewState.INTRO,
    (ViewState.PREPARING, FlowEvent.PHOTO_SELECTED): ViewState.PREPARING,
    (ViewState.PREPARING, FlowEvent.GENERATE): ViewState.GENERATING,
    (ViewState.PREPARING, FlowEvent.RESET): ViewState.INTRO,
    (ViewState.GENERATING, FlowEvent.SUCCEEDED): ViewState.EDITING,
    (ViewState.GENERATING, FlowEvent.FAILED): ViewState.UPLOAD,
    (ViewState.EDITING, FlowEvent.SAVED): ViewState.INTRO,
    (ViewState.EDITING, FlowEvent.RESET): ViewState.INTRO,
    (ViewState.EDITING, FlowEvent.PHOTO_SELECTED): ViewState.PREPARING,
}


def transition(state: ViewState, event: FlowEvent) -> ViewState:
    try:
        return TRANSITIONS[(state, event)]
    except KeyError:
        raise InvalidTransitionError(state.value, event.value) from None


class Generator(Protocol):
    async def generate(
        self,
        photo: bytes | None,
        media_type: str | None,
        nickname: str | None = None,
        age: str | None = None,
        keywords: str | None = None,
    ) -> DiaryResult: ...


@dataclass
class Draft:
    """Everything collected for the memory being authored."""

    photo: bytes | None = None
    media_type: str | None = None
    photo_data_url: str | None = None
    diary: str = ""
    keywords: str = ""
    usage: TokenUsage | None = None


class AuthoringFlow:
    def __init__(
        self,
        generator: Generator,
        book: MemoryBook,
        profiles: ProfileStore,
        today: Callable[[], date] = date.today,
        image_preparer: Callable[[bytes], str] = compress_image,
    ) -> None:
        self._generator = generator
        self._book = book
        self._profiles = profiles
        self._today = today
        self._prepare_image = image_preparer
        self.state = ViewState.INTRO
        self.draft = Draft()
        self.error: str | None = None

    def _move(self, event: FlowEvent) -> None:
        next_state = transition(self.state, event)
        logger.debug("Flow %s --%s--> %s", self.state, event, next_state)
        self.state = next_state

    def _fail(self, exc: MemoryBoxError) -> MemoryBoxError:
        self.error = str(exc)
        return exc

    def _age_snapshot(self) -> str | None:
        return self._profiles.age_label(self._today()) or None

    # ── Steps ────────────────────────────────────────────────────────

    def start(self) -> None:
        """Begin a new recording session. A saved profile is required."""
        if self._profiles.profile is None:
            raise self._fail(ProfileRequiredError(PROFILE_REQUIRED_MESSAGE))
        transition(self.state, FlowEvent.START)
        self._clear_session()
        self._move(FlowEvent.START)

    def select_photo(self, data: bytes, media_type: str | None) -> None:
        """Accept a photo, prepare its stored rendition and move to preparing."""
        transition(self.state, FlowEvent.PHOTO_SELECTED)
        if not (media_type or "").startswith("image/"):
            raise self._fail(InvalidPhotoError(UNSUPPORTED_PHOTO_MESSAGE))

        try:
            data_url = self._prepare_image(data)
        except MemoryBoxError as exc:
            self.error = str(exc)
            raise

        self.error = None
        self.draft.photo = data
        self.draft.media_type = media_type
        self.draft.photo_data_url = data_url
        self.draft.diary = ""
        self.draft.usage = None
        self._move(FlowEvent.PHOTO_SELECTED)

    def set_keywords(self, keywords: str) -> None:
        self.draft.keywords = keywords

    def set_diary(self, diary: str) -> None:
        self.draft.diary = diary

    async def generate(self) -> DiaryResult | None:
        """Ask for a diary. Failures are recorded in :attr:`error` and send
        the flow back to ``upload``; ``None`` is returned in that case."""
        if self.draft.photo is None:
            raise self._fail(DraftValidationError(NO_PHOTO_SELECTED_MESSAGE))
        self._move(FlowEvent.GENERATE)
        self.error = None
        self.draft.diary = ""
        self.draft.usage = None

        profile = self._profiles.profile
        nickname = profile.nickname.strip() if profile else None
        try:
            result = await self._generator.generate(
                self.draft.photo,
                self.draft.media_type,
                nickname=nickname or None,
                age=self._age_snapshot(),
                keywords=self.draft.keywords.strip() or None,
            )
        except Exception as exc:
            logger.warning("Diary generation failed: %s", exc)
            self.error = str(exc) or GENERATION_FAILED_MESSAGE
            self._move(FlowEvent.FAILED)
            return None

        self.draft.diary = result.diary
        self.draft.usage = result.usage
        self._move(FlowEvent.SUCCEEDED)
        return result

    def save(self) -> Memory:
        """Store the draft as a new memory and return to ``intro``."""
        transition(self.state, FlowEvent.SAVED)
        profile = self._profiles.profile
        if profile is None:
            raise self._fail(ProfileRequiredError(PROFILE_REQUIRED_MESSAGE))
        if not self.draft.photo_data_url:
            raise self._fail(DraftValidationError(PHOTO_MISSING_MESSAGE))
        diary = self.draft.diary.strip()
        if not diary:
            raise self._fail(DraftValidationError(EMPTY_DIARY_MESSAGE))

        try:
            memory = self._book.add_memory(
                diary=diary,
                photo_data_url=self.draft.photo_data_url,
                nickname=profile.nickname,
                age=self._age_snapshot(),
                keywords=self.draft.keywords.strip() or None,
            )
        except StorageQuotaExceededError:
            self.error = STORAGE_FULL_MESSAGE
            raise

        self._clear_session()
        self._move(FlowEvent.SAVED)
        return memory

    def reset(self) -> None:
        if self.state is not ViewState.INTRO:
            self._move(FlowEvent.RESET)
        self._clear_session()

    def _clear_session(self) -> None:
        self.draft = Draft()
        self.error = None
