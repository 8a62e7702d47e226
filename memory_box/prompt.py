"""System-prompt loading and user-prompt composition for diary generation."""

from __future__ import annotations

from pathlib import Path

DEFAULT_PROMPT_PATH = Path(__file__).parent / "prompts" / "memory_box_vision_prompt.md"

_INTRO = "请根据我提供的照片与上下文信息，用中文写一段成长日记。"
_NO_SUPPLEMENTS = "暂无额外补充信息。"
_OUTRO = "请观察上方图片，生成符合准则的文案。"


def load_vision_prompt(path: str | Path | None = None) -> str:
    """Read the system prompt from disk.

    Called on every request so edits to the template take effect without
    a restart.
    """
    return Path(path or DEFAULT_PROMPT_PATH).read_text(encoding="utf-8")


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


def build_user_prompt(
    nickname: str | None = None,
    age: str | None = None,
    keywords: str | None = None,
) -> str:
    """Compose the user turn from whichever optional fields were supplied."""
    nickname, age, keywords = _clean(nickname), _clean(age), _clean(keywords)

    supplements = [
        line
        for line in (
            nickname and f"- 孩子昵称：{nickname}",
            age and f"- 年龄：{age}",
            keywords and f"- 最近的关键词或事件：{keywords}",
        )
        if line
    ]

    if supplements:
        context = "补充信息（若有则参考，没有则忽略）：\n" + "\n".join(supplements)
    else:
        context = _NO_SUPPLEMENTS

    return "\n\n".join([_INTRO, context, _OUTRO])
