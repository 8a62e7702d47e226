from memory_box.llm.base import (
    DEFAULT_BASE_URL,
    DEFAULT_MODEL_ID,
    BaseLLMClient,
    DiaryCompletion,
    TokenUsage,
)
from memory_box.llm.litellm import LiteLLMVisionClient, extract_message_text

__all__ = [
    "DEFAULT_BASE_URL",
    "DEFAULT_MODEL_ID",
    "BaseLLMClient",
    "DiaryCompletion",
    "LiteLLMVisionClient",
    "TokenUsage",
    "extract_message_text",
]
