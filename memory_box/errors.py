"""Custom exceptions for memory-box operations."""


class MemoryBoxError(Exception):
    """Base class for every error raised by memory_box."""


class InvalidPhotoError(MemoryBoxError):
    """The uploaded photo is missing or is not an image."""

    def __init__(self, message: str | None = None):
        self.message = message or "Missing photo file in request payload."
        super().__init__(self.message)


class EmptyDiaryError(MemoryBoxError):
    """The model answered without any usable text."""

    def __init__(self, message: str | None = None):
        self.message = message or "模型未返回文本内容，请稍后重试。"
        super().__init__(self.message)


class MissingApiKeyError(MemoryBoxError):
    def __init__(self, message: str | None = None):
        self.message = message or (
            "OPENAI_API_KEY is not set. "
            "Please add it to your environment configuration."
        )
        super().__init__(self.message)


class StorageQuotaExceededError(MemoryBoxError):
    """A storage write did not fit into the backend's quota."""

    def __init__(self, key: str, message: str | None = None):
        self.key = key
        self.message = message or f"Storage quota exceeded while writing '{key}'"
        super().__init__(self.message)


class SchemaValidationError(MemoryBoxError):
    """Persisted data does not match the expected schema."""

    def __init__(self, entity: str, detail: str):
        self.entity = entity
        self.detail = detail
        self.message = f"Invalid {entity}: {detail}"
        super().__init__(self.message)


class ProfileValidationError(MemoryBoxError, ValueError):
    pass


class ProfileRequiredError(MemoryBoxError):
    pass


class DraftValidationError(MemoryBoxError, ValueError):
    """The draft being saved is incomplete (no photo, empty diary, ...)."""

    pass


class ImagePreparationError(MemoryBoxError):
    pass


class MemoryNotFoundError(MemoryBoxError, KeyError):
    def __init__(self, memory_id: str):
        self.memory_id = memory_id
        self.message = f"Memory '{memory_id}' not found"
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


class InvalidTransitionError(MemoryBoxError):
    def __init__(self, state: str, event: str):
        self.state = state
        self.event = event
        self.message = f"Event '{event}' is not allowed in state '{state}'"
        super().__init__(self.message)
