from __future__ import annotations

from typing import Optional


class ExtractionError(Exception):
    """Base class for failures surfaced by an extraction run."""


class ConfigError(ExtractionError):
    pass


class ParseError(ExtractionError):
    pass


class ValidationError(ExtractionError):
    def __init__(self, surviving: int, required: int) -> None:
        self.surviving = surviving
        self.required = required
        super().__init__(
            f"Only {surviving} valid ideas found, but minimum required is {required}. "
            "Some ideas were filtered out due to validation or deduplication."
        )


class BackendError(ExtractionError):
    def __init__(self, provider: str, message: str, status: Optional[int] = None, body: str = "") -> None:
        self.provider = provider
        self.status = status
        self.body = body
        super().__init__(message)


class StorageCollisionError(ExtractionError):
    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(
            f'Atomic note "{path}" already exists. Enable allow_overwrite to replace it, or rename the file.'
        )


class EmptySourceError(ExtractionError):
    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f'File "{path}" appears to be empty.')
