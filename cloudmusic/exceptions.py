"""
Exception types for CloudMusic.
"""

from typing import Optional


class CloudMusicError(Exception):
    """Base class for all CloudMusic errors."""


class SigningError(CloudMusicError):
    """Raised when a request cannot be signed (no usable clock instant)."""


class StorageError(CloudMusicError):
    """An object storage request that did not succeed."""

    def __init__(self, status: Optional[int], message: str):
        self.status = status
        self.message = message
        if status is None:
            super().__init__(message)
        else:
            super().__init__(f"HTTP {status}: {message}")


class UploadError(StorageError):
    """Raised by ObjectStore.upload on a non-2xx response or transport failure."""


class DeleteError(StorageError):
    """Describes a failed delete. Logged by ObjectStore.remove, never raised to callers."""


class SubtitleUnavailable(CloudMusicError):
    """The subtitle resource could not be fetched or holds no timed lines."""
