from __future__ import annotations


class ResumeScoringError(Exception):
    """Base class for service errors."""


class ExtractionError(ResumeScoringError, ValueError):
    pass


class UnsupportedFileType(ExtractionError):
    pass


class UploadTooLarge(ResumeScoringError):
    def __init__(self, limit_bytes: int) -> None:
        self.limit_bytes = limit_bytes
        super().__init__(
            f"File too large. Maximum allowed size is {limit_bytes // (1024 * 1024)} MB."
        )


class StorageError(ResumeScoringError):
    pass
