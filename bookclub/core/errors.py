from __future__ import annotations

import enum
from typing import Optional


class ErrorKind(str, enum.Enum):
    MISSING_REQUIRED_FIELD = "MissingRequiredField"
    OUT_OF_RANGE_SCORE = "OutOfRangeScore"
    EMPTY_AFTER_TRIM = "EmptyAfterTrim"
    INVALID_VALUE = "InvalidValue"


class AssetErrorKind(str, enum.Enum):
    SIZE_EXCEEDED = "SizeExceeded"
    UPLOAD_FAILED = "UploadFailed"
    DELETE_FAILED = "DeleteFailed"


class BookClubError(Exception):
    """Base class for every error surfaced to the presentation layer."""

    code = "book_club_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_detail(self) -> dict[str, str]:
        return {"code": self.code, "message": self.message}


class ValidationError(BookClubError):
    """A draft was rejected before any I/O took place."""

    code = "validation_error"

    def __init__(self, kind: ErrorKind, field: str, message: Optional[str] = None) -> None:
        super().__init__(message or f"{field}: {kind.value}")
        self.kind = kind
        self.field = field

    def to_detail(self) -> dict[str, str]:
        detail = super().to_detail()
        detail["kind"] = self.kind.value
        detail["field"] = self.field
        return detail


class AssetError(BookClubError):
    """Object storage rejected or could not perform an operation."""

    code = "asset_error"

    def __init__(self, kind: AssetErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind

    def to_detail(self) -> dict[str, str]:
        detail = super().to_detail()
        detail["kind"] = self.kind.value
        return detail


class RemoteError(BookClubError):
    """The remote store rejected or could not perform an operation."""

    code = "remote_error"


class NotFoundError(BookClubError):
    """The addressed entity is not (or no longer) present."""

    code = "not_found"
