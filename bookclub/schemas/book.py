from __future__ import annotations

import enum
from datetime import date, datetime
from typing import Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from bookclub.schemas.review import QuoteOut, ReviewOut


class ReadingStatus(str, enum.Enum):
    TO_READ = "toRead"
    READING = "reading"
    READ = "read"
    SHELVED = "shelved"

    def next(self) -> "ReadingStatus":
        """Return the following status in the toRead -> reading -> read -> shelved cycle."""
        members = list(ReadingStatus)
        return members[(members.index(self) + 1) % len(members)]


class LoanStatus(str, enum.Enum):
    UNAVAILABLE = "unavailable"
    SHAREABLE = "shareable"
    BORROWED = "borrowed"


class LoanState(BaseModel):
    """Whether a book can be lent out, and to whom it currently is."""

    status: LoanStatus = LoanStatus.UNAVAILABLE
    borrower: Optional[str] = None

    model_config = ConfigDict(frozen=True, extra="forbid")

    @classmethod
    def unavailable(cls) -> "LoanState":
        return cls(status=LoanStatus.UNAVAILABLE)

    @classmethod
    def shareable(cls) -> "LoanState":
        return cls(status=LoanStatus.SHAREABLE)

    @classmethod
    def borrowed(cls, by: str) -> "LoanState":
        return cls(status=LoanStatus.BORROWED, borrower=by)


def normalize_genres(values: Iterable[str]) -> list[str]:
    """Trim tags, drop empty ones and keep the first occurrence of each."""
    genres: list[str] = []
    for value in values:
        tag = value.strip()
        if tag and tag not in genres:
            genres.append(tag)
    return genres


def parse_genres(text: str) -> list[str]:
    """Parse the comma-separated genre field of the book forms."""
    return normalize_genres(text.split(","))


def cover_key_from_ref(asset_ref: Optional[str]) -> Optional[str]:
    """Object-storage key behind a cover reference: the last segment of its URL."""
    if not asset_ref:
        return None
    return asset_ref.rstrip("/").rsplit("/", 1)[-1] or None


def _coerce_genres(value: object) -> object:
    if value is None:
        return []
    if isinstance(value, str):
        return parse_genres(value)
    if isinstance(value, (list, tuple)):
        return normalize_genres(str(item) for item in value)
    return value


def _blank_to_none(value: object) -> object:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class BookBase(BaseModel):
    title: str = ""
    author: str = ""
    page_count: int = Field(default=0, alias="pageCount")
    price: Optional[str] = None
    summary: Optional[str] = None
    status: ReadingStatus = ReadingStatus.TO_READ
    start_date: Optional[date] = Field(default=None, alias="startDate")
    end_date: Optional[date] = Field(default=None, alias="endDate")
    suggested_by: Optional[str] = Field(default=None, alias="suggestedBy")
    publication_year: Optional[str] = Field(default=None, alias="publicationYear")
    genres: list[str] = Field(default_factory=list)
    loan: LoanState = Field(default_factory=LoanState)
    is_favorite: bool = Field(default=False, alias="isFavorite")

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    @field_validator("genres", mode="before")
    @classmethod
    def validate_genres(cls, value: object) -> object:
        return _coerce_genres(value)

    @field_validator("start_date", "end_date", "suggested_by", "publication_year", mode="before")
    @classmethod
    def validate_optional_blank(cls, value: object) -> object:
        return _blank_to_none(value)


class BookCreate(BookBase):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class BookUpdate(BaseModel):
    """Patch of the user-editable book fields; unset fields are left untouched."""

    title: Optional[str] = None
    author: Optional[str] = None
    page_count: Optional[int] = Field(default=None, alias="pageCount")
    price: Optional[str] = None
    summary: Optional[str] = None
    status: Optional[ReadingStatus] = None
    start_date: Optional[date] = Field(default=None, alias="startDate")
    end_date: Optional[date] = Field(default=None, alias="endDate")
    suggested_by: Optional[str] = Field(default=None, alias="suggestedBy")
    publication_year: Optional[str] = Field(default=None, alias="publicationYear")
    genres: Optional[list[str]] = None
    loan: Optional[LoanState] = None
    is_favorite: Optional[bool] = Field(default=None, alias="isFavorite")

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    @field_validator("genres", mode="before")
    @classmethod
    def validate_genres(cls, value: object) -> object:
        return _coerce_genres(value)

    @field_validator("start_date", "end_date", "suggested_by", "publication_year", mode="before")
    @classmethod
    def validate_optional_blank(cls, value: object) -> object:
        return _blank_to_none(value)


class BookOut(BookBase):
    id: str
    cover_url: Optional[str] = Field(default=None, alias="coverUrl")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    reviews: tuple[ReviewOut, ...] = ()
    quotes: tuple[QuoteOut, ...] = ()

    model_config = ConfigDict(
        populate_by_name=True,
        from_attributes=True,
        extra="forbid",
        frozen=True,
    )

    @property
    def cover_asset_ref(self) -> Optional[str]:
        return cover_key_from_ref(self.cover_url)
