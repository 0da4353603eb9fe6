from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ReviewCreate(BaseModel):
    member: str = ""
    writing: int = 0
    plot: int = 0
    characters: int = 0
    impact: int = 0
    reading_time: Optional[str] = Field(default=None, alias="readingTime")
    comment: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class ReviewOut(BaseModel):
    id: str
    book_id: str = Field(alias="bookId")
    member: str
    rating: float
    writing: int
    plot: int
    characters: int
    impact: int
    reading_time: Optional[str] = Field(default=None, alias="readingTime")
    comment: Optional[str] = None
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")

    model_config = ConfigDict(populate_by_name=True, from_attributes=True, frozen=True)


class QuoteCreate(BaseModel):
    member: str = ""
    text: str = ""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class QuoteOut(BaseModel):
    id: str
    book_id: str = Field(alias="bookId")
    member: str
    text: str
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")

    model_config = ConfigDict(populate_by_name=True, from_attributes=True, frozen=True)


class ReviewActivity(ReviewOut):
    """A review annotated with the book it was written about."""

    book_title: str = Field(alias="bookTitle")


class QuoteActivity(QuoteOut):
    """A quote annotated with the book it was taken from."""

    book_title: str = Field(alias="bookTitle")
