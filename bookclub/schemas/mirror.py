from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from bookclub.schemas.book import BookOut
from bookclub.schemas.member import MemberOut
from bookclub.schemas.review import QuoteActivity, ReviewActivity


class Mirror(BaseModel):
    """Immutable snapshot of the club catalogue as last synchronized."""

    loaded: bool = False
    books: tuple[BookOut, ...] = ()
    members: tuple[MemberOut, ...] = ()

    model_config = ConfigDict(frozen=True)

    def book(self, book_id: str) -> Optional[BookOut]:
        return next((book for book in self.books if book.id == book_id), None)

    def member(self, member_id: str) -> Optional[MemberOut]:
        return next((member for member in self.members if member.id == member_id), None)


class MemberActivity(BaseModel):
    suggested: list[BookOut] = Field(default_factory=list)
    shelved_suggested: list[BookOut] = Field(default_factory=list, alias="shelvedSuggested")
    borrowed: list[BookOut] = Field(default_factory=list)
    reviews: list[ReviewActivity] = Field(default_factory=list)
    quotes: list[QuoteActivity] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)


class Selection(BaseModel):
    """Book and member currently opened by the presentation layer."""

    book_id: Optional[str] = Field(default=None, alias="bookId")
    member_id: Optional[str] = Field(default=None, alias="memberId")

    model_config = ConfigDict(populate_by_name=True, frozen=True)
