"""Derived, read-only views over a mirror snapshot.

Every function here is pure: it reads a :class:`Mirror` (or a single book) and
returns new values without touching the engine or any collaborator.
"""
from __future__ import annotations

import random
from typing import Optional

from bookclub.core.errors import NotFoundError
from bookclub.schemas.attribution import author_of, borrower_of, same_member, suggested_by
from bookclub.schemas.book import BookOut, LoanStatus, ReadingStatus
from bookclub.schemas.mirror import MemberActivity, Mirror
from bookclub.schemas.review import QuoteActivity, ReviewActivity
from bookclub.schemas.validators import mean_one_place


def by_status(mirror: Mirror, status: ReadingStatus | str) -> list[BookOut]:
    """Books with the given reading status, newest first."""
    status = ReadingStatus(status)
    return [book for book in mirror.books if book.status == status]


def status_counts(mirror: Mirror) -> dict[ReadingStatus, int]:
    counts = {status: 0 for status in ReadingStatus}
    for book in mirror.books:
        counts[book.status] += 1
    return counts


def find_book(mirror: Mirror, book_id: str) -> BookOut:
    book = mirror.book(book_id)
    if book is None:
        raise NotFoundError("Book not found.")
    return book


def favorites(mirror: Mirror) -> list[BookOut]:
    return [book for book in mirror.books if book.is_favorite]


def available_to_lend(mirror: Mirror) -> list[BookOut]:
    return [book for book in mirror.books if book.loan.status == LoanStatus.SHAREABLE]


def draw_random(mirror: Mirror, rng: Optional[random.Random] = None) -> BookOut:
    """Pick one book still to read, uniformly at random."""
    candidates = by_status(mirror, ReadingStatus.TO_READ)
    if not candidates:
        raise NotFoundError("Every book has been read! Add some new ones.")
    return (rng or random).choice(candidates)


def average_rating(book: BookOut) -> Optional[float]:
    return mean_one_place(review.rating for review in book.reviews)


def member_activity(mirror: Mirror, member_name: str) -> MemberActivity:
    activity = MemberActivity()
    for book in mirror.books:
        if same_member(suggested_by(book), member_name):
            if book.status == ReadingStatus.SHELVED:
                activity.shelved_suggested.append(book)
            else:
                activity.suggested.append(book)
        if same_member(borrower_of(book), member_name):
            activity.borrowed.append(book)
        for review in book.reviews:
            if same_member(author_of(review), member_name):
                activity.reviews.append(
                    ReviewActivity.model_validate({**review.model_dump(), "book_title": book.title})
                )
        for quote in book.quotes:
            if same_member(author_of(quote), member_name):
                activity.quotes.append(
                    QuoteActivity.model_validate({**quote.model_dump(), "book_title": book.title})
                )
    return activity
