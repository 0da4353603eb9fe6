from __future__ import annotations

import random
from datetime import datetime, timezone

import pytest

from bookclub.core.errors import NotFoundError
from bookclub.schemas.book import BookOut, LoanState, ReadingStatus
from bookclub.schemas.mirror import Mirror
from bookclub.schemas.review import QuoteOut, ReviewOut
from bookclub.services import views

CREATED = datetime(2024, 5, 1, tzinfo=timezone.utc)


def _book(book_id: str, status: ReadingStatus = ReadingStatus.TO_READ, **fields) -> BookOut:
    return BookOut(id=book_id, title=f"Book {book_id}", author="Someone", status=status, **fields)


def _review(review_id: str, book_id: str, member: str, rating: float) -> ReviewOut:
    return ReviewOut(
        id=review_id,
        book_id=book_id,
        member=member,
        rating=rating,
        writing=5,
        plot=5,
        characters=5,
        impact=5,
        created_at=CREATED,
    )


def test_by_status_preserves_mirror_order():
    mirror = Mirror(
        loaded=True,
        books=(
            _book("3"),
            _book("2", ReadingStatus.READING),
            _book("1"),
        ),
    )
    assert [book.id for book in views.by_status(mirror, ReadingStatus.TO_READ)] == ["3", "1"]
    assert [book.id for book in views.by_status(mirror, "reading")] == ["2"]
    assert views.by_status(mirror, "shelved") == []


def test_status_counts_cover_every_status():
    mirror = Mirror(books=(_book("1"), _book("2", ReadingStatus.READ), _book("3", ReadingStatus.READ)))
    assert views.status_counts(mirror) == {
        ReadingStatus.TO_READ: 1,
        ReadingStatus.READING: 0,
        ReadingStatus.READ: 2,
        ReadingStatus.SHELVED: 0,
    }


def test_draw_random_without_books_to_read():
    mirror = Mirror(books=(_book("1", ReadingStatus.READ), _book("2", ReadingStatus.SHELVED)))
    with pytest.raises(NotFoundError):
        views.draw_random(mirror)
    with pytest.raises(NotFoundError):
        views.draw_random(Mirror())


def test_draw_random_with_one_candidate_always_returns_it():
    only = _book("2")
    mirror = Mirror(books=(_book("1", ReadingStatus.READ), only, _book("3", ReadingStatus.READING)))
    rng = random.Random(7)
    assert all(views.draw_random(mirror, rng) == only for _ in range(25))


def test_draw_random_only_draws_books_to_read():
    mirror = Mirror(books=(_book("1"), _book("2", ReadingStatus.READ), _book("3")))
    rng = random.Random(1)
    drawn = {views.draw_random(mirror, rng).id for _ in range(50)}
    assert drawn == {"1", "3"}


def test_average_rating():
    assert views.average_rating(_book("1")) is None

    book = _book(
        "1",
        reviews=(_review("a", "1", "Alice", 8.3), _review("b", "1", "Bob", 7.0), _review("c", "1", "Chloé", 6.2)),
    )
    assert views.average_rating(book) == 7.2

    halfway = _book("2", reviews=(_review("a", "2", "Alice", 8.0), _review("b", "2", "Bob", 8.5)))
    assert views.average_rating(halfway) == 8.3


def test_member_activity_partitions_suggestions():
    shelved = _book("1", ReadingStatus.SHELVED, suggested_by="Alice")
    suggested = _book("2", ReadingStatus.READING, suggested_by="Alice", loan=LoanState.borrowed("Alice"))
    third = _book(
        "3",
        suggested_by="Bob",
        reviews=(_review("r1", "3", "Alice", 9.0), _review("r2", "3", "Bob", 4.0)),
        quotes=(
            QuoteOut(id="q1", book_id="3", member="Alice", text="Quote", created_at=CREATED),
            QuoteOut(id="q2", book_id="3", member="alice", text="Other", created_at=CREATED),
        ),
    )
    mirror = Mirror(books=(third, suggested, shelved))

    activity = views.member_activity(mirror, "Alice")

    assert activity.suggested == [suggested]
    assert activity.shelved_suggested == [shelved]
    assert activity.borrowed == [suggested]
    assert [(review.id, review.book_id, review.book_title) for review in activity.reviews] == [
        ("r1", "3", "Book 3")
    ]
    assert [(quote.id, quote.book_id, quote.book_title) for quote in activity.quotes] == [("q1", "3", "Book 3")]


def test_member_activity_for_unknown_member_is_empty():
    mirror = Mirror(books=(_book("1", suggested_by="Alice"),))
    activity = views.member_activity(mirror, "Zoe")
    assert activity.suggested == []
    assert activity.shelved_suggested == []
    assert activity.reviews == []
    assert activity.quotes == []
    assert activity.borrowed == []


def test_favorites_and_lendable_books():
    favorite = _book("1", is_favorite=True)
    lendable = _book("2", loan=LoanState.shareable())
    borrowed = _book("3", loan=LoanState.borrowed("Bob"))
    mirror = Mirror(books=(favorite, lendable, borrowed))

    assert views.favorites(mirror) == [favorite]
    assert views.available_to_lend(mirror) == [lendable]
    assert views.find_book(mirror, "3") == borrowed
    with pytest.raises(NotFoundError):
        views.find_book(mirror, "4")
