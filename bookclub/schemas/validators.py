"""Pure validation rules shared by every entry point that accepts a draft.

Each validator either raises :class:`bookclub.core.errors.ValidationError` or returns
a normalized copy of the draft (required text trimmed, genres de-duplicated). None of
them performs I/O.
"""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from bookclub.core.errors import ErrorKind, ValidationError
from bookclub.schemas.book import BookCreate, BookUpdate, LoanState, LoanStatus
from bookclub.schemas.member import MemberCreate
from bookclub.schemas.review import QuoteCreate, ReviewCreate

MIN_SCORE = 1
MAX_SCORE = 10
SCORE_FIELDS = ("writing", "plot", "characters", "impact")

_ONE_PLACE = Decimal("0.1")


def round_one_place(value: Decimal) -> float:
    """Round half away from zero to one decimal place."""
    return float(value.quantize(_ONE_PLACE, rounding=ROUND_HALF_UP))


def mean_one_place(values: Iterable[float]) -> Optional[float]:
    numbers = [Decimal(str(value)) for value in values]
    if not numbers:
        return None
    return round_one_place(sum(numbers) / len(numbers))


def compute_overall_rating(writing: int, plot: int, characters: int, impact: int) -> float:
    """Overall review rating: the mean of the four sub-scores, one decimal place."""
    return mean_one_place((writing, plot, characters, impact))


def _required_text(value: Optional[str], field: str) -> str:
    if value is None or value == "":
        raise ValidationError(ErrorKind.MISSING_REQUIRED_FIELD, field, f"{field} is required.")
    trimmed = value.strip()
    if not trimmed:
        raise ValidationError(ErrorKind.EMPTY_AFTER_TRIM, field, f"{field} cannot be blank.")
    return trimmed


def _page_count(value: int) -> int:
    if value < 0:
        raise ValidationError(
            ErrorKind.INVALID_VALUE,
            "page_count",
            "page_count must be a non-negative integer.",
        )
    return value


def validate_loan(loan: LoanState) -> LoanState:
    if loan.status == LoanStatus.BORROWED:
        borrower = _required_text(loan.borrower, "loan.borrower")
        return LoanState.borrowed(borrower)
    if loan.borrower:
        raise ValidationError(
            ErrorKind.INVALID_VALUE,
            "loan.borrower",
            "Only a borrowed book can have a borrower.",
        )
    return LoanState(status=loan.status)


def validate_book(draft: BookCreate) -> BookCreate:
    return draft.model_copy(
        update={
            "title": _required_text(draft.title, "title"),
            "author": _required_text(draft.author, "author"),
            "page_count": _page_count(draft.page_count),
            "loan": validate_loan(draft.loan),
        }
    )


def validate_book_patch(patch: BookUpdate) -> BookUpdate:
    """Validate the fields a patch sets; unset fields are not checked."""
    changes = patch.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationError(ErrorKind.INVALID_VALUE, "patch", "Nothing to update.")

    update: dict[str, object] = {}
    for field in ("title", "author"):
        if field in changes:
            update[field] = _required_text(changes[field], field)
    if "page_count" in changes:
        if changes["page_count"] is None:
            raise ValidationError(ErrorKind.MISSING_REQUIRED_FIELD, "page_count", "page_count is required.")
        update["page_count"] = _page_count(changes["page_count"])
    for field in ("status", "loan", "is_favorite"):
        if field in changes and changes[field] is None:
            raise ValidationError(ErrorKind.MISSING_REQUIRED_FIELD, field, f"{field} is required.")
    if patch.loan is not None:
        update["loan"] = validate_loan(patch.loan)
    if "genres" in changes and changes["genres"] is None:
        update["genres"] = []
    return patch.model_copy(update=update)


def validate_review(draft: ReviewCreate) -> ReviewCreate:
    member = _required_text(draft.member, "member")
    scores = [getattr(draft, field) for field in SCORE_FIELDS]
    if not any(scores):
        raise ValidationError(
            ErrorKind.MISSING_REQUIRED_FIELD,
            "scores",
            "A review needs its four scores.",
        )
    for field, score in zip(SCORE_FIELDS, scores):
        if not MIN_SCORE <= score <= MAX_SCORE:
            raise ValidationError(
                ErrorKind.OUT_OF_RANGE_SCORE,
                field,
                f"{field} must be between {MIN_SCORE} and {MAX_SCORE}.",
            )
    return draft.model_copy(update={"member": member})


def validate_quote(draft: QuoteCreate) -> QuoteCreate:
    return draft.model_copy(
        update={
            "member": _required_text(draft.member, "member"),
            "text": _required_text(draft.text, "text"),
        }
    )


def validate_member(draft: MemberCreate) -> MemberCreate:
    return draft.model_copy(update={"name": _required_text(draft.name, "name")})
