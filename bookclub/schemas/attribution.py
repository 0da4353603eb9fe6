"""Member attribution by name.

Books, reviews, quotes and loans remember members through a copy of the member's
name, not through the member id. Everything that needs to know who did what goes
through these accessors.
"""
from __future__ import annotations

from typing import Optional, Union

from bookclub.schemas.book import BookOut, LoanStatus
from bookclub.schemas.review import QuoteOut, ReviewOut


def suggested_by(book: BookOut) -> Optional[str]:
    return book.suggested_by


def author_of(entry: Union[ReviewOut, QuoteOut]) -> str:
    return entry.member


def borrower_of(book: BookOut) -> Optional[str]:
    if book.loan.status != LoanStatus.BORROWED:
        return None
    return book.loan.borrower


def same_member(name: Optional[str], member_name: str) -> bool:
    # Exact, case-sensitive comparison.
    return name is not None and name == member_name
