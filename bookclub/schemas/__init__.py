from .book import (
    BookCreate,
    BookOut,
    BookUpdate,
    LoanState,
    LoanStatus,
    ReadingStatus,
    parse_genres,
)
from .member import MemberCreate, MemberOut
from .mirror import MemberActivity, Mirror, Selection
from .review import QuoteActivity, QuoteCreate, QuoteOut, ReviewActivity, ReviewCreate, ReviewOut

__all__ = [
    "BookCreate",
    "BookOut",
    "BookUpdate",
    "LoanState",
    "LoanStatus",
    "ReadingStatus",
    "parse_genres",
    "MemberCreate",
    "MemberOut",
    "MemberActivity",
    "Mirror",
    "Selection",
    "QuoteActivity",
    "QuoteCreate",
    "QuoteOut",
    "ReviewActivity",
    "ReviewCreate",
    "ReviewOut",
]
