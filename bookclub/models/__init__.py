from .member import Base, Member
from .book import Book
from .review import Quote, Review

__all__ = ["Base", "Member", "Book", "Review", "Quote"]
