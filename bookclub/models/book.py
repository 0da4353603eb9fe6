from __future__ import annotations

from datetime import date, datetime
from typing import Optional, TYPE_CHECKING

from sqlalchemy import JSON, Boolean, Date, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bookclub.models.member import Base, new_id, utcnow

if TYPE_CHECKING:
    from bookclub.models.review import Quote, Review


class Book(Base):
    """SQLAlchemy model representing a book in the club catalogue."""

    __tablename__ = "books"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    author: Mapped[str] = mapped_column(String(255), nullable=False)
    pages: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    price: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    summary: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    cover_url: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="toRead")
    start_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    end_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    suggested_by: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    year: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    genres: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=lambda: [])
    loan_status: Mapped[str] = mapped_column(String(16), nullable=False, default="unavailable")
    borrowed_by: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    is_favorite: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    reviews: Mapped[list["Review"]] = relationship(
        "Review",
        back_populates="book",
        cascade="all, delete-orphan",
        order_by="Review.created_at",
    )
    quotes: Mapped[list["Quote"]] = relationship(
        "Quote",
        back_populates="book",
        cascade="all, delete-orphan",
        order_by="Quote.created_at",
    )

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"Book(id={self.id!r}, title={self.title!r}, author={self.author!r})"
