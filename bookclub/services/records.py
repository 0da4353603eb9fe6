"""Translation between remote-store records and the mirror's read shapes."""
from __future__ import annotations

from typing import Any, Mapping

from bookclub.db.store import Record
from bookclub.schemas.book import BookCreate, BookOut, BookUpdate, LoanState, LoanStatus
from bookclub.schemas.member import MemberCreate, MemberOut
from bookclub.schemas.review import QuoteCreate, QuoteOut, ReviewCreate, ReviewOut

# schema field -> books column, for fields stored under a different name
_BOOK_COLUMNS = {
    "page_count": "pages",
    "publication_year": "year",
}


def loan_columns(loan: LoanState) -> Record:
    return {"loan_status": loan.status.value, "borrowed_by": loan.borrower}


def book_record(draft: BookCreate, cover_url: str | None) -> Record:
    return {
        "title": draft.title,
        "author": draft.author,
        "pages": draft.page_count,
        "price": draft.price,
        "summary": draft.summary,
        "cover_url": cover_url,
        "status": draft.status.value,
        "start_date": draft.start_date,
        "end_date": draft.end_date,
        "suggested_by": draft.suggested_by,
        "year": draft.publication_year,
        "genres": list(draft.genres),
        "is_favorite": draft.is_favorite,
        **loan_columns(draft.loan),
    }


def book_patch_record(patch: BookUpdate) -> Record:
    record: Record = {}
    for field, value in patch.model_dump(exclude_unset=True).items():
        if field == "loan":
            record.update(loan_columns(patch.loan))
        elif field == "status":
            record["status"] = patch.status.value
        else:
            record[_BOOK_COLUMNS.get(field, field)] = value
    return record


def review_from_record(record: Mapping[str, Any]) -> ReviewOut:
    return ReviewOut.model_validate(dict(record))


def quote_from_record(record: Mapping[str, Any]) -> QuoteOut:
    return QuoteOut.model_validate(dict(record))


def member_from_record(record: Mapping[str, Any]) -> MemberOut:
    return MemberOut.model_validate(dict(record))


def book_from_record(record: Mapping[str, Any]) -> BookOut:
    borrower = record.get("borrowed_by")
    loan_status = LoanStatus(record.get("loan_status") or LoanStatus.UNAVAILABLE.value)
    return BookOut(
        id=record["id"],
        title=record["title"],
        author=record["author"],
        page_count=record.get("pages") or 0,
        price=record.get("price"),
        summary=record.get("summary"),
        cover_url=record.get("cover_url") or None,
        status=record["status"],
        start_date=record.get("start_date"),
        end_date=record.get("end_date"),
        suggested_by=record.get("suggested_by"),
        publication_year=record.get("year"),
        genres=record.get("genres") or [],
        loan=LoanState(status=loan_status, borrower=borrower if loan_status == LoanStatus.BORROWED else None),
        is_favorite=bool(record.get("is_favorite")),
        created_at=record.get("created_at"),
        reviews=tuple(review_from_record(review) for review in record.get("reviews") or ()),
        quotes=tuple(quote_from_record(quote) for quote in record.get("quotes") or ()),
    )


def review_record(book_id: str, draft: ReviewCreate, rating: float) -> Record:
    return {
        "book_id": book_id,
        "member": draft.member,
        "rating": rating,
        "writing": draft.writing,
        "plot": draft.plot,
        "characters": draft.characters,
        "impact": draft.impact,
        "reading_time": draft.reading_time or None,
        "comment": draft.comment,
    }


def quote_record(book_id: str, draft: QuoteCreate) -> Record:
    return {"book_id": book_id, "member": draft.member, "text": draft.text}


def member_record(draft: MemberCreate) -> Record:
    return {"name": draft.name}
