from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Response, UploadFile, status
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from bookclub.schemas.book import BookCreate, BookOut, BookUpdate, LoanState
from bookclub.schemas.review import QuoteCreate, QuoteOut, ReviewCreate, ReviewOut
from bookclub.services import views
from bookclub.services.asset_service import CoverUpload
from bookclub.services.sync_engine import SyncEngine, get_sync_engine

router = APIRouter(tags=["books"])


class RatingOut(BaseModel):
    book_id: str = Field(alias="bookId")
    average_rating: Optional[float] = Field(default=None, alias="averageRating")
    review_count: int = Field(alias="reviewCount")

    model_config = ConfigDict(populate_by_name=True)


@router.get("/books", response_model=list[BookOut])
def list_books(engine: SyncEngine = Depends(get_sync_engine)) -> list[BookOut]:
    """All books, newest first."""
    return list(engine.snapshot().books)


@router.get("/books/{book_id}", response_model=BookOut)
def get_book(book_id: str, engine: SyncEngine = Depends(get_sync_engine)) -> BookOut:
    return views.find_book(engine.snapshot(), book_id)


@router.post("/books", status_code=status.HTTP_201_CREATED, response_model=BookOut)
async def create_book(
    book: str = Form(..., description="BookCreate payload as JSON"),
    cover: Optional[UploadFile] = File(default=None),
    engine: SyncEngine = Depends(get_sync_engine),
) -> BookOut:
    """Create a book, uploading its cover first when one is attached."""
    try:
        payload = BookCreate.model_validate_json(book)
    except PydanticValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=exc.errors(include_url=False, include_context=False),
        ) from exc

    upload = None
    if cover is not None and cover.filename:
        upload = CoverUpload(
            filename=cover.filename,
            content=await cover.read(),
            content_type=cover.content_type,
        )
    return await engine.create_book(payload, upload)


@router.patch("/books/{book_id}", response_model=BookOut)
async def update_book(
    book_id: str,
    payload: BookUpdate,
    engine: SyncEngine = Depends(get_sync_engine),
) -> BookOut:
    return await engine.update_book(book_id, payload)


@router.delete("/books/{book_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
async def delete_book(book_id: str, engine: SyncEngine = Depends(get_sync_engine)) -> Response:
    """Delete a book with its reviews, quotes and cover."""
    await engine.delete_book(book_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/books/{book_id}/status/cycle", response_model=BookOut)
async def cycle_status(book_id: str, engine: SyncEngine = Depends(get_sync_engine)) -> BookOut:
    return await engine.cycle_reading_status(book_id)


@router.post("/books/{book_id}/favorite", response_model=BookOut)
async def toggle_favorite(book_id: str, engine: SyncEngine = Depends(get_sync_engine)) -> BookOut:
    return await engine.toggle_favorite(book_id)


@router.put("/books/{book_id}/loan", response_model=BookOut)
async def set_loan(
    book_id: str,
    payload: LoanState,
    engine: SyncEngine = Depends(get_sync_engine),
) -> BookOut:
    return await engine.set_loan_state(book_id, payload)


@router.get("/books/{book_id}/rating", response_model=RatingOut)
def get_rating(book_id: str, engine: SyncEngine = Depends(get_sync_engine)) -> RatingOut:
    book = views.find_book(engine.snapshot(), book_id)
    return RatingOut(
        book_id=book.id,
        average_rating=views.average_rating(book),
        review_count=len(book.reviews),
    )


@router.post("/books/{book_id}/reviews", status_code=status.HTTP_201_CREATED, response_model=ReviewOut)
async def create_review(
    book_id: str,
    payload: ReviewCreate,
    engine: SyncEngine = Depends(get_sync_engine),
) -> ReviewOut:
    return await engine.add_review(book_id, payload)


@router.delete("/reviews/{review_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
async def delete_review(review_id: str, engine: SyncEngine = Depends(get_sync_engine)) -> Response:
    await engine.delete_review(review_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/books/{book_id}/quotes", status_code=status.HTTP_201_CREATED, response_model=QuoteOut)
async def create_quote(
    book_id: str,
    payload: QuoteCreate,
    engine: SyncEngine = Depends(get_sync_engine),
) -> QuoteOut:
    return await engine.add_quote(book_id, payload)


@router.delete("/quotes/{quote_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
async def delete_quote(quote_id: str, engine: SyncEngine = Depends(get_sync_engine)) -> Response:
    await engine.delete_quote(quote_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
