from __future__ import annotations

import random
from functools import lru_cache
from typing import Callable, Optional

from bookclub.core.errors import NotFoundError, RemoteError
from bookclub.core.logging import get_logger
from bookclub.core.settings import get_settings
from bookclub.db.session import build_session_factory, get_engine
from bookclub.db.sql_store import SqlRemoteStore
from bookclub.db.store import BOOKS, MEMBERS, QUOTES, REVIEWS, RemoteStore
from bookclub.models import Base
from bookclub.schemas.book import BookCreate, BookOut, BookUpdate, LoanState
from bookclub.schemas.member import MemberCreate, MemberOut
from bookclub.schemas.mirror import Mirror, Selection
from bookclub.schemas.review import QuoteCreate, QuoteOut, ReviewCreate, ReviewOut
from bookclub.schemas.validators import (
    compute_overall_rating,
    validate_book,
    validate_book_patch,
    validate_loan,
    validate_member,
    validate_quote,
    validate_review,
)
from bookclub.services import records, views
from bookclub.services.asset_service import AssetService, CoverUpload
from bookclub.storage.local import LocalObjectStorage

logger = get_logger(__name__)

Listener = Callable[[Mirror], None]
BookTransform = Callable[[BookOut], BookOut]


class SyncEngine:
    """Owns the in-memory mirror of the catalogue and keeps it in step with the store.

    Every mutating operation validates first, awaits the remote store, and only then
    replaces the mirror with a new frozen snapshot. A failed operation leaves the
    mirror exactly as it was and raises to the caller; nothing is retried.
    """

    BOOK_INCLUDES = (REVIEWS, QUOTES)

    def __init__(self, store: RemoteStore, assets: AssetService) -> None:
        self.store = store
        self.assets = assets
        self._mirror = Mirror()
        self._selection = Selection()
        self._listeners: list[Listener] = []

    # ------------------------------------------------------------------ #
    # Snapshots & subscriptions
    # ------------------------------------------------------------------ #
    @property
    def mirror(self) -> Mirror:
        return self._mirror

    def snapshot(self) -> Mirror:
        return self._mirror

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` with every new snapshot; returns the unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _commit(self, mirror: Mirror) -> None:
        self._mirror = mirror
        for listener in list(self._listeners):
            try:
                listener(mirror)
            except Exception:  # already committed, keep notifying the rest
                logger.exception("Mirror listener %r failed", listener)

    # ------------------------------------------------------------------ #
    # Selection held for the presentation layer
    # ------------------------------------------------------------------ #
    @property
    def selection(self) -> Selection:
        return self._selection

    @property
    def selected_book(self) -> Optional[BookOut]:
        if self._selection.book_id is None:
            return None
        return self._mirror.book(self._selection.book_id)

    @property
    def selected_member(self) -> Optional[MemberOut]:
        if self._selection.member_id is None:
            return None
        return self._mirror.member(self._selection.member_id)

    def select_book(self, book_id: Optional[str]) -> Optional[BookOut]:
        book = self._require_book(book_id) if book_id is not None else None
        self._selection = self._selection.model_copy(update={"book_id": book_id})
        return book

    def select_member(self, member_id: Optional[str]) -> Optional[MemberOut]:
        member = self._require_member(member_id) if member_id is not None else None
        self._selection = self._selection.model_copy(update={"member_id": member_id})
        return member

    def select(self, book_id: Optional[str], member_id: Optional[str]) -> Selection:
        """Open a book and a member together; an unknown id leaves the selection as it was."""
        if book_id is not None:
            self._require_book(book_id)
        if member_id is not None:
            self._require_member(member_id)
        self._selection = Selection(book_id=book_id, member_id=member_id)
        return self._selection

    def draw_random_book(self, rng: Optional[random.Random] = None) -> BookOut:
        """Draw a book still to read and open it, closing any opened member."""
        book = views.draw_random(self._mirror, rng)
        self._selection = Selection(book_id=book.id)
        return book

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #
    def _require_book(self, book_id: str) -> BookOut:
        book = self._mirror.book(book_id)
        if book is None:
            raise NotFoundError("Book not found.")
        return book

    def _require_member(self, member_id: str) -> MemberOut:
        member = self._mirror.member(member_id)
        if member is None:
            raise NotFoundError("Member not found.")
        return member

    def _book_with_review(self, review_id: str) -> tuple[BookOut, ReviewOut]:
        for book in self._mirror.books:
            for review in book.reviews:
                if review.id == review_id:
                    return book, review
        raise NotFoundError("Review not found.")

    def _book_with_quote(self, quote_id: str) -> tuple[BookOut, QuoteOut]:
        for book in self._mirror.books:
            for quote in book.quotes:
                if quote.id == quote_id:
                    return book, quote
        raise NotFoundError("Quote not found.")

    def _apply_to_book(self, book_id: str, transform: BookTransform) -> Optional[BookOut]:
        """Replace one book of the current mirror in place; returns the new entry."""
        updated: Optional[BookOut] = None
        books = []
        for book in self._mirror.books:
            if book.id == book_id:
                updated = transform(book)
                books.append(updated)
            else:
                books.append(book)
        if updated is not None:
            self._commit(self._mirror.model_copy(update={"books": tuple(books)}))
        return updated

    async def _update_book_fields(self, book: BookOut, changes: dict, patch: dict) -> BookOut:
        await self.store.update(BOOKS, book.id, patch)
        updated = self._apply_to_book(book.id, lambda current: current.model_copy(update=changes))
        logger.info("Updated book %s (%s)", book.id, ", ".join(sorted(patch)))
        # The book may have been removed by an operation that finished meanwhile.
        return updated or book.model_copy(update=changes)

    # ------------------------------------------------------------------ #
    # Loading
    # ------------------------------------------------------------------ #
    async def load_all(self) -> Mirror:
        """Fetch the whole catalogue and replace the mirror in one step."""
        try:
            book_records = await self.store.select(
                BOOKS,
                order_by="created_at",
                descending=True,
                include=self.BOOK_INCLUDES,
            )
            member_records = await self.store.select(MEMBERS, order_by="created_at")
        except RemoteError:
            logger.error("Loading the catalogue failed; the mirror was left unchanged.")
            raise

        mirror = Mirror(
            loaded=True,
            books=tuple(records.book_from_record(record) for record in book_records),
            members=tuple(records.member_from_record(record) for record in member_records),
        )
        self._selection = Selection(
            book_id=self._selection.book_id if mirror.book(self._selection.book_id or "") else None,
            member_id=self._selection.member_id if mirror.member(self._selection.member_id or "") else None,
        )
        self._commit(mirror)
        logger.info("Loaded %d books and %d members", len(mirror.books), len(mirror.members))
        return mirror

    async def refresh(self) -> Mirror:
        return await self.load_all()

    # ------------------------------------------------------------------ #
    # Books
    # ------------------------------------------------------------------ #
    async def create_book(self, draft: BookCreate, cover: Optional[CoverUpload] = None) -> BookOut:
        draft = validate_book(draft)

        cover_url: Optional[str] = None
        if cover is not None:
            cover_url = await self.assets.upload(cover)

        try:
            record = await self.store.insert(BOOKS, records.book_record(draft, cover_url))
        except RemoteError:
            if cover_url:
                logger.warning("Cover %s is orphaned: book %r was not saved.", cover_url, draft.title)
            raise

        book = records.book_from_record({**record, REVIEWS: [], QUOTES: []})
        self._commit(self._mirror.model_copy(update={"books": (book, *self._mirror.books)}))
        logger.info("Created book %s (%s)", book.id, book.title)
        return book

    async def delete_book(self, book_id: str) -> None:
        book = self._require_book(book_id)
        if book.cover_url:
            await self.assets.delete_by_ref(book.cover_url)

        await self.store.delete(BOOKS, book_id)

        books = tuple(entry for entry in self._mirror.books if entry.id != book_id)
        if self._selection.book_id == book_id:
            self._selection = self._selection.model_copy(update={"book_id": None})
        self._commit(self._mirror.model_copy(update={"books": books}))
        logger.info("Deleted book %s (%s)", book_id, book.title)

    async def update_book(self, book_id: str, patch: BookUpdate) -> BookOut:
        patch = validate_book_patch(patch)
        book = self._require_book(book_id)
        changes = {field: getattr(patch, field) for field in patch.model_fields_set}
        return await self._update_book_fields(book, changes, records.book_patch_record(patch))

    async def cycle_reading_status(self, book_id: str) -> BookOut:
        book = self._require_book(book_id)
        status = book.status.next()
        return await self._update_book_fields(book, {"status": status}, {"status": status.value})

    async def toggle_favorite(self, book_id: str) -> BookOut:
        book = self._require_book(book_id)
        favorite = not book.is_favorite
        return await self._update_book_fields(book, {"is_favorite": favorite}, {"is_favorite": favorite})

    async def set_loan_state(self, book_id: str, loan: LoanState) -> BookOut:
        loan = validate_loan(loan)
        book = self._require_book(book_id)
        return await self._update_book_fields(book, {"loan": loan}, records.loan_columns(loan))

    # ------------------------------------------------------------------ #
    # Reviews & quotes
    # ------------------------------------------------------------------ #
    async def add_review(self, book_id: str, draft: ReviewCreate) -> ReviewOut:
        draft = validate_review(draft)
        self._require_book(book_id)
        rating = compute_overall_rating(draft.writing, draft.plot, draft.characters, draft.impact)

        record = await self.store.insert(REVIEWS, records.review_record(book_id, draft, rating))
        review = records.review_from_record(record)
        self._apply_to_book(book_id, lambda book: book.model_copy(update={"reviews": (*book.reviews, review)}))
        logger.info("Added review %s by %s on book %s (%.1f)", review.id, review.member, book_id, rating)
        return review

    async def delete_review(self, review_id: str) -> None:
        book, _ = self._book_with_review(review_id)
        await self.store.delete(REVIEWS, review_id)
        self._apply_to_book(
            book.id,
            lambda current: current.model_copy(
                update={"reviews": tuple(r for r in current.reviews if r.id != review_id)}
            ),
        )
        logger.info("Deleted review %s", review_id)

    async def add_quote(self, book_id: str, draft: QuoteCreate) -> QuoteOut:
        draft = validate_quote(draft)
        self._require_book(book_id)

        record = await self.store.insert(QUOTES, records.quote_record(book_id, draft))
        quote = records.quote_from_record(record)
        self._apply_to_book(book_id, lambda book: book.model_copy(update={"quotes": (*book.quotes, quote)}))
        logger.info("Added quote %s by %s on book %s", quote.id, quote.member, book_id)
        return quote

    async def delete_quote(self, quote_id: str) -> None:
        book, _ = self._book_with_quote(quote_id)
        await self.store.delete(QUOTES, quote_id)
        self._apply_to_book(
            book.id,
            lambda current: current.model_copy(
                update={"quotes": tuple(q for q in current.quotes if q.id != quote_id)}
            ),
        )
        logger.info("Deleted quote %s", quote_id)

    # ------------------------------------------------------------------ #
    # Members
    # ------------------------------------------------------------------ #
    async def add_member(self, draft: MemberCreate) -> MemberOut:
        draft = validate_member(draft)
        record = await self.store.insert(MEMBERS, records.member_record(draft))
        member = records.member_from_record(record)
        self._commit(self._mirror.model_copy(update={"members": (*self._mirror.members, member)}))
        logger.info("Added member %s (%s)", member.id, member.name)
        return member

    async def delete_member(self, member_id: str) -> None:
        """Remove a member; books, reviews and quotes keep the member's name."""
        member = self._require_member(member_id)
        await self.store.delete(MEMBERS, member_id)

        members = tuple(entry for entry in self._mirror.members if entry.id != member_id)
        if self._selection.member_id == member_id:
            self._selection = self._selection.model_copy(update={"member_id": None})
        self._commit(self._mirror.model_copy(update={"members": members}))
        logger.info("Deleted member %s (%s)", member_id, member.name)


@lru_cache
def get_sync_engine() -> SyncEngine:
    """Process-wide engine wired to the configured database and cover storage."""
    settings = get_settings()
    db_engine = get_engine()
    Base.metadata.create_all(bind=db_engine)
    store = SqlRemoteStore(build_session_factory(db_engine))
    storage = LocalObjectStorage(settings.media_root, settings.cover_bucket, settings.media_base_url)
    return SyncEngine(store, AssetService(storage, max_bytes=settings.max_cover_bytes))
