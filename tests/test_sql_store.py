from __future__ import annotations

from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from bookclub.core.errors import NotFoundError
from bookclub.db.sql_store import SqlRemoteStore
from bookclub.models import Base
from bookclub.schemas.book import BookCreate, LoanState, ReadingStatus
from bookclub.schemas.member import MemberCreate
from bookclub.schemas.review import QuoteCreate, ReviewCreate
from bookclub.services.asset_service import AssetService, CoverUpload
from bookclub.services.sync_engine import SyncEngine

pytestmark = pytest.mark.anyio


@pytest.fixture()
def sql_store() -> SqlRemoteStore:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(
        bind=engine,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
    )
    return SqlRemoteStore(TestingSessionLocal)


async def test_insert_and_select_with_nested_children(sql_store: SqlRemoteStore):
    book = await sql_store.insert("books", {"title": "Dune", "author": "Frank Herbert", "status": "toRead"})
    assert book["id"]
    assert book["pages"] == 0
    assert book["genres"] == []

    await sql_store.insert(
        "reviews",
        {"book_id": book["id"], "member": "Alice", "rating": 8.3, "writing": 8, "plot": 9, "characters": 7, "impact": 9},
    )
    await sql_store.insert("quotes", {"book_id": book["id"], "member": "Alice", "text": "The spice must flow."})

    rows = await sql_store.select("books", include=("reviews", "quotes"))
    assert len(rows) == 1
    assert [review["rating"] for review in rows[0]["reviews"]] == [8.3]
    assert [quote["text"] for quote in rows[0]["quotes"]] == ["The spice must flow."]


async def test_select_filters_and_orders(sql_store: SqlRemoteStore):
    for name in ("Alice", "Bob", "Alice"):
        await sql_store.insert("members", {"name": name})

    assert [row["name"] for row in await sql_store.select("members", order_by="created_at")] == [
        "Alice",
        "Bob",
        "Alice",
    ]
    assert len(await sql_store.select("members", filters={"name": "Alice"})) == 2


async def test_update_and_delete_missing_records(sql_store: SqlRemoteStore):
    with pytest.raises(NotFoundError):
        await sql_store.update("books", "missing", {"title": "x"})
    with pytest.raises(NotFoundError):
        await sql_store.delete("members", "missing")


async def test_deleting_a_book_cascades_to_reviews_and_quotes(sql_store: SqlRemoteStore):
    book = await sql_store.insert("books", {"title": "Dune", "author": "Frank Herbert", "status": "toRead"})
    await sql_store.insert(
        "reviews",
        {"book_id": book["id"], "member": "Bob", "rating": 5.0, "writing": 5, "plot": 5, "characters": 5, "impact": 5},
    )
    await sql_store.insert("quotes", {"book_id": book["id"], "member": "Bob", "text": "Hope."})

    await sql_store.delete("books", book["id"])

    assert await sql_store.select("reviews") == []
    assert await sql_store.select("quotes") == []


async def test_engine_round_trip_through_sql(sql_store: SqlRemoteStore, storage):
    engine = SyncEngine(sql_store, AssetService(storage))
    await engine.add_member(MemberCreate(name="Alice"))
    created = await engine.create_book(
        BookCreate(
            title="Dune",
            author="Frank Herbert",
            page_count=612,
            price="12€",
            summary="Spice.",
            start_date=date(2024, 3, 1),
            end_date=date(2024, 2, 1),
            suggested_by="Alice",
            publication_year="1965",
            genres=["SF", "Classic"],
            loan=LoanState.borrowed("Bob"),
            is_favorite=True,
        ),
        CoverUpload(filename="dune.png", content=b"png"),
    )
    await engine.add_review(created.id, ReviewCreate(member="Alice", writing=8, plot=9, characters=7, impact=9))
    await engine.add_quote(created.id, QuoteCreate(member="Alice", text="Fear is the mind-killer."))
    await engine.cycle_reading_status(created.id)

    fresh = SyncEngine(sql_store, AssetService(storage))
    mirror = await fresh.load_all()

    [book] = mirror.books
    fields = set(BookCreate.model_fields) - {"status"}
    assert {field: getattr(book, field) for field in fields} == {
        field: getattr(created, field) for field in fields
    }
    assert book.cover_url == created.cover_url
    assert book.status == ReadingStatus.READING
    assert [review.rating for review in book.reviews] == [8.3]
    assert [quote.member for quote in book.quotes] == ["Alice"]
    assert [member.name for member in mirror.members] == ["Alice"]
