from __future__ import annotations

from fastapi import APIRouter, Depends

from bookclub.schemas.book import BookOut, ReadingStatus
from bookclub.schemas.mirror import MemberActivity, Mirror, Selection
from bookclub.services import views
from bookclub.services.sync_engine import SyncEngine, get_sync_engine

router = APIRouter(tags=["mirror"])


@router.get("/mirror", response_model=Mirror)
def get_mirror(engine: SyncEngine = Depends(get_sync_engine)) -> Mirror:
    """Current snapshot of the whole catalogue."""
    return engine.snapshot()


@router.post("/mirror/refresh", response_model=Mirror)
async def refresh_mirror(engine: SyncEngine = Depends(get_sync_engine)) -> Mirror:
    return await engine.refresh()


@router.get("/selection", response_model=Selection)
def get_selection(engine: SyncEngine = Depends(get_sync_engine)) -> Selection:
    return engine.selection


@router.put("/selection", response_model=Selection)
async def set_selection(payload: Selection, engine: SyncEngine = Depends(get_sync_engine)) -> Selection:
    return engine.select(payload.book_id, payload.member_id)


@router.get("/views/status/{reading_status}", response_model=list[BookOut])
def books_by_status(
    reading_status: ReadingStatus,
    engine: SyncEngine = Depends(get_sync_engine),
) -> list[BookOut]:
    return views.by_status(engine.snapshot(), reading_status)


@router.get("/views/counts", response_model=dict[str, int])
def counts(engine: SyncEngine = Depends(get_sync_engine)) -> dict[str, int]:
    """Number of books per reading status."""
    return {status.value: total for status, total in views.status_counts(engine.snapshot()).items()}


@router.get("/views/favorites", response_model=list[BookOut])
def favorite_books(engine: SyncEngine = Depends(get_sync_engine)) -> list[BookOut]:
    return views.favorites(engine.snapshot())


@router.get("/views/lendable", response_model=list[BookOut])
def lendable_books(engine: SyncEngine = Depends(get_sync_engine)) -> list[BookOut]:
    return views.available_to_lend(engine.snapshot())


@router.post("/views/draw", response_model=BookOut)
async def draw_book(engine: SyncEngine = Depends(get_sync_engine)) -> BookOut:
    """Pick a random book still to read and select it."""
    return engine.draw_random_book()


@router.get("/views/members/{member_name}/activity", response_model=MemberActivity)
def member_activity(member_name: str, engine: SyncEngine = Depends(get_sync_engine)) -> MemberActivity:
    return views.member_activity(engine.snapshot(), member_name)
