from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from bookclub.core.errors import (
    AssetError,
    AssetErrorKind,
    BookClubError,
    NotFoundError,
    RemoteError,
    ValidationError,
)
from bookclub.core.logging import configure_logging, get_logger
from bookclub.core.settings import get_settings
from bookclub.routers.books import router as books_router
from bookclub.routers.members import router as members_router
from bookclub.routers.mirror import router as mirror_router
from bookclub.services.sync_engine import get_sync_engine

settings = get_settings()
configure_logging(settings.log_level)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    engine = app.dependency_overrides.get(get_sync_engine, get_sync_engine)()
    try:
        await engine.load_all()
    except RemoteError:
        # Stays unloaded; the UI can retry through POST /mirror/refresh.
        logger.error("Initial catalogue load failed")
    yield


app = FastAPI(title="Book Club Tracker API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _status_for(exc: BookClubError) -> int:
    if isinstance(exc, ValidationError):
        return status.HTTP_422_UNPROCESSABLE_ENTITY
    if isinstance(exc, NotFoundError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, AssetError) and exc.kind == AssetErrorKind.SIZE_EXCEEDED:
        return status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
    if isinstance(exc, (AssetError, RemoteError)):
        return status.HTTP_502_BAD_GATEWAY
    return status.HTTP_400_BAD_REQUEST


@app.exception_handler(BookClubError)
async def handle_book_club_error(request: Request, exc: BookClubError) -> JSONResponse:
    return JSONResponse(status_code=_status_for(exc), content={"detail": exc.to_detail()})


@app.get("/")
def read_root():
    return {"message": "Book club tracker"}


app.include_router(mirror_router)
app.include_router(books_router)
app.include_router(members_router)
if settings.media_base_url.startswith("/"):
    app.mount(
        settings.media_base_url,
        StaticFiles(directory=settings.media_root, check_dir=False),
        name="media",
    )
