from __future__ import annotations

import asyncio
from typing import Any, Mapping, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload, sessionmaker

from bookclub.core.errors import NotFoundError, RemoteError
from bookclub.core.logging import get_logger
from bookclub.db.store import BOOKS, MEMBERS, QUOTES, REVIEWS, Record
from bookclub.models import Base, Book, Member, Quote, Review

logger = get_logger(__name__)

MODELS: dict[str, type[Base]] = {
    BOOKS: Book,
    REVIEWS: Review,
    QUOTES: Quote,
    MEMBERS: Member,
}


def _to_record(obj: Base, include: Sequence[str] = ()) -> Record:
    mapper = obj.__mapper__
    record: Record = {attr.key: getattr(obj, attr.key) for attr in mapper.column_attrs}
    for name in include:
        record[name] = [_to_record(child) for child in getattr(obj, name)]
    return record


class SqlRemoteStore:
    """Remote store backed by a SQLAlchemy session factory.

    Blocking session work runs in a worker thread so the caller's event loop keeps
    running while a statement is in flight.
    """

    def __init__(self, session_factory: sessionmaker) -> None:
        self.session_factory = session_factory

    def _model(self, collection: str) -> type[Base]:
        try:
            return MODELS[collection]
        except KeyError as exc:
            raise RemoteError(f"Unknown collection {collection!r}.") from exc

    async def _run(self, operation, *args):
        try:
            return await asyncio.to_thread(operation, *args)
        except SQLAlchemyError as exc:
            logger.error("Remote store operation %s failed: %s", operation.__name__, exc)
            raise RemoteError("The catalogue could not be reached. Please try again.") from exc

    # ------------------------------------------------------------------ #
    # Blocking implementations
    # ------------------------------------------------------------------ #
    def _select(
        self,
        collection: str,
        filters: Optional[Mapping[str, Any]],
        order_by: Optional[str],
        descending: bool,
        include: Sequence[str],
    ) -> list[Record]:
        model = self._model(collection)
        stmt = select(model)
        for column, value in (filters or {}).items():
            stmt = stmt.where(getattr(model, column) == value)
        if order_by:
            column = getattr(model, order_by)
            stmt = stmt.order_by(column.desc() if descending else column.asc())
        for name in include:
            stmt = stmt.options(selectinload(getattr(model, name)))

        session: Session = self.session_factory()
        try:
            rows = session.execute(stmt).scalars().all()
            return [_to_record(row, include) for row in rows]
        finally:
            session.close()

    def _insert(self, collection: str, record: Mapping[str, Any]) -> Record:
        model = self._model(collection)
        obj = model(**record)
        session: Session = self.session_factory()
        try:
            session.add(obj)
            try:
                session.commit()
            except SQLAlchemyError:
                session.rollback()
                raise
            session.refresh(obj)
            return _to_record(obj)
        finally:
            session.close()

    def _update(self, collection: str, record_id: str, patch: Mapping[str, Any]) -> None:
        model = self._model(collection)
        session: Session = self.session_factory()
        try:
            obj = session.get(model, record_id)
            if obj is None:
                raise NotFoundError(f"No {collection} record with id {record_id}.")
            for column, value in patch.items():
                setattr(obj, column, value)
            try:
                session.commit()
            except SQLAlchemyError:
                session.rollback()
                raise
        finally:
            session.close()

    def _delete(self, collection: str, record_id: str) -> None:
        model = self._model(collection)
        session: Session = self.session_factory()
        try:
            obj = session.get(model, record_id)
            if obj is None:
                raise NotFoundError(f"No {collection} record with id {record_id}.")
            # ORM cascade removes a book's reviews and quotes along with it.
            session.delete(obj)
            try:
                session.commit()
            except SQLAlchemyError:
                session.rollback()
                raise
        finally:
            session.close()

    # ------------------------------------------------------------------ #
    # RemoteStore
    # ------------------------------------------------------------------ #
    async def select(
        self,
        collection: str,
        *,
        filters: Optional[Mapping[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        include: Sequence[str] = (),
    ) -> list[Record]:
        return await self._run(self._select, collection, filters, order_by, descending, tuple(include))

    async def insert(self, collection: str, record: Mapping[str, Any]) -> Record:
        return await self._run(self._insert, collection, dict(record))

    async def update(self, collection: str, record_id: str, patch: Mapping[str, Any]) -> None:
        await self._run(self._update, collection, record_id, dict(patch))

    async def delete(self, collection: str, record_id: str) -> None:
        await self._run(self._delete, collection, record_id)
