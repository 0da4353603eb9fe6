"""Contract of the remote persistent store the engine synchronizes against."""
from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence

Record = dict[str, Any]

BOOKS = "books"
REVIEWS = "reviews"
QUOTES = "quotes"
MEMBERS = "members"

COLLECTIONS = (BOOKS, REVIEWS, QUOTES, MEMBERS)


class RemoteStore(Protocol):
    """CRUD-with-filter over named collections.

    Implementations raise :class:`bookclub.core.errors.RemoteError` when an operation
    cannot be performed and :class:`bookclub.core.errors.NotFoundError` when
    ``update``/``delete`` address a record that does not exist.
    """

    async def select(
        self,
        collection: str,
        *,
        filters: Optional[Mapping[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        include: Sequence[str] = (),
    ) -> list[Record]:
        """Return matching records; ``include`` eagerly nests related collections."""
        ...

    async def insert(self, collection: str, record: Mapping[str, Any]) -> Record:
        """Insert ``record`` and return it as stored, including its new ``id``."""
        ...

    async def update(self, collection: str, record_id: str, patch: Mapping[str, Any]) -> None:
        ...

    async def delete(self, collection: str, record_id: str) -> None:
        ...
