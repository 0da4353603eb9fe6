from __future__ import annotations

import copy
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Optional, Sequence

import pytest

from bookclub.core.errors import AssetError, AssetErrorKind, NotFoundError, RemoteError
from bookclub.services.asset_service import AssetService
from bookclub.services.sync_engine import SyncEngine


class FakeRemoteStore:
    """In-memory stand-in for the remote store with switchable failures."""

    CHILDREN = ("reviews", "quotes")

    def __init__(self) -> None:
        self.tables: dict[str, dict[str, dict[str, Any]]] = {
            "books": {},
            "reviews": {},
            "quotes": {},
            "members": {},
        }
        self.failures: set[tuple[str, str]] = set()
        self.calls: list[tuple[str, str]] = []
        self._clock = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def fail(self, operation: str, collection: str) -> None:
        self.failures.add((operation, collection))

    def _enter(self, operation: str, collection: str) -> None:
        self.calls.append((operation, collection))
        if (operation, collection) in self.failures:
            raise RemoteError(f"{operation} on {collection} failed")

    def _tick(self) -> datetime:
        self._clock += timedelta(seconds=1)
        return self._clock

    async def select(
        self,
        collection: str,
        *,
        filters: Optional[Mapping[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        include: Sequence[str] = (),
    ) -> list[dict[str, Any]]:
        self._enter("select", collection)
        rows = [
            copy.deepcopy(row)
            for row in self.tables[collection].values()
            if all(row.get(key) == value for key, value in (filters or {}).items())
        ]
        if order_by:
            rows.sort(key=lambda row: row[order_by], reverse=descending)
        for name in include:
            for row in rows:
                children = [
                    copy.deepcopy(child)
                    for child in self.tables[name].values()
                    if child["book_id"] == row["id"]
                ]
                row[name] = sorted(children, key=lambda child: child["created_at"])
        return rows

    async def insert(self, collection: str, record: Mapping[str, Any]) -> dict[str, Any]:
        self._enter("insert", collection)
        row = {**copy.deepcopy(dict(record)), "id": str(uuid.uuid4()), "created_at": self._tick()}
        self.tables[collection][row["id"]] = row
        return copy.deepcopy(row)

    async def update(self, collection: str, record_id: str, patch: Mapping[str, Any]) -> None:
        self._enter("update", collection)
        if record_id not in self.tables[collection]:
            raise NotFoundError(f"No {collection} record with id {record_id}.")
        self.tables[collection][record_id].update(copy.deepcopy(dict(patch)))

    async def delete(self, collection: str, record_id: str) -> None:
        self._enter("delete", collection)
        if record_id not in self.tables[collection]:
            raise NotFoundError(f"No {collection} record with id {record_id}.")
        del self.tables[collection][record_id]
        if collection == "books":
            for child in self.CHILDREN:
                table = self.tables[child]
                for child_id in [key for key, row in table.items() if row["book_id"] == record_id]:
                    del table[child_id]


class FakeObjectStorage:
    """In-memory object storage on the covers bucket."""

    def __init__(self) -> None:
        self.objects: dict[str, bytes] = {}
        self.fail_put = False
        self.fail_remove = False
        self.removed: list[str] = []

    async def put(self, key: str, data: bytes, content_type: Optional[str] = None) -> None:
        if self.fail_put:
            raise AssetError(AssetErrorKind.UPLOAD_FAILED, "upload refused")
        self.objects[key] = data

    def public_url_for(self, key: str) -> str:
        return f"https://storage.test/covers/{key}"

    async def remove(self, key: str) -> None:
        self.removed.append(key)
        if self.fail_remove:
            raise AssetError(AssetErrorKind.DELETE_FAILED, "remove refused")
        self.objects.pop(key, None)


@pytest.fixture()
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture()
def store() -> FakeRemoteStore:
    return FakeRemoteStore()


@pytest.fixture()
def storage() -> FakeObjectStorage:
    return FakeObjectStorage()


@pytest.fixture()
def assets(storage: FakeObjectStorage) -> AssetService:
    return AssetService(storage)


@pytest.fixture()
def engine(store: FakeRemoteStore, assets: AssetService) -> SyncEngine:
    return SyncEngine(store, assets)
