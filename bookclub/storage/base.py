"""Contract of the object storage that holds cover images."""
from __future__ import annotations

from typing import Optional, Protocol


class ObjectStorage(Protocol):
    """Key/bytes storage on one fixed bucket.

    Implementations raise :class:`bookclub.core.errors.AssetError` on failure.
    """

    async def put(self, key: str, data: bytes, content_type: Optional[str] = None) -> None:
        ...

    def public_url_for(self, key: str) -> str:
        ...

    async def remove(self, key: str) -> None:
        ...
