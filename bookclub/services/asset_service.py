from __future__ import annotations

import secrets
import time
from dataclasses import dataclass
from pathlib import PurePath
from typing import Optional

from bookclub.core.errors import AssetError, AssetErrorKind
from bookclub.core.logging import get_logger
from bookclub.core.settings import DEFAULT_MAX_COVER_BYTES
from bookclub.schemas.book import cover_key_from_ref
from bookclub.storage.base import ObjectStorage

logger = get_logger(__name__)


@dataclass(frozen=True)
class CoverUpload:
    """A cover image picked by the user, not yet stored."""

    filename: str
    content: bytes
    content_type: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.content)


class AssetService:
    """Cover image lifecycle against the object storage."""

    def __init__(self, storage: ObjectStorage, max_bytes: int = DEFAULT_MAX_COVER_BYTES) -> None:
        self.storage = storage
        self.max_bytes = max_bytes

    def _new_key(self, filename: str) -> str:
        extension = PurePath(filename).suffix.lstrip(".")
        key = f"{secrets.token_hex(8)}-{int(time.time() * 1000)}"
        return f"{key}.{extension}" if extension else key

    @staticmethod
    def key_for_ref(asset_ref: Optional[str]) -> Optional[str]:
        return cover_key_from_ref(asset_ref)

    async def upload(self, cover: CoverUpload) -> str:
        """Store ``cover`` and return its public URL."""
        if cover.size > self.max_bytes:
            raise AssetError(
                AssetErrorKind.SIZE_EXCEEDED,
                f"The image is too large (max {self.max_bytes / (1024 * 1024):g} MB).",
            )

        key = self._new_key(cover.filename)
        await self.storage.put(key, cover.content, cover.content_type)
        logger.info("Uploaded cover %s (%d bytes)", key, cover.size)
        return self.storage.public_url_for(key)

    async def delete_by_ref(self, asset_ref: str) -> None:
        """Remove the asset behind ``asset_ref``; failures are logged, never raised."""
        key = self.key_for_ref(asset_ref)
        if not key:
            return
        try:
            await self.storage.remove(key)
        except Exception as exc:  # best-effort, never raised to the caller
            logger.warning("Could not delete cover %s: %s", key, exc)
        else:
            logger.info("Deleted cover %s", key)
