from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

from bookclub.core.errors import AssetError, AssetErrorKind
from bookclub.core.logging import get_logger

logger = get_logger(__name__)


class LocalObjectStorage:
    """Stores objects as files under ``<root>/<bucket>`` and serves them from ``base_url``."""

    def __init__(self, root: Path, bucket: str, base_url: str) -> None:
        self.root = Path(root)
        self.bucket = bucket
        self.base_url = base_url.rstrip("/")

    @property
    def bucket_dir(self) -> Path:
        return self.root / self.bucket

    def _path_for(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key in {".", ".."}:
            raise AssetError(AssetErrorKind.UPLOAD_FAILED, f"Invalid object key {key!r}.")
        return self.bucket_dir / key

    def _write(self, path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("xb") as handle:
            handle.write(data)

    async def put(self, key: str, data: bytes, content_type: Optional[str] = None) -> None:
        path = self._path_for(key)
        try:
            await asyncio.to_thread(self._write, path, data)
        except OSError as exc:
            raise AssetError(AssetErrorKind.UPLOAD_FAILED, "The cover image could not be stored.") from exc
        logger.debug("Stored %s (%d bytes, %s)", path, len(data), content_type or "unknown type")

    def public_url_for(self, key: str) -> str:
        return f"{self.base_url}/{self.bucket}/{key}"

    async def remove(self, key: str) -> None:
        try:
            path = self._path_for(key)
        except AssetError as exc:
            raise AssetError(AssetErrorKind.DELETE_FAILED, exc.message) from exc
        try:
            await asyncio.to_thread(path.unlink)
        except OSError as exc:
            raise AssetError(AssetErrorKind.DELETE_FAILED, f"Could not remove {key}.") from exc
