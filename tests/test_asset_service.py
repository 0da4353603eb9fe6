from __future__ import annotations

import re

import pytest

from bookclub.core.errors import AssetError, AssetErrorKind
from bookclub.schemas.book import BookOut
from bookclub.services.asset_service import AssetService, CoverUpload
from bookclub.storage.local import LocalObjectStorage

pytestmark = pytest.mark.anyio

FIVE_MIB = 5 * 1024 * 1024


async def test_upload_returns_public_url(assets, storage):
    url = await assets.upload(CoverUpload(filename="dune.JPG", content=b"jpeg-bytes", content_type="image/jpeg"))

    key = AssetService.key_for_ref(url)
    assert url == f"https://storage.test/covers/{key}"
    assert re.fullmatch(r"[0-9a-f]{16}-\d{13}\.JPG", key)
    assert storage.objects[key] == b"jpeg-bytes"


async def test_upload_keys_do_not_collide(assets, storage):
    cover = CoverUpload(filename="cover.png", content=b"png")
    urls = {await assets.upload(cover) for _ in range(20)}
    assert len(urls) == 20
    assert len(storage.objects) == 20


async def test_oversized_upload_is_rejected_before_storage(assets, storage):
    with pytest.raises(AssetError) as excinfo:
        await assets.upload(CoverUpload(filename="huge.png", content=b"x" * (FIVE_MIB + 1)))

    assert excinfo.value.kind == AssetErrorKind.SIZE_EXCEEDED
    assert storage.objects == {}


async def test_upload_at_the_ceiling_is_accepted(assets, storage):
    await assets.upload(CoverUpload(filename="max.png", content=b"x" * FIVE_MIB))
    assert len(storage.objects) == 1


async def test_upload_failure_propagates(assets, storage):
    storage.fail_put = True
    with pytest.raises(AssetError) as excinfo:
        await assets.upload(CoverUpload(filename="cover.png", content=b"png"))
    assert excinfo.value.kind == AssetErrorKind.UPLOAD_FAILED


async def test_delete_failure_is_swallowed(assets, storage):
    storage.fail_remove = True
    await assets.delete_by_ref("https://storage.test/covers/abc-1.png")
    assert storage.removed == ["abc-1.png"]


async def test_local_storage_roundtrip(tmp_path):
    local = LocalObjectStorage(tmp_path, "covers", "/media/")
    service = AssetService(local, max_bytes=1024)

    url = await service.upload(CoverUpload(filename="cover.webp", content=b"webp"))
    key = AssetService.key_for_ref(url)

    assert url == f"/media/covers/{key}"
    assert (tmp_path / "covers" / key).read_bytes() == b"webp"

    await service.delete_by_ref(url)
    assert not (tmp_path / "covers" / key).exists()


async def test_local_storage_remove_missing_raises(tmp_path):
    local = LocalObjectStorage(tmp_path, "covers", "/media")
    with pytest.raises(AssetError) as excinfo:
        await local.remove("missing.png")
    assert excinfo.value.kind == AssetErrorKind.DELETE_FAILED


@pytest.mark.parametrize(
    ("ref", "key"),
    [
        ("https://storage.test/covers/abc-1.png", "abc-1.png"),
        ("https://storage.test/covers/abc-1.png/", "abc-1.png"),
        ("abc-1.png", "abc-1.png"),
        ("/", None),
        ("", None),
        (None, None),
    ],
)
def test_cover_key_is_derived_the_same_way_everywhere(ref, key):
    book = BookOut(id="1", title="Dune", author="Frank Herbert", cover_url=ref)
    assert AssetService.key_for_ref(ref) == key
    assert book.cover_asset_ref == key


async def test_delete_without_a_key_does_not_touch_storage(assets, storage):
    await assets.delete_by_ref("/")
    assert storage.removed == []
