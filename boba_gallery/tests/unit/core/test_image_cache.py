import asyncio
import hashlib
import json

import pytest

from boba_gallery.core.image_cache import (
    ImageOptimizationCache,
    PersistenceWriteError,
    hash_image_url,
)
from boba_gallery.integrations.cdn_client import UploadRejected, UploadTimeout
from boba_gallery.models import CacheStatus

RAW_URL = "https://dl.airtable.com/shot1.png"
CDN_URL = "https://cdn.hackclub.com/abc123_shot1.png"


class FakeUploader:
    """Records every upload; returns a fixed URL or raises a queued error."""

    def __init__(self, result=CDN_URL, error=None, delay=0.0):
        self.result = result
        self.error = error
        self.delay = delay
        self.calls = []

    async def upload(self, image_url):
        self.calls.append(image_url)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def metadata_path(tmp_path):
    return tmp_path / "data" / "image-metadata.json"


def test_hash_image_url_is_md5_hex():
    assert hash_image_url(RAW_URL) == hashlib.md5(RAW_URL.encode("utf-8")).hexdigest()
    assert hash_image_url(RAW_URL) != hash_image_url(CDN_URL)


@pytest.mark.asyncio
async def test_resolve_uploads_once_and_reuses(metadata_path):
    uploader = FakeUploader()
    cache = ImageOptimizationCache(metadata_path, uploader)

    first = await cache.resolve(RAW_URL)
    second = await cache.resolve(RAW_URL)

    assert first == CDN_URL
    assert second == CDN_URL
    assert uploader.calls == [RAW_URL]
    assert cache.get(RAW_URL).status is CacheStatus.OPTIMIZED


@pytest.mark.asyncio
async def test_resolve_survives_reload(metadata_path):
    first_uploader = FakeUploader()
    await ImageOptimizationCache(metadata_path, first_uploader).resolve(RAW_URL)

    second_uploader = FakeUploader(result="https://cdn.hackclub.com/other.png")
    reloaded = ImageOptimizationCache(metadata_path, second_uploader)
    assert reloaded.load() == 1

    assert await reloaded.resolve(RAW_URL) == CDN_URL
    assert second_uploader.calls == []


@pytest.mark.asyncio
async def test_persisted_format(metadata_path):
    cache = ImageOptimizationCache(metadata_path, FakeUploader())
    await cache.resolve(RAW_URL)

    data = json.loads(metadata_path.read_text(encoding="utf-8"))
    entry = data[hash_image_url(RAW_URL)]
    assert entry["originalUrl"] == RAW_URL
    assert entry["cdnUrl"] == CDN_URL
    assert entry["status"] == "optimized"
    assert "timestamp" in entry
    assert "error" not in entry


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [
        UploadTimeout("CDN upload timed out"),
        UploadRejected(500, "Internal Server Error"),
        RuntimeError("boom"),
    ],
)
async def test_failure_falls_back_and_is_remembered(metadata_path, error):
    uploader = FakeUploader(error=error)
    cache = ImageOptimizationCache(metadata_path, uploader)

    assert await cache.resolve(RAW_URL) == RAW_URL
    assert await cache.resolve(RAW_URL) == RAW_URL
    assert len(uploader.calls) == 1

    entry = cache.get(RAW_URL)
    assert entry.status is CacheStatus.FAILED
    assert entry.resolved_url == RAW_URL
    assert entry.error


@pytest.mark.asyncio
@pytest.mark.parametrize("result", ["", RAW_URL])
async def test_unchanged_url_counts_as_failure(metadata_path, result):
    cache = ImageOptimizationCache(metadata_path, FakeUploader(result=result))

    assert await cache.resolve(RAW_URL) == RAW_URL
    assert cache.get(RAW_URL).status is CacheStatus.FAILED


@pytest.mark.asyncio
async def test_concurrent_resolve_shares_one_upload(metadata_path):
    uploader = FakeUploader(delay=0.01)
    cache = ImageOptimizationCache(metadata_path, uploader)

    results = await asyncio.gather(*(cache.resolve(RAW_URL) for _ in range(5)))

    assert results == [CDN_URL] * 5
    assert uploader.calls == [RAW_URL]


@pytest.mark.asyncio
async def test_resolve_without_uploader_returns_raw_url(metadata_path):
    cache = ImageOptimizationCache(metadata_path)

    assert await cache.resolve(RAW_URL) == RAW_URL
    assert RAW_URL not in cache


def test_load_missing_file_gives_empty_cache(metadata_path):
    cache = ImageOptimizationCache(metadata_path, FakeUploader())
    assert cache.load() == 0
    assert len(cache) == 0


@pytest.mark.parametrize("content", ["{not json", "[1, 2, 3]"])
def test_load_corrupt_file_gives_empty_cache(metadata_path, content):
    metadata_path.parent.mkdir(parents=True)
    metadata_path.write_text(content, encoding="utf-8")

    cache = ImageOptimizationCache(metadata_path, FakeUploader())
    assert cache.load() == 0


def test_load_skips_malformed_entries(metadata_path):
    metadata_path.parent.mkdir(parents=True)
    good_key = hash_image_url(RAW_URL)
    metadata_path.write_text(
        json.dumps(
            {
                good_key: {
                    "originalUrl": RAW_URL,
                    "cdnUrl": CDN_URL,
                    "status": "optimized",
                    "timestamp": "2024-11-02T10:00:00.000Z",
                },
                "bad": {"status": "unknown"},
            }
        ),
        encoding="utf-8",
    )

    cache = ImageOptimizationCache(metadata_path, FakeUploader())
    assert cache.load() == 1
    assert cache.get(RAW_URL).resolved_url == CDN_URL


@pytest.mark.asyncio
async def test_write_failure_still_returns_url(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("a file, not a directory", encoding="utf-8")
    cache = ImageOptimizationCache(blocker / "image-metadata.json", FakeUploader())

    assert await cache.resolve(RAW_URL) == CDN_URL
    with pytest.raises(PersistenceWriteError):
        cache.save()


@pytest.mark.asyncio
async def test_clear_failed_only(metadata_path):
    cache = ImageOptimizationCache(metadata_path, FakeUploader())
    await cache.resolve(RAW_URL)
    cache.uploader = FakeUploader(error=UploadTimeout("CDN upload timed out"))
    await cache.resolve("https://dl.airtable.com/broken.png")

    assert cache.clear(CacheStatus.FAILED) == 1
    assert RAW_URL in cache
    assert "https://dl.airtable.com/broken.png" not in cache

    reloaded = ImageOptimizationCache(metadata_path)
    assert reloaded.load() == 1


@pytest.mark.asyncio
async def test_clear_all(metadata_path):
    cache = ImageOptimizationCache(metadata_path, FakeUploader())
    await cache.resolve(RAW_URL)

    assert cache.clear() == 1
    assert len(cache) == 0
