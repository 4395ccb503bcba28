"""
Image optimization cache for submission screenshots.

Maps each raw screenshot URL to the URL used for display, uploading every
distinct image to the CDN at most once. Results are kept in a JSON file
keyed by the MD5 digest of the raw URL so later builds reuse them.
"""
import asyncio
import hashlib
import json
import logging
from pathlib import Path
from typing import Dict, Optional, Protocol, Union

from pydantic import ValidationError

from ..integrations.cdn_client import UploadError
from ..models import CacheEntry, CacheStatus
from ..utils.fileio import atomic_write_text

logger = logging.getLogger(__name__)


class PersistenceWriteError(Exception):
    """Raised when the cache file cannot be written."""


class ImageUploader(Protocol):
    """Anything that can turn an image URL into an optimized image URL."""

    async def upload(self, image_url: str) -> str:
        """
        Optimize one image.

        Args:
            image_url: Public URL of the source image.

        Returns:
            The URL of the optimized copy.

        Raises:
            UploadError: If the image could not be optimized.
        """
        ...


def hash_image_url(url: str) -> str:
    """Cache key for a raw image URL."""
    return hashlib.md5(url.encode("utf-8")).hexdigest()


class ImageOptimizationCache:
    """
    Persistent mapping from raw image URL to display URL.

    ``resolve`` always returns a usable URL: failed optimizations are recorded
    and fall back to the original URL. Concurrent calls for the same URL share
    a single upload. Without an uploader the cache can still be loaded,
    inspected and cleared; unknown URLs resolve to themselves and nothing
    is recorded for them.
    """

    def __init__(self, metadata_path: Union[str, Path], uploader: Optional[ImageUploader] = None):
        self.metadata_path = Path(metadata_path)
        self.uploader = uploader
        self._entries: Dict[str, CacheEntry] = {}
        self._in_flight: Dict[str, "asyncio.Task[str]"] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, raw_url: object) -> bool:
        return isinstance(raw_url, str) and hash_image_url(raw_url) in self._entries

    def get(self, raw_url: str) -> Optional[CacheEntry]:
        return self._entries.get(hash_image_url(raw_url))

    def load(self) -> int:
        """
        Read the persisted cache into memory, replacing current entries.

        A missing, unreadable or corrupt file leaves the cache empty; images
        are then optimized again instead of failing the run.

        Returns:
            int: Number of entries loaded.
        """
        self._entries = {}
        if not self.metadata_path.exists():
            logger.info(f"No image metadata at {self.metadata_path}, starting with an empty cache")
            return 0

        try:
            with open(self.metadata_path, "r", encoding="utf-8") as f:
                raw_entries = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to read image metadata, starting fresh: {e}")
            return 0

        if not isinstance(raw_entries, dict):
            logger.warning("Image metadata is not a JSON object, starting fresh")
            return 0

        for key, raw_entry in raw_entries.items():
            try:
                self._entries[key] = CacheEntry.model_validate(raw_entry)
            except ValidationError:
                logger.warning(f"Ignoring malformed cache entry {key[:8]}...")

        logger.info(f"Loaded {len(self._entries)} cached image entries from {self.metadata_path}")
        return len(self._entries)

    def save(self) -> None:
        """
        Rewrite the whole cache file atomically.

        Raises:
            PersistenceWriteError: If the file could not be written.
        """
        payload = {key: entry.to_json_dict() for key, entry in self._entries.items()}
        try:
            atomic_write_text(self.metadata_path, json.dumps(payload, indent=2))
        except OSError as e:
            raise PersistenceWriteError(f"Failed to save image metadata to {self.metadata_path}: {e}") from e

    def clear(self, status: Optional[CacheStatus] = None) -> int:
        """
        Remove entries so their images are optimized again on the next run.

        Args:
            status: Only remove entries with this status; all entries if None.

        Returns:
            int: Number of entries removed.
        """
        if status is None:
            removed = len(self._entries)
            self._entries = {}
        else:
            keep = {key: entry for key, entry in self._entries.items() if entry.status is not status}
            removed = len(self._entries) - len(keep)
            self._entries = keep

        if removed:
            self.save()
        logger.info(f"Cleared {removed} cached image entries")
        return removed

    async def resolve(self, raw_url: str) -> str:
        """
        Return the display URL for a raw image URL.

        Args:
            raw_url: Non-empty screenshot URL.

        Returns:
            str: The optimized URL, or ``raw_url`` if optimization failed now
            or in an earlier run.
        """
        key = hash_image_url(raw_url)

        entry = self._entries.get(key)
        if entry is not None:
            logger.debug(f"Using cached image for {key[:8]}... ({entry.status.value})")
            return entry.resolved_url

        if self.uploader is None:
            logger.warning(f"No image uploader configured, using original image for {key[:8]}...")
            return raw_url

        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.create_task(self._optimize(key, raw_url))
            self._in_flight[key] = task
            task.add_done_callback(lambda _task, k=key: self._in_flight.pop(k, None))
        else:
            logger.debug(f"Waiting for in-flight optimization of {key[:8]}...")

        return await asyncio.shield(task)

    async def _optimize(self, key: str, raw_url: str) -> str:
        logger.info(f"Optimizing image: {raw_url[:50]}...")
        try:
            optimized_url = await self.uploader.upload(raw_url)
        except UploadError as e:
            logger.warning(f"Failed to optimize image {raw_url[:50]}...: {e}")
            return self._record_failure(key, raw_url, str(e))
        except Exception as e:
            logger.error(f"Unexpected error optimizing image {raw_url[:50]}...: {e}", exc_info=True)
            return self._record_failure(key, raw_url, str(e) or type(e).__name__)

        if not optimized_url or optimized_url == raw_url:
            return self._record_failure(key, raw_url, "CDN returned no new URL")

        self._store(key, CacheEntry(
            original_url=raw_url,
            resolved_url=optimized_url,
            status=CacheStatus.OPTIMIZED,
        ))
        logger.info(f"Successfully optimized and cached image: {optimized_url[:50]}...")
        return optimized_url

    def _record_failure(self, key: str, raw_url: str, error: str) -> str:
        self._store(key, CacheEntry(
            original_url=raw_url,
            resolved_url=raw_url,
            status=CacheStatus.FAILED,
            error=error,
        ))
        return raw_url

    def _store(self, key: str, entry: CacheEntry) -> None:
        self._entries[key] = entry
        try:
            self.save()
        except PersistenceWriteError as e:
            logger.error(f"{e}; keeping the result in memory for this run")
