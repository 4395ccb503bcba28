"""
Build-time gallery pipeline.

Coordinates fetching submissions, optimizing their screenshots in bounded
concurrent batches, rendering the gallery and publishing the static page.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from ..config import get_settings
from ..integrations.query_client import SubmissionQueryClient
from ..models import GalleryFilter, ResolvedSubmission, Submission
from .image_cache import ImageOptimizationCache
from .publisher import GalleryPublisher
from .renderer import GalleryRenderer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuildResult:
    submissions: int
    optimized: int
    changed: bool
    checksum: str


class GalleryBuildPipeline:
    """
    Orchestrates one static gallery build.
    """

    def __init__(
        self,
        query_client: SubmissionQueryClient,
        image_cache: ImageOptimizationCache,
        publisher: GalleryPublisher,
        renderer: Optional[GalleryRenderer] = None,
        batch_size: Optional[int] = None,
        batch_delay: Optional[float] = None,
        placeholder_url: Optional[str] = None,
    ):
        """
        Args:
            query_client: Source of submission records
            image_cache: Resolves screenshot URLs to display URLs
            publisher: Writes the rendered page
            renderer: Card renderer (default: GalleryRenderer())
            batch_size: Screenshots optimized concurrently per batch
            batch_delay: Seconds to wait between batches
            placeholder_url: Image shown for submissions without a screenshot
        """
        settings = get_settings()
        self.query_client = query_client
        self.image_cache = image_cache
        self.publisher = publisher
        self.renderer = renderer or GalleryRenderer()
        self.batch_size = settings.OPTIMIZE_BATCH_SIZE if batch_size is None else batch_size
        self.batch_delay = settings.OPTIMIZE_BATCH_DELAY_SECONDS if batch_delay is None else batch_delay
        self.placeholder_url = placeholder_url or settings.PLACEHOLDER_IMAGE_URL
        if self.batch_size <= 0:
            raise ValueError(f"batch_size must be greater than 0, got {self.batch_size}")

    async def optimize_submission(self, submission: Submission) -> ResolvedSubmission:
        """Resolve the display URL for one submission's screenshot."""
        raw_url = submission.screenshot_url
        if raw_url is None:
            return ResolvedSubmission(submission=submission, optimized_photo_url=self.placeholder_url)

        display_url = await self.image_cache.resolve(raw_url)
        return ResolvedSubmission(
            submission=submission,
            optimized_photo_url=display_url,
            is_optimized=display_url != raw_url,
        )

    async def optimize_all(self, submissions: Sequence[Submission]) -> List[ResolvedSubmission]:
        """
        Optimize every screenshot, batch by batch.

        Records keep their original order. A record whose optimization raises
        is displayed with its raw screenshot URL.
        """
        resolved: List[ResolvedSubmission] = []
        total_batches = (len(submissions) + self.batch_size - 1) // self.batch_size

        for start in range(0, len(submissions), self.batch_size):
            batch = submissions[start:start + self.batch_size]
            logger.info(f"Processing batch {start // self.batch_size + 1}/{total_batches}")

            results = await asyncio.gather(
                *(self.optimize_submission(submission) for submission in batch),
                return_exceptions=True,
            )
            for submission, result in zip(batch, results):
                if isinstance(result, BaseException):
                    logger.error(f"Optimization failed for submission {submission.id}: {result}")
                    result = ResolvedSubmission(
                        submission=submission,
                        optimized_photo_url=submission.screenshot_url or self.placeholder_url,
                    )
                resolved.append(result)

            if start + self.batch_size < len(submissions) and self.batch_delay > 0:
                await asyncio.sleep(self.batch_delay)

        return resolved

    async def run_once(self, gallery_filter: Optional[GalleryFilter] = None) -> BuildResult:
        """
        Run one full build.

        Returns:
            BuildResult: Counts and whether the page was rewritten

        Raises:
            FetchError: If the submissions could not be fetched
            PublishError: If the page could not be written
        """
        self.image_cache.load()

        logger.info("Fetching submissions...")
        submissions = await self.query_client.fetch_submissions(gallery_filter)

        resolved = await self.optimize_all(submissions)
        optimized_count = sum(1 for item in resolved if item.is_optimized)
        logger.info(f"Resolved {len(resolved)} submissions, {optimized_count} with optimized images")

        gallery_content = self.renderer.render_gallery(resolved)
        publish_result = self.publisher.publish(gallery_content)

        return BuildResult(
            submissions=len(resolved),
            optimized=optimized_count,
            changed=publish_result.changed,
            checksum=publish_result.checksum,
        )
