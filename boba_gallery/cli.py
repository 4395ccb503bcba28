"""Command-line interface for the Boba Drops gallery builder."""

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer
from typing_extensions import Annotated

from boba_gallery.config import get_settings
from boba_gallery.core.image_cache import ImageOptimizationCache, PersistenceWriteError
from boba_gallery.core.pipeline import BuildResult, GalleryBuildPipeline
from boba_gallery.core.publisher import GalleryPublisher, PublishError
from boba_gallery.integrations.cdn_client import CDNUploadClient
from boba_gallery.integrations.query_client import FetchError, SubmissionQueryClient
from boba_gallery.models import CacheStatus, GalleryFilter, StatusFilter
from boba_gallery.utils.logging_utils import setup_logging

app = typer.Typer(help="Boba Drops gallery - build the static submissions gallery")

logger = logging.getLogger(__name__)


async def run_build(
    api_token: str,
    gallery_filter: GalleryFilter,
    template_path: Optional[Path] = None,
    output_path: Optional[Path] = None,
) -> BuildResult:
    """
    Run one gallery build with freshly opened HTTP clients.

    Args:
        api_token: Bearer token for the CDN upload API
        gallery_filter: Which submissions to include
        template_path: Page template (default: configured TEMPLATE_PATH)
        output_path: Generated page (default: configured OUTPUT_PATH)
    """
    settings = get_settings()
    async with SubmissionQueryClient() as query_client, CDNUploadClient(api_token) as cdn_client:
        pipeline = GalleryBuildPipeline(
            query_client=query_client,
            image_cache=ImageOptimizationCache(settings.IMAGE_METADATA_PATH, cdn_client),
            publisher=GalleryPublisher(template_path=template_path, output_path=output_path),
        )
        return await pipeline.run_once(gallery_filter)


@app.command()
def build(
    status: Annotated[StatusFilter, typer.Option("--status", "-s", help="Only include submissions with this status")] = StatusFilter.ALL,
    event_code: Annotated[str, typer.Option("--event-code", "-e", help="Only include submissions for this event")] = "",
    template: Annotated[Optional[Path], typer.Option("--template", "-t", help="Page template containing the gallery placeholder")] = None,
    output: Annotated[Optional[Path], typer.Option("--output", "-o", help="Path of the generated page")] = None,
    log_level: Annotated[Optional[str], typer.Option("--log-level", "-l", help="Logging level")] = None,
):
    """
    Fetch submissions, optimize their screenshots and publish the gallery page.
    """
    setup_logging(log_level=log_level)
    settings = get_settings()

    if not settings.API_TOKEN:
        logger.error("API_TOKEN environment variable is required")
        raise typer.Exit(code=1)

    gallery_filter = GalleryFilter(status=status, event_code=event_code)
    try:
        result = asyncio.run(run_build(settings.API_TOKEN, gallery_filter, template, output))
    except FetchError as e:
        logger.error(f"Failed to fetch submissions: {e}")
        raise typer.Exit(code=1)
    except PublishError as e:
        logger.error(f"Failed to publish gallery: {e}")
        raise typer.Exit(code=1)

    typer.echo(f"Submissions: {result.submissions}")
    typer.echo(f"Optimized images: {result.optimized}")
    typer.echo(f"Gallery {'updated' if result.changed else 'unchanged'} (checksum {result.checksum})")


@app.command("clear-cache")
def clear_cache(
    failed_only: Annotated[bool, typer.Option("--failed-only", help="Only forget images whose optimization failed")] = False,
    log_level: Annotated[Optional[str], typer.Option("--log-level", "-l", help="Logging level")] = None,
):
    """
    Forget cached image optimizations so they are retried on the next build.
    """
    setup_logging(log_level=log_level)
    settings = get_settings()

    cache = ImageOptimizationCache(settings.IMAGE_METADATA_PATH)
    cache.load()
    try:
        removed = cache.clear(CacheStatus.FAILED if failed_only else None)
    except PersistenceWriteError as e:
        logger.error(str(e))
        raise typer.Exit(code=1)
    typer.echo(f"Removed {removed} cached image entries, {len(cache)} remaining")


if __name__ == "__main__":
    app()
