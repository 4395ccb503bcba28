"""
Interactive gallery session: filter, fetch, then infinite scroll.
"""
import logging
from typing import List, Mapping, Optional
from urllib.parse import urlencode

from ..config import get_settings
from ..integrations.query_client import FetchError, SubmissionQueryClient
from ..models import GalleryFilter, Submission
from .pagination import PaginationController
from .renderer import HtmlGridRenderer

logger = logging.getLogger(__name__)


class GallerySession:
    """
    One visitor's view of the gallery.

    Each session owns its filter and pagination state, so any number of
    sessions can run side by side.
    """

    def __init__(
        self,
        query_client: SubmissionQueryClient,
        renderer: Optional[HtmlGridRenderer] = None,
        batch_size: Optional[int] = None,
        scroll_threshold: Optional[int] = None,
    ):
        settings = get_settings()
        self.query_client = query_client
        self.renderer = renderer or HtmlGridRenderer()
        self.gallery_filter = GalleryFilter()
        self.controller: PaginationController[Submission] = PaginationController(
            self.renderer,
            batch_size=settings.ITEMS_PER_LOAD if batch_size is None else batch_size,
            scroll_threshold=settings.SCROLL_THRESHOLD_PX if scroll_threshold is None else scroll_threshold,
        )

    @property
    def markup(self) -> str:
        return self.renderer.markup

    async def apply_filter(self, gallery_filter: Optional[GalleryFilter] = None) -> List[Submission]:
        """
        Fetch submissions for a filter and show the first batch.

        A failed fetch or an empty result shows the no-submissions state
        instead of raising.

        Returns:
            List[Submission]: The first visible batch
        """
        self.gallery_filter = gallery_filter or GalleryFilter()
        try:
            submissions = await self.query_client.fetch_submissions(self.gallery_filter)
        except FetchError as e:
            logger.error(f"Failed to fetch data: {e}")
            submissions = []

        self.renderer.reset()
        first_batch = self.controller.new_query(submissions)
        if not submissions:
            self.renderer.show_empty()
        return first_batch

    async def apply_query_params(self, params: Mapping[str, str]) -> List[Submission]:
        """Apply the filter encoded in a page URL's ``status`` and ``eventCode`` parameters."""
        return await self.apply_filter(GalleryFilter.from_query_params(params))

    def on_scroll(self, scroll_top: float, viewport_height: float, content_height: float) -> List[Submission]:
        """Scroll event handler; loads the next batch near the end of the grid."""
        return self.controller.handle_scroll(scroll_top, viewport_height, content_height)

    def search_event_code(self, event_code: str) -> str:
        """Query string the event-code search form navigates to."""
        target = GalleryFilter(status=self.gallery_filter.status, event_code=event_code)
        return f"?{urlencode(target.to_query_params())}"
