"""
Incremental rendering of an already-fetched submission list.

The controller hands fixed-size batches to a renderer as the reader scrolls
towards the end of the grid, so only the visible part of a large result set
is rendered and its images requested.
"""
import logging
from dataclasses import dataclass, field
from typing import Generic, List, Protocol, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
T_contra = TypeVar("T_contra", contravariant=True)

DEFAULT_BATCH_SIZE = 12
DEFAULT_SCROLL_THRESHOLD = 1000


class Renderer(Protocol[T_contra]):
    """Sink that receives each newly visible batch of records."""

    def render(self, batch: Sequence[T_contra], start_index: int) -> None:
        """
        Append a batch to the presentation.

        Args:
            batch: Records that just became visible, in source order.
            start_index: Position of ``batch[0]`` in the full result list.
        """
        ...


@dataclass
class PaginationState(Generic[T]):
    """Progress through one query's results; ``visible == source[:cursor]``."""
    source: List[T] = field(default_factory=list)
    cursor: int = 0
    visible: List[T] = field(default_factory=list)
    loading: bool = False

    @property
    def exhausted(self) -> bool:
        return self.cursor >= len(self.source)


def is_near_end(
    scroll_top: float,
    viewport_height: float,
    content_height: float,
    threshold: float = DEFAULT_SCROLL_THRESHOLD,
) -> bool:
    """True when the bottom of the viewport is within ``threshold`` of the end of content."""
    return scroll_top + viewport_height >= content_height - threshold


class PaginationController(Generic[T]):
    """
    Batch-loads a result list into a growing visible sequence.

    ``load_more`` may be triggered as often as scroll events fire: the loading
    guard and the exhaustion check make redundant triggers no-ops, so every
    record is rendered exactly once and in order.
    """

    def __init__(
        self,
        renderer: Renderer[T],
        batch_size: int = DEFAULT_BATCH_SIZE,
        scroll_threshold: float = DEFAULT_SCROLL_THRESHOLD,
    ):
        if batch_size <= 0:
            raise ValueError(f"batch_size must be greater than 0, got {batch_size}")
        self.renderer = renderer
        self.batch_size = batch_size
        self.scroll_threshold = scroll_threshold
        self.state: PaginationState[T] = PaginationState()

    @property
    def has_more(self) -> bool:
        return not self.state.exhausted

    @property
    def visible(self) -> List[T]:
        return list(self.state.visible)

    def new_query(self, records: Sequence[T]) -> List[T]:
        """
        Start over with a new result list and render its first batch.

        Returns:
            List[T]: The first batch (empty when ``records`` is empty).
        """
        self.state = PaginationState(source=list(records))
        logger.debug(f"New query with {len(self.state.source)} records")
        return self.load_more()

    def load_more(self) -> List[T]:
        """
        Render the next batch.

        Returns:
            List[T]: The records appended, or an empty list if a load is
            already running or every record is visible.

        Raises:
            Exception: Whatever the renderer raises; the batch then stays
            pending and the next call retries it.
        """
        state = self.state
        if state.loading or state.exhausted:
            return []

        state.loading = True
        try:
            start = state.cursor
            end = min(start + self.batch_size, len(state.source))
            batch = state.source[start:end]
            self.renderer.render(batch, start)
            state.visible.extend(batch)
            state.cursor = end
            logger.debug(f"Loaded records {start}-{end} of {len(state.source)}")
            return batch
        finally:
            state.loading = False

    def handle_scroll(self, scroll_top: float, viewport_height: float, content_height: float) -> List[T]:
        """Load the next batch if the viewport is close to the end of content."""
        if self.state.loading or self.state.exhausted:
            return []
        if is_near_end(scroll_top, viewport_height, content_height, self.scroll_threshold):
            return self.load_more()
        return []
