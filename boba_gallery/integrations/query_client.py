"""
HTTP client for the Boba Drops submissions table.

This module queries the Airtable proxy for submission records, building the
filter formula from the gallery's status and event-code filter.
"""

import json
import logging
from typing import List, Optional

import httpx
from pydantic import ValidationError

from ..config import get_settings
from ..models import GalleryFilter, StatusFilter, Submission

logger = logging.getLogger(__name__)


class FetchError(Exception):
    """Raised when the submissions API cannot be queried."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


def _quote_formula_string(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def build_filter_formula(gallery_filter: GalleryFilter) -> str:
    """
    Build the ``filterByFormula`` expression for a gallery filter.

    Args:
        gallery_filter: Status and event-code filter

    Returns:
        str: ``AND(...)`` with zero, one or two equality clauses
    """
    clauses = []
    if gallery_filter.status is not StatusFilter.ALL:
        clauses.append(f"{{Status}} = {_quote_formula_string(gallery_filter.status.value)}")
    if gallery_filter.event_code:
        clauses.append(f"{{Event Code}} = {_quote_formula_string(gallery_filter.event_code)}")
    return f"AND({','.join(clauses)})"


class SubmissionQueryClient:
    """
    Async client for the submissions table endpoint.

    Returns validated Submission records in the order the API sends them.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the query client.

        Args:
            base_url: Full URL of the submissions table endpoint
            timeout: Request timeout in seconds
            client: Optional preconfigured HTTP client (used by tests)
        """
        settings = get_settings()
        self.base_url = base_url or settings.query_url
        self.timeout = timeout or settings.QUERY_TIMEOUT_SECONDS
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=httpx.Timeout(self.timeout))

        logger.debug(f"Initialized SubmissionQueryClient with base_url: {self.base_url}")

    async def __aenter__(self) -> "SubmissionQueryClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            await self.client.aclose()

    async def fetch_submissions(self, gallery_filter: Optional[GalleryFilter] = None) -> List[Submission]:
        """
        Fetch every submission matching the filter.

        Args:
            gallery_filter: Status and event-code filter (default: everything)

        Returns:
            List[Submission]: Valid records in API order

        Raises:
            FetchError: If the API is unreachable, answers non-2xx, or the body
                is not a JSON list
        """
        gallery_filter = gallery_filter or GalleryFilter()
        formula = build_filter_formula(gallery_filter)
        params = {
            "select": json.dumps({"filterByFormula": formula}),
            "cache": "true",
        }

        logger.info(f"Fetching submissions with formula: {formula}")
        try:
            response = await self.client.get(self.base_url, params=params, timeout=self.timeout)
        except httpx.HTTPError as e:
            raise FetchError(f"Submissions request failed: {e}") from e

        if not response.is_success:
            raise FetchError(f"HTTP error! status: {response.status_code}", response.status_code)

        try:
            data = response.json()
        except ValueError as e:
            raise FetchError(f"Failed to parse submissions response: {e}") from e

        if not isinstance(data, list):
            raise FetchError(f"Expected a list of submissions, got {type(data).__name__}")

        submissions: List[Submission] = []
        for index, item in enumerate(data):
            try:
                submissions.append(Submission.model_validate(item))
            except ValidationError as e:
                logger.warning(f"Skipping malformed submission at position {index}: {e.error_count()} validation error(s)")

        logger.info(f"Found {len(submissions)} submissions")
        return submissions
