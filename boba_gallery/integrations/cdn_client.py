"""
Hack Club CDN client for optimizing submission screenshots.

This module provides an async client that hands an image URL to the CDN
upload API and returns the deployed URL of the optimized copy.
"""

import logging
from typing import Optional

import httpx

from ..config import get_settings

logger = logging.getLogger(__name__)


class UploadError(Exception):
    """Base class for CDN upload failures."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class UploadTimeout(UploadError):
    """The upload did not complete within the configured timeout."""


class UploadRejected(UploadError):
    """The CDN answered with a non-2xx status."""

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"CDN upload failed: {status_code} - {body}")


class MalformedResponse(UploadError):
    """The CDN answered 2xx but the body has no usable deployed URL."""


class CDNUploadClient:
    """
    Async client for the CDN upload endpoint.

    Sends one image URL per request with bearer-token authentication and
    maps every failure mode onto an UploadError subclass.
    """

    def __init__(
        self,
        api_token: str,
        upload_url: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the CDN client.

        Args:
            api_token: Bearer token for the CDN API
            upload_url: Upload endpoint URL
            timeout: Request timeout in seconds
            client: Optional preconfigured HTTP client (used by tests)
        """
        settings = get_settings()
        self.upload_url = upload_url or settings.CDN_API_URL
        self.timeout = timeout or settings.CDN_UPLOAD_TIMEOUT_SECONDS

        self.headers = {
            "Authorization": f"Bearer {api_token}",
            "Content-Type": "application/json",
        }
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=httpx.Timeout(self.timeout))

        logger.debug(f"CDN client initialized with upload URL: {self.upload_url}")

    async def __aenter__(self) -> "CDNUploadClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            await self.client.aclose()

    async def upload(self, image_url: str) -> str:
        """
        Upload a single image to the CDN by URL.

        Args:
            image_url: Public URL of the image to optimize

        Returns:
            str: Deployed URL of the optimized image

        Raises:
            UploadTimeout: If the request times out
            UploadRejected: If the CDN returns a non-2xx status
            MalformedResponse: If the response lacks a deployed URL
            UploadError: For any other transport failure
        """
        logger.info(f"Uploading to CDN: {image_url[:50]}...")

        try:
            response = await self.client.post(
                self.upload_url,
                json=[image_url],
                headers=self.headers,
                timeout=self.timeout,
            )
        except httpx.TimeoutException as e:
            raise UploadTimeout("CDN upload timed out") from e
        except httpx.HTTPError as e:
            raise UploadError(f"CDN upload request failed: {e}") from e

        if not response.is_success:
            raise UploadRejected(response.status_code, response.text)

        try:
            payload = response.json()
        except ValueError as e:
            raise MalformedResponse("CDN response is not valid JSON") from e

        files = payload.get("files") if isinstance(payload, dict) else None
        if not files or not isinstance(files, list) or not isinstance(files[0], dict):
            raise MalformedResponse("No valid files returned from CDN upload")

        deployed_url = files[0].get("deployedUrl")
        if not isinstance(deployed_url, str) or not deployed_url:
            raise MalformedResponse("No valid files returned from CDN upload")

        return deployed_url
