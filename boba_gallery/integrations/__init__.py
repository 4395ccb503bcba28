"""External service clients: the submissions query API and the CDN upload API."""

from .cdn_client import (
    CDNUploadClient,
    MalformedResponse,
    UploadError,
    UploadRejected,
    UploadTimeout,
)
from .query_client import FetchError, SubmissionQueryClient, build_filter_formula

__all__ = [
    "CDNUploadClient",
    "FetchError",
    "MalformedResponse",
    "SubmissionQueryClient",
    "UploadError",
    "UploadRejected",
    "UploadTimeout",
    "build_filter_formula",
]
