"""
Models package for the gallery.

This package contains the Pydantic DTOs shared by the clients, the image
cache, the pagination controller and the renderer.
"""

from .dtos import (
    CacheEntry,
    CacheStatus,
    GalleryFilter,
    ResolvedSubmission,
    StatusFilter,
    Submission,
    SubmissionFields,
)

__all__ = [
    "CacheEntry",
    "CacheStatus",
    "GalleryFilter",
    "ResolvedSubmission",
    "StatusFilter",
    "Submission",
    "SubmissionFields",
]
