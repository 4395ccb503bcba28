"""
Core components for the gallery.
"""

from .gallery import GallerySession
from .image_cache import ImageOptimizationCache, PersistenceWriteError, hash_image_url
from .pagination import PaginationController, PaginationState, is_near_end
from .pipeline import BuildResult, GalleryBuildPipeline
from .publisher import GalleryPublisher, PublishError, PublishResult, compute_checksum
from .renderer import GalleryRenderer, HtmlGridRenderer

__all__ = [
    "BuildResult",
    "GalleryBuildPipeline",
    "GalleryPublisher",
    "GalleryRenderer",
    "GallerySession",
    "HtmlGridRenderer",
    "ImageOptimizationCache",
    "PaginationController",
    "PaginationState",
    "PersistenceWriteError",
    "PublishError",
    "PublishResult",
    "compute_checksum",
    "hash_image_url",
    "is_near_end",
]
