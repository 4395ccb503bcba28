"""
Writes the rendered gallery into the static page.

A checksum of the gallery markup is stored next to the cache; when a build
produces the same markup again the output file is left untouched.
"""
import hashlib
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from ..config import get_settings
from ..utils.fileio import atomic_write_text

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class PublishError(Exception):
    """Raised when the output page cannot be produced."""


@dataclass(frozen=True)
class PublishResult:
    changed: bool
    checksum: str


def compute_checksum(content: str) -> str:
    """MD5 hex digest of the rendered gallery markup."""
    return hashlib.md5(content.encode("utf-8")).hexdigest()


class GalleryPublisher:
    """Substitutes gallery markup into the page template behind a checksum gate."""

    def __init__(
        self,
        template_path: Optional[PathLike] = None,
        output_path: Optional[PathLike] = None,
        checksum_path: Optional[PathLike] = None,
        placeholder: Optional[str] = None,
    ):
        settings = get_settings()
        self.template_path = Path(template_path or settings.TEMPLATE_PATH)
        self.output_path = Path(output_path or settings.OUTPUT_PATH)
        self.checksum_path = Path(checksum_path or settings.CHECKSUM_PATH)
        self.placeholder = placeholder or settings.TEMPLATE_PLACEHOLDER

    def read_checksum(self) -> str:
        """Checksum of the last published gallery, or "" if unknown."""
        if not self.checksum_path.exists():
            return ""
        try:
            return self.checksum_path.read_text(encoding="utf-8").strip()
        except OSError as e:
            logger.warning(f"Could not read gallery checksum from {self.checksum_path}: {e}")
            return ""

    def publish(self, gallery_content: str) -> PublishResult:
        """
        Write the page if the gallery markup changed since the last publish.

        Args:
            gallery_content: Rendered gallery markup

        Returns:
            PublishResult: Whether the output was written, and the checksum

        Raises:
            PublishError: If the template is unreadable or the page cannot be written
        """
        checksum = compute_checksum(gallery_content)
        if checksum == self.read_checksum():
            logger.info("Gallery content unchanged, skipping update")
            return PublishResult(changed=False, checksum=checksum)

        logger.info("Gallery content changed, updating...")
        try:
            template = self.template_path.read_text(encoding="utf-8")
        except OSError as e:
            raise PublishError(f"Cannot read page template {self.template_path}: {e}") from e

        if self.placeholder not in template:
            logger.warning(f"Placeholder {self.placeholder} not found in {self.template_path}")
        page = template.replace(self.placeholder, gallery_content, 1)

        try:
            atomic_write_text(self.output_path, page)
        except OSError as e:
            raise PublishError(f"Cannot write gallery page {self.output_path}: {e}") from e

        try:
            atomic_write_text(self.checksum_path, checksum)
        except OSError as e:
            logger.error(f"Failed to save gallery checksum to {self.checksum_path}: {e}")

        logger.info(f"Gallery updated successfully: {self.output_path}")
        return PublishResult(changed=True, checksum=checksum)
