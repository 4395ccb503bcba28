"""
HTML rendering of gallery cards.

Markup comes from Jinja2 templates whose ``finalize`` hook HTML-escapes every
interpolated value, so no field can reach the page unescaped. URLs are also
validated before they are handed to a template.
"""
import logging
import posixpath
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import urlsplit, urlunsplit

from jinja2 import Environment, PackageLoader
from markupsafe import Markup

from ..config import get_settings
from ..models import ResolvedSubmission, Submission
from .sanitize import escape_html, escape_url, sanitize_status, truncate_text

logger = logging.getLogger(__name__)

NO_SUBMISSIONS_MESSAGE = "No submissions found"
DEFAULT_TITLE = "Untitled Project"

RESPONSIVE_VARIANTS = (
    ("thumbnail", 200),
    ("small", 400),
    ("medium", 800),
    ("large", 1200),
)
RESPONSIVE_SIZES = "(max-width: 400px) 200px, (max-width: 800px) 400px, (max-width: 1200px) 800px, 1200px"


def _finalize(value: Any) -> str:
    if isinstance(value, Markup):
        return value
    if value is None:
        return ""
    return escape_html(str(value))


def create_template_environment() -> Environment:
    """Jinja2 environment over the packaged templates with escape-on-output."""
    return Environment(
        loader=PackageLoader("boba_gallery", "templates"),
        autoescape=False,
        finalize=_finalize,
        trim_blocks=True,
        lstrip_blocks=True,
    )


def responsive_image_urls(url: str, cdn_host: str) -> Dict[str, str]:
    """
    Size variants the CDN serves for an image.

    Args:
        url: Display URL of the image
        cdn_host: Host name of the CDN

    Returns:
        Dict[str, str]: ``original`` plus ``thumbnail``/``small``/``medium``/
        ``large`` when the URL is served by the CDN
    """
    parts = urlsplit(url)
    host = parts.hostname or ""
    if host != cdn_host and not host.endswith(f".{cdn_host}"):
        return {"original": url}

    base, extension = posixpath.splitext(parts.path)
    extension = extension or ".jpg"
    variants = {"original": url}
    for name, width in RESPONSIVE_VARIANTS:
        path = f"{base}_{width}x{width}{extension}"
        variants[name] = urlunsplit((parts.scheme, parts.netloc, path, parts.query, parts.fragment))
    return variants


def resolve_for_display(submission: Submission, placeholder_url: str) -> ResolvedSubmission:
    """Pair a submission with its raw screenshot URL, or the placeholder."""
    return ResolvedSubmission(
        submission=submission,
        optimized_photo_url=submission.screenshot_url or placeholder_url,
        is_optimized=False,
    )


class GalleryRenderer:
    """Renders resolved submissions into gallery card markup."""

    def __init__(
        self,
        cdn_host: Optional[str] = None,
        description_length: Optional[int] = None,
        eager_count: Optional[int] = None,
        high_priority_count: Optional[int] = None,
        environment: Optional[Environment] = None,
    ):
        settings = get_settings()
        self.cdn_host = cdn_host or settings.CDN_HOST
        self.description_length = (
            settings.DESCRIPTION_PREVIEW_LENGTH if description_length is None else description_length
        )
        self.eager_count = settings.EAGER_IMAGE_COUNT if eager_count is None else eager_count
        self.high_priority_count = (
            settings.HIGH_PRIORITY_IMAGE_COUNT if high_priority_count is None else high_priority_count
        )
        self.environment = environment or create_template_environment()
        if self.description_length <= 0:
            raise ValueError(f"description_length must be greater than 0, got {self.description_length}")

    def build_card_context(self, resolved: ResolvedSubmission, index: int) -> Dict[str, Any]:
        """
        Template values for one card.

        URLs are validated and the status normalized here; text is escaped
        when the template renders it.
        """
        fields = resolved.fields
        photo_url = escape_url(resolved.optimized_photo_url)
        variants = responsive_image_urls(photo_url, self.cdn_host)

        srcset = ""
        sizes = ""
        if "thumbnail" in variants:
            srcset = ", ".join(f"{variants[name]} {width}w" for name, width in RESPONSIVE_VARIANTS)
            sizes = RESPONSIVE_SIZES

        return {
            "src": variants.get("small", photo_url),
            "srcset": srcset,
            "sizes": sizes,
            "title": fields.title or DEFAULT_TITLE,
            "description": truncate_text(fields.description or "", self.description_length),
            "event_code": fields.event_code or "",
            "status": sanitize_status(fields.status),
            "code_url": escape_url(fields.code_url),
            "playable_url": escape_url(fields.playable_url),
            "loading": "eager" if index < self.eager_count else "lazy",
            "fetch_priority": "high" if index < self.high_priority_count else "low",
            "is_optimized": resolved.is_optimized,
        }

    def render_card(self, resolved: ResolvedSubmission, index: int) -> str:
        template = self.environment.get_template("submission_card.html.j2")
        return template.render(**self.build_card_context(resolved, index))

    def render_cards(self, batch: Sequence[ResolvedSubmission], start_index: int = 0) -> str:
        """
        Render a batch of cards, skipping any record that fails to render.

        Args:
            batch: Records in display order
            start_index: Gallery position of ``batch[0]``

        Returns:
            str: Concatenated card markup
        """
        cards: List[str] = []
        for offset, resolved in enumerate(batch):
            try:
                cards.append(self.render_card(resolved, start_index + offset))
            except Exception as e:
                logger.error(f"Failed to render submission {resolved.submission.id}: {e}", exc_info=True)
        return "\n".join(cards)

    def render_empty(self) -> str:
        template = self.environment.get_template("no_submissions.html.j2")
        return template.render(message=NO_SUBMISSIONS_MESSAGE)

    def render_gallery(self, records: Sequence[ResolvedSubmission]) -> str:
        """Full gallery markup: every card plus the performance enhancements."""
        if not records:
            return self.render_empty()
        enhancements = self.environment.get_template("gallery_enhancements.html.j2").render()
        return f"{self.render_cards(records).strip()}\n{enhancements}"


class HtmlGridRenderer:
    """
    Pagination renderer that builds the grid markup in memory.

    Raw submissions are displayed with their original screenshot URL, or the
    placeholder image when they have none.
    """

    def __init__(self, gallery_renderer: Optional[GalleryRenderer] = None, placeholder_url: Optional[str] = None):
        self.gallery_renderer = gallery_renderer or GalleryRenderer()
        self.placeholder_url = placeholder_url or get_settings().PLACEHOLDER_IMAGE_URL
        self.fragments: List[str] = []
        self.empty = False

    def reset(self) -> None:
        self.fragments = []
        self.empty = False

    def show_empty(self) -> None:
        self.fragments = []
        self.empty = True

    def render(self, batch: Sequence[Submission], start_index: int) -> None:
        resolved = [resolve_for_display(submission, self.placeholder_url) for submission in batch]
        self.fragments.append(self.gallery_renderer.render_cards(resolved, start_index))
        self.empty = False

    @property
    def markup(self) -> str:
        if self.empty:
            return self.gallery_renderer.render_empty()
        return "\n".join(self.fragments)
