"""
Pydantic Data Transfer Objects (DTOs) for the gallery.

These models validate records returned by the submissions API, carry the
derived display URL through rendering, and describe the persisted image
optimization cache entries.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class SubmissionFields(BaseModel):
    """
    Named attributes of a submission record.

    Airtable field names contain spaces, so every field is declared through
    its alias. Values of the wrong type are treated as absent rather than
    rejected; sanitization happens at render time.
    """
    screenshot: Optional[List[Dict[str, Any]]] = Field(default=None, alias="Screenshot")
    status: Optional[str] = Field(default=None, alias="Status")
    code_url: Optional[str] = Field(default=None, alias="Code URL")
    playable_url: Optional[str] = Field(default=None, alias="Playable URL")
    event_code: Optional[str] = Field(default=None, alias="Event Code")
    title: Optional[str] = Field(default=None, alias="Title")
    description: Optional[str] = Field(default=None, alias="Description")

    model_config = ConfigDict(populate_by_name=True, extra="allow", frozen=True)

    @field_validator(
        "status", "code_url", "playable_url", "event_code", "title", "description",
        mode="before",
    )
    @classmethod
    def drop_non_strings(cls, value: Any) -> Optional[str]:
        return value if isinstance(value, str) else None

    @field_validator("screenshot", mode="before")
    @classmethod
    def keep_attachment_objects(cls, value: Any) -> Optional[List[Dict[str, Any]]]:
        if not isinstance(value, list):
            return None
        return [item for item in value if isinstance(item, dict)]


class Submission(BaseModel):
    """
    One gallery entry sourced from the submissions table.

    Immutable once fetched; enrichment lives on ResolvedSubmission.
    """
    id: str
    fields: SubmissionFields = Field(default_factory=SubmissionFields)
    created_time: Optional[str] = Field(default=None, alias="createdTime")

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @property
    def screenshot_url(self) -> Optional[str]:
        """URL of the first screenshot attachment, if there is a usable one."""
        if not self.fields.screenshot:
            return None
        url = self.fields.screenshot[0].get("url")
        if isinstance(url, str) and url.strip():
            return url
        return None


class ResolvedSubmission(BaseModel):
    """A submission paired with the URL actually used to display its image."""
    submission: Submission
    optimized_photo_url: str
    is_optimized: bool = False

    model_config = ConfigDict(frozen=True)

    @property
    def fields(self) -> SubmissionFields:
        return self.submission.fields


class CacheStatus(str, Enum):
    """Terminal outcome of one optimization attempt."""
    OPTIMIZED = "optimized"
    FAILED = "failed"


class CacheEntry(BaseModel):
    """
    Persisted result of optimizing one raw image URL.

    Serialized with the camelCase keys used by ``image-metadata.json`` so
    existing cache files keep working. For failed attempts ``resolved_url``
    equals ``original_url``.
    """
    original_url: str = Field(alias="originalUrl")
    resolved_url: str = Field(
        validation_alias=AliasChoices("cdnUrl", "resolvedUrl", "resolved_url"),
        serialization_alias="cdnUrl",
    )
    status: CacheStatus
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    error: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)

    def to_json_dict(self) -> Dict[str, Any]:
        """JSON-compatible dict in the persisted key format."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class StatusFilter(str, Enum):
    """Review status values the gallery can be filtered by."""
    ALL = "All"
    APPROVED = "Approved"
    PENDING = "Pending"
    REJECTED = "Rejected"


class GalleryFilter(BaseModel):
    """Status and event-code filter applied to the submissions query."""
    status: StatusFilter = StatusFilter.ALL
    event_code: str = ""

    model_config = ConfigDict(frozen=True)

    @field_validator("event_code", mode="before")
    @classmethod
    def strip_event_code(cls, value: Any) -> str:
        return value.strip() if isinstance(value, str) else ""

    @classmethod
    def from_query_params(cls, params: Mapping[str, str]) -> "GalleryFilter":
        """
        Build a filter from page query parameters.

        Args:
            params: Mapping with optional ``status`` and ``eventCode`` keys.

        Returns:
            GalleryFilter: The filter; an unrecognized status means ``All``.
        """
        raw_status = params.get("status")
        try:
            status = StatusFilter(raw_status)
        except ValueError:
            status = StatusFilter.ALL
        return cls(status=status, event_code=params.get("eventCode") or "")

    def to_query_params(self) -> Dict[str, str]:
        """Query parameters that reproduce this filter in a page URL."""
        return {"eventCode": self.event_code, "status": self.status.value}
