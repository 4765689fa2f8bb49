"""Shared tool data models and helpers."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional

from pydantic import HttpUrl, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from webxr_directory.core.errors import ValidationError


UNTITLED_TOOL = "Untitled Tool"

# Submission form keys, as posted by the frontend
NAME_KEY = "Tool Name"
URL_KEY = "URL"
DESCRIPTION_KEY = "Description"
CATEGORY_KEY = "Category"
IMAGE_URL_KEY = "Image URL"

_URL_ADAPTER: TypeAdapter[HttpUrl] = TypeAdapter(HttpUrl)


@dataclass(slots=True)
class ToolRecord:
    """Representation of a stored tool listing."""

    id: str
    name: str
    description: str
    url: Optional[str] = None
    category: Optional[str] = None
    rating: Optional[float] = None
    image_url: Optional[str] = None
    author: Optional[str] = None

    @property
    def short_description(self) -> str:
        return self.description

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "shortDescription": self.short_description,
            "url": self.url,
            "category": self.category,
            "rating": self.rating,
            "imageUrl": self.image_url,
            "author": self.author,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ToolRecord":
        """Rebuild a record from the API's JSON shape."""
        return cls(
            id=str(payload.get("id") or ""),
            name=_coerce_text(payload.get("name")) or UNTITLED_TOOL,
            description=_coerce_text(payload.get("description")) or "",
            url=_coerce_text(payload.get("url")),
            category=_coerce_text(payload.get("category")),
            rating=_coerce_rating(payload.get("rating")),
            image_url=_coerce_text(payload.get("imageUrl")),
            author=_coerce_text(payload.get("author")),
        )


@dataclass(slots=True)
class ToolSubmission:
    """Data required to create a tool row."""

    name: str
    url: str
    description: str
    category: str
    image_url: Optional[str] = None


@dataclass(frozen=True, slots=True)
class ToolQuery:
    """Canonical list parameters exchanged between client and API."""

    search: Optional[str] = None
    category: Optional[str] = None
    sort_by: Optional[str] = None
    sort_order: Optional[str] = None

    def to_params(self) -> Dict[str, str]:
        raw = {
            "search": self.search,
            "category": self.category,
            "sortBy": self.sort_by,
            "sortOrder": self.sort_order,
        }
        return {key: value for key, value in raw.items() if value}


def normalise_string_list(values: Optional[Iterable[str]]) -> List[str]:
    if not values:
        return []
    normalised: List[str] = []
    for value in values:
        text = (value or "").strip()
        if text:
            normalised.append(text)
    return normalised


def record_to_tool(record: Mapping[str, Any]) -> ToolRecord:
    """Map a raw store record (``{"id", "fields"}``) onto a ``ToolRecord``.

    Unknown fields are dropped and missing or oddly typed ones fall back to
    the documented defaults, so this never raises for a well-formed id.
    """

    fields = record.get("fields")
    if not isinstance(fields, Mapping):
        fields = {}

    return ToolRecord(
        id=str(record.get("id") or ""),
        name=_coerce_text(fields.get("title")) or UNTITLED_TOOL,
        description=_coerce_text(fields.get("description")) or "",
        url=_coerce_text(fields.get("link")),
        category=_coerce_text(fields.get("tags")),
        rating=_coerce_rating(fields.get("rating")),
        image_url=_coerce_thumbnail(fields.get("thumbnail")),
        author=_coerce_text(fields.get("author")),
    )


def collect_submission_errors(payload: Mapping[str, Any]) -> Dict[str, str]:
    """Return every field problem in a submission payload, keyed by form field."""

    errors: Dict[str, str] = {}

    if not _submitted_text(payload.get(NAME_KEY)).strip():
        errors[NAME_KEY] = "Tool Name is required"

    url = _submitted_text(payload.get(URL_KEY))
    if not url.strip():
        errors[URL_KEY] = "Tool URL is required"
    elif not is_valid_url(url):
        errors[URL_KEY] = "Invalid URL format"

    if not _submitted_text(payload.get(DESCRIPTION_KEY)).strip():
        errors[DESCRIPTION_KEY] = "Description is required"
    if not _submitted_text(payload.get(CATEGORY_KEY)).strip():
        errors[CATEGORY_KEY] = "Category is required"

    return errors


def parse_submission(payload: Mapping[str, Any]) -> ToolSubmission:
    errors = collect_submission_errors(payload)
    if errors:
        raise ValidationError("Validation failed", details=errors)

    image_url = _submitted_text(payload.get(IMAGE_URL_KEY))
    return ToolSubmission(
        name=_submitted_text(payload.get(NAME_KEY)),
        url=_submitted_text(payload.get(URL_KEY)),
        description=_submitted_text(payload.get(DESCRIPTION_KEY)),
        category=_submitted_text(payload.get(CATEGORY_KEY)),
        image_url=image_url if image_url.strip() else None,
    )


def is_valid_url(value: str) -> bool:
    try:
        _URL_ADAPTER.validate_python(value)
    except PydanticValidationError:
        return False
    return True


def _submitted_text(value: Any) -> str:
    # Multi-select category widgets post a list of names
    if isinstance(value, list):
        return ", ".join(normalise_string_list(str(item) for item in value if item is not None))
    if isinstance(value, str):
        return value
    return ""


def _coerce_text(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (dict, bool)):
        return None
    if isinstance(value, list):
        joined = ", ".join(normalise_string_list(str(item) for item in value if item is not None))
        return joined or None
    text = str(value)
    return text if text.strip() else None


def _coerce_rating(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None
    if isinstance(value, (int, float)) and math.isfinite(value):
        return value
    return None


def _coerce_thumbnail(value: Any) -> Optional[str]:
    # Attachment fields arrive as a list of {"url": ...} objects
    if isinstance(value, list):
        for item in value:
            if isinstance(item, Mapping) and item.get("url"):
                return str(item["url"])
            if isinstance(item, str) and item.strip():
                return item
        return None
    return _coerce_text(value)
