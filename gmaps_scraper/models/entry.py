"""
Pydantic models for business listings.

This module defines the Entry record produced for every place, its reviews,
and the construction rules from the raw page-state payload.

The payload is a JSON array; the business record lives at index 6 and is
itself a deeply nested, positional array. Every lookup here is defensive:
a missing index or an unexpected type yields the field default instead of
an error.
"""

import json
import re
from typing import Any, Iterable, List, Optional, Set, Union
from urllib.parse import parse_qs, urlparse

from pydantic import BaseModel, Field, ConfigDict, field_validator

from gmaps_scraper.core.exceptions import EntryParseError
from gmaps_scraper.utils.url_utils import is_website_valid_for_email

EMAIL_REGEX = re.compile(r"^[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}$", re.IGNORECASE)

# Positions inside the business array
IDX_WEBSITE = (7, 0)
IDX_COORDINATES = 9
IDX_DATA_ID = 10
IDX_TITLE = 11
IDX_CATEGORIES = 13
IDX_ADDRESS = 18
IDX_LINK = 27
IDX_FULL_ADDRESS = 39
IDX_REVIEW_RATING = (4, 7)
IDX_REVIEW_COUNT = (4, 8)
IDX_PHONE = (178, 0, 0)

Payload = Union[bytes, bytearray, str]


class Coordinates(BaseModel):
    """Latitude/longitude pair."""
    latitude: float
    longitude: float


class Review(BaseModel):
    """A single review as shown in the place's review feed."""
    author_name: str = ""
    author_url: str = ""
    rating: float = 0.0
    relative_time: str = ""
    text: str = ""

    model_config = ConfigDict(str_strip_whitespace=True)


class Entry(BaseModel):
    """
    Normalized business listing.

    Created once per place job. Reviews are appended in fetch order and
    emails are merged as a set by the enrichment steps that follow.
    """
    id: str = ""
    title: str = ""
    category: str = ""
    categories: List[str] = Field(default_factory=list)
    address: str = ""
    link: str = ""
    data_id: str = ""
    coordinates: Optional[Coordinates] = None
    review_count: int = 0
    review_rating: Optional[float] = None
    reviews: List[Review] = Field(default_factory=list)
    website: Optional[str] = None
    phone: str = ""
    emails: Set[str] = Field(default_factory=set)

    model_config = ConfigDict(str_strip_whitespace=True)

    @field_validator("review_count", mode="before")
    @classmethod
    def coerce_review_count(cls, v: Any) -> int:
        return _count(v)

    @field_validator("emails", mode="before")
    @classmethod
    def validate_emails(cls, v: Any) -> Set[str]:
        if not v:
            return set()
        return {e.strip().lower() for e in v if isinstance(e, str) and is_valid_email(e)}

    def add_review(
        self,
        author_name: str = "",
        author_url: str = "",
        rating: float = 0.0,
        relative_time: str = "",
        text: str = "",
    ) -> Review:
        """Append a review and return it."""
        review = Review(
            author_name=author_name or "",
            author_url=author_url or "",
            rating=rating or 0.0,
            relative_time=relative_time or "",
            text=text or "",
        )
        self.reviews.append(review)
        return review

    def add_emails(self, emails: Iterable[str]) -> None:
        """Merge valid addresses into the entry; invalid strings are dropped."""
        for email in emails:
            if isinstance(email, str) and is_valid_email(email):
                self.emails.add(email.strip().lower())

    def is_website_valid_for_email(self) -> bool:
        return is_website_valid_for_email(self.website)

    def finalize(self, default_link: str) -> "Entry":
        """Fill ``link`` from the job URL when the payload had none."""
        if not self.link:
            self.link = default_link
        if not self.link:
            raise EntryParseError("entry has no link and no default was given")
        return self

    def to_record(self) -> dict:
        """Flatten into a plain record for output writers."""
        return {
            "id": self.id,
            "title": self.title,
            "category": self.category,
            "categories": list(self.categories),
            "address": self.address,
            "link": self.link,
            "data_id": self.data_id,
            "latitude": self.coordinates.latitude if self.coordinates else None,
            "longitude": self.coordinates.longitude if self.coordinates else None,
            "review_count": self.review_count,
            "review_rating": self.review_rating,
            "reviews": [r.model_dump() for r in self.reviews],
            "website": self.website or "",
            "phone": self.phone,
            "emails": sorted(self.emails),
        }


def is_valid_email(value: str) -> bool:
    """
    Check that a string is a plausible email address.

    Example:
        >>> is_valid_email("info@bakery.example")
        True
        >>> is_valid_email("logo@2x.png")
        False
    """
    if not value:
        return False
    value = value.strip()
    if not EMAIL_REGEX.match(value):
        return False
    tld = value.rsplit(".", 1)[-1].lower()
    return tld not in {"png", "jpg", "jpeg", "gif", "svg", "webp", "css", "js"}


def _count(value: Any) -> int:
    """Review counts arrive as int, float, numeric string, or nothing."""
    if value is None or isinstance(value, bool):
        return 0
    try:
        return max(int(float(value)), 0)
    except (TypeError, ValueError):
        return 0


def _nth(data: Any, *path: int) -> Any:
    """Walk nested lists by index; None when any step is missing."""
    cur = data
    for idx in path:
        if not isinstance(cur, list) or idx >= len(cur) or idx < -len(cur):
            return None
        cur = cur[idx]
    return cur


def _str(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    return None


def _unwrap_redirect(url: str) -> str:
    """Business websites are sometimes wrapped as "/url?q=<target>&..."."""
    if url.startswith("/url?"):
        target = parse_qs(urlparse(url).query).get("q")
        if target:
            return target[0]
    return url


def _load_business_array(raw: Payload) -> list:
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8", errors="replace")

    try:
        jd = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise EntryParseError(f"payload is not valid JSON: {e}") from e

    if not isinstance(jd, list) or len(jd) < 7:
        raise EntryParseError("payload is not a place record (expected array with at least 7 items)")

    darray = jd[6]
    if not isinstance(darray, list):
        raise EntryParseError("payload has no business array at index 6")

    return darray


def review_count_from_json(raw: Payload) -> int:
    """
    Read only the review count from a payload.

    Used to decide whether paginating the review feed is worth it, so it
    tolerates any failure and returns 0 instead of raising.
    """
    try:
        darray = _load_business_array(raw)
    except EntryParseError:
        return 0

    return _count(_nth(darray, *IDX_REVIEW_COUNT))


def entry_from_json(raw: Payload) -> Entry:
    """
    Build an Entry from a page-state payload.

    Args:
        raw: JSON text (or UTF-8 bytes) extracted from the place page

    Returns:
        Entry with every field the payload provides. ``id`` and the link
        default are applied by the owning job.

    Raises:
        EntryParseError: If the payload is not a place record
    """
    darray = _load_business_array(raw)

    title = _str(_nth(darray, IDX_TITLE))

    categories_raw = _nth(darray, IDX_CATEGORIES)
    categories = [c.strip() for c in categories_raw if isinstance(c, str)] if isinstance(categories_raw, list) else []

    address = _str(_nth(darray, IDX_FULL_ADDRESS))
    if not address:
        address = _str(_nth(darray, IDX_ADDRESS))
        if title and address.startswith(title + ","):
            address = address[len(title) + 1:].strip()

    coordinates = None
    lat = _float(_nth(darray, IDX_COORDINATES, 2))
    lon = _float(_nth(darray, IDX_COORDINATES, 3))
    if lat is not None and lon is not None:
        coordinates = Coordinates(latitude=lat, longitude=lon)

    website = _unwrap_redirect(_str(_nth(darray, *IDX_WEBSITE))) or None

    return Entry(
        title=title,
        category=categories[0] if categories else "",
        categories=categories,
        address=address,
        link=_str(_nth(darray, IDX_LINK)),
        data_id=_str(_nth(darray, IDX_DATA_ID)),
        coordinates=coordinates,
        review_count=_nth(darray, *IDX_REVIEW_COUNT),
        review_rating=_float(_nth(darray, *IDX_REVIEW_RATING)),
        website=website,
        phone=_str(_nth(darray, *IDX_PHONE)),
    )
