"""
URL utilities for gmaps-scraper.

This module handles URL canonicalization, the identities used for job
deduplication, and construction of map search URLs.
"""

import re
from typing import Dict, Optional
from urllib.parse import quote_plus, urlparse, urlunparse, parse_qsl, urlencode


MAPS_BASE_URL = "https://www.google.com/maps"

# Tracking and session parameters that do not change the target page
IGNORED_PARAMS = {
    "utm_source", "utm_medium", "utm_campaign", "utm_term", "utm_content",
    "gclid", "fbclid", "authuser", "entry", "g_ep", "hl",
}

# Feature id embedded in place URLs, e.g. "!1s0x47e66e2964e34e2d:0x8ddca9ee380ef7e0"
PLACE_FEATURE_RE = re.compile(r"!1s(0x[0-9a-fA-F]+:0x[0-9a-fA-F]+)")

# Hosts whose pages never carry a business's own contact address
SKIPPED_WEBSITE_HOSTS = (
    "facebook.com",
    "fb.com",
    "instagram.com",
    "twitter.com",
    "x.com",
    "linkedin.com",
    "youtube.com",
    "tiktok.com",
    "wa.me",
    "whatsapp.com",
    "google.com",
    "goo.gl",
    "business.site",
    "yelp.com",
    "tripadvisor.com",
    "booking.com",
)


def host_of(url: str) -> str:
    """
    Extract the lowercase host of a URL without a leading "www.".

    Example:
        >>> host_of("https://www.Example.com/contact")
        'example.com'
    """
    netloc = urlparse(url).netloc.lower()
    netloc = netloc.split("@")[-1].split(":")[0]
    if netloc.startswith("www."):
        netloc = netloc[4:]
    return netloc


def canonical_url(url: str) -> str:
    """
    Canonicalize a URL for identity comparisons.

    Lowercases scheme and host, drops the fragment and tracking parameters,
    and sorts the remaining query parameters.

    Example:
        >>> canonical_url("HTTPS://Example.com/a?utm_source=x&b=2&a=1#top")
        'https://example.com/a?a=1&b=2'
    """
    u = urlparse(url.strip())
    qs = sorted(
        (k, v) for (k, v) in parse_qsl(u.query, keep_blank_values=True)
        if k.lower() not in IGNORED_PARAMS
    )
    return urlunparse((u.scheme.lower(), u.netloc.lower(), u.path, u.params, urlencode(qs), ""))


def place_key(url: str) -> str:
    """
    Derive the dedup identity of a place link.

    The feature id inside the ``data=`` segment is stable across the
    different URLs the results feed produces for one place; URLs without it
    fall back to their canonical form.

    Example:
        >>> place_key("https://www.google.com/maps/place/Cafe/data=!4m7!3m6!1s0x1:0x2!8m2")
        'place:0x1:0x2'
    """
    match = PLACE_FEATURE_RE.search(url)
    if match:
        return f"place:{match.group(1).lower()}"
    return canonical_url(url)


def is_place_url(url: str) -> bool:
    """True when ``url`` points at a single place page."""
    return "/maps/place/" in (url or "")


def with_params(url: str, params: Optional[Dict[str, str]]) -> str:
    """
    Return ``url`` with ``params`` merged into its query string.

    Example:
        >>> with_params("https://example.com/x?a=1", {"hl": "de"})
        'https://example.com/x?a=1&hl=de'
    """
    if not params:
        return url
    u = urlparse(url)
    qs = dict(parse_qsl(u.query, keep_blank_values=True))
    qs.update({k: v for k, v in params.items() if v is not None})
    return urlunparse(u._replace(query=urlencode(qs)))


def build_search_url(query: str, geo_coordinates: str = "", zoom: int = 15) -> str:
    """
    Build the map search URL for a free-text query.

    Args:
        query: Search query, e.g. "coffee in Berlin"
        geo_coordinates: Optional "lat,lon" to center the search
        zoom: Map zoom level used together with geo_coordinates

    Returns:
        Search URL

    Example:
        >>> build_search_url("coffee berlin")
        'https://www.google.com/maps/search/coffee+berlin'
        >>> build_search_url("coffee", "52.5,13.4", 14)
        'https://www.google.com/maps/search/coffee/@52.5,13.4,14z'
    """
    url = f"{MAPS_BASE_URL}/search/{quote_plus(query.strip())}"
    if geo_coordinates:
        lat, lon = (part.strip() for part in geo_coordinates.split(",", 1))
        url += f"/@{lat},{lon},{zoom}z"
    return url


def is_website_valid_for_email(website: Optional[str]) -> bool:
    """
    Decide whether a business website is worth an email lookup.

    Heuristic, not a hard rule: the site must be an http(s) URL and not a
    social network, messenger, or aggregator page.

    Example:
        >>> is_website_valid_for_email("https://bakery.example")
        True
        >>> is_website_valid_for_email("https://www.facebook.com/bakery")
        False
    """
    if not website or not website.strip():
        return False

    u = urlparse(website.strip())
    if u.scheme not in ("http", "https") or not u.netloc:
        return False

    host = host_of(website)
    for skipped in SKIPPED_WEBSITE_HOSTS:
        if host == skipped or host.endswith("." + skipped):
            return False

    return True
