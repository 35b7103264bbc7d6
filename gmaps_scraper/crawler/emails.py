"""
Contact email extraction from business websites.
"""

import re
from typing import Iterable, List, Optional, Set

from bs4 import BeautifulSoup

from gmaps_scraper.models.entry import is_valid_email

EMAIL_SCAN_REGEX = re.compile(r"[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}", re.IGNORECASE)


def _unique(candidates: Iterable[str]) -> List[str]:
    seen: Set[str] = set()
    out: List[str] = []
    for candidate in candidates:
        email = candidate.strip().lower()
        if email in seen or not is_valid_email(email):
            continue
        seen.add(email)
        out.append(email)
    return out


def mailto_emails(soup: BeautifulSoup) -> List[str]:
    """Addresses from ``mailto:`` anchors, in document order."""
    candidates = []
    for anchor in soup.find_all("a", href=True):
        href = anchor["href"].strip()
        if href.lower().startswith("mailto:"):
            candidates.append(href[len("mailto:"):].split("?")[0])
    return _unique(candidates)


def regex_emails(text: str) -> List[str]:
    """Addresses found anywhere in ``text``."""
    return _unique(match.group(0) for match in EMAIL_SCAN_REGEX.finditer(text or ""))


def extract_emails(html: Optional[str]) -> List[str]:
    """
    Extract contact emails from a web page.

    ``mailto:`` links are preferred; the raw markup is scanned only when the
    page has none.

    Args:
        html: Page markup

    Returns:
        Unique, validated, lowercased addresses

    Example:
        >>> extract_emails('<a href="mailto:Info@Bakery.example">mail</a>')
        ['info@bakery.example']
    """
    if not html:
        return []

    soup = BeautifulSoup(html, "html.parser")
    emails = mailto_emails(soup)
    if emails:
        return emails

    return regex_emails(html)
