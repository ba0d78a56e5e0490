import re
from collections.abc import Iterable
from datetime import date, datetime
from typing import Optional
from urllib.parse import urljoin

# Slash-delimited dates are month-first on the English site
SLASH_DATE_FORMATS = ["%m/%d/%Y"]
# Month-name formats seen in transfer histories and profile headers
MONTH_NAME_DATE_FORMATS = [
    "%b %d, %Y",
    "%B %d, %Y",
    "%d %b %Y",
    "%d %B %Y",
]

_SLASH_RE = re.compile(r"\b(\d{1,2})/(\d{1,2})/(\d{4})\b")
_MONTH_NAME_RE = re.compile(
    r"\b(?:[A-Za-z]{3,9}\.? \d{1,2}, \d{4}|\d{1,2} [A-Za-z]{3,9}\.? \d{4})\b"
)


def clean_text(s: str | None) -> str | None:
    if s is None:
        return None
    s = re.sub(r"\s+", " ", s.replace("\xa0", " ").strip())
    return s or None


def parse_transfer_date(s: str | None) -> Optional[date]:
    """Parse a transfer date in slash (``07/15/2020``) or month-name
    (``Jul 15, 2020`` / ``15 Jul 2020``) form. Returns None when unusable."""
    text = clean_text(s)
    if not text:
        return None
    m = _SLASH_RE.search(text)
    if m:
        candidate = m.group(0)
        for fmt in SLASH_DATE_FORMATS:
            try:
                return datetime.strptime(candidate, fmt).date()
            except ValueError:
                continue
        return None
    m = _MONTH_NAME_RE.search(text)
    if m:
        candidate = m.group(0).replace(".", "")
        for fmt in MONTH_NAME_DATE_FORMATS:
            try:
                return datetime.strptime(candidate, fmt).date()
            except ValueError:
                continue
    return None


def absolute_url(href: str, base_url: str) -> str:
    if href.startswith("http"):
        return href
    return urljoin(base_url.rstrip("/") + "/", href.lstrip("/"))


def normalize_urls(hrefs: Iterable[str], base_url: str, strip_query: bool = False) -> list[str]:
    """Absolute, trailing-slash-free, de-duplicated (first occurrence wins).

    With strip_query the "?..." part is dropped before de-duplication.
    """
    seen: set[str] = set()
    out: list[str] = []
    for href in hrefs:
        if not href:
            continue
        url = absolute_url(href.strip(), base_url).split("#")[0]
        if strip_query:
            url = url.split("?")[0]
        url = url.rstrip("/")
        if url and url not in seen:
            seen.add(url)
            out.append(url)
    return out
