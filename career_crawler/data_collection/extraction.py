"""Multi-strategy extraction from rendered Transfermarkt pages.

Each page type has an ordered list of strategies; the first one that yields a
non-empty result wins (primary selector -> alternate selector -> generic scan).
Strategies work on BeautifulSoup documents so they can be tested on static
HTML without a browser.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any, Generic, Optional, TypeVar

from bs4 import BeautifulSoup, Tag

from ..common.parsing import clean_text, normalize_urls
from ..domain.models import RawTransferEvent

logger = logging.getLogger("crawler.extraction")

T = TypeVar("T")

CLUB_HREF_RE = re.compile(r"/startseite/verein/\d+")
PLAYER_HREF_RE = re.compile(r"/profil/spieler/\d+")


class ExtractionStrategy(ABC, Generic[T]):
    name: str = "strategy"

    @abstractmethod
    def extract(self, soup: BeautifulSoup) -> list[T]:
        """Return the extracted items, empty when the strategy does not apply."""


def extract_first(soup: BeautifulSoup, strategies: Sequence[ExtractionStrategy[T]], label: str = "") -> list[T]:
    """Run strategies in order and return the first non-empty result."""
    for strategy in strategies:
        try:
            items = strategy.extract(soup)
        except (AttributeError, IndexError, ValueError, TypeError) as e:
            logger.debug("Strategy %s failed on %s: %s", strategy.name, label, e)
            continue
        if items:
            logger.debug("Strategy %s yielded %d items for %s", strategy.name, len(items), label)
            return items
    return []


# =============================================================================
# 1. LINK STRATEGIES
# =============================================================================


class SelectorLinkStrategy(ExtractionStrategy[str]):
    """hrefs of anchors matched by a CSS selector."""

    def __init__(
        self,
        name: str,
        selector: str,
        base_url: str,
        href_pattern: Optional[re.Pattern] = None,
        strip_query: bool = False,
    ):
        self.name = name
        self.selector = selector
        self.base_url = base_url
        self.href_pattern = href_pattern
        self.strip_query = strip_query

    def extract(self, soup: BeautifulSoup) -> list[str]:
        hrefs = [a.get("href") or "" for a in soup.select(self.selector)]
        if self.href_pattern is not None:
            hrefs = [h for h in hrefs if self.href_pattern.search(h)]
        return normalize_urls(hrefs, self.base_url, self.strip_query)


class AnchorScanStrategy(ExtractionStrategy[str]):
    """Last resort: every anchor on the page whose href matches a pattern."""

    def __init__(self, name: str, href_pattern: re.Pattern, base_url: str, strip_query: bool = False):
        self.name = name
        self.href_pattern = href_pattern
        self.base_url = base_url
        self.strip_query = strip_query

    def extract(self, soup: BeautifulSoup) -> list[str]:
        hrefs = [a.get("href") or "" for a in soup.find_all("a", href=True)]
        return normalize_urls(
            [h for h in hrefs if self.href_pattern.search(h)], self.base_url, self.strip_query
        )


def club_link_strategies(base_url: str) -> list[ExtractionStrategy[str]]:
    return [
        SelectorLinkStrategy(
            "vereinprofil", 'a.vereinprofil_tooltip[href*="/startseite/verein/"]', base_url
        ),
        SelectorLinkStrategy(
            "hauptlink", 'td.hauptlink a.vereinprofil_tooltip[href*="/startseite/verein/"]', base_url
        ),
        SelectorLinkStrategy("items-table", "table.items td.hauptlink a", base_url, CLUB_HREF_RE),
        AnchorScanStrategy("anchor-scan", CLUB_HREF_RE, base_url),
    ]


def player_link_strategies(base_url: str) -> list[ExtractionStrategy[str]]:
    return [
        SelectorLinkStrategy(
            "items-table", "table.items td.hauptlink a", base_url, PLAYER_HREF_RE, strip_query=True
        ),
        SelectorLinkStrategy(
            "spielprofil",
            'a.spielprofil_tooltip[href*="/profil/spieler/"]',
            base_url,
            strip_query=True,
        ),
        AnchorScanStrategy("anchor-scan", PLAYER_HREF_RE, base_url, strip_query=True),
    ]


def extract_club_urls(html: str, base_url: str, label: str = "") -> list[str]:
    soup = BeautifulSoup(html, "html.parser")
    # Club pages link the season, keep one canonical URL per club page
    return extract_first(soup, club_link_strategies(base_url), label)


def extract_player_urls(html: str, base_url: str, label: str = "") -> list[str]:
    soup = BeautifulSoup(html, "html.parser")
    return extract_first(soup, player_link_strategies(base_url), label)


# =============================================================================
# 2. PLAYER PROFILE STRATEGIES
# =============================================================================


def _text(el: Optional[Tag]) -> Optional[str]:
    return clean_text(el.get_text(" ", strip=True)) if el is not None else None


class DataHeaderProfileStrategy(ExtractionStrategy[dict]):
    """Current profile header (h1.data-header__headline-wrapper + itemprop spans)."""

    name = "data-header"

    def extract(self, soup: BeautifulSoup) -> list[dict]:
        h1 = soup.select_one("h1.data-header__headline-wrapper")
        if h1 is None:
            return []
        for shirt in h1.select(".data-header__shirt-number"):
            shirt.decompose()
        name = _text(h1)
        if not name:
            return []
        position = None
        for li in soup.select("li.data-header__label"):
            label = _text(li) or ""
            if label.lower().startswith("position"):
                position = _text(li.select_one(".data-header__content"))
                break
        nationality_el = soup.select_one('[itemprop="nationality"]')
        flag = nationality_el.find("img") if nationality_el is not None else None
        nationality = clean_text(flag.get("title")) if flag is not None and flag.get("title") else _text(nationality_el)
        return [
            {
                "name": name,
                "date_of_birth": _text(soup.select_one('[itemprop="birthDate"]')),
                "nationality": nationality,
                "position": position,
            }
        ]


class InfoTableProfileStrategy(ExtractionStrategy[dict]):
    """Label/value pairs of the profile info table ("Date of birth/Age:", "Citizenship:", ...)."""

    name = "info-table"

    LABELS = {
        "name in home country": "full_name",
        "date of birth": "date_of_birth",
        "date of birth/age": "date_of_birth",
        "citizenship": "nationality",
        "position": "position",
    }

    def extract(self, soup: BeautifulSoup) -> list[dict]:
        fields: dict[str, Any] = {}
        for label_el in soup.select("span.info-table__content--regular"):
            label = (_text(label_el) or "").rstrip(":").strip().lower()
            key = self.LABELS.get(label)
            value_el = label_el.find_next_sibling("span")
            if not key or key in fields or value_el is None:
                continue
            if key == "nationality":
                # Dual citizenship prints two flags; the first is the sporting one
                flag = value_el.find("img")
                value = clean_text(flag.get("title") or flag.get("alt")) if flag else None
                fields[key] = value or _text(value_el)
            else:
                fields[key] = _text(value_el)
        name = _text(soup.select_one("h1")) or fields.get("full_name")
        if not name:
            return []
        return [
            {
                "name": name,
                "date_of_birth": fields.get("date_of_birth"),
                "nationality": fields.get("nationality"),
                "position": fields.get("position"),
            }
        ]


PROFILE_STRATEGIES: list[ExtractionStrategy[dict]] = [
    DataHeaderProfileStrategy(),
    InfoTableProfileStrategy(),
]


def extract_profile(soup: BeautifulSoup, label: str = "") -> Optional[dict]:
    found = extract_first(soup, PROFILE_STRATEGIES, label)
    return found[0] if found else None


# =============================================================================
# 3. TRANSFER HISTORY STRATEGIES
# =============================================================================

TRANSFER_CONTAINER_SELECTORS = (
    ".tm-player-transfer-history-grid",
    "tm-transfer-history",
    "div.transferhistorie",
    "tr.zeile-transfer",
)


class TransferGridStrategy(ExtractionStrategy[RawTransferEvent]):
    """Rows of the rendered transfer-history grid component."""

    name = "history-grid"
    PREFIX = "tm-player-transfer-history-grid"

    def _cell(self, row: Tag, suffix: str) -> str:
        return _text(row.select_one(f".{self.PREFIX}__{suffix}")) or ""

    def extract(self, soup: BeautifulSoup) -> list[RawTransferEvent]:
        events: list[RawTransferEvent] = []
        for row in soup.select(f"div.{self.PREFIX}"):
            classes = row.get("class") or []
            if any(c.endswith("--heading") for c in classes):
                continue
            date_text = self._cell(row, "date")
            if not date_text or date_text.lower() == "date":
                continue
            events.append(
                RawTransferEvent(
                    season_label=self._cell(row, "season"),
                    date_text=date_text,
                    from_club_name=self._club(row, "old-club"),
                    to_club_name=self._club(row, "new-club"),
                    fee_text=self._cell(row, "fee"),
                )
            )
        return events

    def _club(self, row: Tag, suffix: str) -> str:
        cell = row.select_one(f".{self.PREFIX}__{suffix}")
        if cell is None:
            return ""
        link = cell.select_one(f"a.{self.PREFIX}__club-link") or cell.select_one("a")
        return _text(link) or _text(cell) or ""


class LegacyTransferTableStrategy(ExtractionStrategy[RawTransferEvent]):
    """Older server-rendered table: tr.zeile-transfer rows."""

    name = "legacy-table"

    def extract(self, soup: BeautifulSoup) -> list[RawTransferEvent]:
        events: list[RawTransferEvent] = []
        for row in soup.select("tr.zeile-transfer"):
            cells = row.find_all("td")
            if len(cells) < 4:
                continue
            clubs = [_text(a) for a in row.select("td.hauptlink a") if _text(a)]
            if len(clubs) < 2:
                continue
            fee_el = row.select_one("td.zelle-abloese") or cells[-1]
            events.append(
                RawTransferEvent(
                    season_label=_text(cells[0]) or "",
                    date_text=_text(cells[1]) or "",
                    from_club_name=clubs[0] or "",
                    to_club_name=clubs[1] or "",
                    fee_text=_text(fee_el) or "",
                )
            )
        return events


TRANSFER_STRATEGIES: list[ExtractionStrategy[RawTransferEvent]] = [
    TransferGridStrategy(),
    LegacyTransferTableStrategy(),
]


def has_transfer_history(soup: BeautifulSoup) -> bool:
    return any(soup.select_one(sel) is not None for sel in TRANSFER_CONTAINER_SELECTORS)


def extract_transfers(soup: BeautifulSoup, label: str = "") -> list[RawTransferEvent]:
    return extract_first(soup, TRANSFER_STRATEGIES, label)


__all__ = [
    "ExtractionStrategy",
    "SelectorLinkStrategy",
    "AnchorScanStrategy",
    "extract_first",
    "club_link_strategies",
    "player_link_strategies",
    "extract_club_urls",
    "extract_player_urls",
    "extract_profile",
    "extract_transfers",
    "has_transfer_history",
]
