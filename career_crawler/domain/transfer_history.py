"""Reduce a player's raw transfer ledger to season-indexed senior club affiliations.

The site's ledger records movements, not memberships. The reducer rebuilds
"which senior clubs was the player attached to in which season":

- only transfers into a senior club count (youth, reserve and placeholder
  destinations are dropped, fail-closed)
- each counted transfer lands in the season its date falls in (July boundary)
- a loan also keeps the lending club in that season
- "End of loan" rows only record the return and add nothing

All functions are side-effect free.
"""
from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from ..common.parsing import parse_transfer_date
from ..common.term_mapper import normalize_text
from .models import FeeKind, RawTransferEvent

# First month of a new season (July)
SEASON_START_MONTH = 7

REJECT_NO_TRANSFERS = "no transfers"
REJECT_NO_PROFESSIONAL = "no professional transfers"
REJECT_NO_AFFILIATIONS = "no senior affiliations"

_YOUTH_TOKENS = (
    "youth",
    "reserve",
    "reserves",
    "retired",
    "without club",
    "career break",
    "unknown",
    "jugend",
    "juvenil",
    "primavera",
    "academy",
    "castilla",
    "atletic",
)
_YOUTH_TOKEN_RE = re.compile(r"\b(?:" + "|".join(re.escape(t) for t in _YOUTH_TOKENS) + r")\b")
_AGE_GROUP_RE = re.compile(r"\b(?:u|under|sub)\s?(?:1[5-9]|2[0-3])\b")
_JONG_RE = re.compile(r"^jong\b")
_RESERVE_SUFFIX_RE = re.compile(r"^(?P<base>.+?)\s(?:b|ii)$")
# A bare generic word in front of the suffix is a placeholder name ("Club B"),
# not a second team.
_GENERIC_BASE_WORDS = {"club", "team", "fc", "sc", "cf", "ac", "sv"}


@dataclass
class ReductionResult:
    seasons: dict[str, set[str]] = field(default_factory=dict)
    rejection_reason: Optional[str] = None

    @property
    def rejected(self) -> bool:
        return not self.seasons

    def as_lists(self) -> dict[str, list[str]]:
        return {season: sorted(clubs) for season, clubs in self.seasons.items()}


def season_label(d: date) -> str:
    """Season a calendar date belongs to: 2021-08-15 -> "21/22", 2021-03-01 -> "20/21"."""
    start = d.year if d.month >= SEASON_START_MONTH else d.year - 1
    return f"{start % 100:02d}/{(start + 1) % 100:02d}"


def is_youth_or_reserve(club_name: str | None) -> bool:
    """True for youth, reserve, placeholder or unusable club names (fail-closed)."""
    if not club_name or not club_name.strip():
        return True
    norm = normalize_text(club_name)
    if not norm or not any(ch.isalnum() for ch in norm):
        return True
    if _YOUTH_TOKEN_RE.search(norm) or _AGE_GROUP_RE.search(norm) or _JONG_RE.search(norm):
        return True
    m = _RESERVE_SUFFIX_RE.match(norm)
    if m:
        base_tokens = m.group("base").split()
        return not all(tok in _GENERIC_BASE_WORDS for tok in base_tokens)
    return False


def classify_fee(fee_text: str | None) -> FeeKind:
    fee = (fee_text or "").lower()
    if "end of loan" in fee:
        return FeeKind.END_OF_LOAN
    if "loan" in fee:
        return FeeKind.LOAN
    return FeeKind.PERMANENT


def _dated_professional(events: Iterable[RawTransferEvent]) -> list[tuple[date, RawTransferEvent]]:
    out: list[tuple[date, RawTransferEvent]] = []
    for ev in events:
        d = parse_transfer_date(ev.date_text)
        # Unparseable dates cannot be placed in a season
        if d is None:
            continue
        if is_youth_or_reserve(ev.to_club_name):
            continue
        out.append((d, ev))
    return out


def reduce_transfer_history(events: Sequence[RawTransferEvent]) -> ReductionResult:
    if not events:
        return ReductionResult(rejection_reason=REJECT_NO_TRANSFERS)

    qualifying = _dated_professional(events)
    if not qualifying:
        return ReductionResult(rejection_reason=REJECT_NO_PROFESSIONAL)

    # sorted() is stable: same-day transfers keep their ledger order
    qualifying.sort(key=lambda pair: pair[0])

    seasons: dict[str, set[str]] = {}
    for d, ev in qualifying:
        kind = classify_fee(ev.fee_text)
        if kind is FeeKind.END_OF_LOAN:
            continue
        clubs = seasons.setdefault(season_label(d), set())
        to_club = ev.to_club_name.strip()
        if not is_youth_or_reserve(to_club):
            clubs.add(to_club)
        if kind is FeeKind.LOAN and not is_youth_or_reserve(ev.from_club_name):
            clubs.add(ev.from_club_name.strip())

    seasons = {label: clubs for label, clubs in seasons.items() if clubs}
    if not seasons:
        return ReductionResult(rejection_reason=REJECT_NO_AFFILIATIONS)
    return ReductionResult(seasons=seasons)


__all__ = [
    "ReductionResult",
    "season_label",
    "is_youth_or_reserve",
    "classify_fee",
    "reduce_transfer_history",
]
