"""Natural keys for scraped players.

The dataset is keyed by ``<last_name>_<date_of_birth>_<country_code>`` so that
re-scraping a player overwrites its record instead of adding a duplicate.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from ..common.parsing import clean_text, parse_transfer_date
from ..common.term_mapper import map_nationality, map_position
from .models import PlayerIdentity, Position

logger = logging.getLogger("crawler.identity")

_WS_RE = re.compile(r"\s+")


def split_name(full_name: str) -> tuple[str, str]:
    """First token is the first name, the rest the last name; one token is both."""
    tokens = (clean_text(full_name) or "").split(" ")
    tokens = [t for t in tokens if t]
    if not tokens:
        return "", ""
    if len(tokens) == 1:
        return tokens[0], tokens[0]
    return tokens[0], " ".join(tokens[1:])


def normalize_birth_date(raw: Optional[str]) -> str:
    """ISO date when parseable ("Jan 5, 1998 (26)" -> "1998-01-05"), else cleaned text."""
    d = parse_transfer_date(raw)
    if d is not None:
        return d.isoformat()
    return clean_text(raw) or ""


def country_code_for(nationality: Optional[str]) -> tuple[str, bool]:
    """Return (code, used_fallback).

    Unknown nationalities fall back to the first three letters, uppercased.
    That code may collide with or differ from the real one, so the fallback is
    logged at WARNING while table hits stay at DEBUG.
    """
    text = clean_text(nationality) or ""
    code = map_nationality(text)
    if code:
        logger.debug("Nationality %r -> %s (table)", text, code)
        return code, False
    letters = re.sub(r"[^A-Za-z]", "", text)
    fallback = letters[:3].upper()
    logger.warning("Nationality %r not in table, using lossy fallback code %r", text, fallback)
    return fallback, True


def normalize_position(text: Optional[str]) -> Position:
    code = map_position(text)
    return Position(code) if code else Position.UNKNOWN


def build_identity_key(last_name: str, date_of_birth: str, country_code: str) -> str:
    return f"{_WS_RE.sub('_', last_name.strip().lower())}_{date_of_birth}_{country_code}"


def resolve_identity(full_name: str, date_of_birth: Optional[str], nationality: Optional[str]) -> PlayerIdentity:
    first_name, last_name = split_name(full_name)
    dob = normalize_birth_date(date_of_birth)
    code, fallback = country_code_for(nationality)
    return PlayerIdentity(
        identity_key=build_identity_key(last_name, dob, code),
        first_name=first_name,
        last_name=last_name,
        date_of_birth=dob,
        country_code=code,
        country_code_fallback=fallback,
    )


__all__ = [
    "split_name",
    "normalize_birth_date",
    "country_code_for",
    "normalize_position",
    "build_identity_key",
    "resolve_identity",
]
