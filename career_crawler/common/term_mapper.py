"""Generic term mapping utilities.

`TermMapper` centralises synonym -> canonical value mappings used while turning
scraped profile text into dataset codes:

 - positions: free text such as "Defender - Centre-Back" -> "DF"
 - nationalities: "Côte d'Ivoire" -> "CIV"

Input is normalised (case-fold, strip accents, collapse whitespace, punctuation
to space) before lookup, so the tables only need one spelling per variant.
Two lookup modes exist: exact (`lookup`) for closed vocabularies such as country
names and keyword containment (`search`) for descriptive position text, where
the first registered group that has a keyword inside the text wins.
"""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

_WHITESPACE_RE = re.compile(r"\s+")
_PUNCT_RE = re.compile(r"[\.,;:_/\\()+\-\[\]{}'’]+")


def _strip_accents(value: str) -> str:
    """Return *value* with accents removed (NFKD decomposition -> drop marks)."""
    normalized = unicodedata.normalize("NFKD", value)
    return "".join(ch for ch in normalized if not unicodedata.combining(ch))


def _base_normalize(value: str) -> str:
    """Lowercase, trim, strip accents, punctuation -> space, collapse whitespace."""
    v = value.lower().strip()
    v = _strip_accents(v)
    v = _PUNCT_RE.sub(" ", v)
    v = _WHITESPACE_RE.sub(" ", v).strip()
    return v


@dataclass
class TermMapper:
    """Normalising synonym mapper.

    Attributes
    -----------
    mappings: Dict[str, str]
        normalised synonym -> canonical value (exact lookups)
    keywords: List[Tuple[str, str]]
        (normalised keyword, canonical) in registration order (containment search)
    label: str
        domain label for debugging, e.g. "positions"
    """

    mappings: Dict[str, str] = field(default_factory=dict)
    keywords: List[Tuple[str, str]] = field(default_factory=list)
    label: str = ""

    @classmethod
    def from_groups(cls, groups: Mapping[str, Iterable[str]], label: str = "") -> "TermMapper":
        """Create a TermMapper from canonical -> iterable of synonyms.

        Group order is kept; it decides ties in `search`.
        """
        inst = cls(label=label)
        inst.register_groups(groups)
        return inst

    def register(self, canonical: str, *synonyms: str) -> None:
        """Register synonyms for a canonical value (idempotent)."""
        for term in list(synonyms):
            norm = _base_normalize(term)
            if not norm:
                continue
            self.mappings[norm] = canonical
            if (norm, canonical) not in self.keywords:
                self.keywords.append((norm, canonical))

    def register_groups(self, groups: Mapping[str, Iterable[str]]) -> None:
        for canonical, syns in groups.items():
            self.register(canonical, *list(syns))

    def lookup(self, value: Optional[str]) -> Optional[str]:
        if not value:
            return None
        return self.mappings.get(_base_normalize(value))

    def search(self, value: Optional[str]) -> Optional[str]:
        """First canonical whose keyword occurs inside the normalised *value*."""
        if not value:
            return None
        norm = _base_normalize(value)
        if not norm:
            return None
        for keyword, canonical in self.keywords:
            if keyword in norm:
                return canonical
        return None

    def __contains__(self, value: str) -> bool:  # pragma: no cover - small convenience
        return self.lookup(value) is not None

    _DEFAULT_POSITION_INSTANCE: Optional["TermMapper"] = None  # type: ignore
    _DEFAULT_NATIONALITY_INSTANCE: Optional["TermMapper"] = None  # type: ignore

    @classmethod
    def default_position_mapper(cls) -> "TermMapper":
        """Keyword mapper for the four dataset position bands.

        Order matters: "Attacking Midfield" must land on MF, so the midfield
        group is registered before the attack group.
        """
        if cls._DEFAULT_POSITION_INSTANCE is None:
            groups = {
                "GK": ["goalkeeper", "keeper"],
                "DF": ["defender", "defence", "defense", "back"],
                "MF": ["midfield"],
                "ST": ["forward", "winger", "striker", "attack"],
            }
            cls._DEFAULT_POSITION_INSTANCE = cls.from_groups(groups, label="positions")
        return cls._DEFAULT_POSITION_INSTANCE

    @classmethod
    def default_nationality_mapper(cls) -> "TermMapper":
        """Nationality name (as printed on player profiles) -> 3-letter code."""
        if cls._DEFAULT_NATIONALITY_INSTANCE is None:
            cls._DEFAULT_NATIONALITY_INSTANCE = cls.from_groups(NATIONALITY_GROUPS, label="nationalities")
        return cls._DEFAULT_NATIONALITY_INSTANCE


NATIONALITY_GROUPS: Dict[str, List[str]] = {
    "ENG": ["England"],
    "SCO": ["Scotland"],
    "WAL": ["Wales"],
    "NIR": ["Northern Ireland"],
    "IRL": ["Ireland", "Republic of Ireland"],
    "GBR": ["United Kingdom", "Great Britain"],
    "ESP": ["Spain"],
    "ITA": ["Italy"],
    "DEU": ["Germany"],
    "FRA": ["France"],
    "NLD": ["Netherlands", "Holland"],
    "PRT": ["Portugal"],
    "BEL": ["Belgium"],
    "CHE": ["Switzerland"],
    "AUT": ["Austria"],
    "DNK": ["Denmark"],
    "SWE": ["Sweden"],
    "NOR": ["Norway"],
    "FIN": ["Finland"],
    "ISL": ["Iceland"],
    "POL": ["Poland"],
    "CZE": ["Czech Republic", "Czechia"],
    "SVK": ["Slovakia"],
    "HUN": ["Hungary"],
    "ROU": ["Romania"],
    "BGR": ["Bulgaria"],
    "GRC": ["Greece"],
    "TUR": ["Turkey", "Türkiye"],
    "HRV": ["Croatia"],
    "SRB": ["Serbia"],
    "SVN": ["Slovenia"],
    "BIH": ["Bosnia-Herzegovina", "Bosnia and Herzegovina"],
    "MNE": ["Montenegro"],
    "MKD": ["North Macedonia", "Macedonia"],
    "ALB": ["Albania"],
    "KOS": ["Kosovo"],
    "UKR": ["Ukraine"],
    "RUS": ["Russia"],
    "BLR": ["Belarus"],
    "GEO": ["Georgia"],
    "ARM": ["Armenia"],
    "AZE": ["Azerbaijan"],
    "ISR": ["Israel"],
    "CYP": ["Cyprus"],
    "LUX": ["Luxembourg"],
    "LTU": ["Lithuania"],
    "LVA": ["Latvia"],
    "EST": ["Estonia"],
    "BRA": ["Brazil"],
    "ARG": ["Argentina"],
    "URY": ["Uruguay"],
    "COL": ["Colombia"],
    "CHL": ["Chile"],
    "PER": ["Peru"],
    "PRY": ["Paraguay"],
    "ECU": ["Ecuador"],
    "VEN": ["Venezuela"],
    "BOL": ["Bolivia"],
    "MEX": ["Mexico"],
    "USA": ["United States", "USA"],
    "CAN": ["Canada"],
    "CRI": ["Costa Rica"],
    "HND": ["Honduras"],
    "JAM": ["Jamaica"],
    "PAN": ["Panama"],
    "CUW": ["Curacao", "Curaçao"],
    "SUR": ["Suriname"],
    "NGA": ["Nigeria"],
    "GHA": ["Ghana"],
    "CIV": ["Cote d'Ivoire", "Côte d'Ivoire", "Ivory Coast"],
    "SEN": ["Senegal"],
    "CMR": ["Cameroon"],
    "MLI": ["Mali"],
    "GIN": ["Guinea"],
    "GNB": ["Guinea-Bissau"],
    "BFA": ["Burkina Faso"],
    "COD": ["DR Congo", "Democratic Republic of the Congo"],
    "COG": ["Congo"],
    "GAB": ["Gabon"],
    "MAR": ["Morocco"],
    "DZA": ["Algeria"],
    "TUN": ["Tunisia"],
    "EGY": ["Egypt"],
    "ZAF": ["South Africa"],
    "CPV": ["Cape Verde", "Cabo Verde"],
    "AGO": ["Angola"],
    "MOZ": ["Mozambique"],
    "GMB": ["The Gambia", "Gambia"],
    "TGO": ["Togo"],
    "BEN": ["Benin"],
    "JPN": ["Japan"],
    "KOR": ["Korea, South", "South Korea", "Korea Republic"],
    "CHN": ["China"],
    "AUS": ["Australia"],
    "NZL": ["New Zealand"],
    "IRN": ["Iran"],
    "SAU": ["Saudi Arabia"],
}


def normalize_text(value: str) -> str:
    """Public wrapper so other modules share the same normalisation."""
    return _base_normalize(value)


def map_position(value: Optional[str]) -> Optional[str]:
    return TermMapper.default_position_mapper().search(value)


def map_nationality(value: Optional[str]) -> Optional[str]:
    return TermMapper.default_nationality_mapper().lookup(value)


__all__ = [
    "TermMapper",
    "NATIONALITY_GROUPS",
    "normalize_text",
    "map_position",
    "map_nationality",
]
