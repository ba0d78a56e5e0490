"""
Domain models for the crawl dataset using Pydantic.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# "21/22" style keys
SeasonLabel = str
WorkKey = str


class Position(str, Enum):
    GK = "GK"
    DF = "DF"
    MF = "MF"
    ST = "ST"
    UNKNOWN = "Unknown"


class FeeKind(str, Enum):
    PERMANENT = "permanent"
    LOAN = "loan"
    END_OF_LOAN = "end_of_loan"


class RawTransferEvent(BaseModel):
    """One row of a player's transfer history, exactly as scraped."""

    model_config = ConfigDict(frozen=True)

    season_label: str = ""
    date_text: str = ""
    from_club_name: str = ""
    to_club_name: str = ""
    fee_text: str = ""

    @field_validator("*", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v


class PlayerIdentity(BaseModel):
    identity_key: str
    first_name: str
    last_name: str
    date_of_birth: str
    country_code: str
    country_code_fallback: bool = False


class PlayerRecord(BaseModel):
    identity_key: str
    first_name: str
    last_name: str
    position: Position = Position.UNKNOWN
    country_code: str
    date_of_birth: str
    seasons: dict[SeasonLabel, list[str]] = Field(default_factory=dict)
    source_url: Optional[str] = None
    scraped_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("seasons", mode="before")
    @classmethod
    def _sets_to_sorted_lists(cls, v: Any) -> Any:
        if isinstance(v, dict):
            return {season: sorted(set(clubs)) for season, clubs in v.items()}
        return v


class ErrorEntry(BaseModel):
    type: str
    url: Optional[str] = None
    error_message: str
    context: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class UnitOutcome(BaseModel):
    """Terminal result of one work key: payload to checkpoint, or a rejection."""

    payload: Any = None
    rejected: bool = False
    detail: Optional[str] = None
    # other document sections saved together with the checkpoint entry
    related: dict[str, dict[str, Any]] = Field(default_factory=dict)


class StageReport(BaseModel):
    stage: str
    total: int = 0
    processed: int = 0
    skipped: int = 0
    completed: int = 0
    rejected: int = 0
    failed: int = 0
