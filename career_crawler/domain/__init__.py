"""
Domain Module
Datenmodelle, Transfer-Historie und Spieler-Identität
"""

from .identity import normalize_position, resolve_identity
from .models import (
    ErrorEntry,
    FeeKind,
    PlayerIdentity,
    PlayerRecord,
    Position,
    RawTransferEvent,
    StageReport,
    UnitOutcome,
)
from .transfer_history import (
    ReductionResult,
    classify_fee,
    is_youth_or_reserve,
    reduce_transfer_history,
    season_label,
)

__all__ = [
    "ErrorEntry",
    "FeeKind",
    "PlayerIdentity",
    "PlayerRecord",
    "Position",
    "RawTransferEvent",
    "StageReport",
    "UnitOutcome",
    "ReductionResult",
    "classify_fee",
    "is_youth_or_reserve",
    "reduce_transfer_history",
    "season_label",
    "normalize_position",
    "resolve_identity",
]
