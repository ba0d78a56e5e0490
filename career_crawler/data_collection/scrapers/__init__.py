"""
Crawl-Stufen für Transfermarkt
"""

from .base import CrawlStage
from .transfermarkt_clubs import TransfermarktClubsStage
from .transfermarkt_players import TransfermarktPlayersStage

__all__ = ["CrawlStage", "TransfermarktClubsStage", "TransfermarktPlayersStage"]
