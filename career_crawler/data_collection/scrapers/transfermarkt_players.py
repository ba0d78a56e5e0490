"""
Club -> player stage.

Two passes over the players document:

1. club squads:  club URL -> player URLs   (section "clubs")
2. player pages: player URL -> identity key or null   (section "player_urls")

Accepted players are stored under section "players", keyed by identity key,
so a player reached through several clubs or seasons is written once and
overwritten on re-processing.
"""

from collections.abc import Iterable, Iterator
from typing import Optional

from ...common.playwright_utils import PageExtractor
from ...core.config import Settings
from ...core.exceptions import StructuralExtractionError
from ...domain.identity import normalize_position, resolve_identity
from ...domain.models import PlayerRecord, StageReport, UnitOutcome
from ...domain.transfer_history import reduce_transfer_history
from ..checkpoint import CheckpointStore, JsonDocumentStore
from ..extraction import extract_player_urls, extract_profile, extract_transfers, has_transfer_history
from ..orchestrator import CrawlOrchestrator
from .base import CrawlStage

SQUAD_WAIT_SELECTORS = ["table.items", 'td.hauptlink a[href*="/profil/spieler/"]']
PROFILE_WAIT_SELECTORS = ["h1", ".tm-player-transfer-history-grid"]

CLUBS_SECTION = "clubs"
PLAYER_URLS_SECTION = "player_urls"
PLAYERS_SECTION = "players"


def squad_url(club_url: str) -> str:
    """Club overview URL -> detailed squad list ("kader" page, plus/1)"""
    url = club_url.replace("/startseite/", "/kader/", 1)
    return url if url.endswith("/plus/1") else f"{url}/plus/1"


def unique(urls: Iterable[Optional[Iterable[str]]]) -> Iterator[str]:
    """Flatten payload lists, skipping rejected (null) entries and duplicates"""
    seen: set[str] = set()
    for group in urls:
        for url in group or ():
            if url not in seen:
                seen.add(url)
                yield url


class TransfermarktPlayersStage(CrawlStage):
    """Squad pages -> player pages -> PlayerRecords"""

    def __init__(
        self,
        settings: Settings,
        extractor: PageExtractor,
        clubs_document: Optional[JsonDocumentStore] = None,
        document: Optional[JsonDocumentStore] = None,
    ):
        super().__init__(settings, extractor, "players")
        self.clubs_document = clubs_document or JsonDocumentStore(settings.output_file)
        self.document = document or JsonDocumentStore(settings.players_output_file)
        self.club_checkpoint = CheckpointStore(self.document, CLUBS_SECTION)
        self.player_checkpoint = CheckpointStore(self.document, PLAYER_URLS_SECTION)

    @property
    def players(self) -> dict:
        return self.document.section(PLAYERS_SECTION)

    # ------------------------------------------------------------------ keys

    def club_keys(self) -> list[str]:
        return list(unique(self.clubs_document.data.values()))

    def player_keys(self) -> list[str]:
        return list(unique(self.club_checkpoint.get(k) for k in self.club_checkpoint.all_keys()))

    # ---------------------------------------------------------------- squads

    async def process_club(self, club_url: str) -> UnitOutcome:
        html = await self.fetch_page(squad_url(club_url), SQUAD_WAIT_SELECTORS)
        player_urls = extract_player_urls(html, self.settings.base_url, label=club_url)
        if not player_urls:
            raise StructuralExtractionError(f"No players found on squad page of {club_url}")
        return UnitOutcome(payload=player_urls, detail=f"{len(player_urls)} players")

    # --------------------------------------------------------------- players

    async def process_player(self, player_url: str) -> UnitOutcome:
        html = await self.fetch_page(player_url, PROFILE_WAIT_SELECTORS)
        soup = self.parse_html(html)

        profile = extract_profile(soup, label=player_url)
        if not profile or not profile.get("name"):
            raise StructuralExtractionError(f"No player name on {player_url}")

        events = extract_transfers(soup, label=player_url)
        if not events and not has_transfer_history(soup):
            raise StructuralExtractionError(f"Transfer history not rendered on {player_url}")

        result = reduce_transfer_history(events)
        if result.rejected:
            return UnitOutcome(payload=None, rejected=True, detail=result.rejection_reason)

        identity = resolve_identity(profile["name"], profile.get("date_of_birth"), profile.get("nationality"))
        record = PlayerRecord(
            identity_key=identity.identity_key,
            first_name=identity.first_name,
            last_name=identity.last_name,
            position=normalize_position(profile.get("position")),
            country_code=identity.country_code,
            date_of_birth=identity.date_of_birth,
            seasons=result.seasons,
            source_url=player_url,
        )
        return UnitOutcome(
            payload=identity.identity_key,
            related={PLAYERS_SECTION: {identity.identity_key: record.model_dump(mode="json")}},
            detail=f"{identity.identity_key}, {len(record.seasons)} seasons",
        )

    async def run(self, orchestrator: CrawlOrchestrator) -> list[StageReport]:
        orchestrator.status.begin_stage(self.name, output_file=str(self.document.path))
        club_keys = self.club_keys()
        if not club_keys:
            self.logger.warning("No club URLs in %s, run the clubs stage first", self.clubs_document.path)

        squads = await orchestrator.run_stage(
            f"{self.name}:squads",
            club_keys,
            self.club_checkpoint,
            self.process_club,
            url_for=squad_url,
        )
        profiles = await orchestrator.run_stage(
            f"{self.name}:profiles",
            self.player_keys(),
            self.player_checkpoint,
            self.process_player,
        )
        orchestrator.status.set_last_saved(len(self.players))
        return [squads, profiles]
