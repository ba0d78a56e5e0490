"""
Season-league stage: one league table page per (year, league code),
producing the club URLs of that season.

Work key:  "{year}_{league_code}", e.g. "2006_GB1"
Payload:   list of club URLs (absolute, no trailing slash)
URL:       {base}/{slug}/startseite/wettbewerb/{code}/saison_id/{year}
"""

from collections.abc import Iterator
from typing import Optional

from ...common.playwright_utils import PageExtractor
from ...core.config import Settings
from ...core.exceptions import StructuralExtractionError
from ...domain.models import StageReport, UnitOutcome
from ..checkpoint import CheckpointStore, JsonDocumentStore
from ..extraction import extract_club_urls
from ..orchestrator import CrawlOrchestrator
from .base import CrawlStage

LEAGUE_TABLE_WAIT_SELECTORS = [
    "table.items",
    'td.hauptlink a[href*="/startseite/verein/"]',
]


def season_league_key(year: int, league_code: str) -> str:
    return f"{year}_{league_code}"


def split_season_league_key(key: str) -> tuple[int, str]:
    year, code = key.split("_", 1)
    return int(year), code


class TransfermarktClubsStage(CrawlStage):
    """League table pages -> club URLs per season"""

    def __init__(self, settings: Settings, extractor: PageExtractor, document: Optional[JsonDocumentStore] = None):
        super().__init__(settings, extractor, "clubs")
        self.document = document or JsonDocumentStore(settings.output_file)
        self.checkpoint = CheckpointStore(self.document)

    def work_keys(self) -> Iterator[str]:
        for year in range(self.settings.start_year, self.settings.end_year + 1):
            for code in self.settings.leagues:
                if code not in self.settings.league_slugs:
                    self.logger.error("No slug for %s, skipping.", code)
                    continue
                yield season_league_key(year, code)

    def league_url(self, key: str) -> str:
        year, code = split_season_league_key(key)
        slug = self.settings.league_slugs[code]
        return f"{self.settings.base_url}/{slug}/startseite/wettbewerb/{code}/saison_id/{year}"

    async def process(self, key: str) -> UnitOutcome:
        url = self.league_url(key)
        html = await self.fetch_page(url, LEAGUE_TABLE_WAIT_SELECTORS)
        club_urls = extract_club_urls(html, self.settings.base_url, label=key)
        if not club_urls:
            raise StructuralExtractionError(
                f"No clubs found for {key}: check if URL is valid or page structure changed."
            )
        return UnitOutcome(payload=club_urls, detail=f"{len(club_urls)} clubs")

    async def run(self, orchestrator: CrawlOrchestrator) -> list[StageReport]:
        orchestrator.status.begin_stage(self.name, output_file=str(self.document.path))
        orchestrator.status.set_last_saved(len(self.checkpoint))
        report = await orchestrator.run_stage(
            self.name,
            self.work_keys(),
            self.checkpoint,
            self.process,
            url_for=self.league_url,
        )
        return [report]
