"""
Base class for crawl stages.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence

from bs4 import BeautifulSoup

from ...common.playwright_utils import PageExtractor
from ...core.config import Settings
from ...domain.models import StageReport
from ..orchestrator import CrawlOrchestrator


class CrawlStage(ABC):
    """Abstrakte Basisklasse für alle Crawl-Stufen"""

    def __init__(self, settings: Settings, extractor: PageExtractor, name: str):
        self.settings = settings
        self.extractor = extractor
        self.name = name
        self.logger = logging.getLogger(f"crawler.{name}")

    @abstractmethod
    async def run(self, orchestrator: CrawlOrchestrator) -> list[StageReport]:
        """Process every work key of this stage"""

    async def fetch_page(self, url: str, wait_selectors: Sequence[str] = ()) -> str:
        """Lädt eine gerenderte Seite"""
        self.logger.info("Scraping %s", url)
        return await self.extractor.fetch_html(
            url, wait_selectors=wait_selectors, timeout_ms=self.settings.page_timeout_ms
        )

    def parse_html(self, html: str) -> BeautifulSoup:
        """Parst HTML mit BeautifulSoup"""
        return BeautifulSoup(html, "html.parser")
