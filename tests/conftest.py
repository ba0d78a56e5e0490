"""Global pytest fixtures.

Centralizes:
 - Reusable HTML snippets for league tables, squad pages and player profiles
 - A scripted page extractor standing in for the browser
 - Settings wired to a temporary data directory with zero pacing
"""

from collections.abc import Sequence
from typing import Optional, Union

import pytest

from career_crawler.common.term_mapper import TermMapper
from career_crawler.common.retry import RetryPolicy
from career_crawler.core.config import Settings
from career_crawler.data_collection.checkpoint import ErrorLog
from career_crawler.data_collection.orchestrator import CrawlOrchestrator, Pacer
from career_crawler.monitoring.status import CrawlStatus

BASE_URL = "https://www.transfermarkt.com"


# -------------------- Fakes -------------------- #


class FakeExtractor:
    """PageExtractor returning canned HTML per URL.

    A response may be an exception instance (raised on every call) or a list
    of str/exception consumed one per call, to script flaky pages.
    """

    def __init__(self, pages: Optional[dict[str, Union[str, Exception, list]]] = None):
        self.pages = dict(pages or {})
        self.calls: list[str] = []

    async def fetch_html(self, url: str, *, wait_selectors: Sequence[str] = (), timeout_ms: Optional[int] = None) -> str:
        self.calls.append(url)
        if url not in self.pages:
            raise KeyError(f"unexpected URL {url}")
        response = self.pages[url]
        if isinstance(response, list):
            response = response.pop(0) if len(response) > 1 else response[0]
        if isinstance(response, Exception):
            raise response
        return response


async def no_sleep(_seconds: float) -> None:
    return None


class RecordingSleep:
    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


# -------------------- Settings / Wiring -------------------- #


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        output_file=str(tmp_path / "clubs.json"),
        players_output_file=str(tmp_path / "players.json"),
        error_log_file=str(tmp_path / "errors.jsonl"),
        base_url=BASE_URL,
        start_year=2020,
        end_year=2020,
        leagues=["GB1"],
        league_slugs={"GB1": "premier-league"},
        max_retries=2,
        pacing_min_seconds=0.0,
        pacing_max_seconds=0.0,
        batch_size=10,
        batch_cooldown_seconds=0.0,
    )


@pytest.fixture
def status(settings):
    return CrawlStatus(output_file=settings.output_file)


@pytest.fixture
def orchestrator(settings, status):
    return CrawlOrchestrator(
        settings,
        status,
        ErrorLog(settings.error_log_file),
        retry_policy=RetryPolicy(0.0, 0.0, sleep=no_sleep),
        pacer=Pacer(0.0, 0.0, settings.batch_size, 0.0, sleep=no_sleep),
    )


@pytest.fixture(scope="session")
def position_mapper():
    """Session-scoped default position mapper."""
    return TermMapper.default_position_mapper()


# -------------------- HTML Fixtures -------------------- #


@pytest.fixture
def league_table_html():
    return """
    <html><body>
      <table class="items">
        <tr>
          <td class="hauptlink no-border-links">
            <a title="Arsenal FC" href="/fc-arsenal/startseite/verein/11/saison_id/2020">Arsenal</a>
          </td>
        </tr>
        <tr>
          <td class="hauptlink no-border-links">
            <a title="Chelsea FC" href="/fc-chelsea/startseite/verein/631/saison_id/2020/">Chelsea</a>
          </td>
        </tr>
        <tr>
          <td class="hauptlink no-border-links">
            <a title="Arsenal FC" href="/fc-arsenal/startseite/verein/11/saison_id/2020">Arsenal</a>
          </td>
        </tr>
      </table>
    </body></html>
    """


@pytest.fixture
def squad_html():
    return """
    <html><body>
      <table class="items">
        <tr><td class="hauptlink"><a href="/bukayo-saka/profil/spieler/433177">Bukayo Saka</a></td></tr>
        <tr><td class="hauptlink"><a href="/martin-odegaard/profil/spieler/316264?ref=squad">Martin Ødegaard</a></td></tr>
        <tr><td class="hauptlink"><a href="/fc-arsenal/startseite/verein/11">Arsenal</a></td></tr>
      </table>
    </body></html>
    """


def _grid_row(season: str, date: str, old: str, new: str, fee: str) -> str:
    prefix = "tm-player-transfer-history-grid"
    return f"""
      <div class="grid {prefix}">
        <div class="{prefix}__season">{season}</div>
        <div class="{prefix}__date">{date}</div>
        <div class="{prefix}__old-club"><a class="{prefix}__club-link" href="#">{old}</a></div>
        <div class="{prefix}__new-club"><a class="{prefix}__club-link" href="#">{new}</a></div>
        <div class="{prefix}__market-value">-</div>
        <div class="{prefix}__fee">{fee}</div>
      </div>
    """


def profile_html(name: str, dob: str, nationality: str, position: str, rows: Sequence[tuple]) -> str:
    heading = """
      <div class="grid tm-player-transfer-history-grid tm-player-transfer-history-grid--heading">
        <div class="tm-player-transfer-history-grid__season">Season</div>
        <div class="tm-player-transfer-history-grid__date">Date</div>
      </div>
    """
    return f"""
    <html><body>
      <header class="data-header">
        <h1 class="data-header__headline-wrapper">
          <span class="data-header__shirt-number">#7</span> {name}
        </h1>
        <ul>
          <li class="data-header__label">Date of birth/Age:
            <span class="data-header__content" itemprop="birthDate">{dob}</span></li>
          <li class="data-header__label">Citizenship:
            <span class="data-header__content" itemprop="nationality">
              <img title="{nationality}" alt="{nationality}" class="flaggenrahmen"/> {nationality}
            </span></li>
          <li class="data-header__label">Position:
            <span class="data-header__content">{position}</span></li>
        </ul>
      </header>
      <tm-transfer-history>
        <div class="tm-transfer-history">
          {heading}
          {"".join(_grid_row(*r) for r in rows)}
        </div>
      </tm-transfer-history>
    </body></html>
    """


@pytest.fixture
def saka_profile_html():
    return profile_html(
        "Bukayo Saka",
        "Sep 5, 2001 (23)",
        "England",
        "Right Winger",
        [
            ("18/19", "Jul 1, 2018", "Arsenal U18", "Arsenal U23", "-"),
            ("18/19", "Jan 1, 2019", "Arsenal U23", "Arsenal FC", "-"),
        ],
    )


@pytest.fixture
def youth_only_profile_html():
    return profile_html(
        "Some Youngster",
        "Mar 3, 2006 (18)",
        "Spain",
        "Centre-Back",
        [
            ("22/23", "Jul 1, 2022", "Real Madrid Youth", "Real Madrid U19", "-"),
            ("23/24", "Jul 1, 2023", "Real Madrid U19", "Real Madrid Castilla", "-"),
        ],
    )
