import json

import pytest
from click.testing import CliRunner

from career_crawler.apps import cli as cli_module
from career_crawler.apps.cli import cli, run_crawl
from career_crawler.common.retry import RetryPolicy
from career_crawler.core.config import get_settings
from career_crawler.data_collection.checkpoint import JsonDocumentStore
from career_crawler.data_collection.orchestrator import CrawlOrchestrator, Pacer
from tests.conftest import BASE_URL, FakeExtractor, no_sleep


@pytest.fixture
def patched_settings(settings, monkeypatch):
    monkeypatch.setattr(cli_module, "get_settings", lambda: settings)
    monkeypatch.setattr(cli_module, "_setup", lambda _settings: None)
    return settings


def test_reduce_command(tmp_path):
    events = [
        {"season_label": "18/19", "date_text": "07/15/2018", "from_club_name": "Youth Academy", "to_club_name": "Club A", "fee_text": "€1m"},
        {"season_label": "20/21", "date_text": "08/01/2020", "from_club_name": "Club A", "to_club_name": "Club B", "fee_text": "Loan"},
        {"season_label": "20/21", "date_text": "06/30/2021", "from_club_name": "Club B", "to_club_name": "Club A", "fee_text": "End of loan"},
    ]
    path = tmp_path / "events.json"
    path.write_text(json.dumps(events), encoding="utf-8")

    result = CliRunner().invoke(cli, ["reduce", str(path)])

    assert result.exit_code == 0, result.output
    assert json.loads(result.output) == {"18/19": ["Club A"], "20/21": ["Club A", "Club B"]}


def test_reduce_command_rejection(tmp_path):
    path = tmp_path / "events.json"
    path.write_text("[]", encoding="utf-8")

    result = CliRunner().invoke(cli, ["reduce", str(path)])

    assert result.exit_code == 1
    assert json.loads(result.output) == {"rejected": "no transfers"}


def test_reset_command_clears_stage(patched_settings):
    doc = JsonDocumentStore(patched_settings.players_output_file)
    doc.data["clubs"] = {"c": ["p"]}
    doc.save()

    result = CliRunner().invoke(cli, ["reset", "--stage", "players", "--yes"])

    assert result.exit_code == 0, result.output
    assert JsonDocumentStore(patched_settings.players_output_file).data == {}


@pytest.mark.asyncio
async def test_run_crawl_both_stages(settings, league_table_html, squad_html, saka_profile_html, youth_only_profile_html):
    extractor = FakeExtractor(
        {
            f"{BASE_URL}/premier-league/startseite/wettbewerb/GB1/saison_id/2020": league_table_html,
            f"{BASE_URL}/fc-arsenal/kader/verein/11/saison_id/2020/plus/1": squad_html,
            f"{BASE_URL}/fc-chelsea/kader/verein/631/saison_id/2020/plus/1": "<html><body></body></html>",
            f"{BASE_URL}/bukayo-saka/profil/spieler/433177": saka_profile_html,
            f"{BASE_URL}/martin-odegaard/profil/spieler/316264": youth_only_profile_html,
        }
    )

    def quiet_orchestrator(cfg, status, error_log):
        return CrawlOrchestrator(
            cfg,
            status,
            error_log,
            retry_policy=RetryPolicy(0.0, 0.0, sleep=no_sleep),
            pacer=Pacer(0.0, 0.0, cfg.batch_size, 0.0, sleep=no_sleep),
        )

    reports = await run_crawl(
        settings, ["clubs", "players"], extractor=extractor, orchestrator_factory=quiet_orchestrator
    )

    assert [r.stage for r in reports] == ["clubs", "players:squads", "players:profiles"]
    clubs, squads, profiles = reports
    assert clubs.completed == 1
    assert squads.completed == 1
    assert squads.rejected == 1
    assert profiles.completed == 1
    assert profiles.rejected == 1
    players = JsonDocumentStore(settings.players_output_file).data["players"]
    assert list(players) == ["saka_2001-09-05_ENG"]


def test_get_settings_is_cached():
    assert get_settings() is get_settings()
