"""
Command-line interface for the career crawler.
Usage examples:
  career-crawler clubs
  career-crawler players --no-server
  career-crawler run
  career-crawler serve
  career-crawler reset --stage players --yes
  career-crawler reduce transfers.json
"""

import asyncio
import json
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Optional

import click
import uvicorn

from ..api.main import create_status_app
from ..common.logging_utils import configure_logging, get_logger
from ..common.playwright_utils import PageExtractor, PlaywrightPageExtractor
from ..core.config import Settings, get_settings
from ..data_collection.checkpoint import ErrorLog, JsonDocumentStore
from ..data_collection.orchestrator import CrawlOrchestrator
from ..data_collection.scrapers import CrawlStage, TransfermarktClubsStage, TransfermarktPlayersStage
from ..domain.models import RawTransferEvent, StageReport
from ..domain.transfer_history import reduce_transfer_history
from ..monitoring.status import CrawlStatus

STAGES: dict[str, type[CrawlStage]] = {
    "clubs": TransfermarktClubsStage,
    "players": TransfermarktPlayersStage,
}


def _build_server(settings: Settings, status: CrawlStatus) -> uvicorn.Server:
    config = uvicorn.Config(
        create_status_app(settings, status),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
    return uvicorn.Server(config)


async def run_crawl(
    settings: Settings,
    stage_names: Sequence[str],
    *,
    status: Optional[CrawlStatus] = None,
    extractor: Optional[PageExtractor] = None,
    orchestrator_factory: Callable[..., CrawlOrchestrator] = CrawlOrchestrator,
) -> list[StageReport]:
    """Run the named stages one after another with a single browser session"""
    logger = get_logger("crawler.cli")
    status = status or CrawlStatus(output_file=settings.output_file)
    orchestrator = orchestrator_factory(settings, status, ErrorLog(settings.error_log_file))
    reports: list[StageReport] = []

    async def _run(ext: PageExtractor) -> None:
        for name in stage_names:
            stage = STAGES[name](settings, ext)
            reports.extend(await stage.run(orchestrator))

    if extractor is not None:
        await _run(extractor)
    else:
        async with PlaywrightPageExtractor.from_settings(settings) as browser:
            await _run(browser)

    status.finish()
    for r in reports:
        logger.info(
            "%s: %d keys, %d completed, %d rejected, %d failed, %d skipped",
            r.stage,
            r.total,
            r.completed,
            r.rejected,
            r.failed,
            r.skipped,
        )
    return reports


async def crawl_with_server(settings: Settings, stage_names: Sequence[str], serve: bool, keep_serving: bool) -> int:
    logger = get_logger("crawler.cli")
    status = CrawlStatus(output_file=settings.output_file)
    server = _build_server(settings, status) if serve else None
    server_task = asyncio.create_task(server.serve()) if server else None
    try:
        reports = await run_crawl(settings, stage_names, status=status)
        logger.info("Crawl finished")
        if server_task is not None and keep_serving:
            logger.info("Still serving results on port %s (Ctrl+C to stop)", settings.port)
            await server_task
    finally:
        if server is not None and server_task is not None:
            server.should_exit = True
            await server_task
    return 1 if any(r.failed for r in reports) else 0


def _setup(settings: Settings) -> None:
    configure_logging("career-crawler", level=settings.log_level, log_dir=settings.log_file_path)


server_options = [
    click.option("--server/--no-server", "serve", default=True, help="Start the status server next to the crawl."),
    click.option(
        "--keep-serving/--exit-when-done",
        default=True,
        help="Keep the status server up after the crawl finished.",
    ),
]


def with_server_options(fn):
    for option in reversed(server_options):
        fn = option(fn)
    return fn


@click.group()
def cli():
    """Transfermarkt career crawler"""


@cli.command()
@with_server_options
def clubs(serve: bool, keep_serving: bool):
    """Season-league stage: league tables -> club URLs"""
    settings = get_settings()
    _setup(settings)
    raise SystemExit(asyncio.run(crawl_with_server(settings, ["clubs"], serve, keep_serving)))


@cli.command()
@with_server_options
def players(serve: bool, keep_serving: bool):
    """Club -> player stage: squads -> player records"""
    settings = get_settings()
    _setup(settings)
    raise SystemExit(asyncio.run(crawl_with_server(settings, ["players"], serve, keep_serving)))


@cli.command()
@with_server_options
def run(serve: bool, keep_serving: bool):
    """Both stages, sequentially"""
    settings = get_settings()
    _setup(settings)
    raise SystemExit(asyncio.run(crawl_with_server(settings, ["clubs", "players"], serve, keep_serving)))


@cli.command()
def serve():
    """Status server only (serves whatever is on disk)"""
    settings = get_settings()
    _setup(settings)
    asyncio.run(_build_server(settings, CrawlStatus(output_file=settings.output_file)).serve())


@cli.command()
@click.option("--stage", type=click.Choice(sorted(STAGES)), required=True)
@click.confirmation_option(prompt="Discard all checkpoints of this stage?")
def reset(stage: str):
    """Clear a stage's checkpoint document"""
    settings = get_settings()
    _setup(settings)
    path = settings.output_file if stage == "clubs" else settings.players_output_file
    JsonDocumentStore(path).clear()
    click.echo(f"Cleared {path}")


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def reduce(file: Path):
    """Reduce a JSON list of raw transfer events to season affiliations"""
    raw = json.loads(file.read_text(encoding="utf-8"))
    if not isinstance(raw, list):
        raise click.BadParameter("expected a JSON list of transfer events", param_hint="FILE")
    result = reduce_transfer_history([RawTransferEvent.model_validate(ev) for ev in raw])
    if result.rejected:
        click.echo(json.dumps({"rejected": result.rejection_reason}))
        raise SystemExit(1)
    click.echo(json.dumps(result.as_lists(), indent=2, ensure_ascii=False, sort_keys=True))


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
