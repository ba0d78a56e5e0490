"""
Crawl Orchestrator

Drives one hierarchy level at a time over a deterministic key space:
skip completed keys, process the rest through the retry policy, checkpoint
terminal outcomes, log and skip exhausted failures, pace between units.
Keys are processed strictly one after another.
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable, Iterable
from typing import Optional

from ..common.retry import RetryPolicy
from ..core.config import Settings
from ..core.exceptions import RetryExhaustedError
from ..domain.models import StageReport, UnitOutcome
from ..monitoring.status import CrawlStatus
from .checkpoint import CheckpointStore, ErrorLog

ProcessFn = Callable[[str], Awaitable[UnitOutcome]]


class Pacer:
    """Short random delay after every unit, long cooldown after every batch."""

    def __init__(
        self,
        min_seconds: float,
        max_seconds: float,
        batch_size: int,
        batch_cooldown: float,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        rng: Optional[random.Random] = None,
    ):
        self.min_seconds = min_seconds
        self.max_seconds = max_seconds
        self.batch_size = batch_size
        self.batch_cooldown = batch_cooldown
        self._sleep = sleep
        self._rng = rng or random.Random()
        self.units = 0
        self.logger = logging.getLogger("crawler.pacing")

    @classmethod
    def from_settings(cls, settings: Settings, sleep: Callable[[float], Awaitable[None]] = asyncio.sleep) -> "Pacer":
        return cls(
            settings.pacing_min_seconds,
            settings.pacing_max_seconds,
            settings.batch_size,
            settings.batch_cooldown_seconds,
            sleep=sleep,
        )

    async def after_unit(self) -> None:
        self.units += 1
        await self._sleep(self._rng.uniform(self.min_seconds, self.max_seconds))
        if self.batch_size and self.units % self.batch_size == 0 and self.batch_cooldown > 0:
            self.logger.info(
                "Processed %d units. Cooling down for %ds to avoid blocks...",
                self.units,
                round(self.batch_cooldown),
            )
            await self._sleep(self.batch_cooldown)


class CrawlOrchestrator:
    """Orchestriert die sequentielle, fortsetzbare Verarbeitung von WorkKeys"""

    def __init__(
        self,
        settings: Settings,
        status: CrawlStatus,
        error_log: ErrorLog,
        retry_policy: Optional[RetryPolicy] = None,
        pacer: Optional[Pacer] = None,
    ):
        self.settings = settings
        self.status = status
        self.error_log = error_log
        self.retry_policy = retry_policy or RetryPolicy.from_settings(settings)
        self.pacer = pacer or Pacer.from_settings(settings)
        self.logger = logging.getLogger("crawler.orchestrator")

    async def run_stage(
        self,
        stage: str,
        keys: Iterable[str],
        checkpoint: CheckpointStore,
        process: ProcessFn,
        *,
        url_for: Callable[[str], Optional[str]] = lambda key: key if key.startswith("http") else None,
    ) -> StageReport:
        report = StageReport(stage=stage)
        self.status.begin_stage(stage)
        self.logger.info("Stage %s started", stage)

        for key in keys:
            report.total += 1
            self.status.set_last_key(key)
            if checkpoint.is_complete(key):
                self.logger.debug("Skipping %s (already done)", key)
                report.skipped += 1
                self.status.record(skipped=1)
                continue

            report.processed += 1
            await self._run_unit(stage, key, checkpoint, process, report, url_for(key))
            self.status.record(processed=1)
            await self.pacer.after_unit()

        self.logger.info(
            "Stage %s finished: %d keys, %d processed, %d skipped, %d completed, %d rejected, %d failed",
            stage,
            report.total,
            report.processed,
            report.skipped,
            report.completed,
            report.rejected,
            report.failed,
        )
        return report

    async def _run_unit(
        self,
        stage: str,
        key: str,
        checkpoint: CheckpointStore,
        process: ProcessFn,
        report: StageReport,
        url: Optional[str],
    ) -> None:
        label = f"{stage}:{key}"
        try:
            outcome = await self.retry_policy.execute(
                lambda: process(key), self.settings.max_retries, label
            )
        except RetryExhaustedError as e:
            if e.is_structural:
                # Nothing extractable even after retries: terminal, do not retry next run
                self.logger.warning("Rejecting %s after %d attempts: %s", label, e.attempts, e.last_error)
                self.error_log.record(
                    "structural", url, str(e.last_error), stage=stage, key=key, attempts=e.attempts
                )
                if not self._checkpoint(stage, key, checkpoint, None, url):
                    report.failed += 1
                    self.status.record(failed=1)
                    return
                report.rejected += 1
                self.status.record(rejected=1)
            else:
                self.logger.error("Error on %s: %s", label, e.last_error)
                self.error_log.record(
                    "transient", url, str(e.last_error), stage=stage, key=key, attempts=e.attempts
                )
                report.failed += 1
                self.status.record(failed=1)
            return

        if not self._checkpoint(stage, key, checkpoint, outcome.payload, url, outcome.related):
            report.failed += 1
            self.status.record(failed=1)
            return
        self.status.set_last_saved(len(checkpoint))
        if outcome.rejected:
            self.logger.info("Rejected %s: %s", label, outcome.detail)
            report.rejected += 1
            self.status.record(rejected=1)
        else:
            self.logger.info("Completed %s%s", label, f" ({outcome.detail})" if outcome.detail else "")
            report.completed += 1

    def _checkpoint(
        self,
        stage: str,
        key: str,
        checkpoint: CheckpointStore,
        payload: object,
        url: Optional[str],
        related: Optional[dict] = None,
    ) -> bool:
        """Persist a terminal outcome. False if the save failed and the key stays incomplete."""
        try:
            checkpoint.mark_complete(key, payload, related)
        except OSError as e:
            self.logger.error("Could not save %s:%s, leaving it for the next run: %s", stage, key, e)
            self.error_log.record("persistence", url, str(e), stage=stage, key=key)
            return False
        return True
