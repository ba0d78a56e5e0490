import json
import random
from pathlib import Path

import pytest

from career_crawler.common.retry import RetryPolicy
from career_crawler.core.exceptions import StructuralExtractionError, TransientFetchError
from career_crawler.data_collection.checkpoint import CheckpointStore, ErrorLog, JsonDocumentStore
from career_crawler.data_collection.orchestrator import CrawlOrchestrator, Pacer
from career_crawler.domain.models import UnitOutcome
from tests.conftest import RecordingSleep


class ScriptedProcess:
    """process(key) coroutine with per-key scripted results."""

    def __init__(self, script):
        self.script = script
        self.calls: list[str] = []

    async def __call__(self, key):
        self.calls.append(key)
        result = self.script[key]
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def checkpoint(settings):
    return CheckpointStore(JsonDocumentStore(settings.output_file))


@pytest.mark.asyncio
async def test_completed_keys_are_never_processed_again(orchestrator, checkpoint):
    checkpoint.mark_complete("k1", ["done"])
    process = ScriptedProcess({"k2": UnitOutcome(payload=["new"])})

    report = await orchestrator.run_stage("clubs", ["k1", "k2"], checkpoint, process)

    assert process.calls == ["k2"]
    assert report.total == 2
    assert report.skipped == 1
    assert report.completed == 1
    assert checkpoint.get("k1") == ["done"]
    assert checkpoint.get("k2") == ["new"]


@pytest.mark.asyncio
async def test_second_run_does_nothing(orchestrator, checkpoint):
    process = ScriptedProcess({"a": UnitOutcome(payload=[1]), "b": UnitOutcome(payload=[2])})
    await orchestrator.run_stage("clubs", ["a", "b"], checkpoint, process)
    process.calls.clear()

    report = await orchestrator.run_stage("clubs", ["a", "b"], checkpoint, process)

    assert process.calls == []
    assert report.skipped == 2
    assert report.processed == 0


@pytest.mark.asyncio
async def test_transient_failure_leaves_key_incomplete(orchestrator, checkpoint, settings):
    process = ScriptedProcess({"bad": TransientFetchError("timeout"), "good": UnitOutcome(payload=[])})

    report = await orchestrator.run_stage(
        "clubs", ["bad", "good"], checkpoint, process, url_for=lambda k: f"https://x/{k}"
    )

    assert process.calls == ["bad"] * settings.max_retries + ["good"]
    assert not checkpoint.is_complete("bad")
    assert checkpoint.is_complete("good")
    assert report.failed == 1
    assert report.completed == 1

    lines = [json.loads(line) for line in open(settings.error_log_file, encoding="utf-8")]
    assert len(lines) == 1
    assert lines[0]["type"] == "transient"
    assert lines[0]["url"] == "https://x/bad"
    assert lines[0]["context"]["stage"] == "clubs"
    assert lines[0]["context"]["key"] == "bad"
    assert lines[0]["context"]["attempts"] == settings.max_retries


@pytest.mark.asyncio
async def test_structural_failure_is_terminal(orchestrator, checkpoint, settings):
    process = ScriptedProcess({"empty": StructuralExtractionError("no clubs")})

    report = await orchestrator.run_stage("clubs", ["empty"], checkpoint, process)

    assert checkpoint.is_complete("empty")
    assert checkpoint.get("empty") is None
    assert report.rejected == 1
    entry = json.loads(open(settings.error_log_file, encoding="utf-8").readline())
    assert entry["type"] == "structural"

    process.calls.clear()
    await orchestrator.run_stage("clubs", ["empty"], checkpoint, process)
    assert process.calls == []


@pytest.mark.asyncio
async def test_semantic_rejection_is_checkpointed_without_error(orchestrator, checkpoint, settings):
    process = ScriptedProcess({"p": UnitOutcome(payload=None, rejected=True, detail="no professional transfers")})

    report = await orchestrator.run_stage("players:profiles", ["p"], checkpoint, process)

    assert report.rejected == 1
    assert checkpoint.is_complete("p")
    assert not Path(settings.error_log_file).exists()


@pytest.mark.asyncio
async def test_status_snapshot_tracks_progress(orchestrator, checkpoint, status):
    process = ScriptedProcess({"a": UnitOutcome(payload=[]), "b": TransientFetchError("x")})
    checkpoint.mark_complete("z", [])

    await orchestrator.run_stage("clubs", ["z", "a", "b"], checkpoint, process)

    snap = status.snapshot()
    assert snap["stage"] == "clubs"
    assert snap["processed"] == 2
    assert snap["skipped"] == 1
    assert snap["failed"] == 1
    assert snap["last_key"] == "b"
    assert snap["last_saved"] == 2


@pytest.mark.asyncio
async def test_pacer_cools_down_after_each_batch():
    sleep = RecordingSleep()
    pacer = Pacer(2.0, 5.0, batch_size=3, batch_cooldown=60.0, sleep=sleep, rng=random.Random(7))

    for _ in range(6):
        await pacer.after_unit()

    cooldowns = [d for d in sleep.delays if d == 60.0]
    short = [d for d in sleep.delays if d != 60.0]
    assert len(cooldowns) == 2
    assert len(short) == 6
    assert all(2.0 <= d <= 5.0 for d in short)
    assert sleep.delays[3] == 60.0


@pytest.mark.asyncio
async def test_skipped_keys_are_not_paced(settings, status, checkpoint):
    sleep = RecordingSleep()
    orch = CrawlOrchestrator(
        settings,
        status,
        ErrorLog(settings.error_log_file),
        retry_policy=RetryPolicy(0.0, 0.0, sleep=sleep),
        pacer=Pacer(1.0, 1.0, batch_size=10, batch_cooldown=0.0, sleep=sleep),
    )
    checkpoint.mark_complete("a", [])

    await orch.run_stage("clubs", ["a", "b"], checkpoint, ScriptedProcess({"b": UnitOutcome(payload=[])}))

    assert sleep.delays == [1.0]


class FailingSave:
    """Replaces JsonDocumentStore.save; the first call raises, later calls write."""

    def __init__(self, save):
        self.save = save
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.calls == 1:
            raise OSError(28, "No space left on device")
        self.save()


@pytest.mark.asyncio
async def test_failed_save_leaves_key_incomplete_and_continues(orchestrator, checkpoint, settings, monkeypatch):
    doc = checkpoint.document
    monkeypatch.setattr(doc, "save", FailingSave(doc.save))
    process = ScriptedProcess(
        {
            "a": UnitOutcome(payload="key_a", related={"players": {"key_a": {"last_name": "A"}}}),
            "b": UnitOutcome(payload="key_b", related={"players": {"key_b": {"last_name": "B"}}}),
        }
    )

    report = await orchestrator.run_stage("players:profiles", ["a", "b"], checkpoint, process)

    assert process.calls == ["a", "b"]
    assert report.failed == 1
    assert report.completed == 1
    assert not checkpoint.is_complete("a")
    assert checkpoint.is_complete("b")

    data = json.loads(open(settings.output_file, encoding="utf-8").read())
    assert data["players"] == {"key_b": {"last_name": "B"}}
    assert "a" not in data

    [entry] = [json.loads(line) for line in open(settings.error_log_file, encoding="utf-8")]
    assert entry["type"] == "persistence"
    assert entry["context"] == {"stage": "players:profiles", "key": "a"}

    process.calls.clear()
    await orchestrator.run_stage("players:profiles", ["a", "b"], checkpoint, process)
    assert process.calls == ["a"]
    assert checkpoint.is_complete("a")
