import json

import httpx
import pytest
from fastapi.testclient import TestClient

from career_crawler.api.main import create_status_app
from career_crawler.data_collection.checkpoint import CheckpointStore, ErrorLog, JsonDocumentStore


def _build_test_app(settings, status):
    return create_status_app(settings, status)


@pytest.mark.asyncio
async def test_health_endpoint(settings, status):
    app = _build_test_app(settings, status)

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}


def test_status_before_any_output(settings, status):
    client = TestClient(_build_test_app(settings, status))
    resp = client.get("/status")
    assert resp.status_code == 200
    data = resp.json()
    assert data["processed"] == 0
    assert data["file_exists"] is False
    assert data["size_bytes"] == 0
    assert data["output_file"] == settings.output_file
    for key in ("stage", "skipped", "failed", "last_key", "last_saved", "started_at"):
        assert key in data


def test_status_reflects_crawl_progress(settings, status):
    CheckpointStore(JsonDocumentStore(settings.output_file)).mark_complete("2020_GB1", ["https://x/a"])
    status.begin_stage("clubs")
    status.set_last_key("2020_GB1")
    status.record(processed=1)
    status.set_last_saved(1)

    data = TestClient(_build_test_app(settings, status)).get("/status").json()

    assert data["stage"] == "clubs"
    assert data["processed"] == 1
    assert data["last_key"] == "2020_GB1"
    assert data["last_saved"] == 1
    assert data["file_exists"] is True
    assert data["size_bytes"] > 0


def test_download_missing_is_404(settings, status):
    resp = TestClient(_build_test_app(settings, status)).get("/download")
    assert resp.status_code == 404


def test_download_returns_document(settings, status):
    CheckpointStore(JsonDocumentStore(settings.output_file)).mark_complete("2020_GB1", ["https://x/a"])

    resp = TestClient(_build_test_app(settings, status)).get("/download")

    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("application/json")
    assert json.loads(resp.content) == {"2020_GB1": ["https://x/a"]}


def test_download_follows_current_stage_output(settings, status):
    CheckpointStore(JsonDocumentStore(settings.players_output_file), "clubs").mark_complete("c", ["p"])
    status.begin_stage("players", output_file=settings.players_output_file)

    resp = TestClient(_build_test_app(settings, status)).get("/download")

    assert resp.status_code == 200
    assert json.loads(resp.content) == {"clubs": {"c": ["p"]}}


def test_errors_endpoint(settings, status):
    client = TestClient(_build_test_app(settings, status))
    assert client.get("/errors").status_code == 404

    ErrorLog(settings.error_log_file).record("transient", "https://x/1", "timeout", stage="clubs", key="k")
    resp = client.get("/errors")
    assert resp.status_code == 200
    lines = resp.text.strip().splitlines()
    assert json.loads(lines[0])["error_message"] == "timeout"


def test_unknown_route_is_404(settings, status):
    assert TestClient(_build_test_app(settings, status)).get("/nope").status_code == 404
