"""
FastAPI Status Application
Read-only HTTP view of a running crawl: counters, output document, error log.
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.responses import FileResponse, JSONResponse

from ..core.config import Settings
from ..monitoring.status import CrawlStatus


def _not_found() -> JSONResponse:
    return JSONResponse(status_code=404, content={"error": "Not found"})


def create_status_app(settings: Settings, status: Optional[CrawlStatus] = None) -> FastAPI:
    """Factory function for the status app.

    The app only reads: counters come from the shared CrawlStatus snapshot,
    files are served as they are on disk (written by atomic replace).
    """
    status = status or CrawlStatus(output_file=settings.output_file)
    logger = logging.getLogger("crawler.api")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Status server listening on http://%s:%s", settings.host, settings.port)
        yield
        logger.info("Status server stopped")

    app = FastAPI(
        title="Career Crawler Status",
        description="Progress of the Transfermarkt career crawl",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.status = status

    def _output_path() -> Path:
        return Path(status.snapshot().get("output_file") or settings.output_file)

    @app.get("/status")
    async def get_status():
        """Aktueller Crawl-Status"""
        snap = status.snapshot()
        path = _output_path()
        exists = path.is_file()
        snap["output_file"] = str(path)
        snap["file_exists"] = exists
        snap["size_bytes"] = path.stat().st_size if exists else 0
        return snap

    @app.get("/download")
    async def download():
        """Current output document"""
        path = _output_path()
        if not path.is_file():
            return _not_found()
        return FileResponse(path, media_type="application/json", filename=path.name)

    @app.get("/errors")
    async def errors():
        """Error log (JSON Lines)"""
        path = Path(settings.error_log_file)
        if not path.is_file():
            return _not_found()
        return FileResponse(path, media_type="application/x-ndjson", filename=path.name)

    @app.get("/health")
    async def health_check():
        return {"status": "ok"}

    return app
