"""
Crawl-Status für den Status-Server

Explicitly owned progress snapshot: the orchestrator writes, the HTTP status
app reads. Every access goes through one lock so a reader always sees a
consistent set of counters.
"""

import threading
import time
from dataclasses import asdict, dataclass, field
from typing import Any, Optional


@dataclass
class StatusSnapshot:
    stage: Optional[str] = None
    processed: int = 0
    skipped: int = 0
    failed: int = 0
    rejected: int = 0
    last_key: Optional[str] = None
    last_saved: int = 0
    started_at: float = field(default_factory=time.time)
    output_file: Optional[str] = None
    finished: bool = False


class CrawlStatus:
    """Thread-safe holder of the current StatusSnapshot"""

    def __init__(self, output_file: Optional[str] = None):
        self._lock = threading.Lock()
        self._snapshot = StatusSnapshot(output_file=output_file)

    def begin_stage(self, stage: str, output_file: Optional[str] = None) -> None:
        with self._lock:
            self._snapshot.stage = stage
            self._snapshot.finished = False
            if output_file is not None:
                self._snapshot.output_file = output_file

    def set_last_key(self, key: str) -> None:
        with self._lock:
            self._snapshot.last_key = key

    def record(self, *, processed: int = 0, skipped: int = 0, failed: int = 0, rejected: int = 0) -> None:
        with self._lock:
            self._snapshot.processed += processed
            self._snapshot.skipped += skipped
            self._snapshot.failed += failed
            self._snapshot.rejected += rejected

    def set_last_saved(self, count: int) -> None:
        with self._lock:
            self._snapshot.last_saved = count

    def finish(self) -> None:
        with self._lock:
            self._snapshot.finished = True

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            return asdict(self._snapshot)
