"""Durable crawl progress.

- `JsonDocumentStore`: one JSON object on disk, loaded once, rewritten whole
  through a temp file + ``os.replace`` so concurrent readers (the status
  server) never see a partial file.
- `CheckpointStore`: WorkKey -> payload mapping on top of a document,
  optionally under a namespace key so several mappings share one file.
- `ErrorLog`: append-only JSON Lines file of unrecoverable failures.
"""

from __future__ import annotations

import json
import logging
import os
import shutil
import tempfile
import threading
from pathlib import Path
from typing import Any, Optional

from ..domain.models import ErrorEntry

_MISSING = object()


class JsonDocumentStore:
    """Persistenter JSON-Dokumentspeicher (atomic replace-on-write)"""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.logger = logging.getLogger("crawler.store")
        self._lock = threading.Lock()
        self.data: dict[str, Any] = self._load()

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open(encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            self._move_aside(str(e))
            return {}
        if not isinstance(data, dict):
            self._move_aside(f"expected a JSON object, got {type(data).__name__}")
            return {}
        return data

    def _move_aside(self, reason: str) -> None:
        backup = self.path.with_name(self.path.name + ".corrupt")
        self.logger.error("Could not read %s (%s); moved aside to %s, starting empty", self.path, reason, backup)
        shutil.move(str(self.path), backup)

    def save(self) -> None:
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(prefix=f".{self.path.name}.", dir=self.path.parent)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(self.data, f, ensure_ascii=False, indent=2, default=str)
                os.replace(tmp, self.path)
            except BaseException:
                Path(tmp).unlink(missing_ok=True)
                raise

    def section(self, name: Optional[str]) -> dict[str, Any]:
        """Top-level mapping (name=None) or a named sub-mapping, created on demand."""
        if name is None:
            return self.data
        value = self.data.get(name)
        if not isinstance(value, dict):
            value = {}
            self.data[name] = value
        return value

    def clear(self) -> None:
        self.data = {}
        self.save()


class CheckpointStore:
    """Completed WorkKeys and the output each produced."""

    def __init__(self, document: JsonDocumentStore, namespace: Optional[str] = None):
        self.document = document
        self.namespace = namespace

    @property
    def _entries(self) -> dict[str, Any]:
        return self.document.section(self.namespace)

    def is_complete(self, key: str) -> bool:
        return key in self._entries

    def get(self, key: str, default: Any = None) -> Any:
        return self._entries.get(key, default)

    def mark_complete(
        self,
        key: str,
        payload: Any = None,
        related: Optional[dict[str, dict[str, Any]]] = None,
    ) -> None:
        """Record key as done and save the document.

        related maps other sections of the same document to entries written in
        the same save. If the save fails every change is undone and the
        OSError propagates, so the key stays incomplete.
        """
        changes = [(self._entries, key, payload)]
        for name, entries in (related or {}).items():
            section = self.document.section(name)
            changes.extend((section, k, v) for k, v in entries.items())

        previous = [(target, k, target.get(k, _MISSING)) for target, k, _ in changes]
        for target, k, value in changes:
            target[k] = value
        try:
            self.document.save()
        except OSError:
            for target, k, old in reversed(previous):
                if old is _MISSING:
                    target.pop(k, None)
                else:
                    target[k] = old
            raise

    def all_keys(self) -> list[str]:
        return list(self._entries.keys())

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        if self.namespace is None:
            self.document.clear()
        else:
            self.document.data[self.namespace] = {}
            self.document.save()


class ErrorLog:
    """Append-only JSON Lines log of failures that exhausted their retries."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def record(
        self,
        type: str,
        url: Optional[str],
        error_message: str,
        **context: Any,
    ) -> ErrorEntry:
        entry = ErrorEntry(type=type, url=url, error_message=error_message, context=context)
        line = entry.model_dump_json()
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("a", encoding="utf-8") as f:
                f.write(line + "\n")
        return entry

    def entries(self) -> list[ErrorEntry]:
        if not self.path.exists():
            return []
        out: list[ErrorEntry] = []
        with self.path.open(encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if line:
                    out.append(ErrorEntry.model_validate_json(line))
        return out
