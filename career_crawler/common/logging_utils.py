"""Central logging setup for the crawler, the CLI and the status server.

- One call configures the root logger; later calls are no-ops unless force=True.
- Console output (colored on a TTY) or JSON lines (LOG_FORMAT=json).
- Environment variables:
    LOG_LEVEL=INFO|DEBUG|... (overrides the level argument)
    LOG_FORMAT=console|json (default: console)
    LOG_NO_COLOR=1 to disable color output
    LOG_TIMEZONE=utc|local (default: local)
- Optional rotating log file next to the console handler.

Usage:
    from career_crawler.common.logging_utils import configure_logging, get_logger
    configure_logging(service="crawler", level=settings.log_level)
    logger = get_logger(__name__)
"""
from __future__ import annotations

import json
import logging
import os
import sys
import threading
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

_CONFIG_LOCK = threading.Lock()
_ALREADY_CONFIGURED = False

# Attributes every LogRecord has; anything else came in through `extra=`
_RESERVED_ATTRS = set(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class ColorFormatter(logging.Formatter):
    COLORS = {
        "DEBUG": "\x1b[38;5;245m",
        "INFO": "\x1b[38;5;39m",
        "WARNING": "\x1b[38;5;214m",
        "ERROR": "\x1b[38;5;196m",
        "CRITICAL": "\x1b[48;5;196m\x1b[38;5;231m",
    }
    RESET = "\x1b[0m"

    def __init__(self, tz_local: bool):
        super().__init__()
        self.tz_local = tz_local

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        ts = datetime.fromtimestamp(record.created, tz=timezone.utc)
        if self.tz_local:
            ts = ts.astimezone()
        line = f"{ts:%Y-%m-%d %H:%M:%S} | {record.levelname:<8} | {record.name} | {record.getMessage()}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        color = self.COLORS.get(record.levelname, "")
        return f"{color}{line}{self.RESET}" if color else line


class JsonFormatter(logging.Formatter):
    def __init__(self, tz_local: bool):
        super().__init__()
        self.tz_local = tz_local

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        ts = datetime.fromtimestamp(record.created, tz=timezone.utc)
        if self.tz_local:
            ts = ts.astimezone()
        payload: Dict[str, Any] = {
            "ts": ts.isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS or key in payload or key.startswith("_"):
                continue
            try:
                json.dumps(value)
                payload[key] = value
            except (TypeError, ValueError):
                payload[key] = repr(value)
        return json.dumps(payload, ensure_ascii=False)


def _plain_formatter() -> logging.Formatter:
    return logging.Formatter(
        fmt="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def configure_logging(
    service: str | None = None,
    *,
    level: str = "INFO",
    log_dir: Optional[str] = None,
    force: bool = False,
) -> None:
    """Configure root logging once.

    Parameters
    ----------
    service: logical service name, attached to every record logged via get_logger()
    level: default level; the LOG_LEVEL environment variable wins when set
    log_dir: if given, also write to ``<log_dir>/<service or 'crawler'>.log`` (rotating)
    force: reconfigure even if already configured
    """
    global _ALREADY_CONFIGURED
    with _CONFIG_LOCK:
        if _ALREADY_CONFIGURED and not force:
            return

        log_level = os.getenv("LOG_LEVEL", level).upper()
        log_format = os.getenv("LOG_FORMAT", "console").lower()
        tz_local = os.getenv("LOG_TIMEZONE", "local").lower() != "utc"
        no_color = os.getenv("LOG_NO_COLOR") == "1"

        root = logging.getLogger()
        for h in list(root.handlers):
            root.removeHandler(h)

        if log_format == "json":
            formatter: logging.Formatter = JsonFormatter(tz_local=tz_local)
        elif sys.stderr.isatty() and not no_color:
            formatter = ColorFormatter(tz_local=tz_local)
        else:
            formatter = _plain_formatter()

        handler = logging.StreamHandler()
        handler.setFormatter(formatter)
        root.addHandler(handler)

        if log_dir:
            path = Path(log_dir) / f"{service or 'crawler'}.log"
            path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(path, maxBytes=5_000_000, backupCount=3, encoding="utf-8")
            file_handler.setFormatter(
                JsonFormatter(tz_local=tz_local) if log_format == "json" else _plain_formatter()
            )
            root.addHandler(file_handler)

        root.setLevel(getattr(logging, log_level, logging.INFO))
        # Playwright/uvicorn access chatter is not useful at INFO
        logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

        _ServiceLoggerAdapter.BASE_SERVICE = service
        _ALREADY_CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    base = logging.getLogger(name)
    if _ServiceLoggerAdapter.BASE_SERVICE:
        return _ServiceLoggerAdapter(base, {"service": _ServiceLoggerAdapter.BASE_SERVICE})  # type: ignore[return-value]
    return base


class _ServiceLoggerAdapter(logging.LoggerAdapter):
    BASE_SERVICE: Optional[str] = None

    def process(self, msg: Any, kwargs: Dict[str, Any]):  # noqa: D401
        extra = dict(kwargs.get("extra") or {})
        extra.setdefault("service", self.extra["service"])
        kwargs["extra"] = extra
        return msg, kwargs


__all__ = [
    "configure_logging",
    "get_logger",
    "JsonFormatter",
]
