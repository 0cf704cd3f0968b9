"""Logging configuration for the credential services.

Both services log to stdout and let the container runtime collect it.

  _ContainerFormatter: human-readable, single-line, for local dev.
  _JsonFormatter: one JSON object per line, for log aggregation in prod.
    Set LOG_JSON=true to switch.

Every record carries the handling instance's worker id (injected by
_WorkerFilter once setup_logging knows it) and, during a request, the
request id from RequestContextMiddleware.  Together they answer "which
replica handled this credential?" from the logs alone.
"""

from __future__ import annotations

import json
import logging
import sys


class _ContainerFormatter(logging.Formatter):
    """Single-line formatter tuned for container stdout.

    - Always: ISO-8601 timestamp, level, logger name, message
    - WARNING+: appends [filename:lineno]
    - ERROR/CRITICAL: stack trace included when exc_info is present
    """

    _BASE_FMT = "%(asctime)s %(levelname)-8s %(name)s  %(message)s"
    _LOC_SUFFIX = "  [%(filename)s:%(lineno)d]"

    def __init__(self) -> None:
        super().__init__(datefmt="%Y-%m-%dT%H:%M:%S%z")

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        base = super().formatTime(record, datefmt)
        ms = int(record.msecs)
        # Insert .NNN before the timezone offset (last 5 chars: +0000)
        return f"{base[:-5]}.{ms:03d}{base[-5:]}"

    def format(self, record: logging.LogRecord) -> str:
        if record.levelno >= logging.WARNING:
            self._style._fmt = self._BASE_FMT + self._LOC_SUFFIX
        else:
            self._style._fmt = self._BASE_FMT
        return super().format(record)


class _JsonFormatter(logging.Formatter):
    """JSON Lines formatter.

    Context fields set by the middleware or passed via ``extra=`` appear
    as top-level keys so they can be filtered in the aggregation UI.
    """

    _CONTEXT_FIELDS = (
        "worker",
        "service",
        "request_id",
        "credential_id",
        "method",
        "path",
        "status_code",
        "duration_ms",
    )

    def __init__(self) -> None:
        super().__init__(datefmt="%Y-%m-%dT%H:%M:%S%z")

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, object] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key in self._CONTEXT_FIELDS:
            value = getattr(record, key, None)
            if value is not None and value != "-":
                log_entry[key] = value

        if record.exc_info and record.exc_info[0] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


class _WorkerFilter(logging.Filter):
    """Stamp every record with the instance identity."""

    def __init__(self, worker: str, service: str | None = None) -> None:
        super().__init__()
        self.worker = worker
        self.service = service

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "worker", None) is None:
            record.worker = self.worker  # type: ignore[attr-defined]
        if self.service and getattr(record, "service", None) is None:
            record.service = self.service  # type: ignore[attr-defined]
        return True


def setup_logging(
    level_name: str,
    *,
    json_format: bool = False,
    worker: str | None = None,
    service: str | None = None,
) -> None:
    """Configure the root logger for container environments.

    Args:
        level_name: Log level string (debug/info/warning/error).
        json_format: Emit JSON lines instead of the human-readable format.
        worker: Instance identity attached to every record, if known.
        service: Service kind (issuance/verification) attached alongside it.
    """
    level = getattr(logging, level_name.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_JsonFormatter() if json_format else _ContainerFormatter())
    if worker is not None:
        handler.addFilter(_WorkerFilter(worker, service))

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(handler)

    # Keep third-party loggers from flooding at DEBUG
    for name in (
        "uvicorn",
        "uvicorn.access",
        "uvicorn.error",
        "httpcore",
        "httpx",
        "aiosqlite",
        "sqlalchemy.engine",
    ):
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
