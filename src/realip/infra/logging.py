"""Root logger setup for the service and uvicorn.

JSON lines by default (python-json-logger), uvicorn's coloured
formatter when ``logging.json_output`` is off.  Records carry the OTEL
``trace_id`` when a span is active, and uvicorn access lines for health-check
paths such as ``/health`` and ``/metrics`` are dropped.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterable

from realip.configs.system import VERSION, LoggingConfig

from .telemetry import get_current_trace_id

_DEV_FORMAT = "%(levelprefix)s %(asctime)s %(name)s  %(message)s"
_DEV_DATEFMT = "%H:%M:%S"
_JSON_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s %(trace_id)s"

_UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")
_NOISY_LOGGERS = ("httpx", "httpcore", "opentelemetry", "redis")


class _TraceContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.trace_id = get_current_trace_id() or ""  # type: ignore[attr-defined]
        return True


class QuietPathsFilter(logging.Filter):
    """Drop uvicorn access records whose request path is in *paths*.

    uvicorn passes ``(client, method, path, http_version, status)`` as
    the record args.
    """

    def __init__(self, paths: Iterable[str]) -> None:
        super().__init__()
        self._paths = frozenset(paths)

    def filter(self, record: logging.LogRecord) -> bool:
        args = record.args
        if not isinstance(args, tuple) or len(args) < 3:
            return True
        path = str(args[2]).split("?", 1)[0]
        return path not in self._paths


def _formatter(config: LoggingConfig) -> logging.Formatter:
    if config.json_output:
        from pythonjsonlogger.json import JsonFormatter

        return JsonFormatter(
            fmt=_JSON_FORMAT,
            rename_fields={
                "asctime": "timestamp",
                "levelname": "level",
                "name": "logger",
            },
            static_fields={"service": "realip", "version": VERSION},
            defaults={"trace_id": ""},
        )

    from uvicorn.logging import DefaultFormatter

    return DefaultFormatter(fmt=_DEV_FORMAT, datefmt=_DEV_DATEFMT, use_colors=True)


def setup_logging(
    config: LoggingConfig | None = None,
    quiet_paths: Iterable[str] = (),
) -> None:
    """Install one stdout handler on the root and uvicorn loggers."""
    config = config or LoggingConfig()

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(_TraceContextFilter())
    handler.setFormatter(_formatter(config))

    root = logging.getLogger()
    root.setLevel(config.level.upper())
    root.handlers = [handler]

    for name in _UVICORN_LOGGERS:
        uvi = logging.getLogger(name)
        uvi.handlers = [handler]
        uvi.propagate = False

    access = logging.getLogger("uvicorn.access")
    access.filters = [f for f in access.filters if not isinstance(f, QuietPathsFilter)]
    access.addFilter(QuietPathsFilter(quiet_paths))

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
