"""structlog setup for the worker process.

Development gets the colored console renderer; every other environment
emits JSON lines. Setting LOG_FILE mirrors output into that file.
"""

from __future__ import annotations

import logging
import sys
from typing import IO

import structlog

from markcraft.config import settings


class _MirroredStream:
    """stdout plus an append-only log file.

    A file that cannot be opened or written is dropped and logging
    carries on to stdout.
    """

    def __init__(self, path: str) -> None:
        self.path = path
        self._file: IO[str] | None = None
        try:
            self._file = open(path, "a")  # noqa: SIM115
        except OSError as exc:
            self._disable(f"cannot open {path!r}: {exc}")

    def _disable(self, reason: str) -> None:
        self._file = None
        # structlog may not be configured yet
        print(f"WARNING: file logging disabled, {reason}", file=sys.stderr)

    def write(self, data: str) -> None:
        sys.stdout.write(data)
        if self._file is None:
            return
        try:
            self._file.write(data)
            self._file.flush()
        except (OSError, ValueError) as exc:
            self._disable(f"write to {self.path!r} failed: {exc}")

    def flush(self) -> None:
        sys.stdout.flush()
        if self._file is None:
            return
        try:
            self._file.flush()
        except (OSError, ValueError) as exc:
            self._disable(f"flush of {self.path!r} failed: {exc}")


def _level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


def configure_logging() -> None:
    renderer: structlog.types.Processor
    if settings.environment == "development":
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    stream = _MirroredStream(settings.log_file) if settings.log_file else None

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(_level(settings.log_level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream),  # type: ignore[arg-type]
        cache_logger_on_first_use=True,
    )
