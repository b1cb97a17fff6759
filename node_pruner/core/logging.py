"""Structured logging for the node data pruner.

This module configures the process-wide log stream and tracks a short run
id so that lines from overlapping or repeated runs (``watch`` mode) can be
told apart.

Features:
    - Timestamped text format, or one JSON object per line
    - Run context integration ([run=xxx] prefixes)
    - Optional append-only log file next to the console stream
"""

from __future__ import annotations

import contextvars
import json
import logging
import uuid
from collections.abc import Generator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass(frozen=True)
class RunContext:
    """Context information for one pruning run.

    Attributes:
        run_id: Unique identifier for the run (first 8 chars of a UUID).
        data_path: Root directory being pruned.
        started_at: When the run started.
    """

    run_id: str
    data_path: str
    started_at: datetime

    @classmethod
    def create(cls, data_path: str | Path) -> RunContext:
        return cls(
            run_id=uuid.uuid4().hex[:8],
            data_path=str(data_path),
            started_at=datetime.now(timezone.utc),
        )


_context: contextvars.ContextVar[RunContext | None] = contextvars.ContextVar(
    "run_context", default=None
)


def get_current_run() -> RunContext | None:
    """Get the current run context, or None outside of a run."""
    return _context.get()


@contextmanager
def run_context(data_path: str | Path) -> Generator[RunContext, None, None]:
    """Context manager that tags all log lines emitted inside it with a run id.

    Example:
        with run_context(settings.data_path) as ctx:
            logger.info("Prune started")  # ... - [run=1a2b3c4d] Prune started
    """
    ctx = RunContext.create(data_path)
    token = _context.set(ctx)
    try:
        yield ctx
    finally:
        _context.reset(token)


class RunContextFormatter(logging.Formatter):
    """Text formatter that includes the current run id."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        ctx = get_current_run()
        if ctx is None:
            return message

        prefix = f"[run={ctx.run_id}] "
        # "2024-01-15 10:30:00 - logger - LEVEL - message"
        parts = message.split(" - ", 3)
        if len(parts) == 4:
            return f"{parts[0]} - {parts[1]} - {parts[2]} - {prefix}{parts[3]}"
        return prefix + message


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging with run context."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, str | None] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        ctx = get_current_run()
        if ctx is not None:
            log_data["run_id"] = ctx.run_id
            log_data["data_path"] = ctx.data_path

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data)


def configure_logging(
    level: str = "INFO",
    json_format: bool = False,
    log_file: Path | None = None,
) -> None:
    """Configure logging for the application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR).
        json_format: Use JSON format for structured logging.
        log_file: Also append log lines to this file.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    if json_format:
        formatter: logging.Formatter = JSONFormatter()
    else:
        formatter = RunContextFormatter(fmt=TEXT_FORMAT, datefmt=DATE_FORMAT)

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, mode="a", encoding="utf-8"))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)
