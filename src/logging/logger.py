# src/logging/logger.py - v1
"""Logger factory with JSON and text formatters.

Every record carries the run context (run id, page, chunk) set by the
controller and scheduler, so interleaved output from one run can be
filtered back out of a shared log file.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from trackratings.logging.context import LogContext, get_context

# Third-party loggers that log every request at INFO.
NOISY_LOGGERS: tuple[str, ...] = ("httpx", "httpcore")


class JsonFormatter(logging.Formatter):
    """One JSON object per line; run context fields sit at the top level."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        log_entry.update(get_context().as_dict())

        # logger.info(..., extra={"data": {...}})
        data = getattr(record, "data", None)
        if data:
            log_entry["data"] = data

        if record.exc_info and record.exc_info[1] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable formatter for terminal use."""

    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.fromtimestamp(record.created, timezone.utc)
        parts = [
            stamp.strftime("%Y-%m-%d %H:%M:%S"),
            f"[{record.levelname:8s}]",
            record.name,
        ]
        tag = _run_tag(get_context())
        if tag:
            parts.append(tag)
        parts.append(f"- {record.getMessage()}")
        text = " ".join(parts)
        if record.exc_info and record.exc_info[1] is not None:
            text += "\n" + self.formatException(record.exc_info)
        return text


def _run_tag(ctx: LogContext) -> str:
    """``[run ab12cd34 album.html] (chunk 2/5)``, or "" outside a run."""
    if not ctx.run_id:
        return ""
    tag = f"[run {ctx.run_id}"
    tag += f" {ctx.page}]" if ctx.page else "]"
    if ctx.chunk:
        tag += f" (chunk {ctx.chunk})"
    return tag


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the trackratings namespace."""
    return logging.getLogger(f"trackratings.{name}")


def setup_logging(
    level: str = "INFO",
    log_format: str = "text",
    log_file: str | None = None,
    rotation: str = "10MB",
    retention: int = 5,
) -> None:
    """Configure the trackratings logger tree.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR).
        log_format: Output format ("json" or "text").
        log_file: Path to log file (None = stderr only).
        rotation: Max file size before rotation (e.g. "10MB").
        retention: Number of rotated files to keep.
    """
    root_logger = logging.getLogger("trackratings")
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Re-init replaces handlers instead of stacking them
    root_logger.handlers.clear()

    formatter: logging.Formatter = JsonFormatter() if log_format == "json" else TextFormatter()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        from trackratings.logging.handlers import create_rotating_handler

        file_handler = create_rotating_handler(
            log_file, rotation=rotation, retention=retention
        )
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
