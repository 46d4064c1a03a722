"""
couchtree Logging — console level setup and the JSONL operation journal.

Implements:
- configure_logging: one stderr handler on the "couchtree" logger
- FileLogger: per-operation journal files (daily rotation)
- log_sync_event: journal entry builder for download/upload runs

Journal layout: {directory}/{operation}/{YYYY-MM-DD}.jsonl
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, TextIO

from couchtree.engine.errors import CouchTreeError

logger = logging.getLogger("couchtree.engine.logging")

ROOT_LOGGER = "couchtree"

# Level names accepted on the command line → stdlib levels
LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "FATAL": logging.CRITICAL,
}

OPERATIONS = ("download", "upload")

_handler: Optional[logging.Handler] = None


def configure_logging(level: str = "INFO", stream: Optional[TextIO] = None) -> logging.Logger:
    """
    Route all ``couchtree.*`` loggers to *stream* (stderr by default) at *level*.

    Safe to call multiple times — the previous handler is replaced.
    """
    global _handler

    root = logging.getLogger(ROOT_LOGGER)
    if _handler is not None:
        root.removeHandler(_handler)

    _handler = logging.StreamHandler(stream or sys.stderr)
    _handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
    root.addHandler(_handler)
    root.setLevel(LEVELS.get(level.upper(), logging.INFO))
    root.propagate = False
    return root


class LogEntry:
    """A structured journal entry destined for a specific operation file."""

    __slots__ = ("operation", "data")

    def __init__(self, operation: str, data: Dict[str, Any]):
        self.operation = operation
        self.data = data

    def to_json(self) -> str:
        return json.dumps(self.data, default=str, separators=(",", ":"))


class FileLogger:
    """
    Appends JSON journal entries to per-operation files.
    Files rotate daily: {log_dir}/{operation}/{YYYY-MM-DD}.jsonl
    """

    def __init__(self, log_dir: str = ".couchtree/logs"):
        self._log_dir = Path(log_dir)

    def write(self, entry: LogEntry) -> Path:
        """Write a single entry; returns the file it went to."""
        file_path = self._resolve_path(entry.operation)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        with open(file_path, "a", encoding="utf-8") as f:
            f.write(entry.to_json())
            f.write("\n")
        return file_path

    def read(self, operation: str, day: Optional[date] = None) -> list:
        """Parsed entries for *operation* on *day* (today by default), oldest first."""
        file_path = self._resolve_path(operation, day)
        if not file_path.exists():
            return []
        entries = []
        with open(file_path, "r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                try:
                    entries.append(json.loads(line))
                except json.JSONDecodeError:
                    logger.warning(f"Skipping corrupt journal line in {file_path}")
        return entries

    def _resolve_path(self, operation: str, day: Optional[date] = None) -> Path:
        day = day or date.today()
        return self._log_dir / operation / f"{day.isoformat()}.jsonl"

    @property
    def log_dir(self) -> Path:
        return self._log_dir


def log_sync_event(
    operation: str,
    database: str,
    document_id: str,
    path: str,
    duration_ms: float,
    success: bool,
    files: Optional[int] = None,
    rev: Optional[str] = None,
    error: Optional[BaseException] = None,
) -> LogEntry:
    """Build a journal entry for one download/upload run."""
    if operation not in OPERATIONS:
        raise ValueError(f"Unknown operation '{operation}'")

    data: Dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "level": "INFO" if success else "ERROR",
        "event": f"{operation}_{'completed' if success else 'failed'}",
        "database": database,
        "document_id": document_id,
        "path": path,
        "duration_ms": round(duration_ms, 2),
        "success": success,
    }
    if files is not None:
        data["files"] = files
    if rev:
        data["rev"] = rev
    if error is not None:
        if isinstance(error, CouchTreeError):
            data["error"] = error.to_dict()
        else:
            data["error"] = {"error_type": type(error).__name__, "message": str(error)}
    return LogEntry(operation, data)
