"""
AlumniHub Logging — Structured JSON file logging with an async flush queue.

Implements:
- FileLogger: per-area, per-category JSONL files, rotated daily
- AsyncLogQueue: in-memory queue drained by a background thread
- Entry builders for uploads, documents, auth, messages and boards
- LogRetentionManager: deletes files past their retention window

Layout: {log_dir}/{area}/{category}/{YYYY-MM-DD}.jsonl
"""

from __future__ import annotations

import json
import logging
import threading
import time
from collections import defaultdict
from datetime import date, datetime, timezone
from pathlib import Path
from queue import Empty, Full, Queue
from typing import Any, Dict, List, Optional

logger = logging.getLogger("alumnihub.engine.logging")

# Log areas and their permitted categories
AREA_CATEGORIES = {
    "uploads": ["execution", "performance"],
    "documents": ["execution", "security"],
    "auth": ["security"],
    "messages": ["execution"],
    "events": ["execution"],
    "jobs": ["execution"],
    "system": ["execution", "security"],
}

# Retention defaults (days)
DEFAULT_RETENTION = {
    "execution": 90,
    "performance": 30,
    "security": 365,
}


class LogEntry:
    """A structured log entry destined for one area/category file."""

    __slots__ = ("area", "category", "data")

    def __init__(self, area: str, category: str, data: Dict[str, Any]):
        if category not in AREA_CATEGORIES.get(area, ()):
            raise ValueError(f"Unknown log destination {area}/{category}")
        self.area = area
        self.category = category
        self.data = data

    def to_json(self) -> str:
        return json.dumps(self.data, default=str, separators=(",", ":"))


class FileLogger:
    """
    Appends JSONL entries to {log_dir}/{area}/{category}/{date}.jsonl.

    Thread-safe — one lock per file path.
    """

    def __init__(self, log_dir: str = ".alumnihub/logs"):
        self._log_dir = Path(log_dir)
        self._file_locks: Dict[str, threading.Lock] = defaultdict(threading.Lock)
        for area, categories in AREA_CATEGORIES.items():
            for cat in categories:
                (self._log_dir / area / cat).mkdir(parents=True, exist_ok=True)

    @property
    def log_dir(self) -> Path:
        return self._log_dir

    def write(self, entry: LogEntry) -> None:
        self.write_batch([entry])

    def write_batch(self, entries: List[LogEntry]) -> None:
        """Write entries, opening each destination file once."""
        grouped: Dict[str, List[LogEntry]] = defaultdict(list)
        for entry in entries:
            grouped[str(self._resolve_path(entry.area, entry.category))].append(entry)

        for file_path, batch in grouped.items():
            with self._file_locks[file_path]:
                with open(file_path, "a", encoding="utf-8") as f:
                    for entry in batch:
                        f.write(entry.to_json())
                        f.write("\n")

    def read(self, area: str, category: str, day: Optional[date] = None) -> List[Dict[str, Any]]:
        """Read all entries for one day (default today), oldest first."""
        path = self._resolve_path(area, category, day)
        if not path.exists():
            return []
        entries: List[Dict[str, Any]] = []
        with open(path, "r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                try:
                    entries.append(json.loads(line))
                except json.JSONDecodeError:
                    logger.warning(f"Skipping corrupt log line in {path}")
        return entries

    def _resolve_path(self, area: str, category: str, day: Optional[date] = None) -> Path:
        day = day or date.today()
        return self._log_dir / area / category / f"{day.isoformat()}.jsonl"


class AsyncLogQueue:
    """
    Non-blocking push; a daemon thread flushes to the FileLogger every
    flush_interval_ms or once flush_batch_size entries are waiting.
    """

    def __init__(
        self,
        file_logger: FileLogger,
        flush_interval_ms: int = 100,
        flush_batch_size: int = 50,
        max_queue_size: int = 10000,
    ):
        self._logger = file_logger
        self._flush_interval = flush_interval_ms / 1000.0
        self._flush_batch_size = flush_batch_size
        self._queue: Queue[LogEntry] = Queue(maxsize=max_queue_size)
        self._running = False
        self._flush_thread: Optional[threading.Thread] = None
        self._dropped_count = 0

    def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._flush_thread = threading.Thread(
            target=self._flush_loop,
            name="alumnihub-log-flush",
            daemon=True,
        )
        self._flush_thread.start()
        logger.info("Async log queue started")

    def stop(self, timeout: float = 5.0) -> None:
        """Stop the flush thread and drain what is left."""
        self._running = False
        if self._flush_thread and self._flush_thread.is_alive():
            self._flush_thread.join(timeout=timeout)
        self._drain()
        logger.info(f"Async log queue stopped (dropped: {self._dropped_count})")

    def push(self, entry: LogEntry) -> bool:
        """Queue an entry. Returns False if it was dropped (queue full)."""
        try:
            self._queue.put_nowait(entry)
            return True
        except Full:
            self._dropped_count += 1
            return False

    def _flush_loop(self) -> None:
        while self._running:
            batch = self._collect_batch()
            if batch:
                try:
                    self._logger.write_batch(batch)
                except OSError as e:
                    logger.error(f"Log flush error: {e}")
            else:
                time.sleep(self._flush_interval)

    def _collect_batch(self) -> List[LogEntry]:
        batch: List[LogEntry] = []
        deadline = time.monotonic() + self._flush_interval
        while len(batch) < self._flush_batch_size:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            try:
                batch.append(self._queue.get(timeout=min(remaining, 0.01)))
            except Empty:
                if batch:
                    break
        return batch

    def _drain(self) -> None:
        batch: List[LogEntry] = []
        while True:
            try:
                batch.append(self._queue.get_nowait())
            except Empty:
                break
        if batch:
            try:
                self._logger.write_batch(batch)
            except OSError as e:
                logger.error(f"Log drain error: {e}")

    @property
    def pending_count(self) -> int:
        return self._queue.qsize()

    @property
    def dropped_count(self) -> int:
        return self._dropped_count


# ---------------------------------------------------------------------------
# Log Entry Builders
# ---------------------------------------------------------------------------

def _base_entry(event: str, level: str, object_ref: str, **extra: Any) -> Dict[str, Any]:
    """Common fields, plus the acting user when a session is active."""
    from alumnihub.engine.context import get_session_context

    entry: Dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "level": level,
        "event": event,
        "object_ref": object_ref,
    }
    ctx = get_session_context()
    if ctx is not None:
        entry["user_id"] = ctx.email
        entry["role"] = ctx.role.value
    entry.update({k: v for k, v in extra.items() if v is not None})
    return entry


def log_upload_attempt(
    owner: str,
    file_name: str,
    attempt: int,
    max_retries: int,
    success: bool,
    store: str,
    duration_ms: float,
    error: Optional[str] = None,
    backoff_seconds: Optional[float] = None,
) -> LogEntry:
    """One attempt of the bounded-retry upload loop."""
    data = _base_entry(
        event="upload_attempt",
        level="INFO" if success else "WARNING",
        object_ref=f"uploads.{owner}",
        owner=owner,
        file_name=file_name,
        attempt=attempt,
        max_retries=max_retries,
        success=success,
        store=store,
        duration_ms=round(duration_ms, 2),
        error=error,
        backoff_seconds=backoff_seconds,
    )
    return LogEntry("uploads", "execution", data)


def log_upload_performance(owner: str, attempts: int, duration_ms: float, size_bytes: int) -> LogEntry:
    data = _base_entry(
        event="upload_completed",
        level="INFO",
        object_ref=f"uploads.{owner}",
        attempts=attempts,
        duration_ms=round(duration_ms, 2),
        size_bytes=size_bytes,
    )
    return LogEntry("uploads", "performance", data)


def log_document_event(
    event: str,
    document_id: str,
    owner: str,
    status: Optional[str] = None,
    error: Optional[str] = None,
) -> LogEntry:
    """Document lifecycle: created / approved / rejected / transition_denied."""
    level = "ERROR" if error else "INFO"
    data = _base_entry(
        event=event,
        level=level,
        object_ref=f"documents.{document_id}",
        document_id=document_id,
        owner=owner,
        status=status,
        error=error,
    )
    return LogEntry("documents", "execution", data)


def log_auth_event(
    event: str,
    email: str,
    role: Optional[str] = None,
    success: bool = True,
    reason: Optional[str] = None,
) -> LogEntry:
    """Login / logout / permission-denied events."""
    data = _base_entry(
        event=event,
        level="INFO" if success else "WARNING",
        object_ref=f"auth.{email}",
        email=email,
        requested_role=role,
        success=success,
        reason=reason,
    )
    return LogEntry("auth", "security", data)


def log_message_event(message_id: int, sender: str, recipient: str) -> LogEntry:
    data = _base_entry(
        event="message_appended",
        level="INFO",
        object_ref=f"messages.{message_id}",
        sender=sender,
        recipient=recipient,
    )
    return LogEntry("messages", "execution", data)


def log_board_event(area: str, event: str, record_id: str, **details: Any) -> LogEntry:
    """Event/job board mutations. ``area`` is "events" or "jobs"."""
    data = _base_entry(
        event=event,
        level="INFO",
        object_ref=f"{area}.{record_id}",
        record_id=record_id,
        **details,
    )
    return LogEntry(area, "execution", data)


def log_system_event(event: str, level: str = "INFO", details: Optional[Dict[str, Any]] = None) -> LogEntry:
    """Startup, shutdown, config and dispatch failures."""
    data = _base_entry(event=event, level=level, object_ref="system", details=details)
    return LogEntry("system", "execution", data)


# ---------------------------------------------------------------------------
# Retention
# ---------------------------------------------------------------------------

class LogRetentionManager:
    """Deletes log files older than their category's retention period."""

    def __init__(self, log_dir: str = ".alumnihub/logs", retention_days: Optional[Dict[str, int]] = None):
        self._log_dir = Path(log_dir)
        self._retention = retention_days or DEFAULT_RETENTION.copy()

    def cleanup(self, today: Optional[date] = None) -> int:
        """Returns the number of files deleted."""
        today = today or date.today()
        deleted = 0
        for area, categories in AREA_CATEGORIES.items():
            for cat in categories:
                cat_dir = self._log_dir / area / cat
                if not cat_dir.exists():
                    continue
                retention = self._retention.get(cat, 90)
                for file_path in cat_dir.iterdir():
                    file_date = self._parse_file_date(file_path)
                    if file_date is None:
                        continue
                    if (today - file_date).days > retention:
                        file_path.unlink()
                        deleted += 1
        logger.info(f"Log cleanup deleted {deleted} file(s)")
        return deleted

    @staticmethod
    def _parse_file_date(file_path: Path) -> Optional[date]:
        """2026-02-12.jsonl → date(2026, 2, 12)"""
        if not file_path.is_file():
            return None
        try:
            return date.fromisoformat(file_path.name.split(".")[0])
        except ValueError:
            return None


# ---------------------------------------------------------------------------
# Global Log Queue
# ---------------------------------------------------------------------------

_global_queue: Optional[AsyncLogQueue] = None


def init_logging(
    log_dir: str = ".alumnihub/logs",
    flush_interval_ms: int = 100,
    flush_batch_size: int = 50,
    max_queue_size: int = 10000,
) -> AsyncLogQueue:
    """Initialize and start the global async log queue."""
    global _global_queue
    if _global_queue is not None:
        _global_queue.stop()
    _global_queue = AsyncLogQueue(
        file_logger=FileLogger(log_dir=log_dir),
        flush_interval_ms=flush_interval_ms,
        flush_batch_size=flush_batch_size,
        max_queue_size=max_queue_size,
    )
    _global_queue.start()
    return _global_queue


def get_log_queue() -> Optional[AsyncLogQueue]:
    return _global_queue


def log(entry: LogEntry) -> bool:
    """Push an entry to the global queue. Dropped silently when logging is off."""
    if _global_queue is None:
        logger.debug(f"Log queue not initialized, {entry.area}/{entry.category} entry dropped")
        return False
    return _global_queue.push(entry)


def shutdown_logging() -> None:
    """Flush and stop the global queue."""
    global _global_queue
    if _global_queue:
        _global_queue.stop()
        _global_queue = None
