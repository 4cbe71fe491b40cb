"""
AlumniHub Upload Workflow — validated, bounded-retry document upload.

    upload(file, owner, category, title) → UploadResult{path, record_id}

Lifecycle of one call (UploadAttempt.state):
    IDLE → ATTEMPTING → SUCCESS
                      → ATTEMPTING   (TransientStoreError, attempt < max_retries)
                      → EXHAUSTED    (TransientStoreError, attempt == max_retries)
                      → CANCELLED    (cancel token seen at a retry boundary)

Rules:
    - Validation (type, size, required fields) runs before the first attempt
      and does not consume the retry budget.
    - One attempt = blob store + metadata insert. Either failing fails the attempt.
    - Backoff is linear: retry_delay * attempt.
    - The repository is only touched after a fully successful attempt.
    - A blob stored before a failed metadata insert is not removed; the
      orphan path is logged for reconciliation.
"""

from __future__ import annotations

import asyncio
import logging
import os
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Awaitable, Callable, List, Optional

from alumnihub.documents.models import DocumentRecord, UploadFile, UploadResult, new_document_id
from alumnihub.documents.repository import DocumentRepository
from alumnihub.engine.config import UploadConfig
from alumnihub.engine.credentials import CredentialManager
from alumnihub.engine.errors import (
    PortalValidationError,
    StoreError,
    TransientStoreError,
    UploadCancelledError,
    UploadExhaustedError,
)
from alumnihub.engine.identity import ADMIN_ADDRESS
from alumnihub.engine.logging import log, log_document_event, log_upload_attempt, log_upload_performance
from alumnihub.messaging.store import Notifier
from alumnihub.storage.base import RemoteStore
from alumnihub.storage.simulated import SimulatedStore

logger = logging.getLogger("alumnihub.documents.upload")

SleepFn = Callable[[float], Awaitable[None]]

# Column limit for title and file name on the documents table
MAX_NAME_LENGTH = 255


class UploadState(str, Enum):
    IDLE = "idle"
    ATTEMPTING = "attempting"
    SUCCESS = "success"
    EXHAUSTED = "exhausted"
    CANCELLED = "cancelled"


class CancellationToken:
    """Cooperative cancel flag, checked by the workflow at retry boundaries."""

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


@dataclass
class UploadAttempt:
    """Ephemeral context of one upload() call."""

    file: UploadFile
    owner: str
    category: str
    title: str
    max_retries: int
    retry_delay: float
    content_type: str
    attempt: int = 0
    state: UploadState = UploadState.IDLE
    waits: List[float] = field(default_factory=list)
    orphaned_paths: List[str] = field(default_factory=list)

    @property
    def can_retry(self) -> bool:
        return self.attempt < self.max_retries

    def next_delay(self) -> float:
        return self.retry_delay * self.attempt


class UploadWorkflow:
    """
    Validates and uploads one document, then records it as pending.

    Args:
        repository: where the pending record is appended on success.
        store: remote store; when None or unavailable, ``fallback`` is used.
        notifier: admin is told about every successful upload.
        config: size/type limits and retry budget.
        credentials: seals metadata when ``seal_metadata`` is on.
        sleep: awaitable used for backoff (injectable for tests).
    """

    def __init__(
        self,
        repository: DocumentRepository,
        store: Optional[RemoteStore] = None,
        notifier: Optional[Notifier] = None,
        config: Optional[UploadConfig] = None,
        credentials: Optional[CredentialManager] = None,
        seal_metadata: bool = False,
        fallback: Optional[RemoteStore] = None,
        sleep: Optional[SleepFn] = None,
    ):
        self._repository = repository
        self._store = store
        self._fallback = fallback
        self._notifier = notifier
        self._config = config or UploadConfig()
        self._credentials = credentials
        self._seal_metadata = seal_metadata
        self._sleep: SleepFn = sleep or asyncio.sleep

    @property
    def max_retries(self) -> int:
        return self._config.max_retries

    def active_store(self) -> RemoteStore:
        if self._store is not None and self._store.available:
            return self._store
        if self._fallback is None:
            logger.warning("Remote store unavailable - falling back to simulated storage")
            self._fallback = SimulatedStore(sleep=self._sleep)
        return self._fallback

    # -------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------

    def validate(self, file: Optional[UploadFile], category: str, title: str) -> str:
        """
        Check the upload preconditions. Returns the resolved content type.

        Raises PortalValidationError; nothing has been touched at that point.
        """
        if not title or not title.strip():
            raise PortalValidationError("Please enter a document title.", field="title")
        if len(title.strip()) > MAX_NAME_LENGTH:
            raise PortalValidationError(
                f"Document title must not exceed {MAX_NAME_LENGTH} characters.", field="title"
            )
        if not category or not category.strip():
            raise PortalValidationError("Please choose a document category.", field="category")
        if file is None or not file.name or file.size == 0:
            raise PortalValidationError("Please select a file to upload.", field="file")
        if len(file.name) > MAX_NAME_LENGTH:
            raise PortalValidationError(
                f"File name must not exceed {MAX_NAME_LENGTH} characters.", field="file"
            )

        content_type = file.resolved_content_type
        if content_type not in self._config.allowed_types:
            raise PortalValidationError(
                f"File type '{content_type}' is not allowed. Please select a PDF or JPG file.",
                field="file",
                validation_errors=[{"content_type": content_type, "allowed": self._config.allowed_types}],
            )
        if file.size > self._config.max_size_bytes:
            raise PortalValidationError(
                f"File size ({file.size / 1024 / 1024:.1f} MB) must not exceed "
                f"{self._config.max_size_mb} MB.",
                field="file",
                validation_errors=[{"size": file.size, "max": self._config.max_size_bytes}],
            )
        return content_type

    # -------------------------------------------------------------------
    # Upload
    # -------------------------------------------------------------------

    async def upload(
        self,
        file: UploadFile,
        owner: str,
        category: str,
        title: str,
        *,
        cancel_token: Optional[CancellationToken] = None,
    ) -> UploadResult:
        """
        Raises:
            PortalValidationError: preconditions failed (no attempt made).
            StoreError: the store refused the upload permanently.
            UploadExhaustedError: every attempt failed transiently.
            UploadCancelledError: cancel_token was set at a retry boundary.
        """
        content_type = self.validate(file, category, title)
        ctx = UploadAttempt(
            file=file,
            owner=owner,
            category=category.strip(),
            title=title.strip(),
            max_retries=self._config.max_retries,
            retry_delay=self._config.retry_delay_seconds,
            content_type=content_type,
        )
        store = self.active_store()
        record = self._draft_record(ctx)
        started = time.monotonic()

        while True:
            self._check_cancelled(ctx, cancel_token)
            ctx.attempt += 1
            ctx.state = UploadState.ATTEMPTING
            logger.info(f"Upload attempt {ctx.attempt}/{ctx.max_retries} for {file.name} ({owner})")
            attempt_started = time.monotonic()
            stored_path: Optional[str] = None

            try:
                stored = await store.store(self._storage_path(ctx), file.data, content_type)
                stored_path = stored.path
                record.storage_path = stored.path
                record.remote_id = await store.insert_metadata(record.to_store_row())
            except TransientStoreError as e:
                if stored_path is not None:
                    ctx.orphaned_paths.append(stored_path)
                    logger.warning(f"Blob {stored_path} stored but metadata insert failed; needs reconciliation")
                if not ctx.can_retry:
                    ctx.state = UploadState.EXHAUSTED
                    self._log_attempt(ctx, store, attempt_started, error=str(e))
                    logger.error(f"Upload of {file.name} failed after {ctx.attempt} attempts: {e}")
                    raise UploadExhaustedError(
                        f"Upload failed after {ctx.attempt} attempts. "
                        "Please check your connection and try again.",
                        object_ref=f"uploads.{owner}",
                        user_id=owner,
                        attempts=ctx.attempt,
                        last_error=str(e),
                        orphaned_paths=ctx.orphaned_paths,
                    ) from e

                delay = ctx.next_delay()
                self._log_attempt(ctx, store, attempt_started, error=str(e), backoff=delay)
                logger.warning(f"Upload attempt {ctx.attempt} failed: {e}. Retrying in {delay}s")
                ctx.waits.append(delay)
                await self._sleep(delay)
                continue
            except StoreError as e:
                self._log_attempt(ctx, store, attempt_started, error=str(e))
                logger.error(f"Store rejected upload of {file.name}: {e}")
                raise

            break

        self._repository.add(record)
        ctx.state = UploadState.SUCCESS
        self._log_attempt(ctx, store, attempt_started)
        log(log_upload_performance(owner, ctx.attempt, (time.monotonic() - started) * 1000, file.size))
        log(log_document_event("document_created", record.id, owner, status=record.status.value))
        logger.info(f"Document {record.id} uploaded to {record.storage_path}")

        if self._notifier is not None:
            self._notifier.notify(owner, ADMIN_ADDRESS, f"New document upload: {record.title}")

        return UploadResult(path=record.storage_path or "", record_id=record.id, attempts=ctx.attempt)

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------

    def _draft_record(self, ctx: UploadAttempt) -> DocumentRecord:
        doc_id = new_document_id()
        while self._repository.contains(doc_id):
            doc_id = new_document_id()

        record = DocumentRecord(
            id=doc_id,
            owner=ctx.owner,
            title=ctx.title,
            file_name=ctx.file.name,
            category=ctx.category,
            size_bytes=ctx.file.size,
            content_type=ctx.content_type,
        )
        if self._seal_metadata and self._credentials is not None:
            record.sealed_metadata = self._credentials.seal(record.metadata())
        return record

    @staticmethod
    def _storage_path(ctx: UploadAttempt) -> str:
        """Fresh per attempt so a half-finished attempt never collides."""
        epoch_ms = int(datetime.now(timezone.utc).timestamp() * 1000)
        return f"{ctx.owner}/{epoch_ms}_{safe_filename(ctx.file.name)}"

    @staticmethod
    def _check_cancelled(ctx: UploadAttempt, token: Optional[CancellationToken]) -> None:
        if token is not None and token.cancelled:
            ctx.state = UploadState.CANCELLED
            logger.info(f"Upload of {ctx.file.name} cancelled after {ctx.attempt} attempt(s)")
            raise UploadCancelledError(
                "Upload cancelled",
                object_ref=f"uploads.{ctx.owner}",
                user_id=ctx.owner,
                attempts=ctx.attempt,
            )

    @staticmethod
    def _log_attempt(
        ctx: UploadAttempt,
        store: RemoteStore,
        started: float,
        error: Optional[str] = None,
        backoff: Optional[float] = None,
    ) -> None:
        log(log_upload_attempt(
            owner=ctx.owner,
            file_name=ctx.file.name,
            attempt=ctx.attempt,
            max_retries=ctx.max_retries,
            success=error is None,
            store=store.name,
            duration_ms=(time.monotonic() - started) * 1000,
            error=error,
            backoff_seconds=backoff,
        ))


def safe_filename(filename: str) -> str:
    """
    Sanitize a filename for use inside a storage path.

    Strips directories, control characters and leading dots; keeps the extension.
    """
    name = os.path.basename(filename.replace("\\", "/"))
    name = "".join(c for c in name if c.isprintable() and c not in '<>:"/\\|?*')
    name = name.lstrip(".")
    if not name:
        name = "unnamed_document"
    if len(name) > 200:
        base, ext = os.path.splitext(name)
        name = base[:200 - len(ext)] + ext
    return name
