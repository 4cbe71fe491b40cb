"""
AlumniHub Document Repository — insertion-ordered document records.

Writers:
    add()        — upload workflow, after a fully successful upload
    transition() — approval workflow, compare-and-set on status

The lock makes the id-uniqueness check and the status compare-and-set
atomic if a server-backed variant ever runs sessions concurrently.
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, Iterable, List, Optional

from alumnihub.documents.models import DocumentRecord, DocumentStatus
from alumnihub.engine.errors import InvalidTransitionError, PortalNotFoundError, PortalValidationError

logger = logging.getLogger("alumnihub.documents.repository")

_ALLOWED_TRANSITIONS = {
    DocumentStatus.PENDING: {DocumentStatus.APPROVED, DocumentStatus.REJECTED},
    DocumentStatus.APPROVED: set(),
    DocumentStatus.REJECTED: set(),
}


class DocumentRepository:

    def __init__(self, documents: Optional[Iterable[DocumentRecord]] = None):
        self._docs: Dict[str, DocumentRecord] = {}
        self._lock = threading.Lock()
        for doc in documents or []:
            self.add(doc)

    def add(self, doc: DocumentRecord) -> DocumentRecord:
        """Append a record. Raises PortalValidationError on a duplicate id."""
        with self._lock:
            if doc.id in self._docs:
                raise PortalValidationError(
                    f"Duplicate document id: {doc.id}",
                    field="id",
                    object_ref=f"documents.{doc.id}",
                )
            self._docs[doc.id] = doc
        return doc

    def contains(self, doc_id: str) -> bool:
        return doc_id in self._docs

    def get(self, doc_id: str) -> DocumentRecord:
        doc = self._docs.get(doc_id)
        if doc is None:
            raise PortalNotFoundError(
                f"Document not found: {doc_id}",
                record_type="document",
                record_id=doc_id,
            )
        return doc

    def find(self, doc_id: str) -> Optional[DocumentRecord]:
        return self._docs.get(doc_id)

    def transition(
        self,
        doc_id: str,
        target: DocumentStatus,
        comment: str,
    ) -> DocumentRecord:
        """
        Move a record to *target* if the current status allows it.

        Raises:
            PortalNotFoundError: unknown id.
            InvalidTransitionError: the record was already decided.
        """
        with self._lock:
            doc = self.get(doc_id)
            if target not in _ALLOWED_TRANSITIONS[doc.status]:
                raise InvalidTransitionError(
                    f"Document '{doc.title}' is already {doc.status.value}",
                    object_ref=f"documents.{doc_id}",
                    record_id=doc_id,
                    current_status=doc.status.value,
                    requested=target.value,
                )
            doc.status = target
            doc.comment = comment
        return doc

    def list(
        self,
        status: Optional[DocumentStatus] = None,
        owner: Optional[str] = None,
    ) -> List[DocumentRecord]:
        """Records in insertion order, optionally filtered."""
        return [
            d for d in self._docs.values()
            if (status is None or d.status == status)
            and (owner is None or d.owner == owner)
        ]

    def pending(self) -> List[DocumentRecord]:
        return self.list(status=DocumentStatus.PENDING)

    def __len__(self) -> int:
        return len(self._docs)
