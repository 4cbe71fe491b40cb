"""
AlumniHub Approval Workflow — admin decisions on pending documents.

pending ──approve──► approved
   └────reject────► rejected

Each successful decision sends exactly one notification from the admin
inbox to the document owner. Deciding a record that is no longer pending
raises InvalidTransitionError and changes nothing.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from alumnihub.documents.models import Decision, DocumentRecord
from alumnihub.documents.repository import DocumentRepository
from alumnihub.engine.errors import InvalidTransitionError, PortalNotFoundError, PortalValidationError
from alumnihub.engine.identity import ADMIN_ADDRESS, Identity, Role
from alumnihub.engine.logging import log, log_document_event
from alumnihub.engine.security import require_role
from alumnihub.messaging.store import Notifier

logger = logging.getLogger("alumnihub.documents.approval")

DEFAULT_COMMENTS = {
    Decision.APPROVE: "Document approved successfully",
    Decision.REJECT: "Document rejected. Please resubmit.",
}

BULK_APPROVE_COMMENT = "Bulk approved by admin"


def decision_message(decision: Decision, title: str) -> str:
    if decision is Decision.APPROVE:
        return f'Your document "{title}" has been approved!'
    return f'Your document "{title}" needs revision. Please check comments and resubmit.'


class ApprovalWorkflow:

    def __init__(self, repository: DocumentRepository, notifier: Optional[Notifier] = None):
        self._repository = repository
        self._notifier = notifier

    def decide(
        self,
        document_id: str,
        decision: Decision,
        comment: str = "",
        *,
        actor: Optional[Identity],
    ) -> DocumentRecord:
        """
        Apply an admin decision to a pending document.

        Raises:
            PortalValidationError: decision is neither approve nor reject.
            PermissionDeniedError: actor is not admin.
            PortalNotFoundError: unknown document id.
            InvalidTransitionError: document already approved or rejected.
        """
        try:
            decision = Decision(decision)
        except ValueError as e:
            raise PortalValidationError(f"Unknown decision: {decision}", field="decision") from e
        actor = require_role(actor, Role.ADMIN, action=f"{decision.value}_document")
        comment = comment.strip() if comment else ""

        try:
            doc = self._repository.transition(
                document_id,
                decision.target_status,
                comment or DEFAULT_COMMENTS[decision],
            )
        except (PortalNotFoundError, InvalidTransitionError) as e:
            log(log_document_event(f"{decision.value}_refused", document_id, actor.email, error=str(e)))
            raise

        logger.info(f"Document {doc.id} {doc.status.value} by {actor.email}")
        log(log_document_event(f"document_{doc.status.value}", doc.id, doc.owner, status=doc.status.value))

        if self._notifier is not None:
            self._notifier.notify(ADMIN_ADDRESS, doc.owner, decision_message(decision, doc.title))
        return doc

    def approve(self, document_id: str, comment: str = "", *, actor: Optional[Identity]) -> DocumentRecord:
        return self.decide(document_id, Decision.APPROVE, comment, actor=actor)

    def reject(self, document_id: str, comment: str = "", *, actor: Optional[Identity]) -> DocumentRecord:
        return self.decide(document_id, Decision.REJECT, comment, actor=actor)

    def bulk_approve(
        self,
        *,
        actor: Optional[Identity],
        comment: str = BULK_APPROVE_COMMENT,
    ) -> List[DocumentRecord]:
        """
        Approve every pending document, one at a time.

        Records decided concurrently by someone else are skipped; there is
        no all-or-nothing guarantee across records.
        """
        require_role(actor, Role.ADMIN, action="bulk_approve")
        approved: List[DocumentRecord] = []
        for doc in self._repository.pending():
            try:
                approved.append(self.approve(doc.id, comment, actor=actor))
            except InvalidTransitionError:
                logger.info(f"Skipping {doc.id}: decided during bulk approval")
        logger.info(f"Bulk approved {len(approved)} document(s)")
        return approved
