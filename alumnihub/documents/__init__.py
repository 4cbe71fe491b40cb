"""
AlumniHub Documents — upload, repository and admin approval.
"""

from alumnihub.documents.approval import ApprovalWorkflow
from alumnihub.documents.models import (
    Decision,
    DocumentRecord,
    DocumentStatus,
    UploadFile,
    UploadResult,
)
from alumnihub.documents.repository import DocumentRepository
from alumnihub.documents.upload import CancellationToken, UploadWorkflow

__all__ = [
    "ApprovalWorkflow",
    "CancellationToken",
    "Decision",
    "DocumentRecord",
    "DocumentRepository",
    "DocumentStatus",
    "UploadFile",
    "UploadResult",
    "UploadWorkflow",
]
