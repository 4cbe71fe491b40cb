"""
AlumniHub Document Models — document records and upload inputs/outputs.

DocumentRecord: metadata of one submitted document and its review state.
UploadFile: the file payload handed to the upload workflow.
UploadResult: what a successful upload returns to the caller.
"""

from __future__ import annotations

import mimetypes
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

MIB = 1024 * 1024


class DocumentStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Decision(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"

    @property
    def target_status(self) -> DocumentStatus:
        return DocumentStatus.APPROVED if self is Decision.APPROVE else DocumentStatus.REJECTED


def new_document_id() -> str:
    return f"doc_{uuid.uuid4().hex[:12]}"


class DocumentRecord(BaseModel):
    """
    A submitted document. Created pending by the upload workflow; status
    moves once, to approved or rejected, through the approval workflow.
    """

    id: str = Field(default_factory=new_document_id, description="Unique document id")
    owner: str = Field(min_length=1, description="Email of the uploading alumni")
    title: str = Field(min_length=1, max_length=255)
    file_name: str = Field(min_length=1, max_length=255)
    category: str = Field(min_length=1, description="Free-text category, e.g. 'Resumes & CVs'")
    status: DocumentStatus = DocumentStatus.PENDING
    uploaded_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    size_bytes: int = Field(ge=0)
    content_type: str = "application/pdf"
    comment: str = ""

    # Remote storage
    storage_path: Optional[str] = None
    remote_id: Optional[str] = None
    sealed_metadata: Optional[str] = None

    @property
    def display_size(self) -> str:
        return f"{self.size_bytes / MIB:.1f} MB"

    @property
    def is_pending(self) -> bool:
        return self.status == DocumentStatus.PENDING

    def metadata(self) -> dict:
        """Plain structured metadata sent with the record to the remote store."""
        return {
            "original_name": self.file_name,
            "category": self.category,
            "title": self.title,
            "owner": self.owner,
        }

    def to_store_row(self) -> dict:
        """Column mapping for the remote ``documents`` table."""
        return {
            "id": self.id,
            "user_email": self.owner,
            "file_name": self.file_name,
            "file_path": self.storage_path,
            "file_size": self.size_bytes,
            "file_type": self.content_type,
            "category": self.category,
            "title": self.title,
            "status": self.status.value,
            "sealed_metadata": self.sealed_metadata,
            "uploaded_at": self.uploaded_at.isoformat(),
        }


class UploadFile(BaseModel):
    """File payload from the view layer."""

    name: str
    data: bytes
    content_type: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def resolved_content_type(self) -> str:
        """Declared type, else guessed from the file name."""
        if self.content_type:
            return self.content_type
        guessed, _ = mimetypes.guess_type(self.name)
        return guessed or "application/octet-stream"


class UploadResult(BaseModel):
    path: str
    record_id: str
    attempts: int = 1
