"""
AlumniHub FAQ Assistant — rule-based answers to common portal questions.

Matching order (first hit wins, on the lower-cased question):
    1. topic rules     storage / encryption & security / retries
    2. FAQ keys        the whole FAQ question appears in the text
    3. keyword rules   upload, file types, status, certificates, contact
    4. default help text

Answers are built from the live UploadConfig so limits stay truthful.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from alumnihub.engine.config import UploadConfig
from alumnihub.engine.errors import PortalValidationError

logger = logging.getLogger("alumnihub.assistant.faq")

_TYPE_LABELS = {
    "application/pdf": "PDF",
    "image/jpeg": "JPG",
    "image/jpg": "JPG",
    "image/png": "PNG",
}

Q_UPLOAD = "How do I upload documents?"
Q_FILE_TYPES = "What file types are supported?"
Q_SECURITY = "How is my data protected?"
Q_STATUS = "How do I check document approval status?"
Q_CERTIFICATES = "Where can I find my certificates?"
Q_CONTACT = "How to contact admin?"


def describe_types(content_types: Sequence[str]) -> str:
    """'application/pdf', 'image/jpeg' → 'PDF and JPG'."""
    labels: List[str] = []
    for ct in content_types:
        label = _TYPE_LABELS.get(ct, ct.split("/")[-1].upper())
        if label not in labels:
            labels.append(label)
    if not labels:
        return "no"
    if len(labels) == 1:
        return labels[0]
    return ", ".join(labels[:-1]) + " and " + labels[-1]


class FaqAssistant:

    def __init__(self, upload_config: Optional[UploadConfig] = None, storage_configured: bool = False):
        self._config = upload_config or UploadConfig()
        self._storage_configured = storage_configured
        self.faq: Dict[str, str] = self._build_faq()
        self._topics: List[Tuple[Tuple[str, ...], str]] = [
            (("supabase", "storage"), self._storage_answer()),
            (("rsa", "encryption", "security"), self.faq[Q_SECURITY]),
            (("retry", "upload fail"), self._retry_answer()),
        ]
        self._keywords: List[Tuple[Tuple[str, ...], str]] = [
            (("upload", "document"), self.faq[Q_UPLOAD]),
            (("file", "format", "type"), self.faq[Q_FILE_TYPES]),
            (("status", "approval"), self.faq[Q_STATUS]),
            (("download", "certificate"), self.faq[Q_CERTIFICATES]),
            (("contact", "admin", "help"), self.faq[Q_CONTACT]),
        ]

    @property
    def suggestions(self) -> List[str]:
        return list(self.faq)

    def answer(self, question: str) -> str:
        if not question or not question.strip():
            raise PortalValidationError("Please type a question.", field="question")
        text = question.strip().lower()

        for words, response in self._topics:
            if any(w in text for w in words):
                return response

        for key, response in self.faq.items():
            if key.lower() in text:
                return response

        for words, response in self._keywords:
            if any(w in text for w in words):
                return response

        logger.debug(f"No FAQ match for: {question!r}")
        return self.default_answer

    @property
    def default_answer(self) -> str:
        return (
            "I'm the JIT Alumni Connect assistant. Ask me about uploading documents, "
            "supported file types, approval status, certificates, events, jobs "
            "or how to reach the admin."
        )

    # -------------------------------------------------------------------
    # Answer text
    # -------------------------------------------------------------------

    def _build_faq(self) -> Dict[str, str]:
        types = describe_types(self._config.allowed_types)
        return {
            Q_UPLOAD: (
                "To upload a document: open the Documents section, enter a title and "
                f"category, choose your file ({types}) and press Upload. Failed uploads "
                f"are retried automatically up to {self._config.max_retries} times."
            ),
            Q_FILE_TYPES: (
                f"We accept {types} files only. The maximum size is "
                f"{self._config.max_size_mb} MB per document."
            ),
            Q_SECURITY: (
                "Passwords are stored as bcrypt hashes. Files travel to storage over HTTPS, "
                "and document metadata can be sealed with authenticated encryption "
                "when the portal is configured to do so."
            ),
            Q_STATUS: (
                "Check the Documents section: each document shows pending, approved or "
                "rejected. You also get a message from the admin when a decision is made."
            ),
            Q_CERTIFICATES: (
                "Approved documents are listed in your Documents section together with "
                "the admin's comment."
            ),
            Q_CONTACT: "Use the Communication section to message the admin directly.",
        }

    def _storage_answer(self) -> str:
        where = "cloud storage" if self._storage_configured else "the portal's local demo storage"
        return (
            f"Documents are uploaded to {where}. Each upload is retried automatically "
            f"up to {self._config.max_retries} times if the connection drops."
        )

    def _retry_answer(self) -> str:
        return (
            f"The portal retries a failed upload up to {self._config.max_retries} times, "
            "waiting a little longer before each new attempt. If every attempt fails you "
            "will see an error and can try again later."
        )
