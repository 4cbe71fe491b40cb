"""
AlumniHub Error Hierarchy — Structured exceptions surfaced to the view layer.

Every error carries serializable context so the dispatcher can log it and
the view can render a message without inspecting tracebacks.

Hierarchy:
    PortalError
    ├── PortalValidationError     — Bad input, raised before any work begins
    │   └── EventFullError        — Registration rejected at capacity
    ├── PortalNotFoundError       — Referenced record or identity missing
    ├── InvalidTransitionError    — Document/event/job state-machine violation
    ├── PortalAuthError           — Credential or permission failure
    │   ├── InvalidCredentialsError
    │   └── PermissionDeniedError
    ├── StoreError                — Remote store failure, not retried
    │   └── TransientStoreError   — Retryable store hiccup
    ├── UploadExhaustedError      — All upload attempts consumed
    ├── UploadCancelledError      — Upload aborted at a retry boundary
    ├── PortalDispatchError       — Unknown action or bad action payload
    └── PortalConfigError         — Invalid alumnihub.yaml
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


class PortalError(Exception):
    """
    Base error for all AlumniHub failures.
    All context is serializable to JSON for the structured logs.
    """

    def __init__(self, message: str, **context: Any):
        self.message = message
        self.object_ref: Optional[str] = context.get("object_ref")
        self.user_id: Optional[str] = context.get("user_id")
        self.error_type: str = self.__class__.__name__
        self.context: Dict[str, Any] = context
        self.timestamp: str = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize error to a JSON-compatible dict."""
        return {
            "error_type": self.error_type,
            "message": self.message,
            "object_ref": self.object_ref,
            "user_id": self.user_id,
            "timestamp": self.timestamp,
            "context": {
                k: str(v) for k, v in self.context.items()
                if k not in ("object_ref", "user_id")
            },
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)

    def __repr__(self) -> str:
        parts = [f"{self.error_type}: {self.message}"]
        if self.object_ref:
            parts.append(f"object_ref={self.object_ref}")
        if self.user_id:
            parts.append(f"user_id={self.user_id}")
        return " | ".join(parts)


class PortalValidationError(PortalError):
    """
    Input validation failed (file type, size, empty required fields).
    Raised before any side effect.
    """

    def __init__(self, message: str, **context: Any):
        self.field: Optional[str] = context.get("field")
        self.validation_errors: Optional[List[Any]] = context.get("validation_errors")
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["field"] = self.field
        d["validation_errors"] = self.validation_errors
        return d


class EventFullError(PortalValidationError):
    """Event registration rejected because registered == capacity."""

    def __init__(self, message: str, **context: Any):
        self.capacity: Optional[int] = context.get("capacity")
        super().__init__(message, **context)


class PortalNotFoundError(PortalError):
    """Referenced record or identity does not exist."""

    def __init__(self, message: str, **context: Any):
        self.record_type: Optional[str] = context.get("record_type")
        self.record_id: Optional[str] = context.get("record_id")
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["record_type"] = self.record_type
        d["record_id"] = self.record_id
        return d


class InvalidTransitionError(PortalError):
    """A status change was requested from a state that does not allow it."""

    def __init__(self, message: str, **context: Any):
        self.record_id: Optional[str] = context.get("record_id")
        self.current_status: Optional[str] = context.get("current_status")
        self.requested: Optional[str] = context.get("requested")
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["record_id"] = self.record_id
        d["current_status"] = self.current_status
        d["requested"] = self.requested
        return d


class PortalAuthError(PortalError):
    """Authentication or authorization failure."""
    pass


class InvalidCredentialsError(PortalAuthError):
    """Email/password/role combination did not match the identity store."""
    pass


class PermissionDeniedError(PortalAuthError):
    """Authenticated identity lacks the role required for the action."""

    def __init__(self, message: str, **context: Any):
        self.required_roles: Optional[List[str]] = context.get("required_roles")
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["required_roles"] = self.required_roles
        return d


class StoreError(PortalError):
    """Remote store call failed in a way that retrying will not fix."""

    def __init__(self, message: str, **context: Any):
        self.store: Optional[str] = context.get("store")
        self.status_code: Optional[int] = context.get("status_code")
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["store"] = self.store
        d["status_code"] = self.status_code
        return d


class TransientStoreError(StoreError):
    """Retryable store failure (timeout, connection reset, 429, 5xx)."""
    pass


class UploadExhaustedError(PortalError):
    """Every upload attempt failed. The user must re-trigger the upload."""

    def __init__(self, message: str, **context: Any):
        self.attempts: Optional[int] = context.get("attempts")
        self.last_error: Optional[str] = context.get("last_error")
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["attempts"] = self.attempts
        d["last_error"] = self.last_error
        return d


class UploadCancelledError(PortalError):
    """Upload cancelled by the caller before it completed."""

    def __init__(self, message: str, **context: Any):
        self.attempts: Optional[int] = context.get("attempts")
        super().__init__(message, **context)


class PortalConfigError(PortalError):
    """Configuration error — invalid alumnihub.yaml."""
    pass


class PortalDispatchError(PortalError):
    """Action unknown to the dispatcher, or called with an unusable payload."""

    def __init__(self, message: str, **context: Any):
        self.action: Optional[str] = context.get("action")
        super().__init__(message, **context)
