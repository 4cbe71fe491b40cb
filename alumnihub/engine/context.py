"""
AlumniHub Session Context — the currently authenticated identity and role.

A SessionContext is created by the Authenticator at login and discarded at
logout. The dispatcher holds it explicitly; it is also published on a
context variable so log entries can carry the acting user.

Usage:
    from alumnihub.engine.context import (
        SessionContext,
        set_session_context,
        get_session_context,
    )
"""

from __future__ import annotations

import uuid
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from alumnihub.engine.errors import PortalAuthError
from alumnihub.engine.identity import Identity, Role

current_session_context: ContextVar[Optional["SessionContext"]] = ContextVar(
    "session_context", default=None
)


@dataclass
class SessionContext:
    """Per-login state. View-level selections live here, not in globals."""

    identity: Identity
    session_token: str = ""
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    # View selections
    selected_document: Optional[str] = None
    active_chat: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.session_token:
            self.session_token = f"{self.identity.role.value}_{uuid.uuid4().hex[:16]}"

    @property
    def role(self) -> Role:
        return self.identity.role

    @property
    def email(self) -> str:
        return self.identity.email

    @property
    def address(self) -> str:
        return self.identity.address

    @property
    def is_admin(self) -> bool:
        return self.identity.role == Role.ADMIN

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for logging."""
        return {
            "email": self.identity.email,
            "display_name": self.identity.display_name,
            "role": self.identity.role.value,
            "session_token": self.session_token,
            "started_at": self.started_at.isoformat(),
        }


def set_session_context(ctx: SessionContext) -> None:
    """Publish the session for the current thread/task."""
    current_session_context.set(ctx)


def get_session_context() -> Optional[SessionContext]:
    """Get the current session. Returns None if nobody is logged in."""
    return current_session_context.get()


def require_session_context() -> SessionContext:
    """Get the current session or raise if not authenticated."""
    ctx = get_session_context()
    if ctx is None:
        raise PortalAuthError("No session: user not authenticated")
    return ctx


def clear_session_context() -> None:
    """Clear the session (logout)."""
    current_session_context.set(None)
