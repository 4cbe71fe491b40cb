"""
AlumniHub Security — Password hashing, authentication and role checks.

Implements:
- bcrypt password hashing (credentials are hashed at rest)
- Authenticator: email/password/role login against an IdentityStore
- require_role(): role gate used by workflows and the dispatcher

There is no lockout or rate limiting: a failed login only returns an error.
"""

from __future__ import annotations

import logging
from typing import Optional

import bcrypt

from alumnihub.engine.context import (
    SessionContext,
    clear_session_context,
    get_session_context,
    set_session_context,
)
from alumnihub.engine.errors import (
    InvalidCredentialsError,
    PermissionDeniedError,
    PortalValidationError,
)
from alumnihub.engine.identity import Identity, IdentityStore, Role
from alumnihub.engine.logging import log, log_auth_event

logger = logging.getLogger("alumnihub.engine.security")


def hash_password(password: str, rounds: int = 12) -> str:
    """Hash a password using bcrypt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its bcrypt hash."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed hash in the store
        logger.error("Stored password hash is not a valid bcrypt hash")
        return False


def require_role(identity: Optional[Identity], *roles: Role, action: str = "") -> Identity:
    """
    Raise PermissionDeniedError unless identity holds one of *roles*.

    Returns the identity so callers can chain: ``actor = require_role(...)``.
    """
    if identity is None:
        raise PermissionDeniedError(
            f"Authentication required for '{action}'",
            object_ref=action or None,
            required_roles=[r.value for r in roles],
        )
    if identity.role not in roles:
        log(log_auth_event("permission_denied", identity.email, identity.role.value,
                           success=False, reason=action))
        raise PermissionDeniedError(
            f"Role '{identity.role.value}' may not perform '{action}'",
            object_ref=action or None,
            user_id=identity.email,
            required_roles=[r.value for r in roles],
        )
    return identity


class Authenticator:
    """
    Login/logout against an injected IdentityStore.

    Usage:
        auth = Authenticator(identity_store)
        session = auth.authenticate("admin@...", "secret", Role.ADMIN)
        ...
        auth.logout(session)
    """

    def __init__(self, identity_store: IdentityStore):
        self._store = identity_store

    def authenticate(self, email: str, password: str, role: Role) -> SessionContext:
        """
        Check credentials for the requested role and open a session.

        Raises:
            PortalValidationError: email or password empty.
            InvalidCredentialsError: unknown email, wrong role or wrong password.
        """
        email = (email or "").strip()
        if not email or not password:
            raise PortalValidationError(
                "Please enter both email and password.",
                field="email" if not email else "password",
            )
        role = Role(role)

        record = self._store.lookup(email)
        if (
            record is None
            or record.identity.role != role
            or not verify_password(password, record.password_hash)
        ):
            logger.info(f"Invalid {role.value} credentials for {email}")
            log(log_auth_event("login_failed", email, role.value, success=False))
            raise InvalidCredentialsError(
                f"Invalid {role.value} credentials. Please check your email and password.",
                object_ref="auth.login",
                user_id=email,
            )

        session = SessionContext(identity=record.identity)
        set_session_context(session)
        logger.info(f"{role.value} login successful: {email}")
        log(log_auth_event("login", email, role.value))
        return session

    def logout(self, session: Optional[SessionContext] = None) -> None:
        """Discard the session. Safe to call when nobody is logged in."""
        session = session or get_session_context()
        if session is not None:
            log(log_auth_event("logout", session.email, session.role.value))
            logger.info(f"Logged out: {session.email}")
        clear_session_context()
