"""
AlumniHub Identities — Identity records and the injected identity store.

Workflows never read a credential table directly. They receive an
``IdentityStore`` and call ``lookup(email)``, so a real user-management
backend can replace ``StaticIdentityStore`` without touching workflow code.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Dict, Iterable, List, Optional, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger("alumnihub.engine.identity")

# Messaging address of the administrator inbox
ADMIN_ADDRESS = "admin"
# Broadcast marker: every alumni identity receives the message
BROADCAST_ADDRESS = "all"


class Role(str, Enum):
    ADMIN = "admin"
    ALUMNI = "alumni"


class Identity(BaseModel):
    """Public identity of a portal user. Email is the unique key."""

    model_config = ConfigDict(frozen=True)

    email: str = Field(min_length=3, description="Unique login / messaging key")
    display_name: str
    role: Role
    alumni_id: Optional[int] = None

    @property
    def address(self) -> str:
        """Messaging address: admins share the admin inbox, alumni use their email."""
        return ADMIN_ADDRESS if self.role == Role.ADMIN else self.email

    @property
    def initials(self) -> str:
        return "".join(part[0] for part in self.display_name.split() if part)


class IdentityRecord(BaseModel):
    """Identity plus its password hash, as held by an identity store."""

    model_config = ConfigDict(frozen=True)

    identity: Identity
    password_hash: str


@runtime_checkable
class IdentityStore(Protocol):
    """Lookup interface consumed by the Authenticator and the boards."""

    def lookup(self, email: str) -> Optional[IdentityRecord]:
        ...

    def list_identities(self, role: Optional[Role] = None) -> List[Identity]:
        ...


class StaticIdentityStore:
    """
    Fixed, enumerable identity set held in memory.

    Passwords are bcrypt-hashed on construction; plaintext is never kept.
    Exactly one admin identity is allowed.
    """

    def __init__(self, records: Iterable[IdentityRecord]):
        self._records: Dict[str, IdentityRecord] = {}
        for record in records:
            email = record.identity.email
            if email in self._records:
                raise ValueError(f"Duplicate identity email: {email}")
            self._records[email] = record

        admins = [r for r in self._records.values() if r.identity.role == Role.ADMIN]
        if len(admins) > 1:
            raise ValueError("Only one admin identity is supported")

    @classmethod
    def from_credentials(
        cls,
        credentials: Iterable[Dict[str, object]],
        bcrypt_rounds: int = 12,
    ) -> "StaticIdentityStore":
        """
        Build from plain credential dicts:
        ``{"email", "password", "display_name", "role", "alumni_id"?}``.
        """
        from alumnihub.engine.security import hash_password

        records = []
        for cred in credentials:
            identity = Identity(
                email=str(cred["email"]),
                display_name=str(cred["display_name"]),
                role=Role(cred["role"]),
                alumni_id=cred.get("alumni_id"),  # type: ignore[arg-type]
            )
            records.append(
                IdentityRecord(
                    identity=identity,
                    password_hash=hash_password(str(cred["password"]), rounds=bcrypt_rounds),
                )
            )
        logger.debug(f"Identity store built with {len(records)} identities")
        return cls(records)

    def lookup(self, email: str) -> Optional[IdentityRecord]:
        return self._records.get(email)

    def list_identities(self, role: Optional[Role] = None) -> List[Identity]:
        return [
            r.identity for r in self._records.values()
            if role is None or r.identity.role == role
        ]

    @property
    def admin(self) -> Optional[Identity]:
        admins = self.list_identities(Role.ADMIN)
        return admins[0] if admins else None

    def __len__(self) -> int:
        return len(self._records)
