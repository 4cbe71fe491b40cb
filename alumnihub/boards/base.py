"""
Shared record handling for the event and job boards.

Both boards keep insertion-ordered records keyed by id, let the admin edit a
fixed set of fields and flip active/inactive, and fan announcements out to
every alumni.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Generic, Iterable, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from alumnihub.boards.models import BoardStatus
from alumnihub.engine.errors import InvalidTransitionError, PortalNotFoundError, PortalValidationError
from alumnihub.engine.identity import ADMIN_ADDRESS, Identity, IdentityStore, Role
from alumnihub.engine.logging import log, log_board_event
from alumnihub.engine.security import require_role
from alumnihub.messaging.store import Notifier

logger = logging.getLogger("alumnihub.boards")

R = TypeVar("R", bound=BaseModel)


class RecordBoard(Generic[R]):
    """
    Subclasses set ``record_type`` (log area and error label) and
    ``editable_fields``.
    """

    record_type = "record"
    editable_fields: frozenset = frozenset()

    def __init__(
        self,
        records: Optional[Iterable[R]] = None,
        notifier: Optional[Notifier] = None,
        identity_store: Optional[IdentityStore] = None,
    ):
        self._records: Dict[str, R] = {}
        self._lock = threading.Lock()
        self._notifier = notifier
        self._identity_store = identity_store
        for record in records or []:
            self._add(record)

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------

    def get(self, record_id: str) -> R:
        record = self._records.get(record_id)
        if record is None:
            raise PortalNotFoundError(
                f"{self.record_type.capitalize()} not found: {record_id}",
                record_type=self.record_type,
                record_id=record_id,
            )
        return record

    def list(self, status: Optional[BoardStatus] = None) -> List[R]:
        return [r for r in self._records.values() if status is None or r.status == status]

    def __len__(self) -> int:
        return len(self._records)

    # -------------------------------------------------------------------
    # Admin edits
    # -------------------------------------------------------------------

    def update(self, actor: Optional[Identity], record_id: str, **fields) -> R:
        """Change editable fields. Unknown field names are rejected."""
        require_role(actor, Role.ADMIN, action=f"update_{self.record_type}")
        unknown = set(fields) - self.editable_fields
        if unknown:
            raise PortalValidationError(
                f"Cannot edit {self.record_type} field(s): {', '.join(sorted(unknown))}",
                field=sorted(unknown)[0],
            )
        with self._lock:
            current = self.get(record_id)
            merged = current.model_dump()
            merged.update(fields)
            updated = self._build(type(current), **merged)
            self._records[record_id] = updated

        log(log_board_event(self._area, f"{self.record_type}_updated", record_id, fields=sorted(fields)))
        logger.info(f"{self.record_type} {record_id} updated: {sorted(fields)}")
        return updated

    def toggle(self, actor: Optional[Identity], record_id: str) -> R:
        """Flip active/inactive."""
        require_role(actor, Role.ADMIN, action=f"toggle_{self.record_type}")
        with self._lock:
            record = self.get(record_id)
            record.status = record.status.toggled()
        log(log_board_event(self._area, f"{self.record_type}_toggled", record_id, status=record.status.value))
        logger.info(f"{self.record_type} {record_id} is now {record.status.value}")
        return record

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------

    @property
    def _area(self) -> str:
        return f"{self.record_type}s"

    def _build(self, model: Type[R], **data: Any) -> R:
        """Validate a record, reporting bad fields as PortalValidationError."""
        try:
            return model.model_validate(data)
        except ValidationError as e:
            errors = e.errors()
            raise PortalValidationError(
                f"Invalid {self.record_type}: {errors[0]['msg']}",
                field=".".join(str(p) for p in errors[0]["loc"]),
                validation_errors=errors,
            ) from e

    def _add(self, record: R) -> R:
        with self._lock:
            if record.id in self._records:
                raise PortalValidationError(
                    f"Duplicate {self.record_type} id: {record.id}",
                    field="id",
                    object_ref=f"{self._area}.{record.id}",
                )
            self._records[record.id] = record
        return record

    def _require_active(self, record: R) -> None:
        if record.status != BoardStatus.ACTIVE:
            raise InvalidTransitionError(
                f"'{record.title}' is not open right now",
                object_ref=f"{self._area}.{record.id}",
                record_id=record.id,
                current_status=record.status.value,
                requested="participate",
            )

    def _announce(self, text: str) -> int:
        """One notification per alumni. Returns how many were sent."""
        if self._notifier is None or self._identity_store is None:
            return 0
        recipients = [i.address for i in self._identity_store.list_identities(Role.ALUMNI)]
        return len(self._notifier.fan_out(ADMIN_ADDRESS, recipients, text))
