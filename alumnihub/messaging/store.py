"""
AlumniHub Messaging Store — append-only log of directed messages.

Read side:
    conversation(a, b) = messages a→b and b→a, plus admin broadcasts,
    in insertion order. No pagination.

Notifier wraps the store as a fire-and-forget sink for workflows.
"""

from __future__ import annotations

import itertools
import logging
import threading
from typing import Iterable, List, Optional

from alumnihub.engine.errors import PortalValidationError
from alumnihub.engine.identity import ADMIN_ADDRESS, BROADCAST_ADDRESS
from alumnihub.engine.logging import log, log_message_event
from alumnihub.messaging.models import MessageRecord

logger = logging.getLogger("alumnihub.messaging.store")


class MessageStore:
    """Insertion-ordered message log. Records are never changed or removed."""

    def __init__(self, messages: Optional[Iterable[MessageRecord]] = None):
        self._messages: List[MessageRecord] = list(messages or [])
        start = max((m.id for m in self._messages), default=0) + 1
        self._ids = itertools.count(start)
        self._lock = threading.Lock()

    def append(self, sender: str, recipient: str, text: str) -> MessageRecord:
        """
        Append one message. Only the text is validated (must be non-blank).
        """
        if not text or not text.strip():
            raise PortalValidationError("Message text must not be empty", field="text")

        with self._lock:
            message = MessageRecord(
                id=next(self._ids),
                sender=sender,
                recipient=recipient,
                text=text,
            )
            self._messages.append(message)

        log(log_message_event(message.id, sender, recipient))
        return message

    def broadcast(self, sender: str, text: str) -> MessageRecord:
        return self.append(sender, BROADCAST_ADDRESS, text)

    def conversation(self, a: str, b: str) -> List[MessageRecord]:
        """Messages between a and b, plus admin broadcasts."""
        pair = {(a, b), (b, a)}
        return [
            m for m in self._messages
            if (m.sender, m.recipient) in pair
            or (m.sender == ADMIN_ADDRESS and m.recipient == BROADCAST_ADDRESS)
        ]

    def inbox(self, address: str) -> List[MessageRecord]:
        """Messages addressed to *address*, plus broadcasts."""
        return [
            m for m in self._messages
            if m.recipient == address or m.recipient == BROADCAST_ADDRESS
        ]

    def all(self) -> List[MessageRecord]:
        return list(self._messages)

    def __len__(self) -> int:
        return len(self._messages)


class Notifier:
    """
    Fire-and-forget notification sink backed by the MessageStore.

    A notification that the store rejects is logged, never raised, so a
    workflow's own result is not undone by a failed notice.
    """

    def __init__(self, store: MessageStore):
        self._store = store

    def notify(self, sender: str, recipient: str, text: str) -> Optional[MessageRecord]:
        try:
            return self._store.append(sender, recipient, text)
        except PortalValidationError as e:
            logger.warning(f"Notification {sender}→{recipient} dropped: {e.message}")
            return None

    def fan_out(self, sender: str, recipients: Iterable[str], text: str) -> List[MessageRecord]:
        """One notification per recipient."""
        sent = []
        for recipient in recipients:
            message = self.notify(sender, recipient, text)
            if message is not None:
                sent.append(message)
        return sent
