"""AlumniHub Messaging — append-only message log and notification sink."""

from alumnihub.messaging.models import MessageRecord
from alumnihub.messaging.store import MessageStore, Notifier

__all__ = [
    "MessageRecord",
    "MessageStore",
    "Notifier",
]
