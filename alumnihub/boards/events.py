"""
AlumniHub Event Board — admin-managed events with capacity-bounded registration.
"""

from __future__ import annotations

import datetime as dt
import logging
from typing import Iterable, List, Optional

from alumnihub.boards.base import RecordBoard
from alumnihub.boards.models import BoardStatus, EventRecord, EventRegistration
from alumnihub.engine.errors import EventFullError
from alumnihub.engine.identity import Identity, IdentityStore, Role
from alumnihub.engine.logging import log, log_board_event
from alumnihub.engine.security import require_role
from alumnihub.messaging.store import Notifier

logger = logging.getLogger("alumnihub.boards.events")


class EventBoard(RecordBoard[EventRecord]):

    record_type = "event"
    editable_fields = frozenset({"title", "description", "date", "time", "venue", "capacity"})

    def __init__(
        self,
        events: Optional[Iterable[EventRecord]] = None,
        registrations: Optional[Iterable[EventRegistration]] = None,
        notifier: Optional[Notifier] = None,
        identity_store: Optional[IdentityStore] = None,
    ):
        super().__init__(events, notifier=notifier, identity_store=identity_store)
        self._registrations: List[EventRegistration] = list(registrations or [])

    def create_event(
        self,
        actor: Optional[Identity],
        title: str,
        date: dt.date,
        capacity: int,
        description: str = "",
        time: str = "",
        venue: str = "",
    ) -> EventRecord:
        """Post a new active event and announce it to every alumni."""
        actor = require_role(actor, Role.ADMIN, action="create_event")
        event = self._build(
            EventRecord,
            title=title,
            date=date,
            capacity=capacity,
            description=description,
            time=time,
            venue=venue,
            created_by=actor.email,
        )
        self._add(event)
        sent = self._announce(f"New event: {event.title} - registration now open!")
        log(log_board_event("events", "event_created", event.id, capacity=capacity, notified=sent))
        logger.info(f"Event {event.id} created by {actor.email}, {sent} alumni notified")
        return event

    def update_event(self, actor: Optional[Identity], event_id: str, **fields) -> EventRecord:
        return self.update(actor, event_id, **fields)

    def toggle_event(self, actor: Optional[Identity], event_id: str) -> EventRecord:
        return self.toggle(actor, event_id)

    def register(self, event_id: str, identity: Identity) -> EventRegistration:
        """
        Take one seat for *identity*.

        Raises:
            PortalNotFoundError: unknown event.
            InvalidTransitionError: event is inactive.
            EventFullError: no seats left; nothing changes.
        """
        with self._lock:
            event = self.get(event_id)
            self._require_active(event)
            if event.is_full:
                log(log_board_event("events", "registration_refused", event_id, reason="full"))
                raise EventFullError(
                    f"Event '{event.title}' is full",
                    object_ref=f"events.{event_id}",
                    user_id=identity.email,
                    capacity=event.capacity,
                )
            event.registered += 1
            registration = EventRegistration(
                event_id=event.id,
                user_email=identity.email,
                user_name=identity.display_name,
            )
            self._registrations.append(registration)

        log(log_board_event("events", "registered", event_id, registered=event.registered))
        logger.info(f"{identity.email} registered for {event.title} ({event.registered}/{event.capacity})")
        return registration

    def active_events(self) -> List[EventRecord]:
        return self.list(BoardStatus.ACTIVE)

    def registrations_for(self, identity: Identity) -> List[EventRegistration]:
        return [r for r in self._registrations if r.user_email == identity.email]

    def registrations(self, event_id: Optional[str] = None) -> List[EventRegistration]:
        return [r for r in self._registrations if event_id is None or r.event_id == event_id]
