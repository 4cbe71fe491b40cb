"""Unit tests for alumnihub.messaging — MessageStore and Notifier."""

import pytest

from alumnihub.engine.errors import PortalValidationError
from alumnihub.engine.identity import ADMIN_ADDRESS, BROADCAST_ADDRESS
from alumnihub.messaging import MessageRecord, MessageStore, Notifier


class TestMessageStore:

    def setup_method(self):
        self.store = MessageStore()

    def test_append_assigns_increasing_ids(self):
        first = self.store.append("diana@jit.example", ADMIN_ADDRESS, "Hello")
        second = self.store.append(ADMIN_ADDRESS, "diana@jit.example", "Hi Diana")
        assert (first.id, second.id) == (1, 2)
        assert first.status == "delivered"
        assert len(self.store) == 2

    def test_ids_continue_after_seed(self):
        seeded = MessageStore([MessageRecord(id=7, sender=ADMIN_ADDRESS, recipient=BROADCAST_ADDRESS, text="Welcome")])
        assert seeded.append("gowri@jit.example", ADMIN_ADDRESS, "Thanks").id == 8

    @pytest.mark.parametrize("text", ["", "   ", "\n"])
    def test_blank_text_rejected(self, text):
        with pytest.raises(PortalValidationError) as exc_info:
            self.store.append("diana@jit.example", ADMIN_ADDRESS, text)
        assert exc_info.value.field == "text"
        assert len(self.store) == 0

    def test_recipient_not_validated(self):
        message = self.store.append(ADMIN_ADDRESS, "nobody@jit.example", "Are you there?")
        assert message.recipient == "nobody@jit.example"

    def test_conversation_both_directions_and_broadcasts(self):
        self.store.broadcast(ADMIN_ADDRESS, "Reunion on Saturday")
        self.store.append("diana@jit.example", ADMIN_ADDRESS, "Question")
        self.store.append("gowri@jit.example", ADMIN_ADDRESS, "Other thread")
        self.store.append(ADMIN_ADDRESS, "diana@jit.example", "Answer")

        texts = [m.text for m in self.store.conversation("diana@jit.example", ADMIN_ADDRESS)]
        assert texts == ["Reunion on Saturday", "Question", "Answer"]

    def test_conversation_is_symmetric(self):
        self.store.append("diana@jit.example", ADMIN_ADDRESS, "Question")
        self.store.append(ADMIN_ADDRESS, "diana@jit.example", "Answer")
        assert self.store.conversation(ADMIN_ADDRESS, "diana@jit.example") == \
            self.store.conversation("diana@jit.example", ADMIN_ADDRESS)

    def test_inbox(self):
        self.store.broadcast(ADMIN_ADDRESS, "News")
        self.store.append(ADMIN_ADDRESS, "diana@jit.example", "For Diana")
        self.store.append(ADMIN_ADDRESS, "gowri@jit.example", "For Gowri")
        assert [m.text for m in self.store.inbox("diana@jit.example")] == ["News", "For Diana"]

    def test_records_are_immutable(self):
        message = self.store.append("diana@jit.example", ADMIN_ADDRESS, "Hello")
        with pytest.raises(Exception):
            message.text = "changed"
        assert message.is_broadcast is False

    def test_all_returns_copy(self):
        self.store.append("diana@jit.example", ADMIN_ADDRESS, "Hello")
        snapshot = self.store.all()
        snapshot.clear()
        assert len(self.store) == 1


class TestNotifier:

    def setup_method(self):
        self.store = MessageStore()
        self.notifier = Notifier(self.store)

    def test_notify_appends(self):
        message = self.notifier.notify("diana@jit.example", ADMIN_ADDRESS, "New upload")
        assert message is not None
        assert self.store.all() == [message]

    def test_rejected_notification_is_swallowed(self):
        assert self.notifier.notify(ADMIN_ADDRESS, "diana@jit.example", "  ") is None
        assert len(self.store) == 0

    def test_fan_out_one_per_recipient(self):
        recipients = ["a@jit.example", "b@jit.example", "c@jit.example"]
        sent = self.notifier.fan_out(ADMIN_ADDRESS, recipients, "New event")
        assert [m.recipient for m in sent] == recipients
        assert len(self.store) == 3
