"""
AlumniHub Action Dispatcher — the single entry point for user intents.

Every button/form of a view maps to one Action. dispatch() resolves the
action, checks the session and role against ACTION_ROLES, routes to the
owning workflow and returns its result. Errors propagate as PortalError
subclasses; the dispatcher itself stays usable after any failure.

    dispatcher = PortalDispatcher(AppState.seeded())
    await dispatcher.dispatch(Action.LOGIN, email=..., password=..., role="admin")
    await dispatcher.dispatch(Action.APPROVE_DOCUMENT, document_id="doc2")
"""

from __future__ import annotations

import inspect
import logging
import time
from enum import Enum
from typing import Any, Callable, Dict, FrozenSet, List, Optional, Union

from alumnihub.boards.models import EventRecord, EventRegistration, JobApplication, JobRecord
from alumnihub.dashboard import admin_dashboard, alumni_dashboard
from alumnihub.documents.approval import BULK_APPROVE_COMMENT
from alumnihub.documents.models import DocumentRecord, DocumentStatus, UploadFile, UploadResult
from alumnihub.documents.upload import CancellationToken
from alumnihub.engine.context import SessionContext, get_session_context, require_session_context
from alumnihub.engine.errors import PermissionDeniedError, PortalDispatchError, PortalError, PortalValidationError
from alumnihub.engine.identity import ADMIN_ADDRESS, BROADCAST_ADDRESS, Role
from alumnihub.engine.logging import log, log_system_event
from alumnihub.engine.security import require_role
from alumnihub.messaging.models import MessageRecord
from alumnihub.state import AppState

logger = logging.getLogger("alumnihub.actions")


class Action(str, Enum):
    LOGIN = "login"
    LOGOUT = "logout"
    UPLOAD_DOCUMENT = "upload_document"
    APPROVE_DOCUMENT = "approve_document"
    REJECT_DOCUMENT = "reject_document"
    BULK_APPROVE = "bulk_approve"
    SELECT_DOCUMENT = "select_document"
    SEND_MESSAGE = "send_message"
    OPEN_CHAT = "open_chat"
    CREATE_EVENT = "create_event"
    UPDATE_EVENT = "update_event"
    TOGGLE_EVENT = "toggle_event"
    REGISTER_EVENT = "register_event"
    CREATE_JOB = "create_job"
    UPDATE_JOB = "update_job"
    TOGGLE_JOB = "toggle_job"
    APPLY_JOB = "apply_job"
    LIST_APPLICATIONS = "list_applications"
    ASK_ASSISTANT = "ask_assistant"


_ANY = frozenset({Role.ADMIN, Role.ALUMNI})
_ADMIN = frozenset({Role.ADMIN})
_ALUMNI = frozenset({Role.ALUMNI})

ACTION_ROLES: Dict[Action, FrozenSet[Role]] = {
    Action.LOGIN: _ANY,
    Action.LOGOUT: _ANY,
    Action.UPLOAD_DOCUMENT: _ALUMNI,
    Action.APPROVE_DOCUMENT: _ADMIN,
    Action.REJECT_DOCUMENT: _ADMIN,
    Action.BULK_APPROVE: _ADMIN,
    Action.SELECT_DOCUMENT: _ADMIN,
    Action.SEND_MESSAGE: _ANY,
    Action.OPEN_CHAT: _ANY,
    Action.CREATE_EVENT: _ADMIN,
    Action.UPDATE_EVENT: _ADMIN,
    Action.TOGGLE_EVENT: _ADMIN,
    Action.REGISTER_EVENT: _ALUMNI,
    Action.CREATE_JOB: _ADMIN,
    Action.UPDATE_JOB: _ADMIN,
    Action.TOGGLE_JOB: _ADMIN,
    Action.APPLY_JOB: _ALUMNI,
    Action.LIST_APPLICATIONS: _ADMIN,
    Action.ASK_ASSISTANT: _ANY,
}

# Actions that run without a session
_PUBLIC = frozenset({Action.LOGIN})


class PortalDispatcher:
    """
    Routes actions for the session published on the current context.

    Handlers take the active SessionContext (None for LOGIN) followed by
    the action payload as keyword arguments.
    """

    def __init__(self, state: AppState):
        self.state = state
        self._handlers: Dict[Action, Callable[..., Any]] = {
            Action.LOGIN: self._login,
            Action.LOGOUT: self._logout,
            Action.UPLOAD_DOCUMENT: self._upload_document,
            Action.APPROVE_DOCUMENT: self._approve_document,
            Action.REJECT_DOCUMENT: self._reject_document,
            Action.BULK_APPROVE: self._bulk_approve,
            Action.SELECT_DOCUMENT: self._select_document,
            Action.SEND_MESSAGE: self._send_message,
            Action.OPEN_CHAT: self._open_chat,
            Action.CREATE_EVENT: self._create_event,
            Action.UPDATE_EVENT: self._update_event,
            Action.TOGGLE_EVENT: self._toggle_event,
            Action.REGISTER_EVENT: self._register_event,
            Action.CREATE_JOB: self._create_job,
            Action.UPDATE_JOB: self._update_job,
            Action.TOGGLE_JOB: self._toggle_job,
            Action.APPLY_JOB: self._apply_job,
            Action.LIST_APPLICATIONS: self._list_applications,
            Action.ASK_ASSISTANT: self._ask_assistant,
        }

    @property
    def session(self) -> Optional[SessionContext]:
        return get_session_context()

    async def dispatch(self, action: Union[Action, str], **payload: Any) -> Any:
        """
        Run one action.

        Raises:
            PortalDispatchError: unknown action or payload not accepted.
            PortalAuthError: no session, or the session's role is not allowed.
            PortalError: whatever the routed workflow raises.
        """
        action = self._resolve(action)
        handler = self._handlers[action]

        session: Optional[SessionContext] = None
        if action not in _PUBLIC:
            session = require_session_context()
            require_role(session.identity, *sorted(ACTION_ROLES[action]), action=action.value)

        try:
            inspect.signature(handler).bind(session, **payload)
        except TypeError as e:
            raise PortalDispatchError(
                f"Bad payload for '{action.value}': {e}",
                object_ref=f"actions.{action.value}",
                action=action.value,
            ) from e

        start_time = time.monotonic()
        try:
            result = handler(session, **payload)
            if inspect.isawaitable(result):
                result = await result
        except PortalError as e:
            duration_ms = (time.monotonic() - start_time) * 1000
            logger.info(f"Action {action.value} failed: {e.error_type}: {e.message}")
            log(log_system_event("action_failed", "WARNING", {
                "action": action.value,
                "error_type": e.error_type,
                "message": e.message,
                "duration_ms": round(duration_ms, 2),
            }))
            raise

        logger.debug(f"Action {action.value} completed in {(time.monotonic() - start_time) * 1000:.1f}ms")
        return result

    @staticmethod
    def _resolve(action: Union[Action, str]) -> Action:
        try:
            return Action(action)
        except ValueError as e:
            raise PortalDispatchError(
                f"Unknown action: {action}",
                object_ref=f"actions.{action}",
                action=str(action),
            ) from e

    # -------------------------------------------------------------------
    # Read-only view
    # -------------------------------------------------------------------

    def snapshot(self, status: Optional[Union[DocumentStatus, str]] = None) -> Dict[str, Any]:
        """
        Plain-dict view for rendering. Alumni only see their own documents
        and active events/jobs; admins see everything.
        """
        session = self.session
        if session is None:
            return {"session": None, "organization": self.state.organization.model_dump()}

        status = DocumentStatus(status) if status else None
        if session.is_admin:
            documents = self.state.documents.list(status=status)
            events = self.state.events.list()
            jobs = self.state.jobs.list()
            dashboard = admin_dashboard(self.state)
        else:
            documents = self.state.documents.list(status=status, owner=session.email)
            events = self.state.events.active_events()
            jobs = self.state.jobs.active_jobs()
            dashboard = alumni_dashboard(self.state, session.email)

        chat_with = session.active_chat if session.is_admin else ADMIN_ADDRESS
        conversation = self.state.messages.conversation(session.address, chat_with) if chat_with else []

        return {
            "session": session.to_dict(),
            "organization": self.state.organization.model_dump(),
            "dashboard": dashboard,
            "documents": [d.model_dump(mode="json") for d in documents],
            "selected_document": session.selected_document,
            "active_chat": chat_with,
            "conversation": [m.model_dump(mode="json") for m in conversation],
            "events": [e.model_dump(mode="json") for e in events],
            "jobs": [j.model_dump(mode="json") for j in jobs],
        }

    # -------------------------------------------------------------------
    # Auth
    # -------------------------------------------------------------------

    def _login(self, session: None, email: str, password: str, role: Union[Role, str]) -> SessionContext:
        try:
            role = Role(role)
        except ValueError as e:
            raise PortalValidationError(f"Unknown role: {role}", field="role") from e
        return self.state.authenticator.authenticate(email, password, role)

    def _logout(self, session: SessionContext) -> None:
        self.state.authenticator.logout(session)

    # -------------------------------------------------------------------
    # Documents
    # -------------------------------------------------------------------

    async def _upload_document(
        self,
        session: SessionContext,
        file: UploadFile,
        category: str,
        title: str,
        cancel_token: Optional[CancellationToken] = None,
    ) -> UploadResult:
        return await self.state.uploads.upload(
            file, session.email, category, title, cancel_token=cancel_token
        )

    def _approve_document(self, session: SessionContext, document_id: str, comment: str = "") -> DocumentRecord:
        doc = self.state.approvals.approve(document_id, comment, actor=session.identity)
        session.selected_document = None
        return doc

    def _reject_document(self, session: SessionContext, document_id: str, comment: str = "") -> DocumentRecord:
        doc = self.state.approvals.reject(document_id, comment, actor=session.identity)
        session.selected_document = None
        return doc

    def _bulk_approve(self, session: SessionContext, comment: str = BULK_APPROVE_COMMENT) -> List[DocumentRecord]:
        return self.state.approvals.bulk_approve(actor=session.identity, comment=comment)

    def _select_document(self, session: SessionContext, document_id: str) -> DocumentRecord:
        doc = self.state.documents.get(document_id)
        session.selected_document = doc.id
        return doc

    # -------------------------------------------------------------------
    # Messaging
    # -------------------------------------------------------------------

    def _send_message(self, session: SessionContext, text: str, recipient: Optional[str] = None) -> MessageRecord:
        if session.is_admin:
            recipient = recipient or session.active_chat
            if not recipient:
                raise PortalValidationError("Select a conversation first.", field="recipient")
        else:
            recipient = recipient or ADMIN_ADDRESS
            if recipient == BROADCAST_ADDRESS:
                raise PermissionDeniedError(
                    "Only the admin can message everyone",
                    object_ref="actions.send_message",
                    user_id=session.email,
                    required_roles=[Role.ADMIN.value],
                )
        return self.state.messages.append(session.address, recipient, text)

    def _open_chat(self, session: SessionContext, address: Optional[str] = None) -> List[MessageRecord]:
        if session.is_admin:
            if not address:
                raise PortalValidationError("Choose an alumni to chat with.", field="address")
            session.active_chat = address
        else:
            session.active_chat = ADMIN_ADDRESS
        return self.state.messages.conversation(session.address, session.active_chat)

    # -------------------------------------------------------------------
    # Events & jobs
    # -------------------------------------------------------------------

    def _create_event(
        self,
        session: SessionContext,
        title: str,
        date: Any,
        capacity: int,
        description: str = "",
        time: str = "",
        venue: str = "",
    ) -> EventRecord:
        return self.state.events.create_event(
            session.identity, title, date, capacity,
            description=description, time=time, venue=venue,
        )

    def _update_event(self, session: SessionContext, event_id: str, **fields: Any) -> EventRecord:
        return self.state.events.update_event(session.identity, event_id, **fields)

    def _toggle_event(self, session: SessionContext, event_id: str) -> EventRecord:
        return self.state.events.toggle_event(session.identity, event_id)

    def _register_event(self, session: SessionContext, event_id: str) -> EventRegistration:
        return self.state.events.register(event_id, session.identity)

    def _create_job(
        self,
        session: SessionContext,
        title: str,
        company: str,
        deadline: Any,
        location: str = "",
        salary: str = "",
        description: str = "",
        requirements: str = "",
    ) -> JobRecord:
        return self.state.jobs.create_job(
            session.identity, title, company, deadline,
            location=location, salary=salary, description=description, requirements=requirements,
        )

    def _update_job(self, session: SessionContext, job_id: str, **fields: Any) -> JobRecord:
        return self.state.jobs.update_job(session.identity, job_id, **fields)

    def _toggle_job(self, session: SessionContext, job_id: str) -> JobRecord:
        return self.state.jobs.toggle_job(session.identity, job_id)

    def _apply_job(self, session: SessionContext, job_id: str) -> JobApplication:
        return self.state.jobs.apply(job_id, session.identity)

    def _list_applications(self, session: SessionContext, job_id: str) -> List[JobApplication]:
        return self.state.jobs.applications_for(job_id)

    # -------------------------------------------------------------------
    # Assistant
    # -------------------------------------------------------------------

    def _ask_assistant(self, session: SessionContext, question: str) -> str:
        return self.state.assistant.answer(question)
