"""
AlumniHub Application State — the one object that owns every store.

AppState replaces a process-wide mutable data literal: the repository,
message store and boards are built once, the workflows are wired to them,
and the dispatcher only ever reaches data through this object.

    state = AppState.seeded(get_config())
    state.documents.pending()
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from pydantic import BaseModel

from alumnihub import seed
from alumnihub.assistant.faq import FaqAssistant
from alumnihub.boards.events import EventBoard
from alumnihub.boards.jobs import JobBoard
from alumnihub.documents.approval import ApprovalWorkflow
from alumnihub.documents.repository import DocumentRepository
from alumnihub.documents.upload import SleepFn, UploadWorkflow
from alumnihub.engine.config import PortalConfig
from alumnihub.engine.credentials import CredentialManager
from alumnihub.engine.identity import StaticIdentityStore
from alumnihub.engine.security import Authenticator
from alumnihub.messaging.store import MessageStore, Notifier
from alumnihub.storage import RemoteStore, build_store, remote_configured

logger = logging.getLogger("alumnihub.state")


class OrganizationInfo(BaseModel):
    name: str
    short_name: str
    address: str
    portal_name: str


class FundraisingStats(BaseModel):
    total_donations: int = 0
    average_donation: int = 0
    active_campaigns: int = 0
    total_donors: int = 0


class AppState:

    def __init__(
        self,
        config: PortalConfig,
        identities: StaticIdentityStore,
        documents: DocumentRepository,
        messages: MessageStore,
        events: Optional[Iterable] = None,
        jobs: Optional[Iterable] = None,
        fundraising: Optional[FundraisingStats] = None,
        store: Optional[RemoteStore] = None,
        credentials: Optional[CredentialManager] = None,
        sleep: Optional[SleepFn] = None,
    ):
        self.config = config
        self.organization = OrganizationInfo(
            name=config.organization.name,
            short_name=config.organization.short_name,
            address=config.organization.address,
            portal_name=config.name,
        )
        self.fundraising = fundraising or FundraisingStats()
        self.identities = identities
        self.documents = documents
        self.messages = messages
        self.notifier = Notifier(messages)
        self.credentials = credentials or CredentialManager(config.security.secret_key)
        self.store = store if store is not None else build_store(config.storage, self.credentials, sleep=sleep)

        self.events = EventBoard(events, notifier=self.notifier, identity_store=identities)
        self.jobs = JobBoard(jobs, notifier=self.notifier, identity_store=identities)

        self.authenticator = Authenticator(identities)
        self.uploads = UploadWorkflow(
            documents,
            store=self.store,
            notifier=self.notifier,
            config=config.uploads,
            credentials=self.credentials,
            seal_metadata=config.security.seal_metadata,
            sleep=sleep,
        )
        self.approvals = ApprovalWorkflow(documents, notifier=self.notifier)
        self.assistant = FaqAssistant(config.uploads, storage_configured=remote_configured(config.storage))

    @classmethod
    def seeded(
        cls,
        config: Optional[PortalConfig] = None,
        store: Optional[RemoteStore] = None,
        sleep: Optional[SleepFn] = None,
    ) -> "AppState":
        """State pre-loaded with the demo institution, users and records."""
        config = config or PortalConfig()
        identities = StaticIdentityStore.from_credentials(
            seed.credentials(), bcrypt_rounds=config.security.bcrypt_rounds
        )
        state = cls(
            config=config,
            identities=identities,
            documents=DocumentRepository(seed.documents()),
            messages=MessageStore(seed.messages()),
            events=seed.events(),
            jobs=seed.jobs(),
            fundraising=FundraisingStats(**seed.FUNDRAISING),
            store=store,
            sleep=sleep,
        )
        logger.info(
            f"Seeded state: {len(identities)} identities, {len(state.documents)} documents, "
            f"{len(state.events)} events, {len(state.jobs)} jobs"
        )
        return state

    @classmethod
    def empty(
        cls,
        identities: StaticIdentityStore,
        config: Optional[PortalConfig] = None,
        store: Optional[RemoteStore] = None,
        sleep: Optional[SleepFn] = None,
    ) -> "AppState":
        """Bare stores around the given identities."""
        return cls(
            config=config or PortalConfig(),
            identities=identities,
            documents=DocumentRepository(),
            messages=MessageStore(),
            store=store,
            sleep=sleep,
        )

    async def aclose(self) -> None:
        await self.store.aclose()
