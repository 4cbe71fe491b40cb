"""
AlumniHub Test Suite — Shared fixtures and configuration.

Run:  pytest tests/ -v
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import pytest

from alumnihub.engine.errors import TransientStoreError
from alumnihub.storage.base import RemoteStore, StoredObject

FAST_BCRYPT_ROUNDS = 4


# ---------------------------------------------------------------------------
# Global state isolation
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _isolate_globals(monkeypatch):
    """Reset config, session and log queue singletons between tests."""
    import alumnihub.engine.config as cfg_mod
    from alumnihub.engine.context import clear_session_context
    from alumnihub.engine.logging import shutdown_logging

    monkeypatch.delenv("ALUMNIHUB_STORAGE_KEY", raising=False)
    monkeypatch.delenv("ALUMNIHUB_SECRET_KEY", raising=False)
    cfg_mod._config = None
    clear_session_context()
    yield
    clear_session_context()
    shutdown_logging()
    cfg_mod._config = None


# ---------------------------------------------------------------------------
# Test doubles
# ---------------------------------------------------------------------------

class RecordingSleep:
    """Awaitable stand-in for asyncio.sleep that records every wait."""

    def __init__(self):
        self.waits: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.waits.append(seconds)


class ScriptedStore(RemoteStore):
    """
    RemoteStore whose outcomes are scripted per call.

    ``store_script`` / ``metadata_script`` hold one entry per call: None
    means succeed, an exception instance is raised. Calls beyond the
    script succeed.
    """

    name = "scripted"

    def __init__(
        self,
        store_script: Optional[List[Optional[Exception]]] = None,
        metadata_script: Optional[List[Optional[Exception]]] = None,
    ):
        self.store_script = list(store_script or [])
        self.metadata_script = list(metadata_script or [])
        self.store_calls: List[Dict[str, Any]] = []
        self.metadata_calls: List[Dict[str, Any]] = []

    async def store(self, path: str, data: bytes, content_type: str) -> StoredObject:
        self.store_calls.append({"path": path, "size": len(data), "content_type": content_type})
        outcome = self.store_script.pop(0) if self.store_script else None
        if outcome is not None:
            raise outcome
        return StoredObject(path=path)

    async def insert_metadata(self, record: Dict[str, Any]) -> str:
        self.metadata_calls.append(dict(record))
        outcome = self.metadata_script.pop(0) if self.metadata_script else None
        if outcome is not None:
            raise outcome
        return f"remote-{len(self.metadata_calls)}"


def transient(n: int) -> List[Exception]:
    return [TransientStoreError(f"hiccup {i + 1}", store="scripted") for i in range(n)]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def scripted_store():
    return ScriptedStore()


@pytest.fixture
def fast_config():
    """Default PortalConfig with cheap bcrypt."""
    from alumnihub.engine.config import PortalConfig, SecurityConfig

    return PortalConfig(security=SecurityConfig(bcrypt_rounds=FAST_BCRYPT_ROUNDS))


@pytest.fixture(scope="session")
def identity_store():
    """Demo identities (one admin, five alumni), hashed with cheap bcrypt."""
    from alumnihub import seed
    from alumnihub.engine.identity import StaticIdentityStore

    return StaticIdentityStore.from_credentials(seed.credentials(), bcrypt_rounds=FAST_BCRYPT_ROUNDS)


@pytest.fixture
def admin_identity(identity_store):
    return identity_store.admin


@pytest.fixture
def alumni_identity(identity_store):
    return identity_store.lookup("diana@jit.example").identity


@pytest.fixture
def other_alumni(identity_store):
    return identity_store.lookup("arundhathi@jit.example").identity


@pytest.fixture
def app_state(fast_config, scripted_store, recording_sleep):
    """Seeded state wired to the scripted store and recording sleep."""
    from alumnihub.state import AppState

    return AppState.seeded(fast_config, store=scripted_store, sleep=recording_sleep)


@pytest.fixture
def pdf_file():
    from alumnihub.documents.models import UploadFile

    return UploadFile(name="transcript.pdf", data=b"%PDF-1.4 test document", content_type="application/pdf")
