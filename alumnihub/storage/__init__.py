"""
AlumniHub Storage — remote document store adapters.

build_store() picks SupabaseStore when a URL and API key are configured,
otherwise SimulatedStore, so the upload workflow stays backend-agnostic.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Optional

from alumnihub.engine.config import StorageConfig
from alumnihub.engine.credentials import CredentialManager
from alumnihub.storage.base import RemoteStore, StoredObject
from alumnihub.storage.simulated import SimulatedStore
from alumnihub.storage.supabase import SupabaseStore

logger = logging.getLogger("alumnihub.storage")

__all__ = [
    "RemoteStore",
    "SimulatedStore",
    "StoredObject",
    "SupabaseStore",
    "build_store",
    "remote_configured",
]


def remote_configured(config: StorageConfig) -> bool:
    """True when a URL and an API key (config or ALUMNIHUB_STORAGE_KEY) are both present."""
    return bool(config.url and CredentialManager.resolve_storage_key(config.api_key))


def build_store(
    config: StorageConfig,
    credentials: Optional[CredentialManager] = None,
    sleep: Optional[Callable[[float], Awaitable[None]]] = None,
) -> RemoteStore:
    """
    ``sleep`` only reaches the simulated store, where it paces the fake latency.
    """
    api_key = CredentialManager.resolve_storage_key(config.api_key)
    if config.url and api_key:
        credentials = credentials or CredentialManager()
        logger.info(f"Using Supabase store at {config.url} (bucket={config.bucket})")
        return SupabaseStore(
            url=config.url,
            bucket=config.bucket,
            table=config.table,
            headers=credentials.storage_headers(api_key),
            timeout=config.timeout,
        )
    logger.warning("Remote store not configured - using simulated storage")
    return SimulatedStore(
        latency_min=config.simulated_latency_min,
        latency_max=config.simulated_latency_max,
        sleep=sleep,
    )
