"""
Simulated store — used when no remote store is configured.

Keeps the upload success contract (a path and an id come back) so callers
never need to know which backend ran. Paths are prefixed with ``mock/``.
"""

from __future__ import annotations

import asyncio
import logging
import random
import uuid
from typing import Any, Awaitable, Callable, Dict, List, Optional

from alumnihub.engine.errors import TransientStoreError
from alumnihub.storage.base import RemoteStore, StoredObject

logger = logging.getLogger("alumnihub.storage.simulated")


class SimulatedStore(RemoteStore):
    """
    Sleeps a uniform random latency per blob upload, then succeeds.

    ``failures`` makes the first N ``store()`` calls raise
    TransientStoreError, which exercises the retry path in demos.
    """

    name = "simulated"

    def __init__(
        self,
        latency_min: float = 1.0,
        latency_max: float = 3.0,
        failures: int = 0,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
        rng: Optional[random.Random] = None,
    ):
        self._latency_min = latency_min
        self._latency_max = latency_max
        self._failures_left = failures
        self._sleep = sleep or asyncio.sleep
        self._rng = rng or random.Random()
        self.stored: List[str] = []
        self.rows: List[Dict[str, Any]] = []

    async def store(self, path: str, data: bytes, content_type: str) -> StoredObject:
        await self._sleep(self._rng.uniform(self._latency_min, self._latency_max))
        if self._failures_left > 0:
            self._failures_left -= 1
            raise TransientStoreError("Simulated network hiccup", store=self.name)
        mock_path = f"mock/{path}"
        self.stored.append(mock_path)
        logger.info(f"Simulated upload of {len(data)} bytes to {mock_path}")
        return StoredObject(path=mock_path)

    async def insert_metadata(self, record: Dict[str, Any]) -> str:
        self.rows.append(dict(record))
        return uuid.uuid4().hex
