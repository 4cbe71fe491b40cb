"""
Remote storage collaborator contract.

The upload workflow treats ``store()`` + ``insert_metadata()`` as one
logical attempt. Implementations signal retryable failures with
TransientStoreError and permanent ones with StoreError.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict

from pydantic import BaseModel


class StoredObject(BaseModel):
    path: str


class RemoteStore(ABC):
    """Blob + metadata store used by the upload workflow."""

    name: str = "remote"

    @property
    def available(self) -> bool:
        return True

    @abstractmethod
    async def store(self, path: str, data: bytes, content_type: str) -> StoredObject:
        """Persist the blob. Returns the path as the store recorded it."""

    @abstractmethod
    async def insert_metadata(self, record: Dict[str, Any]) -> str:
        """Insert the document row. Returns the store-assigned id."""

    async def aclose(self) -> None:
        return None
