"""
Supabase store — blob upload to Storage, metadata row insert via PostgREST.

Endpoints:
    POST {url}/storage/v1/object/{bucket}/{path}   (raw file body)
    POST {url}/rest/v1/{table}                     (JSON row, return=representation)

Error mapping:
    timeouts / transport errors / 429 / 5xx → TransientStoreError (retried)
    other 4xx                               → StoreError (not retried)
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from alumnihub.engine.errors import StoreError, TransientStoreError
from alumnihub.storage.base import RemoteStore, StoredObject

logger = logging.getLogger("alumnihub.storage.supabase")


class SupabaseStore(RemoteStore):

    name = "supabase"

    def __init__(
        self,
        url: str,
        bucket: str,
        table: str,
        headers: Dict[str, str],
        timeout: float = 30,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._bucket = bucket
        self._table = table
        self._client = httpx.AsyncClient(
            base_url=url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def store(self, path: str, data: bytes, content_type: str) -> StoredObject:
        response = await self._request(
            "POST",
            f"/storage/v1/object/{self._bucket}/{quote(path)}",
            content=data,
            headers={"Content-Type": content_type, "x-upsert": "false"},
        )
        body = self._json(response)
        # Storage answers {"Key": "<bucket>/<path>"}; callers want the in-bucket path
        key = body.get("Key") if isinstance(body, dict) else None
        if key and key.startswith(f"{self._bucket}/"):
            key = key[len(self._bucket) + 1:]
        return StoredObject(path=key or path)

    async def insert_metadata(self, record: Dict[str, Any]) -> str:
        response = await self._request(
            "POST",
            f"/rest/v1/{self._table}",
            json=record,
            headers={"Prefer": "return=representation"},
        )
        rows = self._json(response)
        if isinstance(rows, list) and rows and "id" in rows[0]:
            return str(rows[0]["id"])
        return str(record.get("id", ""))

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._client.request(method, url, **kwargs)
        except (httpx.TimeoutException, httpx.TransportError) as e:
            raise TransientStoreError(
                f"{type(e).__name__} calling {url}: {e}",
                store=self.name,
                object_ref=url,
            ) from e

        status = response.status_code
        if 200 <= status < 300:
            return response
        if status == 429 or status >= 500:
            raise TransientStoreError(
                f"Store returned HTTP {status}",
                store=self.name,
                status_code=status,
                object_ref=url,
            )
        raise StoreError(
            f"Store rejected request with HTTP {status}: {response.text[:200]}",
            store=self.name,
            status_code=status,
            object_ref=url,
        )

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return None
