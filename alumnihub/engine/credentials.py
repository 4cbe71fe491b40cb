"""
AlumniHub Credential Manager — Fernet encryption for secrets and sealed
document metadata, plus auth headers for the remote document store.

Security model:
    - Fernet (AES-128-CBC + HMAC-SHA256): tampering is detected on decrypt
    - Key derived from ALUMNIHUB_SECRET_KEY env var, then security.secret_key,
      then a dev default that must not be used in production
    - Storage API key comes from ALUMNIHUB_STORAGE_KEY or storage.api_key
"""

from __future__ import annotations

import base64
import hashlib
import json
import logging
import os
from typing import Any, Dict, Optional

from cryptography.fernet import Fernet, InvalidToken

from alumnihub.engine.errors import PortalAuthError

logger = logging.getLogger("alumnihub.engine.credentials")

_DEFAULT_SECRET_KEY = "alumnihub-dev-key-change-in-production"


class CredentialManager:
    """
    Encrypts/decrypts JSON blobs and builds storage auth headers.

    Usage:
        manager = CredentialManager(secret_key="...")
        token = manager.seal({"original_name": "cv.pdf", ...})
        manager.unseal(token)  # → dict
    """

    def __init__(self, secret_key: Optional[str] = None):
        self._fernet = self._build_fernet(secret_key)

    @staticmethod
    def _build_fernet(secret_key: Optional[str] = None) -> Fernet:
        key_source = (
            os.environ.get("ALUMNIHUB_SECRET_KEY")
            or secret_key
            or _DEFAULT_SECRET_KEY
        )
        if key_source == _DEFAULT_SECRET_KEY:
            logger.warning("Using the development secret key")

        # Fernet wants a url-safe base64 32-byte key
        derived = hashlib.sha256(key_source.encode("utf-8")).digest()
        return Fernet(base64.urlsafe_b64encode(derived))

    # -----------------------------------------------------------------------
    # Encrypt / Decrypt
    # -----------------------------------------------------------------------

    def encrypt(self, payload: Dict[str, Any]) -> bytes:
        data = json.dumps(payload, sort_keys=True, default=str).encode("utf-8")
        return self._fernet.encrypt(data)

    def decrypt(self, encrypted: bytes) -> Dict[str, Any]:
        """
        Raises:
            PortalAuthError: wrong key or tampered token.
        """
        try:
            decrypted = self._fernet.decrypt(encrypted)
            return json.loads(decrypted.decode("utf-8"))
        except InvalidToken:
            raise PortalAuthError(
                "Failed to decrypt payload: encryption key may have changed",
                object_ref="engine.credentials",
            )
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise PortalAuthError(
                f"Corrupted encrypted payload: {e}",
                object_ref="engine.credentials",
            )

    def seal(self, metadata: Dict[str, Any]) -> str:
        """Encrypt metadata to a text token suitable for a DB column."""
        return self.encrypt(metadata).decode("ascii")

    def unseal(self, token: str) -> Dict[str, Any]:
        return self.decrypt(token.encode("ascii"))

    # -----------------------------------------------------------------------
    # Remote store auth
    # -----------------------------------------------------------------------

    @staticmethod
    def resolve_storage_key(configured: Optional[str] = None) -> Optional[str]:
        return os.environ.get("ALUMNIHUB_STORAGE_KEY") or configured

    def storage_headers(self, api_key: Optional[str]) -> Dict[str, str]:
        """Headers for the Supabase storage + REST endpoints."""
        key = self.resolve_storage_key(api_key)
        if not key:
            logger.warning("No storage API key configured")
            return {}
        return {
            "apikey": key,
            "Authorization": f"Bearer {key}",
        }
