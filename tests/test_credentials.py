"""Unit tests for alumnihub.engine.credentials — CredentialManager."""

import pytest

from alumnihub.engine.credentials import CredentialManager
from alumnihub.engine.errors import PortalAuthError


class TestCredentialManager:

    def setup_method(self):
        self.secret_key = "test-secret-key-for-unit-tests-only"
        self.mgr = CredentialManager(secret_key=self.secret_key)

    def test_encrypt_decrypt_roundtrip(self):
        payload = {"original_name": "cv.pdf", "category": "Resumes & CVs"}
        encrypted = self.mgr.encrypt(payload)
        assert isinstance(encrypted, bytes)
        assert self.mgr.decrypt(encrypted) == payload

    def test_seal_is_text_and_opaque(self):
        token = self.mgr.seal({"owner": "diana@jit.example"})
        assert isinstance(token, str)
        assert "diana" not in token
        assert self.mgr.unseal(token) == {"owner": "diana@jit.example"}

    def test_wrong_key_fails(self):
        encrypted = self.mgr.encrypt({"a": 1})
        other = CredentialManager(secret_key="completely-different-secret-key!!!")
        with pytest.raises(PortalAuthError):
            other.decrypt(encrypted)

    def test_tampered_token_fails(self):
        token = self.mgr.seal({"a": 1})
        tampered = token[:-4] + ("AAAA" if not token.endswith("AAAA") else "BBBB")
        with pytest.raises(PortalAuthError):
            self.mgr.unseal(tampered)

    def test_env_key_takes_precedence(self, monkeypatch):
        encrypted = CredentialManager(secret_key="from-env").encrypt({"a": 1})
        monkeypatch.setenv("ALUMNIHUB_SECRET_KEY", "from-env")
        assert CredentialManager(secret_key="ignored").decrypt(encrypted) == {"a": 1}

    def test_dev_default_key_works(self):
        mgr = CredentialManager()
        assert mgr.decrypt(mgr.encrypt({"x": "y"})) == {"x": "y"}


class TestStorageHeaders:

    def test_headers(self):
        headers = CredentialManager(secret_key="k").storage_headers("anon-key")
        assert headers == {"apikey": "anon-key", "Authorization": "Bearer anon-key"}

    def test_env_storage_key_wins(self, monkeypatch):
        monkeypatch.setenv("ALUMNIHUB_STORAGE_KEY", "env-key")
        assert CredentialManager.resolve_storage_key("configured") == "env-key"
        assert CredentialManager(secret_key="k").storage_headers("configured")["apikey"] == "env-key"

    def test_no_key_no_headers(self):
        assert CredentialManager(secret_key="k").storage_headers(None) == {}
