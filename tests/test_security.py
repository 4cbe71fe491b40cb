"""Unit tests for alumnihub.engine.security and identity — hashing, login, role gates."""

import pytest

from alumnihub.engine.context import get_session_context
from alumnihub.engine.errors import (
    InvalidCredentialsError,
    PermissionDeniedError,
    PortalAuthError,
    PortalValidationError,
)
from alumnihub.engine.identity import (
    ADMIN_ADDRESS,
    Identity,
    IdentityRecord,
    IdentityStore,
    Role,
    StaticIdentityStore,
)
from alumnihub.engine.security import Authenticator, hash_password, require_role, verify_password
from alumnihub.seed import ADMIN_EMAIL, ADMIN_PASSWORD


class TestPasswordHashing:

    def test_hash_and_verify(self):
        hashed = hash_password("s3cret", rounds=4)
        assert hashed != "s3cret"
        assert hashed.startswith("$2")
        assert verify_password("s3cret", hashed) is True
        assert verify_password("wrong", hashed) is False

    def test_malformed_hash_is_false(self):
        assert verify_password("anything", "not-a-bcrypt-hash") is False


class TestIdentity:

    def test_admin_address_is_admin_inbox(self):
        admin = Identity(email="boss@jit.example", display_name="Administrator", role=Role.ADMIN)
        assert admin.address == ADMIN_ADDRESS

    def test_alumni_address_is_email(self):
        alumni = Identity(email="gowri@jit.example", display_name="Gowri S", role=Role.ALUMNI)
        assert alumni.address == "gowri@jit.example"
        assert alumni.initials == "GS"


class TestStaticIdentityStore:

    def test_seeded_store(self, identity_store):
        assert isinstance(identity_store, IdentityStore)
        assert len(identity_store) == 6
        assert identity_store.admin.email == ADMIN_EMAIL
        assert len(identity_store.list_identities(Role.ALUMNI)) == 5

    def test_passwords_hashed_at_rest(self, identity_store):
        record = identity_store.lookup(ADMIN_EMAIL)
        assert record.password_hash != ADMIN_PASSWORD
        assert verify_password(ADMIN_PASSWORD, record.password_hash)

    def test_lookup_unknown(self, identity_store):
        assert identity_store.lookup("nobody@jit.example") is None

    def test_duplicate_email_rejected(self):
        identity = Identity(email="a@jit.example", display_name="A", role=Role.ALUMNI)
        record = IdentityRecord(identity=identity, password_hash="x")
        with pytest.raises(ValueError):
            StaticIdentityStore([record, record])

    def test_second_admin_rejected(self):
        records = [
            IdentityRecord(
                identity=Identity(email=f"admin{i}@jit.example", display_name="Admin", role=Role.ADMIN),
                password_hash="x",
            )
            for i in range(2)
        ]
        with pytest.raises(ValueError):
            StaticIdentityStore(records)


class TestAuthenticator:

    def setup_method(self):
        self.store = StaticIdentityStore.from_credentials(
            [
                {"email": "admin@jit.example", "password": "adminpw", "display_name": "Administrator", "role": "admin"},
                {"email": "diana@jit.example", "password": "dianapw", "display_name": "Diana G", "role": "alumni"},
            ],
            bcrypt_rounds=4,
        )
        self.auth = Authenticator(self.store)

    def test_admin_login(self):
        session = self.auth.authenticate("admin@jit.example", "adminpw", Role.ADMIN)
        assert session.role == Role.ADMIN
        assert session.is_admin
        assert session.session_token.startswith("admin_")
        assert get_session_context() is session

    def test_email_trimmed(self):
        session = self.auth.authenticate("  diana@jit.example ", "dianapw", "alumni")
        assert session.email == "diana@jit.example"

    def test_wrong_password(self):
        with pytest.raises(InvalidCredentialsError):
            self.auth.authenticate("admin@jit.example", "nope", Role.ADMIN)
        assert get_session_context() is None

    def test_wrong_password_is_auth_error(self):
        with pytest.raises(PortalAuthError):
            self.auth.authenticate("diana@jit.example", "nope", Role.ALUMNI)

    def test_role_mismatch(self):
        with pytest.raises(InvalidCredentialsError):
            self.auth.authenticate("diana@jit.example", "dianapw", Role.ADMIN)

    def test_unknown_email(self):
        with pytest.raises(InvalidCredentialsError):
            self.auth.authenticate("ghost@jit.example", "x", Role.ALUMNI)

    def test_email_compared_exactly(self):
        with pytest.raises(InvalidCredentialsError):
            self.auth.authenticate("DIANA@jit.example", "dianapw", Role.ALUMNI)

    @pytest.mark.parametrize("email,password", [("", "pw"), ("diana@jit.example", ""), ("   ", "pw")])
    def test_empty_fields(self, email, password):
        with pytest.raises(PortalValidationError):
            self.auth.authenticate(email, password, Role.ALUMNI)

    def test_no_lockout(self):
        for _ in range(5):
            with pytest.raises(InvalidCredentialsError):
                self.auth.authenticate("diana@jit.example", "bad", Role.ALUMNI)
        assert self.auth.authenticate("diana@jit.example", "dianapw", Role.ALUMNI)

    def test_logout_clears_session(self):
        session = self.auth.authenticate("diana@jit.example", "dianapw", Role.ALUMNI)
        self.auth.logout(session)
        assert get_session_context() is None

    def test_logout_without_session(self):
        self.auth.logout()
        assert get_session_context() is None


class TestRequireRole:

    def test_allowed(self, admin_identity):
        assert require_role(admin_identity, Role.ADMIN, action="approve") is admin_identity

    def test_denied(self, alumni_identity):
        with pytest.raises(PermissionDeniedError) as exc_info:
            require_role(alumni_identity, Role.ADMIN, action="approve")
        assert exc_info.value.required_roles == ["admin"]

    def test_anonymous_denied(self):
        with pytest.raises(PermissionDeniedError):
            require_role(None, Role.ALUMNI, action="upload")
