"""Unit tests for alumnihub.documents.upload — validation, retry, cancellation."""

import pytest

from conftest import ScriptedStore, transient

from alumnihub.documents.models import DocumentStatus, UploadFile
from alumnihub.documents.repository import DocumentRepository
from alumnihub.documents.upload import (
    CancellationToken,
    UploadAttempt,
    UploadState,
    UploadWorkflow,
    safe_filename,
)
from alumnihub.engine.config import UploadConfig
from alumnihub.engine.credentials import CredentialManager
from alumnihub.engine.errors import (
    PortalValidationError,
    StoreError,
    UploadCancelledError,
    UploadExhaustedError,
)
from alumnihub.engine.identity import ADMIN_ADDRESS
from alumnihub.messaging.store import MessageStore, Notifier
from alumnihub.storage.simulated import SimulatedStore

OWNER = "diana@jit.example"


class _UnavailableStore(ScriptedStore):

    @property
    def available(self):
        return False


class TestSafeFilename:

    def test_strips_directories(self):
        assert safe_filename("../../etc/passwd.pdf") == "passwd.pdf"
        assert safe_filename("C:\\Users\\me\\cv.pdf") == "cv.pdf"

    def test_strips_unsafe_chars_and_dots(self):
        assert safe_filename('.hidden<>|?.pdf') == "hidden.pdf"

    def test_empty_name(self):
        assert safe_filename("...") == "unnamed_document"

    def test_long_name_keeps_extension(self):
        name = safe_filename("a" * 300 + ".pdf")
        assert len(name) == 200
        assert name.endswith(".pdf")


class TestUploadAttempt:

    def test_linear_backoff(self):
        ctx = UploadAttempt(
            file=UploadFile(name="a.pdf", data=b"x"),
            owner=OWNER, category="c", title="t",
            max_retries=3, retry_delay=1.5, content_type="application/pdf",
        )
        ctx.attempt = 2
        assert ctx.next_delay() == 3.0
        assert ctx.can_retry
        ctx.attempt = 3
        assert not ctx.can_retry


class TestValidation:

    def setup_method(self):
        self.store = ScriptedStore()
        self.repo = DocumentRepository()
        self.workflow = UploadWorkflow(self.repo, store=self.store, config=UploadConfig(max_size_mb=1))

    @pytest.mark.asyncio
    @pytest.mark.parametrize("title,category,field", [
        ("", "Certificates", "title"),
        ("   ", "Certificates", "title"),
        ("Transcript", "", "category"),
    ])
    async def test_missing_fields(self, pdf_file, title, category, field):
        with pytest.raises(PortalValidationError) as exc_info:
            await self.workflow.upload(pdf_file, OWNER, category, title)
        assert exc_info.value.field == field
        assert self.store.store_calls == []
        assert len(self.repo) == 0

    @pytest.mark.asyncio
    async def test_no_file(self):
        with pytest.raises(PortalValidationError, match="select a file"):
            await self.workflow.upload(UploadFile(name="empty.pdf", data=b""), OWNER, "Certificates", "Empty")
        assert self.store.store_calls == []

    @pytest.mark.asyncio
    async def test_disallowed_type(self):
        exe = UploadFile(name="setup.exe", data=b"MZ", content_type="application/x-msdownload")
        with pytest.raises(PortalValidationError, match="not allowed"):
            await self.workflow.upload(exe, OWNER, "Certificates", "Installer")
        assert self.store.store_calls == []
        assert len(self.repo) == 0

    @pytest.mark.asyncio
    async def test_too_large(self):
        big = UploadFile(name="big.pdf", data=b"x" * (1024 * 1024 + 1), content_type="application/pdf")
        with pytest.raises(PortalValidationError, match="must not exceed 1 MB"):
            await self.workflow.upload(big, OWNER, "Certificates", "Big")
        assert self.store.store_calls == []

    @pytest.mark.asyncio
    async def test_exactly_max_size_allowed(self):
        exact = UploadFile(name="exact.pdf", data=b"x" * (1024 * 1024), content_type="application/pdf")
        result = await self.workflow.upload(exact, OWNER, "Certificates", "Exact")
        assert result.attempts == 1

    @pytest.mark.asyncio
    async def test_title_too_long(self, pdf_file):
        with pytest.raises(PortalValidationError) as exc_info:
            await self.workflow.upload(pdf_file, OWNER, "Certificates", "T" * 300)
        assert exc_info.value.field == "title"
        assert self.store.store_calls == []
        assert len(self.repo) == 0

    @pytest.mark.asyncio
    async def test_file_name_too_long(self):
        long_name = UploadFile(name="a" * 300 + ".pdf", data=b"%PDF", content_type="application/pdf")
        with pytest.raises(PortalValidationError) as exc_info:
            await self.workflow.upload(long_name, OWNER, "Certificates", "Transcript")
        assert exc_info.value.field == "file"
        assert self.store.store_calls == []
        assert len(self.repo) == 0

    @pytest.mark.asyncio
    async def test_title_at_limit_allowed(self, pdf_file):
        result = await self.workflow.upload(pdf_file, OWNER, "Certificates", "T" * 255)
        assert self.repo.get(result.record_id).title == "T" * 255

    def test_type_guessed_from_extension(self):
        jpg = UploadFile(name="photo.jpg", data=b"\xff\xd8")
        assert self.workflow.validate(jpg, "Photos", "Me") == "image/jpeg"


class TestRetry:

    def _workflow(self, store, sleep, notifier=None, **config):
        self.repo = DocumentRepository()
        return UploadWorkflow(
            self.repo,
            store=store,
            notifier=notifier,
            config=UploadConfig(**config),
            sleep=sleep,
        )

    @pytest.mark.asyncio
    async def test_first_try_success(self, pdf_file, recording_sleep):
        store = ScriptedStore()
        result = await self._workflow(store, recording_sleep).upload(pdf_file, OWNER, " Certificates ", " Transcript ")

        assert result.attempts == 1
        assert recording_sleep.waits == []
        assert result.path.startswith(f"{OWNER}/")
        assert result.path.endswith("_transcript.pdf")
        doc = self.repo.get(result.record_id)
        assert doc.status == DocumentStatus.PENDING
        assert doc.title == "Transcript"
        assert doc.category == "Certificates"
        assert doc.remote_id == "remote-1"
        assert store.metadata_calls[0]["user_email"] == OWNER

    @pytest.mark.asyncio
    @pytest.mark.parametrize("failures", [1, 2])
    async def test_transient_failures_then_success(self, pdf_file, recording_sleep, failures):
        store = ScriptedStore(store_script=transient(failures))
        result = await self._workflow(store, recording_sleep).upload(pdf_file, OWNER, "Certificates", "Transcript")

        assert result.attempts == failures + 1
        assert len(store.store_calls) == failures + 1
        assert recording_sleep.waits == [1.0, 2.0][:failures]
        assert len(self.repo) == 1

    @pytest.mark.asyncio
    async def test_exhausted_after_max_retries(self, pdf_file, recording_sleep):
        store = ScriptedStore(store_script=transient(3))
        workflow = self._workflow(store, recording_sleep)

        with pytest.raises(UploadExhaustedError) as exc_info:
            await workflow.upload(pdf_file, OWNER, "Certificates", "Transcript")

        assert exc_info.value.attempts == 3
        assert "hiccup 3" in exc_info.value.last_error
        assert len(store.store_calls) == 3
        assert recording_sleep.waits == [1.0, 2.0]
        assert store.metadata_calls == []
        assert len(self.repo) == 0

    @pytest.mark.asyncio
    async def test_custom_budget_and_delay(self, pdf_file, recording_sleep):
        store = ScriptedStore(store_script=transient(4))
        workflow = self._workflow(store, recording_sleep, max_retries=5, retry_delay_seconds=0.5)
        result = await workflow.upload(pdf_file, OWNER, "Certificates", "Transcript")
        assert result.attempts == 5
        assert recording_sleep.waits == [0.5, 1.0, 1.5, 2.0]

    @pytest.mark.asyncio
    async def test_permanent_error_not_retried(self, pdf_file, recording_sleep):
        store = ScriptedStore(store_script=[StoreError("HTTP 401", store="scripted", status_code=401)])
        with pytest.raises(StoreError) as exc_info:
            await self._workflow(store, recording_sleep).upload(pdf_file, OWNER, "Certificates", "Transcript")
        assert not isinstance(exc_info.value, UploadExhaustedError)
        assert len(store.store_calls) == 1
        assert recording_sleep.waits == []
        assert len(self.repo) == 0

    @pytest.mark.asyncio
    async def test_metadata_failure_fails_attempt(self, pdf_file, recording_sleep):
        store = ScriptedStore(metadata_script=transient(1))
        result = await self._workflow(store, recording_sleep).upload(pdf_file, OWNER, "Certificates", "Transcript")

        assert result.attempts == 2
        assert len(store.store_calls) == 2
        assert len(store.metadata_calls) == 2
        assert recording_sleep.waits == [1.0]
        assert len(self.repo) == 1

    @pytest.mark.asyncio
    async def test_metadata_exhaustion_reports_orphans(self, pdf_file, recording_sleep):
        store = ScriptedStore(metadata_script=transient(3))
        with pytest.raises(UploadExhaustedError) as exc_info:
            await self._workflow(store, recording_sleep).upload(pdf_file, OWNER, "Certificates", "Transcript")
        assert len(exc_info.value.context["orphaned_paths"]) == 3
        assert len(self.repo) == 0

    @pytest.mark.asyncio
    async def test_admin_notified_once_on_success(self, pdf_file, recording_sleep):
        messages = MessageStore()
        store = ScriptedStore(store_script=transient(1))
        await self._workflow(store, recording_sleep, notifier=Notifier(messages)).upload(
            pdf_file, OWNER, "Certificates", "Transcript"
        )
        sent = messages.all()
        assert len(sent) == 1
        assert (sent[0].sender, sent[0].recipient) == (OWNER, ADMIN_ADDRESS)
        assert sent[0].text == "New document upload: Transcript"

    @pytest.mark.asyncio
    async def test_no_notification_on_failure(self, pdf_file, recording_sleep):
        messages = MessageStore()
        store = ScriptedStore(store_script=transient(3))
        with pytest.raises(UploadExhaustedError):
            await self._workflow(store, recording_sleep, notifier=Notifier(messages)).upload(
                pdf_file, OWNER, "Certificates", "Transcript"
            )
        assert len(messages) == 0


class TestCancellation:

    @pytest.mark.asyncio
    async def test_cancelled_before_first_attempt(self, pdf_file, recording_sleep):
        store = ScriptedStore()
        token = CancellationToken()
        token.cancel()
        workflow = UploadWorkflow(DocumentRepository(), store=store, sleep=recording_sleep)
        with pytest.raises(UploadCancelledError):
            await workflow.upload(pdf_file, OWNER, "Certificates", "Transcript", cancel_token=token)
        assert store.store_calls == []

    @pytest.mark.asyncio
    async def test_cancelled_during_backoff(self, pdf_file):
        token = CancellationToken()
        waits = []

        async def cancelling_sleep(seconds):
            waits.append(seconds)
            token.cancel()

        repo = DocumentRepository()
        store = ScriptedStore(store_script=transient(2))
        workflow = UploadWorkflow(repo, store=store, sleep=cancelling_sleep)

        with pytest.raises(UploadCancelledError) as exc_info:
            await workflow.upload(pdf_file, OWNER, "Certificates", "Transcript", cancel_token=token)

        assert exc_info.value.context["attempts"] == 1
        assert waits == [1.0]
        assert len(store.store_calls) == 1
        assert len(repo) == 0

    def test_token(self):
        token = CancellationToken()
        assert token.cancelled is False
        token.cancel()
        assert token.cancelled is True


class TestStoreSelection:

    @pytest.mark.asyncio
    async def test_falls_back_to_simulated_store(self, pdf_file, recording_sleep):
        workflow = UploadWorkflow(DocumentRepository(), store=_UnavailableStore(), sleep=recording_sleep)
        result = await workflow.upload(pdf_file, OWNER, "Certificates", "Transcript")
        assert isinstance(workflow.active_store(), SimulatedStore)
        assert result.path.startswith(f"mock/{OWNER}/")
        assert result.attempts == 1

    @pytest.mark.asyncio
    async def test_no_store_uses_simulated(self, pdf_file, recording_sleep):
        workflow = UploadWorkflow(DocumentRepository(), sleep=recording_sleep)
        result = await workflow.upload(pdf_file, OWNER, "Certificates", "Transcript")
        assert result.path.startswith("mock/")
        assert len(recording_sleep.waits) == 1

    @pytest.mark.asyncio
    async def test_explicit_fallback(self, pdf_file, recording_sleep):
        fallback = ScriptedStore()
        workflow = UploadWorkflow(DocumentRepository(), store=_UnavailableStore(), fallback=fallback, sleep=recording_sleep)
        await workflow.upload(pdf_file, OWNER, "Certificates", "Transcript")
        assert len(fallback.store_calls) == 1


class TestSealing:

    @pytest.mark.asyncio
    async def test_metadata_sealed_when_enabled(self, pdf_file, recording_sleep):
        credentials = CredentialManager(secret_key="unit-test-key")
        repo = DocumentRepository()
        store = ScriptedStore()
        workflow = UploadWorkflow(
            repo, store=store, credentials=credentials, seal_metadata=True, sleep=recording_sleep,
        )
        result = await workflow.upload(pdf_file, OWNER, "Certificates", "Transcript")

        doc = repo.get(result.record_id)
        assert doc.sealed_metadata
        assert credentials.unseal(doc.sealed_metadata)["original_name"] == "transcript.pdf"
        assert store.metadata_calls[0]["sealed_metadata"] == doc.sealed_metadata

    @pytest.mark.asyncio
    async def test_not_sealed_by_default(self, pdf_file, recording_sleep):
        repo = DocumentRepository()
        workflow = UploadWorkflow(repo, store=ScriptedStore(), credentials=CredentialManager("k"), sleep=recording_sleep)
        result = await workflow.upload(pdf_file, OWNER, "Certificates", "Transcript")
        assert repo.get(result.record_id).sealed_metadata is None


def test_upload_states():
    assert {s.value for s in UploadState} == {"idle", "attempting", "success", "exhausted", "cancelled"}
