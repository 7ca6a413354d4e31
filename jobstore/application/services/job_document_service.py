"""Application service (use case) for job documents.

Loads job snapshots and routes every field change through the retry engine.
Snapshots are immutable: each mutating call hands back the snapshot to use
next, so callers rebind, e.g. ``job = (await service.update_state(job, s)).document``.
"""

import logging
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from os import PathLike

from jobstore.application.interfaces import DocumentStore
from jobstore.application.schemas import job_from_store, job_to_store
from jobstore.application.services.attachment_uploader import AttachmentUploader
from jobstore.application.services.edit_retry import (
    DEFAULT_MAX_ATTEMPTS,
    EditResult,
    EditRetryEngine,
    set_field,
)
from jobstore.domain.entities import DocumentType, JobDocument, JobState

logger = logging.getLogger(__name__)


class JobDocumentService:
    """Orchestrates job document reads and conflict-safe writes. Depends on the DocumentStore port (DI)."""

    def __init__(
        self,
        store: DocumentStore,
        uploader: AttachmentUploader,
        max_edit_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ):
        self._store = store
        self._uploader = uploader
        self._engine = EditRetryEngine(self._persist, max_attempts=max_edit_attempts)

    async def load_job(self, job_id: str) -> JobDocument:
        body = await self._store.retrieve(job_id)
        return job_from_store(body)

    async def refresh(self, job: JobDocument) -> JobDocument:
        """Fresh snapshot of ``job`` from the store."""
        return await self.load_job(job.id)

    async def create_job(
        self,
        owner: str,
        owner_device_token: str = "",
        state: JobState = JobState.NOT_READY_TO_PROCESS,
        job_id: str | None = None,
    ) -> JobDocument:
        """Insert a new job document. Raises DocumentExistsError if ``job_id`` is taken."""
        job = JobDocument(
            id=job_id or uuid.uuid4().hex,
            doc_type=DocumentType.JOB.value,
            state=JobState(state).value,
            created_at=datetime.now(timezone.utc).isoformat(),
            owner=owner,
            owner_device_token=owner_device_token,
        )
        doc_id, revision = await self._store.create(job_to_store(job))
        logger.info("Created job '%s' for owner '%s'", doc_id, owner)
        return replace(job, id=doc_id, revision=revision)

    async def update_state(
        self, job: JobDocument, new_state: JobState | str
    ) -> EditResult[JobDocument]:
        """Set the job's state. Any state may follow any other."""
        state = JobState(new_state).value
        return await self._engine.run(
            job,
            set_field("state", state, self.refresh),
            operation=f"set state {state}",
        )

    async def set_error_message(
        self, job: JobDocument, error: str | BaseException
    ) -> EditResult[JobDocument]:
        message = str(error)
        if not message:
            return EditResult(updated=False, document=job, skipped=True)
        return await self._engine.run(
            job,
            set_field("error_message", message, self.refresh),
            operation="set error message",
        )

    async def set_std_out_and_err(
        self, job: JobDocument, output: str
    ) -> EditResult[JobDocument]:
        if not output:
            return EditResult(updated=False, document=job, skipped=True)
        return await self._engine.run(
            job,
            set_field("std_out_and_err", output, self.refresh),
            operation="set stdout/stderr",
        )

    async def add_attachment(
        self,
        job: JobDocument,
        attachment_name: str,
        source_path: str | PathLike[str],
        content_type: str | None = None,
    ) -> JobDocument:
        """Upload a file as an attachment and return the job as stored afterwards."""
        await self._uploader.upload_attachment(
            job.id, attachment_name, source_path, content_type
        )
        return await self.refresh(job)

    async def retrieve_attachment(self, job: JobDocument, attachment_name: str) -> bytes:
        return await self._store.fetch_attachment(job.id, attachment_name)

    async def _persist(self, job: JobDocument) -> JobDocument:
        revision = await self._store.update(job_to_store(job))
        return job.with_revision(revision)
