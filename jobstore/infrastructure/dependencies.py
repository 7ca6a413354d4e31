"""Dependency wiring — builds infrastructure adapters and services from Settings."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx

from jobstore.config import Settings, get_settings
from jobstore.application.interfaces import DocumentStore
from jobstore.application.services import AttachmentUploader, JobDocumentService
from jobstore.infrastructure.couchdb import CouchDBClient


def get_document_store(
    settings: Settings | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> CouchDBClient:
    """Provides a CouchDBClient for the configured database."""
    settings = settings or get_settings()
    return CouchDBClient(
        server_url=settings.couchdb_url,
        database=settings.couchdb_database,
        http_client=http_client,
        timeout=settings.request_timeout,
        auth=settings.couchdb_auth,
    )


def get_attachment_uploader(
    store: DocumentStore,
    settings: Settings | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> AttachmentUploader:
    settings = settings or get_settings()
    return AttachmentUploader(
        store,
        http_client=http_client,
        max_attempts=settings.attachment_max_attempts,
        timeout=settings.request_timeout,
        auth=settings.couchdb_auth,
        default_content_type=settings.default_attachment_content_type,
    )


def get_job_document_service(
    settings: Settings | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> JobDocumentService:
    """Provides a JobDocumentService with the store and uploader wired up."""
    settings = settings or get_settings()
    store = get_document_store(settings, http_client)
    uploader = get_attachment_uploader(store, settings, http_client)
    return JobDocumentService(
        store,
        uploader,
        max_edit_attempts=settings.edit_max_attempts,
    )


@asynccontextmanager
async def job_document_service(
    settings: Settings | None = None,
) -> AsyncIterator[JobDocumentService]:
    """JobDocumentService sharing one pooled httpx client, closed on exit.

    Usage:
        async with job_document_service() as jobs:
            job = await jobs.load_job("job-42")
    """
    settings = settings or get_settings()
    async with httpx.AsyncClient(
        timeout=settings.request_timeout, auth=settings.couchdb_auth
    ) as client:
        yield get_job_document_service(settings, client)
