"""Attachment uploader — revision-qualified PUT of binary payloads with conflict retry.

The store only accepts an attachment write that names the document's current
revision, so the revision is fetched again right before every attempt:

    PUT {base_url}/{doc_id}/{attachment_name}?rev={revision}

409 means another writer got in first and the attempt is repeated. Any other
non-2xx status fails the upload straight away.
"""

import logging
import mimetypes
from dataclasses import dataclass
from os import PathLike
from pathlib import Path
from urllib.parse import quote

import httpx

from jobstore.application.interfaces import DocumentStore
from jobstore.domain.exceptions import (
    RetryExhaustedError,
    StoreTransportError,
    UnexpectedStatusError,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 10
DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class AttachmentUploadResult:
    doc_id: str
    attachment_name: str
    revision: str | None  # as reported by the store, None if the body had no rev
    attempts: int
    size: int


def attachment_url(base_url: str, doc_id: str, attachment_name: str) -> str:
    """URL of an attachment, without the revision query string."""
    return (
        f"{base_url.rstrip('/')}/{quote(doc_id, safe='')}"
        f"/{quote(attachment_name, safe='/')}"
    )


class AttachmentUploader:
    """Uploads attachments onto documents of a DocumentStore.

    Uses the injected ``httpx.AsyncClient`` when given, otherwise a client is
    created per upload and closed afterwards.
    """

    def __init__(
        self,
        store: DocumentStore,
        *,
        http_client: httpx.AsyncClient | None = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        timeout: float = 30.0,
        auth: tuple[str, str] | None = None,
        default_content_type: str = DEFAULT_CONTENT_TYPE,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._store = store
        self._http_client = http_client
        self._max_attempts = max_attempts
        self._timeout = timeout
        self._auth = auth
        self._default_content_type = default_content_type

    def _get_client(self) -> httpx.AsyncClient:
        """Return the injected client or create a new one."""
        if self._http_client is not None:
            return self._http_client
        return httpx.AsyncClient(timeout=self._timeout, auth=self._auth)

    def guess_content_type(self, filename: str) -> str:
        guessed, _ = mimetypes.guess_type(filename)
        return guessed or self._default_content_type

    async def upload_attachment(
        self,
        doc_id: str,
        attachment_name: str,
        source_path: str | PathLike[str],
        content_type: str | None = None,
    ) -> AttachmentUploadResult:
        """Upload the file at ``source_path`` as ``attachment_name`` on ``doc_id``.

        The file is read once up front so every retry sends the same bytes.
        """
        path = Path(source_path)
        content = path.read_bytes()
        return await self.upload_bytes(
            doc_id,
            attachment_name,
            content,
            content_type or self.guess_content_type(path.name),
            source=str(path),
        )

    async def upload_bytes(
        self,
        doc_id: str,
        attachment_name: str,
        content: bytes,
        content_type: str | None = None,
        *,
        source: str = "<bytes>",
    ) -> AttachmentUploadResult:
        """Upload an in-memory payload, retrying on 409 up to the attempt ceiling."""
        content_type = content_type or self.guess_content_type(attachment_name)
        url = attachment_url(self._store.base_url, doc_id, attachment_name)

        client = self._get_client()
        should_close = self._http_client is None

        try:
            for attempt in range(1, self._max_attempts + 1):
                # Revisions are single-use: read the current one before each PUT
                body = await self._store.retrieve(doc_id)
                revision = body.get("_rev")

                logger.debug(
                    "PUT attachment '%s' on '%s' at rev %s (attempt %d/%d)",
                    attachment_name,
                    doc_id,
                    revision,
                    attempt,
                    self._max_attempts,
                )
                try:
                    response = await client.put(
                        url,
                        params={"rev": revision} if revision else None,
                        content=content,
                        headers={"Content-Type": content_type},
                    )
                except httpx.TransportError as exc:
                    raise StoreTransportError(url, exc) from exc

                if response.status_code == 409:
                    logger.warning(
                        "409 conflict uploading '%s' to '%s' (attempt %d/%d), retrying",
                        attachment_name,
                        doc_id,
                        attempt,
                        self._max_attempts,
                    )
                    continue

                if not response.is_success:
                    raise UnexpectedStatusError(
                        status_code=response.status_code,
                        message=response.text,
                        attachment_name=attachment_name,
                        source=source,
                    )

                result = AttachmentUploadResult(
                    doc_id=doc_id,
                    attachment_name=attachment_name,
                    revision=self._revision_from(response),
                    attempts=attempt,
                    size=len(content),
                )
                logger.info(
                    "Uploaded attachment '%s' to '%s' (%d bytes, rev %s)",
                    attachment_name,
                    doc_id,
                    result.size,
                    result.revision,
                )
                return result

        finally:
            if should_close:
                await client.aclose()

        raise RetryExhaustedError(
            f"add attachment '{attachment_name}'", doc_id, self._max_attempts
        )

    @staticmethod
    def _revision_from(response: httpx.Response) -> str | None:
        """Read ``rev`` from a CouchDB ``{"ok": true, "id": ..., "rev": ...}`` body."""
        try:
            data = response.json()
        except ValueError:
            return None
        if isinstance(data, dict):
            return data.get("rev")
        return None
