"""CouchDB HTTP client — implements the DocumentStore interface.

Talks to one CouchDB database (``{server_url}/{database}``) with httpx.
Status codes are mapped onto domain errors:

    404        -> DocumentNotFoundError
    409        -> DocumentConflictError (DocumentExistsError on create)
    other 4xx/5xx -> UnexpectedStatusError

Connection failures and timeouts surface as StoreTransportError.
"""

import logging
from typing import Any
from urllib.parse import quote

import httpx

from jobstore.application.interfaces import DocumentStore
from jobstore.domain.exceptions import (
    DocumentConflictError,
    DocumentExistsError,
    DocumentNotFoundError,
    StoreTransportError,
    UnexpectedStatusError,
)

logger = logging.getLogger(__name__)


class CouchDBClient(DocumentStore):
    """Infrastructure adapter — connects to a CouchDB database.

    Uses the injected ``httpx.AsyncClient`` when given (shared connection
    pool, caller owns its lifetime); otherwise a client is created per call.
    """

    def __init__(
        self,
        server_url: str = "http://localhost:5984",
        database: str = "deepstyle",
        *,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
        auth: tuple[str, str] | None = None,
    ):
        self._server_url = server_url.rstrip("/")
        self._database = database.strip("/")
        self._http_client = http_client
        self._timeout = timeout
        self._auth = auth

    @property
    def base_url(self) -> str:
        return f"{self._server_url}/{self._database}"

    def _document_url(self, doc_id: str) -> str:
        return f"{self.base_url}/{quote(doc_id, safe='')}"

    def _get_client(self) -> httpx.AsyncClient:
        """Return the injected client or create a new one."""
        if self._http_client is not None:
            return self._http_client
        return httpx.AsyncClient(timeout=self._timeout, auth=self._auth)

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        client = self._get_client()
        should_close = self._http_client is None

        try:
            return await client.request(method, url, **kwargs)
        except httpx.TransportError as exc:
            logger.error("%s %s failed: %s", method, url, exc)
            raise StoreTransportError(url, exc) from exc
        finally:
            if should_close:
                await client.aclose()

    async def retrieve(self, doc_id: str) -> dict[str, Any]:
        response = await self._request("GET", self._document_url(doc_id))

        if response.status_code == 404:
            raise DocumentNotFoundError(doc_id)
        if not response.is_success:
            self._raise_unexpected(response)

        return response.json()

    async def update(self, document: dict[str, Any]) -> str:
        doc_id = document["_id"]
        response = await self._request(
            "PUT", self._document_url(doc_id), json=document
        )

        if response.status_code == 409:
            raise DocumentConflictError(doc_id, document.get("_rev"))
        if response.status_code == 404:
            raise DocumentNotFoundError(doc_id)
        if not response.is_success:
            self._raise_unexpected(response)

        revision = response.json()["rev"]
        logger.debug("Updated '%s' -> rev %s", doc_id, revision)
        return revision

    async def create(self, document: dict[str, Any]) -> tuple[str, str]:
        doc_id = document.get("_id")
        if doc_id:
            response = await self._request(
                "PUT", self._document_url(doc_id), json=document
            )
        else:
            response = await self._request("POST", self.base_url, json=document)

        if response.status_code == 409:
            raise DocumentExistsError(doc_id or "")
        if not response.is_success:
            self._raise_unexpected(response)

        data = response.json()
        logger.debug("Created '%s' at rev %s", data["id"], data["rev"])
        return data["id"], data["rev"]

    async def fetch_attachment(self, doc_id: str, attachment_name: str) -> bytes:
        url = f"{self._document_url(doc_id)}/{quote(attachment_name, safe='/')}"
        response = await self._request("GET", url)

        if response.status_code == 404:
            raise DocumentNotFoundError(doc_id, attachment_name)
        if not response.is_success:
            self._raise_unexpected(response)

        return response.content

    @staticmethod
    def _raise_unexpected(response: httpx.Response) -> None:
        """Raise UnexpectedStatusError from a CouchDB ``{"error", "reason"}`` body."""
        try:
            data = response.json()
        except ValueError:
            data = None

        if isinstance(data, dict):
            message = f"{data.get('error', '')}: {data.get('reason', response.text)}"
        else:
            message = response.text

        raise UnexpectedStatusError(status_code=response.status_code, message=message)
