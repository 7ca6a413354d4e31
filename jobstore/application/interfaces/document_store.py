"""Abstract interface (port) for the revision-controlled document store."""

from abc import ABC, abstractmethod
from typing import Any


class DocumentStore(ABC):
    """Port for CouchDB-style document persistence — implemented in the infrastructure layer.

    Documents travel as raw JSON bodies carrying ``_id`` and ``_rev``. Every
    write must present the current ``_rev``; a stale one is rejected with
    DocumentConflictError and never merged.
    """

    @property
    @abstractmethod
    def base_url(self) -> str:
        """Database URL documents and attachments are addressed under."""
        ...

    @abstractmethod
    async def retrieve(self, doc_id: str) -> dict[str, Any]:
        """Fetch the current body of a document. Raises DocumentNotFoundError."""
        ...

    @abstractmethod
    async def update(self, document: dict[str, Any]) -> str:
        """Write a full document body under its ``_rev`` and return the new revision.

        Raises DocumentConflictError when ``_rev`` is not the current revision.
        """
        ...

    @abstractmethod
    async def create(self, document: dict[str, Any]) -> tuple[str, str]:
        """Insert a new document and return ``(id, rev)``. Raises DocumentExistsError."""
        ...

    @abstractmethod
    async def fetch_attachment(self, doc_id: str, attachment_name: str) -> bytes:
        """Download an attachment. Raises DocumentNotFoundError."""
        ...
