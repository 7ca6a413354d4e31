"""Versioned document snapshots held by the client."""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, TypeVar

D = TypeVar("D", bound="Document")


class DocumentType(str, Enum):
    """Value of the ``type`` field that tags each stored document."""

    JOB = "job"


@dataclass(frozen=True)
class Document:
    """Point-in-time copy of a stored document.

    ``revision`` is the token the store handed out with this copy. It is only
    good for a single write: after that write (or a rejected one) the copy is
    stale and must be replaced by the snapshot the write returned or by a
    fresh retrieval.
    """

    id: str
    revision: str | None = None

    def with_changes(self: D, **changes: Any) -> D:
        """Return a new snapshot with ``changes`` applied. The id never changes."""
        if "id" in changes and changes["id"] != self.id:
            raise ValueError(f"Document id is immutable (was '{self.id}')")
        return replace(self, **changes)

    def with_revision(self: D, revision: str) -> D:
        return replace(self, revision=revision)


@dataclass(frozen=True)
class TypedDocument(Document):
    doc_type: str = ""

    def is_job(self) -> bool:
        return self.doc_type == DocumentType.JOB.value
