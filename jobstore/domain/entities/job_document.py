"""Domain entity for job documents — a job and its processing state in the store."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .document import TypedDocument, DocumentType


class JobState(str, Enum):
    """Lifecycle states of a job.

    NOT_READY_TO_PROCESS -> READY_TO_PROCESS -> BEING_PROCESSED ->
    PROCESSING_SUCCESSFUL | PROCESSING_FAILED. Transitions are not enforced.
    """

    NOT_READY_TO_PROCESS = "NOT_READY_TO_PROCESS"  # no attachments yet
    READY_TO_PROCESS = "READY_TO_PROCESS"          # attachments added
    BEING_PROCESSED = "BEING_PROCESSED"            # worker running
    PROCESSING_SUCCESSFUL = "PROCESSING_SUCCESSFUL"
    PROCESSING_FAILED = "PROCESSING_FAILED"


@dataclass(frozen=True)
class JobDocument(TypedDocument):
    """Snapshot of a job document.

    ``state`` is kept as the raw string found in the store so that documents
    written by other clients with an unknown state still load; compare it
    with ``JobState`` members (they are ``str`` subclasses).
    """

    doc_type: str = DocumentType.JOB.value
    attachments: dict[str, Any] = field(default_factory=dict)  # opaque store metadata
    state: str = ""
    created_at: str = ""
    owner: str = ""
    owner_device_token: str = ""
    error_message: str = ""
    std_out_and_err: str = ""
    extra: dict[str, Any] = field(default_factory=dict)  # fields this client does not model

    def is_ready_to_process(self) -> bool:
        return self.state == JobState.READY_TO_PROCESS

    def is_being_processed(self) -> bool:
        return self.state == JobState.BEING_PROCESSED

    def is_processing_successful(self) -> bool:
        return self.state == JobState.PROCESSING_SUCCESSFUL

    def is_processing_failed(self) -> bool:
        return self.state == JobState.PROCESSING_FAILED

    def is_finished(self) -> bool:
        return self.is_processing_successful() or self.is_processing_failed()

    def has_attachment(self, name: str) -> bool:
        return name in self.attachments
