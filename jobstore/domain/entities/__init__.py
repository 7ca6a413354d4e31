from .document import Document, TypedDocument, DocumentType
from .job_document import JobDocument, JobState

__all__ = [
    "Document",
    "TypedDocument",
    "DocumentType",
    "JobDocument",
    "JobState",
]
