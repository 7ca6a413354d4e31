from .job_document import JobDocumentSchema, job_from_store, job_to_store

__all__ = [
    "JobDocumentSchema",
    "job_from_store",
    "job_to_store",
]
