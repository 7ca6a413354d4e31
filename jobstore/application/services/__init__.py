from .edit_retry import EditResult, EditRetryEngine, EditStrategy, set_field
from .attachment_uploader import AttachmentUploader, AttachmentUploadResult
from .job_document_service import JobDocumentService

__all__ = [
    "EditResult",
    "EditRetryEngine",
    "EditStrategy",
    "set_field",
    "AttachmentUploader",
    "AttachmentUploadResult",
    "JobDocumentService",
]
