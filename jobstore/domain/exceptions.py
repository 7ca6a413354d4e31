"""Domain-specific exceptions — framework-independent."""


class JobStoreError(Exception):
    """Base class for every error raised by the job document client."""


class DocumentNotFoundError(JobStoreError):
    """Raised when a requested document (or one of its attachments) does not exist."""

    def __init__(self, doc_id: str, attachment_name: str | None = None):
        self.doc_id = doc_id
        self.attachment_name = attachment_name
        if attachment_name:
            message = f"Attachment '{attachment_name}' of document '{doc_id}' not found"
        else:
            message = f"Document with id '{doc_id}' not found"
        super().__init__(message)


class DocumentConflictError(JobStoreError):
    """Raised when a write presents a revision the store no longer considers current.

    Consumed by the retry loops; only surfaces through RetryExhaustedError.
    """

    def __init__(self, doc_id: str, revision: str | None):
        self.doc_id = doc_id
        self.revision = revision
        super().__init__(f"Document '{doc_id}' update conflict at revision '{revision}'")


class DocumentExistsError(JobStoreError):
    """Raised when creating a document under an id that is already taken."""

    def __init__(self, doc_id: str):
        self.doc_id = doc_id
        super().__init__(f"Document with id '{doc_id}' already exists")


class RetryExhaustedError(JobStoreError):
    """Raised when a write did not succeed within its attempt ceiling."""

    def __init__(self, operation: str, doc_id: str, attempts: int):
        self.operation = operation
        self.doc_id = doc_id
        self.attempts = attempts
        super().__init__(
            f"Tried to {operation} on document '{doc_id}' {attempts} times, giving up"
        )


class StoreTransportError(JobStoreError):
    """Raised on connection failures and timeouts talking to the document store."""

    def __init__(self, url: str, cause: Exception):
        self.url = url
        self.cause = cause
        super().__init__(f"Transport error for {url}: {type(cause).__name__}: {cause}")


class UnexpectedStatusError(JobStoreError):
    """Raised when the store answers with a status code the caller cannot handle."""

    def __init__(
        self,
        status_code: int,
        message: str,
        attachment_name: str | None = None,
        source: str | None = None,
    ):
        self.status_code = status_code
        self.message = message
        self.attachment_name = attachment_name
        self.source = source
        if attachment_name is not None:
            text = (
                f"Unable to upload attachment: {attachment_name} from {source}. "
                f"Unexpected status code in response: {status_code}"
            )
        else:
            text = f"Unexpected status code {status_code}: {message}"
        super().__init__(text)
