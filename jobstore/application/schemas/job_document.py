"""Pydantic schema for job documents as stored in CouchDB (wire format)."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from jobstore.domain.entities import JobDocument


class JobDocumentSchema(BaseModel):
    """JSON body of a job document.

    CouchDB reserves the underscore-prefixed names, so they are mapped through
    aliases. Fields this schema does not declare are kept as extras and written
    back untouched.
    """

    model_config = ConfigDict(extra="allow")

    id: str = Field(..., alias="_id", min_length=1)
    rev: str | None = Field(None, alias="_rev")
    type: str = ""
    attachments: dict[str, Any] = Field(default_factory=dict, alias="_attachments")
    state: str = ""
    created_at: str = ""
    owner: str = ""
    owner_device_token: str = Field("", alias="owner_devicetoken")
    error_message: str = ""
    std_out_and_err: str = ""

    @field_validator(
        "type",
        "state",
        "created_at",
        "owner",
        "owner_device_token",
        "error_message",
        "std_out_and_err",
        mode="before",
    )
    @classmethod
    def _null_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("attachments", mode="before")
    @classmethod
    def _null_as_no_attachments(cls, value: Any) -> Any:
        return {} if value is None else value

    def to_entity(self) -> JobDocument:
        return JobDocument(
            id=self.id,
            revision=self.rev,
            doc_type=self.type,
            attachments=dict(self.attachments),
            state=self.state,
            created_at=self.created_at,
            owner=self.owner,
            owner_device_token=self.owner_device_token,
            error_message=self.error_message,
            std_out_and_err=self.std_out_and_err,
            extra=dict(self.model_extra or {}),
        )

    @classmethod
    def from_entity(cls, doc: JobDocument) -> "JobDocumentSchema":
        return cls.model_validate(
            {
                **doc.extra,
                "_id": doc.id,
                "_rev": doc.revision,
                "type": doc.doc_type,
                "_attachments": dict(doc.attachments),
                "state": doc.state,
                "created_at": doc.created_at,
                "owner": doc.owner,
                "owner_devicetoken": doc.owner_device_token,
                "error_message": doc.error_message,
                "std_out_and_err": doc.std_out_and_err,
            }
        )


def job_from_store(body: dict[str, Any]) -> JobDocument:
    """Parse a document body returned by the store."""
    return JobDocumentSchema.model_validate(body).to_entity()


def job_to_store(doc: JobDocument) -> dict[str, Any]:
    """Serialize a snapshot into the body the store expects on write.

    ``_rev`` is omitted for documents that were never stored, and
    ``_attachments`` when there are none (sending attachment stubs back is
    what keeps existing attachments on update).
    """
    body = JobDocumentSchema.from_entity(doc).model_dump(by_alias=True)
    if doc.revision is None:
        body.pop("_rev", None)
    if not doc.attachments:
        body.pop("_attachments", None)
    return body
