"""Unit tests for the job document entity and its wire schema."""

import pytest

from jobstore.application.schemas import job_from_store, job_to_store
from jobstore.domain.entities import JobDocument, JobState


def test_state_predicates():
    assert JobDocument(id="j", state="READY_TO_PROCESS").is_ready_to_process()
    assert JobDocument(id="j", state="BEING_PROCESSED").is_being_processed()
    assert JobDocument(id="j", state="PROCESSING_SUCCESSFUL").is_processing_successful()
    assert JobDocument(id="j", state="PROCESSING_FAILED").is_processing_failed()
    assert JobDocument(id="j", state="PROCESSING_FAILED").is_finished()
    assert not JobDocument(id="j", state="NOT_READY_TO_PROCESS").is_finished()


def test_type_tag():
    assert JobDocument(id="j").is_job()
    assert not JobDocument(id="j", doc_type="user").is_job()


def test_with_changes_returns_new_snapshot():
    job = JobDocument(id="j", revision="1-a", state="READY_TO_PROCESS")

    changed = job.with_changes(state=JobState.BEING_PROCESSED.value)

    assert changed is not job
    assert job.state == "READY_TO_PROCESS"
    assert changed.state == "BEING_PROCESSED"
    assert changed.revision == "1-a"


def test_id_is_immutable():
    with pytest.raises(ValueError):
        JobDocument(id="j").with_changes(id="other")


def test_parse_store_body():
    job = job_from_store(
        {
            "_id": "job-42",
            "_rev": "2-b",
            "type": "job",
            "_attachments": {"in.png": {"content_type": "image/png", "stub": True}},
            "state": "READY_TO_PROCESS",
            "owner_devicetoken": "tok",
            "error_message": None,
            "priority": 5,
        }
    )

    assert job.id == "job-42"
    assert job.revision == "2-b"
    assert job.owner_device_token == "tok"
    assert job.error_message == ""
    assert job.has_attachment("in.png")
    assert job.extra == {"priority": 5}


def test_serialize_for_store():
    job = JobDocument(
        id="job-42",
        revision="2-b",
        state="BEING_PROCESSED",
        owner_device_token="tok",
        extra={"priority": 5},
    )

    body = job_to_store(job)

    assert body["_id"] == "job-42"
    assert body["_rev"] == "2-b"
    assert body["type"] == "job"
    assert body["owner_devicetoken"] == "tok"
    assert body["priority"] == 5
    assert "_attachments" not in body


def test_serialize_new_document_has_no_revision():
    assert "_rev" not in job_to_store(JobDocument(id="job-1"))


def test_foreign_fields_named_like_python_attributes_round_trip():
    body = {
        "_id": "job-7",
        "_rev": "1-a",
        "owner_devicetoken": "current",
        "owner_device_token": "legacy",
        "attachments": "not-a-mapping",
    }

    job = job_from_store(body)
    out = job_to_store(job)

    assert job.owner_device_token == "current"
    assert job.extra == {"owner_device_token": "legacy", "attachments": "not-a-mapping"}
    assert out["owner_devicetoken"] == "current"
    assert out["owner_device_token"] == "legacy"
    assert out["attachments"] == "not-a-mapping"
    assert "_attachments" not in out
