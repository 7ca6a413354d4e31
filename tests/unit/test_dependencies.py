"""Unit tests for the dependency wiring."""

import pytest

from jobstore.config import Settings
from jobstore.infrastructure.couchdb import CouchDBClient
from jobstore.infrastructure.dependencies import job_document_service


@pytest.mark.asyncio
async def test_job_document_service_closes_shared_client_on_exit():
    settings = Settings(
        _env_file=None, couchdb_url="http://couch.test:5984", couchdb_database="deepstyle"
    )

    async with job_document_service(settings) as service:
        store = service._store
        client = store._http_client
        assert isinstance(store, CouchDBClient)
        assert store.base_url == "http://couch.test:5984/deepstyle"
        assert service._uploader._http_client is client
        assert not client.is_closed

    assert client.is_closed
