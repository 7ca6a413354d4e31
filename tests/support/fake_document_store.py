"""In-memory CouchDB double with revision checks and scripted concurrent writers."""

import copy
import json
import uuid
from collections.abc import Callable
from typing import Any
from urllib.parse import unquote

import httpx

from jobstore.application.interfaces import DocumentStore
from jobstore.domain.exceptions import (
    DocumentConflictError,
    DocumentExistsError,
    DocumentNotFoundError,
)

BASE_URL = "http://couch.test/deepstyle"

Interference = Callable[[dict[str, Any]], None]


def _next_revision(revision: str | None) -> str:
    generation = int(revision.split("-", 1)[0]) if revision else 0
    return f"{generation + 1}-{uuid.uuid4().hex}"


class FakeDocumentStore(DocumentStore):
    """In-memory document store for testing.

    Rejects any write whose ``_rev`` is not the stored one. ``interfere``
    schedules another writer to change a document right before our next
    writes land, which makes those writes stale.
    """

    def __init__(self):
        self._docs: dict[str, dict[str, Any]] = {}
        self._attachments: dict[tuple[str, str], bytes] = {}
        self._interference: dict[str, list[Interference]] = {}
        self._put_statuses: list[int] = []
        self.last_served_revision: dict[str, str] = {}
        self.retrieve_calls = 0
        self.update_calls = 0
        self.create_calls = 0
        self.put_attempts = 0
        self.put_revisions: list[str | None] = []

    # ── Test helpers ─────────────────────────────────────────────────

    def seed(self, body: dict[str, Any]) -> str:
        doc = copy.deepcopy(body)
        doc["_rev"] = _next_revision(None)
        self._docs[doc["_id"]] = doc
        return doc["_rev"]

    def stored(self, doc_id: str) -> dict[str, Any]:
        return copy.deepcopy(self._docs[doc_id])

    def interfere(
        self,
        doc_id: str,
        times: int = 1,
        change: dict[str, Any] | None = None,
    ) -> None:
        """Let another writer commit ``change`` before each of our next ``times`` writes."""

        def writer(doc: dict[str, Any]) -> None:
            doc.update(change or {})

        self._interference.setdefault(doc_id, []).extend([writer] * times)

    def respond_to_puts_with(self, *statuses: int) -> None:
        """Script the status of the next attachment PUTs (409 also advances the revision)."""
        self._put_statuses.extend(statuses)

    @property
    def network_calls(self) -> int:
        return self.retrieve_calls + self.update_calls + self.create_calls + self.put_attempts

    def _run_interference(self, doc_id: str) -> None:
        pending = self._interference.get(doc_id)
        if pending and doc_id in self._docs:
            writer = pending.pop(0)
            doc = self._docs[doc_id]
            writer(doc)
            doc["_rev"] = _next_revision(doc["_rev"])

    # ── DocumentStore ────────────────────────────────────────────────

    @property
    def base_url(self) -> str:
        return BASE_URL

    async def retrieve(self, doc_id: str) -> dict[str, Any]:
        self.retrieve_calls += 1
        if doc_id not in self._docs:
            raise DocumentNotFoundError(doc_id)
        doc = copy.deepcopy(self._docs[doc_id])
        self.last_served_revision[doc_id] = doc["_rev"]
        return doc

    async def update(self, document: dict[str, Any]) -> str:
        self.update_calls += 1
        doc_id = document["_id"]
        self._run_interference(doc_id)
        if doc_id not in self._docs:
            raise DocumentNotFoundError(doc_id)
        current = self._docs[doc_id]
        if document.get("_rev") != current["_rev"]:
            raise DocumentConflictError(doc_id, document.get("_rev"))

        stored = copy.deepcopy(document)
        stored["_rev"] = _next_revision(current["_rev"])
        self._docs[doc_id] = stored
        return stored["_rev"]

    async def create(self, document: dict[str, Any]) -> tuple[str, str]:
        self.create_calls += 1
        doc_id = document.get("_id") or uuid.uuid4().hex
        if doc_id in self._docs:
            raise DocumentExistsError(doc_id)
        stored = copy.deepcopy(document)
        stored["_id"] = doc_id
        stored["_rev"] = _next_revision(None)
        self._docs[doc_id] = stored
        return doc_id, stored["_rev"]

    async def fetch_attachment(self, doc_id: str, attachment_name: str) -> bytes:
        self.retrieve_calls += 1
        try:
            return self._attachments[(doc_id, attachment_name)]
        except KeyError:
            raise DocumentNotFoundError(doc_id, attachment_name) from None

    # ── Attachment PUT endpoint ──────────────────────────────────────

    def transport(self) -> httpx.MockTransport:
        """MockTransport serving ``PUT {base_url}/{doc_id}/{name}?rev=...``.

        Fails the test outright if a PUT carries a revision other than the one
        most recently handed out by ``retrieve``.
        """

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "PUT", f"unexpected {request.method} {request.url}"
            self.put_attempts += 1
            prefix = httpx.URL(BASE_URL).path.rstrip("/") + "/"
            doc_id, _, name = request.url.path[len(prefix):].partition("/")
            doc_id, name = unquote(doc_id), unquote(name)
            revision = request.url.params.get("rev")
            self.put_revisions.append(revision)

            assert revision == self.last_served_revision.get(doc_id), (
                f"PUT sent with revision {revision!r}, "
                f"latest refresh returned {self.last_served_revision.get(doc_id)!r}"
            )

            if self._put_statuses:
                status = self._put_statuses.pop(0)
                if status == 409 and doc_id in self._docs:
                    doc = self._docs[doc_id]
                    doc["_rev"] = _next_revision(doc["_rev"])
                if status != 201:
                    return httpx.Response(status, json={"error": "scripted", "reason": str(status)})

            if doc_id not in self._docs:
                return httpx.Response(404, json={"error": "not_found", "reason": "missing"})
            doc = self._docs[doc_id]
            if revision != doc["_rev"]:
                return httpx.Response(409, json={"error": "conflict", "reason": "Document update conflict."})

            content = request.content
            self._attachments[(doc_id, name)] = content
            doc.setdefault("_attachments", {})[name] = {
                "content_type": request.headers.get("content-type"),
                "length": len(content),
                "stub": True,
            }
            doc["_rev"] = _next_revision(doc["_rev"])
            return httpx.Response(
                201,
                content=json.dumps({"ok": True, "id": doc_id, "rev": doc["_rev"]}).encode(),
                headers={"content-type": "application/json"},
            )

        return httpx.MockTransport(handler)
