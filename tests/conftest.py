"""
couchtree Test Suite — Shared fixtures and configuration.

Run:  pytest tests/ -v
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

import httpx
import pytest

from couchtree.engine.client import StoreResult


# ---------------------------------------------------------------------------
# Isolation — keep couchtree logging state out of other tests
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _isolate_logging():
    """Drop any handler installed by configure_logging between tests."""
    import logging

    import couchtree.engine.logging as log_mod

    yield
    root = logging.getLogger(log_mod.ROOT_LOGGER)
    if log_mod._handler is not None:
        root.removeHandler(log_mod._handler)
        log_mod._handler = None
    root.propagate = True
    root.setLevel(logging.NOTSET)


@pytest.fixture
def design_doc() -> Dict[str, Any]:
    """A typical design document as CouchDB returns it."""
    return {
        "_id": "_design/indexes",
        "_rev": "3-abc123",
        "language": "javascript",
        "views": {
            "by_name": {
                "map": "function(doc) { emit(doc.name, null); }",
                "reduce": "_count",
            },
            "by_date": {
                "map": "function(doc) {\n  emit(doc.date, 1);\n}\n",
            },
        },
        "filters": {},
        "lib": {"validate": "// ünïcode comment\nexports.ok = true;"},
    }


class FakeStore:
    """In-memory stand-in for CouchClient."""

    def __init__(self, documents: Optional[Dict[str, Dict[str, Any]]] = None, rev: str = "4-def456"):
        self.documents = documents or {}
        self.rev = rev
        self.stored: List[Dict[str, Any]] = []

    def fetch(self, database: str, doc_id: str) -> Dict[str, Any]:
        return self.documents[doc_id]

    def store(self, database: str, doc_id: str, document: Dict[str, Any]) -> StoreResult:
        self.stored.append({"database": database, "id": doc_id, "document": document})
        return StoreResult(ok=True, id=doc_id, rev=self.rev)


@pytest.fixture
def fake_store(design_doc) -> FakeStore:
    return FakeStore({"_design/indexes": design_doc})


@pytest.fixture
def couch_transport(design_doc):
    """
    httpx.MockTransport emulating a CouchDB server with one database ``mydb``.
    Requests are recorded on ``transport.requests``.
    """
    requests: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        path = request.url.path
        if path == "/mydb/_design/indexes":
            if request.method == "GET":
                return httpx.Response(200, json=design_doc)
            if request.method == "PUT":
                body = json.loads(request.content)
                return httpx.Response(201, json={"ok": True, "id": body.get("_id", "_design/indexes"), "rev": "4-def456"})
        return httpx.Response(404, json={"error": "not_found", "reason": "missing"})

    transport = httpx.MockTransport(handler)
    transport.requests = requests
    return transport


@pytest.fixture
def store_factory():
    """Build a FakeStore with custom documents / revision."""
    return FakeStore
