"""
couchtree CouchDB Client — fetch and store whole documents over HTTP.

    fetch(database, doc_id)            → GET /{database}/{doc_id}
    store(database, doc_id, document)  → PUT /{database}/{doc_id}

Uses a synchronous httpx.Client (one connection pool per client). Retries
and conflict handling are left to the caller.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx
from pydantic import BaseModel, ValidationError

from couchtree.engine.errors import CouchTreeIntegrationError

logger = logging.getLogger("couchtree.engine.client")


class StoreResult(BaseModel):
    """CouchDB's answer to a successful PUT."""
    ok: bool = False
    id: str
    rev: str


class CouchClient:
    """
    Thin CouchDB document client.

    Basic authentication is used only when both *user* and *password* are set.
    Pass *transport* to swap the network layer (e.g. ``httpx.MockTransport``).
    """

    def __init__(
        self,
        server: str = "http://localhost:5984",
        user: Optional[str] = None,
        password: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        auth = httpx.BasicAuth(user, password) if user and password else None
        self._server = server.rstrip("/")
        self._client = httpx.Client(
            base_url=self._server,
            auth=auth,
            timeout=httpx.Timeout(timeout, connect=10.0),
            headers={"Accept": "application/json"},
            transport=transport,
        )

    def __enter__(self) -> "CouchClient":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    @property
    def server(self) -> str:
        return self._server

    @staticmethod
    def document_url(database: str, doc_id: str) -> str:
        # Design document ids keep their slash: /db/_design/name
        return f"/{database}/{doc_id}"

    def fetch(self, database: str, doc_id: str) -> Dict[str, Any]:
        """GET a document and return its decoded JSON body."""
        url = self.document_url(database, doc_id)
        logger.debug(f"GET {self._server}{url}")
        body = self._request("GET", url)
        if not isinstance(body, dict):
            raise CouchTreeIntegrationError(
                f"Expected a JSON object from {url}",
                url=url,
                document_id=doc_id,
                response_body=str(body)[:500],
            )
        return body

    def store(self, database: str, doc_id: str, document: Dict[str, Any]) -> StoreResult:
        """PUT a document; returns the new revision."""
        url = self.document_url(database, doc_id)
        logger.debug(f"PUT {self._server}{url}")
        body = self._request("PUT", url, json=document)
        try:
            return StoreResult.model_validate(body)
        except ValidationError as e:
            raise CouchTreeIntegrationError(
                f"Unexpected response storing {url}: {e}",
                url=url,
                document_id=doc_id,
                response_body=str(body)[:500],
            ) from e

    def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        try:
            response = self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise CouchTreeIntegrationError(
                f"{method} {url} failed: {e}", url=url,
            ) from e

        if not 200 <= response.status_code < 300:
            raise CouchTreeIntegrationError(
                f"{method} {url} failed with HTTP {response.status_code}",
                url=url,
                status_code=response.status_code,
                response_body=response.text[:500],
            )

        try:
            return response.json()
        except ValueError as e:
            raise CouchTreeIntegrationError(
                f"{method} {url} returned invalid JSON",
                url=url,
                status_code=response.status_code,
                response_body=response.text[:500],
            ) from e
