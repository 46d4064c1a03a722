"""couchtree Engine — Errors, configuration, logging, CouchDB client."""

from couchtree.engine.client import CouchClient, StoreResult  # noqa: F401

__all__ = [
    "CouchClient",
    "StoreResult",
]
