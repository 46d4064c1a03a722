"""
couchtree Sync — download a design document to disk, upload it back.

Layout on disk:
    {base_path}/{database}/{design document name}/...

download: fetch → validate → mkdir → serialize
upload:   deserialize → (drop _rev) → store → rewrite _rev sidecar

Both return normally on success and raise a CouchTreeError on any fatal
failure; nothing here terminates the process.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from couchtree.documents.deserializer import DEFAULT_FILTER, deserialize
from couchtree.documents.models import DEFAULT_SUFFIX, count_leaves, from_json, to_json
from couchtree.documents.paths import design_document_name
from couchtree.documents.serializer import serialize
from couchtree.engine.client import CouchClient
from couchtree.engine.errors import CouchTreeIOError, StructuralError
from couchtree.engine.logging import FileLogger, log_sync_event

logger = logging.getLogger("couchtree.sync")

REV_KEY = "_rev"


@dataclass
class SyncResult:
    """Outcome of one download/upload."""
    document_id: str
    path: Path
    files: int
    rev: Optional[str] = None


def document_dir(base_path: str, database: str, document_id: str) -> Path:
    """Directory holding *document_id* of *database* below *base_path*."""
    return Path(base_path) / database / design_document_name(document_id)


def download(
    store: CouchClient,
    database: str,
    base_path: str,
    document_id: str,
    suffix: str = DEFAULT_SUFFIX,
    journal: Optional[FileLogger] = None,
    log: Optional[logging.Logger] = None,
) -> SyncResult:
    """Fetch *document_id* and write it below ``base_path/database``."""
    log = log or logger
    start = time.monotonic()
    target = document_dir(base_path, database, document_id)
    try:
        raw = store.fetch(database, document_id)
        doc_id = raw.get("_id")
        if not isinstance(doc_id, str):
            raise StructuralError(
                f"Document {document_id} has no string _id ({doc_id!r})",
                document_id=document_id,
                key_path="_id",
            )
        document = from_json(raw, suffix=suffix)

        name = design_document_name(doc_id)
        db_dir = Path(base_path) / database
        target = db_dir / name
        log.info("downloading files to: %s", db_dir)
        try:
            target.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CouchTreeIOError(f"Creating {target} failed: {e}", path=str(target)) from e

        serialize(document, db_dir, name, suffix=suffix, log=log)
    except Exception as e:
        _journal(journal, "download", database, document_id, target, start, False, error=e)
        raise

    result = SyncResult(document_id=doc_id, path=target, files=count_leaves(document))
    _journal(journal, "download", database, document_id, target, start, True, files=result.files)
    return result


def upload(
    store: CouchClient,
    database: str,
    base_path: str,
    document_id: str,
    ignore_rev: bool = False,
    suffix: str = DEFAULT_SUFFIX,
    file_filter: str = DEFAULT_FILTER,
    journal: Optional[FileLogger] = None,
    log: Optional[logging.Logger] = None,
) -> SyncResult:
    """
    Read the tree for *document_id* and PUT it to ``database``.

    With *ignore_rev*, a top-level ``_rev`` is dropped from the payload. The
    ``_rev`` sidecar is rewritten with the server's revision either way.
    """
    log = log or logger
    start = time.monotonic()
    source = document_dir(base_path, database, document_id)
    files = 0
    try:
        document = deserialize(source, "", file_filter=file_filter, suffix=suffix, log=log)
        if ignore_rev:
            document.pop(REV_KEY)
        files = count_leaves(document)

        result = store.store(database, document_id, to_json(document))
        log.info("stored %s as rev %s", result.id, result.rev)

        sidecar = source / f"{REV_KEY}{suffix}"
        try:
            sidecar.write_bytes(result.rev.encode("utf-8"))
        except OSError as e:
            raise CouchTreeIOError(
                f"Unable to update the revision ({result.rev}) into {sidecar}: {e}",
                path=str(sidecar),
            ) from e
    except Exception as e:
        _journal(journal, "upload", database, document_id, source, start, False, error=e)
        raise

    _journal(journal, "upload", database, document_id, source, start, True,
             files=files, rev=result.rev)
    return SyncResult(document_id=document_id, path=source, files=files, rev=result.rev)


def _journal(
    journal: Optional[FileLogger],
    operation: str,
    database: str,
    document_id: str,
    path: Path,
    start: float,
    success: bool,
    **extra: Any,
) -> None:
    if journal is None:
        return
    entry = log_sync_event(
        operation,
        database=database,
        document_id=document_id,
        path=str(path),
        duration_ms=(time.monotonic() - start) * 1000,
        success=success,
        **extra,
    )
    try:
        journal.write(entry)
    except OSError as e:
        logger.warning(f"Could not write journal entry to {journal.log_dir}: {e}")
