"""
couchtree Error Hierarchy — Structured exceptions for sync failures.

Every error carries the context needed to locate the failure (filesystem
path, document key-path, filter pattern, HTTP status) and serializes to
JSON for the operation journal.

Hierarchy:
    CouchTreeError
    ├── CouchTreeIOError           — File/directory create, read or write failed
    ├── StructuralError            — Value is neither a leaf nor an object
    ├── StructuralConflictError    — A leaf and an object share one key-path
    ├── FilterPatternError         — Malformed glob filter
    ├── WalkEntryError             — One unreadable entry during a walk (non-fatal)
    ├── PathOutsideBaseError       — Path does not lie below its base directory
    ├── CouchTreeConfigError       — Configuration error
    └── CouchTreeIntegrationError  — Remote fetch/store failed
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional


class CouchTreeError(Exception):
    """
    Base error for all couchtree failures.
    All context is serializable to JSON.
    """

    def __init__(self, message: str, **context: Any):
        self.message = message
        self.path: Optional[str] = context.get("path")
        self.key_path: Optional[str] = context.get("key_path")
        self.document_id: Optional[str] = context.get("document_id")
        self.error_type: str = self.__class__.__name__
        self.context: Dict[str, Any] = context
        self.timestamp: str = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize error to JSON-compatible dict for the journal."""
        return {
            "error_type": self.error_type,
            "message": self.message,
            "path": self.path,
            "key_path": self.key_path,
            "document_id": self.document_id,
            "timestamp": self.timestamp,
            "context": {
                k: str(v) for k, v in self.context.items()
                if k not in ("path", "key_path", "document_id")
            },
        }

    def to_json(self) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), default=str)

    def __repr__(self) -> str:
        parts = [f"{self.error_type}: {self.message}"]
        if self.path:
            parts.append(f"path={self.path}")
        if self.key_path:
            parts.append(f"key_path={self.key_path}")
        return " | ".join(parts)


class CouchTreeIOError(CouchTreeError):
    """Directory creation, file read or file write failed. ``path`` is the failing path."""
    pass


class StructuralError(CouchTreeError):
    """
    The document holds a value that is neither a string leaf nor an object
    (number, boolean, list, null), or a key that cannot be a path segment.
    """

    def __init__(self, message: str, **context: Any):
        self.value_type: Optional[str] = context.get("value_type")
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["value_type"] = self.value_type
        return d


class StructuralConflictError(CouchTreeError):
    """A file and a directory map onto the same key-path."""
    pass


class FilterPatternError(CouchTreeError):
    """The file filter glob is malformed."""

    def __init__(self, message: str, **context: Any):
        self.pattern: Optional[str] = context.get("pattern")
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["pattern"] = self.pattern
        return d


class WalkEntryError(CouchTreeError):
    """
    A single filesystem entry could not be listed during a walk.
    Logged and skipped; never aborts the walk.
    """
    pass


class PathOutsideBaseError(CouchTreeError):
    """A path was expected to lie below a base directory but does not."""

    def __init__(self, message: str, **context: Any):
        self.base: Optional[str] = context.get("base")
        super().__init__(message, **context)


class CouchTreeConfigError(CouchTreeError):
    """Configuration error — invalid couchtree.yaml or option."""
    pass


class CouchTreeIntegrationError(CouchTreeError):
    """The CouchDB server call failed (transport error or non-2xx response)."""

    def __init__(self, message: str, **context: Any):
        self.url: Optional[str] = context.get("url")
        self.status_code: Optional[int] = context.get("status_code")
        self.response_body: Optional[str] = context.get("response_body")
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["url"] = self.url
        d["status_code"] = self.status_code
        return d
