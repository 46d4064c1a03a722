"""
Path & key-path helpers shared by the serializer and deserializer.

Filesystem paths and document key-paths must agree: stripping the base
directory and the content suffix from a leaf file's path, then splitting on
the separator, yields exactly the key-path the value is stored under.
"""

from __future__ import annotations

import logging
import os
import re
from typing import List, Optional

from couchtree.documents.models import KEY_SEPARATOR, Leaf, Node, Object
from couchtree.engine.errors import PathOutsideBaseError, StructuralConflictError

logger = logging.getLogger("couchtree.documents.paths")

DESIGN_PREFIX = "_design"

_DESIGN_ID_RE = re.compile(r"^" + re.escape(DESIGN_PREFIX) + r"/(.*)$")


def design_document_name(doc_id: str) -> str:
    """
    Map a document id to its on-disk directory name.

    Examples:
        design_document_name("_design/v1")  → "v1"
        design_document_name("design/v1")   → "design/v1"
    """
    match = _DESIGN_ID_RE.match(doc_id)
    if match:
        return match.group(1)
    return doc_id


def strip_base(base: str, full: str, sep: str = os.sep) -> str:
    """
    Remove *base* (plus one separator, unless *base* already ends in one)
    from the front of *full*.

    Raises:
        PathOutsideBaseError: if *full* is not strictly below *base*.
    """
    prefix = base if base.endswith(sep) else base + sep
    if not full.startswith(prefix) or len(full) == len(prefix):
        raise PathOutsideBaseError(
            f"'{full}' is not below '{base}'", path=full, base=base,
        )
    return full[len(prefix):]


def split_key_path(key_path: str) -> List[str]:
    return key_path.split(KEY_SEPARATOR)


def join_key_path(segments: List[str]) -> str:
    return KEY_SEPARATOR.join(segments)


def key_path_for(
    base: str, full: str, suffix: Optional[str] = None, sep: str = os.sep
) -> str:
    """
    Document key-path for the filesystem entry *full* below *base*.
    *suffix* is removed from the last segment when present.
    """
    relative = strip_base(base, full, sep)
    name = relative.rsplit(sep, 1)[-1]
    if suffix and name.endswith(suffix) and len(name) > len(suffix):
        relative = relative[: -len(suffix)]
    if sep != KEY_SEPARATOR:
        relative = relative.replace(sep, KEY_SEPARATOR)
    return relative


def put(key_path: str, value: Node, root: Object) -> None:
    """
    Insert *value* at *key_path* inside *root*, creating intermediate objects.

    A Leaf replaces a prior Leaf at the same key. An Object put over an
    existing Object keeps the existing one.

    Raises:
        StructuralConflictError: when a leaf and an object meet on one key-path.
    """
    segments = split_key_path(key_path)
    current = root
    walked: List[str] = []

    for segment in segments[:-1]:
        walked.append(segment)
        child = current.children.get(segment)
        if child is None:
            child = Object()
            current.children[segment] = child
        elif not isinstance(child, Object):
            raise StructuralConflictError(
                f"'{join_key_path(walked)}' is a file but '{key_path}' needs it to be a directory",
                key_path=key_path,
            )
        current = child

    last = segments[-1]
    existing = current.children.get(last)
    if existing is None:
        current.children[last] = value
    elif isinstance(existing, Object) and isinstance(value, Object):
        logger.debug(f"Object already present at {key_path}")
    elif isinstance(existing, Leaf) and isinstance(value, Leaf):
        current.children[last] = value
    else:
        raise StructuralConflictError(
            f"'{key_path}' is both a file and a directory",
            key_path=key_path,
        )
