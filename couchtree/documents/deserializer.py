"""
Filesystem → document.

Walks a directory depth-first (lexical order) and rebuilds the nested
document: every directory becomes an Object, every file matching the filter
becomes a Leaf keyed by its name without the content suffix.

Severity is tiered:
    - malformed filter      → FilterPatternError, nothing is walked
    - unlistable directory  → WalkEntryError logged, entry skipped
    - unreadable file       → CouchTreeIOError, walk aborted
"""

from __future__ import annotations

import fnmatch
import logging
import os
from pathlib import Path
from typing import Callable, Optional, Union

from couchtree.documents.models import DEFAULT_SUFFIX, Leaf, Object
from couchtree.documents.paths import key_path_for, put
from couchtree.engine.errors import CouchTreeIOError, FilterPatternError, WalkEntryError

logger = logging.getLogger("couchtree.documents.deserializer")

DEFAULT_FILTER = "*" + DEFAULT_SUFFIX


def compile_filter(pattern: str) -> Callable[[str], bool]:
    """
    Validate a glob *pattern* and return a case-sensitive matcher for base names.

    Raises:
        FilterPatternError: empty pattern, a path separator in the pattern,
            a trailing backslash, an unterminated character class, or a
            class range with no upper bound (``[a-]``).

    Backslash is an ordinary character for fnmatch, not an escape.
    """
    if not pattern:
        raise FilterPatternError("Filter pattern is empty", pattern=pattern)
    if "/" in pattern or os.sep in pattern:
        raise FilterPatternError(
            f"Filter pattern '{pattern}' must match file names, not paths",
            pattern=pattern,
        )
    if pattern.endswith("\\"):
        raise FilterPatternError(
            f"Filter pattern '{pattern}' ends with a backslash",
            pattern=pattern,
        )

    i, n = 0, len(pattern)
    while i < n:
        if pattern[i] == "[":
            j = i + 1
            if j < n and pattern[j] == "!":
                j += 1
            # A ']' right after '[' or '[!' is a literal member of the class
            if j < n and pattern[j] == "]":
                j += 1
            while j < n and pattern[j] != "]":
                j += 1
            if j >= n:
                raise FilterPatternError(
                    f"Unterminated character class in filter '{pattern}'",
                    pattern=pattern,
                )
            members = pattern[i + 1:j].lstrip("!")
            if len(members) > 1 and members.endswith("-"):
                raise FilterPatternError(
                    f"Open-ended range in filter '{pattern}'",
                    pattern=pattern,
                )
            i = j
        i += 1

    return lambda name: fnmatch.fnmatchcase(name, pattern)


def deserialize(
    base_dir: Union[str, Path],
    rel_path: str,
    file_filter: str = DEFAULT_FILTER,
    suffix: str = DEFAULT_SUFFIX,
    log: Optional[logging.Logger] = None,
) -> Object:
    """
    Rebuild the document stored below ``base_dir/rel_path``.

    Args:
        base_dir: Directory the relative path is resolved against.
        rel_path: Document directory, relative to *base_dir*.
        file_filter: Glob matched against file names; others are ignored.
        suffix: Content suffix stripped from file names to form keys.
        log: Logger for progress output (defaults to the module logger).

    Returns:
        The reassembled document. Empty directories yield empty Objects.

    Raises:
        FilterPatternError: malformed *file_filter*.
        CouchTreeIOError: missing root or an unreadable file.
        StructuralConflictError: a file and a directory share one key-path.
    """
    log = log or logger
    matches = compile_filter(file_filter)

    root = os.path.join(str(base_dir), rel_path) if rel_path else str(base_dir)
    if not os.path.isdir(root):
        raise CouchTreeIOError(f"{root} is not a directory", path=root)

    log.info("path to recurse: %s", root)
    document = Object()

    def _on_walk_error(error: OSError) -> None:
        entry_error = WalkEntryError(
            f"Skipping unreadable entry: {error}", path=getattr(error, "filename", None),
        )
        log.warning("%r", entry_error)

    for dirpath, dirnames, filenames in os.walk(root, onerror=_on_walk_error):
        dirnames.sort()

        if dirpath != root:
            put(key_path_for(root, dirpath), Object(), document)

        for name in sorted(filenames):
            if not matches(name):
                log.debug("ignoring %s", os.path.join(dirpath, name))
                continue

            full = os.path.join(dirpath, name)
            try:
                with open(full, "rb") as f:
                    raw = f.read()
                content = raw.decode("utf-8")
            except (OSError, UnicodeDecodeError) as e:
                raise CouchTreeIOError(f"Reading {full} failed: {e}", path=full) from e

            key = key_path_for(root, full, suffix)
            log.info("%5d bytes -> %s", len(raw), key)
            put(key, Leaf(content), document)

    return document
