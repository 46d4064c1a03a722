"""
Document → filesystem.

One directory per nested Object, one ``<key><suffix>`` file per Leaf.
Existing files are overwritten; files absent from the document are left alone.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

from couchtree.documents.models import DEFAULT_SUFFIX, KEY_SEPARATOR, Leaf, Object, check_tree
from couchtree.engine.errors import CouchTreeIOError

logger = logging.getLogger("couchtree.documents.serializer")


def serialize(
    node: Object,
    base_dir: Union[str, Path],
    rel_path: str,
    suffix: str = DEFAULT_SUFFIX,
    log: Optional[logging.Logger] = None,
) -> None:
    """
    Write *node* below ``base_dir/rel_path``.

    ``base_dir/rel_path`` must already exist. The whole tree is checked
    before the first write, then written depth-first; the first fatal error
    aborts the pass.

    Raises:
        StructuralError: a child is neither a Leaf nor an Object, a key is
            not a single path segment, or two siblings collide on disk.
            ``key_path`` is relative to the document root.
        CouchTreeIOError: a directory or file could not be created/written.
    """
    check_tree(node, suffix)
    _write(node, Path(base_dir), rel_path, "", suffix, log or logger)


def _write(
    node: Object,
    base: Path,
    rel_path: str,
    key_path: str,
    suffix: str,
    log: logging.Logger,
) -> None:
    for key, value in node.items():
        child_rel = f"{rel_path}/{key}" if rel_path else key
        child_key = f"{key_path}{KEY_SEPARATOR}{key}" if key_path else key

        if isinstance(value, Leaf):
            filename = base / f"{child_rel}{suffix}"
            raw = value.content.encode("utf-8")
            log.info("%5d bytes <- %s%s", len(raw), child_rel, suffix)
            try:
                filename.write_bytes(raw)
            except OSError as e:
                raise CouchTreeIOError(
                    f"Writing file {filename} failed: {e}", path=str(filename), key_path=child_key,
                ) from e

        else:
            dirname = base / child_rel
            log.debug("mkdir %s", dirname)
            try:
                dirname.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise CouchTreeIOError(
                    f"Creating directory {dirname} failed: {e}", path=str(dirname), key_path=child_key,
                ) from e
            _write(value, base, child_rel, child_key, suffix, log)