"""
couchtree Document Model — closed Leaf / Object variant.

Leaf:   textual content of one file.
Object: mapping of key -> node, one directory on disk.

Raw JSON fetched from CouchDB is converted with ``from_json`` before any
file is touched, so an unsupported value aborts the download up front.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Union

from couchtree.engine.errors import StructuralError

# Content suffix appended to leaf file names
DEFAULT_SUFFIX = ".js"

# Key-path separator used inside documents (independent of os.sep)
KEY_SEPARATOR = "/"

_RESERVED_SEGMENTS = {".", ".."}


@dataclass
class Leaf:
    """A string value, stored as one file."""

    content: str


@dataclass
class Object:
    """A nested mapping, stored as one directory."""

    children: Dict[str, "Node"] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.children)

    def __contains__(self, key: str) -> bool:
        return key in self.children

    def __getitem__(self, key: str) -> "Node":
        return self.children[key]

    def items(self):
        return self.children.items()

    def pop(self, key: str, default: Any = None) -> Any:
        return self.children.pop(key, default)


Node = Union[Leaf, Object]


def check_key(key: Any, key_path: str) -> None:
    """Raise StructuralError if *key* cannot be used as a single path segment."""
    if not isinstance(key, str) or not key:
        raise StructuralError(
            f"Empty or non-string key at '{key_path or '<root>'}'",
            key_path=key_path,
        )
    if KEY_SEPARATOR in key or key in _RESERVED_SEGMENTS:
        raise StructuralError(
            f"Key '{key}' cannot be stored as a path segment",
            key_path=_child_path(key_path, key),
        )


def check_siblings(children: Dict[str, "Node"], key_path: str, suffix: str) -> None:
    """
    Raise StructuralError when two sibling keys land on the same disk name:
    leaf ``x`` is written as file ``x<suffix>``, which an object key
    ``x<suffix>`` would need as its directory.
    """
    for key, child in children.items():
        if not isinstance(child, Object) or not key.endswith(suffix):
            continue
        stem = key[: -len(suffix)]
        if stem and isinstance(children.get(stem), Leaf):
            raise StructuralError(
                f"'{_child_path(key_path, stem)}' and '{_child_path(key_path, key)}' "
                f"both map to '{key}' on disk",
                key_path=_child_path(key_path, key),
            )


def check_tree(node: Any, suffix: str = DEFAULT_SUFFIX, key_path: str = "") -> None:
    """
    Check that *node* can be written to disk and read back unchanged.

    Raises:
        StructuralError: a non-node value, a bad key, or colliding siblings.
    """
    if not isinstance(node, Object):
        raise StructuralError(
            f"Expected an object at '{key_path or '<root>'}', got {type(node).__name__}",
            key_path=key_path,
            value_type=type(node).__name__,
        )
    for key, child in node.items():
        check_key(key, key_path)
        child_path = _child_path(key_path, key)
        if isinstance(child, Object):
            check_tree(child, suffix, child_path)
        elif not isinstance(child, Leaf):
            raise StructuralError(
                f"'{child_path}' is neither a leaf nor an object "
                f"({type(child).__name__})",
                key_path=child_path,
                value_type=type(child).__name__,
            )
    check_siblings(node.children, key_path, suffix)


def from_json(value: Any, key_path: str = "", suffix: str = DEFAULT_SUFFIX) -> Object:
    """
    Convert a decoded JSON mapping into an ``Object`` tree.

    Raises:
        StructuralError: for numbers, booleans, lists, null, bad keys, or
            sibling keys that collide once *suffix* is appended.
    """
    if not isinstance(value, dict):
        raise StructuralError(
            f"Expected an object at '{key_path or '<root>'}', got {type(value).__name__}",
            key_path=key_path,
            value_type=type(value).__name__,
        )

    children: Dict[str, Node] = {}
    for key, child in value.items():
        check_key(key, key_path)
        child_path = _child_path(key_path, key)
        if isinstance(child, str):
            children[key] = Leaf(child)
        elif isinstance(child, dict):
            children[key] = from_json(child, child_path, suffix)
        else:
            raise StructuralError(
                f"'{child_path}' is neither a string nor an object "
                f"({type(child).__name__})",
                key_path=child_path,
                value_type=type(child).__name__,
            )
    check_siblings(children, key_path, suffix)
    return Object(children)


def to_json(node: Node) -> Union[str, Dict[str, Any]]:
    """Convert a node back into plain ``str`` / ``dict`` values."""
    if isinstance(node, Leaf):
        return node.content
    if isinstance(node, Object):
        return {key: to_json(child) for key, child in node.items()}
    raise StructuralError(
        f"Unsupported node type {type(node).__name__}",
        value_type=type(node).__name__,
    )


def count_leaves(node: Node) -> int:
    """Number of Leaf values below *node* (inclusive)."""
    if isinstance(node, Leaf):
        return 1
    return sum(count_leaves(child) for _, child in node.items())


def _child_path(key_path: str, key: str) -> str:
    return f"{key_path}{KEY_SEPARATOR}{key}" if key_path else key
