"""Unit tests for couchtree.documents.serializer — document → files."""

import logging

import pytest

from couchtree.documents.models import Leaf, Object, from_json
from couchtree.documents.serializer import serialize
from couchtree.engine.errors import CouchTreeIOError, StructuralError


def _tree(root):
    """Map of relative path → bytes (files) or None (directories)."""
    return {
        p.relative_to(root).as_posix(): (p.read_bytes() if p.is_file() else None)
        for p in sorted(root.rglob("*"))
    }


@pytest.fixture
def target(tmp_path):
    (tmp_path / "indexes").mkdir()
    return tmp_path


class TestSerialize:
    def test_layout(self, target, design_doc):
        serialize(from_json(design_doc), target, "indexes")

        doc_dir = target / "indexes"
        assert (doc_dir / "_id.js").read_text() == "_design/indexes"
        assert (doc_dir / "_rev.js").read_text() == "3-abc123"
        assert (doc_dir / "views" / "by_name" / "map.js").read_text() == (
            "function(doc) { emit(doc.name, null); }"
        )
        assert (doc_dir / "views" / "by_name" / "reduce.js").read_text() == "_count"
        assert (doc_dir / "lib" / "validate.js").read_bytes() == (
            "// ünïcode comment\nexports.ok = true;".encode("utf-8")
        )

    def test_empty_object_is_empty_directory(self, target):
        serialize(Object({"a": Object()}), target, "indexes")
        assert (target / "indexes" / "a").is_dir()
        assert list((target / "indexes" / "a").iterdir()) == []

    def test_content_written_verbatim(self, target):
        content = "line one\r\nline two\n\n"
        serialize(Object({"f": Leaf(content)}), target, "indexes")
        assert (target / "indexes" / "f.js").read_bytes() == content.encode("utf-8")

    def test_idempotent(self, target, design_doc):
        doc = from_json(design_doc)
        serialize(doc, target, "indexes")
        first = _tree(target)
        serialize(doc, target, "indexes")
        assert _tree(target) == first

    def test_overwrites_but_never_deletes(self, target):
        doc_dir = target / "indexes"
        (doc_dir / "language.js").write_text("old")
        (doc_dir / "stale.js").write_text("left over")

        serialize(Object({"language": Leaf("javascript")}), target, "indexes")

        assert (doc_dir / "language.js").read_text() == "javascript"
        assert (doc_dir / "stale.js").read_text() == "left over"

    def test_custom_suffix(self, target):
        serialize(Object({"map": Leaf("fn")}), target, "indexes", suffix=".txt")
        assert (target / "indexes" / "map.txt").read_text() == "fn"

    def test_empty_rel_path(self, tmp_path):
        serialize(Object({"views": Object({"map": Leaf("fn")})}), tmp_path, "")
        assert (tmp_path / "views" / "map.js").read_text() == "fn"

    def test_logs_through_given_logger(self, target, caplog):
        log = logging.getLogger("test.serializer")
        with caplog.at_level(logging.DEBUG, logger="test.serializer"):
            serialize(Object({"v": Object({"map": Leaf("abc")})}), target, "indexes", log=log)
        messages = [r.getMessage() for r in caplog.records if r.name == "test.serializer"]
        assert any("mkdir" in m and m.endswith("indexes/v") for m in messages)
        assert "    3 bytes <- indexes/v/map.js" in messages


class TestSerializeErrors:
    def test_unsupported_value_aborts(self, target):
        doc = Object({"good": Leaf("x"), "views": Object({"bad": 42})})
        with pytest.raises(StructuralError) as exc_info:
            serialize(doc, target, "indexes")
        assert exc_info.value.key_path == "views/bad"
        assert list((target / "indexes").iterdir()) == []

    def test_parent_directory_key_rejected(self, target):
        doc = Object({"..": Object({"evil": Leaf("x")})})
        with pytest.raises(StructuralError):
            serialize(doc, target, "indexes")
        assert not (target / "evil.js").exists()
        assert list(target.rglob("*.js")) == []

    def test_empty_key_rejected(self, target):
        with pytest.raises(StructuralError):
            serialize(Object({"": Object({"m": Leaf("x")})}), target, "indexes")
        assert not (target / "indexes" / "m.js").exists()

    def test_key_with_separator_rejected(self, target):
        with pytest.raises(StructuralError) as exc_info:
            serialize(Object({"views": Object({"a/b": Leaf("x")})}), target, "indexes")
        assert exc_info.value.key_path == "views/a/b"
        assert list((target / "indexes").iterdir()) == []

    def test_leaf_and_suffixed_object_collide(self, target):
        doc = Object({"x": Leaf("a"), "x.js": Object()})
        with pytest.raises(StructuralError) as exc_info:
            serialize(doc, target, "indexes")
        assert exc_info.value.key_path == "x.js"
        assert list((target / "indexes").iterdir()) == []

    def test_collision_depends_on_suffix(self, target):
        serialize(Object({"x": Leaf("a"), "x.js": Object()}), target, "indexes", suffix=".txt")
        assert (target / "indexes" / "x.txt").read_text() == "a"
        assert (target / "indexes" / "x.js").is_dir()

    def test_file_in_place_of_directory(self, target):
        (target / "indexes" / "views").write_text("not a directory")
        with pytest.raises(CouchTreeIOError) as exc_info:
            serialize(Object({"views": Object({"map": Leaf("fn")})}), target, "indexes")
        assert exc_info.value.path == str(target / "indexes" / "views")

    def test_directory_in_place_of_file(self, target):
        (target / "indexes" / "language.js").mkdir()
        with pytest.raises(CouchTreeIOError) as exc_info:
            serialize(Object({"language": Leaf("javascript")}), target, "indexes")
        assert exc_info.value.path == str(target / "indexes" / "language.js")
