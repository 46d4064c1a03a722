"""
couchtree Document ↔ Tree Mapping.

Serializes nested design documents to directories of plain files and
reassembles them from disk.
"""

from couchtree.documents.deserializer import deserialize
from couchtree.documents.models import Leaf, Object, from_json, to_json
from couchtree.documents.paths import design_document_name, put, strip_base
from couchtree.documents.serializer import serialize

__all__ = [
    "Leaf",
    "Object",
    "from_json",
    "to_json",
    "serialize",
    "deserialize",
    "design_document_name",
    "strip_base",
    "put",
]
