"""
couchtree — CouchDB design documents as plain file trees.

Downloads a design document into a directory of ``.js`` files (one directory
per nested object, one file per string value) and uploads the tree back.
"""

__version__ = "1.0.0"
__all__ = ["engine", "documents", "sync", "cli"]
