"""Versioned schema loaders and validators."""

from drama_engine.schemas.document_v1 import dump_document, load_document, validate_document

__all__ = [
    "load_document",
    "dump_document",
    "validate_document",
]
