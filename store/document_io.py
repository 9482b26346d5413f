"""
document_io.py — Load and save ScriptDocument JSON files.

Files are written in canonical form (sorted keys, 2-space indent, camelCase
field names) so identical documents always produce byte-identical files.
Writes go to a sibling temp file first and are moved into place, so a reader
never observes a half-written document.
"""

import os
from pathlib import Path
from typing import Union

from drama_engine.adaptation.models import ScriptDocument
from drama_engine.schemas.document_v1 import canonical_json_bytes, load_document


def read_document(path: Union[str, Path]) -> ScriptDocument:
    """Load a ScriptDocument from a JSON file.

    Raises:
        FileNotFoundError: If the file does not exist.
        pydantic.ValidationError: If the file is not a valid ScriptDocument.
    """
    return load_document(Path(path))


def write_document(path: Union[str, Path], document: ScriptDocument) -> None:
    """Atomically write *document* to *path* (created or overwritten)."""
    path = Path(path)
    tmp = path.with_name(path.name + ".tmp")
    tmp.write_bytes(canonical_json_bytes(document) + b"\n")
    os.replace(tmp, path)
