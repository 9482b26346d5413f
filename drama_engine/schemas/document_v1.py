"""ScriptDocument schema v1.0.0 — load, dump, validate.

Documents are read and written in their camelCase wire form.  Canonical JSON
(sort_keys=True) keeps serialization byte-identical for identical models.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Union

from pydantic import ValidationError

from drama_engine.adaptation.models import ScriptDocument

SCHEMA_VERSION = "1.0.0"


def load_document(source: Union[str, bytes, dict, Path]) -> ScriptDocument:
    """Parse a ScriptDocument from JSON string, bytes, dict, or file Path.

    Both camelCase and snake_case field names are accepted.

    Raises:
        ValidationError: data does not conform to the ScriptDocument schema.
        FileNotFoundError: Path does not exist.
    """
    if isinstance(source, Path):
        data = json.loads(source.read_text(encoding="utf-8"))
    elif isinstance(source, (str, bytes)):
        data = json.loads(source)
    else:
        data = source
    return ScriptDocument.model_validate(data)


def canonical_document_dict(document: ScriptDocument) -> Dict[str, Any]:
    return document.model_dump(mode="json", by_alias=True)


def dump_document(document: ScriptDocument, *, indent: int = 2) -> str:
    """Serialize a ScriptDocument to canonical JSON (sort_keys=True, indent=2)."""
    return json.dumps(canonical_document_dict(document), sort_keys=True, indent=indent, ensure_ascii=False)


def canonical_json_bytes(document: ScriptDocument) -> bytes:
    """UTF-8 bytes of ``dump_document``; what the document store writes."""
    return dump_document(document).encode("utf-8")


def validate_document(data: dict) -> List[str]:
    """Validate a raw dict against the ScriptDocument schema.

    Returns a list of human-readable error strings (empty list = valid).
    Does not raise.
    """
    try:
        ScriptDocument.model_validate(data)
        return []
    except ValidationError as exc:
        return [f"{e['loc']}: {e['msg']}" for e in exc.errors()]
