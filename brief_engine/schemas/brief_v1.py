"""Brief Document schema v1 — load, dump, validate."""
from __future__ import annotations

import json
from pathlib import Path
from typing import List, Union

from pydantic import ValidationError

from brief_engine.models import Document

SCHEMA_VERSION = "1.0.0"


def load_document(source: Union[str, bytes, dict, Path]) -> Document:
    """Parse a Document from JSON string, bytes, dict, or file Path.

    Raises:
        ValidationError: data does not conform to the Document model.
        FileNotFoundError: Path does not exist.
    """
    if isinstance(source, Path):
        data = json.loads(source.read_text(encoding="utf-8"))
    elif isinstance(source, (str, bytes)):
        data = json.loads(source)
    else:
        data = source
    return Document.model_validate(data)


def dump_document(document: Document, *, indent: int = 2) -> str:
    """Serialize a Document to canonical JSON (sort_keys=True, indent=2)."""
    raw = document.model_dump(mode="json")
    return json.dumps(raw, sort_keys=True, indent=indent, ensure_ascii=False)


def canonical_json_bytes(document: Document) -> bytes:
    """Return canonical UTF-8 bytes for a Document.

    Identical algorithm to dump_document() but returns bytes, not str; this is
    the payload of the JSON export.
    """
    return dump_document(document).encode("utf-8")


def validate_document(data: dict) -> List[str]:
    """Validate a raw dict against the Document model.

    Returns a list of human-readable error strings (empty list = valid).
    Does not raise.
    """
    try:
        Document.model_validate(data)
        return []
    except ValidationError as exc:
        return [f"{e['loc']}: {e['msg']}" for e in exc.errors()]
