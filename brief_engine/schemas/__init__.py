"""Versioned document loaders and validators."""

from brief_engine.schemas.brief_v1 import (
    canonical_json_bytes,
    dump_document,
    load_document,
    validate_document,
)

__all__ = [
    "load_document",
    "dump_document",
    "canonical_json_bytes",
    "validate_document",
]
