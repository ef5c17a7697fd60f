"""Completion scoring against a role's required fields.

Pure functions over the current document; nothing is cached, so the score can
never drift from the document's contents.
"""
from __future__ import annotations

import math
from typing import Any, Iterable, List

from brief_engine.models import Document


def is_present(value: Any) -> bool:
    """A value is present iff it is not None, not "", and not an empty list."""
    if value is None:
        return False
    if isinstance(value, str):
        return value != ""
    if isinstance(value, (list, tuple)):
        return len(value) > 0
    return True


def missing_fields(document: Document, required_fields: Iterable[str]) -> List[str]:
    """Required fields that are not present, in the order given."""
    return [
        name for name in required_fields
        if not is_present(getattr(document, name, None))
    ]


def percentage(document: Document, required_fields: Iterable[str]) -> int:
    """100 * present / required, rounded half up; 100 when nothing is required."""
    required = list(required_fields)
    if not required:
        return 100
    present = len(required) - len(missing_fields(document, required))
    return math.floor(100 * present / len(required) + 0.5)
