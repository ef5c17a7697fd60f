"""
document_store.py — durable key-value store for the in-progress brief.

Layout under <base_dir>/:

    brief-store.json      ← {schema_version, document, role, current_step_index}

One JSON file per key.  The store is written on every save tick and read once
at startup.  Reads used for rehydration never raise: a missing, unreadable or
corrupt entry is reported as "nothing stored" so the caller can fall back to
an empty document.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, Optional

from .storage_io import load_json, save_json

logger = logging.getLogger(__name__)

DEFAULT_KEY = "brief-store"
STATE_SCHEMA_VERSION = "1.0.0"

_KEY_RE = re.compile(r"[A-Za-z0-9][A-Za-z0-9._-]*")


# ---------------------------------------------------------------------------
# Key-value storage
# ---------------------------------------------------------------------------

class JsonFileStorage:
    """Key-value store backed by one JSON file per key under *base_dir*."""

    def __init__(self, base_dir: str | Path):
        self.base_dir = Path(base_dir).expanduser()

    def path_for(self, key: str) -> Path:
        """Return the file backing *key*.

        Raises:
            ValueError: If *key* is not a plain file-name token.
        """
        if not _KEY_RE.fullmatch(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.base_dir / f"{key}.json"

    def get(self, key: str) -> Optional[Any]:
        """Return the stored value, or None when nothing is stored.

        Raises:
            json.JSONDecodeError: If the stored file is corrupt.
            OSError: If the file exists but cannot be read.
        """
        path = self.path_for(key)
        if not path.exists():
            return None
        return load_json(path)

    def set(self, key: str, value: Any) -> None:
        save_json(self.path_for(key), value)

    def delete(self, key: str) -> bool:
        """Remove *key*; returns False when it was not stored."""
        path = self.path_for(key)
        if not path.exists():
            return False
        path.unlink()
        return True


# ---------------------------------------------------------------------------
# Persisted wizard state
# ---------------------------------------------------------------------------

def save_state(
    storage: JsonFileStorage,
    document: Dict[str, Any],
    role: Optional[str],
    current_step_index: int,
    key: str = DEFAULT_KEY,
) -> None:
    """Persist the full document plus role and step index under *key*.

    Args:
        storage:            Target store.
        document:           JSON-ready dump of the Document.
        role:               Selected role, or None before a role is chosen.
        current_step_index: Wizard position to restore on next start.
        key:                Storage key (fixed namespace for the brief).
    """
    storage.set(
        key,
        {
            "schema_version": STATE_SCHEMA_VERSION,
            "document": document,
            "role": role,
            "current_step_index": current_step_index,
        },
    )
    logger.info("Saved brief state to %s", storage.path_for(key))


def load_state(storage: JsonFileStorage, key: str = DEFAULT_KEY) -> Optional[Dict[str, Any]]:
    """Load persisted state for rehydration.

    Returns:
        The stored state dict, or None when nothing usable is stored.  Read
        and parse failures are logged and reported as None, never raised.
    """
    try:
        raw = storage.get(key)
    except (OSError, json.JSONDecodeError, UnicodeDecodeError) as exc:
        logger.warning("Ignoring unreadable brief state under %r: %s", key, exc)
        return None
    if raw is None:
        return None
    if not isinstance(raw, dict) or not isinstance(raw.get("document"), dict):
        logger.warning("Ignoring malformed brief state under %r", key)
        return None
    return raw


def clear_state(storage: JsonFileStorage, key: str = DEFAULT_KEY) -> bool:
    return storage.delete(key)
