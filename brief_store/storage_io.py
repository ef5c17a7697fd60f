"""
storage_io.py — Load and save JSON state files.

Files are written with sorted keys and consistent indentation so that
identical state always produces byte-identical files.  Writes go to a temp
file in the target directory first and are renamed into place, so a crash
mid-write never leaves a half-written state file behind.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Union


def load_json(path: Union[str, Path]) -> Any:
    """Load a JSON document from *path*.

    Raises:
        FileNotFoundError: If the file does not exist.
        json.JSONDecodeError: If the file is not valid JSON.
    """
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def save_json(path: Union[str, Path], data: Any) -> None:
    """Atomically write *data* as canonical JSON to *path*.

    Parent directories are created as needed.
    """
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=str(target.parent), suffix=".tmp", prefix=".state_")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, sort_keys=True, indent=2, ensure_ascii=False)
            f.write("\n")  # POSIX trailing newline
        os.replace(tmp_path, target)
    except BaseException:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise
