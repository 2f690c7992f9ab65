"""Shared JSON file I/O for persistent data files."""

import json
import os
import tempfile
from pathlib import Path
from typing import Any

from cadence_bot.config import DATA_DIR as DATA_DIR

STATE_DIR = DATA_DIR / "state"


def read_json(filepath: Path, default: Any) -> Any:
    """Return `default` when the file is missing or empty."""
    if not filepath.exists():
        return default
    text = filepath.read_text()
    if not text.strip():
        return default
    return json.loads(text)


def write_json(filepath: Path, data: Any) -> None:
    """Atomic write via tempfile + os.replace."""
    filepath.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=filepath.parent, suffix=".tmp")
    try:
        os.write(fd, json.dumps(data, indent=2, sort_keys=True).encode())
    finally:
        os.close(fd)
    os.replace(tmp, filepath)
