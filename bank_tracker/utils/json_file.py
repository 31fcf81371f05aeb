"""Small helpers for JSON documents kept in a single file"""

import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Dict

_file_locks: Dict[Path, threading.RLock] = {}
_registry_lock = threading.Lock()


def file_lock(path: Path) -> threading.RLock:
    """
    Process-wide lock for one file.

    Every caller that opens the same path gets the same lock, so a
    read-modify-write held under it cannot interleave with another one.
    """
    key = Path(path).resolve()
    with _registry_lock:
        lock = _file_locks.get(key)
        if lock is None:
            lock = _file_locks[key] = threading.RLock()
        return lock


def read_json_file(path: Path) -> Dict[str, Any]:
    """Read a JSON object from disk; a missing file reads as empty"""
    if not path.exists():
        return {}
    return json.loads(path.read_text(encoding="utf-8"))


def write_json_file(path: Path, data: Dict[str, Any]) -> None:
    """Replace the file atomically so readers never see a partial write"""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(data, fh, indent=2, sort_keys=True)
        os.replace(tmp_name, path)
    except BaseException:
        os.unlink(tmp_name)
        raise
