from __future__ import annotations

import os
from pathlib import Path
from typing import List


def load_env_file(path: str, override: bool = False) -> List[str]:
    """Apply KEY=VALUE lines from ``path`` to ``os.environ``.

    Returns the keys that were set. A missing file is not an error.
    """
    env_path = Path(path)
    if not env_path.exists():
        return []
    applied: List[str] = []
    for line in env_path.read_text(encoding="utf-8").splitlines():
        raw = line.strip()
        if not raw or raw.startswith("#"):
            continue
        if raw.startswith("export "):
            raw = raw[len("export ") :].strip()
        key, sep, value = raw.partition("=")
        key = key.strip()
        if not sep or not key:
            continue
        if not override and key in os.environ:
            continue
        os.environ[key] = value.strip().strip("'").strip('"')
        applied.append(key)
    return applied
