from __future__ import annotations

import os
from pathlib import Path

import xxhash


def expand_path(path_str: str) -> Path:
    """Expand ``~`` and environment variables; relative paths stay relative to the cwd."""

    return Path(os.path.expandvars(os.path.expanduser(path_str)))


def file_digest(path: Path) -> str:
    hasher = xxhash.xxh64()
    with path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(1 << 16), b""):
            hasher.update(chunk)
    return hasher.hexdigest()
