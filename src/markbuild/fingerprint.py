from __future__ import annotations

import hashlib
from collections.abc import Sequence
from pathlib import Path

FINGERPRINT_SCHEME = b"markbuild-fingerprint-v1"


def _hash_file(hasher: hashlib._Hash, path: Path) -> None:
    with path.open("rb") as f:
        while True:
            chunk = f.read(1024 * 1024)
            if not chunk:
                break
            hasher.update(chunk)


def compute_fingerprint(files: Sequence[Path]) -> str:
    """Hash the build specification files, in order; any byte change in any of them changes the result."""

    hasher = hashlib.sha256()
    hasher.update(FINGERPRINT_SCHEME)
    hasher.update(b"\0")
    for path in files:
        hasher.update(b"file\0")
        hasher.update(path.name.encode("utf-8"))
        hasher.update(b"\0")
        _hash_file(hasher, path)
        hasher.update(b"\0")
    return hasher.hexdigest()
