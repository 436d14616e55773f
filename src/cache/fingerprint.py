# src/cache/fingerprint.py — v3
"""Content fingerprinting for the inference cache.

The fingerprint is a SHA-256 hex digest over the complete byte content of
an artifact, read in fixed-size chunks so the artifact never has to fit in
memory.
"""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import BinaryIO

DEFAULT_CHUNK_SIZE = 1024 * 1024


def compute_fingerprint(
    stream: BinaryIO, chunk_size: int = DEFAULT_CHUNK_SIZE
) -> str:
    """Hash a binary stream from its current position to EOF.

    Args:
        stream: Readable binary stream.
        chunk_size: Bytes read per iteration.

    Returns:
        64-character lowercase hex digest.

    Raises:
        OSError: If the stream cannot be fully read.
        ValueError: If chunk_size is not positive.
    """
    if chunk_size <= 0:
        raise ValueError("chunk_size must be > 0")

    digest = hashlib.sha256()
    while True:
        chunk = stream.read(chunk_size)
        if not chunk:
            break
        digest.update(chunk)
    return digest.hexdigest()


def compute_file_fingerprint(
    path: Path | str, chunk_size: int = DEFAULT_CHUNK_SIZE
) -> str:
    """Fingerprint a file on disk without modifying or moving it."""
    with Path(path).open("rb") as fh:
        return compute_fingerprint(fh, chunk_size=chunk_size)

