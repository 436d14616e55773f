# src/storage/transient.py — v1
"""Transient upload files: staging and guaranteed removal.

An uploaded artifact lives on disk only for the duration of one
submission. ``transient_artifact`` scopes that lifetime: the file is removed
on every exit path, and a failed removal is logged, never raised.
"""

from __future__ import annotations

import logging
import shutil
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

logger = logging.getLogger(__name__)


def remove_quietly(path: Path | str | None) -> bool:
    """Delete ``path`` if it exists. Returns True if a file was removed."""
    if path is None:
        return False
    try:
        Path(path).unlink()
    except FileNotFoundError:
        return False
    except OSError as e:
        logger.warning("Failed to delete temporary file %s: %s", path, e)
        return False
    return True


@contextmanager
def transient_artifact(path: Path | str) -> Iterator[Path]:
    """Yield ``path`` and remove it afterwards, whatever the outcome."""
    resolved = Path(path)
    try:
        yield resolved
    finally:
        if remove_quietly(resolved):
            logger.debug("Removed transient artifact %s", resolved.name)


def stage_upload(source: Path | str, upload_dir: Path | str) -> Path:
    """Copy ``source`` into ``upload_dir`` under a unique name.

    The copy is what a submission consumes and removes, so the caller's
    original file is never touched.
    """
    src = Path(source)
    target_dir = Path(upload_dir).expanduser()
    target_dir.mkdir(parents=True, exist_ok=True)
    target = target_dir / f"{uuid.uuid4().hex}{src.suffix}"
    shutil.copyfile(src, target)
    return target
