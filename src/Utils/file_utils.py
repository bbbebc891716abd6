"""
file_utils.py
Small filesystem helpers shared by the playset, settings and mods.cfg writers.

Every writer in the app goes through write_text_atomic(): content is written
to a sibling temporary file and then renamed over the destination, so a crash
mid-write never leaves a half-written file behind for a reader to pick up.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path

log = logging.getLogger(__name__)

BACKUP_SUFFIX = ".bak"


def backup_path_for(path: Path) -> Path:
    """Return the single-level backup path for *path* (``name.cfg.bak``)."""
    return path.with_name(path.name + BACKUP_SUFFIX)


def write_text_atomic(path: Path, text: str, keep_backup: bool = False) -> None:
    """
    Write *text* to *path* via a temporary file in the same directory.

    When keep_backup is True and *path* already exists, its previous content
    is copied to ``<path>.bak`` before the new content replaces it.
    Raises OSError on failure; the temporary file is always cleaned up.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{path.name}.", suffix=".tmp", dir=path.parent
    )
    tmp = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        if keep_backup and path.is_file():
            shutil.copy2(path, backup_path_for(path))
        tmp.replace(path)
    except OSError:
        try:
            tmp.unlink()
        except OSError:
            pass
        raise
    log.debug("Wrote %s (%d bytes)", path, len(text))


def copy_file_atomic(source: Path, destination: Path) -> None:
    """Byte-for-byte copy of *source* to *destination* through a temporary file."""
    destination.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{destination.name}.", suffix=".tmp", dir=destination.parent
    )
    os.close(fd)
    tmp = Path(tmp_name)
    try:
        shutil.copyfile(source, tmp)
        tmp.replace(destination)
    except OSError:
        try:
            tmp.unlink()
        except OSError:
            pass
        raise
