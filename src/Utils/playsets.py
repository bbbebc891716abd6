"""
playsets.py
Playset files on disk: list, create, rename, duplicate, delete, import,
export, load/save with state, and the first-run migration from mods.cfg.

All playsets live in one directory as <sanitized name>.cfg.  Names are unique
case-insensitively.  Every write goes through a temporary file and a rename,
so a reader never sees a half-written playset.

Expected failures raise a PlaysetError subclass:
  PlaysetNotFoundError        the playset file is gone (deleted outside the app)
  PlaysetNameConflictError    another playset already has that name
  PlaysetIOError              the filesystem refused (permissions, disk full, ...)
"""

from __future__ import annotations

import logging
import re
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from Utils.file_utils import backup_path_for, copy_file_atomic, write_text_atomic
from Utils.playset_file import (
    PLAYSET_SUFFIX,
    PlaysetEntry,
    format_playset,
    read_playset,
    write_playset,
)

log = logging.getLogger(__name__)

INITIAL_PLAYSET_NAME = "Initial Playset"
DEFAULT_NAME_BASE = "Playset"

_INVALID_CHARS_RE = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class PlaysetError(Exception):
    """Base class for expected playset failures."""
    def __init__(self, message: str, path: Path | None = None):
        super().__init__(message)
        self.path = path


class PlaysetNotFoundError(PlaysetError):
    """Raised when a referenced playset file no longer exists."""


class PlaysetNameConflictError(PlaysetError):
    """Raised when the requested name is already used by another playset."""
    def __init__(self, name: str, path: Path | None = None):
        super().__init__(f"A playset named '{name}' already exists", path)
        self.name = name


class PlaysetIOError(PlaysetError):
    """Raised when the filesystem rejects a read or write."""


# ---------------------------------------------------------------------------
# Data
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Playset:
    name: str
    file_path: Path
    is_active: bool = False


def sanitize_playset_name(name: str) -> str:
    """
    Turn a user-supplied name into a safe file stem: characters not allowed
    in file names become '_', surrounding whitespace and trailing dots go.
    Raises ValueError if nothing usable is left.
    """
    cleaned = _INVALID_CHARS_RE.sub("_", name).strip().rstrip(".").strip()
    if not cleaned:
        raise ValueError(f"Invalid playset name: {name!r}")
    return cleaned


def _same_path(a: Path | None, b: Path | None) -> bool:
    if a is None or b is None:
        return False
    return a.resolve() == b.resolve()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------

class PlaysetRepository:
    """
    CRUD over the playset directory.

    active_path is the file of the playset currently loaded in the editor.
    PlaysetSwitcher keeps it up to date; the repository uses it only to mark
    Playset.is_active and to follow renames and deletes.
    """

    def __init__(self, playsets_dir: Path, keep_backup: bool = True):
        self.playsets_dir = playsets_dir
        self.keep_backup = keep_backup
        self.active_path: Path | None = None

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def _playset_files(self) -> list[Path]:
        if not self.playsets_dir.is_dir():
            return []
        try:
            return [p for p in self.playsets_dir.iterdir()
                    if p.is_file() and p.suffix.lower() == PLAYSET_SUFFIX]
        except OSError as exc:
            raise PlaysetIOError(f"Cannot list playsets: {exc}",
                                 self.playsets_dir) from exc

    def _describe(self, path: Path) -> Playset:
        return Playset(name=path.stem, file_path=path,
                       is_active=_same_path(path, self.active_path))

    def list_playsets(self) -> list[Playset]:
        """All playsets sorted by name (case-insensitive). Empty if the directory is missing."""
        files = sorted(self._playset_files(), key=lambda p: p.stem.casefold())
        return [self._describe(p) for p in files]

    def get(self, name: str) -> Playset | None:
        """Case-insensitive lookup by playset name."""
        key = name.casefold()
        for path in self._playset_files():
            if path.stem.casefold() == key:
                return self._describe(path)
        return None

    def path_for(self, name: str) -> Path:
        return self.playsets_dir / f"{sanitize_playset_name(name)}{PLAYSET_SUFFIX}"

    def _check_free(self, stem: str, ignore: Path | None = None) -> None:
        key = stem.casefold()
        for path in self._playset_files():
            if path.stem.casefold() == key and not _same_path(path, ignore):
                raise PlaysetNameConflictError(stem, path)

    def _require(self, path: Path) -> None:
        if not path.is_file():
            raise PlaysetNotFoundError(f"Playset file not found: {path}", path)

    def unique_name(self, name: str) -> str:
        """Return *name* sanitized, suffixed ' (2)', ' (3)', ... until it is free."""
        base = sanitize_playset_name(name)
        taken = {p.stem.casefold() for p in self._playset_files()}
        if base.casefold() not in taken:
            return base
        n = 2
        while f"{base} ({n})".casefold() in taken:
            n += 1
        return f"{base} ({n})"

    def generate_name(self, base: str = DEFAULT_NAME_BASE) -> str:
        """First free 'Playset N', counting from 1."""
        taken = {p.stem.casefold() for p in self._playset_files()}
        n = 1
        while f"{base} {n}".casefold() in taken:
            n += 1
        return f"{base} {n}"

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def create(self, name: str) -> Playset:
        """Create an empty playset. Raises PlaysetNameConflictError if the name is taken."""
        stem = sanitize_playset_name(name)
        self._check_free(stem)
        path = self.playsets_dir / f"{stem}{PLAYSET_SUFFIX}"
        try:
            write_text_atomic(path, "")
        except OSError as exc:
            raise PlaysetIOError(f"Cannot create playset '{stem}': {exc}", path) from exc
        log.info("Created playset '%s'", stem)
        return self._describe(path)

    def rename(self, existing_path: Path, new_name: str) -> Playset:
        """Rename a playset file. Renaming to a different case of the same name is allowed."""
        self._require(existing_path)
        stem = sanitize_playset_name(new_name)
        self._check_free(stem, ignore=existing_path)
        new_path = self.playsets_dir / f"{stem}{PLAYSET_SUFFIX}"
        was_active = _same_path(existing_path, self.active_path)
        try:
            existing_path.replace(new_path)
        except FileNotFoundError as exc:
            raise PlaysetNotFoundError(f"Playset file not found: {existing_path}",
                                       existing_path) from exc
        except OSError as exc:
            raise PlaysetIOError(f"Cannot rename playset: {exc}", existing_path) from exc
        old_backup = backup_path_for(existing_path)
        if old_backup.is_file():
            try:
                old_backup.replace(backup_path_for(new_path))
            except OSError as exc:
                log.warning("Could not move backup %s: %s", old_backup.name, exc)
        if was_active:
            self.active_path = new_path
        log.info("Renamed playset '%s' to '%s'", existing_path.stem, stem)
        return self._describe(new_path)

    def duplicate(self, existing_path: Path, new_name: str) -> Playset:
        """Copy a playset's content under a new name."""
        self._require(existing_path)
        stem = sanitize_playset_name(new_name)
        self._check_free(stem)
        new_path = self.playsets_dir / f"{stem}{PLAYSET_SUFFIX}"
        try:
            copy_file_atomic(existing_path, new_path)
        except FileNotFoundError as exc:
            raise PlaysetNotFoundError(f"Playset file not found: {existing_path}",
                                       existing_path) from exc
        except OSError as exc:
            raise PlaysetIOError(f"Cannot duplicate playset: {exc}", existing_path) from exc
        log.info("Duplicated playset '%s' as '%s'", existing_path.stem, stem)
        return self._describe(new_path)

    def delete(self, path: Path) -> None:
        """Delete a playset file (and its backup). No recycle bin."""
        self._require(path)
        was_active = _same_path(path, self.active_path)
        try:
            path.unlink()
        except FileNotFoundError as exc:
            raise PlaysetNotFoundError(f"Playset file not found: {path}", path) from exc
        except OSError as exc:
            raise PlaysetIOError(f"Cannot delete playset: {exc}", path) from exc
        backup_path_for(path).unlink(missing_ok=True)
        if was_active:
            self.active_path = None
        log.info("Deleted playset '%s'", path.stem)

    def export(self, path: Path, destination: Path) -> Path:
        """Copy a playset file byte-for-byte to *destination* outside the managed directory."""
        self._require(path)
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(path, destination)
        except FileNotFoundError as exc:
            raise PlaysetNotFoundError(f"Playset file not found: {path}", path) from exc
        except OSError as exc:
            raise PlaysetIOError(f"Cannot export playset: {exc}", destination) from exc
        log.info("Exported playset '%s' to %s", path.stem, destination)
        return destination

    def import_playset(self, source_path: Path, name: str | None = None) -> Playset:
        """
        Copy an external .cfg into the playset directory.  The name defaults to
        the file's stem; a taken name is suffixed ' (2)', ' (3)', ... instead
        of failing.
        """
        if not source_path.is_file():
            raise PlaysetNotFoundError(f"File not found: {source_path}", source_path)
        stem = self.unique_name(name or source_path.stem)
        new_path = self.playsets_dir / f"{stem}{PLAYSET_SUFFIX}"
        try:
            copy_file_atomic(source_path, new_path)
        except OSError as exc:
            raise PlaysetIOError(f"Cannot import playset: {exc}", source_path) from exc
        log.info("Imported %s as playset '%s'", source_path.name, stem)
        return self._describe(new_path)

    # ------------------------------------------------------------------
    # Content
    # ------------------------------------------------------------------

    def load_entries(self, path: Path) -> list[PlaysetEntry]:
        """Read a playset's entries (enabled and disabled) in file order."""
        self._require(path)
        try:
            return read_playset(path)
        except FileNotFoundError as exc:
            raise PlaysetNotFoundError(f"Playset file not found: {path}", path) from exc
        except OSError as exc:
            raise PlaysetIOError(f"Cannot read playset '{path.stem}': {exc}", path) from exc

    def save_entries(self, path: Path, active_names: Iterable[str],
                     disabled_names: Iterable[str] = ()) -> None:
        """
        Write the load order (enabled names in order) and the remembered
        disabled names to *path*, keeping a single .bak of the previous content.
        """
        self._require(path)
        lines = format_playset(active_names, disabled_names)
        try:
            write_playset(path, lines, keep_backup=self.keep_backup)
        except OSError as exc:
            raise PlaysetIOError(f"Cannot save playset '{path.stem}': {exc}", path) from exc
        log.debug("Saved %d line(s) to playset '%s'", len(lines), path.stem)

    def restore_backup(self, path: Path) -> None:
        """Put the .bak copy written by the last save back in place."""
        backup = backup_path_for(path)
        if not backup.is_file():
            raise PlaysetNotFoundError(f"No backup for playset '{path.stem}'", backup)
        try:
            copy_file_atomic(backup, path)
        except OSError as exc:
            raise PlaysetIOError(f"Cannot restore backup: {exc}", path) from exc
        log.info("Restored playset '%s' from backup", path.stem)

    # ------------------------------------------------------------------
    # First run
    # ------------------------------------------------------------------

    def migrate_legacy(self, legacy_path: Path | None) -> Playset | None:
        """
        First run: when no playsets exist, create 'Initial Playset' seeded from
        the legacy mods.cfg (or empty if that file is missing or empty).
        Returns the new playset, or None if playsets already existed.
        Safe to call on every startup.
        """
        if self.list_playsets():
            return None
        target = self.path_for(INITIAL_PLAYSET_NAME)
        if target.exists():
            return self._describe(target)

        entries: list[PlaysetEntry] = []
        if legacy_path is not None and legacy_path.is_file():
            try:
                entries = read_playset(legacy_path)
            except OSError as exc:
                log.warning("Cannot read legacy %s: %s", legacy_path, exc)

        if not entries:
            log.info("No playsets found and no legacy mods to import; "
                     "creating empty '%s'", INITIAL_PLAYSET_NAME)
            return self.create(INITIAL_PLAYSET_NAME)

        lines = format_playset(
            [e.name for e in entries if e.enabled],
            [e.name for e in entries if not e.enabled],
        )
        try:
            write_playset(target, lines)
        except OSError as exc:
            raise PlaysetIOError(f"Cannot create '{INITIAL_PLAYSET_NAME}': {exc}",
                                 target) from exc
        log.info("Imported %d mod(s) from %s as '%s'",
                 len(entries), legacy_path.name, INITIAL_PLAYSET_NAME)
        return self._describe(target)
