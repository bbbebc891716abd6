"""
playset_switcher.py
Switch the editor between playsets without losing edits.

A switch runs through four states:

  IDLE -> SAVING       the loaded playset's current state is written to its file
  SAVING -> LOADING    the target playset's entries are read
  LOADING -> RECONCILING
                       entries are matched against the discovered mods by
                       case-insensitive name; enabled entries take load order
                       slots in file order, disabled entries are remembered
  RECONCILING -> IDLE  the active set holds the new load order

The active set's loading_playset() scope is held for LOADING + RECONCILING, so
listeners see exactly one ActiveSetChanged at the end and no autosave fires
for the intermediate states.

Edits made while IDLE are persisted by request_save(), which writes on a
background thread.  Only one save is in flight at a time; requests that arrive
meanwhile replace a single queued follow-up save.  A switch waits for the
in-flight save before reading any file.

All methods are meant to be called from one thread (the Tk main loop).
Expected failures are logged, stored in status_message and reported as a
False / None return value.
"""

from __future__ import annotations

import logging
import threading
from enum import Enum, auto
from pathlib import Path
from typing import Callable, Iterable

from Utils.active_set import ActiveModSet, ActiveSetChanged
from Utils.mod_record import ModRecord, name_key
from Utils.playset_file import PlaysetEntry
from Utils.playsets import (
    Playset,
    PlaysetError,
    PlaysetNotFoundError,
    PlaysetRepository,
)

log = logging.getLogger(__name__)


class SwitchState(Enum):
    IDLE        = auto()
    SAVING      = auto()
    LOADING     = auto()
    RECONCILING = auto()


class SaveFailurePolicy(Enum):
    PROCEED = "proceed"   # switch anyway; the outgoing playset keeps its last saved state
    ABORT   = "abort"     # stay on the current playset


class MissingModPolicy(Enum):
    DROP = "drop"   # entries with no discovered mod are forgotten
    KEEP = "keep"   # ... or remembered as disabled so the file does not shrink


# (playset file, active names in order, remembered disabled names)
_Snapshot = tuple[Path, list[str], list[str]]


def _call_now(fn: Callable[[], None]) -> None:
    fn()


class PlaysetSwitcher:
    """
    Owns the loaded playset and moves the active set between playsets.

    discover     -- returns the universe of mods (fresh ModRecords)
    dispatch     -- runs a callable on the main thread (e.g. lambda fn: app.after(0, fn));
                    used to report background save results
    legacy_path  -- data/mods.cfg, used for the first-run migration
    """

    def __init__(self, repository: PlaysetRepository, active: ActiveModSet,
                 discover: Callable[[], list[ModRecord]] | None = None,
                 save_failure_policy: SaveFailurePolicy = SaveFailurePolicy.PROCEED,
                 missing_mod_policy: MissingModPolicy = MissingModPolicy.DROP,
                 dispatch: Callable[[Callable[[], None]], None] | None = None,
                 legacy_path: Path | None = None,
                 autosave: bool = True):
        self.repository = repository
        self.active = active
        self._discover = discover or (lambda: [])
        self.save_failure_policy = save_failure_policy
        self.missing_mod_policy = missing_mod_policy
        self._dispatch = dispatch or _call_now
        self.legacy_path = legacy_path
        self.autosave = autosave

        self.universe: list[ModRecord] = []
        self.current_path: Path | None = None
        self.state = SwitchState.IDLE
        self.status_message = ""
        self.last_error: PlaysetError | None = None

        # Background save bookkeeping
        self._save_lock = threading.Lock()
        self._save_pending = False
        self._queued_snapshot: _Snapshot | None = None
        self._save_idle = threading.Event()
        self._save_idle.set()

        self._unsubscribe = active.subscribe(self._on_active_changed)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def current_name(self) -> str | None:
        return self.current_path.stem if self.current_path is not None else None

    def current_playset(self) -> Playset | None:
        if self.current_path is None:
            return None
        return self.repository.get(self.current_path.stem)

    def is_current(self, playset: Playset) -> bool:
        return (self.current_path is not None
                and playset.file_path.resolve() == self.current_path.resolve())

    def close(self) -> None:
        """Flush the pending save and stop listening to the active set."""
        self.wait_for_pending_save()
        self._unsubscribe()

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def _fail(self, message: str, exc: PlaysetError | None = None) -> None:
        self.status_message = message
        self.last_error = exc
        log.error(message)

    def _ok(self, message: str) -> None:
        self.status_message = message
        self.last_error = None
        log.info(message)

    def _set_current(self, path: Path | None) -> None:
        self.current_path = path
        self.repository.active_path = path

    # ------------------------------------------------------------------
    # Startup / universe
    # ------------------------------------------------------------------

    def start(self, settings=None) -> bool:
        """
        Migrate the legacy mods.cfg if needed, discover mods, then load the
        last selected playset (falling back to the first one).
        """
        try:
            self.repository.migrate_legacy(self.legacy_path)
        except PlaysetError as exc:
            self._fail(f"Could not create the initial playset: {exc}", exc)
        self._set_universe(self._discover())

        last = getattr(settings, "last_selected_playset", None)
        target = self.repository.get(last) if last else None
        if target is None:
            if last:
                log.info("Last selected playset '%s' no longer exists", last)
            try:
                playsets = self.repository.list_playsets()
            except PlaysetError as exc:
                self._fail(str(exc), exc)
                return False
            target = playsets[0] if playsets else None
        if target is None:
            log.info("No playsets available")
            return False
        return self.switch_to(target)

    def _set_universe(self, universe: Iterable[ModRecord]) -> None:
        self.active.untrack()
        self.universe = list(universe)
        self.active.track(self.universe)
        log.debug("Tracking %d discovered mod(s)", len(self.universe))

    def reload_universe(self) -> bool:
        """Rediscover mods and re-apply the loaded playset to the new records."""
        if self.state is not SwitchState.IDLE:
            log.warning("Cannot refresh mods while a switch is in progress")
            return False
        self.wait_for_pending_save()
        if self.current_path is None:
            self._set_universe(self._discover())
            with self.active.loading_playset():
                self.active.clear()
            return True

        if (not self._save_during_switch()
                and self.save_failure_policy is SaveFailurePolicy.ABORT):
            self.status_message = (f"Could not save '{self.current_name}'; "
                                   f"mods were not refreshed")
            log.warning(self.status_message)
            return False

        # Read first; if that fails the in-memory order is carried over by name.
        self.state = SwitchState.LOADING
        try:
            try:
                entries = self.repository.load_entries(self.current_path)
            except PlaysetError as exc:
                entries = None
                error = exc
            disabled = self.active.disabled_names()
            names = self.active.names()
            self._set_universe(self._discover())
            self.state = SwitchState.RECONCILING
            if entries is None:
                by_key = {r.key: r for r in self.universe}
                records = [by_key[name_key(n)] for n in names if name_key(n) in by_key]
                with self.active.loading_playset():
                    self.active.load(records, disabled)
                self._fail(f"Could not reload playset '{self.current_name}': {error}",
                           error)
                return False
            self._apply_entries(entries)
            return True
        finally:
            self.state = SwitchState.IDLE

    # ------------------------------------------------------------------
    # Switching
    # ------------------------------------------------------------------

    def switch_to(self, playset: Playset) -> bool:
        """Save the loaded playset, then load *playset* into the active set."""
        if self.state is not SwitchState.IDLE:
            log.warning("Switch to '%s' ignored: another switch is in progress",
                        playset.name)
            return False
        self.wait_for_pending_save()

        if self.current_path is not None and not self._save_during_switch():
            if self.save_failure_policy is SaveFailurePolicy.ABORT:
                self.status_message = (f"Could not save '{self.current_name}'; "
                                       f"staying on it")
                log.warning(self.status_message)
                return False
            log.warning("Switching to '%s' although '%s' could not be saved",
                        playset.name, self.current_name)

        if not self._load_into_active(playset.file_path):
            return False
        self._ok(f"Loaded playset '{playset.name}' ({len(self.active)} mod(s) enabled)")
        return True

    def _save_during_switch(self) -> bool:
        self.state = SwitchState.SAVING
        try:
            self._write_snapshot(self._snapshot())
            return True
        except PlaysetNotFoundError as exc:
            # The outgoing file was deleted outside the app; nothing to protect.
            log.warning("Not saving '%s': %s", self.current_name, exc)
            return True
        except PlaysetError as exc:
            self._fail(f"Could not save '{self.current_name}': {exc}", exc)
            return False
        finally:
            self.state = SwitchState.IDLE

    def _load_into_active(self, path: Path) -> bool:
        self.state = SwitchState.LOADING
        try:
            try:
                entries = self.repository.load_entries(path)
            except PlaysetError as exc:
                self._fail(f"Could not load playset '{path.stem}': {exc}", exc)
                return False
            self.state = SwitchState.RECONCILING
            self._apply_entries(entries)
            self._set_current(path)
            return True
        finally:
            self.state = SwitchState.IDLE

    def _apply_entries(self, entries: list[PlaysetEntry]) -> None:
        by_key = {r.key: r for r in self.universe}
        enabled: list[ModRecord] = []
        disabled: list[str] = []
        missing: list[str] = []
        for entry in entries:
            record = by_key.get(name_key(entry.name))
            if record is None:
                missing.append(entry.name)
                if self.missing_mod_policy is MissingModPolicy.KEEP:
                    disabled.append(entry.name)
                continue
            if entry.enabled:
                enabled.append(record)
            else:
                disabled.append(record.name)

        if missing:
            if self.missing_mod_policy is MissingModPolicy.KEEP:
                log.info("Keeping %d missing mod(s) as disabled: %s",
                         len(missing), ", ".join(missing))
            else:
                log.info("Dropping %d missing mod(s): %s",
                         len(missing), ", ".join(missing))

        with self.active.loading_playset():
            self.active.load(enabled, disabled)

    # ------------------------------------------------------------------
    # Saving
    # ------------------------------------------------------------------

    def _snapshot(self) -> _Snapshot:
        return (self.current_path, self.active.names(), self.active.disabled_names())

    def _write_snapshot(self, snapshot: _Snapshot) -> None:
        path, names, disabled = snapshot
        self.repository.save_entries(path, names, disabled)

    def save_current(self) -> bool:
        """Write the loaded playset now, on the calling thread."""
        if self.current_path is None:
            return False
        self.wait_for_pending_save()
        try:
            self._write_snapshot(self._snapshot())
        except PlaysetError as exc:
            self._fail(f"Could not save '{self.current_name}': {exc}", exc)
            return False
        log.debug("Saved playset '%s'", self.current_name)
        return True

    def request_save(self) -> None:
        """
        Save the loaded playset on a background thread.  If a save is already
        running, the newest state is queued and written once it finishes.
        """
        if self.current_path is None:
            return
        snapshot = self._snapshot()
        with self._save_lock:
            if self._save_pending:
                self._queued_snapshot = snapshot
                return
            self._save_pending = True
            self._save_idle.clear()

        def _worker():
            current = snapshot
            while current is not None:
                try:
                    self._write_snapshot(current)
                    error = None
                except PlaysetError as exc:
                    error = exc
                except Exception as exc:
                    log.exception("Unexpected error while saving playset")
                    error = PlaysetError(str(exc), current[0])
                try:
                    self._dispatch(lambda p=current[0], e=error: _done(p, e))
                except Exception:
                    log.exception("Could not report the result of a playset save")
                finally:
                    with self._save_lock:
                        current = self._queued_snapshot
                        self._queued_snapshot = None
                        if current is None:
                            self._save_pending = False
                            self._save_idle.set()

        def _done(path: Path, error: PlaysetError | None):
            if error is not None:
                self._fail(f"Could not save '{path.stem}': {error}", error)
            else:
                log.debug("Saved playset '%s'", path.stem)

        threading.Thread(target=_worker, daemon=True).start()

    def wait_for_pending_save(self, timeout: float | None = None) -> bool:
        """Block until no background save is running. False on timeout."""
        return self._save_idle.wait(timeout)

    @property
    def save_in_progress(self) -> bool:
        return not self._save_idle.is_set()

    def _on_active_changed(self, _event: ActiveSetChanged) -> None:
        if (self.autosave and self.state is SwitchState.IDLE
                and not self.active.is_loading and self.current_path is not None):
            self.request_save()

    # ------------------------------------------------------------------
    # Playset management
    # ------------------------------------------------------------------

    def create_and_switch(self, name: str) -> bool:
        """Create an empty playset and make it the loaded one."""
        try:
            playset = self.repository.create(name)
        except (PlaysetError, ValueError) as exc:
            self._fail(f"Could not create playset: {exc}",
                       exc if isinstance(exc, PlaysetError) else None)
            return False
        return self.switch_to(playset)

    def rename(self, playset: Playset, new_name: str) -> Playset | None:
        """Rename *playset*; the loaded playset follows its file."""
        was_current = self.is_current(playset)
        if was_current:
            self.wait_for_pending_save()
        try:
            renamed = self.repository.rename(playset.file_path, new_name)
        except (PlaysetError, ValueError) as exc:
            self._fail(f"Could not rename '{playset.name}': {exc}",
                       exc if isinstance(exc, PlaysetError) else None)
            return None
        if was_current:
            self._set_current(renamed.file_path)
        self._ok(f"Renamed playset '{playset.name}' to '{renamed.name}'")
        return renamed

    def duplicate(self, playset: Playset, new_name: str) -> Playset | None:
        """Copy *playset* (including unsaved edits if it is the loaded one)."""
        if self.is_current(playset) and not self.save_current():
            return None
        try:
            copy = self.repository.duplicate(playset.file_path, new_name)
        except (PlaysetError, ValueError) as exc:
            self._fail(f"Could not duplicate '{playset.name}': {exc}",
                       exc if isinstance(exc, PlaysetError) else None)
            return None
        self._ok(f"Duplicated '{playset.name}' as '{copy.name}'")
        return copy

    def delete(self, playset: Playset) -> bool:
        """Delete *playset*.  Deleting the loaded playset empties the active set."""
        was_current = self.is_current(playset)
        if was_current:
            self.wait_for_pending_save()
        try:
            self.repository.delete(playset.file_path)
        except PlaysetError as exc:
            self._fail(f"Could not delete '{playset.name}': {exc}", exc)
            return False
        if was_current:
            self._set_current(None)
            self.state = SwitchState.LOADING
            try:
                with self.active.loading_playset():
                    self.active.clear()
            finally:
                self.state = SwitchState.IDLE
        self._ok(f"Deleted playset '{playset.name}'")
        return True

    def export(self, playset: Playset, destination: Path) -> bool:
        if self.is_current(playset) and not self.save_current():
            return False
        try:
            self.repository.export(playset.file_path, destination)
        except PlaysetError as exc:
            self._fail(f"Could not export '{playset.name}': {exc}", exc)
            return False
        self._ok(f"Exported '{playset.name}' to {destination}")
        return True

    def import_and_switch(self, source: Path) -> bool:
        """Import an external .cfg (auto-renamed on conflict) and load it."""
        try:
            playset = self.repository.import_playset(source)
        except (PlaysetError, ValueError) as exc:
            self._fail(f"Could not import {source.name}: {exc}",
                       exc if isinstance(exc, PlaysetError) else None)
            return False
        return self.switch_to(playset)

    def restore_backup(self) -> bool:
        """Replace the loaded playset with its .bak copy and reload it."""
        if self.current_path is None:
            return False
        self.wait_for_pending_save()
        try:
            self.repository.restore_backup(self.current_path)
        except PlaysetError as exc:
            self._fail(f"Could not restore backup: {exc}", exc)
            return False
        if not self._load_into_active(self.current_path):
            return False
        self._ok(f"Restored '{self.current_name}' from backup")
        return True
