"""
active_set.py
The ordered set of enabled mods (the load order) for the loaded playset.

Invariant, checked after every public call returns:
  - every mod in the set has enabled == True and load_order == its index
  - indices are 0..len-1 with no gaps
  - no two mods in the set share a case-insensitive name
  - every tracked mod outside the set has enabled == False and load_order == -1

Edits arrive from two directions:
  1. Explicit calls (enable, disable, reorder, bulk_add, remove, ...).
  2. Field writes on a ModRecord from outside, e.g. a checkbox bound to
     `enabled` or an entry box bound to `load_order`.  The set subscribes to
     every tracked record and turns such writes into the matching structural
     update (_on_record_changed).

The set itself writes record fields while performing (1) and (2).  Those
writes happen inside suppressed_reconciliation() so the handler does not react
to them a second time.  A playset load holds loading_playset() for its whole
duration; outside writes that arrive meanwhile are left in place and applied
once the load finishes.

Listeners receive one ActiveSetChanged per public operation, no matter how
many record fields the operation touched.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator

from Utils.mod_record import (
    FIELD_ENABLED,
    FIELD_LOAD_ORDER,
    NOT_LOADED,
    FieldChanged,
    ModRecord,
    name_key,
)

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActiveSetChanged:
    names: tuple[str, ...]
    disabled: tuple[str, ...] = ()


ActiveSetListener = Callable[[ActiveSetChanged], None]


class ActiveModSet:

    def __init__(self):
        self._mods: list[ModRecord] = []
        # Names written as "#Name" on save: disabled mods the playset still remembers
        self._disabled: list[str] = []
        self._listeners: list[ActiveSetListener] = []
        self._tracked: dict[int, tuple[ModRecord, Callable[[], None]]] = {}
        self._renumber_depth = 0
        self._loading_depth = 0
        self._batch_depth = 0
        self._changed = False

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._mods)

    def __iter__(self) -> Iterator[ModRecord]:
        return iter(list(self._mods))

    def __contains__(self, record: object) -> bool:
        return any(m is record for m in self._mods)

    def __getitem__(self, index: int) -> ModRecord:
        return self._mods[index]

    def mods(self) -> list[ModRecord]:
        return list(self._mods)

    def names(self) -> list[str]:
        return [m.name for m in self._mods]

    def disabled_names(self) -> list[str]:
        return list(self._disabled)

    def index_of(self, record: ModRecord) -> int:
        for i, m in enumerate(self._mods):
            if m is record:
                return i
        return -1

    def find(self, name: str) -> ModRecord | None:
        """Return the active mod with this name (case-insensitive), or None."""
        key = name_key(name)
        for m in self._mods:
            if m.key == key:
                return m
        return None

    @property
    def is_loading(self) -> bool:
        return self._loading_depth > 0

    @property
    def is_reconciliation_suppressed(self) -> bool:
        return self._renumber_depth > 0 or self._loading_depth > 0

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def subscribe(self, listener: ActiveSetListener) -> Callable[[], None]:
        """Register *listener* for ActiveSetChanged. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

        return _unsubscribe

    def _emit(self) -> None:
        event = ActiveSetChanged(tuple(self.names()), tuple(self._disabled))
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                log.exception("Active set listener failed")

    def _mark_changed(self) -> None:
        self._changed = True

    # ------------------------------------------------------------------
    # Scopes
    # ------------------------------------------------------------------

    @contextmanager
    def suppressed_reconciliation(self):
        """Ignore record field changes while the set renumbers or moves mods itself."""
        self._renumber_depth += 1
        try:
            yield
        finally:
            self._renumber_depth -= 1

    @contextmanager
    def batch_changes(self):
        """Collapse every change made inside the block into one ActiveSetChanged."""
        self._batch_depth += 1
        try:
            yield
        finally:
            self._batch_depth -= 1
            if self._batch_depth == 0 and self._changed:
                self._changed = False
                self._emit()

    @contextmanager
    def loading_playset(self):
        """
        Hold while a playset is being applied to the universe.

        Outside field writes made inside the block are not reacted to and not
        rolled back; on exit the set re-reads every tracked record and brings
        membership back in line with the `enabled` flags.
        """
        with self.batch_changes():
            self._loading_depth += 1
            try:
                yield
            finally:
                self._loading_depth -= 1
                if self._loading_depth == 0 and self._renumber_depth == 0:
                    self._reconcile_tracked()

    # ------------------------------------------------------------------
    # Tracking the universe
    # ------------------------------------------------------------------

    def track(self, records: Iterable[ModRecord]) -> None:
        """Subscribe the reconciliation handler to every record in *records*."""
        for record in records:
            if id(record) in self._tracked:
                continue
            unsubscribe = record.subscribe(self._on_record_changed)
            self._tracked[id(record)] = (record, unsubscribe)

    def untrack(self) -> None:
        for _record, unsubscribe in self._tracked.values():
            unsubscribe()
        self._tracked.clear()

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def enable(self, record: ModRecord) -> bool:
        """Append *record* to the end of the load order. False if it was a no-op."""
        if record.enabled or record in self:
            log.warning("Cannot enable %s: already enabled", record.name)
            return False
        if self.find(record.name) is not None:
            log.warning("Cannot enable %s: a mod with the same name is already active",
                        record.name)
            return False
        with self.batch_changes():
            self._append(record)
        return True

    def disable(self, record: ModRecord) -> bool:
        """
        Take *record* out of the load order and remember it as disabled, so it
        is written back as '#Name' and keeps its place in the playset file.
        """
        if not record.enabled or record not in self:
            log.warning("Cannot disable %s: not in the active set", record.name)
            return False
        with self.batch_changes():
            self._detach(record, remember=True)
        return True

    def reorder(self, record: ModRecord, new_index: int) -> bool:
        """Move *record* to *new_index* (clamped). False if nothing moved."""
        current = self.index_of(record)
        if current < 0:
            log.warning("Cannot reorder %s: not in the active set", record.name)
            return False
        target = self._clamp(new_index)
        if target == current:
            if record.load_order != current:
                with self.suppressed_reconciliation():
                    record.load_order = current
            return False
        with self.batch_changes():
            self._move(current, target)
        return True

    def move_up(self, record: ModRecord) -> bool:
        index = self.index_of(record)
        return index > 0 and self.reorder(record, index - 1)

    def move_down(self, record: ModRecord) -> bool:
        index = self.index_of(record)
        return 0 <= index < len(self._mods) - 1 and self.reorder(record, index + 1)

    def bulk_add(self, records: Iterable[ModRecord]) -> list[ModRecord]:
        """
        Append every record not already active, in the given order.
        Records whose name is already active (case-insensitive) are skipped.
        Returns the records actually added.
        """
        added: list[ModRecord] = []
        with self.batch_changes():
            keys = {m.key for m in self._mods}
            for record in records:
                if record in self:
                    continue
                if record.key in keys:
                    log.info("Skipping duplicate mod %s", record.name)
                    continue
                self._append(record)
                keys.add(record.key)
                added.append(record)
        return added

    def remove(self, record: ModRecord) -> bool:
        """
        Drop *record* from the playset entirely: out of the load order and not
        remembered as disabled.  Returns True if anything changed.
        """
        with self.batch_changes():
            was_active = record in self
            with self.suppressed_reconciliation():
                if was_active:
                    self._mods = [m for m in self._mods if m is not record]
                record.load_order = NOT_LOADED
                record.enabled = False
                if was_active:
                    self._renumber()
            forgot = self._forget_disabled(record.name)
            if was_active or forgot:
                self._mark_changed()
        return was_active or forgot

    def load(self, records: Iterable[ModRecord], disabled_names: Iterable[str] = ()) -> None:
        """
        Replace the whole load order with *records* (in order) and the remembered
        disabled names with *disabled_names*.  Mods that drop out of the set are
        reset to disabled.  Emits a single ActiveSetChanged.
        """
        with self.batch_changes():
            new_mods: list[ModRecord] = []
            keys: set[str] = set()
            for record in records:
                if record.key in keys:
                    log.info("Skipping duplicate mod %s", record.name)
                    continue
                keys.add(record.key)
                new_mods.append(record)
            with self.suppressed_reconciliation():
                for old in self._mods:
                    if not any(old is r for r in new_mods):
                        old.load_order = NOT_LOADED
                        old.enabled = False
                self._mods = new_mods
                for index, record in enumerate(new_mods):
                    record.enabled = True
                    record.load_order = index
            self._disabled = []
            for name in disabled_names:
                if name_key(name) not in keys:
                    self._remember_disabled(name)
            self._mark_changed()

    def clear(self) -> None:
        self.load([])

    # ------------------------------------------------------------------
    # Reconciliation of outside field writes
    # ------------------------------------------------------------------

    def _on_record_changed(self, event: FieldChanged) -> None:
        if self.is_reconciliation_suppressed:
            return
        record = event.record
        with self.batch_changes():
            if event.field == FIELD_ENABLED:
                if event.new_value and record not in self:
                    log.debug("%s enabled from outside", record.name)
                    if self.find(record.name) is not None:
                        log.warning("Cannot enable %s: a mod with the same name is "
                                    "already active", record.name)
                        with self.suppressed_reconciliation():
                            record.enabled = False
                    else:
                        self._append(record)
                elif not event.new_value and record in self:
                    log.debug("%s disabled from outside", record.name)
                    self._detach(record, remember=True)
            elif event.field == FIELD_LOAD_ORDER:
                current = self.index_of(record)
                if current >= 0:
                    target = self._clamp(event.new_value)
                    if target != current:
                        log.debug("%s load order set to %s from outside",
                                  record.name, event.new_value)
                        self._move(current, target)
                    else:
                        with self.suppressed_reconciliation():
                            record.load_order = current
                elif event.new_value != NOT_LOADED:
                    with self.suppressed_reconciliation():
                        record.load_order = NOT_LOADED

    def _reconcile_tracked(self) -> None:
        """Apply `enabled` writes that were held back during a playset load."""
        for record in list(self._mods):
            if not record.enabled:
                self._detach(record, remember=True)
        for record, _unsubscribe in list(self._tracked.values()):
            if record.enabled and record not in self:
                if self.find(record.name) is not None:
                    with self.suppressed_reconciliation():
                        record.enabled = False
                        record.load_order = NOT_LOADED
                else:
                    self._append(record)
            elif not record.enabled and record.load_order != NOT_LOADED:
                with self.suppressed_reconciliation():
                    record.load_order = NOT_LOADED
        with self.suppressed_reconciliation():
            self._renumber()

    # ------------------------------------------------------------------
    # Internals (callers hold batch_changes)
    # ------------------------------------------------------------------

    def _clamp(self, index: int) -> int:
        return max(0, min(int(index), len(self._mods) - 1))

    def _renumber(self) -> None:
        for index, record in enumerate(self._mods):
            record.load_order = index

    def _append(self, record: ModRecord) -> None:
        with self.suppressed_reconciliation():
            self._mods.append(record)
            record.load_order = len(self._mods) - 1
            record.enabled = True
        self._forget_disabled(record.name)
        self._mark_changed()

    def _detach(self, record: ModRecord, remember: bool) -> None:
        with self.suppressed_reconciliation():
            self._mods = [m for m in self._mods if m is not record]
            record.load_order = NOT_LOADED
            record.enabled = False
            self._renumber()
        if remember:
            self._remember_disabled(record.name)
        self._mark_changed()

    def _move(self, current: int, target: int) -> None:
        with self.suppressed_reconciliation():
            record = self._mods.pop(current)
            self._mods.insert(target, record)
            self._renumber()
        self._mark_changed()

    def _remember_disabled(self, name: str) -> None:
        key = name_key(name)
        if all(name_key(n) != key for n in self._disabled):
            self._disabled.append(name)

    def _forget_disabled(self, name: str) -> bool:
        key = name_key(name)
        kept = [n for n in self._disabled if name_key(n) != key]
        changed = len(kept) != len(self._disabled)
        self._disabled = kept
        return changed
