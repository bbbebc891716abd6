"""
mod_record.py
A single discovered mod and its two editable fields: enabled and load_order.

Every successful field change notifies subscribers with a FieldChanged event.
Setting a field to the value it already has is a no-op and notifies nobody,
so a UI binding that writes back the same value cannot start a feedback loop.

load_order is the mod's 0-based position in the active set while it is
enabled, and NOT_LOADED (-1) otherwise.  Keeping it that way is the job of
Utils.active_set.ActiveModSet; this module only stores and announces values.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Callable

log = logging.getLogger(__name__)

FIELD_ENABLED = "enabled"
FIELD_LOAD_ORDER = "load_order"
NOT_LOADED = -1


@dataclass(frozen=True)
class ModMetadata:
    """Read-only facts about a mod, owned by discovery."""
    file_path: Path | None = None
    file_size: int = 0
    last_modified: datetime | None = None
    workshop_id: int = 0
    author: str = ""
    description: str = ""

    @property
    def in_workshop(self) -> bool:
        return self.workshop_id > 0


@dataclass(frozen=True)
class FieldChanged:
    record: "ModRecord"
    field: str
    old_value: Any
    new_value: Any


FieldListener = Callable[[FieldChanged], None]


def name_key(name: str) -> str:
    """Case-insensitive identity key for a mod name."""
    return name.casefold()


class ModRecord:

    def __init__(self, name: str, metadata: ModMetadata | None = None,
                 enabled: bool = False, load_order: int = NOT_LOADED):
        if not name:
            raise ValueError("mod name must not be empty")
        self._name = name
        self.metadata = metadata or ModMetadata()
        self._enabled = bool(enabled)
        self._load_order = int(load_order)
        self._listeners: list[FieldListener] = []

    def __repr__(self) -> str:
        return (f"ModRecord({self._name!r}, enabled={self._enabled}, "
                f"load_order={self._load_order})")

    @property
    def name(self) -> str:
        return self._name

    @property
    def key(self) -> str:
        return name_key(self._name)

    @property
    def enabled(self) -> bool:
        return self._enabled

    @enabled.setter
    def enabled(self, value: bool) -> None:
        self._set(FIELD_ENABLED, bool(value))

    @property
    def load_order(self) -> int:
        return self._load_order

    @load_order.setter
    def load_order(self, value: int) -> None:
        self._set(FIELD_LOAD_ORDER, int(value))

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def subscribe(self, listener: FieldListener) -> Callable[[], None]:
        """Register *listener* for field changes. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

        return _unsubscribe

    def _set(self, field: str, value: Any) -> None:
        attr = "_" + field
        old = getattr(self, attr)
        if old == value:
            return
        setattr(self, attr, value)
        event = FieldChanged(self, field, old, value)
        # Copy: a listener may unsubscribe while we iterate.
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                log.exception("Listener failed for %s.%s change", self._name, field)
