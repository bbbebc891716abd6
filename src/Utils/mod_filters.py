"""
mod_filters.py
Search and sort helpers for the mod list and the Add Mods dialog.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable

from Utils.mod_record import ModRecord, name_key

SORT_KEYS = ("name", "author", "size", "date")


def filter_mods(records: Iterable[ModRecord], text: str) -> list[ModRecord]:
    """Case-insensitive substring match on name, author or description."""
    needle = text.strip().casefold()
    if not needle:
        return list(records)
    return [
        r for r in records
        if needle in r.name.casefold()
        or needle in r.metadata.author.casefold()
        or needle in r.metadata.description.casefold()
    ]


def available_mods(universe: Iterable[ModRecord],
                   active: Iterable[ModRecord]) -> list[ModRecord]:
    """Universe records whose name is not in the active set."""
    active_keys = {name_key(r.name) for r in active}
    return [r for r in universe if r.key not in active_keys]


def sort_mods(records: Iterable[ModRecord], key: str = "name") -> list[ModRecord]:
    """
    Sort for display: name and author ascending, size and date newest/largest
    first.  Ties fall back to name.
    """
    records = sorted(records, key=lambda r: r.key)
    if key == "name":
        return records
    if key == "author":
        return sorted(records, key=lambda r: r.metadata.author.casefold())
    if key == "size":
        return sorted(records, key=lambda r: r.metadata.file_size, reverse=True)
    if key == "date":
        return sorted(records, key=lambda r: r.metadata.last_modified or datetime.min,
                      reverse=True)
    raise ValueError(f"Unknown sort key: {key!r}")
