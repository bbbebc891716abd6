"""
playset_file.py
Read and write a playset .cfg file.

Format (one mod per line, order = load order):
  ModA.mod          enabled mod
  #ModC.mod         disabled mod the playset still remembers
  # free text       comment (a space after '#'), ignored
  (blank line)      ignored

Enabled mods are written first in load order, then the remembered disabled
mods in their previous relative order.  Disabled lines do not take a load
order slot.  The legacy data/mods.cfg the game reads is the same format with
only enabled lines, so it parses with the same code.

Parsing never fails on content: malformed lines are skipped.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from Utils.file_utils import write_text_atomic
from Utils.mod_record import name_key

log = logging.getLogger(__name__)

DISABLED_PREFIX = "#"
PLAYSET_SUFFIX = ".cfg"


@dataclass(frozen=True)
class PlaysetEntry:
    name: str
    enabled: bool


def _parse_line(line: str) -> PlaysetEntry | None:
    """Return the entry encoded by one line, or None for blanks and comments."""
    line = line.strip()
    if not line:
        return None
    if not line.startswith(DISABLED_PREFIX):
        return PlaysetEntry(name=line, enabled=True)
    name = line[len(DISABLED_PREFIX):]
    # "# text" and "##..." are comments, "#Name" is a disabled mod
    if not name or name[0].isspace() or name.startswith(DISABLED_PREFIX):
        return None
    return PlaysetEntry(name=name.rstrip(), enabled=False)


def parse_playset(lines: Iterable[str]) -> list[PlaysetEntry]:
    """
    Parse playset lines and return entries in file order.
    A name that appears twice (case-insensitive) keeps its first occurrence.
    """
    entries: list[PlaysetEntry] = []
    seen: set[str] = set()
    for line in lines:
        entry = _parse_line(line)
        if entry is None:
            continue
        key = name_key(entry.name)
        if key in seen:
            log.debug("Ignoring repeated playset line for %s", entry.name)
            continue
        seen.add(key)
        entries.append(entry)
    return entries


def format_playset(active_names: Iterable[str],
                   disabled_names: Iterable[str] = ()) -> list[str]:
    """
    Build playset lines: active names in load order, then '#Name' for every
    disabled name not also active.
    """
    lines: list[str] = []
    seen: set[str] = set()
    for name in active_names:
        key = name_key(name)
        if key in seen:
            continue
        seen.add(key)
        lines.append(name)
    for name in disabled_names:
        key = name_key(name)
        if key in seen:
            continue
        seen.add(key)
        lines.append(f"{DISABLED_PREFIX}{name}")
    return lines


def read_playset(path: Path) -> list[PlaysetEntry]:
    """
    Read and parse a playset file.  Raises OSError if it cannot be read.
    A UTF-8 byte order mark is tolerated; undecodable bytes are replaced.
    """
    text = path.read_text(encoding="utf-8-sig", errors="replace")
    return parse_playset(text.splitlines())


def write_playset(path: Path, lines: list[str], keep_backup: bool = False) -> None:
    """Write playset lines atomically. Raises OSError on failure."""
    write_text_atomic(path, "\n".join(lines) + ("\n" if lines else ""),
                      keep_backup=keep_backup)
