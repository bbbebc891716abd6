"""
launch_config.py
Write data/mods.cfg, the flat list of enabled mods the game reads at launch.

  ModA.mod
  ModB.mod

One name per line in load order, no disabled entries.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

from Utils.active_set import ActiveSetChanged
from Utils.playset_file import format_playset, write_playset

log = logging.getLogger(__name__)


def write_mods_cfg(path: Path, names: Iterable[str]) -> int:
    """Atomically write *names* to mods.cfg. Returns the number written. Raises OSError."""
    lines = format_playset(names)
    write_playset(path, lines)
    log.info("Wrote %d mod(s) to %s", len(lines), path)
    return len(lines)


class LaunchConfigWriter:
    """ActiveSetChanged listener that keeps mods.cfg in step with the load order."""

    def __init__(self, path: Path):
        self.path = path
        self.last_error: OSError | None = None

    def __call__(self, event: ActiveSetChanged) -> None:
        try:
            write_mods_cfg(self.path, event.names)
            self.last_error = None
        except OSError as exc:
            self.last_error = exc
            log.error("Could not write %s: %s", self.path, exc)
