"""
mod_discovery.py
Find every installed Kenshi mod and build the universe of ModRecords.

Kenshi mods live in two places:
  <game>/mods/<folder>/<Name>.mod                          local mods
  <steam library>/steamapps/workshop/content/233860/<id>/<Name>.mod
                                                            workshop mods

A mod's name is its .mod file name, exactly as data/mods.cfg lists it.
When the same name exists in both places the local copy wins, matching the
game's own lookup.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

from Utils.kenshi_paths import KenshiPaths
from Utils.mod_header import read_mod_header
from Utils.mod_record import ModMetadata, ModRecord, name_key

log = logging.getLogger(__name__)

MOD_SUFFIX = ".mod"


def _scan_dir(root: Path | None, workshop: bool) -> list[ModRecord]:
    """Return a record for each <root>/<folder>/*.mod. Missing root -> []."""
    if root is None or not root.is_dir():
        return []
    records: list[ModRecord] = []
    try:
        folders = sorted(p for p in root.iterdir() if p.is_dir())
    except OSError as exc:
        log.warning("Cannot list %s: %s", root, exc)
        return []
    for folder in folders:
        workshop_id = 0
        if workshop:
            if not folder.name.isdigit():
                continue
            workshop_id = int(folder.name)
        try:
            mod_files = sorted(p for p in folder.iterdir()
                               if p.is_file() and p.suffix.lower() == MOD_SUFFIX)
        except OSError as exc:
            log.warning("Skipping unreadable mod folder %s: %s", folder, exc)
            continue
        for mod_file in mod_files:
            try:
                st = mod_file.stat()
            except OSError as exc:
                log.warning("Skipping unreadable mod %s: %s", mod_file, exc)
                continue
            header = read_mod_header(mod_file)
            meta = ModMetadata(
                file_path=mod_file,
                file_size=st.st_size,
                last_modified=datetime.fromtimestamp(st.st_mtime),
                workshop_id=workshop_id,
                author=header.author,
                description=header.description,
            )
            records.append(ModRecord(mod_file.name, meta))
    return records


def discover_mods(paths: KenshiPaths) -> list[ModRecord]:
    """
    Scan the local mods folder and the workshop folder.
    Returns new records sorted by name (case-insensitive), all disabled.
    """
    by_key: dict[str, ModRecord] = {}
    for record in _scan_dir(paths.mods_dir, workshop=False):
        if record.key in by_key:
            log.info("Ignoring second local copy of %s", record.name)
            continue
        by_key[record.key] = record
    for record in _scan_dir(paths.workshop_dir, workshop=True):
        if record.key in by_key:
            log.info("Using local copy of %s instead of workshop item %d",
                     record.name, record.metadata.workshop_id)
            continue
        by_key[record.key] = record

    records = sorted(by_key.values(), key=lambda r: name_key(r.name))
    log.info("Discovered %d mod(s)", len(records))
    return records
