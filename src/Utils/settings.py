"""
settings.py
Persistent application settings stored as JSON in the config directory.

  {
    "last_selected_playset": "Initial Playset",
    "custom_kenshi_path": "/games/Kenshi",
    "custom_mods_path": null,
    "custom_workshop_path": null,
    "save_failure_policy": "proceed",
    "missing_mod_policy": "drop",
    "keep_backup": true,
    "auto_write_mods_cfg": false
  }

A settings file that cannot be parsed is moved aside to settings.json.corrupt
and defaults are used, so a bad file never prevents the app from starting.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path

from Utils.config_paths import get_settings_path
from Utils.file_utils import write_text_atomic

log = logging.getLogger(__name__)

SAVE_FAILURE_POLICIES = ("proceed", "abort")
MISSING_MOD_POLICIES = ("drop", "keep")


@dataclass
class AppSettings:
    last_selected_playset: str | None = None
    custom_kenshi_path: str | None = None
    custom_mods_path: str | None = None
    custom_workshop_path: str | None = None
    # What to do when saving the outgoing playset fails during a switch
    save_failure_policy: str = "proceed"
    # What to do with playset entries whose mod is no longer discovered
    missing_mod_policy: str = "drop"
    keep_backup: bool = True
    auto_write_mods_cfg: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "AppSettings":
        """Build settings from a parsed JSON object, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        settings = cls(**{k: v for k, v in data.items() if k in known})
        if settings.save_failure_policy not in SAVE_FAILURE_POLICIES:
            log.warning("Unknown save_failure_policy %r, using 'proceed'",
                        settings.save_failure_policy)
            settings.save_failure_policy = "proceed"
        if settings.missing_mod_policy not in MISSING_MOD_POLICIES:
            log.warning("Unknown missing_mod_policy %r, using 'drop'",
                        settings.missing_mod_policy)
            settings.missing_mod_policy = "drop"
        return settings

    @classmethod
    def load(cls, path: Path | None = None) -> "AppSettings":
        """Read settings from *path* (default: the config dir settings.json)."""
        path = path or get_settings_path()
        if not path.is_file():
            return cls()
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            if not isinstance(data, dict):
                raise ValueError("settings root is not an object")
            return cls.from_dict(data)
        except (ValueError, TypeError) as exc:
            corrupt = path.with_name(path.name + ".corrupt")
            log.warning("Settings file %s is corrupt (%s); moved to %s",
                        path, exc, corrupt.name)
            try:
                path.replace(corrupt)
            except OSError as move_exc:
                log.warning("Could not move corrupt settings aside: %s", move_exc)
        except OSError as exc:
            log.warning("Could not read settings %s: %s", path, exc)
        return cls()

    def save(self, path: Path | None = None) -> bool:
        """Write settings to *path*. Returns False (and logs) on I/O failure."""
        path = path or get_settings_path()
        try:
            write_text_atomic(path, json.dumps(asdict(self), indent=2) + "\n")
        except OSError as exc:
            log.error("Could not save settings to %s: %s", path, exc)
            return False
        return True
