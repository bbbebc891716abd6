"""
config_paths.py
Central helpers for resolving user-writable config locations.

Follows the XDG Base Directory Specification:
  Config lives in $XDG_CONFIG_HOME/KenshiPlaysetManager  (default: ~/.config/KenshiPlaysetManager)

Playsets themselves are not stored here: they live next to the game, in
<kenshi>/data/playsets/, so the game folder stays the source of truth.
"""

import os
from pathlib import Path

APP_NAME = "KenshiPlaysetManager"


def get_config_dir() -> Path:
    """Return the app config directory, creating it if it doesn't exist.

    Respects $XDG_CONFIG_HOME; falls back to ~/.config/KenshiPlaysetManager.
    """
    xdg = os.environ.get("XDG_CONFIG_HOME")
    base = Path(xdg) if xdg else Path.home() / ".config"
    config_dir = base / APP_NAME
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def get_settings_path() -> Path:
    """Return the path to settings.json.

    Result: ~/.config/KenshiPlaysetManager/settings.json
    """
    return get_config_dir() / "settings.json"


def get_log_path() -> Path:
    """Return the path of the persistent application log.

    Result: ~/.config/KenshiPlaysetManager/playsets.log
    """
    return get_config_dir() / "playsets.log"
