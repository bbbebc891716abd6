"""
kenshi_paths.py
Locate the Kenshi install, its local mods folder and its Steam Workshop folder.

The result is a KenshiPaths value that is handed to the playset repository,
mod discovery and the mods.cfg writer when they are constructed.  Nothing in
the app reads paths from module-level state.

Layout:
  <game>/kenshi_x64.exe
  <game>/mods/<ModFolder>/<ModName>.mod            local mods
  <game>/data/mods.cfg                             list the game actually loads
  <game>/data/playsets/<Playset>.cfg               managed playsets
  <steam library>/steamapps/workshop/content/233860/<id>/<ModName>.mod
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path

log = logging.getLogger(__name__)

KENSHI_STEAM_ID = "233860"
_KENSHI_FOLDER = "Kenshi"
_EXE_PATTERN = "kenshi*.exe"

_HOME = Path.home()

_STEAM_CANDIDATES: list[Path] = [
    _HOME / ".local" / "share" / "Steam",                                          # Standard
    _HOME / ".var" / "app" / "com.valvesoftware.Steam" / ".local" / "share" / "Steam",  # Flatpak
    _HOME / "snap" / "steam" / "common" / ".local" / "share" / "Steam",            # Snap
    _HOME / ".steam" / "steam",                                                     # Symlink fallback
    Path("C:/Program Files (x86)/Steam"),                                           # Windows default
]

_VDF_FILENAME = "libraryfolders.vdf"
_PATH_RE = re.compile(r'"path"\s+"([^"]+)"')


@dataclass(frozen=True)
class KenshiPaths:
    game_dir: Path
    mods_dir: Path
    workshop_dir: Path | None = None

    @property
    def data_dir(self) -> Path:
        return self.game_dir / "data"

    @property
    def playsets_dir(self) -> Path:
        return self.data_dir / "playsets"

    @property
    def mods_cfg_path(self) -> Path:
        """The flat enabled-mods list read by the game (and migrated on first run)."""
        return self.data_dir / "mods.cfg"

    @classmethod
    def for_game_dir(cls, game_dir: Path, mods_dir: Path | None = None,
                     workshop_dir: Path | None = None) -> "KenshiPaths":
        return cls(
            game_dir=game_dir,
            mods_dir=mods_dir or game_dir / "mods",
            workshop_dir=workshop_dir,
        )


def is_valid_kenshi_dir(path: Path | None) -> bool:
    """True if *path* is a directory containing a kenshi*.exe."""
    if path is None or not path.is_dir():
        return False
    try:
        return any(p.is_file() for p in path.glob(_EXE_PATTERN))
    except OSError:
        return False


def parse_vdf_libraries(vdf_path: Path) -> list[Path]:
    """
    Parse a libraryfolders.vdf file and return every Steam library root it lists.

    The VDF format contains lines like:
        "path"    "/home/deck/.local/share/Steam"
    Windows paths are written with doubled backslashes, which are collapsed.
    """
    try:
        text = vdf_path.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return []
    return [Path(m.group(1).replace("\\\\", "\\")) for m in _PATH_RE.finditer(text)]


def find_steam_libraries(candidates: list[Path] | None = None) -> list[Path]:
    """Return deduplicated Steam library roots from all known Steam installs."""
    seen: set[Path] = set()
    libraries: list[Path] = []
    for steam_root in candidates if candidates is not None else _STEAM_CANDIDATES:
        vdf_path = steam_root / "steamapps" / _VDF_FILENAME
        if not vdf_path.is_file():
            continue
        for library in [steam_root, *parse_vdf_libraries(vdf_path)]:
            try:
                key = library.resolve()
            except OSError:
                key = library
            if key not in seen and library.is_dir():
                seen.add(key)
                libraries.append(library)
    return libraries


def find_kenshi_install(candidates: list[Path] | None = None) -> KenshiPaths | None:
    """
    Search all Steam libraries for a Kenshi install.
    Returns KenshiPaths with the workshop folder of the same library, or None.
    """
    for library in find_steam_libraries(candidates):
        game_dir = library / "steamapps" / "common" / _KENSHI_FOLDER
        if not is_valid_kenshi_dir(game_dir):
            continue
        workshop = library / "steamapps" / "workshop" / "content" / KENSHI_STEAM_ID
        log.info("Found Kenshi at %s", game_dir)
        return KenshiPaths.for_game_dir(
            game_dir, workshop_dir=workshop if workshop.is_dir() else None
        )
    return None


def resolve_kenshi_paths(settings, candidates: list[Path] | None = None) -> KenshiPaths | None:
    """
    Resolve paths from AppSettings: a valid custom Kenshi path wins, otherwise
    Steam autodetection.  Custom mods/workshop folders override the detected
    ones when they exist.  Returns None if Kenshi cannot be located.
    """
    paths: KenshiPaths | None = None
    custom = Path(settings.custom_kenshi_path) if settings.custom_kenshi_path else None
    if custom is not None:
        if is_valid_kenshi_dir(custom):
            paths = KenshiPaths.for_game_dir(custom)
        else:
            log.warning("Custom Kenshi path %s is invalid or has no kenshi*.exe", custom)
    if paths is None:
        paths = find_kenshi_install(candidates)
    if paths is None:
        return None

    mods_dir = paths.mods_dir
    if settings.custom_mods_path and Path(settings.custom_mods_path).is_dir():
        mods_dir = Path(settings.custom_mods_path)
    workshop_dir = paths.workshop_dir
    if settings.custom_workshop_path and Path(settings.custom_workshop_path).is_dir():
        workshop_dir = Path(settings.custom_workshop_path)
    return KenshiPaths(game_dir=paths.game_dir, mods_dir=mods_dir, workshop_dir=workshop_dir)
