"""
Main window: top bar, mod list panel and status bar, wired to the playset
engine (settings -> paths -> repository / discovery -> switcher).
"""

import logging
import queue
from functools import partial
from pathlib import Path

import customtkinter as ctk

from gui.theme import BG_DEEP
from gui.dialogs import _SettingsDialog, show_error
from gui.modlist_panel import ModListPanel
from gui.status_bar import StatusBar
from gui.top_bar import TopBar
from Utils.active_set import ActiveModSet
from Utils.app_log import clear_app_log, set_app_log
from Utils.config_paths import get_config_dir
from Utils.kenshi_paths import KenshiPaths, resolve_kenshi_paths
from Utils.launch_config import LaunchConfigWriter, write_mods_cfg
from Utils.mod_discovery import discover_mods
from Utils.playset_switcher import MissingModPolicy, PlaysetSwitcher, SaveFailurePolicy
from Utils.playsets import PlaysetRepository
from Utils.settings import AppSettings

log = logging.getLogger(__name__)


class App(ctk.CTk):
    def __init__(self, settings: AppSettings | None = None, settings_path: Path | None = None):
        super().__init__(fg_color=BG_DEEP)
        self.title("Kenshi Playset Manager")
        self.geometry("1100x760")
        self.minsize(760, 480)
        # Background threads must never call widget.after() directly;
        # they go through call_threadsafe().
        self._ts_queue: queue.Queue = queue.Queue()
        self._poll_threadsafe_queue()

        self._settings_path = settings_path
        self._settings = settings or AppSettings.load(settings_path)
        self._paths: KenshiPaths | None = None
        self._active = ActiveModSet()
        self._mods_cfg_unsubscribe = None
        self._switcher = self._make_switcher()

        self._build_layout()
        self.protocol("WM_DELETE_WINDOW", self._on_close)
        self.after(0, self._start)

    # -- Thread-safe callback scheduling ------------------------------------

    def call_threadsafe(self, fn):
        """Schedule *fn* to run on the main/UI thread. Safe from any thread."""
        self._ts_queue.put(fn)

    def _poll_threadsafe_queue(self):
        while True:
            try:
                fn = self._ts_queue.get_nowait()
            except queue.Empty:
                break
            try:
                fn()
            except Exception:
                log.exception("Callback scheduled from a background thread failed")
        self.after(50, self._poll_threadsafe_queue)

    # -- Engine wiring -------------------------------------------------------

    def _make_switcher(self) -> PlaysetSwitcher:
        self._paths = resolve_kenshi_paths(self._settings)
        if self._paths is not None:
            playsets_dir = self._paths.playsets_dir
            discover = partial(discover_mods, self._paths)
            legacy = self._paths.mods_cfg_path
        else:
            # No game folder yet: keep playsets in the config dir until one is set
            playsets_dir = get_config_dir() / "playsets"
            discover = list
            legacy = None
        repository = PlaysetRepository(playsets_dir, keep_backup=self._settings.keep_backup)
        self._attach_mods_cfg_writer()
        return PlaysetSwitcher(
            repository, self._active,
            discover=discover,
            save_failure_policy=SaveFailurePolicy(self._settings.save_failure_policy),
            missing_mod_policy=MissingModPolicy(self._settings.missing_mod_policy),
            dispatch=self.call_threadsafe,
            legacy_path=legacy,
        )

    def _attach_mods_cfg_writer(self):
        if self._mods_cfg_unsubscribe is not None:
            self._mods_cfg_unsubscribe()
            self._mods_cfg_unsubscribe = None
        if self._settings.auto_write_mods_cfg and self._paths is not None:
            writer = LaunchConfigWriter(self._paths.mods_cfg_path)
            self._mods_cfg_unsubscribe = self._active.subscribe(writer)

    def _start(self):
        if self._paths is None:
            self._status.log("Kenshi was not found. Set the Kenshi folder in Settings (⚙).")
        else:
            self._status.log(f"Kenshi folder: {self._paths.game_dir}")
        self._switcher.start(self._settings)
        self._after_playset_change()
        self._status.log(f"Playset manager ready. {len(self._switcher.universe)} mod(s) installed.")

    # -- Layout ----------------------------------------------------------------

    def _build_layout(self):
        self.grid_rowconfigure(0, weight=0)
        self.grid_rowconfigure(1, weight=1)
        self.grid_rowconfigure(2, weight=0)
        self.grid_columnconfigure(0, weight=1)

        # Build status bar first so log_fn is available immediately
        self._status = StatusBar(self)
        self._status.grid(row=2, column=0, sticky="ew")

        log_fn = self._status.log
        set_app_log(log_fn, self.after)

        self._topbar = TopBar(
            self, self._switcher, log_fn=log_fn,
            on_playset_loaded=self._after_playset_change,
            on_refresh=self._on_refresh,
            on_write_mods_cfg=self._on_write_mods_cfg,
            on_settings=self._on_settings,
        )
        self._topbar.grid(row=0, column=0, sticky="ew", pady=(4, 0))

        self._mod_panel = ModListPanel(
            self, self._active, get_universe=lambda: self._switcher.universe,
            log_fn=log_fn,
        )
        self._mod_panel.grid(row=1, column=0, sticky="nsew")

    # -- Callbacks ---------------------------------------------------------------

    def _after_playset_change(self):
        self._topbar.refresh_playsets()
        self._mod_panel.refresh()
        self._status.set_status(self._switcher.status_message,
                                error=self._switcher.last_error is not None)
        name = self._switcher.current_name
        if name and name != self._settings.last_selected_playset:
            self._settings.last_selected_playset = name
            self._settings.save(self._settings_path)

    def _on_refresh(self):
        if self._switcher.reload_universe():
            self._status.log(f"Rescanned mods: {len(self._switcher.universe)} installed.")
        self._after_playset_change()

    def _on_write_mods_cfg(self):
        if self._paths is None:
            show_error("Write mods.cfg", "Kenshi folder is not set.", parent=self)
            return
        try:
            count = write_mods_cfg(self._paths.mods_cfg_path, self._active.names())
        except OSError as exc:
            show_error("Write mods.cfg", f"Could not write mods.cfg:\n{exc}", parent=self)
            return
        self._status.log(f"Wrote {count} mod(s) to {self._paths.mods_cfg_path}")

    def _on_settings(self):
        dialog = _SettingsDialog(self, self._settings)
        self.wait_window(dialog)
        if not dialog.result:
            return
        self._settings.save(self._settings_path)
        # Folders or policies may have changed: rebuild the engine around the same active set
        self._switcher.save_current()
        self._switcher.close()
        self._switcher = self._make_switcher()
        self._topbar.set_switcher(self._switcher)
        self._start()

    def _on_close(self):
        self._switcher.save_current()
        self._switcher.close()
        self._settings.save(self._settings_path)
        clear_app_log()
        self.destroy()
