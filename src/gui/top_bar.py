"""
Top bar: playset selector and playset actions (New, Delete, Rename,
Duplicate, Import, Export, Restore backup), plus Refresh, Write mods.cfg and
Settings.  Used by App.  Imports theme, dialogs, path_utils.
"""

import tkinter as tk
from pathlib import Path
import customtkinter as ctk

from gui.theme import (
    ACCENT,
    ACCENT_HOV,
    BG_HEADER,
    BG_HOVER,
    BG_PANEL,
    BORDER,
    FONT_BOLD,
    FONT_NORMAL,
    GREEN_BTN,
    GREEN_HOV,
    TEXT_MAIN,
)
from gui.dialogs import _PlaysetNameDialog, ask_yes_no, show_error
from gui.path_utils import _pick_file_zenity, _save_file_zenity
from Utils.playset_switcher import PlaysetSwitcher

_NO_PLAYSETS = "No playsets"


# ---------------------------------------------------------------------------
# TopBar
# ---------------------------------------------------------------------------
class TopBar(ctk.CTkFrame):
    def __init__(self, parent, switcher: PlaysetSwitcher, log_fn=None,
                 on_playset_loaded=None, on_refresh=None,
                 on_write_mods_cfg=None, on_settings=None):
        super().__init__(parent, fg_color=BG_PANEL, corner_radius=0, height=46)
        self.grid_propagate(False)
        self._switcher = switcher
        self._log = log_fn or (lambda msg: None)
        self._on_playset_loaded = on_playset_loaded or (lambda: None)

        # Bottom separator line
        ctk.CTkFrame(self, fg_color=BORDER, height=1, corner_radius=0).pack(
            side="bottom", fill="x"
        )

        ctk.CTkLabel(
            self, text="Playset:", font=FONT_BOLD, text_color=TEXT_MAIN
        ).pack(side="left", padx=(12, 4))

        ctk.CTkButton(
            self, text="+", width=32, height=32, font=FONT_BOLD,
            fg_color=BG_HEADER, hover_color=BG_HOVER, text_color=TEXT_MAIN,
            command=self._on_add_playset
        ).pack(side="left", padx=(0, 2))

        ctk.CTkButton(
            self, text="−", width=32, height=32, font=FONT_BOLD,
            fg_color=BG_HEADER, hover_color=BG_HOVER, text_color=TEXT_MAIN,
            command=self._on_remove_playset
        ).pack(side="left", padx=(0, 4))

        self._playset_var = tk.StringVar(value=_NO_PLAYSETS)
        self._playset_menu = ctk.CTkOptionMenu(
            self, values=[_NO_PLAYSETS], variable=self._playset_var,
            width=220, height=32, font=FONT_NORMAL,
            fg_color=BG_HEADER, button_color=ACCENT, button_hover_color=ACCENT_HOV,
            dropdown_fg_color=BG_PANEL, text_color=TEXT_MAIN,
            command=self._on_playset_change
        )
        self._playset_menu.pack(side="left", padx=(0, 8))

        for text, command in (
            ("Rename", self._on_rename),
            ("Duplicate", self._on_duplicate),
            ("Import", self._on_import),
            ("Export", self._on_export),
            ("Restore", self._on_restore_backup),
        ):
            ctk.CTkButton(
                self, text=text, width=84, height=32, font=FONT_NORMAL,
                fg_color=BG_HEADER, hover_color=BG_HOVER, text_color=TEXT_MAIN,
                command=command
            ).pack(side="left", padx=(0, 4))

        # Right side
        ctk.CTkButton(
            self, text="⚙", width=32, height=32, font=FONT_BOLD,
            fg_color=BG_HEADER, hover_color=BG_HOVER, text_color=TEXT_MAIN,
            command=on_settings or (lambda: None)
        ).pack(side="right", padx=(4, 12))

        ctk.CTkButton(
            self, text="Write mods.cfg", width=130, height=32, font=FONT_BOLD,
            fg_color=GREEN_BTN, hover_color=GREEN_HOV, text_color="white",
            command=on_write_mods_cfg or (lambda: None)
        ).pack(side="right", padx=4)

        ctk.CTkButton(
            self, text="↺", width=32, height=32, font=FONT_BOLD,
            fg_color=BG_HEADER, hover_color=BG_HOVER, text_color=TEXT_MAIN,
            command=on_refresh or (lambda: None)
        ).pack(side="right", padx=4)

    # ------------------------------------------------------------------
    # Dropdown
    # ------------------------------------------------------------------

    def set_switcher(self, switcher: PlaysetSwitcher):
        """Use a new switcher (after the Kenshi folders changed in Settings)."""
        self._switcher = switcher
        self.refresh_playsets()

    def refresh_playsets(self):
        """Reload the dropdown from disk and select the loaded playset."""
        try:
            names = [p.name for p in self._switcher.repository.list_playsets()]
        except Exception as exc:
            self._log(f"Could not list playsets: {exc}")
            names = []
        self._playset_menu.configure(values=names or [_NO_PLAYSETS])
        self._playset_var.set(self._switcher.current_name or
                              (names[0] if names else _NO_PLAYSETS))

    def _report_failure(self, title: str):
        self._log(self._switcher.status_message)
        show_error(title, self._switcher.status_message, parent=self.winfo_toplevel())

    def _after_change(self):
        self.refresh_playsets()
        self._on_playset_loaded()

    def _current(self):
        playset = self._switcher.current_playset()
        if playset is None:
            self._log("No playset loaded.")
        return playset

    def _on_playset_change(self, value: str):
        if value == self._switcher.current_name:
            return
        playset = self._switcher.repository.get(value)
        if playset is None:
            self._log(f"Playset '{value}' no longer exists.")
            self.refresh_playsets()
            return
        if not self._switcher.switch_to(playset):
            self._report_failure("Switch Playset")
        self._after_change()

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def _ask_name(self, title: str, initial: str, ok_text: str) -> str | None:
        dialog = _PlaysetNameDialog(self.winfo_toplevel(), title=title,
                                    initial=initial, ok_text=ok_text)
        self.winfo_toplevel().wait_window(dialog)
        return dialog.result

    def _on_add_playset(self):
        name = self._ask_name("New Playset",
                              self._switcher.repository.generate_name(), "Create")
        if name is None:
            return
        if not self._switcher.create_and_switch(name):
            self._report_failure("New Playset")
        self._after_change()

    def _on_remove_playset(self):
        playset = self._current()
        if playset is None:
            return
        if not ask_yes_no("Delete Playset",
                          f"Delete playset '{playset.name}'?\n\nThis cannot be undone.",
                          parent=self.winfo_toplevel()):
            return
        if not self._switcher.delete(playset):
            self._report_failure("Delete Playset")
        else:
            remaining = self._switcher.repository.list_playsets()
            if remaining:
                self._switcher.switch_to(remaining[0])
        self._after_change()

    def _on_rename(self):
        playset = self._current()
        if playset is None:
            return
        name = self._ask_name("Rename Playset", playset.name, "Rename")
        if name is None or name == playset.name:
            return
        if self._switcher.rename(playset, name) is None:
            self._report_failure("Rename Playset")
        self._after_change()

    def _on_duplicate(self):
        playset = self._current()
        if playset is None:
            return
        initial = self._switcher.repository.unique_name(f"{playset.name} Copy")
        name = self._ask_name("Duplicate Playset", initial, "Duplicate")
        if name is None:
            return
        if self._switcher.duplicate(playset, name) is None:
            self._report_failure("Duplicate Playset")
        self.refresh_playsets()

    def _on_import(self):
        chosen = _pick_file_zenity("Import Playset")
        if not chosen:
            return
        if not self._switcher.import_and_switch(Path(chosen)):
            self._report_failure("Import Playset")
        self._after_change()

    def _on_export(self):
        playset = self._current()
        if playset is None:
            return
        chosen = _save_file_zenity("Export Playset", f"{playset.name}.cfg")
        if not chosen:
            return
        if not self._switcher.export(playset, Path(chosen)):
            self._report_failure("Export Playset")

    def _on_restore_backup(self):
        playset = self._current()
        if playset is None:
            return
        if not ask_yes_no("Restore Backup",
                          f"Replace '{playset.name}' with the copy saved before "
                          f"the last change?",
                          parent=self.winfo_toplevel()):
            return
        if not self._switcher.restore_backup():
            self._report_failure("Restore Backup")
        self._after_change()
