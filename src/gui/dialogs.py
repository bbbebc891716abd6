"""
Modal dialogs used by ModListPanel, TopBar and App.
Uses theme, path_utils; does not import panels or App to avoid circular imports.
"""

import tkinter as tk

import customtkinter as ctk

from gui.theme import (
    ACCENT,
    ACCENT_HOV,
    BG_DEEP,
    BG_HEADER,
    BG_HOVER,
    BG_PANEL,
    BORDER,
    FONT_BOLD,
    FONT_NORMAL,
    FONT_SMALL,
    TEXT_DIM,
    TEXT_ERR,
    TEXT_MAIN,
    WORKSHOP_TEXT,
)
from gui.path_utils import _pick_folder_zenity
from Utils.mod_filters import SORT_KEYS, filter_mods, sort_mods
from Utils.playsets import sanitize_playset_name
from Utils.settings import MISSING_MOD_POLICIES, SAVE_FAILURE_POLICIES, AppSettings


# ---------------------------------------------------------------------------
# Themed message boxes (tk.messagebox ignores the dark theme)
# ---------------------------------------------------------------------------

def _center_dialog(dlg, parent, w: int, h: int):
    """Place dlg over the middle of parent; fall back to size only."""
    try:
        x = parent.winfo_rootx() + (parent.winfo_width() - w) // 2
        y = parent.winfo_rooty() + (parent.winfo_height() - h) // 2
        dlg.geometry(f"{w}x{h}+{x}+{y}")
    except Exception:
        dlg.geometry(f"{w}x{h}")


def _button_bar(parent, buttons, row: int | None = None, columnspan: int = 1):
    """
    Bottom bar with right-aligned buttons.  buttons is a list of
    (text, command, primary) laid out left to right.
    """
    bar = ctk.CTkFrame(parent, fg_color=BG_PANEL, corner_radius=0, height=44)
    if row is None:
        bar.pack(side="bottom", fill="x")
    else:
        bar.grid(row=row, column=0, columnspan=columnspan, sticky="ew")
        bar.grid_propagate(False)
    ctk.CTkFrame(bar, fg_color=BORDER, height=1, corner_radius=0).pack(side="top", fill="x")
    for i, (text, command, primary) in enumerate(reversed(buttons)):
        ctk.CTkButton(
            bar, text=text, width=max(80, 9 * len(text)), height=28,
            font=FONT_BOLD if primary else FONT_NORMAL,
            fg_color=ACCENT if primary else BG_HEADER,
            hover_color=ACCENT_HOV if primary else BG_HOVER,
            text_color="white" if primary else TEXT_MAIN,
            command=command,
        ).pack(side="right", padx=(4, 12) if i == 0 else 4, pady=8)
    return bar


def _message_box(title: str, message: str, icon: str, icon_color: str,
                 answers: list[tuple[str, object, bool]], parent=None):
    """Modal box with an icon, a message and one button per answer; returns the answer clicked."""
    chosen = [None]

    dlg = ctk.CTkToplevel(parent, fg_color=BG_DEEP)
    dlg.title(title)
    dlg.resizable(False, False)
    if parent is not None:
        dlg.transient(parent)
    lines = message.count("\n") + 1
    _center_dialog(dlg, parent, 420, 130 + 18 * min(lines, 8))

    def _answer(value):
        chosen[0] = value
        dlg.destroy()

    _button_bar(dlg, [(text, lambda v=value: _answer(v), primary)
                      for text, value, primary in answers])
    body = ctk.CTkFrame(dlg, fg_color="transparent")
    body.pack(fill="both", expand=True, padx=20, pady=(18, 8))
    ctk.CTkLabel(body, text=icon, font=("", 26, "bold"), text_color=icon_color,
                 width=36).pack(side="left", anchor="n", padx=(0, 12))
    ctk.CTkLabel(body, text=message, font=FONT_NORMAL, text_color=TEXT_MAIN,
                 wraplength=320, justify="left").pack(side="left", anchor="n")

    dlg.bind("<Escape>", lambda _e: dlg.destroy())
    dlg.after(50, dlg.grab_set)
    dlg.wait_window()
    return chosen[0]


def ask_yes_no(title: str, message: str, parent=None) -> bool:
    """Confirmation box. True only when Yes is clicked."""
    return _message_box(title, message, "?", ACCENT,
                        [("Yes", True, True), ("No", False, False)], parent) is True


def show_error(title: str, message: str, parent=None) -> None:
    _message_box(title, message, "✕", TEXT_ERR, [("OK", None, True)], parent)


# ---------------------------------------------------------------------------
# Playset name dialog (New / Rename / Duplicate)
# ---------------------------------------------------------------------------

class _PlaysetNameDialog(ctk.CTkToplevel):
    """Small modal dialog that asks for a playset name."""

    def __init__(self, parent, title: str = "New Playset", initial: str = "",
                 ok_text: str = "Create"):
        super().__init__(parent, fg_color=BG_DEEP)
        self.title(title)
        self.geometry("360x160")
        self.resizable(False, False)
        self.transient(parent)
        self.protocol("WM_DELETE_WINDOW", self._on_cancel)
        self.after(100, self._make_modal)

        self.result: str | None = None
        self._ok_text = ok_text
        self._initial = initial
        self._build()

    def _make_modal(self):
        try:
            self.grab_set()
            self.focus_set()
            self._entry.focus_set()
            self._entry.select_range(0, "end")
        except Exception:
            pass

    def _build(self):
        self.grid_columnconfigure(0, weight=1)

        ctk.CTkLabel(
            self, text="Playset name:", font=FONT_NORMAL,
            text_color=TEXT_MAIN, anchor="w"
        ).grid(row=0, column=0, sticky="ew", padx=16, pady=(16, 4))

        self._var = tk.StringVar(value=self._initial)
        self._entry = ctk.CTkEntry(
            self, textvariable=self._var, font=FONT_NORMAL,
            fg_color=BG_PANEL, text_color=TEXT_MAIN, border_color=BORDER
        )
        self._entry.grid(row=1, column=0, sticky="ew", padx=16, pady=(0, 8))
        self._entry.bind("<Return>", lambda _e: self._on_ok())
        self._entry.bind("<Escape>", lambda _e: self._on_cancel())

        self._error_label = ctk.CTkLabel(self, text="", font=FONT_SMALL,
                                         text_color=TEXT_ERR, anchor="w")
        self._error_label.grid(row=2, column=0, sticky="ew", padx=16)

        _button_bar(self, [(self._ok_text, self._on_ok, True),
                           ("Cancel", self._on_cancel, False)], row=3)

    def _on_ok(self):
        name = self._var.get().strip()
        try:
            sanitize_playset_name(name)
        except ValueError:
            self._error_label.configure(text="Enter a name with letters or digits.")
            return
        self.result = name
        self.grab_release()
        self.destroy()

    def _on_cancel(self):
        self.grab_release()
        self.destroy()


# ---------------------------------------------------------------------------
# Add Mods dialog
# ---------------------------------------------------------------------------

def _format_size(size: int) -> str:
    if size >= 1024 * 1024:
        return f"{size / (1024 * 1024):.1f} MB"
    if size >= 1024:
        return f"{size / 1024:.0f} KB"
    return f"{size} B"


class _AddModsDialog(ctk.CTkToplevel):
    """
    Pick mods that are not in the playset yet.  result is the list of chosen
    ModRecords in display order, or None when cancelled.
    """

    _WIDTH  = 640
    _HEIGHT = 560

    def __init__(self, parent, available: list):
        super().__init__(parent, fg_color=BG_DEEP)
        self.title("Add Mods")
        self.transient(parent)
        self.protocol("WM_DELETE_WINDOW", self._on_cancel)
        _center_dialog(self, parent, self._WIDTH, self._HEIGHT)

        self.result: list | None = None
        self._available = list(available)
        self._vars: dict[int, tk.BooleanVar] = {}   # id(record) -> checked
        self._shown: list = []

        self.grid_columnconfigure(0, weight=1)
        self.grid_rowconfigure(1, weight=1)
        self._build_filter_bar()
        self._scroll = ctk.CTkScrollableFrame(self, fg_color=BG_DEEP, corner_radius=0)
        self._scroll.grid(row=1, column=0, sticky="nsew", padx=8, pady=(0, 4))
        self._scroll.grid_columnconfigure(0, weight=1)
        self._build_button_bar()
        self._refresh()

        self.after(100, self._make_modal)

    def _make_modal(self):
        try:
            self.grab_set()
            self._search.focus_set()
        except Exception:
            pass

    def _build_filter_bar(self):
        bar = ctk.CTkFrame(self, fg_color=BG_PANEL, corner_radius=0, height=44)
        bar.grid(row=0, column=0, sticky="ew")

        self._search_var = tk.StringVar()
        self._search = ctk.CTkEntry(
            bar, textvariable=self._search_var, placeholder_text="Search name, author, description",
            font=FONT_NORMAL, fg_color=BG_DEEP, text_color=TEXT_MAIN, border_color=BORDER
        )
        self._search.pack(side="left", fill="x", expand=True, padx=(8, 4), pady=8)
        self._search.bind("<KeyRelease>", lambda _e: self._refresh())

        ctk.CTkLabel(bar, text="Sort:", font=FONT_SMALL,
                     text_color=TEXT_DIM).pack(side="left", padx=(8, 4))
        self._sort_var = tk.StringVar(value=SORT_KEYS[0])
        ctk.CTkOptionMenu(
            bar, values=list(SORT_KEYS), variable=self._sort_var,
            width=100, height=28, font=FONT_SMALL,
            fg_color=BG_HEADER, button_color=ACCENT, button_hover_color=ACCENT_HOV,
            dropdown_fg_color=BG_PANEL, text_color=TEXT_MAIN,
            command=lambda _v: self._refresh()
        ).pack(side="left", padx=(0, 8))

    def _build_button_bar(self):
        bar = _button_bar(self, [
            ("Select All", self._select_all_shown, False),
            ("Add Selected", self._on_ok, True),
            ("Cancel", self._on_cancel, False),
        ], row=2)
        self._count_label = ctk.CTkLabel(bar, text="", font=FONT_SMALL, text_color=TEXT_DIM)
        self._count_label.pack(side="left", padx=12)

    def _refresh(self):
        for child in self._scroll.winfo_children():
            child.destroy()
        shown = sort_mods(filter_mods(self._available, self._search_var.get()),
                          self._sort_var.get())
        self._shown = shown
        for row, record in enumerate(shown):
            var = self._vars.setdefault(id(record), tk.BooleanVar(value=False))
            meta = record.metadata
            detail = _format_size(meta.file_size)
            if meta.author:
                detail = f"{meta.author}  ·  {detail}"
            ctk.CTkCheckBox(
                self._scroll, text=record.name, variable=var, font=FONT_NORMAL,
                text_color=WORKSHOP_TEXT if meta.in_workshop else TEXT_MAIN,
                command=self._update_count,
            ).grid(row=row, column=0, sticky="w", padx=4, pady=2)
            ctk.CTkLabel(
                self._scroll, text=detail, font=FONT_SMALL, text_color=TEXT_DIM
            ).grid(row=row, column=1, sticky="e", padx=8)
        self._update_count()

    def _select_all_shown(self):
        for record in self._shown:
            self._vars[id(record)].set(True)
        self._update_count()

    def _update_count(self):
        chosen = sum(1 for v in self._vars.values() if v.get())
        self._count_label.configure(
            text=f"{len(self._shown)} shown, {chosen} selected"
        )

    def _on_ok(self):
        # Keep the current display order so the load order matches what the user saw
        ordered = sort_mods(self._available, self._sort_var.get())
        self.result = [r for r in ordered if self._vars.get(id(r)) and self._vars[id(r)].get()]
        self.grab_release()
        self.destroy()

    def _on_cancel(self):
        self.grab_release()
        self.destroy()


# ---------------------------------------------------------------------------
# Settings dialog
# ---------------------------------------------------------------------------

class _SettingsDialog(ctk.CTkToplevel):
    """Edit folder overrides and playset policies. result is True when saved."""

    def __init__(self, parent, settings: AppSettings):
        super().__init__(parent, fg_color=BG_DEEP)
        self.title("Settings")
        self.resizable(False, False)
        self.transient(parent)
        self.protocol("WM_DELETE_WINDOW", self._on_cancel)
        _center_dialog(self, parent, 560, 400)

        self.result = False
        self._settings = settings
        self._build()
        self.after(100, self._make_modal)

    def _make_modal(self):
        try:
            self.grab_set()
            self.focus_set()
        except Exception:
            pass

    def _path_row(self, row: int, label: str, value: str | None) -> tk.StringVar:
        ctk.CTkLabel(self, text=label, font=FONT_NORMAL, text_color=TEXT_MAIN,
                     anchor="w").grid(row=row, column=0, sticky="w", padx=(16, 8), pady=4)
        var = tk.StringVar(value=value or "")
        ctk.CTkEntry(self, textvariable=var, font=FONT_SMALL, width=300,
                     placeholder_text="auto-detect",
                     fg_color=BG_PANEL, text_color=TEXT_MAIN, border_color=BORDER
                     ).grid(row=row, column=1, sticky="ew", pady=4)

        def _browse():
            chosen = _pick_folder_zenity(f"Select {label.rstrip(':')}")
            if chosen:
                var.set(chosen)

        ctk.CTkButton(self, text="…", width=32, height=28, font=FONT_BOLD,
                      fg_color=BG_HEADER, hover_color=BG_HOVER, text_color=TEXT_MAIN,
                      command=_browse).grid(row=row, column=2, padx=(4, 16), pady=4)
        return var

    def _choice_row(self, row: int, label: str, values, value: str) -> tk.StringVar:
        ctk.CTkLabel(self, text=label, font=FONT_NORMAL, text_color=TEXT_MAIN,
                     anchor="w").grid(row=row, column=0, sticky="w", padx=(16, 8), pady=4)
        var = tk.StringVar(value=value)
        ctk.CTkOptionMenu(
            self, values=list(values), variable=var, width=140, height=28,
            font=FONT_SMALL, fg_color=BG_HEADER, button_color=ACCENT,
            button_hover_color=ACCENT_HOV, dropdown_fg_color=BG_PANEL,
            text_color=TEXT_MAIN,
        ).grid(row=row, column=1, sticky="w", pady=4)
        return var

    def _build(self):
        s = self._settings
        self.grid_columnconfigure(1, weight=1)
        self._kenshi_var = self._path_row(0, "Kenshi folder:", s.custom_kenshi_path)
        self._mods_var = self._path_row(1, "Mods folder:", s.custom_mods_path)
        self._workshop_var = self._path_row(2, "Workshop folder:", s.custom_workshop_path)
        self._save_policy_var = self._choice_row(
            3, "If saving fails on switch:", SAVE_FAILURE_POLICIES, s.save_failure_policy)
        self._missing_policy_var = self._choice_row(
            4, "Mods no longer installed:", MISSING_MOD_POLICIES, s.missing_mod_policy)

        self._backup_var = tk.BooleanVar(value=s.keep_backup)
        ctk.CTkCheckBox(self, text="Keep a .bak of each playset before saving",
                        variable=self._backup_var, font=FONT_NORMAL,
                        text_color=TEXT_MAIN).grid(row=5, column=0, columnspan=3,
                                                   sticky="w", padx=16, pady=4)
        self._auto_cfg_var = tk.BooleanVar(value=s.auto_write_mods_cfg)
        ctk.CTkCheckBox(self, text="Write data/mods.cfg whenever the load order changes",
                        variable=self._auto_cfg_var, font=FONT_NORMAL,
                        text_color=TEXT_MAIN).grid(row=6, column=0, columnspan=3,
                                                   sticky="w", padx=16, pady=4)

        self.grid_rowconfigure(7, minsize=12)
        _button_bar(self, [("Save", self._on_ok, True),
                           ("Cancel", self._on_cancel, False)], row=8, columnspan=3)

    def _on_ok(self):
        s = self._settings
        s.custom_kenshi_path = self._kenshi_var.get().strip() or None
        s.custom_mods_path = self._mods_var.get().strip() or None
        s.custom_workshop_path = self._workshop_var.get().strip() or None
        s.save_failure_policy = self._save_policy_var.get()
        s.missing_mod_policy = self._missing_policy_var.get()
        s.keep_backup = bool(self._backup_var.get())
        s.auto_write_mods_cfg = bool(self._auto_cfg_var.get())
        self.result = True
        self.grab_release()
        self.destroy()

    def _on_cancel(self):
        self.grab_release()
        self.destroy()
