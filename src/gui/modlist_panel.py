"""
Mod list panel: the loaded playset's load order, search bar and toolbar.
Used by App. Imports theme, dialogs.

Each row is bound to one ModRecord:
  checkbox   -> record.enabled
  order box  -> record.load_order
Writing those fields goes through the active set's reconciliation, exactly
like any other outside edit; the panel then redraws from ActiveSetChanged.
Mods the playset remembers as disabled are listed under the load order so
they can be switched back on.
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
    FONT_HEADER,
    FONT_ROW,
    FONT_SMALL,
    RED_BTN,
    RED_HOV,
    TEXT_DIM,
    TEXT_MAIN,
    WORKSHOP_TEXT,
    row_bg,
)
from gui.dialogs import _AddModsDialog
from Utils.active_set import ActiveModSet, ActiveSetChanged
from Utils.mod_filters import available_mods, filter_mods
from Utils.mod_record import ModRecord, name_key


# ---------------------------------------------------------------------------
# ModListPanel
# ---------------------------------------------------------------------------
class ModListPanel(ctk.CTkFrame):
    """
    Load order editor.  get_universe returns the discovered ModRecords so the
    panel can offer mods for the Add Mods dialog and show remembered ones.
    """

    HEADERS = ["", "#", "Mod Name", ""]

    def __init__(self, parent, active: ActiveModSet, get_universe, log_fn=None):
        super().__init__(parent, fg_color=BG_PANEL, corner_radius=0)
        self._active = active
        self._get_universe = get_universe
        self._log = log_fn or (lambda msg: None)

        self._filter_text: str = ""
        self._selected: ModRecord | None = None
        self._redraw_pending = False

        self.grid_rowconfigure(1, weight=1)
        self.grid_columnconfigure(0, weight=1)

        self._build_header()
        self._build_list()
        self._build_toolbar()
        self._build_search_bar()

        self._unsubscribe = active.subscribe(self._on_active_changed)
        self.bind("<Destroy>", lambda e: self._unsubscribe() if e.widget is self else None)

    # ------------------------------------------------------------------
    # Layout
    # ------------------------------------------------------------------

    def _build_header(self):
        header = ctk.CTkFrame(self, fg_color=BG_HEADER, corner_radius=0, height=28)
        header.grid(row=0, column=0, sticky="ew")
        header.grid_columnconfigure(2, weight=1)
        for col, text in enumerate(self.HEADERS):
            ctk.CTkLabel(header, text=text, font=FONT_HEADER, text_color=TEXT_DIM,
                         anchor="w").grid(row=0, column=col, sticky="w", padx=(8, 4))

    def _build_list(self):
        self._scroll = ctk.CTkScrollableFrame(self, fg_color=BG_DEEP, corner_radius=0)
        self._scroll.grid(row=1, column=0, sticky="nsew")
        self._scroll.grid_columnconfigure(2, weight=1)

    def _build_toolbar(self):
        bar = ctk.CTkFrame(self, fg_color=BG_PANEL, corner_radius=0, height=36)
        bar.grid(row=2, column=0, sticky="ew")
        bar.grid_propagate(False)

        ctk.CTkButton(
            bar, text="Add Mods", width=90, height=26,
            fg_color=ACCENT, hover_color=ACCENT_HOV,
            text_color="white", font=FONT_SMALL,
            command=self._on_add_mods
        ).pack(side="left", padx=(8, 4), pady=5)

        ctk.CTkButton(
            bar, text="Move Up", width=90, height=26,
            fg_color=BG_HEADER, hover_color=BG_HOVER,
            text_color=TEXT_MAIN, font=FONT_SMALL,
            command=self._move_up
        ).pack(side="left", padx=4, pady=5)

        ctk.CTkButton(
            bar, text="Move Down", width=90, height=26,
            fg_color=BG_HEADER, hover_color=BG_HOVER,
            text_color=TEXT_MAIN, font=FONT_SMALL,
            command=self._move_down
        ).pack(side="left", padx=4, pady=5)

        ctk.CTkButton(
            bar, text="Remove", width=80, height=26,
            fg_color=RED_BTN, hover_color=RED_HOV,
            text_color="white", font=FONT_SMALL,
            command=self._remove_selected
        ).pack(side="left", padx=4, pady=5)

        info_clip = tk.Frame(bar, bg=BG_PANEL, width=300, height=26)
        info_clip.pack(side="left", padx=8)
        info_clip.pack_propagate(False)
        self._info_label = ctk.CTkLabel(
            info_clip, text="", font=FONT_SMALL, text_color=TEXT_DIM, anchor="w"
        )
        self._info_label.pack(fill="both", expand=True)

    def _build_search_bar(self):
        bar = tk.Frame(self, bg=BG_DEEP, bd=0, highlightthickness=0, height=32)
        bar.grid(row=3, column=0, sticky="ew")
        bar.grid_propagate(False)

        tk.Label(bar, text="🔍", bg=BG_DEEP, fg=TEXT_DIM,
                 font=FONT_ROW).pack(side="left", padx=(8, 2), pady=4)

        self._search_entry = tk.Entry(
            bar,
            bg=BG_PANEL, fg=TEXT_MAIN, insertbackground=TEXT_MAIN,
            relief="flat", font=FONT_ROW,
            bd=0, highlightthickness=1,
            highlightbackground=BORDER, highlightcolor=ACCENT,
        )
        self._search_entry.pack(side="left", fill="x", expand=True, padx=(2, 8), pady=4)

        # KeyRelease fires after the character is committed to the widget
        self._search_entry.bind("<KeyRelease>", self._on_search_change)
        self._search_entry.bind("<Escape>", self._on_search_clear)

    # ------------------------------------------------------------------
    # Drawing
    # ------------------------------------------------------------------

    def _on_active_changed(self, _event: ActiveSetChanged):
        # Several changes in one event-loop turn collapse into one redraw
        if self._redraw_pending:
            return
        self._redraw_pending = True
        self.after_idle(self._redraw)

    def _remembered_records(self) -> list[ModRecord]:
        by_key = {r.key: r for r in self._get_universe()}
        return [by_key[name_key(n)] for n in self._active.disabled_names()
                if name_key(n) in by_key]

    def _redraw(self):
        self._redraw_pending = False
        for child in self._scroll.winfo_children():
            child.destroy()

        active = filter_mods(self._active.mods(), self._filter_text)
        remembered = filter_mods(self._remembered_records(), self._filter_text)
        row = 0
        for record in active:
            self._draw_row(row, record)
            row += 1
        if remembered:
            ctk.CTkLabel(self._scroll, text="Disabled in this playset", font=FONT_HEADER,
                         text_color=TEXT_DIM, anchor="w").grid(
                row=row, column=0, columnspan=4, sticky="w", padx=8, pady=(10, 2))
            row += 1
            for record in remembered:
                self._draw_row(row, record)
                row += 1
        self._update_info()

    def _draw_row(self, row: int, record: ModRecord):
        selected = record is self._selected
        bg = row_bg(row, selected)

        var = tk.BooleanVar(value=record.enabled)
        cb = tk.Checkbutton(
            self._scroll, variable=var, bg=bg, activebackground=bg,
            selectcolor=BG_DEEP, bd=0, highlightthickness=0,
            command=lambda r=record, v=var: self._on_toggle(r, v),
        )
        cb.grid(row=row, column=0, sticky="nsew")

        order_var = tk.StringVar(value=str(record.load_order) if record.enabled else "")
        order = tk.Entry(
            self._scroll, textvariable=order_var, width=4, justify="right",
            bg=bg, fg=TEXT_MAIN, insertbackground=TEXT_MAIN,
            relief="flat", bd=0, highlightthickness=0,
            state="normal" if record.enabled else "disabled",
            disabledbackground=bg,
        )
        order.grid(row=row, column=1, sticky="nsew")
        order.bind("<Return>", lambda _e, r=record, v=order_var: self._on_order_entered(r, v))
        order.bind("<FocusOut>", lambda _e, r=record, v=order_var: self._on_order_entered(r, v))

        name = tk.Label(
            self._scroll, text=record.name, anchor="w", bg=bg,
            fg=WORKSHOP_TEXT if record.metadata.in_workshop else
               (TEXT_MAIN if record.enabled else TEXT_DIM),
            font=FONT_ROW,
        )
        name.grid(row=row, column=2, sticky="nsew")
        name.bind("<Button-1>", lambda _e, r=record: self._select(r))

        tag = "workshop" if record.metadata.in_workshop else ""
        tk.Label(self._scroll, text=tag, anchor="e", bg=bg, fg=TEXT_DIM,
                 font=("Segoe UI", 9)).grid(row=row, column=3, sticky="nsew", padx=(0, 8))

    def _update_info(self):
        n_active = len(self._active)
        n_disabled = len(self._active.disabled_names())
        n_total = len(self._get_universe())
        self._info_label.configure(
            text=f"{n_active} enabled, {n_disabled} disabled, {n_total} installed"
        )

    def refresh(self):
        """Redraw now (after a playset switch or rediscovery)."""
        if self._selected is not None and self._selected not in self._get_universe():
            self._selected = None
        self._redraw()

    # ------------------------------------------------------------------
    # Field bindings
    # ------------------------------------------------------------------

    def _on_toggle(self, record: ModRecord, var: tk.BooleanVar):
        record.enabled = bool(var.get())
        if record.enabled != bool(var.get()):
            # The active set refused (e.g. a mod with the same name is active)
            var.set(record.enabled)
            self._log(f"Could not enable '{record.name}'.")

    def _on_order_entered(self, record: ModRecord, var: tk.StringVar):
        if not record.enabled:
            return
        text = var.get().strip()
        try:
            value = int(text)
        except ValueError:
            var.set(str(record.load_order))
            return
        if value != record.load_order:
            record.load_order = value
            self._log(f"Set load order of '{record.name}' to {record.load_order}")

    # ------------------------------------------------------------------
    # Toolbar
    # ------------------------------------------------------------------

    def _select(self, record: ModRecord):
        self._selected = record
        self._redraw()

    def _move_up(self):
        if self._selected is not None and self._active.move_up(self._selected):
            self._log(f"Moved '{self._selected.name}' up")

    def _move_down(self):
        if self._selected is not None and self._active.move_down(self._selected):
            self._log(f"Moved '{self._selected.name}' down")

    def _remove_selected(self):
        record = self._selected
        if record is None:
            return
        if self._active.remove(record):
            self._log(f"Removed '{record.name}' from the playset")
        self._selected = None
        self._redraw()

    def _on_add_mods(self):
        candidates = available_mods(self._get_universe(), self._active.mods())
        if not candidates:
            self._log("Every installed mod is already in this playset.")
            return
        dialog = _AddModsDialog(self.winfo_toplevel(), candidates)
        self.winfo_toplevel().wait_window(dialog)
        if not dialog.result:
            return
        added = self._active.bulk_add(dialog.result)
        self._log(f"Added {len(added)} mod(s) to the playset")

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def _on_search_change(self, _event=None):
        text = self._search_entry.get()
        if text != self._filter_text:
            self._filter_text = text
            self._redraw()

    def _on_search_clear(self, _event=None):
        self._search_entry.delete(0, "end")
        self._filter_text = ""
        self._redraw()
