"""
Status bar: last playset status on one line, plus a collapsible log.
Used by App.

Every logged line is also appended to playsets.log in the config dir so a
failed save can be looked up after the window is closed.
"""

from datetime import datetime
import customtkinter as ctk

from Utils.config_paths import get_log_path
from gui.theme import (
    BG_DEEP,
    BG_HEADER,
    BG_HOVER,
    BG_PANEL,
    BORDER,
    FONT_MONO,
    FONT_SMALL,
    TEXT_DIM,
    TEXT_ERR,
    TEXT_MAIN,
)

_MAX_LOG_LINES = 2000


# ---------------------------------------------------------------------------
# StatusBar
# ---------------------------------------------------------------------------
class StatusBar(ctk.CTkFrame):
    _BAR_H = 22
    _LOG_H = 140

    def __init__(self, parent):
        super().__init__(parent, fg_color=BG_DEEP, corner_radius=0, height=self._BAR_H)
        self.grid_propagate(False)
        self._expanded = False
        self._log_path = get_log_path()
        self._file_failed = False
        self._line_count = 0

        ctk.CTkFrame(self, fg_color=BORDER, height=1, corner_radius=0).pack(
            side="top", fill="x"
        )
        bar = ctk.CTkFrame(self, fg_color=BG_PANEL, corner_radius=0, height=20)
        bar.pack(side="top", fill="x")

        self._status_label = ctk.CTkLabel(
            bar, text="", font=FONT_SMALL, text_color=TEXT_MAIN, anchor="w"
        )
        self._status_label.pack(side="left", fill="x", expand=True, padx=8)

        self._toggle_btn = self._bar_button(bar, "Log ▲", self.toggle_log, 64)
        self._bar_button(bar, "Clear", self.clear_log, 52)

        self._textbox = ctk.CTkTextbox(
            self, font=FONT_MONO, fg_color=BG_DEEP, text_color=TEXT_MAIN,
            state="disabled", wrap="none", corner_radius=0
        )

    @staticmethod
    def _bar_button(bar, text: str, command, width: int):
        btn = ctk.CTkButton(
            bar, text=text, width=width, height=16,
            fg_color=BG_HEADER, hover_color=BG_HOVER,
            text_color=TEXT_DIM, font=FONT_SMALL, command=command,
        )
        btn.pack(side="right", padx=(0, 6), pady=2)
        return btn

    # ------------------------------------------------------------------

    def toggle_log(self):
        self._expanded = not self._expanded
        if self._expanded:
            self._textbox.pack(fill="both", expand=True)
        else:
            self._textbox.pack_forget()
        self.configure(height=self._LOG_H if self._expanded else self._BAR_H)
        self._toggle_btn.configure(text="Log ▼" if self._expanded else "Log ▲")

    def clear_log(self):
        self._textbox.configure(state="normal")
        self._textbox.delete("1.0", "end")
        self._textbox.configure(state="disabled")
        self._line_count = 0

    def set_status(self, message: str, error: bool = False):
        """Show the outcome of the last playset action."""
        self._status_label.configure(text=message,
                                     text_color=TEXT_ERR if error else TEXT_MAIN)
        if error and not self._expanded:
            self.toggle_log()

    def log(self, message: str):
        now = datetime.now()
        self._textbox.configure(state="normal")
        self._textbox.insert("end", f"[{now:%H:%M:%S}]  {message}\n")
        self._line_count += 1
        if self._line_count > _MAX_LOG_LINES:
            self._textbox.delete("1.0", "2.0")
            self._line_count -= 1
        self._textbox.see("end")
        self._textbox.configure(state="disabled")
        self._append_to_file(f"[{now:%Y-%m-%d %H:%M:%S}]  {message}\n")

    def _append_to_file(self, line: str):
        if self._file_failed:
            return
        try:
            with open(self._log_path, "a", encoding="utf-8") as f:
                f.write(line)
        except OSError as exc:
            # Only report once; the panel itself keeps working
            self._file_failed = True
            self._status_label.configure(text=f"Cannot write {self._log_path.name}: {exc}",
                                         text_color=TEXT_ERR)
