"""
Colors and fonts shared by every gui module.
Importing this module switches customtkinter to its dark appearance.
"""

import customtkinter as ctk

ctk.set_appearance_mode("dark")
ctk.set_default_color_theme("dark-blue")

# ---------------------------------------------------------------------------
# Surfaces
# ---------------------------------------------------------------------------
BG_DEEP    = "#1a1a1a"   # window and list background
BG_PANEL   = "#252526"   # toolbars, dialog button bars
BG_HEADER  = "#2a2a2b"   # column header, neutral buttons
BG_ROW     = "#2d2d2d"
BG_ROW_ALT = "#303030"
BG_HOVER   = "#094771"   # selected row, neutral button hover
BORDER     = "#444444"

# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------
ACCENT     = "#0078d4"
ACCENT_HOV = "#1084d8"
RED_BTN    = "#a83232"   # Remove
RED_HOV    = "#c43c3c"
GREEN_BTN  = "#2d7a2d"   # Write mods.cfg
GREEN_HOV  = "#3a9a3a"

# ---------------------------------------------------------------------------
# Text
# ---------------------------------------------------------------------------
TEXT_MAIN     = "#d4d4d4"
TEXT_DIM      = "#858585"   # disabled mods, hints
TEXT_ERR      = "#e06c75"
WORKSHOP_TEXT = "#7aa2f7"   # Steam Workshop mods

# ---------------------------------------------------------------------------
# Fonts
# ---------------------------------------------------------------------------
FONT_NORMAL = ("Segoe UI", 14)
FONT_BOLD   = ("Segoe UI", 14, "bold")
FONT_SMALL  = ("Segoe UI", 12)
FONT_HEADER = ("Segoe UI", 12, "bold")
FONT_MONO   = ("Courier New", 13)
FONT_ROW    = ("Segoe UI", 11)


def row_bg(row: int, selected: bool = False) -> str:
    """Background for a list row: selection first, then zebra striping."""
    if selected:
        return BG_HOVER
    return BG_ROW if row % 2 == 0 else BG_ROW_ALT
