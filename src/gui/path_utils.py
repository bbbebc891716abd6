"""
Native file pickers for the GUI.
Used by TopBar (import / export playsets). No dependency on other gui modules.

zenity gives a GTK dialog that matches the desktop; when it is not installed
the tkinter dialogs are used instead.
"""

import subprocess
from tkinter import filedialog

_CFG_FILTER = "Playset files (*.cfg) | *.cfg"


def _pick_file_zenity(title: str) -> str:
    """Open a native GTK file picker via zenity. Returns the chosen path or ''."""
    try:
        result = subprocess.run(
            [
                "zenity", "--file-selection",
                f"--title={title}",
                f"--file-filter={_CFG_FILTER}",
                "--file-filter=All files | *",
            ],
            capture_output=True, text=True
        )
        if result.returncode == 0:
            return result.stdout.strip()
    except FileNotFoundError:
        return filedialog.askopenfilename(
            title=title, filetypes=[("Playset files", "*.cfg"), ("All files", "*")]
        ) or ""
    return ""


def _save_file_zenity(title: str, default_name: str = "") -> str:
    """Open a native save dialog via zenity. Returns the chosen path or ''."""
    try:
        result = subprocess.run(
            [
                "zenity", "--file-selection", "--save", "--confirm-overwrite",
                f"--title={title}",
                f"--filename={default_name}",
                f"--file-filter={_CFG_FILTER}",
            ],
            capture_output=True, text=True
        )
        if result.returncode == 0:
            return result.stdout.strip()
    except FileNotFoundError:
        return filedialog.asksaveasfilename(
            title=title, initialfile=default_name, defaultextension=".cfg",
            filetypes=[("Playset files", "*.cfg"), ("All files", "*")]
        ) or ""
    return ""


def _pick_folder_zenity(title: str) -> str:
    """Open a native folder picker via zenity. Returns the chosen path or ''."""
    try:
        result = subprocess.run(
            ["zenity", "--file-selection", "--directory", f"--title={title}"],
            capture_output=True, text=True
        )
        if result.returncode == 0:
            return result.stdout.strip()
    except FileNotFoundError:
        return filedialog.askdirectory(title=title) or ""
    return ""
