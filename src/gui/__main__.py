"""
Run from src/:
  python -m gui                 # start the playset manager
  python -m gui --verbose       # also show debug messages in the log
  python -m gui --settings F    # use settings file F instead of the config dir one
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

# Allow running as python -m gui from src/
if __name__ == "__main__":
    sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from Utils.settings import AppSettings


def main() -> None:
    ap = argparse.ArgumentParser(
        description="Manage Kenshi mod playsets and load orders."
    )
    ap.add_argument("--verbose", "-v", action="store_true", help="Log debug messages")
    ap.add_argument("--settings", type=Path, metavar="FILE",
                    help="Settings JSON to use (default: config dir settings.json)")
    args = ap.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )

    # Imported late so --help works without a display
    from gui.app import App

    settings = AppSettings.load(args.settings)
    app = App(settings, settings_path=args.settings)
    app.mainloop()


if __name__ == "__main__":
    main()
