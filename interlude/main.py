from __future__ import annotations

"""Application entry point.

Parses flags, works out whether this is the first run since boot, opens the
state database and runs the overlay until the Qt event loop exits.
"""

import logging
import signal
import sys

from PyQt6.QtWidgets import QApplication

from interlude.cli import config_from_args, parse_args, resolve_colors
from interlude.core.controller import BreakController
from interlude.data.boot_marker import MARKER_FILENAME, BootMarker
from interlude.data.storage import DB_FILENAME, Storage
from interlude.ui.audio import AudioCues
from interlude.ui.overlay_window import OverlayWindow
from interlude.ui.styles import apply_theme


logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Builds the application's dependencies and starts the UI loop."""
    args = parse_args(argv)
    logging.basicConfig(level=args.log_level, format="%(asctime)s - %(levelname)s - %(name)s - %(message)s")

    marker = BootMarker(args.state_dir / MARKER_FILENAME)
    cold_start = marker.is_cold_start()
    config = config_from_args(args, cold_start=cold_start)
    marker.mark()

    storage = Storage(args.state_dir / DB_FILENAME)
    storage.init_db()
    background, foreground = resolve_colors(args, storage.get_setting("colors"))
    storage.set_setting("colors", {"background": background, "foreground": foreground})

    app = QApplication(sys.argv[:1])
    app.setQuitOnLastWindowClosed(False)
    apply_theme(app, foreground)

    controller = BreakController(config, storage=storage)
    window = OverlayWindow(controller, background=background, fade_fps=args.fade_fps)
    cues = AudioCues(controller, enabled=not args.mute)
    app.aboutToQuit.connect(controller.save)
    signal.signal(signal.SIGINT, lambda *_args: app.quit())
    signal.signal(signal.SIGTERM, lambda *_args: app.quit())

    logger.info(
        "Starting Interlude (%s, break every %d min, %d breaks today)",
        "cold start" if cold_start else "warm start",
        args.interval_minutes,
        storage.breaks_today(),
    )
    exit_code = app.exec()
    window.deleteLater()
    return exit_code


if __name__ == "__main__":
    raise SystemExit(main())
