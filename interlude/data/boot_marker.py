from __future__ import annotations

"""Once-per-boot marker file deciding whether this run is a cold start."""

import logging
from pathlib import Path


BOOT_ID_PATH = Path("/proc/sys/kernel/random/boot_id")
MARKER_FILENAME = "boot.marker"

logger = logging.getLogger(__name__)


def read_boot_id(source: Path = BOOT_ID_PATH) -> str | None:
    try:
        value = source.read_text(encoding="utf-8").strip()
    except OSError as exc:
        logger.debug("Boot id unavailable at %s: %s", source, exc)
        return None
    return value or None


class BootMarker:
    """Remembers which boot the scheduler last ran in.

    A run is a cold start when no marker exists yet, or when the marker was
    written during a different boot. Without a readable boot id only the
    marker's presence counts.
    """

    def __init__(self, path: str | Path, boot_id_source: Path = BOOT_ID_PATH) -> None:
        self.path = Path(path)
        self._boot_id_source = boot_id_source

    def is_cold_start(self) -> bool:
        if not self.path.exists():
            return True
        boot_id = read_boot_id(self._boot_id_source)
        if boot_id is None:
            return False
        try:
            stored = self.path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            logger.warning("Unreadable boot marker %s: %s", self.path, exc)
            return True
        return stored != boot_id

    def mark(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(read_boot_id(self._boot_id_source) or "", encoding="utf-8")
