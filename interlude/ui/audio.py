from __future__ import annotations

"""Audible cues for the start and end of a break."""

import logging
from typing import Callable

from PyQt6.QtCore import QObject
from PyQt6.QtWidgets import QApplication

from interlude.core.controller import BreakController


START_CUE_BEEPS = 1
END_CUE_BEEPS = 2

logger = logging.getLogger(__name__)


class AudioCues(QObject):
    """Beeps once when a break starts and twice when it is over."""

    def __init__(
        self,
        controller: BreakController,
        beep: Callable[[], None] = QApplication.beep,
        enabled: bool = True,
    ) -> None:
        super().__init__(controller)
        self._beep = beep
        self.enabled = enabled
        controller.break_started.connect(self.play_start)
        controller.break_finished.connect(self.play_end)

    def play_start(self) -> None:
        if not self.enabled:
            return
        logger.debug("Playing break start cue")
        self._play(START_CUE_BEEPS)

    def play_end(self) -> None:
        if not self.enabled:
            return
        logger.debug("Playing break end cue")
        self._play(END_CUE_BEEPS)

    def _play(self, count: int) -> None:
        for _ in range(count):
            self._beep()
