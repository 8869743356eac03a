from __future__ import annotations

import logging
import time

from PyQt6.QtCore import QObject, pyqtSignal

from interlude.core.scheduler import (
    ActionIgnored,
    ActionResult,
    BreakDue,
    BreakFinished,
    BreakStarted,
    Phase,
    Scheduler,
    SchedulerConfig,
    SchedulerEvent,
    SchedulerSnapshot,
    Snoozed,
    SnoozeDenied,
    WorkResumed,
)
from interlude.data.storage import Storage, now_iso
from interlude.ui.styles import format_duration


SAVE_INTERVAL_SEC = 1.0

logger = logging.getLogger(__name__)


class BreakController(QObject):
    """Drives a `Scheduler` and re-publishes its events as Qt signals."""

    event_emitted = pyqtSignal(object)
    phase_changed = pyqtSignal(str)
    break_due = pyqtSignal()
    break_started = pyqtSignal()
    break_finished = pyqtSignal()
    work_resumed = pyqtSignal()
    snoozed = pyqtSignal(float)
    snooze_denied = pyqtSignal()

    def __init__(self, config: SchedulerConfig, storage: Storage | None = None) -> None:
        super().__init__()
        self._storage = storage
        self._since_save = 0.0
        self._break_started_at: str | None = None

        restored = None
        saved_at: float | None = None
        if storage is not None and not config.cold_start:
            loaded = storage.load_state()
            if loaded is not None:
                restored, saved_at = loaded
        self.scheduler = Scheduler(config, restored=restored)
        if restored is not None and not config.start_immediately:
            logger.info("Restored %s state saved at %s", restored.phase.value, saved_at)
            # Time spent while the process was down still counts.
            self._dispatch(self.scheduler.advance(max(0.0, time.time() - saved_at)))

    @property
    def phase(self) -> Phase:
        return self.scheduler.current_phase()

    def snapshot(self) -> SchedulerSnapshot:
        return self.scheduler.snapshot()

    def tick(self, elapsed: float) -> SchedulerSnapshot:
        self._dispatch(self.scheduler.advance(elapsed))
        self._since_save += elapsed
        if self._since_save >= SAVE_INTERVAL_SEC:
            self.save()
        return self.scheduler.snapshot()

    def start_break(self) -> ActionResult:
        return self._act(self.scheduler.request_start())

    def dismiss(self) -> ActionResult:
        return self._act(self.scheduler.request_dismiss())

    def snooze(self) -> ActionResult:
        return self._act(self.scheduler.request_snooze())

    def save(self) -> None:
        self._since_save = 0.0
        if self._storage is not None:
            self._storage.save_state(self.scheduler.state())

    def _act(self, result: ActionResult) -> ActionResult:
        if result.event is not None:
            self._dispatch([result.event])
        return result

    def _dispatch(self, events: list[SchedulerEvent]) -> None:
        cfg = self.scheduler.config
        for event in events:
            if isinstance(event, BreakDue):
                logger.info("Break Starting (duration %s)", format_duration(cfg.break_duration))
                self.break_due.emit()
            elif isinstance(event, BreakStarted):
                self._break_started_at = now_iso()
                self.break_started.emit()
            elif isinstance(event, Snoozed):
                logger.info("Snoozed (break in %s)", format_duration(event.duration))
                self.snoozed.emit(event.duration)
            elif isinstance(event, SnoozeDenied):
                logger.info("Snooze denied after %d snoozes", self.scheduler.snoozes_used_this_cycle)
                self.snooze_denied.emit()
            elif isinstance(event, BreakFinished):
                logger.info("Break Complete (next in %s)", format_duration(cfg.work_duration))
                self._record_break()
                self.break_finished.emit()
            elif isinstance(event, WorkResumed):
                self.work_resumed.emit()
            elif isinstance(event, ActionIgnored):
                logger.debug("Action ignored in phase %s", event.phase.value)

            self.event_emitted.emit(event)
            if not isinstance(event, (ActionIgnored, SnoozeDenied)):
                self.phase_changed.emit(self.phase.value)
                self.save()

    def _record_break(self) -> None:
        if self._storage is None:
            return
        self._storage.insert_break(
            started_at=self._break_started_at or now_iso(),
            duration_sec=int(round(self.scheduler.config.break_duration)),
            snoozes_used=self.scheduler.snoozes_used_this_cycle,
        )
        self._break_started_at = None
