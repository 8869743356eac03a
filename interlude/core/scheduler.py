from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Phase(str, Enum):
    WORKING = "working"
    DUE = "due"
    BREAK_ACTIVE = "break_active"
    BREAK_COMPLETE = "break_complete"


COUNTDOWN_PHASES = frozenset({Phase.WORKING, Phase.BREAK_ACTIVE})


class ConfigError(ValueError):
    """Raised when a scheduler configuration cannot be used."""

    def __init__(self, field: str, reason: str) -> None:
        super().__init__(f"{field}: {reason}")
        self.field = field
        self.reason = reason


@dataclass(frozen=True)
class SchedulerConfig:
    work_duration: float = 30 * 60
    break_duration: float = 60
    snooze_base: float = 5 * 60
    snooze_decay: float = 0.6
    snooze_floor: float = 30
    max_snoozes: int = 0
    start_immediately: bool = False
    cold_start: bool = False

    def validate(self) -> None:
        for name in ("work_duration", "break_duration", "snooze_base", "snooze_floor"):
            if getattr(self, name) <= 0:
                raise ConfigError(name, "must be positive")
        if not 0.0 < self.snooze_decay < 1.0:
            raise ConfigError("snooze_decay", "must be strictly between 0 and 1")
        if self.snooze_floor > self.snooze_base:
            raise ConfigError("snooze_floor", "must not exceed snooze_base")
        if self.max_snoozes < 0:
            raise ConfigError("max_snoozes", "must be zero (unlimited) or positive")


@dataclass(frozen=True)
class SchedulerState:
    """Mutable part of a scheduler, exported so it can outlive the process."""

    phase: Phase
    remaining: float | None
    current_snooze_length: float
    snoozes_used_this_cycle: int


@dataclass(frozen=True)
class SchedulerSnapshot:
    phase: Phase
    remaining: float | None
    total: float | None
    progress: float
    can_snooze: bool
    next_snooze_length: float
    snoozes_used: int


@dataclass(frozen=True)
class SchedulerEvent:
    pass


@dataclass(frozen=True)
class BreakDue(SchedulerEvent):
    pass


@dataclass(frozen=True)
class BreakStarted(SchedulerEvent):
    pass


@dataclass(frozen=True)
class Snoozed(SchedulerEvent):
    duration: float


@dataclass(frozen=True)
class SnoozeDenied(SchedulerEvent):
    pass


@dataclass(frozen=True)
class BreakFinished(SchedulerEvent):
    pass


@dataclass(frozen=True)
class WorkResumed(SchedulerEvent):
    pass


@dataclass(frozen=True)
class ActionIgnored(SchedulerEvent):
    phase: Phase


@dataclass(frozen=True)
class ActionResult:
    phase: Phase
    event: SchedulerEvent | None = None


class Scheduler:
    """Break cadence engine with decaying snoozes, detached from UI and clock.

    Time only moves when the caller passes an elapsed delta to ``advance``;
    user actions are the ``request_*`` methods. Every call returns the events
    it produced instead of notifying listeners.
    """

    def __init__(self, config: SchedulerConfig, restored: SchedulerState | None = None) -> None:
        config.validate()
        self._config = config
        self._phase = Phase.WORKING
        self._remaining: float | None = float(config.work_duration)
        self._span: float | None = self._remaining
        self._current_snooze_length = float(config.snooze_base)
        self._snoozes_used = 0

        if restored is not None and not config.cold_start:
            self._restore(restored)
        if config.start_immediately:
            self._phase = Phase.DUE
            self._remaining = None
            self._span = None

    @property
    def config(self) -> SchedulerConfig:
        return self._config

    @property
    def current_snooze_length(self) -> float:
        return self._current_snooze_length

    @property
    def snoozes_used_this_cycle(self) -> int:
        return self._snoozes_used

    def current_phase(self) -> Phase:
        return self._phase

    def time_remaining(self) -> float | None:
        return self._remaining

    def can_snooze(self) -> bool:
        max_snoozes = self._config.max_snoozes
        return max_snoozes == 0 or self._snoozes_used < max_snoozes

    def advance(self, elapsed: float) -> list[SchedulerEvent]:
        if not elapsed >= 0:
            raise ValueError(f"Elapsed time must not be negative, got {elapsed!r}")
        if self._phase not in COUNTDOWN_PHASES or self._remaining is None:
            return []

        left = self._remaining - elapsed
        if left > 0:
            self._remaining = left
            return []

        self._remaining = None
        self._span = None
        if self._phase == Phase.WORKING:
            self._phase = Phase.DUE
            return [BreakDue()]
        self._phase = Phase.BREAK_COMPLETE
        return [BreakFinished()]

    def request_start(self) -> ActionResult:
        if self._phase != Phase.DUE:
            return self._ignored()
        self._start_countdown(Phase.BREAK_ACTIVE, self._config.break_duration)
        return ActionResult(self._phase, BreakStarted())

    def request_snooze(self) -> ActionResult:
        if self._phase != Phase.DUE:
            return self._ignored()
        if not self.can_snooze():
            return ActionResult(self._phase, SnoozeDenied())

        duration = self._current_snooze_length
        self._start_countdown(Phase.WORKING, duration)
        self._snoozes_used += 1
        self._current_snooze_length = max(
            float(self._config.snooze_floor),
            self._current_snooze_length * self._config.snooze_decay,
        )
        return ActionResult(self._phase, Snoozed(duration))

    def request_dismiss(self) -> ActionResult:
        if self._phase != Phase.BREAK_COMPLETE:
            return self._ignored()
        self._start_countdown(Phase.WORKING, self._config.work_duration)
        self._current_snooze_length = float(self._config.snooze_base)
        self._snoozes_used = 0
        return ActionResult(self._phase, WorkResumed())

    def state(self) -> SchedulerState:
        return SchedulerState(
            phase=self._phase,
            remaining=self._remaining,
            current_snooze_length=self._current_snooze_length,
            snoozes_used_this_cycle=self._snoozes_used,
        )

    def snapshot(self) -> SchedulerSnapshot:
        progress = 0.0
        if self._span and self._remaining is not None:
            progress = 1.0 - self._remaining / self._span
        elif self._phase == Phase.BREAK_COMPLETE:
            progress = 1.0
        return SchedulerSnapshot(
            phase=self._phase,
            remaining=self._remaining,
            total=self._span,
            progress=max(0.0, min(1.0, progress)),
            can_snooze=self.can_snooze(),
            next_snooze_length=self._current_snooze_length,
            snoozes_used=self._snoozes_used,
        )

    def _start_countdown(self, phase: Phase, seconds: float) -> None:
        self._phase = phase
        self._remaining = float(seconds)
        self._span = self._remaining

    def _ignored(self) -> ActionResult:
        return ActionResult(self._phase, ActionIgnored(self._phase))

    def _restore(self, restored: SchedulerState) -> None:
        cfg = self._config
        self._phase = Phase(restored.phase)
        self._snoozes_used = max(0, int(restored.snoozes_used_this_cycle))
        self._current_snooze_length = min(
            float(cfg.snooze_base),
            max(float(cfg.snooze_floor), float(restored.current_snooze_length)),
        )
        if self._phase not in COUNTDOWN_PHASES:
            self._remaining = None
            self._span = None
            return

        # A snoozed work countdown can be shorter than work_duration but never longer.
        if self._phase == Phase.WORKING:
            limit = float(max(cfg.work_duration, cfg.snooze_base))
        else:
            limit = float(cfg.break_duration)
        remaining = restored.remaining if restored.remaining is not None else 0.0
        self._remaining = min(limit, max(0.0, float(remaining)))
        self._span = limit
