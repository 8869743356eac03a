import math

import pytest

from interlude.core.scheduler import (
    ActionIgnored,
    BreakDue,
    BreakFinished,
    BreakStarted,
    ConfigError,
    Phase,
    Scheduler,
    SchedulerConfig,
    SchedulerState,
    Snoozed,
    SnoozeDenied,
    WorkResumed,
)


def make_config(**overrides) -> SchedulerConfig:
    values = dict(
        work_duration=1800,
        break_duration=60,
        snooze_base=300,
        snooze_decay=0.6,
        snooze_floor=30,
        max_snoozes=0,
    )
    values.update(overrides)
    return SchedulerConfig(**values)


def drive_to_due(scheduler: Scheduler) -> None:
    remaining = scheduler.time_remaining()
    assert scheduler.current_phase() == Phase.WORKING
    assert scheduler.advance(remaining) == [BreakDue()]


def test_work_countdown_expires_into_due() -> None:
    scheduler = Scheduler(make_config())

    assert scheduler.advance(1799) == []
    assert scheduler.time_remaining() == pytest.approx(1.0)
    events = scheduler.advance(1)

    assert events == [BreakDue()]
    assert scheduler.current_phase() == Phase.DUE
    assert scheduler.time_remaining() is None


def test_full_interval_in_one_tick_reaches_due() -> None:
    scheduler = Scheduler(make_config())

    assert scheduler.advance(1800) == [BreakDue()]
    assert scheduler.current_phase() == Phase.DUE


def test_start_from_due_runs_break_countdown() -> None:
    scheduler = Scheduler(make_config())
    drive_to_due(scheduler)

    result = scheduler.request_start()

    assert result.phase == Phase.BREAK_ACTIVE
    assert result.event == BreakStarted()
    assert scheduler.time_remaining() == 60


def test_break_expiry_then_dismiss_resumes_work() -> None:
    scheduler = Scheduler(make_config())
    drive_to_due(scheduler)
    scheduler.request_start()

    assert scheduler.advance(30) == []
    assert scheduler.advance(45) == [BreakFinished()]
    assert scheduler.current_phase() == Phase.BREAK_COMPLETE
    assert scheduler.time_remaining() is None

    result = scheduler.request_dismiss()
    assert result.phase == Phase.WORKING
    assert result.event == WorkResumed()
    assert scheduler.time_remaining() == 1800


def test_repeated_snoozes_decay_to_floor() -> None:
    scheduler = Scheduler(make_config())
    lengths = []
    for _ in range(6):
        drive_to_due(scheduler)
        result = scheduler.request_snooze()
        assert result.phase == Phase.WORKING
        assert isinstance(result.event, Snoozed)
        assert scheduler.time_remaining() == pytest.approx(result.event.duration)
        lengths.append(result.event.duration)

    assert lengths[:4] == pytest.approx([300, 180, 108, 64.8])
    assert lengths[4] == pytest.approx(38.88)
    assert lengths[5] == pytest.approx(30)
    assert all(a >= b for a, b in zip(lengths, lengths[1:]))
    assert scheduler.current_snooze_length == pytest.approx(30)
    assert scheduler.snoozes_used_this_cycle == 6


def test_max_snoozes_denies_after_limit() -> None:
    scheduler = Scheduler(make_config(max_snoozes=2))
    for _ in range(2):
        drive_to_due(scheduler)
        assert isinstance(scheduler.request_snooze().event, Snoozed)
    drive_to_due(scheduler)

    result = scheduler.request_snooze()

    assert result.phase == Phase.DUE
    assert result.event == SnoozeDenied()
    assert scheduler.snoozes_used_this_cycle == 2
    assert scheduler.can_snooze() is False
    assert scheduler.request_start().event == BreakStarted()


def test_dismiss_resets_decayed_snooze_state() -> None:
    scheduler = Scheduler(make_config(max_snoozes=3))
    for _ in range(3):
        drive_to_due(scheduler)
        scheduler.request_snooze()
    drive_to_due(scheduler)
    scheduler.request_start()
    scheduler.advance(60)

    scheduler.request_dismiss()

    assert scheduler.current_phase() == Phase.WORKING
    assert scheduler.time_remaining() == 1800
    assert scheduler.current_snooze_length == 300
    assert scheduler.snoozes_used_this_cycle == 0
    assert scheduler.can_snooze() is True


@pytest.mark.parametrize("action", ["request_start", "request_snooze", "request_dismiss"])
def test_wrong_phase_actions_are_ignored_without_side_effects(action: str) -> None:
    scheduler = Scheduler(make_config())
    scheduler.advance(100)
    phases = {
        "request_start": [Phase.WORKING, Phase.BREAK_ACTIVE, Phase.BREAK_COMPLETE],
        "request_snooze": [Phase.WORKING, Phase.BREAK_ACTIVE, Phase.BREAK_COMPLETE],
        "request_dismiss": [Phase.WORKING, Phase.DUE, Phase.BREAK_ACTIVE],
    }[action]

    seen = []
    for step in range(4):
        phase = scheduler.current_phase()
        if phase in phases:
            before = scheduler.state()
            result = getattr(scheduler, action)()
            assert result.event == ActionIgnored(phase)
            assert result.phase == phase
            assert scheduler.state() == before
            seen.append(phase)
        if phase == Phase.WORKING:
            scheduler.advance(scheduler.time_remaining())
        elif phase == Phase.DUE:
            scheduler.request_start()
        elif phase == Phase.BREAK_ACTIVE:
            scheduler.advance(60)
        else:
            scheduler.request_dismiss()
    assert seen == phases


def test_zero_delta_is_noop_and_negative_delta_raises() -> None:
    scheduler = Scheduler(make_config())
    before = scheduler.state()

    assert scheduler.advance(0) == []
    assert scheduler.state() == before

    with pytest.raises(ValueError):
        scheduler.advance(-0.5)
    assert scheduler.state() == before

    with pytest.raises(ValueError):
        scheduler.advance(math.nan)
    assert scheduler.state() == before
    assert scheduler.current_phase() == Phase.WORKING


def test_advance_outside_countdown_does_nothing() -> None:
    scheduler = Scheduler(make_config())
    drive_to_due(scheduler)

    assert scheduler.advance(10_000) == []
    assert scheduler.current_phase() == Phase.DUE


def test_start_immediately_seeds_due() -> None:
    scheduler = Scheduler(make_config(start_immediately=True))

    assert scheduler.current_phase() == Phase.DUE
    assert scheduler.time_remaining() is None
    assert scheduler.request_start().phase == Phase.BREAK_ACTIVE


def test_remaining_stays_within_last_span() -> None:
    scheduler = Scheduler(make_config(work_duration=10, break_duration=4, snooze_base=6, snooze_floor=2))
    script = [3, "snooze", 4, 4, "snooze", "start", 1.5, 1.5, 7, "dismiss", "dismiss", 0, 11]
    for step in script:
        if step == "snooze":
            scheduler.request_snooze()
        elif step == "start":
            scheduler.request_start()
        elif step == "dismiss":
            scheduler.request_dismiss()
        else:
            scheduler.advance(step)
        snap = scheduler.snapshot()
        if snap.remaining is not None:
            assert 0 <= snap.remaining <= snap.total
            assert 0.0 <= snap.progress <= 1.0


@pytest.mark.parametrize(
    ("overrides", "field"),
    [
        ({"snooze_decay": 0.0}, "snooze_decay"),
        ({"snooze_decay": 1.0}, "snooze_decay"),
        ({"work_duration": 0}, "work_duration"),
        ({"break_duration": -5}, "break_duration"),
        ({"snooze_base": 0}, "snooze_base"),
        ({"snooze_floor": 400}, "snooze_floor"),
        ({"max_snoozes": -1}, "max_snoozes"),
    ],
)
def test_invalid_config_is_rejected(overrides: dict, field: str) -> None:
    with pytest.raises(ConfigError) as excinfo:
        Scheduler(make_config(**overrides))
    assert excinfo.value.field == field


def test_restored_state_is_resumed_and_clamped() -> None:
    restored = SchedulerState(
        phase=Phase.WORKING,
        remaining=120.0,
        current_snooze_length=5.0,
        snoozes_used_this_cycle=2,
    )
    scheduler = Scheduler(make_config(), restored=restored)

    assert scheduler.current_phase() == Phase.WORKING
    assert scheduler.time_remaining() == 120.0
    assert scheduler.current_snooze_length == 30
    assert scheduler.snoozes_used_this_cycle == 2


def test_restored_expired_countdown_fires_on_next_advance() -> None:
    restored = SchedulerState(Phase.BREAK_ACTIVE, remaining=0.0, current_snooze_length=300.0, snoozes_used_this_cycle=0)
    scheduler = Scheduler(make_config(), restored=restored)

    assert scheduler.advance(0) == [BreakFinished()]
    assert scheduler.current_phase() == Phase.BREAK_COMPLETE


def test_cold_start_ignores_restored_state() -> None:
    restored = SchedulerState(Phase.DUE, remaining=None, current_snooze_length=64.8, snoozes_used_this_cycle=3)
    scheduler = Scheduler(make_config(cold_start=True), restored=restored)

    assert scheduler.current_phase() == Phase.WORKING
    assert scheduler.time_remaining() == 1800
    assert scheduler.current_snooze_length == 300
    assert scheduler.snoozes_used_this_cycle == 0
