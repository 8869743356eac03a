from __future__ import annotations

"""Command-line flags and their mapping onto the scheduler configuration."""

import argparse
from pathlib import Path
from typing import Any

from interlude.core.scheduler import ConfigError, SchedulerConfig
from interlude.data.storage import default_state_dir
from interlude.ui.styles import DEFAULT_BACKGROUND, DEFAULT_FOREGROUND, parse_color


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="interlude", description="Full-screen break reminder with decaying snoozes")
    parser.add_argument("--interval-minutes", type=int, default=30, help="Minutes between breaks")
    parser.add_argument("--break-seconds", type=int, default=60, help="Break duration in seconds")
    parser.add_argument(
        "--snooze-base-seconds", type=int, default=300, help="Initial snooze duration in seconds (shrinks each snooze)"
    )
    parser.add_argument(
        "--snooze-decay", type=float, default=0.6, help="Multiplier applied to the snooze each time you snooze (0 < decay < 1)"
    )
    parser.add_argument("--snooze-min-seconds", type=int, default=30, help="Minimum snooze duration in seconds")
    parser.add_argument(
        "--max-snoozes", type=int, default=0, help="Disable snooze after N snoozes in a cycle (0 = unlimited)"
    )
    parser.add_argument("--immediate", action="store_true", help="Show the break prompt right away")
    parser.add_argument("--mute", action="store_true", help="Do not beep when a break starts or ends")
    parser.add_argument(
        "--background", default=None, help="Overlay colour as #RGB, #RRGGBB or #RRGGBBAA (default: last used)"
    )
    parser.add_argument(
        "--foreground", default=None, help="Text colour as #RGB, #RRGGBB or #RRGGBBAA (default: last used)"
    )
    parser.add_argument("--fade-fps", type=int, default=60, help="Frames per second for overlay fades")
    parser.add_argument("--state-dir", type=Path, default=None, help="Directory for the state database and boot marker")
    parser.add_argument("--no-restore", action="store_true", help="Ignore state saved by a previous run")
    parser.add_argument(
        "--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Logging verbosity"
    )
    return parser


def config_from_args(args: argparse.Namespace, cold_start: bool = False) -> SchedulerConfig:
    """Builds and validates a `SchedulerConfig`; raises `ConfigError` on bad values."""
    config = SchedulerConfig(
        work_duration=args.interval_minutes * 60,
        break_duration=args.break_seconds,
        snooze_base=args.snooze_base_seconds,
        snooze_decay=args.snooze_decay,
        snooze_floor=args.snooze_min_seconds,
        max_snoozes=args.max_snoozes,
        start_immediately=args.immediate,
        cold_start=cold_start or args.no_restore,
    )
    config.validate()
    return config


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        config_from_args(args)
    except ConfigError as exc:
        parser.error(f"invalid configuration: {exc}")
    for name in ("background", "foreground"):
        value = getattr(args, name)
        if value is not None and parse_color(value) is None:
            parser.error(f"--{name}: expected #RGB, #RRGGBB or #RRGGBBAA, got {value!r}")
    if args.fade_fps < 1:
        parser.error("--fade-fps: must be at least 1")
    if args.state_dir is None:
        args.state_dir = default_state_dir()
    return args


def resolve_colors(args: argparse.Namespace, saved: Any) -> tuple[str, str]:
    """Picks overlay colours: explicit flags, then the last-used pair, then the defaults."""
    saved = saved if isinstance(saved, dict) else {}
    resolved = []
    for name, default in (("background", DEFAULT_BACKGROUND), ("foreground", DEFAULT_FOREGROUND)):
        value = getattr(args, name)
        if value is None:
            remembered = saved.get(name)
            value = remembered if isinstance(remembered, str) and parse_color(remembered) else default
        resolved.append(value)
    return resolved[0], resolved[1]
