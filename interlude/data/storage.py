from __future__ import annotations

"""SQLite store for scheduler state carried across restarts, break history and settings."""

import json
import logging
import os
import sqlite3
import time
from contextlib import closing, contextmanager
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Any, Iterator

from interlude.core.scheduler import Phase, SchedulerState


SCHEMA_VERSION = 1
DB_FILENAME = "interlude.db"

logger = logging.getLogger(__name__)


def default_state_dir() -> Path:
    """Returns `$XDG_STATE_HOME/interlude`, falling back to `~/.local/state/interlude`."""
    xdg = os.environ.get("XDG_STATE_HOME")
    if xdg:
        return Path(xdg) / "interlude"
    return Path.home() / ".local" / "state" / "interlude"


@dataclass(frozen=True)
class BreakRow:
    id: int
    started_at: str
    duration_sec: int
    snoozes_used: int


class Storage:
    """Wraps the SQLite connection and its transactional operations."""
    def __init__(self, db_path: str | Path) -> None:
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            conn.execute("PRAGMA journal_mode = WAL;")
        except sqlite3.DatabaseError:
            pass
        return conn

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        conn = self._connect()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def init_db(self) -> None:
        """Creates the application tables on first run."""
        with self._transaction() as conn:
            conn.execute("CREATE TABLE IF NOT EXISTS schema_version (version INTEGER NOT NULL)")
            row = conn.execute("SELECT version FROM schema_version LIMIT 1").fetchone()
            if not row:
                conn.execute("INSERT INTO schema_version(version) VALUES (?)", (SCHEMA_VERSION,))
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS scheduler_state(
                    id INTEGER PRIMARY KEY CHECK(id = 1),
                    phase TEXT NOT NULL,
                    remaining REAL,
                    current_snooze_length REAL NOT NULL,
                    snoozes_used INTEGER NOT NULL,
                    saved_at REAL NOT NULL
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS breaks(
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    started_at TEXT NOT NULL,
                    duration_sec INTEGER NOT NULL,
                    snoozes_used INTEGER NOT NULL DEFAULT 0
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS settings(
                    key TEXT PRIMARY KEY,
                    value TEXT
                )
                """
            )

    def get_setting(self, key: str, default: Any = None) -> Any:
        with closing(self._connect()) as conn:
            row = conn.execute("SELECT value FROM settings WHERE key = ?", (key,)).fetchone()
        if not row:
            return default
        raw = row["value"]
        try:
            return json.loads(raw)
        except (TypeError, json.JSONDecodeError):
            return raw

    def set_setting(self, key: str, value: Any) -> None:
        payload = json.dumps(value)
        with self._transaction() as conn:
            conn.execute(
                "INSERT INTO settings(key, value) VALUES(?, ?) ON CONFLICT(key) DO UPDATE SET value=excluded.value",
                (key, payload),
            )

    def save_state(self, state: SchedulerState, saved_at: float | None = None) -> None:
        if saved_at is None:
            saved_at = time.time()
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO scheduler_state(id, phase, remaining, current_snooze_length, snoozes_used, saved_at)
                VALUES (1, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    phase=excluded.phase,
                    remaining=excluded.remaining,
                    current_snooze_length=excluded.current_snooze_length,
                    snoozes_used=excluded.snoozes_used,
                    saved_at=excluded.saved_at
                """,
                (
                    state.phase.value,
                    state.remaining,
                    state.current_snooze_length,
                    state.snoozes_used_this_cycle,
                    saved_at,
                ),
            )

    def load_state(self) -> tuple[SchedulerState, float] | None:
        """Returns the saved state and its unix save time, or `None` when nothing usable is stored."""
        with closing(self._connect()) as conn:
            row = conn.execute(
                "SELECT phase, remaining, current_snooze_length, snoozes_used, saved_at FROM scheduler_state WHERE id = 1"
            ).fetchone()
        if not row:
            return None
        try:
            state = SchedulerState(
                phase=Phase(row["phase"]),
                remaining=None if row["remaining"] is None else float(row["remaining"]),
                current_snooze_length=float(row["current_snooze_length"]),
                snoozes_used_this_cycle=int(row["snoozes_used"]),
            )
        except (TypeError, ValueError) as exc:
            logger.warning("Discarding unreadable saved state: %s", exc)
            return None
        return state, float(row["saved_at"])

    def clear_state(self) -> None:
        with self._transaction() as conn:
            conn.execute("DELETE FROM scheduler_state")

    def insert_break(self, started_at: str, duration_sec: int, snoozes_used: int) -> int:
        with self._transaction() as conn:
            cursor = conn.execute(
                "INSERT INTO breaks(started_at, duration_sec, snoozes_used) VALUES (?, ?, ?)",
                (started_at, duration_sec, snoozes_used),
            )
            return int(cursor.lastrowid)

    def list_breaks(self, limit: int = 100) -> list[BreakRow]:
        """Returns the latest breaks, newest first."""
        with closing(self._connect()) as conn:
            rows = conn.execute(
                "SELECT id, started_at, duration_sec, snoozes_used FROM breaks ORDER BY id DESC LIMIT ?",
                (limit,),
            ).fetchall()
        return [
            BreakRow(
                id=row["id"],
                started_at=row["started_at"],
                duration_sec=row["duration_sec"],
                snoozes_used=row["snoozes_used"],
            )
            for row in rows
        ]

    def breaks_today(self) -> int:
        today = date.today().isoformat()
        with closing(self._connect()) as conn:
            row = conn.execute(
                "SELECT COUNT(*) AS c FROM breaks WHERE date(started_at) = ?",
                (today,),
            ).fetchone()
        return int(row["c"] if row else 0)


def now_iso() -> str:
    return datetime.now().isoformat(timespec="seconds")
