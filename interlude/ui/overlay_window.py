from __future__ import annotations

from PyQt6.QtCore import QElapsedTimer, QTimer, Qt
from PyQt6.QtGui import QColor, QPainter
from PyQt6.QtWidgets import QLabel, QProgressBar, QVBoxLayout, QWidget

from interlude.core.controller import BreakController
from interlude.core.scheduler import Phase
from interlude.ui.styles import DEFAULT_BACKGROUND, format_duration, to_qcolor


TICK_INTERVAL_MS = 150
FADE_DURATION_SEC = 0.6
OVERLAY_PHASES = frozenset({Phase.DUE, Phase.BREAK_ACTIVE, Phase.BREAK_COMPLETE})


class OverlayWindow(QWidget):
    """Full-screen translucent overlay shown while a break is due, running or finished."""

    def __init__(self, controller: BreakController, background: str = DEFAULT_BACKGROUND, fade_fps: int = 60) -> None:
        super().__init__()
        self.setObjectName("Overlay")
        self.setWindowTitle("Interlude")
        self.setWindowFlags(
            Qt.WindowType.FramelessWindowHint
            | Qt.WindowType.WindowStaysOnTopHint
            | Qt.WindowType.Tool
        )
        self.setAttribute(Qt.WidgetAttribute.WA_TranslucentBackground)

        self.controller = controller
        self.background = to_qcolor(background, DEFAULT_BACKGROUND)
        self._opacity = 0.0
        self._fade_target = 0.0
        self._fade_step = 1.0 / max(1.0, FADE_DURATION_SEC * max(1, fade_fps))

        self._build_ui()
        self.controller.phase_changed.connect(self._on_phase_changed)
        self.controller.snooze_denied.connect(self._on_snooze_denied)

        self.elapsed = QElapsedTimer()
        self.elapsed.start()
        self.last_ms = self.elapsed.elapsed()

        self.tick_timer = QTimer(self)
        self.tick_timer.setInterval(TICK_INTERVAL_MS)
        self.tick_timer.timeout.connect(self._on_tick)
        self.tick_timer.start()

        self.fade_timer = QTimer(self)
        self.fade_timer.setInterval(max(1, 1000 // max(1, fade_fps)))
        self.fade_timer.timeout.connect(self._on_fade_frame)

        self._on_phase_changed(self.controller.phase.value)

    def _build_ui(self) -> None:
        layout = QVBoxLayout(self)
        layout.setAlignment(Qt.AlignmentFlag.AlignCenter)

        self.heading = QLabel()
        self.heading.setObjectName("Heading")
        self.timer_label = QLabel()
        self.timer_label.setObjectName("TimerLabel")
        self.hint = QLabel()
        self.hint.setObjectName("Hint")
        self.progress = QProgressBar()
        self.progress.setRange(0, 1000)
        self.progress.setTextVisible(False)

        for widget in (self.heading, self.timer_label, self.hint):
            widget.setAlignment(Qt.AlignmentFlag.AlignCenter)
            layout.addWidget(widget)
        layout.addWidget(self.progress, 0, Qt.AlignmentFlag.AlignHCenter)

    def _on_tick(self) -> None:
        now_ms = self.elapsed.elapsed()
        dt = max(0.0, (now_ms - self.last_ms) / 1000.0)
        self.last_ms = now_ms

        snapshot = self.controller.tick(dt)
        if snapshot.phase == Phase.BREAK_ACTIVE:
            self.timer_label.setText(format_duration(snapshot.remaining))
            self.progress.setValue(int(snapshot.progress * 1000))

    def _on_phase_changed(self, phase_value: str) -> None:
        phase = Phase(phase_value)
        snapshot = self.controller.snapshot()
        cfg = self.controller.scheduler.config
        self.progress.setVisible(phase == Phase.BREAK_ACTIVE)

        if phase == Phase.DUE:
            self.heading.setText("Time for a break")
            self.timer_label.setText(format_duration(cfg.break_duration))
            if snapshot.can_snooze:
                self.hint.setText(f"Enter to start · Z to snooze {format_duration(snapshot.next_snooze_length)}")
            else:
                self.hint.setText("Enter to start · snooze used up")
        elif phase == Phase.BREAK_ACTIVE:
            self.heading.setText("Look away, stretch, breathe")
            self.timer_label.setText(format_duration(snapshot.remaining))
            self.hint.setText("")
        elif phase == Phase.BREAK_COMPLETE:
            self.heading.setText("Break complete")
            self.timer_label.setText(format_duration(cfg.work_duration))
            self.hint.setText("Press any key to get back to work")

        self._fade_to(1.0 if phase in OVERLAY_PHASES else 0.0)

    def _on_snooze_denied(self) -> None:
        self.hint.setText("Enter to start · snooze used up")

    def _fade_to(self, target: float) -> None:
        self._fade_target = target
        if target > 0.0 and not self.isVisible():
            self.showFullScreen()
            self.activateWindow()
            self.grabKeyboard()
        self.fade_timer.start()

    def _on_fade_frame(self) -> None:
        if self._opacity < self._fade_target:
            self._opacity = min(self._fade_target, self._opacity + self._fade_step)
        else:
            self._opacity = max(self._fade_target, self._opacity - self._fade_step)
        self.setWindowOpacity(self._opacity)
        if self._opacity == self._fade_target:
            self.fade_timer.stop()
            if self._opacity == 0.0:
                self.releaseKeyboard()
                self.hide()

    def is_fading(self) -> bool:
        return self.fade_timer.isActive()

    def keyPressEvent(self, event) -> None:  # noqa: N802
        if self.is_fading() and self._fade_target == 0.0:
            return
        phase = self.controller.phase
        key = event.key()
        if phase == Phase.DUE:
            if key in (Qt.Key.Key_Return, Qt.Key.Key_Enter, Qt.Key.Key_Space):
                self.controller.start_break()
            elif key == Qt.Key.Key_Z:
                self.controller.snooze()
        elif phase == Phase.BREAK_COMPLETE:
            self.controller.dismiss()

    def mousePressEvent(self, event) -> None:  # noqa: N802
        if self.controller.phase == Phase.BREAK_COMPLETE:
            self.controller.dismiss()

    def paintEvent(self, event) -> None:  # noqa: N802
        painter = QPainter(self)
        painter.fillRect(self.rect(), QColor(self.background))

    def closeEvent(self, event) -> None:  # noqa: N802
        self.controller.save()
        event.accept()
