from __future__ import annotations

from PyQt6.QtGui import QColor
from PyQt6.QtWidgets import QApplication


DEFAULT_BACKGROUND = "#000000CC"
DEFAULT_FOREGROUND = "#FFFFFDDD"

OVERLAY_QSS = """
QWidget#Overlay {
    background: transparent;
}

QLabel {
    background: transparent;
    color: {foreground};
}

QLabel#Heading {
    font-size: 34px;
    font-weight: 700;
}

QLabel#TimerLabel {
    font-size: 72px;
    font-weight: 700;
}

QLabel#Hint {
    font-size: 16px;
    font-weight: 600;
}

QProgressBar {
    border: 0;
    border-radius: 4px;
    background: rgba(255, 255, 255, 40);
    max-height: 8px;
    max-width: 420px;
    text-align: center;
}

QProgressBar::chunk {
    border-radius: 4px;
    background: #eb8f60;
}
"""


def parse_color(value: str) -> tuple[int, int, int, int] | None:
    """Parses `#RGB`, `#RRGGBB` or `#RRGGBBAA`; alpha defaults to opaque."""
    text = value.strip()
    if not text.startswith("#"):
        return None
    digits = text[1:]
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits) + "FF"
    elif len(digits) == 6:
        digits += "FF"
    elif len(digits) != 8:
        return None
    try:
        channels = [int(digits[i:i + 2], 16) for i in range(0, 8, 2)]
    except ValueError:
        return None
    return channels[0], channels[1], channels[2], channels[3]


def to_qcolor(value: str, fallback: str) -> QColor:
    rgba = parse_color(value) or parse_color(fallback)
    assert rgba is not None
    return QColor(*rgba)


def format_duration(seconds: float | None) -> str:
    total = max(0, int(seconds or 0))
    return f"{total // 60:02d}:{total % 60:02d}"


def apply_theme(app: QApplication, foreground: str = DEFAULT_FOREGROUND) -> None:
    color = to_qcolor(foreground, DEFAULT_FOREGROUND)
    app.setStyleSheet(OVERLAY_QSS.replace("{foreground}", color.name(QColor.NameFormat.HexArgb)))
