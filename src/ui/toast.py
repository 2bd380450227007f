from PySide6.QtWidgets import QFrame, QLabel, QHBoxLayout
from PySide6.QtCore import Qt, QTimer

from core.state import Notify

_KIND_BG = {
    "info": "#0b1222",
    "success": "#1f6f3b",
    "warn": "#7a5b12",
    "error": "#7a1b1b",
}


class Toast(QFrame):
    def __init__(self, parent, text: str, kind: str = "info", ms: int = 4000):
        super().__init__(parent)
        self.setWindowFlags(Qt.ToolTip)

        self.label = QLabel(text)
        self.label.setWordWrap(True)
        layout = QHBoxLayout(self)
        layout.addWidget(self.label)

        bg = _KIND_BG.get(kind, _KIND_BG["info"])
        self.setStyleSheet(f"QFrame {{ border-radius: 10px; padding: 10px 12px; background: {bg}; color: #fff; }}")

        QTimer.singleShot(ms, self.close)

    def show_bottom_right(self, margin=16):
        p = self.parentWidget()
        if not p:
            self.show()
            return
        self.adjustSize()
        corner = p.mapToGlobal(p.rect().bottomRight())
        self.move(corner.x() - self.width() - margin, corner.y() - self.height() - margin)
        self.show()


def show_notify(parent, n: Notify) -> Toast:
    toast = Toast(parent, n.message, kind=n.notify_type)
    toast.show_bottom_right()
    return toast
