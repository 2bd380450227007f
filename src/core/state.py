from __future__ import annotations
from dataclasses import dataclass
from PySide6.QtCore import QObject, Signal, Slot

@dataclass(frozen=True)
class Notify:
    message: str
    notify_type: str = "info"   # info/success/warn/error

class AppState(QObject):
    """Process-wide objects built at startup, plus the notification channel the UI listens to."""

    notification = Signal(object)   # emits Notify

    def __init__(self, settings=None):
        super().__init__()
        self.settings = settings
        self.executor = None
        self.spotify = None
        self.session = None
        self.synchronizer = None
        self.queued_notifications: list[Notify] = []

    @Slot(str, str)
    def notify(self, message: str, notify_type: str = "info"):
        self.notification.emit(Notify(message=message, notify_type=notify_type))
