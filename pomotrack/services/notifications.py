"""
Notification sinks.

Architecture Decision: Observer Pattern (Qt Signals)
The timers only know the Notifier interface. The desktop shell connects to
SignalNotifier.notification; headless hosts use LogNotifier.
"""

import logging
from abc import ABC, ABCMeta, abstractmethod
from typing import Tuple

from PySide6.QtCore import QObject, Signal

from pomotrack.domain.models import TimerType
from pomotrack.i18n import tr

logger = logging.getLogger(__name__)


class Notifier(ABC):
    """Something that can show a title/body message to the user"""

    @abstractmethod
    def notify(self, title: str, body: str) -> None:
        pass


class LogNotifier(Notifier):
    """Writes notifications to the log"""

    def notify(self, title: str, body: str) -> None:
        logger.info(f"{title}: {body}")


class QABCMeta(type(QObject), ABCMeta):
    """Combined metaclass for QObject and ABC"""
    pass


class SignalNotifier(QObject, Notifier, metaclass=QABCMeta):
    """Re-emits notifications as a Qt signal (title, body)"""

    notification = Signal(str, str)

    def notify(self, title: str, body: str) -> None:
        self.notification.emit(title, body)


def phase_name(timer_type: TimerType) -> str:
    return tr(f"phase.{timer_type.value}")


def expiry_message(expired: TimerType, next_type: TimerType, next_minutes: int) -> Tuple[str, str]:
    """Title and body announcing the end of a phase and what comes next"""
    title = tr(f"notify.{expired.value}.title")
    body = tr(f"notify.{expired.value}.body")
    upcoming = tr("notify.next_phase", phase=phase_name(next_type), minutes=next_minutes)
    return title, f"{body} {upcoming}"
