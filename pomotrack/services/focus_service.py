"""
Focus Service - picks the task to work on and runs a focus countdown.
"""

import datetime
import logging
from typing import Iterable, Optional

from pomotrack.domain.models import Priority, Task
from pomotrack.i18n import tr
from pomotrack.services.clock import Clock, SystemClock
from pomotrack.services.notifications import LogNotifier, Notifier

logger = logging.getLogger(__name__)


def recommend_task(tasks: Iterable[Task], active_task_id: Optional[int] = None) -> Optional[Task]:
    """
    Suggest the next task to focus on.

    The tracked task wins. Otherwise the first incomplete high priority task
    (nearest due date first), then medium, then any incomplete task.
    """
    tasks = list(tasks)
    if active_task_id is not None:
        active = next((t for t in tasks if t.id == active_task_id), None)
        if active is not None:
            return active

    incomplete = [t for t in tasks if not t.is_completed]
    if not incomplete:
        return None

    for priority in (Priority.HIGH, Priority.MEDIUM):
        bucket = [t for t in incomplete if t.priority == priority]
        if not bucket:
            continue
        with_due_date = [t for t in bucket if t.due_date is not None]
        if with_due_date:
            # sorted() is stable, so equal due dates keep list order
            return sorted(with_due_date, key=lambda t: t.due_date)[0]
        return bucket[0]

    return incomplete[0]


class FocusCountdown:
    """
    A single countdown (default one hour) ending with a notification.

    Like the Pomodoro timer it derives the remaining time from the clock,
    not from the number of ticks.
    """

    def __init__(self, clock: Optional[Clock] = None, notifier: Optional[Notifier] = None,
                 duration_minutes: int = 60):
        self.clock = clock or SystemClock()
        self.notifier = notifier or LogNotifier()
        self.duration_minutes = max(duration_minutes, 1)
        self.ends_at: Optional[datetime.datetime] = None

    @property
    def running(self) -> bool:
        return self.ends_at is not None

    def start(self) -> None:
        self.ends_at = self.clock.now() + datetime.timedelta(minutes=self.duration_minutes)
        logger.info(f"Focus session started for {self.duration_minutes} min")

    def stop(self) -> None:
        self.ends_at = None

    def remaining(self) -> int:
        """Whole seconds left, 0 when not running"""
        if self.ends_at is None:
            return 0
        seconds = int((self.ends_at - self.clock.now()).total_seconds())
        return max(seconds, 0)

    def tick(self) -> bool:
        """Check for completion. Returns True on the tick that finishes the session."""
        if self.ends_at is None or self.remaining() > 0:
            return False
        self.ends_at = None
        self.notifier.notify(tr("notify.focus.title"), tr("notify.focus.body"))
        return True
