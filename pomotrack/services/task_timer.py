"""
Task Timer - manual wall-clock tracking of one task at a time.
"""

import logging
from typing import Optional

from pomotrack.domain.models import Task, TimeEntry
from pomotrack.services.clock import Clock, SystemClock
from pomotrack.services.ledger import TimeEntryLedger
from pomotrack.services.stores import TaskStore

logger = logging.getLogger(__name__)


class TaskTimer:
    """
    Tracks time for a single task.

    States: idle (active_task_id is None) and tracking. Starting a task while
    another one is tracked stops the previous one first, inside the same call.
    """

    def __init__(self, ledger: TimeEntryLedger, task_store: TaskStore,
                 clock: Optional[Clock] = None):
        self.ledger = ledger
        self.task_store = task_store
        self.clock = clock or SystemClock()
        self.active_task_id: Optional[int] = None

    @property
    def is_tracking(self) -> bool:
        return self.active_task_id is not None

    @property
    def active_entry(self) -> Optional[TimeEntry]:
        if self.active_task_id is None:
            return None
        return self.ledger.open_entry_for(self.active_task_id)

    def resume(self, entry: TimeEntry) -> None:
        """Re-attach to an entry that was left open (e.g. after a restart)"""
        if entry.is_open:
            self.active_task_id = entry.task_id

    def start_tracking(self, task: Task) -> TimeEntry:
        """
        Open a new entry for the task, closing any open entry first.

        Both entries share the same instant: the previous entry ends exactly
        when the new one starts.
        """
        now = self.clock.now()
        if self.ledger.open_entry() is not None:
            self._close_open_entry(now)

        entry = self.ledger.record_open(task.id, now)
        self.active_task_id = task.id
        logger.info(f"Started tracking task {task.id} ({task.title})")
        return entry

    def stop_tracking(self) -> Optional[TimeEntry]:
        """
        Close the open entry and refresh the task's time_spent.

        Returns None (and changes nothing) when nothing is tracked.
        """
        if self.ledger.open_entry() is None:
            self.active_task_id = None
            return None
        return self._close_open_entry(self.clock.now())

    def elapsed(self) -> int:
        """Whole seconds since the open entry started, 0 when idle"""
        entry = self.active_entry
        if entry is None:
            return 0
        seconds = int((self.clock.now() - entry.start_time).total_seconds())
        return max(seconds, 0)

    def _close_open_entry(self, now) -> TimeEntry:
        entry = self.ledger.open_entry()
        closed = self.ledger.record_close(entry.id, now)
        total = self.ledger.total_for_task(closed.task_id)
        self.task_store.update_task(closed.task_id, time_spent=total)
        self.active_task_id = None
        logger.info(
            f"Stopped tracking task {closed.task_id}: "
            f"{closed.duration} min, {total} min in total"
        )
        return closed
