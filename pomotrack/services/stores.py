"""
Store interfaces consumed by the timers.

The timers are synchronous and never touch the database. They read and
update tasks through a TaskStore and persist settings through a
SettingsStore; the timer service hydrates the in-memory store from the
repositories and mirrors changes back in the background.
"""

from abc import ABC, abstractmethod
from typing import Callable, Dict, Iterable, List, Optional

from pomotrack.domain.models import PomodoroSettings, Task


class TaskStore(ABC):
    """Supplies task records and accepts completion / time updates"""

    @abstractmethod
    def get_task(self, task_id: int) -> Optional[Task]:
        """Return the task or None if unknown"""

    @abstractmethod
    def update_task(self, task_id: int, **changes) -> Optional[Task]:
        """Apply a partial update and return the updated task"""


class SettingsStore(ABC):
    """Supplies and persists Pomodoro settings"""

    @abstractmethod
    def load_settings(self) -> PomodoroSettings:
        pass

    @abstractmethod
    def save_settings(self, settings: PomodoroSettings) -> None:
        pass


class InMemoryTaskStore(TaskStore):
    """
    Dict-backed task store.

    Every successful update is reported to the registered listeners, which is
    how the timer service learns what to write back to the database.
    """

    def __init__(self, tasks: Optional[Iterable[Task]] = None):
        self._tasks: Dict[int, Task] = {}
        self._listeners: List[Callable[[Task], None]] = []
        for task in tasks or []:
            self.add(task)

    def add(self, task: Task) -> Task:
        if task.id is None:
            raise ValueError("Task must have an id to be stored")
        self._tasks[task.id] = task
        return task

    def remove(self, task_id: int) -> Optional[Task]:
        return self._tasks.pop(task_id, None)

    def all(self) -> List[Task]:
        return list(self._tasks.values())

    def get_task(self, task_id: int) -> Optional[Task]:
        return self._tasks.get(task_id)

    def update_task(self, task_id: int, **changes) -> Optional[Task]:
        task = self._tasks.get(task_id)
        if task is None:
            return None
        updated = task.model_copy(update=changes)
        self._tasks[task_id] = updated
        for listener in self._listeners:
            listener(updated)
        return updated

    def on_update(self, callback: Callable[[Task], None]) -> None:
        if callback not in self._listeners:
            self._listeners.append(callback)
