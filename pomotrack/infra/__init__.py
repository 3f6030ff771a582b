"""Infrastructure layer - Database, configuration and persistence"""

from .db import DatabaseEngine, get_engine, init_db
from .models import TaskModel, TimeEntryModel, PomodoroSessionModel, TaskTemplateModel

__all__ = [
    "DatabaseEngine", "get_engine", "init_db",
    "TaskModel", "TimeEntryModel", "PomodoroSessionModel", "TaskTemplateModel",
]
