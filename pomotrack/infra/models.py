"""
SQLAlchemy ORM models.
Separated from db.py for cleaner imports.
"""

from .db import TaskModel, TimeEntryModel, PomodoroSessionModel, TaskTemplateModel, Base

__all__ = ["TaskModel", "TimeEntryModel", "PomodoroSessionModel", "TaskTemplateModel", "Base"]
