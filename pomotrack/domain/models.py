"""
Domain Models using Pydantic for validation.

Architecture Decision: Why Pydantic?
Pydantic provides runtime data validation, ensuring data integrity when loading
from YAML config files or the database. Invalid timer settings are corrected
here (clamped) instead of being rejected further down the stack.
"""

import logging
from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)

# Smallest accepted duration / session count
MIN_SETTING_VALUE = 1


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TimerType(str, Enum):
    """The three Pomodoro phases"""
    POMODORO = "pomodoro"
    SHORT_BREAK = "shortBreak"
    LONG_BREAK = "longBreak"


class Task(BaseModel):
    """
    Represents a task on the user's productivity list.

    time_spent is derived from the closed time entries of the task;
    session_minutes is credited by finished Pomodoro work phases.
    """
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    priority: Priority = Priority.MEDIUM
    category: str = ""
    due_date: Optional[date] = None
    estimated_minutes: Optional[int] = Field(default=None, ge=1)
    is_completed: bool = False

    # Computed fields
    time_spent: int = 0
    session_minutes: int = 0

    created_at: datetime = Field(default_factory=datetime.now)


class TimeEntry(BaseModel):
    """
    Represents a single tracked interval of a task.

    An entry is open while end_time is None. Closing sets end_time and the
    rounded duration in minutes; closed entries are never changed again.
    """
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    task_id: int
    start_time: datetime
    end_time: Optional[datetime] = None
    duration: Optional[int] = None  # minutes, only set once closed
    notes: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.end_time is None


class PomodoroSettings(BaseModel):
    """
    Pomodoro configuration. Durations are in minutes.

    Values below 1 are clamped to 1, both on construction and on assignment.
    """
    model_config = ConfigDict(from_attributes=True, validate_assignment=True)

    work_duration: int = 25
    short_break_duration: int = 5
    long_break_duration: int = 15
    sessions_before_long_break: int = 4
    auto_start_breaks: bool = False
    auto_start_pomodoros: bool = False

    @field_validator(
        "work_duration",
        "short_break_duration",
        "long_break_duration",
        "sessions_before_long_break",
    )
    @classmethod
    def clamp_to_minimum(cls, value: int, info) -> int:
        if value < MIN_SETTING_VALUE:
            logger.warning(f"Invalid {info.field_name}={value}, clamped to {MIN_SETTING_VALUE}")
            return MIN_SETTING_VALUE
        return value

    def duration_for(self, timer_type: TimerType) -> int:
        """Configured length of a phase in minutes"""
        if timer_type == TimerType.POMODORO:
            return self.work_duration
        if timer_type == TimerType.SHORT_BREAK:
            return self.short_break_duration
        return self.long_break_duration


class TimerState(BaseModel):
    """Snapshot of the Pomodoro countdown (never persisted)"""
    timer_type: TimerType = TimerType.POMODORO
    remaining_seconds: int
    running: bool = False
    completed_sessions_today: int = 0


class PomodoroSession(BaseModel):
    """A finished work phase, kept for weekly statistics"""
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    task_id: Optional[int] = None
    completed_at: datetime
    duration_minutes: int


class TaskTemplate(BaseModel):
    """
    Reusable blueprint for a task: a task without id or completion state.
    """
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    priority: Priority = Priority.MEDIUM
    category: str = ""
    estimated_minutes: Optional[int] = Field(default=None, ge=1)

    @classmethod
    def from_task(cls, task: Task) -> "TaskTemplate":
        return cls(
            title=task.title,
            description=task.description,
            priority=task.priority,
            category=task.category,
            estimated_minutes=task.estimated_minutes,
        )

    def to_task(self) -> Task:
        return Task(
            title=self.title,
            description=self.description,
            priority=self.priority,
            category=self.category,
            estimated_minutes=self.estimated_minutes,
        )


class DailyStats(BaseModel):
    completed_tasks: int = 0
    time_tracked: int = 0  # minutes
    completion_rate: float = 0.0  # percent
    most_productive_category: str = ""


class WeeklyStats(BaseModel):
    completed_tasks: int = 0
    time_tracked: int = 0  # minutes
    pomodoro_sessions: int = 0
    most_productive_day: str = ""
