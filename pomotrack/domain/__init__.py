"""Domain layer - Pure business entities and logic"""

from .models import (
    Task, TimeEntry, PomodoroSettings, TimerState, TimerType, Priority,
    PomodoroSession, TaskTemplate, DailyStats, WeeklyStats,
)

__all__ = [
    "Task", "TimeEntry", "PomodoroSettings", "TimerState", "TimerType", "Priority",
    "PomodoroSession", "TaskTemplate", "DailyStats", "WeeklyStats",
]
