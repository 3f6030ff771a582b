"""Services layer - Business logic

TimerService is imported from pomotrack.services.timer_service directly; it
pulls in the infrastructure layer, which itself depends on this package.
"""

from .clock import Clock, SystemClock
from .ledger import TimeEntryLedger
from .task_timer import TaskTimer
from .pomodoro import PomodoroTimer
from .stats_service import SessionAggregator
from .focus_service import FocusCountdown, recommend_task

__all__ = [
    "Clock", "SystemClock", "TimeEntryLedger", "TaskTimer", "PomodoroTimer",
    "SessionAggregator", "FocusCountdown", "recommend_task",
]
