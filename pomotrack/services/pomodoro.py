"""
Pomodoro Timer - countdown state machine cycling work and break phases.

Architecture Decision: Elapsed-time sampling
tick() may be called at any rate (or late, when the host throttles timers).
Each call subtracts the wall-clock time elapsed since the previous sample,
so the countdown never drifts with the tick frequency.

    pomodoro --expire--> shortBreak | longBreak --expire--> pomodoro
"""

import datetime
import logging
from typing import Callable, List, Optional

from pomotrack.domain.models import PomodoroSession, PomodoroSettings, TimerState, TimerType
from pomotrack.i18n import tr
from pomotrack.services.clock import Clock, SystemClock, start_of_week
from pomotrack.services.notifications import LogNotifier, Notifier, expiry_message
from pomotrack.services.stores import SettingsStore, TaskStore
from pomotrack.services.task_timer import TaskTimer

logger = logging.getLogger(__name__)

# Callback signature: (expired_phase, next_phase)
ExpiryListener = Callable[[TimerType, TimerType], None]


class PomodoroTimer:
    """
    Deterministic Pomodoro countdown driven by explicit commands and tick().

    Optionally coupled to a TaskTimer: finishing a work phase while a task is
    tracked credits that task with the work duration.
    """

    def __init__(self, settings: Optional[PomodoroSettings] = None,
                 clock: Optional[Clock] = None,
                 notifier: Optional[Notifier] = None,
                 task_timer: Optional[TaskTimer] = None,
                 task_store: Optional[TaskStore] = None,
                 settings_store: Optional[SettingsStore] = None):
        self.clock = clock or SystemClock()
        self.notifier = notifier or LogNotifier()
        self.task_timer = task_timer
        self.task_store = task_store or (task_timer.task_store if task_timer else None)
        self.settings_store = settings_store

        if settings is None:
            settings = settings_store.load_settings() if settings_store else PomodoroSettings()
        self.settings = settings

        self.timer_type = TimerType.POMODORO
        self.remaining_seconds = self._full_duration(self.timer_type)
        self.running = False
        self.completed_sessions_today = 0
        self.completed_sessions: List[PomodoroSession] = []

        self._sessions_date: datetime.date = self.clock.today()
        self._last_tick: Optional[datetime.datetime] = None
        self._carry = 0.0  # fractional seconds not yet subtracted
        self._expiry_listeners: List[ExpiryListener] = []

    # ── Commands ────────────────────────────────────────────────────────────

    def select_phase(self, timer_type: TimerType) -> bool:
        """
        Switch to a phase and load its full duration.

        Refused (returns False) while the countdown runs; pause or reset first.
        """
        timer_type = TimerType(timer_type)
        if self.running:
            logger.debug(f"Ignoring phase switch to {timer_type.value} while running")
            return False
        self.timer_type = timer_type
        self.remaining_seconds = self._full_duration(self.timer_type)
        self._carry = 0.0
        return True

    def start(self) -> None:
        if self.running:
            return
        if self.remaining_seconds <= 0:
            self.remaining_seconds = self._full_duration(self.timer_type)
        self.running = True
        self._last_tick = self.clock.now()
        self._carry = 0.0
        logger.debug(f"{self.timer_type.value} started, {self.remaining_seconds}s left")

    def pause(self) -> None:
        """Stop counting; the remaining time is kept"""
        if not self.running:
            return
        # Account for the time since the last tick before freezing
        self.tick()
        self.running = False
        self._last_tick = None

    def reset(self) -> None:
        """Stop and restore the full duration of the current phase"""
        self.running = False
        self._last_tick = None
        self._carry = 0.0
        self.remaining_seconds = self._full_duration(self.timer_type)

    def tick(self) -> None:
        """Advance the countdown by the wall-clock time since the last sample"""
        self._roll_over_day()
        if not self.running or self._last_tick is None:
            return

        now = self.clock.now()
        delta = (now - self._last_tick).total_seconds()
        self._last_tick = now
        if delta < 0:
            logger.warning(f"Clock moved backwards by {-delta:.1f}s, tick ignored")
            return

        self._carry += delta
        whole_seconds = int(self._carry)
        self._carry -= whole_seconds
        self.remaining_seconds = max(self.remaining_seconds - whole_seconds, 0)

        if self.remaining_seconds == 0:
            self._expire()

    # ── Settings ────────────────────────────────────────────────────────────

    def update_settings(self, **changes) -> PomodoroSettings:
        """
        Change settings (values below 1 are clamped).

        The whole change set is validated before anything is applied, so a
        rejected value leaves the current settings untouched.
        When idle, the selected phase is reloaded with its new duration; a
        running countdown keeps its current remaining time.
        """
        for name in changes:
            if name not in PomodoroSettings.model_fields:
                raise ValueError(f"Unknown Pomodoro setting: {name}")
        updated = PomodoroSettings.model_validate({**self.settings.model_dump(), **changes})

        before = self.settings.duration_for(self.timer_type)
        self.settings = updated

        if not self.running and self.settings.duration_for(self.timer_type) != before:
            self.remaining_seconds = self._full_duration(self.timer_type)
            self._carry = 0.0

        if self.settings_store:
            self.settings_store.save_settings(self.settings)
        return self.settings

    # ── Observation ─────────────────────────────────────────────────────────

    def state(self) -> TimerState:
        self._roll_over_day()
        return TimerState(
            timer_type=self.timer_type,
            remaining_seconds=self.remaining_seconds,
            running=self.running,
            completed_sessions_today=self.completed_sessions_today,
        )

    def add_expiry_listener(self, callback: ExpiryListener) -> None:
        if callback not in self._expiry_listeners:
            self._expiry_listeners.append(callback)

    # ── Internals ───────────────────────────────────────────────────────────

    def _full_duration(self, timer_type: TimerType) -> int:
        return self.settings.duration_for(timer_type) * 60

    def _expire(self) -> None:
        expired = self.timer_type
        self.running = False
        self._last_tick = None
        self._carry = 0.0

        if expired == TimerType.POMODORO:
            next_type = self._complete_work_session()
            auto_start = self.settings.auto_start_breaks
        else:
            next_type = TimerType.POMODORO
            auto_start = self.settings.auto_start_pomodoros

        self.timer_type = next_type
        self.remaining_seconds = self._full_duration(next_type)
        logger.info(f"{expired.value} expired, next phase {next_type.value}")

        title, body = expiry_message(expired, next_type, self.settings.duration_for(next_type))
        self.notifier.notify(title, body)

        for listener in self._expiry_listeners:
            listener(expired, next_type)

        if auto_start:
            self.start()

    def _roll_over_day(self) -> None:
        """Start the daily count over once the local date has changed"""
        today = self.clock.today()
        if today != self._sessions_date:
            # New day: the long-break cycle starts over
            self._sessions_date = today
            self.completed_sessions_today = 0

    def _complete_work_session(self) -> TimerType:
        now = self.clock.now()
        self._roll_over_day()
        self.completed_sessions_today += 1

        task_id = self.task_timer.active_task_id if self.task_timer else None
        # Only the current week is kept; older sessions live in the repository
        week_start = start_of_week(now)
        self.completed_sessions = [
            s for s in self.completed_sessions if s.completed_at >= week_start
        ]
        self.completed_sessions.append(PomodoroSession(
            task_id=task_id,
            completed_at=now,
            duration_minutes=self.settings.work_duration,
        ))
        if task_id is not None:
            self._credit_task(task_id)

        if self.completed_sessions_today % self.settings.sessions_before_long_break == 0:
            return TimerType.LONG_BREAK
        return TimerType.SHORT_BREAK

    def _credit_task(self, task_id: int) -> None:
        if self.task_store is None:
            return
        task = self.task_store.get_task(task_id)
        if task is None:
            logger.warning(f"Tracked task {task_id} is missing from the task store")
            return

        session_minutes = task.session_minutes + self.settings.work_duration
        changes = {"session_minutes": session_minutes}
        if (task.estimated_minutes is not None and not task.is_completed
                and task.time_spent + session_minutes >= task.estimated_minutes):
            changes["is_completed"] = True
            logger.info(f"Task {task_id} reached its estimate of {task.estimated_minutes} min")
            self.notifier.notify(
                tr("notify.task_completed.title"),
                tr("notify.task_completed.body", title=task.title),
            )
        self.task_store.update_task(task_id, **changes)
