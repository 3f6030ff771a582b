"""
Timer Service - drives the timers from the Qt event loop.

Architecture Decision: Observer Pattern (Qt Signals)
The service emits signals when state changes, keeping it decoupled from UI.
The timers themselves are plain Python; this class owns the QTimer handles
that feed them ticks and mirrors every state change to the database.

Each countdown owns exactly one QTimer. It is restarted on every start and
phase change and stopped on every pause, reset, stop or expiry, so no
callback keeps running after its timer has logically stopped.
"""

import asyncio
import logging
from typing import Awaitable, List, Optional, Set

from PySide6.QtCore import QObject, QTimer, Signal

from pomotrack.domain.models import (
    DailyStats, PomodoroSession, PomodoroSettings, Task, TaskTemplate, TimeEntry,
    TimerType, WeeklyStats,
)
from pomotrack.i18n import set_language
from pomotrack.infra.config import Settings, get_settings
from pomotrack.infra.repository import (
    PomodoroSessionRepository, TaskRepository, TaskTemplateRepository, TimeEntryRepository,
)
from pomotrack.services.clock import Clock, SystemClock
from pomotrack.services.focus_service import FocusCountdown, recommend_task
from pomotrack.services.ledger import TimeEntryLedger
from pomotrack.services.notifications import SignalNotifier
from pomotrack.services.pomodoro import PomodoroTimer
from pomotrack.services.stats_service import SessionAggregator
from pomotrack.services.stores import InMemoryTaskStore
from pomotrack.services.task_timer import TaskTimer
from pomotrack.utils import format_clock

logger = logging.getLogger(__name__)

EDITABLE_TASK_FIELDS = {
    "title", "description", "priority", "category", "due_date", "estimated_minutes", "is_completed",
}


class TimerService(QObject):
    """
    The productivity engine. Manages state but knows nothing about the UI.
    Emits signals when things change (Observer Pattern).
    """

    # Signals
    tick = Signal(str, int)  # (formatted tracked time, elapsed seconds)
    pomodoro_tick = Signal(str, int)  # (formatted remaining time, remaining seconds)
    phase_changed = Signal(str)  # timer type value
    task_started = Signal(int)  # task_id
    task_stopped = Signal(int, int)  # task_id, total minutes
    session_completed = Signal(int)  # completed sessions today
    focus_finished = Signal()
    notification = Signal(str, str)  # title, body

    def __init__(self, settings: Optional[Settings] = None, clock: Optional[Clock] = None,
                 task_repo: Optional[TaskRepository] = None,
                 entry_repo: Optional[TimeEntryRepository] = None,
                 session_repo: Optional[PomodoroSessionRepository] = None,
                 template_repo: Optional[TaskTemplateRepository] = None,
                 loop: Optional[asyncio.AbstractEventLoop] = None):
        super().__init__()
        # Host loop for writes triggered from Qt callbacks (no loop running there)
        self.loop = loop
        self.settings = settings or get_settings()
        self.clock = clock or SystemClock()
        set_language(self.settings.language)

        # Repositories
        self.task_repo = task_repo or TaskRepository()
        self.entry_repo = entry_repo or TimeEntryRepository()
        self.session_repo = session_repo or PomodoroSessionRepository()
        self.template_repo = template_repo or TaskTemplateRepository()

        # Core state
        self.ledger = TimeEntryLedger()
        self.task_store = InMemoryTaskStore()
        self.task_store.on_update(self._persist_task)
        self.session_history: List[PomodoroSession] = []

        self.notifier = SignalNotifier()
        self.notifier.notification.connect(self.notification)

        self.task_timer = TaskTimer(self.ledger, self.task_store, self.clock)
        self.pomodoro = PomodoroTimer(
            clock=self.clock,
            notifier=self.notifier,
            task_timer=self.task_timer,
            settings_store=self.settings,
        )
        self.pomodoro.add_expiry_listener(self._on_phase_expired)
        self.focus = FocusCountdown(self.clock, self.notifier)
        self.aggregator = SessionAggregator(self.clock)

        # One Qt timer per countdown / sampler
        self.tracking_timer = QTimer(self)
        self.tracking_timer.timeout.connect(self._on_tracking_tick)
        self.pomodoro_timer = QTimer(self)
        self.pomodoro_timer.timeout.connect(self._on_pomodoro_tick)
        self.focus_timer = QTimer(self)
        self.focus_timer.timeout.connect(self._on_focus_tick)

        # Background writes run one after another
        self._write_lock = asyncio.Lock()
        self._pending: Set[asyncio.Task] = set()

    # ── Loading / persistence ───────────────────────────────────────────────

    async def load(self) -> None:
        """Hydrate tasks, the ledger and this week's Pomodoro history"""
        for task in await self._db(self.task_repo.get_all()):
            self.task_store.add(task)
        self.ledger.load(await self._db(self.entry_repo.get_all()))

        start, end = self.aggregator.week_range()
        self.session_history = await self._db(self.session_repo.get_in_range(start, end))

        await self._close_stale_entries()

        open_entry = self.ledger.open_entry()
        if open_entry is not None:
            # Tracking survived a restart
            self.task_timer.resume(open_entry)
            self.tracking_timer.start(self.settings.tick_interval_ms)
            logger.info(f"Resumed tracking of task {open_entry.task_id}")

        logger.info(
            f"Loaded {len(self.task_store.all())} tasks, {len(self.ledger)} time entries"
        )

    async def flush(self) -> None:
        """Wait for all background writes to finish"""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    def _spawn(self, coro: Awaitable) -> None:
        """
        Fire-and-forget a repository write.

        Inside a running loop the write is scheduled as a task. From a plain
        Qt callback it runs to completion on the host loop, if one was given.
        """
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if running is None:
            if self.loop is not None and not self.loop.is_closed():
                self.loop.run_until_complete(self._background_save(coro))
            else:
                coro.close()
                logger.warning("No event loop, change not persisted")
            return

        task = running.create_task(self._background_save(coro))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _db(self, coro: Awaitable):
        """Run a repository call without overlapping background writes"""
        async with self._write_lock:
            return await coro

    async def _background_save(self, coro: Awaitable) -> None:
        async with self._write_lock:
            try:
                await coro
            except Exception as e:
                logger.warning(f"Background save failed: {e}")

    def _persist_task(self, task: Task) -> None:
        self._spawn(self.task_repo.update(task))

    async def _close_stale_entries(self) -> None:
        """
        Close open entries left behind by a crash.

        Only the newest open entry keeps running. Each older one ends where
        the next open entry starts.
        """
        open_entries = self.ledger.open_entries()
        for stale, following in zip(open_entries, open_entries[1:]):
            closed = self.ledger.record_close(stale.id, following.start_time)
            self.task_store.update_task(
                closed.task_id, time_spent=self.ledger.total_for_task(closed.task_id)
            )
            await self._db(self.entry_repo.close(closed))
            logger.warning(
                f"Closed stale time entry {closed.id} of task {closed.task_id} "
                f"at {closed.end_time} ({closed.duration} min)"
            )

    # ── Tasks ───────────────────────────────────────────────────────────────

    def get_tasks(self) -> List[Task]:
        return self.task_store.all()

    async def _require_task(self, task_id: int) -> Task:
        """Task from the store, falling back to the database"""
        task = self.task_store.get_task(task_id)
        if task is None:
            task = await self._db(self.task_repo.get_by_id(task_id))
            if task is None:
                raise ValueError(f"Task {task_id} not found")
            self.task_store.add(task)
        return task

    async def create_task(self, task: Task) -> Task:
        created = await self._db(self.task_repo.create(task))
        return self.task_store.add(created)

    async def update_task(self, task_id: int, **changes) -> Task:
        """
        Edit the user-facing fields of a task.

        Progress fields (time_spent, session_minutes) are owned by the timers
        and cannot be set here.

        Raises:
            ValueError: unknown task, non-editable field or invalid value
        """
        not_editable = set(changes) - EDITABLE_TASK_FIELDS
        if not_editable:
            raise ValueError(f"Fields cannot be edited: {', '.join(sorted(not_editable))}")

        task = await self._require_task(task_id)
        # Validate the complete record before anything changes
        validated = Task.model_validate({**task.model_dump(), **changes})
        return self.task_store.update_task(
            task_id, **{name: getattr(validated, name) for name in changes}
        )

    async def delete_task(self, task_id: int) -> None:
        """Delete a task and (cascading) its time entries"""
        if self.task_timer.active_task_id == task_id:
            await self.stop_task()
        await self.flush()
        removed = await self._db(self.task_repo.delete(task_id))
        self.ledger.remove_task(task_id)
        self.task_store.remove(task_id)
        logger.info(f"Deleted task {task_id} and {removed} time entries")

    def toggle_completion(self, task_id: int) -> Optional[Task]:
        task = self.task_store.get_task(task_id)
        if task is None:
            return None
        return self.task_store.update_task(task_id, is_completed=not task.is_completed)

    # ── Templates ───────────────────────────────────────────────────────────

    async def get_templates(self) -> List[TaskTemplate]:
        return await self._db(self.template_repo.get_all())

    async def save_as_template(self, task_id: int) -> TaskTemplate:
        task = self.task_store.get_task(task_id)
        if task is None:
            raise ValueError(f"Task {task_id} not found")
        return await self._db(self.template_repo.create(TaskTemplate.from_task(task)))

    async def create_task_from_template(self, template: TaskTemplate) -> Task:
        return await self.create_task(template.to_task())

    async def delete_template(self, template_id: int) -> None:
        await self._db(self.template_repo.delete(template_id))

    # ── Manual tracking ─────────────────────────────────────────────────────

    async def start_task(self, task_id: int) -> TimeEntry:
        """
        Start tracking time for a task, stopping the previous one.
        """
        task = await self._require_task(task_id)

        previous = self.ledger.open_entry()
        entry = self.task_timer.start_tracking(task)

        if previous is not None:
            closed = self.ledger.get(previous.id)
            self._spawn(self.entry_repo.close(closed))
            self._emit_stopped(closed)
        self._spawn(self.entry_repo.create(entry))

        # Replace the sampler for the new entry
        self.tracking_timer.start(self.settings.tick_interval_ms)
        self.task_started.emit(task_id)
        return entry

    async def stop_task(self) -> Optional[TimeEntry]:
        """
        Stop tracking the current task. Does nothing when idle.
        """
        self.tracking_timer.stop()
        closed = self.task_timer.stop_tracking()
        if closed is None:
            return None

        self._spawn(self.entry_repo.close(closed))
        self._emit_stopped(closed)
        return closed

    def _emit_stopped(self, closed: TimeEntry) -> None:
        task = self.task_store.get_task(closed.task_id)
        self.task_stopped.emit(closed.task_id, task.time_spent if task else 0)

    def is_tracking(self) -> bool:
        return self.task_timer.is_tracking

    def _on_tracking_tick(self):
        """Called every second while a task is tracked"""
        entry = self.task_timer.active_entry
        if entry is None:
            self.tracking_timer.stop()
            return

        elapsed = self.task_timer.elapsed()
        task = self.task_store.get_task(entry.task_id)
        title = task.title if task else str(entry.task_id)
        self.tick.emit(f"{title}: {format_clock(elapsed)}", elapsed)

    # ── Pomodoro ────────────────────────────────────────────────────────────

    def start_pomodoro(self) -> None:
        self.pomodoro.start()
        self.pomodoro_timer.start(self.settings.tick_interval_ms)
        self._emit_pomodoro_tick()

    def pause_pomodoro(self) -> None:
        self.pomodoro.pause()
        self._sync_pomodoro_timer()

    def reset_pomodoro(self) -> None:
        self.pomodoro_timer.stop()
        self.pomodoro.reset()
        self._emit_pomodoro_tick()

    def select_phase(self, timer_type: TimerType) -> bool:
        changed = self.pomodoro.select_phase(timer_type)
        if changed:
            self.phase_changed.emit(self.pomodoro.timer_type.value)
            self._emit_pomodoro_tick()
        return changed

    def update_pomodoro_settings(self, **changes) -> PomodoroSettings:
        settings = self.pomodoro.update_settings(**changes)
        self._emit_pomodoro_tick()
        return settings

    def _on_pomodoro_tick(self):
        """Called every second while the countdown runs"""
        self.pomodoro.tick()
        self._sync_pomodoro_timer()
        self._emit_pomodoro_tick()

    def _sync_pomodoro_timer(self) -> None:
        if not self.pomodoro.running:
            self.pomodoro_timer.stop()
        elif not self.pomodoro_timer.isActive():
            self.pomodoro_timer.start(self.settings.tick_interval_ms)

    def _on_phase_expired(self, expired: TimerType, next_type: TimerType) -> None:
        # A new phase always gets a fresh handle (restarted if it auto-starts)
        self.pomodoro_timer.stop()
        if expired == TimerType.POMODORO:
            session = self.pomodoro.completed_sessions[-1]
            week_start, _ = self.aggregator.week_range()
            self.session_history = [
                s for s in self.session_history if s.completed_at >= week_start
            ]
            self.session_history.append(session)
            self._spawn(self.session_repo.create(session))
            self.session_completed.emit(self.pomodoro.completed_sessions_today)
        self.phase_changed.emit(next_type.value)

    def _emit_pomodoro_tick(self) -> None:
        remaining = self.pomodoro.remaining_seconds
        self.pomodoro_tick.emit(format_clock(remaining), remaining)

    # ── Focus mode ──────────────────────────────────────────────────────────

    def recommended_task(self) -> Optional[Task]:
        return recommend_task(self.task_store.all(), self.task_timer.active_task_id)

    async def start_focus(self, duration_minutes: Optional[int] = None) -> Optional[Task]:
        """Start a focus session, tracking the recommended task if idle"""
        task = self.recommended_task()
        if task is not None and not self.task_timer.is_tracking:
            await self.start_task(task.id)

        if duration_minutes is not None:
            self.focus.duration_minutes = max(duration_minutes, 1)
        self.focus.start()
        self.focus_timer.start(self.settings.tick_interval_ms)
        return task

    def stop_focus(self) -> None:
        self.focus_timer.stop()
        self.focus.stop()

    def _on_focus_tick(self):
        if not self.focus.running:
            self.focus_timer.stop()
        elif self.focus.tick():
            self.focus_timer.stop()
            self.focus_finished.emit()

    # ── Statistics ──────────────────────────────────────────────────────────

    def daily_stats(self) -> DailyStats:
        return self.aggregator.daily_stats(self.task_store.all(), self.ledger)

    def weekly_stats(self) -> WeeklyStats:
        return self.aggregator.weekly_stats(self.task_store.all(), self.ledger, self.session_history)
