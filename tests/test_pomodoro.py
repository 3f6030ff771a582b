"""
Tests for the Pomodoro countdown state machine.
"""

import datetime

import pytest
from pydantic import ValidationError

from pomotrack.domain.models import PomodoroSettings, Task, TimerType
from pomotrack.services.ledger import TimeEntryLedger
from pomotrack.services.pomodoro import PomodoroTimer
from pomotrack.services.stores import InMemoryTaskStore, SettingsStore
from pomotrack.services.task_timer import TaskTimer


class MemorySettingsStore(SettingsStore):

    def __init__(self, settings=None):
        self.settings = settings or PomodoroSettings()
        self.saved = []

    def load_settings(self):
        return self.settings

    def save_settings(self, settings):
        self.saved.append(settings.model_copy())


@pytest.fixture
def timer(clock, notifier):
    return PomodoroTimer(PomodoroSettings(), clock=clock, notifier=notifier)


def run_out(timer, clock):
    """Let the current phase expire with a single late tick"""
    clock.advance(seconds=timer.remaining_seconds)
    timer.tick()


class TestCountdown:

    def test_initial_state(self, timer):
        state = timer.state()
        assert state.timer_type == TimerType.POMODORO
        assert state.remaining_seconds == 25 * 60
        assert state.running is False
        assert state.completed_sessions_today == 0

    def test_ticks_do_nothing_while_stopped(self, timer, clock):
        clock.advance(seconds=100)
        timer.tick()
        assert timer.remaining_seconds == 1500

    def test_counts_elapsed_time_not_ticks(self, timer, clock):
        timer.start()
        clock.advance(seconds=10)
        timer.tick()
        assert timer.remaining_seconds == 1490

    def test_fractional_ticks_carry_over(self, timer, clock):
        timer.start()
        for _ in range(5):
            clock.advance(seconds=0.4)
            timer.tick()
        assert timer.remaining_seconds == 1498

    def test_backward_clock_is_ignored(self, timer, clock):
        timer.start()
        clock.advance(seconds=-60)
        timer.tick()
        assert timer.remaining_seconds == 1500
        clock.advance(seconds=5)
        timer.tick()
        assert timer.remaining_seconds == 1495

    def test_pause_keeps_remaining_time(self, timer, clock):
        timer.start()
        clock.advance(seconds=30)
        timer.pause()

        assert timer.running is False
        assert timer.remaining_seconds == 1470

        clock.advance(seconds=600)
        timer.start()
        timer.tick()
        assert timer.remaining_seconds == 1470

    def test_reset_restores_full_duration(self, timer, clock):
        timer.start()
        clock.advance(seconds=200)
        timer.tick()
        timer.reset()

        assert timer.running is False
        assert timer.remaining_seconds == 1500


class TestPhaseSelection:

    def test_select_phase_when_idle(self, timer):
        assert timer.select_phase(TimerType.LONG_BREAK)
        assert timer.timer_type == TimerType.LONG_BREAK
        assert timer.remaining_seconds == 15 * 60

    def test_select_phase_accepts_value(self, timer):
        assert timer.select_phase("shortBreak")
        assert timer.remaining_seconds == 300

    def test_select_phase_refused_while_running(self, timer, clock):
        timer.start()
        assert timer.select_phase(TimerType.SHORT_BREAK) is False
        assert timer.timer_type == TimerType.POMODORO

        timer.pause()
        assert timer.select_phase(TimerType.SHORT_BREAK)


class TestExpiry:

    def test_work_phase_expires_into_short_break(self, timer, clock, notifier):
        timer.start()
        for _ in range(25 * 60):
            clock.advance(seconds=1)
            timer.tick()

        assert timer.completed_sessions_today == 1
        assert timer.timer_type == TimerType.SHORT_BREAK
        assert timer.running is False
        assert timer.remaining_seconds == 300
        assert notifier.messages[-1][0] == "Work Session Complete!"

    def test_fourth_session_gets_long_break(self, timer, clock):
        for session in range(1, 5):
            timer.start()
            run_out(timer, clock)
            assert timer.completed_sessions_today == session
            if session < 4:
                assert timer.timer_type == TimerType.SHORT_BREAK
                timer.start()
                run_out(timer, clock)
                assert timer.timer_type == TimerType.POMODORO

        assert timer.timer_type == TimerType.LONG_BREAK
        assert timer.remaining_seconds == 15 * 60

    def test_break_expires_into_pomodoro(self, timer, clock, notifier):
        timer.select_phase(TimerType.SHORT_BREAK)
        timer.start()
        run_out(timer, clock)

        assert timer.timer_type == TimerType.POMODORO
        assert timer.remaining_seconds == 1500
        assert timer.running is False
        assert timer.completed_sessions_today == 0
        assert notifier.messages[-1][0] == "Short Break Complete"

    def test_pause_at_expiry_expires(self, timer, clock):
        timer.start()
        clock.advance(minutes=30)
        timer.pause()
        assert timer.timer_type == TimerType.SHORT_BREAK
        assert timer.running is False

    def test_auto_start_breaks(self, clock, notifier):
        timer = PomodoroTimer(PomodoroSettings(auto_start_breaks=True), clock=clock, notifier=notifier)
        timer.start()
        run_out(timer, clock)

        assert timer.timer_type == TimerType.SHORT_BREAK
        assert timer.running is True
        clock.advance(seconds=60)
        timer.tick()
        assert timer.remaining_seconds == 240

    def test_overshoot_is_not_carried_into_next_phase(self, clock, notifier):
        timer = PomodoroTimer(PomodoroSettings(auto_start_breaks=True), clock=clock, notifier=notifier)
        timer.start()
        clock.advance(minutes=40)
        timer.tick()
        assert timer.remaining_seconds == 300

    def test_auto_start_pomodoros(self, clock, notifier):
        timer = PomodoroTimer(PomodoroSettings(auto_start_pomodoros=True), clock=clock, notifier=notifier)
        timer.select_phase(TimerType.LONG_BREAK)
        timer.start()
        run_out(timer, clock)

        assert timer.timer_type == TimerType.POMODORO
        assert timer.running is True

    def test_sessions_reset_on_new_day(self, timer, clock):
        timer.start()
        run_out(timer, clock)
        assert timer.completed_sessions_today == 1

        clock.set(datetime.datetime(2026, 1, 8, 9, 0))
        timer.select_phase(TimerType.POMODORO)
        timer.start()
        run_out(timer, clock)
        assert timer.completed_sessions_today == 1
        assert len(timer.completed_sessions) == 2

    def test_count_is_zero_the_next_day(self, timer, clock):
        timer.start()
        run_out(timer, clock)
        assert timer.state().completed_sessions_today == 1

        clock.set(datetime.datetime(2026, 1, 8, 8, 0))
        assert timer.state().completed_sessions_today == 0

    def test_tick_after_midnight_resets_count(self, timer, clock):
        timer.start()
        run_out(timer, clock)
        timer.start()
        clock.set(datetime.datetime(2026, 1, 8, 0, 0, 1))
        timer.tick()
        assert timer.completed_sessions_today == 0

    def test_history_keeps_current_week_only(self, timer, clock):
        clock.set(datetime.datetime(2026, 1, 3, 9, 0))  # Saturday, previous week
        timer.start()
        run_out(timer, clock)

        clock.set(datetime.datetime(2026, 1, 5, 9, 0))
        timer.select_phase(TimerType.POMODORO)
        timer.start()
        run_out(timer, clock)

        assert [s.completed_at.date() for s in timer.completed_sessions] == [
            datetime.date(2026, 1, 5)
        ]

    def test_expiry_listeners_are_called(self, timer, clock):
        seen = []
        timer.add_expiry_listener(lambda expired, upcoming: seen.append((expired, upcoming)))
        timer.start()
        run_out(timer, clock)
        assert seen == [(TimerType.POMODORO, TimerType.SHORT_BREAK)]

    def test_scenario_from_default_settings(self, clock, notifier):
        settings = PomodoroSettings(
            work_duration=25, short_break_duration=5, long_break_duration=15,
            sessions_before_long_break=4, auto_start_breaks=False,
        )
        timer = PomodoroTimer(settings, clock=clock, notifier=notifier)
        timer.start()
        run_out(timer, clock)

        state = timer.state()
        assert state.timer_type == TimerType.SHORT_BREAK
        assert state.running is False
        assert state.remaining_seconds == 300


class TestSettings:

    def test_idle_change_reloads_selected_phase(self, timer):
        timer.update_settings(work_duration=50)
        assert timer.remaining_seconds == 50 * 60

    def test_change_of_other_phase_keeps_remaining(self, timer):
        timer.update_settings(short_break_duration=10)
        assert timer.remaining_seconds == 25 * 60

    def test_running_countdown_is_not_altered(self, timer, clock):
        timer.start()
        clock.advance(seconds=100)
        timer.tick()
        timer.update_settings(work_duration=50)

        assert timer.remaining_seconds == 1400
        timer.reset()
        assert timer.remaining_seconds == 3000

    @pytest.mark.parametrize("value", [0, -5])
    def test_invalid_duration_is_clamped(self, timer, value):
        settings = timer.update_settings(work_duration=value)
        assert settings.work_duration == 1
        assert timer.remaining_seconds == 60

    def test_unknown_setting_raises(self, timer):
        with pytest.raises(ValueError):
            timer.update_settings(coffee_breaks=3)

    def test_rejected_change_set_applies_nothing(self, clock, notifier):
        store = MemorySettingsStore()
        timer = PomodoroTimer(clock=clock, notifier=notifier, settings_store=store)
        timer.select_phase(TimerType.SHORT_BREAK)

        with pytest.raises(ValidationError):
            timer.update_settings(short_break_duration=10, sessions_before_long_break="many")

        assert timer.settings.short_break_duration == 5
        assert timer.settings.sessions_before_long_break == 4
        assert timer.remaining_seconds == 300
        assert store.saved == []

    def test_changes_are_saved_to_store(self, clock, notifier):
        store = MemorySettingsStore()
        timer = PomodoroTimer(clock=clock, notifier=notifier, settings_store=store)
        timer.update_settings(long_break_duration=20)

        assert store.saved[-1].long_break_duration == 20

    def test_settings_loaded_from_store(self, clock, notifier):
        store = MemorySettingsStore(PomodoroSettings(work_duration=45))
        timer = PomodoroTimer(clock=clock, notifier=notifier, settings_store=store)
        assert timer.remaining_seconds == 45 * 60


class TestTaskCredit:

    @pytest.fixture
    def tracked(self, clock, notifier):
        store = InMemoryTaskStore([
            Task(id=1, title="Essay", category="Education", estimated_minutes=30, time_spent=10),
            Task(id=2, title="Inbox", category="Work"),
        ])
        task_timer = TaskTimer(TimeEntryLedger(), store, clock)
        pomodoro = PomodoroTimer(PomodoroSettings(), clock=clock, notifier=notifier,
                                 task_timer=task_timer)
        return store, task_timer, pomodoro

    def test_reaching_estimate_completes_task(self, tracked, clock, notifier):
        store, task_timer, pomodoro = tracked
        task_timer.start_tracking(store.get_task(1))
        pomodoro.start()
        run_out(pomodoro, clock)

        task = store.get_task(1)
        assert task.session_minutes == 25
        assert task.is_completed
        assert notifier.messages[-1][0] == "Work Session Complete!"
        assert ("Task Completed", "\"Essay\" reached its estimated time.") in notifier.messages
        assert pomodoro.completed_sessions[-1].task_id == 1

    def test_task_without_estimate_is_only_credited(self, tracked, clock):
        store, task_timer, pomodoro = tracked
        task_timer.start_tracking(store.get_task(2))
        pomodoro.start()
        run_out(pomodoro, clock)

        task = store.get_task(2)
        assert task.session_minutes == 25
        assert not task.is_completed

    def test_nothing_credited_when_not_tracking(self, tracked, clock):
        store, _, pomodoro = tracked
        pomodoro.start()
        run_out(pomodoro, clock)

        assert store.get_task(1).session_minutes == 0
        assert pomodoro.completed_sessions[-1].task_id is None
