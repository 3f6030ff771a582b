"""
Statistics Service - daily and weekly productivity figures.

Everything is derived on demand from the ledger, the task list and the
completed Pomodoro sessions. Nothing is cached, so a day rollover can never
leave a stale "today" behind.
"""

import datetime
from typing import Dict, Iterable, List, Optional, Sequence, Union

from pomotrack.domain.models import DailyStats, PomodoroSession, Task, WeeklyStats
from pomotrack.services.clock import Clock, SystemClock, start_of_day, start_of_week
from pomotrack.services.ledger import TimeEntryLedger

WEEKDAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]


def _first_max(counts: Dict[str, int]) -> str:
    """
    Key with the highest positive count.

    Ties go to the key seen first (dict insertion order).
    """
    best, best_count = "", 0
    for key, count in counts.items():
        if count > best_count:
            best, best_count = key, count
    return best


def weekday_name(moment: datetime.datetime) -> str:
    return WEEKDAY_NAMES[(moment.weekday() + 1) % 7]


class SessionAggregator:
    """Read-only aggregation over the ledger and task state"""

    def __init__(self, clock: Optional[Clock] = None):
        self.clock = clock or SystemClock()

    def today_range(self):
        """[local midnight today, local midnight tomorrow)"""
        start = start_of_day(self.clock.now())
        return start, start + datetime.timedelta(days=1)

    def week_range(self):
        """[local Sunday midnight, local midnight tomorrow)"""
        now = self.clock.now()
        return start_of_week(now), start_of_day(now) + datetime.timedelta(days=1)

    def time_tracked_today(self, ledger: TimeEntryLedger) -> int:
        start, end = self.today_range()
        return sum(ledger.durations_in_range(start, end))

    def completed_in_range(self, tasks: Iterable[Task], ledger: TimeEntryLedger,
                           start: datetime.datetime, end: datetime.datetime) -> List[Task]:
        """
        Completed tasks whose latest closed entry ended inside [start, end).

        Completion carries no timestamp of its own, so the last tracked
        interval stands in for the moment the task was finished.
        """
        result = []
        for task in tasks:
            if not task.is_completed:
                continue
            latest = ledger.latest_closed_for_task(task.id)
            if latest is not None and start <= latest.end_time < end:
                result.append(task)
        return result

    def daily_stats(self, tasks: Sequence[Task], ledger: TimeEntryLedger) -> DailyStats:
        start, end = self.today_range()
        completed = self.completed_in_range(tasks, ledger, start, end)

        due_today = [t for t in tasks if t.due_date == start.date()]
        if due_today:
            done = sum(1 for t in due_today if t.is_completed)
            completion_rate = done / len(due_today) * 100
        else:
            completion_rate = 0.0

        categories: Dict[str, int] = {}
        for task in completed:
            categories[task.category] = categories.get(task.category, 0) + 1

        return DailyStats(
            completed_tasks=len(completed),
            time_tracked=sum(ledger.durations_in_range(start, end)),
            completion_rate=completion_rate,
            most_productive_category=_first_max(categories),
        )

    def weekly_stats(self, tasks: Sequence[Task], ledger: TimeEntryLedger,
                     sessions: Union[Sequence[PomodoroSession], int] = ()) -> WeeklyStats:
        """
        Figures for the current week (Sunday through today).

        sessions is either the Pomodoro history or a plain session count.
        """
        start, end = self.week_range()
        completed = self.completed_in_range(tasks, ledger, start, end)
        entries = ledger.entries_in_range(start, end)

        minutes_per_day = {name: 0 for name in WEEKDAY_NAMES}
        for entry in entries:
            minutes_per_day[weekday_name(entry.start_time)] += entry.duration or 0

        if isinstance(sessions, int):
            pomodoro_count = sessions
        else:
            pomodoro_count = sum(1 for s in sessions if start <= s.completed_at < end)

        return WeeklyStats(
            completed_tasks=len(completed),
            time_tracked=sum(e.duration or 0 for e in entries),
            pomodoro_sessions=pomodoro_count,
            most_productive_day=_first_max(minutes_per_day),
        )
