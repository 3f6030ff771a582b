"""
Clock Source - wall-clock time provider for all timers.

Architecture Decision: Strategy Pattern
Timers never call datetime.now() themselves, so tests (and a future
server-side host) can drive them with their own notion of "now".
"""

import datetime
from abc import ABC, abstractmethod


class Clock(ABC):
    """Abstract wall-clock source (naive local time)"""

    @abstractmethod
    def now(self) -> datetime.datetime:
        """Return the current local time"""

    def today(self) -> datetime.date:
        return self.now().date()


class SystemClock(Clock):
    """Clock backed by the operating system time"""

    def now(self) -> datetime.datetime:
        return datetime.datetime.now()


def start_of_day(moment: datetime.datetime) -> datetime.datetime:
    """Local midnight at the beginning of the given moment's day"""
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def start_of_week(moment: datetime.datetime) -> datetime.datetime:
    """Local midnight of the Sunday starting the given moment's week"""
    midnight = start_of_day(moment)
    # weekday(): Monday=0 .. Sunday=6
    days_since_sunday = (midnight.weekday() + 1) % 7
    return midnight - datetime.timedelta(days=days_since_sunday)
