"""
Time Entry Ledger - append-only log of tracked intervals.

Entries are appended when tracking starts and closed exactly once when it
stops. Corrections are new entries; the only removal is the cascade that
follows deleting a task.
"""

import datetime
import logging
import math
from typing import Iterable, Iterator, List, Optional

from pomotrack.domain.models import TimeEntry

logger = logging.getLogger(__name__)


def minutes_between(start: datetime.datetime, end: datetime.datetime) -> int:
    """
    Whole minutes between two instants, rounded half up.

    A negative span (clock moved backwards) counts as zero.
    """
    seconds = (end - start).total_seconds()
    if seconds < 0:
        logger.warning(f"Clock moved backwards ({start} -> {end}), duration clamped to 0")
        return 0
    return int(math.floor(seconds / 60 + 0.5))


class TimeEntryLedger:
    """
    In-memory ledger of TimeEntry records, kept in insertion order.

    Persistence is not handled here; the timer service mirrors every change
    to the TimeEntryRepository.
    """

    def __init__(self, entries: Optional[Iterable[TimeEntry]] = None):
        self._entries: List[TimeEntry] = []
        self._next_id = 1
        if entries:
            self.load(entries)

    def load(self, entries: Iterable[TimeEntry]) -> None:
        """Replace the ledger contents with already persisted entries"""
        self._entries = sorted(entries, key=lambda e: e.start_time)
        ids = [e.id for e in self._entries if e.id is not None]
        self._next_id = max(ids, default=0) + 1

    def __iter__(self) -> Iterator[TimeEntry]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def record_open(self, task_id: int, start_time: datetime.datetime) -> TimeEntry:
        """Append a new open entry for a task"""
        entry = TimeEntry(id=self._next_id, task_id=task_id, start_time=start_time)
        self._next_id += 1
        self._entries.append(entry)
        return entry

    def record_close(self, entry_id: int, end_time: datetime.datetime) -> TimeEntry:
        """
        Close an open entry and store its duration.

        Raises:
            KeyError: if no entry has the given id
        """
        index = self._index_of(entry_id)
        entry = self._entries[index]
        if not entry.is_open:
            # Closed entries are immutable
            return entry

        closed = entry.model_copy(update={
            "end_time": end_time,
            "duration": minutes_between(entry.start_time, end_time),
        })
        self._entries[index] = closed
        return closed

    def get(self, entry_id: int) -> TimeEntry:
        return self._entries[self._index_of(entry_id)]

    def open_entry(self) -> Optional[TimeEntry]:
        """The single open entry, if any (the newest when several were loaded)"""
        open_entries = self.open_entries()
        return open_entries[-1] if open_entries else None

    def open_entries(self) -> List[TimeEntry]:
        """All open entries by start time. More than one only after a crash."""
        return sorted((e for e in self._entries if e.is_open), key=lambda e: e.start_time)

    def open_entry_for(self, task_id: int) -> Optional[TimeEntry]:
        return next((e for e in self._entries if e.is_open and e.task_id == task_id), None)

    def entries_for_task(self, task_id: int) -> List[TimeEntry]:
        return [e for e in self._entries if e.task_id == task_id]

    def durations_for_task(self, task_id: int) -> List[int]:
        """Chronological durations (minutes) of the task's closed entries"""
        closed = [e for e in self.entries_for_task(task_id) if not e.is_open]
        closed.sort(key=lambda e: e.start_time)
        return [e.duration or 0 for e in closed]

    def total_for_task(self, task_id: int) -> int:
        return sum(self.durations_for_task(task_id))

    def entries_in_range(self, start: datetime.datetime,
                         end: datetime.datetime) -> List[TimeEntry]:
        """
        Closed entries whose start_time lies in [start, end).

        An entry crossing a boundary belongs to the range it started in.
        """
        return [
            e for e in self._entries
            if not e.is_open and start <= e.start_time < end
        ]

    def durations_in_range(self, start: datetime.datetime,
                           end: datetime.datetime) -> List[int]:
        return [e.duration or 0 for e in self.entries_in_range(start, end)]

    def latest_closed_for_task(self, task_id: int) -> Optional[TimeEntry]:
        """Closed entry of the task with the latest end_time"""
        closed = [e for e in self.entries_for_task(task_id) if not e.is_open]
        if not closed:
            return None
        return max(closed, key=lambda e: e.end_time)

    def remove_task(self, task_id: int) -> int:
        """Drop all entries of a deleted task. Returns the number removed."""
        before = len(self._entries)
        self._entries = [e for e in self._entries if e.task_id != task_id]
        return before - len(self._entries)

    def _index_of(self, entry_id: int) -> int:
        for index, entry in enumerate(self._entries):
            if entry.id == entry_id:
                return index
        raise KeyError(f"Time entry {entry_id} not found")
