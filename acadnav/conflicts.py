"""
Conflict detection for the weekly timetable.

Two classes clash if they are on the same day and their hour intervals overlap.
Overlap rule:
    start < other_end AND end > other_start

Touching endpoints (one class ends at 10.0, the next starts at 10.0) are fine.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Tuple

from acadnav.config import DAYS
from acadnav.model import Timetable, TimetableEntry


def overlaps(a_start: float, a_end: float, b_start: float, b_end: float) -> bool:
    return a_start < b_end and a_end > b_start


def overlapping_entries(
    day_entries: Iterable[TimetableEntry],
    start: float,
    end: float,
    ignore_id: Optional[str] = None,
) -> List[TimetableEntry]:
    """
    Return the entries of one day that overlap [start, end).
    The entry with ignore_id (the one being moved) is skipped.
    """
    return [
        e
        for e in day_entries
        if e.id != ignore_id and overlaps(start, end, e.start_hour, e.end_hour)
    ]


def find_conflicts(timetable: Timetable) -> List[Tuple[str, TimetableEntry, TimetableEntry]]:
    """
    Find overlapping entry pairs (day, A, B); each pair appears once (i<j).
    """
    conflicts: List[Tuple[str, TimetableEntry, TimetableEntry]] = []

    for day in DAYS:
        entries = sorted(timetable.get(day, ()), key=lambda e: e.start_hour)
        # O(n^2) is fine for a handful of classes per day
        for i in range(len(entries)):
            a = entries[i]
            for j in range(i + 1, len(entries)):
                b = entries[j]
                if overlaps(a.start_hour, a.end_hour, b.start_hour, b.end_hour):
                    conflicts.append((day, a, b))

    return conflicts
