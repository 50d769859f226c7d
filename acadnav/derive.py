"""
Derived values: grade averages, attendance figures and schedule lookups.

Everything here is a pure function of the records passed in. Nothing is
cached or stored; callers recompute on every render. The only inputs that
depend on the clock (current_day, upcoming_class) accept an explicit
date/hour so they can be tested.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from acadnav.config import (
    ATTENDANCE_SUCCESS_THRESHOLD,
    ATTENDANCE_WARNING_THRESHOLD,
    DAYS,
    FALLBACK_DAY,
    TimeSlot,
)
from acadnav.conflicts import overlaps
from acadnav.model import AppData, Semester, Subject, TimetableEntry


@dataclass(frozen=True)
class Average:
    average: float
    total_credits: int


@dataclass(frozen=True)
class SemesterSummary:
    id: int
    name: str
    sgpa: float
    credits: int
    subjects: int


# ---------------------------------------------------------------------------
# Grade averages
# ---------------------------------------------------------------------------


def _weighted_average(subjects: Iterable[Subject]) -> Average:
    points = 0.0
    credits = 0
    for subject in subjects:
        # ungraded subjects count neither in numerator nor denominator
        if subject.grade_point is None:
            continue
        points += subject.credits * subject.grade_point
        credits += subject.credits
    return Average(average=points / credits if credits > 0 else 0.0, total_credits=credits)


def calculate_semester_average(semester: Semester) -> Average:
    """
    Credit-weighted grade average (SGPA) of one semester.

    Returns Average(0, 0) for an empty or fully ungraded semester.
    """
    return _weighted_average(semester.subjects)


def calculate_cumulative_average(semesters: Mapping[int, Semester]) -> Average:
    """
    Credit-weighted grade average (CGPA) across all semesters.
    """
    return _weighted_average(s for sem in semesters.values() for s in sem.subjects)


def semester_summaries(data: AppData) -> List[SemesterSummary]:
    out: List[SemesterSummary] = []
    for sid in sorted(data.semesters):
        sem = data.semesters[sid]
        avg = calculate_semester_average(sem)
        out.append(
            SemesterSummary(
                id=sid,
                name=sem.name,
                sgpa=round(avg.average, 2),
                credits=avg.total_credits,
                subjects=len(sem.subjects),
            )
        )
    return out


def cgpa_trend(data: AppData) -> List[Tuple[int, float]]:
    """
    Running CGPA after each semester, in semester order: [(id, cgpa), ...].
    """
    trend: List[Tuple[int, float]] = []
    seen: List[Subject] = []
    for sid in sorted(data.semesters):
        seen.extend(data.semesters[sid].subjects)
        trend.append((sid, round(_weighted_average(seen).average, 2)))
    return trend


def grade_distribution(semesters: Mapping[int, Semester]) -> Dict[str, int]:
    """
    Count graded subjects per band: 9-10, 8-9, 7-8, <7.
    """
    bands = {"9-10": 0, "8-9": 0, "7-8": 0, "<7": 0}
    for sem in semesters.values():
        for s in sem.subjects:
            g = s.grade_point
            if g is None:
                continue
            if g >= 9:
                bands["9-10"] += 1
            elif g >= 8:
                bands["8-9"] += 1
            elif g >= 7:
                bands["7-8"] += 1
            else:
                bands["<7"] += 1
    return bands


def progress_to_target(cgpa: float, target: float) -> float:
    if target <= 0:
        return 0.0
    return cgpa / target * 100


# ---------------------------------------------------------------------------
# Attendance
# ---------------------------------------------------------------------------


def attendance_percentage(subject: Subject) -> float:
    """
    attended / total * 100, or 100 when no classes were recorded yet.
    Not clamped; display code may clamp.
    """
    att = subject.attendance
    if att.total == 0:
        return 100.0
    return att.attended / att.total * 100


def attendance_status(percentage: float) -> str:
    if percentage >= ATTENDANCE_SUCCESS_THRESHOLD:
        return "success"
    if percentage >= ATTENDANCE_WARNING_THRESHOLD:
        return "warning"
    return "danger"


def overall_attendance(semester: Semester) -> Tuple[int, int, float]:
    """
    Sum attendance over all subjects of a semester.
    Returns (attended, total, percentage).
    """
    attended = sum(s.attendance.attended for s in semester.subjects)
    total = sum(s.attendance.total for s in semester.subjects)
    pct = attended / total * 100 if total > 0 else 100.0
    return attended, total, pct


def subjects_at_risk(semester: Semester, threshold: float = ATTENDANCE_SUCCESS_THRESHOLD) -> List[Subject]:
    return [s for s in semester.subjects if attendance_percentage(s) < threshold]


# ---------------------------------------------------------------------------
# Schedule
# ---------------------------------------------------------------------------


def fractional_hour(moment: datetime) -> float:
    return moment.hour + moment.minute / 60


def format_hour(hour: float) -> str:
    """10.5 -> '10:30'"""
    minutes = int(round(hour * 60))
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def time_range(start: float, end: float) -> str:
    return f"{format_hour(start)}-{format_hour(end)}"


def current_day(today: Optional[date] = None) -> str:
    """
    Map today's weekday to a tracked day name.

    Sunday is not tracked and falls back to FALLBACK_DAY.
    """
    d = today if today is not None else date.today()
    weekday = d.weekday()
    if weekday < len(DAYS):
        return DAYS[weekday]
    return FALLBACK_DAY


def class_at_time(day_entries: Iterable[TimetableEntry], hour: float) -> Optional[TimetableEntry]:
    """
    Return the class running at `hour` (start <= hour < end), if any.
    """
    for entry in day_entries:
        if entry.start_hour <= hour < entry.end_hour:
            return entry
    return None


def upcoming_class(day_entries: Iterable[TimetableEntry], now: Optional[float] = None) -> Optional[TimetableEntry]:
    """
    Return the class that is running now or comes next today.

    `now` is a fractional hour; defaults to the wall clock.
    """
    if now is None:
        now = fractional_hour(datetime.now())
    for entry in sorted(day_entries, key=lambda e: e.start_hour):
        if entry.end_hour > now:
            return entry
    return None


def class_state(entry: TimetableEntry, now: float) -> str:
    if now >= entry.end_hour:
        return "past"
    if now >= entry.start_hour:
        return "current"
    return "upcoming"


def column_span(entry: TimetableEntry, slots: Sequence[TimeSlot], start_index: int) -> int:
    """
    Count the contiguous slots, from start_index on, that the entry covers.

    Break slots are counted too, so a class running 08:30-11:00 spans
    through the 10:00 break.
    """
    span = 0
    for slot in slots[start_index:]:
        if entry.end_hour > slot.start:
            span += 1
        else:
            break
    return span


@dataclass(frozen=True)
class GridCell:
    """
    One cell of a day row in the week grid: `span` slots starting at
    `start`, holding every class that falls inside them (empty for a free
    slot, more than one when classes share a slot).
    """

    start: int
    span: int
    entries: Tuple[TimetableEntry, ...] = ()


def _covering(
    entries: Sequence[TimetableEntry], slots: Sequence[TimeSlot], first: int, last: int
) -> List[TimetableEntry]:
    return [
        e
        for e in entries
        if any(overlaps(e.start_hour, e.end_hour, s.start, s.end) for s in slots[first : last + 1])
    ]


def grid_row(day_entries: Iterable[TimetableEntry], slots: Sequence[TimeSlot]) -> List[GridCell]:
    """
    Lay out one day over the slot grid.

    A class starting at 08:30 still occupies the 08:00 slot. A cell grows
    until no class in it runs into the next slot, so classes sharing a slot
    end up in the same cell instead of hiding each other.
    """
    entries = sorted(day_entries, key=lambda e: e.start_hour)
    cells: List[GridCell] = []
    i = 0
    while i < len(slots):
        inside = _covering(entries, slots, i, i)
        if not inside:
            cells.append(GridCell(start=i, span=1))
            i += 1
            continue
        span = 1
        while True:
            wanted = min(max(column_span(e, slots, i) for e in inside), len(slots) - i)
            if wanted <= span:
                break
            span = wanted
            inside = _covering(entries, slots, i, i + span - 1)
        cells.append(GridCell(start=i, span=span, entries=tuple(inside)))
        i += span
    return cells
