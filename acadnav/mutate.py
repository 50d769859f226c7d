"""
State transitions on AppData.

Every function takes the current AppData and returns a new one; the input
is never modified (records are frozen, containers are rebuilt). Callers
persist the returned value and drop the old one.

Rejections:
- removing the last semester / adding beyond max_semester -> input returned unchanged
- unknown semester id -> SemesterNotFoundError
- moving a class onto an occupied interval -> ScheduleConflictError
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, List, Optional

from acadnav.config import ATTENDANCE_FIELDS, DAYS
from acadnav.conflicts import overlapping_entries
from acadnav.defaults import generate_id
from acadnav.derive import time_range
from acadnav.model import (
    AppData,
    Attendance,
    Semester,
    Subject,
    SubjectPatch,
    TimetableEntry,
    TimetableEntryPatch,
    clamp_count,
    clamp_grade,
    normalize_color,
    normalize_grade,
    sort_entries,
)

logger = logging.getLogger(__name__)


class AcademicDataError(Exception):
    """Base class for rejected mutations."""


class SemesterNotFoundError(AcademicDataError):
    def __init__(self, semester_id: int) -> None:
        super().__init__(f"Semester {semester_id} does not exist")
        self.semester_id = semester_id


class EntryNotFoundError(AcademicDataError):
    def __init__(self, day: str, entry_id: str) -> None:
        super().__init__(f"No class {entry_id!r} on {day}")
        self.day = day
        self.entry_id = entry_id


class ScheduleConflictError(AcademicDataError):
    def __init__(self, day: str, start: float, end: float, clashes: List[TimetableEntry]) -> None:
        names = ", ".join(f"{e.short_name} ({e.time})" for e in clashes)
        super().__init__(f"{day} {time_range(start, end)} overlaps with {names}")
        self.day = day
        self.clashes = clashes


def parse_day(text: str) -> str:
    """
    Normalize a day name: 'mon', 'Monday', 'MONDAY' -> 'MONDAY'.
    Raises ValueError for Sunday or anything unknown.
    """
    key = (text or "").strip().upper()
    for day in DAYS:
        if key == day or (len(key) >= 3 and day.startswith(key)):
            return day
    raise ValueError(f"Unknown or untracked day: {text!r}")


# ---------------------------------------------------------------------------
# Subjects
# ---------------------------------------------------------------------------


def _require_semester(data: AppData, semester_id: int) -> Semester:
    sem = data.semesters.get(semester_id)
    if sem is None:
        raise SemesterNotFoundError(semester_id)
    return sem


def _with_semester(data: AppData, semester: Semester) -> AppData:
    semesters = dict(data.semesters)
    semesters[semester.id] = semester
    return replace(data, semesters=semesters)


def _map_subject(
    data: AppData, semester_id: int, subject_id: str, fn: Callable[[Subject], Subject]
) -> AppData:
    sem = _require_semester(data, semester_id)
    if not any(s.id == subject_id for s in sem.subjects):
        logger.debug("Subject %s not found in semester %s", subject_id, semester_id)
        return data
    subjects = tuple(fn(s) if s.id == subject_id else s for s in sem.subjects)
    return _with_semester(data, replace(sem, subjects=subjects))


def add_subject(
    data: AppData,
    semester_id: int,
    name: str,
    credits: int,
    grade_point: Optional[float] = None,
) -> AppData:
    sem = _require_semester(data, semester_id)
    subject = Subject(
        id=generate_id(),
        name=name.strip(),
        credits=clamp_count(credits),
        grade_point=normalize_grade(grade_point),
        attendance=Attendance(0, 0),
    )
    return _with_semester(data, replace(sem, subjects=sem.subjects + (subject,)))


def remove_subject(data: AppData, semester_id: int, subject_id: str) -> AppData:
    sem = _require_semester(data, semester_id)
    subjects = tuple(s for s in sem.subjects if s.id != subject_id)
    if len(subjects) == len(sem.subjects):
        return data
    return _with_semester(data, replace(sem, subjects=subjects))


def _apply_subject_patch(subject: Subject, patch: SubjectPatch) -> Subject:
    out = subject
    if patch.name is not None:
        out = replace(out, name=patch.name.strip())
    if patch.credits is not None:
        out = replace(out, credits=clamp_count(patch.credits))
    if patch.clear_grade:
        out = replace(out, grade_point=None)
    elif patch.grade_point is not None:
        out = replace(out, grade_point=normalize_grade(patch.grade_point))
    return out


def update_subject(data: AppData, semester_id: int, subject_id: str, patch: SubjectPatch) -> AppData:
    return _map_subject(data, semester_id, subject_id, lambda s: _apply_subject_patch(s, patch))


# ---------------------------------------------------------------------------
# Semesters
# ---------------------------------------------------------------------------


def add_semester(data: AppData) -> AppData:
    """
    Append semester max(ids)+1 and make it current.
    Returns data unchanged once max_semester is reached.
    """
    new_id = max(list(data.semesters) + [0]) + 1
    if new_id > data.max_semester:
        logger.info("Semester limit reached (%s)", data.max_semester)
        return data
    semesters = dict(data.semesters)
    semesters[new_id] = Semester(id=new_id, name=f"Semester {new_id}", subjects=())
    return replace(data, semesters=semesters, current_semester=new_id)


def remove_semester(data: AppData, semester_id: int) -> AppData:
    """
    Drop a semester; the smallest remaining id becomes current.
    Returns data unchanged for the last remaining semester or an unknown id.
    """
    if semester_id not in data.semesters or len(data.semesters) <= 1:
        return data
    semesters = {sid: sem for sid, sem in data.semesters.items() if sid != semester_id}
    return replace(data, semesters=semesters, current_semester=min(semesters))


def set_current_semester(data: AppData, semester_id: int) -> AppData:
    _require_semester(data, semester_id)
    return replace(data, current_semester=semester_id)


# ---------------------------------------------------------------------------
# Attendance & target
# ---------------------------------------------------------------------------


def _delta_attendance(att: Attendance, delta: int, field: str) -> Attendance:
    new_value = max(0, getattr(att, field) + delta)
    # attended never exceeds total; total never drops below attended
    attended = min(new_value, att.total) if field == "attended" else att.attended
    total = max(new_value, att.attended) if field == "total" else att.total
    return Attendance(attended=attended, total=total)


def update_attendance_delta(
    data: AppData, semester_id: int, subject_id: str, delta: int, field: str
) -> AppData:
    if field not in ATTENDANCE_FIELDS:
        raise ValueError(f"field must be one of {ATTENDANCE_FIELDS}, got {field!r}")
    return _map_subject(
        data,
        semester_id,
        subject_id,
        lambda s: replace(s, attendance=_delta_attendance(s.attendance, delta, field)),
    )


def mark_present(data: AppData, semester_id: int, subject_id: str) -> AppData:
    # total first, otherwise attended would be capped at the old total
    data = update_attendance_delta(data, semester_id, subject_id, 1, "total")
    return update_attendance_delta(data, semester_id, subject_id, 1, "attended")


def mark_absent(data: AppData, semester_id: int, subject_id: str) -> AppData:
    return update_attendance_delta(data, semester_id, subject_id, 1, "total")


def set_attendance_absolute(
    data: AppData, semester_id: int, subject_id: str, attended: int, total: int
) -> AppData:
    total = clamp_count(total)
    attended = min(clamp_count(attended), total)
    return _map_subject(
        data,
        semester_id,
        subject_id,
        lambda s: replace(s, attendance=Attendance(attended=attended, total=total)),
    )


def set_target_average(data: AppData, value: float) -> AppData:
    return replace(data, target_cgpa=clamp_grade(value))


# ---------------------------------------------------------------------------
# Timetable
# ---------------------------------------------------------------------------


def _with_day(data: AppData, day: str, entries) -> AppData:
    timetable = dict(data.timetable)
    timetable[day] = sort_entries(entries)
    return replace(data, timetable=timetable)


def new_timetable_entry(
    short_name: str,
    start_hour: float,
    end_hour: float,
    full_name: str = "",
    room: str = "",
    time: str = "",
    color: Optional[str] = None,
) -> TimetableEntry:
    """
    Build an entry with a fresh id. `time` defaults to 'HH:MM-HH:MM'.
    Raises ValueError when end_hour <= start_hour.
    """
    start = float(start_hour)
    end = float(end_hour)
    if end <= start:
        raise ValueError(f"Class must end after it starts ({start} >= {end})")
    return TimetableEntry(
        id=generate_id(),
        short_name=short_name.strip(),
        full_name=(full_name or short_name).strip(),
        time=time or time_range(start, end),
        room=room.strip(),
        start_hour=start,
        end_hour=end,
        color=normalize_color(color),
    )


def add_timetable_entry(data: AppData, day: str, entry: TimetableEntry) -> AppData:
    """
    Insert a class (with a newly assigned id) and keep the day sorted.
    Overlaps are NOT rejected here; use conflicts.overlapping_entries first.
    """
    day = parse_day(day)
    entry = replace(entry, id=generate_id())
    return _with_day(data, day, data.timetable.get(day, ()) + (entry,))


def _apply_entry_patch(entry: TimetableEntry, patch: TimetableEntryPatch) -> TimetableEntry:
    out = entry
    for name in ("short_name", "full_name", "time", "room"):
        value = getattr(patch, name)
        if value is not None:
            out = replace(out, **{name: value})
    if patch.start_hour is not None:
        out = replace(out, start_hour=float(patch.start_hour))
    if patch.end_hour is not None:
        out = replace(out, end_hour=float(patch.end_hour))
    if patch.color is not None:
        out = replace(out, color=normalize_color(patch.color))
    if out.end_hour <= out.start_hour:
        raise ValueError(f"Class must end after it starts ({out.start_hour} >= {out.end_hour})")
    return out


def update_timetable_entry(data: AppData, day: str, entry_id: str, patch: TimetableEntryPatch) -> AppData:
    day = parse_day(day)
    entries = data.timetable.get(day, ())
    if not any(e.id == entry_id for e in entries):
        return data
    return _with_day(data, day, [_apply_entry_patch(e, patch) if e.id == entry_id else e for e in entries])


def remove_timetable_entry(data: AppData, day: str, entry_id: str) -> AppData:
    day = parse_day(day)
    entries = data.timetable.get(day, ())
    kept = [e for e in entries if e.id != entry_id]
    if len(kept) == len(entries):
        return data
    return _with_day(data, day, kept)


def move_timetable_entry(
    data: AppData, from_day: str, to_day: str, entry_id: str, new_start_hour: float
) -> AppData:
    """
    Move a class to another start time and/or day, keeping its duration.

    Raises ScheduleConflictError if the new interval overlaps another class
    on the target day; nothing changes in that case.
    """
    from_day = parse_day(from_day)
    to_day = parse_day(to_day)

    source = data.timetable.get(from_day, ())
    entry = next((e for e in source if e.id == entry_id), None)
    if entry is None:
        raise EntryNotFoundError(from_day, entry_id)

    start = float(new_start_hour)
    end = start + entry.duration

    clashes = overlapping_entries(data.timetable.get(to_day, ()), start, end, ignore_id=entry_id)
    if clashes:
        raise ScheduleConflictError(to_day, start, end, clashes)

    moved = replace(entry, start_hour=start, end_hour=end, time=time_range(start, end))

    if from_day == to_day:
        return _with_day(data, from_day, [moved if e.id == entry_id else e for e in source])

    data = _with_day(data, from_day, [e for e in source if e.id != entry_id])
    return _with_day(data, to_day, data.timetable.get(to_day, ()) + (moved,))
