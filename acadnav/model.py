"""
Central data model definitions used across the project.

This module defines the canonical structure of the tracked records so that:
- all modules share the same field names
- the persisted JSON blob and the in-memory objects stay in sync
- mutations can work copy-on-write (all records are frozen)

A subject's grade is either a number in [0, 10] or None ("not graded yet").
The stored blob keeps the historic -1 sentinel; the conversion happens only
in the to_dict/from_dict helpers below.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from acadnav.config import (
    COLOR_PALETTE,
    DAYS,
    MAX_GRADE_POINT,
    MIN_GRADE_POINT,
    UNGRADED_SENTINEL,
)


@dataclass(frozen=True)
class GradeBand:
    grade: str
    point: float
    description: str


GRADE_SCALE: Tuple[GradeBand, ...] = (
    GradeBand("O", 10.0, "Outstanding"),
    GradeBand("A+", 9.0, "Excellent"),
    GradeBand("A", 8.0, "Very Good"),
    GradeBand("B+", 7.0, "Good"),
    GradeBand("B", 6.0, "Above Average"),
    GradeBand("C", 5.0, "Average"),
    GradeBand("P", 4.0, "Pass"),
    GradeBand("F", 0.0, "Fail"),
)


def grade_for_point(point: Optional[float]) -> str:
    """
    Return the letter of the highest band whose point is <= the given point.
    Ungraded subjects return "-".
    """
    if point is None:
        return "-"
    for band in GRADE_SCALE:
        if point >= band.point:
            return band.grade
    return GRADE_SCALE[-1].grade


# ---------------------------------------------------------------------------
# Clamps
# ---------------------------------------------------------------------------


def clamp_grade(value: Optional[float]) -> Optional[float]:
    if value is None:
        return None
    return max(MIN_GRADE_POINT, min(MAX_GRADE_POINT, float(value)))


def normalize_grade(value: Optional[float]) -> Optional[float]:
    """
    Grade point of a subject: None and any negative value (the -1 sentinel)
    mean ungraded, everything else is clamped to [0, 10].
    """
    if value is None or float(value) < 0:
        return None
    return clamp_grade(value)



def clamp_count(value: int) -> int:
    return max(0, int(value))


def normalize_color(value: Optional[str]) -> Optional[str]:
    # unknown tags are dropped rather than rejected
    if not value:
        return None
    tag = str(value).strip().lower()
    return tag if tag in COLOR_PALETTE else None


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Attendance:
    attended: int = 0
    total: int = 0


@dataclass(frozen=True)
class Subject:
    """
    One subject of a semester.

    grade_point is None until a grade is entered; such subjects are left out
    of every average.
    """

    id: str
    name: str
    credits: int
    grade_point: Optional[float] = None
    attendance: Attendance = field(default_factory=Attendance)

    @property
    def is_graded(self) -> bool:
        return self.grade_point is not None


@dataclass(frozen=True)
class Semester:
    id: int
    name: str
    subjects: Tuple[Subject, ...] = ()


@dataclass(frozen=True)
class TimetableEntry:
    """
    One weekly class. Hours are fractional (10.5 == 10:30); `time` is only
    the display string shown next to the class.
    """

    id: str
    short_name: str
    full_name: str
    time: str
    room: str
    start_hour: float
    end_hour: float
    color: Optional[str] = None

    @property
    def duration(self) -> float:
        return self.end_hour - self.start_hour


Timetable = Dict[str, Tuple[TimetableEntry, ...]]


@dataclass(frozen=True)
class AppData:
    """
    Root of all tracked state. Persisted and restored as one unit.
    """

    semesters: Dict[int, Semester]
    timetable: Timetable
    max_semester: int
    target_cgpa: float
    current_semester: int

    def to_dict(self) -> Dict[str, Any]:
        return app_data_to_dict(self)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "AppData":
        return app_data_from_dict(raw)


@dataclass(frozen=True)
class SubjectPatch:
    """
    Partial update for a Subject. None means "leave unchanged";
    clear_grade=True resets the subject to ungraded.
    """

    name: Optional[str] = None
    credits: Optional[int] = None
    grade_point: Optional[float] = None
    clear_grade: bool = False


@dataclass(frozen=True)
class TimetableEntryPatch:
    short_name: Optional[str] = None
    full_name: Optional[str] = None
    time: Optional[str] = None
    room: Optional[str] = None
    start_hour: Optional[float] = None
    end_hour: Optional[float] = None
    color: Optional[str] = None


def empty_timetable() -> Timetable:
    return {day: () for day in DAYS}


def sort_entries(entries) -> Tuple[TimetableEntry, ...]:
    return tuple(sorted(entries, key=lambda e: e.start_hour))


# ---------------------------------------------------------------------------
# Blob codec (camelCase layout of the persisted document)
# ---------------------------------------------------------------------------


def _grade_to_raw(grade: Optional[float]) -> float:
    return UNGRADED_SENTINEL if grade is None else grade


def _grade_from_raw(raw: Any) -> Optional[float]:
    return normalize_grade(raw)


def subject_to_dict(subject: Subject) -> Dict[str, Any]:
    return {
        "id": subject.id,
        "name": subject.name,
        "credits": subject.credits,
        "gradePoint": _grade_to_raw(subject.grade_point),
        "attendance": {
            "attended": subject.attendance.attended,
            "total": subject.attendance.total,
        },
    }


def subject_from_dict(raw: Dict[str, Any]) -> Subject:
    att = raw.get("attendance") or {}
    total = clamp_count(att.get("total", 0))
    attended = min(clamp_count(att.get("attended", 0)), total)
    return Subject(
        id=str(raw["id"]),
        name=str(raw["name"]),
        credits=clamp_count(raw["credits"]),
        grade_point=_grade_from_raw(raw.get("gradePoint")),
        attendance=Attendance(attended=attended, total=total),
    )


def entry_to_dict(entry: TimetableEntry) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "id": entry.id,
        "shortName": entry.short_name,
        "fullName": entry.full_name,
        "time": entry.time,
        "room": entry.room,
        "startHour": entry.start_hour,
        "endHour": entry.end_hour,
    }
    if entry.color:
        out["color"] = entry.color
    return out


def entry_from_dict(raw: Dict[str, Any]) -> TimetableEntry:
    start = float(raw["startHour"])
    end = float(raw["endHour"])
    if end <= start:
        raise ValueError(f"Entry {raw.get('id')!r} ends before it starts")
    return TimetableEntry(
        id=str(raw["id"]),
        short_name=str(raw.get("shortName", "")),
        full_name=str(raw.get("fullName", "")),
        time=str(raw.get("time", "")),
        room=str(raw.get("room", "")),
        start_hour=start,
        end_hour=end,
        color=normalize_color(raw.get("color")),
    )


def app_data_to_dict(data: AppData) -> Dict[str, Any]:
    return {
        "semesters": {
            str(sid): {
                "id": sem.id,
                "name": sem.name,
                "subjects": [subject_to_dict(s) for s in sem.subjects],
            }
            for sid, sem in sorted(data.semesters.items())
        },
        "timetable": {day: [entry_to_dict(e) for e in data.timetable.get(day, ())] for day in DAYS},
        "maxSemester": data.max_semester,
        "targetCGPA": data.target_cgpa,
        "currentSemester": data.current_semester,
    }


def app_data_from_dict(raw: Dict[str, Any]) -> AppData:
    """
    Build AppData from the persisted blob.

    Raises KeyError/TypeError/ValueError on structurally broken input;
    the storage layer turns those into a fallback to the seed data.
    """
    semesters: Dict[int, Semester] = {}
    for key, sem_raw in dict(raw["semesters"]).items():
        sid = int(sem_raw.get("id", key))
        semesters[sid] = Semester(
            id=sid,
            name=str(sem_raw.get("name") or f"Semester {sid}"),
            subjects=tuple(subject_from_dict(s) for s in sem_raw.get("subjects", [])),
        )
    if not semesters:
        raise ValueError("AppData needs at least one semester")

    timetable = empty_timetable()
    for day, entries in dict(raw.get("timetable") or {}).items():
        day_key = str(day).upper()
        if day_key not in timetable:
            continue
        timetable[day_key] = sort_entries(entry_from_dict(e) for e in entries)

    max_semester = int(raw.get("maxSemester", max(semesters)))
    current = int(raw.get("currentSemester", min(semesters)))
    if current not in semesters:
        current = min(semesters)

    return AppData(
        semesters=semesters,
        timetable=timetable,
        max_semester=max(max_semester, max(semesters)),
        target_cgpa=clamp_grade(float(raw.get("targetCGPA", 0.0))),
        current_semester=current,
    )
