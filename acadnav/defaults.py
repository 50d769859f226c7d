"""
Built-in seed data.

Used on first run and whenever the stored data cannot be read.
Every call of default_data() generates fresh ids.
"""

from __future__ import annotations

import uuid

from acadnav.model import (
    AppData,
    Attendance,
    Semester,
    Subject,
    TimetableEntry,
    empty_timetable,
    sort_entries,
)


def generate_id() -> str:
    return uuid.uuid4().hex[:9]


# (name, credits) per semester
SEED_CURRICULUM: dict[int, list[tuple[str, int]]] = {
    1: [
        ("Engineering Mathematics - I", 4),
        ("Engineering Physics", 3),
        ("Mechanics of Solids", 3),
        ("Basic Electronics", 3),
        ("Basic Mechanical Engineering", 3),
        ("Communication Skills in English", 2),
        ("Universal Human Values and Professional Ethics (MLC)", 1),
        ("Engineering Physics Lab", 1),
        ("Workshop Practice", 1),
        ("Engineering Graphics - I", 1),
    ],
    2: [
        ("Engineering Mathematics - II", 4),
        ("Engineering Chemistry", 3),
        ("Biology for Engineers", 3),
        ("Basic Electrical Technology", 3),
        ("Problem Solving Using Computers", 3),
        ("Environmental Studies", 2),
        ("Human Rights and Constitution (MLC)", 1),
        ("Engineering Chemistry Lab", 1),
        ("PSUC Lab", 1),
        ("Engineering Graphics - II", 1),
    ],
    3: [
        ("Engineering Mathematics - III", 3),
        ("Data Structures", 4),
        ("Digital Systems and Computer Organization", 4),
        ("Object Oriented Programming", 4),
        ("Principles of Data Communication", 3),
        ("Data Structures Lab", 1),
        ("Digital Systems Lab", 1),
        ("Object Oriented Programming Lab", 1),
    ],
    4: [
        ("Engineering Mathematics - IV", 3),
        ("Database Management Systems", 3),
        ("Design and Analysis of Algorithms", 4),
        ("Computer Networks and Protocols", 3),
        ("Operating Systems", 4),
        ("Software Design Technology", 3),
        ("Database Systems Lab", 1),
        ("Operating Systems Lab", 1),
    ],
    5: [
        ("Essentials of Management", 3),
        ("Information Security", 3),
        ("Embedded System Design", 3),
        ("Wireless Communication and Computing", 4),
        ("Statistical Data Analytics", 3),
        ("Embedded System Design Lab", 1),
        ("Information Security Lab", 1),
    ],
    6: [
        ("Engineering Economics and Financial Management", 3),
        ("Network Design and Programming", 4),
        ("Data Mining", 3),
        ("Ethical Hacking", 3),
        ("Applied Data Analytics", 3),
        ("Mobile Application Development Lab", 2),
        ("Network Design and Programming Lab", 1),
    ],
    7: [
        ("PE - 3 / Minor Specialization", 3),
        ("PE - 4 / Minor Specialization", 3),
        ("PE - 5", 3),
        ("PE - 6", 3),
        ("PE - 7", 3),
        ("OE - 2 (MLC)", 0),
    ],
    8: [
        ("Internship / Project Work", 12),
        ("Professional Elective - 8", 3),
        ("Seminar", 2),
    ],
}

_ADA = ("ADA", "Applied Data Analytics")
_DM = ("DM", "Data Mining")
_EEFM = ("EEFM", "Engineering Economics and Financial Management")
_RW = ("RW", "Reporting and Writing")
_LABS = ("MADL+NDPL", "Mobile Application Development Lab + Network Design and Programming Lab")
_EH = ("EH", "Ethical Hacking")
_NPACN = ("NPACN", "Network Programming and Advanced Communication Networks")

# day -> [(course, time, start, end)]
SEED_TIMETABLE = {
    "MONDAY": [
        (_ADA, "08:00-09:00", 8, 9),
        (_DM, "09:00-10:00", 9, 10),
        (_EEFM, "10:30-11:30", 10.5, 11.5),
        (_RW, "11:30-12:30", 11.5, 12.5),
        (_LABS, "14:00-16:30", 14, 16.5),
    ],
    "TUESDAY": [
        (_EH, "13:00-14:00", 13, 14),
        (_NPACN, "14:00-15:00", 14, 15),
    ],
    "WEDNESDAY": [
        (_EH, "08:00-09:00", 8, 9),
        (_NPACN, "09:00-10:00", 9, 10),
        (_ADA, "10:30-11:30", 10.5, 11.5),
        (_DM, "11:30-12:30", 11.5, 12.5),
    ],
    "THURSDAY": [
        (_LABS, "08:30-11:00", 8.5, 11),
        (_EEFM, "13:00-14:00", 13, 14),
        (_RW, "14:00-15:00", 14, 15),
    ],
    "FRIDAY": [
        (_EEFM, "08:00-09:00", 8, 9),
        (_RW, "09:00-10:00", 9, 10),
        (_EH, "10:30-11:30", 10.5, 11.5),
        (_NPACN, "11:30-12:30", 11.5, 12.5),
    ],
    "SATURDAY": [
        (_ADA, "13:00-14:00", 13, 14),
        (_DM, "14:00-15:00", 14, 15),
        (_NPACN, "15:30-16:30", 15.5, 16.5),
    ],
}

SEED_ROOM = "AB5-306"
SEED_MAX_SEMESTER = 8
SEED_TARGET_CGPA = 9.0
SEED_CURRENT_SEMESTER = 6


def default_data() -> AppData:
    """
    Return the built-in curriculum: 8 ungraded semesters and a weekly timetable.
    """
    semesters = {
        sid: Semester(
            id=sid,
            name=f"Semester {sid}",
            subjects=tuple(
                Subject(id=generate_id(), name=name, credits=credits, grade_point=None, attendance=Attendance())
                for name, credits in subjects
            ),
        )
        for sid, subjects in SEED_CURRICULUM.items()
    }

    timetable = empty_timetable()
    for day, rows in SEED_TIMETABLE.items():
        timetable[day] = sort_entries(
            TimetableEntry(
                id=generate_id(),
                short_name=short,
                full_name=full,
                time=time,
                room=SEED_ROOM,
                start_hour=float(start),
                end_hour=float(end),
            )
            for (short, full), time, start, end in rows
        )

    return AppData(
        semesters=semesters,
        timetable=timetable,
        max_semester=SEED_MAX_SEMESTER,
        target_cgpa=SEED_TARGET_CGPA,
        current_semester=SEED_CURRENT_SEMESTER,
    )
