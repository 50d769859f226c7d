"""
Configuration constants for acadnav.

All thresholds, limits and fixed tables used across the package live here,
so adjusting a policy (e.g. the attendance threshold) is a one-line change.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------

PACKAGE_DIR = Path(__file__).resolve().parent
DATA_DIR = PACKAGE_DIR / "data"
DEFAULT_DATA_FILE = DATA_DIR / "academic_data.json"

# Top-level key of the persisted JSON document
STORAGE_KEY = "academicNavigatorData"

# Environment variables
DATA_FILE_ENV = "ACADNAV_DATA_FILE"
LOG_LEVEL_ENV = "ACADNAV_LOG_LEVEL"


# ---------------------------------------------------------------------------
# Grades & attendance
# ---------------------------------------------------------------------------

MIN_GRADE_POINT = 0.0
MAX_GRADE_POINT = 10.0

# Stored blob uses -1 for "no grade yet"; exports render it as "N/A"
UNGRADED_SENTINEL = -1
UNGRADED_LABEL = "N/A"

# Lower bounds are inclusive: 75.0 is "success", 60.0 is "warning"
ATTENDANCE_SUCCESS_THRESHOLD = 75.0
ATTENDANCE_WARNING_THRESHOLD = 60.0

ATTENDANCE_FIELDS = ("attended", "total")


# ---------------------------------------------------------------------------
# Timetable
# ---------------------------------------------------------------------------

# Sunday is not tracked
DAYS = ("MONDAY", "TUESDAY", "WEDNESDAY", "THURSDAY", "FRIDAY", "SATURDAY")
FALLBACK_DAY = "MONDAY"

COLOR_PALETTE = ("blue", "green", "purple", "orange", "pink", "teal")


@dataclass(frozen=True)
class TimeSlot:
    """One column of the weekly grid. Break slots hold no class start."""

    start: float
    end: float
    label: str
    is_break: bool = False


TIME_SLOTS = (
    TimeSlot(8.0, 9.0, "08:00-09:00"),
    TimeSlot(9.0, 10.0, "09:00-10:00"),
    TimeSlot(10.0, 10.5, "Break", is_break=True),
    TimeSlot(10.5, 11.5, "10:30-11:30"),
    TimeSlot(11.5, 12.5, "11:30-12:30"),
    TimeSlot(12.5, 13.0, "Lunch", is_break=True),
    TimeSlot(13.0, 14.0, "13:00-14:00"),
    TimeSlot(14.0, 15.0, "14:00-15:00"),
    TimeSlot(15.0, 16.0, "15:00-16:00"),
    TimeSlot(16.0, 17.0, "16:00-17:00"),
)


# ---------------------------------------------------------------------------
# Sharing
# ---------------------------------------------------------------------------

MAX_SHARE_URL_LENGTH = 8000
SHARE_FRAGMENT_PREFIX = "share="
DEFAULT_SHARE_BASE_URL = "https://acadnav.app/"
