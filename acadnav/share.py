"""
Shareable link: the tracked data packed into a URL fragment.

    https://acadnav.app/#share=<payload>

The payload is a reduced snapshot (short keys, no ids) serialized as
compact JSON, zlib-compressed and URL-safe base64 encoded without padding.
Links longer than MAX_SHARE_URL_LENGTH are refused; JSON export is the
way to move larger datasets.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import zlib
from typing import Any, Dict

from acadnav.config import DAYS, DEFAULT_SHARE_BASE_URL, MAX_SHARE_URL_LENGTH, SHARE_FRAGMENT_PREFIX
from acadnav.defaults import generate_id
from acadnav.model import (
    AppData,
    Attendance,
    Semester,
    Subject,
    TimetableEntry,
    clamp_count,
    clamp_grade,
    empty_timetable,
    normalize_color,
    normalize_grade,
    sort_entries,
)

logger = logging.getLogger(__name__)


class ShareLinkError(ValueError):
    """The share link could not be produced or read."""


class ShareLinkTooLongError(ShareLinkError):
    def __init__(self, length: int) -> None:
        super().__init__(
            f"Share link would be {length} characters (limit {MAX_SHARE_URL_LENGTH}). "
            "Please use JSON export instead."
        )
        self.length = length


def share_payload(data: AppData) -> Dict[str, Any]:
    return {
        "t": data.target_cgpa,
        "m": data.max_semester,
        "c": data.current_semester,
        "s": [
            {
                "i": sem.id,
                "n": sem.name,
                "sub": [
                    {
                        "n": s.name,
                        "c": s.credits,
                        "g": s.grade_point,
                        "a": [s.attendance.attended, s.attendance.total],
                    }
                    for s in sem.subjects
                ],
            }
            for _, sem in sorted(data.semesters.items())
        ],
        "tt": {
            day: [
                {
                    "s": e.short_name,
                    "f": e.full_name,
                    "tm": e.time,
                    "r": e.room,
                    "sh": e.start_hour,
                    "eh": e.end_hour,
                    "c": e.color,
                }
                for e in data.timetable.get(day, ())
            ]
            for day in DAYS
            if data.timetable.get(day)
        },
    }


def compress(obj: Any) -> str:
    raw = json.dumps(obj, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    packed = zlib.compress(raw, 9)
    return base64.urlsafe_b64encode(packed).decode("ascii").rstrip("=")


def decompress(text: str) -> Any:
    """
    Inverse of compress(). Raises ShareLinkError on any malformed input.
    """
    padded = text.strip() + "=" * (-len(text.strip()) % 4)
    try:
        packed = base64.urlsafe_b64decode(padded.encode("ascii"))
        return json.loads(zlib.decompress(packed).decode("utf-8"))
    except (binascii.Error, zlib.error, UnicodeError, ValueError) as e:
        raise ShareLinkError(f"Share link is corrupted: {e}") from e


def build_share_url(data: AppData, base_url: str = DEFAULT_SHARE_BASE_URL) -> str:
    url = f"{base_url.split('#', 1)[0]}#{SHARE_FRAGMENT_PREFIX}{compress(share_payload(data))}"
    if len(url) > MAX_SHARE_URL_LENGTH:
        logger.warning("Share link too long: %d characters", len(url))
        raise ShareLinkTooLongError(len(url))
    return url


def _restore(payload: Dict[str, Any]) -> AppData:
    semesters: Dict[int, Semester] = {}
    for sem in payload["s"]:
        sid = int(sem["i"])
        subjects = []
        for s in sem["sub"]:
            attended, total = (int(x) for x in s.get("a", [0, 0]))
            total = clamp_count(total)
            subjects.append(
                Subject(
                    id=generate_id(),
                    name=str(s["n"]),
                    credits=clamp_count(s["c"]),
                    grade_point=normalize_grade(s.get("g")),
                    attendance=Attendance(attended=min(clamp_count(attended), total), total=total),
                )
            )
        semesters[sid] = Semester(id=sid, name=str(sem["n"]), subjects=tuple(subjects))
    if not semesters:
        raise ValueError("no semesters in share link")

    timetable = empty_timetable()
    for day, entries in dict(payload.get("tt") or {}).items():
        if day not in timetable:
            continue
        timetable[day] = sort_entries(
            TimetableEntry(
                id=generate_id(),
                short_name=str(e["s"]),
                full_name=str(e.get("f", "")),
                time=str(e.get("tm", "")),
                room=str(e.get("r", "")),
                start_hour=float(e["sh"]),
                end_hour=float(e["eh"]),
                color=normalize_color(e.get("c")),
            )
            for e in entries
        )

    current = int(payload.get("c", min(semesters)))
    return AppData(
        semesters=semesters,
        timetable=timetable,
        max_semester=max(int(payload.get("m", max(semesters))), max(semesters)),
        target_cgpa=clamp_grade(float(payload.get("t", 0.0))),
        current_semester=current if current in semesters else min(semesters),
    )


def load_share_url(url: str) -> AppData:
    """
    Rebuild AppData from a share link (or a bare payload). Ids are regenerated.
    """
    fragment = url.split("#", 1)[1] if "#" in url else url
    if fragment.startswith(SHARE_FRAGMENT_PREFIX):
        fragment = fragment[len(SHARE_FRAGMENT_PREFIX):]
    payload = decompress(fragment)
    try:
        return _restore(payload)
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise ShareLinkError(f"Share link does not contain valid data: {e}") from e
