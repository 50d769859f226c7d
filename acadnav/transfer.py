"""
JSON import and export.

Import format:

    {
      "targetCGPA": 9.0,
      "semesters": [
        {"id": 1, "name": "Semester 1",
         "subjects": [{"name": "Data Mining", "credits": 3, "gradePoint": 8 | "N/A"}]}
      ]
    }

An import is all-or-nothing: the whole document is validated before
anything is built, and a rejected import leaves the caller's AppData as is.
The export snapshot is a superset of the import format, so an exported
file can be imported again.
"""

from __future__ import annotations

import json
import logging
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

from acadnav.config import DAYS, UNGRADED_LABEL
from acadnav.defaults import generate_id
from acadnav.derive import calculate_cumulative_average, calculate_semester_average
from acadnav.model import (
    AppData,
    Attendance,
    Semester,
    Subject,
    clamp_count,
    clamp_grade,
    entry_to_dict,
    normalize_grade,
)

logger = logging.getLogger(__name__)


class ImportValidationError(ValueError):
    """The import document is malformed; nothing was imported."""


def _validate(payload: Any) -> List[Dict[str, Any]]:
    if not isinstance(payload, dict) or not isinstance(payload.get("semesters"), list):
        raise ImportValidationError("Invalid format: missing semesters array")
    semesters = payload["semesters"]
    if not semesters:
        raise ImportValidationError("Invalid format: semesters array is empty")
    seen: Set[int] = set()
    for index, sem in enumerate(semesters, start=1):
        if not isinstance(sem, dict) or not isinstance(sem.get("subjects"), list):
            raise ImportValidationError("Invalid semester format: missing subjects array")
        for subj in sem["subjects"]:
            if not isinstance(subj, dict) or "name" not in subj or "credits" not in subj:
                raise ImportValidationError("Invalid subject format: missing name or credits")
        sid = _semester_id(sem, index)
        if sid in seen:
            raise ImportValidationError(f"Invalid format: duplicate semester id {sid}")
        seen.add(sid)
    return semesters


def _semester_id(raw: Dict[str, Any], index: int) -> int:
    # missing or unusable ids fall back to the 1-based position
    sid = _parse_int(raw.get("id"), index)
    return sid if sid >= 1 else index


def _parse_grade(raw: Any) -> Optional[float]:
    if raw is None or raw == UNGRADED_LABEL:
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    return normalize_grade(value)


def _parse_int(raw: Any, default: int) -> int:
    try:
        return int(raw)
    except (TypeError, ValueError):
        return default


def _build_subject(raw: Dict[str, Any]) -> Subject:
    att = raw.get("attendance") if isinstance(raw.get("attendance"), dict) else {}
    total = clamp_count(_parse_int(att.get("total"), 0))
    attended = min(clamp_count(_parse_int(att.get("attended"), 0)), total)
    return Subject(
        id=generate_id(),
        name=str(raw["name"]).strip(),
        credits=clamp_count(_parse_int(raw["credits"], 0)),
        grade_point=_parse_grade(raw.get("gradePoint")),
        attendance=Attendance(attended=attended, total=total),
    )


def import_data(data: AppData, payload: Any) -> AppData:
    """
    Replace semesters (and target, if given) with the imported ones.
    The timetable is kept.

    Raises ImportValidationError without building anything if the payload
    is malformed.
    """
    raw_semesters = _validate(payload)

    semesters: Dict[int, Semester] = {}
    for index, raw in enumerate(raw_semesters, start=1):
        sid = _semester_id(raw, index)
        semesters[sid] = Semester(
            id=sid,
            name=str(raw.get("name") or f"Semester {sid}"),
            subjects=tuple(_build_subject(s) for s in raw["subjects"]),
        )

    target = data.target_cgpa
    if "targetCGPA" in payload:
        try:
            target = clamp_grade(float(payload["targetCGPA"]))
        except (TypeError, ValueError):
            logger.warning("Ignoring invalid targetCGPA %r", payload["targetCGPA"])

    current = data.current_semester if data.current_semester in semesters else min(semesters)
    logger.info("Imported %d semesters", len(semesters))
    return replace(
        data,
        semesters=semesters,
        max_semester=max(data.max_semester, max(semesters)),
        target_cgpa=target,
        current_semester=current,
    )


def import_file(data: AppData, path: str | Path) -> AppData:
    """
    Read a JSON file and import it. Unreadable files are reported as
    ImportValidationError as well.
    """
    try:
        payload = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ImportValidationError(f"Could not read {path}: {e}") from e
    return import_data(data, payload)


def export_snapshot(data: AppData) -> Dict[str, Any]:
    """
    JSON-ready snapshot with computed averages; ungraded subjects show "N/A".
    """
    cgpa = calculate_cumulative_average(data.semesters)
    semesters = []
    for sid in sorted(data.semesters):
        sem = data.semesters[sid]
        avg = calculate_semester_average(sem)
        semesters.append(
            {
                "id": sem.id,
                "name": sem.name,
                "sgpa": round(avg.average, 2),
                "totalCredits": avg.total_credits,
                "subjects": [
                    {
                        "name": s.name,
                        "credits": s.credits,
                        "gradePoint": UNGRADED_LABEL if s.grade_point is None else s.grade_point,
                        "attendance": {"attended": s.attendance.attended, "total": s.attendance.total},
                    }
                    for s in sem.subjects
                ],
            }
        )

    return {
        "exportedAt": datetime.now().isoformat(timespec="seconds"),
        "targetCGPA": data.target_cgpa,
        "cgpa": round(cgpa.average, 2),
        "totalCredits": cgpa.total_credits,
        "semesters": semesters,
        "timetable": {day: [entry_to_dict(e) for e in data.timetable.get(day, ())] for day in DAYS},
    }


def export_json(data: AppData, out_path: str | Path) -> Path:
    out = Path(out_path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(json.dumps(export_snapshot(data), indent=2, ensure_ascii=False), encoding="utf-8")
    return out
