"""
CLI (Command Line Interface).

Quick terminal commands on top of the stored data, e.g.:

    acadnav summary
    acadnav add-subject "Data Mining" --credits 3 --grade 8
    acadnav present 2
    acadnav timetable --day mon
    acadnav move-class mon 3 15:00 --to fri
    acadnav export-html report.html
    acadnav interactive

Subjects and classes can be referred to by their list number (as printed by
`subjects` / `timetable`) or by their id.

Every mutating command loads the data file, applies one change and writes
the file back. The interactive UI lives in acadnav/interactive.py.
"""

from __future__ import annotations

import argparse
import logging
import os
from typing import Callable, Optional, Sequence

from acadnav.config import LOG_LEVEL_ENV, UNGRADED_LABEL
from acadnav.conflicts import find_conflicts, overlapping_entries
from acadnav.derive import (
    attendance_percentage,
    attendance_status,
    calculate_cumulative_average,
    calculate_semester_average,
    cgpa_trend,
    current_day,
    grade_distribution,
    overall_attendance,
    progress_to_target,
    semester_summaries,
    subjects_at_risk,
    upcoming_class,
)
from acadnav.model import (
    AppData,
    Semester,
    Subject,
    SubjectPatch,
    TimetableEntry,
    grade_for_point,
    normalize_grade,
)
from acadnav import mutate
from acadnav.mutate import AcademicDataError, parse_day
from acadnav.report import write_report
from acadnav.share import ShareLinkError, build_share_url, load_share_url
from acadnav.storage import load_data, resolve_path, save_data
from acadnav.transfer import ImportValidationError, export_json, import_file


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def parse_hour(text: str) -> float:
    """
    Accept '10:30' or '10.5'. Raises ValueError otherwise.
    """
    raw = (text or "").strip()
    if ":" in raw:
        h, m = raw.split(":", 1)
        hours, minutes = int(h), int(m)
        if not (0 <= hours <= 23 and 0 <= minutes <= 59):
            raise ValueError(f"Invalid time value: {text!r}")
        return hours + minutes / 60
    value = float(raw)
    if not (0 <= value <= 24):
        raise ValueError(f"Invalid time value: {text!r}")
    return value


def _parse_grade(text: str) -> Optional[float]:
    """None means 'ungraded' (N/A, NA, - or any negative number)."""
    if text.strip().upper() in (UNGRADED_LABEL, "NA", "-"):
        return None
    return normalize_grade(float(text))


def _fmt_grade(subject: Subject) -> str:
    if subject.grade_point is None:
        return UNGRADED_LABEL
    return f"{subject.grade_point:.1f} ({grade_for_point(subject.grade_point)})"


def _semester(data: AppData, args: argparse.Namespace) -> Semester:
    sid = args.semester if getattr(args, "semester", None) is not None else data.current_semester
    sem = data.semesters.get(sid)
    if sem is None:
        raise mutate.SemesterNotFoundError(sid)
    return sem


def _resolve_subject(sem: Semester, ref: str) -> Optional[Subject]:
    ref = (ref or "").strip()
    if ref.isdigit() and 1 <= int(ref) <= len(sem.subjects):
        return sem.subjects[int(ref) - 1]
    return next((s for s in sem.subjects if s.id == ref), None)


def _resolve_entry(entries: Sequence[TimetableEntry], ref: str) -> Optional[TimetableEntry]:
    ref = (ref or "").strip()
    if ref.isdigit() and 1 <= int(ref) <= len(entries):
        return entries[int(ref) - 1]
    return next((e for e in entries if e.id == ref), None)


def _entry_line(entry: TimetableEntry) -> str:
    bits = [entry.time, entry.short_name, entry.full_name]
    if entry.room:
        bits.append(f"@ {entry.room}")
    return " | ".join(b for b in bits if b)


def _commit(old: AppData, new: AppData, args: argparse.Namespace, message: str) -> int:
    """
    Persist a mutation result. Returns the command exit code.
    """
    if new is old:
        print("Nothing changed.")
        return 0
    if not save_data(new, args.data):
        print(f"Warning: could not write {resolve_path(args.data)}; change not saved.")
        return 1
    print(message)
    return 0


# ---------------------------------------------------------------------------
# Read-only commands
# ---------------------------------------------------------------------------


def _cmd_summary(args: argparse.Namespace, data: AppData) -> int:
    sem = _semester(data, args)
    sgpa = calculate_semester_average(sem)
    cgpa = calculate_cumulative_average(data.semesters)
    attended, total, pct = overall_attendance(sem)

    print(f"Current semester: {sem.name}")
    print(f"SGPA: {sgpa.average:.2f} ({sgpa.total_credits} credits this semester)")
    print(f"CGPA: {cgpa.average:.2f} ({cgpa.total_credits} total credits)")
    print(
        f"Target CGPA: {data.target_cgpa:.2f} "
        f"({progress_to_target(cgpa.average, data.target_cgpa):.0f}% achieved)"
    )
    print(f"Attendance: {pct:.1f}% ({attended}/{total} classes, {attendance_status(pct)})")
    at_risk = subjects_at_risk(sem)
    if at_risk:
        print(f"Subjects below 75%: {', '.join(s.name for s in at_risk)}")
    return 0


def _cmd_subjects(args: argparse.Namespace, data: AppData) -> int:
    sem = _semester(data, args)
    print(f"{sem.name} (id {sem.id})")
    if not sem.subjects:
        print("No subjects.")
        return 0
    for i, s in enumerate(sem.subjects, start=1):
        print(f"{i:>2}) {s.id} | {s.name} | {s.credits} cr | {_fmt_grade(s)}")
    return 0


def _cmd_attendance(args: argparse.Namespace, data: AppData) -> int:
    sem = _semester(data, args)
    if not sem.subjects:
        print("No subjects in this semester.")
        return 0
    for i, s in enumerate(sem.subjects, start=1):
        pct = attendance_percentage(s)
        print(
            f"{i:>2}) {s.name} | {s.attendance.attended}/{s.attendance.total} | "
            f"{min(pct, 100.0):.1f}% {attendance_status(pct)}"
        )
    attended, total, pct = overall_attendance(sem)
    print(f"Overall: {attended}/{total} ({pct:.1f}%)")
    return 0


def _cmd_timetable(args: argparse.Namespace, data: AppData) -> int:
    days = [parse_day(args.day)] if args.day else list(data.timetable)
    for day in days:
        entries = data.timetable.get(day, ())
        print(day)
        if not entries:
            print("  (no classes)")
        for i, e in enumerate(entries, start=1):
            print(f"  {i}) {_entry_line(e)}")
    return 0


def _cmd_next(args: argparse.Namespace, data: AppData) -> int:
    day = parse_day(args.day) if args.day else current_day()
    now = parse_hour(args.at) if args.at else None
    entry = upcoming_class(data.timetable.get(day, ()), now)
    if entry is None:
        print("No more classes today.")
        return 0
    print(f"Up next ({day}): {_entry_line(entry)}")
    return 0


def _cmd_conflicts(args: argparse.Namespace, data: AppData) -> int:
    confs = find_conflicts(data.timetable)
    if not confs:
        print("No conflicts found.")
        return 0
    print(f"Conflicts found: {len(confs)}")
    for day, a, b in confs:
        print(f"- {day}: {_entry_line(a)}  <->  {_entry_line(b)}")
    return 0


def _cmd_analytics(args: argparse.Namespace, data: AppData) -> int:
    trend = dict(cgpa_trend(data))
    print("Semester | SGPA | Graded credits | Subjects | CGPA after")
    for summary in semester_summaries(data):
        print(
            f"{summary.name} | {summary.sgpa:.2f} | {summary.credits} | "
            f"{summary.subjects} | {trend[summary.id]:.2f}"
        )
    dist = grade_distribution(data.semesters)
    print("Grade distribution: " + ", ".join(f"{band}: {count}" for band, count in dist.items()))
    return 0


# ---------------------------------------------------------------------------
# Mutating commands
# ---------------------------------------------------------------------------


def _cmd_add_subject(args: argparse.Namespace, data: AppData) -> int:
    name = (args.name or "").strip()
    if not name:
        print("Please provide a subject name.")
        return 1
    sem = _semester(data, args)
    grade = _parse_grade(args.grade) if args.grade is not None else None
    new = mutate.add_subject(data, sem.id, name, args.credits, grade)
    return _commit(data, new, args, f"Added: {name} to {sem.name}")


def _with_subject(
    args: argparse.Namespace, data: AppData, fn: Callable[[AppData, int, str], AppData], verb: str
) -> int:
    sem = _semester(data, args)
    subject = _resolve_subject(sem, args.subject)
    if subject is None:
        print(f"Subject not found: {args.subject}")
        return 1
    new = fn(data, sem.id, subject.id)
    return _commit(data, new, args, f"{verb}: {subject.name}")


def _cmd_remove_subject(args: argparse.Namespace, data: AppData) -> int:
    return _with_subject(args, data, mutate.remove_subject, "Removed")


def _cmd_grade(args: argparse.Namespace, data: AppData) -> int:
    grade = _parse_grade(args.value)
    patch = SubjectPatch(clear_grade=True) if grade is None else SubjectPatch(grade_point=grade)
    return _with_subject(
        args, data, lambda d, sid, subj: mutate.update_subject(d, sid, subj, patch), "Grade updated"
    )


def _cmd_present(args: argparse.Namespace, data: AppData) -> int:
    return _with_subject(args, data, mutate.mark_present, "Marked present")


def _cmd_absent(args: argparse.Namespace, data: AppData) -> int:
    return _with_subject(args, data, mutate.mark_absent, "Marked absent")


def _cmd_set_attendance(args: argparse.Namespace, data: AppData) -> int:
    return _with_subject(
        args,
        data,
        lambda d, sid, subj: mutate.set_attendance_absolute(d, sid, subj, args.attended, args.total),
        "Attendance set",
    )


def _cmd_add_semester(args: argparse.Namespace, data: AppData) -> int:
    new = mutate.add_semester(data)
    if new is data:
        print(f"Maximum of {data.max_semester} semesters reached.")
        return 1
    return _commit(data, new, args, f"Added: Semester {new.current_semester}")


def _cmd_remove_semester(args: argparse.Namespace, data: AppData) -> int:
    if args.id not in data.semesters:
        print(f"Semester {args.id} does not exist.")
        return 1
    new = mutate.remove_semester(data, args.id)
    if new is data:
        print("Cannot remove the last remaining semester.")
        return 1
    return _commit(data, new, args, f"Removed semester {args.id} (current: {new.current_semester})")


def _cmd_use_semester(args: argparse.Namespace, data: AppData) -> int:
    new = mutate.set_current_semester(data, args.id)
    return _commit(data, new, args, f"Current semester: {args.id}")


def _cmd_target(args: argparse.Namespace, data: AppData) -> int:
    new = mutate.set_target_average(data, args.value)
    return _commit(data, new, args, f"Target CGPA: {new.target_cgpa:.2f}")


def _cmd_add_class(args: argparse.Namespace, data: AppData) -> int:
    day = parse_day(args.day)
    entry = mutate.new_timetable_entry(
        args.short_name,
        parse_hour(args.start),
        parse_hour(args.end),
        full_name=args.full_name or "",
        room=args.room or "",
        color=args.color,
    )
    clashes = overlapping_entries(data.timetable.get(day, ()), entry.start_hour, entry.end_hour)
    if clashes and not args.force:
        print(f"Overlaps with: {', '.join(_entry_line(e) for e in clashes)} (use --force to add anyway)")
        return 1
    new = mutate.add_timetable_entry(data, day, entry)
    return _commit(data, new, args, f"Added: {day} {_entry_line(entry)}")


def _cmd_remove_class(args: argparse.Namespace, data: AppData) -> int:
    day = parse_day(args.day)
    entry = _resolve_entry(data.timetable.get(day, ()), args.entry)
    if entry is None:
        print(f"Class not found: {args.entry}")
        return 1
    new = mutate.remove_timetable_entry(data, day, entry.id)
    return _commit(data, new, args, f"Removed: {day} {_entry_line(entry)}")


def _cmd_move_class(args: argparse.Namespace, data: AppData) -> int:
    from_day = parse_day(args.day)
    to_day = parse_day(args.to) if args.to else from_day
    entry = _resolve_entry(data.timetable.get(from_day, ()), args.entry)
    if entry is None:
        print(f"Class not found: {args.entry}")
        return 1
    new = mutate.move_timetable_entry(data, from_day, to_day, entry.id, parse_hour(args.start))
    moved = next(e for e in new.timetable[to_day] if e.id == entry.id)
    return _commit(data, new, args, f"Moved: {entry.short_name} -> {to_day} {moved.time}")


def _cmd_import(args: argparse.Namespace, data: AppData) -> int:
    new = import_file(data, args.file)
    return _commit(data, new, args, f"Imported {len(new.semesters)} semesters from {args.file}")


def _cmd_import_share(args: argparse.Namespace, data: AppData) -> int:
    new = load_share_url(args.url)
    return _commit(data, new, args, f"Loaded shared data ({len(new.semesters)} semesters)")


# ---------------------------------------------------------------------------
# Export commands
# ---------------------------------------------------------------------------


def _cmd_export_json(args: argparse.Namespace, data: AppData) -> int:
    out = export_json(data, args.out)
    print(f"Exported JSON to: {out}")
    return 0


def _cmd_export_html(args: argparse.Namespace, data: AppData) -> int:
    out = write_report(data, args.out)
    print(f"Report saved to: {out.resolve()}")
    return 0


def _cmd_share(args: argparse.Namespace, data: AppData) -> int:
    print(build_share_url(data, args.base_url) if args.base_url else build_share_url(data))
    return 0


COMMANDS: dict[str, Callable[[argparse.Namespace, AppData], int]] = {
    "summary": _cmd_summary,
    "subjects": _cmd_subjects,
    "add-subject": _cmd_add_subject,
    "remove-subject": _cmd_remove_subject,
    "grade": _cmd_grade,
    "add-semester": _cmd_add_semester,
    "remove-semester": _cmd_remove_semester,
    "use-semester": _cmd_use_semester,
    "attendance": _cmd_attendance,
    "present": _cmd_present,
    "absent": _cmd_absent,
    "set-attendance": _cmd_set_attendance,
    "target": _cmd_target,
    "timetable": _cmd_timetable,
    "next": _cmd_next,
    "add-class": _cmd_add_class,
    "remove-class": _cmd_remove_class,
    "move-class": _cmd_move_class,
    "conflicts": _cmd_conflicts,
    "analytics": _cmd_analytics,
    "export-json": _cmd_export_json,
    "export-html": _cmd_export_html,
    "share": _cmd_share,
    "import": _cmd_import,
    "import-share": _cmd_import_share,
}


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argparse CLI parser with sub-commands.
    """
    parser = argparse.ArgumentParser(prog="acadnav", description="Academic Navigator CLI")
    parser.add_argument("--data", type=str, default=None, help="Data file (default: package data dir)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Show log messages")
    sub = parser.add_subparsers(dest="command", required=True)

    def with_semester(p: argparse.ArgumentParser) -> argparse.ArgumentParser:
        p.add_argument("--semester", "-s", type=int, default=None, help="Semester id (default: current)")
        return p

    with_semester(sub.add_parser("summary", help="SGPA, CGPA, target and attendance overview"))
    with_semester(sub.add_parser("subjects", help="List subjects of a semester"))

    p = with_semester(sub.add_parser("add-subject", help="Add a subject"))
    p.add_argument("name", type=str, help="Subject name")
    p.add_argument("--credits", "-c", type=int, default=3, help="Credits (default 3)")
    p.add_argument("--grade", "-g", type=str, default=None, help="Grade point 0-10 or N/A")

    p = with_semester(sub.add_parser("remove-subject", help="Remove a subject"))
    p.add_argument("subject", type=str, help="Subject number or id")

    p = with_semester(sub.add_parser("grade", help="Set a subject's grade point"))
    p.add_argument("subject", type=str, help="Subject number or id")
    p.add_argument("value", type=str, help="Grade point 0-10 or N/A")

    sub.add_parser("add-semester", help="Add the next semester")
    p = sub.add_parser("remove-semester", help="Remove a semester")
    p.add_argument("id", type=int, help="Semester id")
    p = sub.add_parser("use-semester", help="Switch the current semester")
    p.add_argument("id", type=int, help="Semester id")

    with_semester(sub.add_parser("attendance", help="Show attendance of a semester"))
    for name, help_text in (("present", "Record an attended class"), ("absent", "Record a missed class")):
        p = with_semester(sub.add_parser(name, help=help_text))
        p.add_argument("subject", type=str, help="Subject number or id")
    p = with_semester(sub.add_parser("set-attendance", help="Overwrite attended/total"))
    p.add_argument("subject", type=str, help="Subject number or id")
    p.add_argument("attended", type=int)
    p.add_argument("total", type=int)

    p = sub.add_parser("target", help="Set the target CGPA (clamped to 0-10)")
    p.add_argument("value", type=float)

    p = sub.add_parser("timetable", help="Show the weekly timetable")
    p.add_argument("--day", "-d", type=str, default=None, help="Only this day (e.g. mon)")
    p = sub.add_parser("next", help="Show the current or next class")
    p.add_argument("--day", "-d", type=str, default=None, help="Day (default: today)")
    p.add_argument("--at", type=str, default=None, help="Time HH:MM (default: now)")

    p = sub.add_parser("add-class", help="Add a class to the timetable")
    p.add_argument("day", type=str)
    p.add_argument("short_name", type=str)
    p.add_argument("start", type=str, help="Start HH:MM")
    p.add_argument("end", type=str, help="End HH:MM")
    p.add_argument("--full-name", type=str, default=None)
    p.add_argument("--room", type=str, default=None)
    p.add_argument("--color", type=str, default=None)
    p.add_argument("--force", action="store_true", help="Add even if it overlaps")

    p = sub.add_parser("remove-class", help="Remove a class")
    p.add_argument("day", type=str)
    p.add_argument("entry", type=str, help="Class number or id")

    p = sub.add_parser("move-class", help="Move a class, keeping its duration")
    p.add_argument("day", type=str)
    p.add_argument("entry", type=str, help="Class number or id")
    p.add_argument("start", type=str, help="New start HH:MM")
    p.add_argument("--to", type=str, default=None, help="Target day (default: same day)")

    sub.add_parser("conflicts", help="Show overlapping classes")
    sub.add_parser("analytics", help="Per-semester SGPA, CGPA trend and grade distribution")

    p = sub.add_parser("export-json", help="Export a JSON snapshot")
    p.add_argument("out", type=str)
    p = sub.add_parser("export-html", help="Write a printable HTML report")
    p.add_argument("out", type=str)
    p = sub.add_parser("share", help="Print a shareable link")
    p.add_argument("--base-url", type=str, default=None)
    p = sub.add_parser("import", help="Import semesters from a JSON file")
    p.add_argument("file", type=str)
    p = sub.add_parser("import-share", help="Replace data with the content of a share link")
    p.add_argument("url", type=str)

    sub.add_parser("interactive", help="Interactive menu mode")

    return parser


def _configure_logging(verbose: bool) -> None:
    level = "INFO" if verbose else os.getenv(LOG_LEVEL_ENV, "WARNING").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def main(argv: list[str] | None = None) -> None:
    """
    CLI entry point. Parses args, dispatches to command handlers,
    and exits via SystemExit with a return code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    if args.command == "interactive":
        from acadnav.interactive import run_interactive

        run_interactive(args.data)
        raise SystemExit(0)

    handler = COMMANDS.get(args.command)
    if handler is None:
        raise SystemExit(2)

    data = load_data(args.data)
    try:
        raise SystemExit(handler(args, data))
    except (AcademicDataError, ImportValidationError, ShareLinkError, ValueError) as e:
        print(f"Error: {e}")
        raise SystemExit(1)
