from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Optional

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from acadnav import mutate
from acadnav.config import DAYS, TIME_SLOTS, UNGRADED_LABEL
from acadnav.derive import (
    attendance_percentage,
    attendance_status,
    calculate_cumulative_average,
    calculate_semester_average,
    cgpa_trend,
    class_state,
    current_day,
    fractional_hour,
    grade_distribution,
    grid_row,
    overall_attendance,
    progress_to_target,
    semester_summaries,
    subjects_at_risk,
    upcoming_class,
)
from acadnav.model import AppData, Semester, Subject, SubjectPatch, grade_for_point
from acadnav.storage import load_data, save_data

console = Console()

STATUS_STYLE = {"success": "green", "warning": "yellow", "danger": "red"}


def _println(msg: str = "") -> None:
    console.print(msg)


def _prompt(msg: str) -> str:
    # prompts are plain text; "[blank = back]" would otherwise parse as a style tag
    return console.input(escape(msg))


def _current(data: AppData) -> Semester:
    return data.semesters[data.current_semester]


def _save(data: AppData, path: Optional[str | Path]) -> AppData:
    if not save_data(data, path):
        _println("[red]Could not save data; changes are kept for this session only.[/]")
    return data


def run_interactive(path: Optional[str | Path] = None) -> None:
    """
    Interactive menu loop. The data is loaded once and written back after
    every change.
    """
    data = load_data(path)

    while True:
        _print_header(data)

        choice = _prompt(
            "\n[1] Dashboard\n"
            "[2] Attendance\n"
            "[3] Timetable (week)\n"
            "[4] Today\n"
            "[5] Add subject\n"
            "[6] Set grade\n"
            "[7] Set target CGPA\n"
            "[8] Switch / add / remove semester\n"
            "[9] Analytics\n"
            "[0] Exit\n"
            "Select: "
        ).strip()

        if choice == "0":
            _println("Bye.")
            return

        if choice == "1":
            _flow_dashboard(data)
        elif choice == "2":
            data = _flow_attendance(data, path)
        elif choice == "3":
            _flow_week(data)
        elif choice == "4":
            _flow_today(data)
        elif choice == "5":
            data = _flow_add_subject(data, path)
        elif choice == "6":
            data = _flow_set_grade(data, path)
        elif choice == "7":
            data = _flow_target(data, path)
        elif choice == "8":
            data = _flow_semesters(data, path)
        elif choice == "9":
            _flow_analytics(data)
        else:
            _println("Invalid choice.")


def _print_header(data: AppData) -> None:
    sem = _current(data)
    sgpa = calculate_semester_average(sem)
    cgpa = calculate_cumulative_average(data.semesters)
    _println("\n=== Academic Navigator ===")
    _println(
        f"{escape(sem.name)} | SGPA [bold cyan]{sgpa.average:.2f}[/] | "
        f"CGPA [bold cyan]{cgpa.average:.2f}[/] | target {data.target_cgpa:.2f}"
    )


def _pick_subject(sem: Semester) -> Optional[Subject]:
    if not sem.subjects:
        _println("No subjects in this semester.")
        return None
    for i, s in enumerate(sem.subjects, start=1):
        _println(f"{i}) {escape(s.name)}")
    pick = _prompt("Subject number [blank = back]: ").strip()
    if not pick:
        return None
    if not pick.isdigit() or not (1 <= int(pick) <= len(sem.subjects)):
        _println("Out of range.")
        return None
    return sem.subjects[int(pick) - 1]


def _flow_dashboard(data: AppData) -> None:
    sem = _current(data)
    sgpa = calculate_semester_average(sem)
    cgpa = calculate_cumulative_average(data.semesters)

    stats = Table(box=box.SIMPLE, title="Overview")
    stats.add_column("Current SGPA", justify="right")
    stats.add_column("Cumulative CGPA", justify="right")
    stats.add_column("Target CGPA", justify="right")
    stats.add_column("Semester credits", justify="right")
    stats.add_row(
        f"{sgpa.average:.2f}",
        f"{cgpa.average:.2f}",
        f"{data.target_cgpa:.2f} ({progress_to_target(cgpa.average, data.target_cgpa):.0f}%)",
        str(sgpa.total_credits),
    )
    console.print(stats)

    table = Table(box=box.SIMPLE, title=escape(sem.name))
    table.add_column("#", justify="right")
    table.add_column("Subject")
    table.add_column("Credits", justify="right")
    table.add_column("Grade", justify="right")
    for i, s in enumerate(sem.subjects, start=1):
        grade = UNGRADED_LABEL if s.grade_point is None else f"{s.grade_point:.1f} {grade_for_point(s.grade_point)}"
        table.add_row(str(i), escape(s.name), str(s.credits), grade)
    console.print(table)


def _flow_attendance(data: AppData, path: Optional[str | Path]) -> AppData:
    while True:
        sem = _current(data)
        table = Table(box=box.SIMPLE, title=f"Attendance – {escape(sem.name)}")
        table.add_column("#", justify="right")
        table.add_column("Subject")
        table.add_column("Attended", justify="right")
        table.add_column("Total", justify="right")
        table.add_column("%", justify="right")
        for i, s in enumerate(sem.subjects, start=1):
            pct = attendance_percentage(s)
            style = STATUS_STYLE[attendance_status(pct)]
            table.add_row(
                str(i), escape(s.name), str(s.attendance.attended), str(s.attendance.total), f"[{style}]{pct:.1f}%[/]"
            )
        console.print(table)

        attended, total, pct = overall_attendance(sem)
        risky = subjects_at_risk(sem)
        _println(f"Overall {attended}/{total} ({pct:.1f}%) | subjects below 75%: {len(risky)}")

        pick = _prompt("Subject number, then p(resent)/a(bsent), e.g. '2 p' [blank = back]: ").strip().lower()
        if not pick:
            return data
        parts = pick.split()
        if len(parts) != 2 or not parts[0].isdigit() or parts[1] not in ("p", "a"):
            _println("Expected '<number> p' or '<number> a'.")
            continue
        idx = int(parts[0])
        if not (1 <= idx <= len(sem.subjects)):
            _println("Out of range.")
            continue
        subject = sem.subjects[idx - 1]
        fn = mutate.mark_present if parts[1] == "p" else mutate.mark_absent
        data = _save(fn(data, sem.id, subject.id), path)


def _flow_week(data: AppData) -> None:
    today = current_day()
    table = Table(box=box.SIMPLE, title="Weekly schedule")
    table.add_column("Day")
    for slot in TIME_SLOTS:
        table.add_column(slot.label, style="dim" if slot.is_break else None)

    for day in DAYS:
        row = [f"[bold]{day[:3]}[/]" if day == today else day[:3]]
        for cell in grid_row(data.timetable.get(day, ()), TIME_SLOTS):
            if not cell.entries:
                row.append("")
                continue
            # rich has no colspan; continuation cells show a marker
            style = "red" if len(cell.entries) > 1 else "cyan"
            row.append(" / ".join(f"[{style}]{escape(e.short_name)}[/] {escape(e.room)}" for e in cell.entries))
            row.extend(["  ·"] * (cell.span - 1))
        table.add_row(*row)
    console.print(table)


def _flow_analytics(data: AppData) -> None:
    trend = dict(cgpa_trend(data))
    table = Table(box=box.SIMPLE, title="Semester performance")
    table.add_column("Semester")
    table.add_column("SGPA", justify="right")
    table.add_column("Graded credits", justify="right")
    table.add_column("Subjects", justify="right")
    table.add_column("CGPA after", justify="right")
    for summary in semester_summaries(data):
        table.add_row(
            escape(summary.name),
            f"{summary.sgpa:.2f}",
            str(summary.credits),
            str(summary.subjects),
            f"{trend[summary.id]:.2f}",
        )
    console.print(table)

    dist = Table(box=box.SIMPLE, title="Grade distribution")
    dist.add_column("Band")
    dist.add_column("Subjects", justify="right")
    for band, count in grade_distribution(data.semesters).items():
        dist.add_row(escape(band), str(count))
    console.print(dist)


def _flow_today(data: AppData) -> None:
    day = current_day()
    now = fractional_hour(datetime.now())
    entries = data.timetable.get(day, ())
    nxt = upcoming_class(entries, now)

    _println(f"\n{day.title()}")
    if nxt is None:
        _println("Up next: No more classes today")
    else:
        _println(f"Up next: [bold]{escape(nxt.full_name)}[/] {escape(nxt.time)} • Room {escape(nxt.room)}")

    if not entries:
        _println("No classes scheduled for today")
        return
    for e in entries:
        state = class_state(e, now)
        marker = {"current": "[bold green]Now[/] ", "past": "[dim]", "upcoming": ""}[state]
        close = "[/]" if state == "past" else ""
        _println(f"  {marker}{escape(e.time)} {escape(e.short_name)} – {escape(e.full_name)} @ {escape(e.room)}{close}")


def _flow_add_subject(data: AppData, path: Optional[str | Path]) -> AppData:
    sem = _current(data)
    name = _prompt("Subject name [blank = back]: ").strip()
    if not name:
        return data
    credits_in = _prompt("Credits [3]: ").strip() or "3"
    grade_in = _prompt(f"Grade point 0-10 or {UNGRADED_LABEL} [{UNGRADED_LABEL}]: ").strip() or UNGRADED_LABEL
    try:
        credits = int(credits_in)
        grade = None if grade_in.upper() == UNGRADED_LABEL else float(grade_in)
    except ValueError:
        _println("Not a number.")
        return data
    _println(f"Added: {escape(name)}")
    return _save(mutate.add_subject(data, sem.id, name, credits, grade), path)


def _flow_set_grade(data: AppData, path: Optional[str | Path]) -> AppData:
    sem = _current(data)
    subject = _pick_subject(sem)
    if subject is None:
        return data
    raw = _prompt(f"Grade point 0-10 or {UNGRADED_LABEL}: ").strip()
    if raw.upper() == UNGRADED_LABEL:
        patch = SubjectPatch(clear_grade=True)
    else:
        try:
            patch = SubjectPatch(grade_point=float(raw))
        except ValueError:
            _println("Not a number.")
            return data
    return _save(mutate.update_subject(data, sem.id, subject.id, patch), path)


def _flow_target(data: AppData, path: Optional[str | Path]) -> AppData:
    raw = _prompt(f"Target CGPA [{data.target_cgpa:.2f}]: ").strip()
    if not raw:
        return data
    try:
        value = float(raw)
    except ValueError:
        _println("Not a number.")
        return data
    return _save(mutate.set_target_average(data, value), path)


def _flow_semesters(data: AppData, path: Optional[str | Path]) -> AppData:
    ids = sorted(data.semesters)
    _println("Semesters: " + ", ".join(f"[bold]{i}[/]" if i == data.current_semester else str(i) for i in ids))
    pick = _prompt("Number to switch, '+' to add, '-N' to remove N [blank = back]: ").strip()
    if not pick:
        return data

    if pick == "+":
        new = mutate.add_semester(data)
        if new is data:
            _println(f"Maximum of {data.max_semester} semesters reached.")
            return data
        return _save(new, path)

    if pick.startswith("-") and pick[1:].isdigit():
        new = mutate.remove_semester(data, int(pick[1:]))
        if new is data:
            _println("Cannot remove that semester.")
            return data
        return _save(new, path)

    if pick.isdigit() and int(pick) in data.semesters:
        return _save(mutate.set_current_semester(data, int(pick)), path)

    _println("Invalid choice.")
    return data
