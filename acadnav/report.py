"""
Printable HTML report.

The document is assembled with BeautifulSoup tags, so every piece of user
text (subject names, rooms) is escaped by the library.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional

from bs4 import BeautifulSoup, Tag

from acadnav.config import DAYS, TIME_SLOTS
from acadnav.derive import (
    attendance_percentage,
    attendance_status,
    calculate_cumulative_average,
    calculate_semester_average,
    cgpa_trend,
    grade_distribution,
    grid_row,
    progress_to_target,
    semester_summaries,
)
from acadnav.model import AppData, Semester, grade_for_point

REPORT_CSS = """
body { font-family: Arial, sans-serif; margin: 2rem; color: #222; }
h1 { margin-bottom: 0; }
table { border-collapse: collapse; width: 100%; margin: 1rem 0 2rem; }
th, td { border: 1px solid #ccc; padding: 4px 8px; text-align: left; }
th { background: #f2f2f2; }
.success { color: #15803d; } .warning { color: #b45309; } .danger { color: #b91c1c; }
.break { background: #fafafa; color: #999; }
.clash { background: #fee2e2; }
@media print { body { margin: 0.5cm; } }
"""


def _tag(soup: BeautifulSoup, name: str, text: Optional[str] = None, **attrs) -> Tag:
    t = soup.new_tag(name, attrs=attrs)
    if text is not None:
        t.string = text
    return t


def _row(soup: BeautifulSoup, cells: Iterable[str], header: bool = False) -> Tag:
    tr = soup.new_tag("tr")
    for c in cells:
        tr.append(_tag(soup, "th" if header else "td", c))
    return tr


def _semester_section(soup: BeautifulSoup, sem: Semester) -> Tag:
    avg = calculate_semester_average(sem)
    section = _tag(soup, "section")
    section.append(_tag(soup, "h2", sem.name))
    section.append(_tag(soup, "p", f"SGPA {avg.average:.2f} over {avg.total_credits} graded credits"))

    table = soup.new_tag("table")
    table.append(_row(soup, ["Subject", "Credits", "Grade", "Points", "Attendance"], header=True))
    for s in sem.subjects:
        pct = attendance_percentage(s)
        tr = _row(
            soup,
            [
                s.name,
                str(s.credits),
                grade_for_point(s.grade_point),
                "N/A" if s.grade_point is None else f"{s.grade_point:.1f}",
            ],
        )
        td = _tag(
            soup,
            "td",
            f"{s.attendance.attended}/{s.attendance.total} ({min(pct, 100):.1f}%)",
            **{"class": attendance_status(pct)},
        )
        tr.append(td)
        table.append(tr)
    if not sem.subjects:
        table.append(_row(soup, ["No subjects", "", "", "", ""]))
    section.append(table)
    return section


def _analytics_section(soup: BeautifulSoup, data: AppData) -> Tag:
    section = _tag(soup, "section")
    section.append(_tag(soup, "h2", "Semester performance"))
    trend = dict(cgpa_trend(data))
    table = soup.new_tag("table")
    table.append(_row(soup, ["Semester", "SGPA", "Graded credits", "Subjects", "CGPA after"], header=True))
    for summary in semester_summaries(data):
        table.append(
            _row(
                soup,
                [
                    summary.name,
                    f"{summary.sgpa:.2f}",
                    str(summary.credits),
                    str(summary.subjects),
                    f"{trend[summary.id]:.2f}",
                ],
            )
        )
    section.append(table)

    dist = grade_distribution(data.semesters)
    section.append(_tag(soup, "p", "Grade distribution: " + ", ".join(f"{b}: {n}" for b, n in dist.items())))
    return section


def _timetable_section(soup: BeautifulSoup, data: AppData) -> Tag:
    section = _tag(soup, "section")
    section.append(_tag(soup, "h2", "Weekly timetable"))
    table = soup.new_tag("table")
    table.append(_row(soup, ["Day"] + [slot.label for slot in TIME_SLOTS], header=True))

    for day in DAYS:
        tr = soup.new_tag("tr")
        tr.append(_tag(soup, "th", day.title()))
        for cell in grid_row(data.timetable.get(day, ()), TIME_SLOTS):
            if not cell.entries:
                is_break = TIME_SLOTS[cell.start].is_break
                tr.append(_tag(soup, "td", "", **({"class": "break"} if is_break else {})))
                continue
            attrs = {"colspan": str(cell.span)}
            if len(cell.entries) > 1:
                attrs["class"] = "clash"
            text = " / ".join(f"{e.short_name} ({e.room})" for e in cell.entries)
            tr.append(_tag(soup, "td", text, **attrs))
        table.append(tr)

    section.append(table)
    return section


def render_report(data: AppData) -> str:
    soup = BeautifulSoup("<!DOCTYPE html><html><head></head><body></body></html>", "html.parser")
    soup.head.append(soup.new_tag("meta", charset="utf-8"))
    soup.head.append(_tag(soup, "title", "Academic Report"))
    soup.head.append(_tag(soup, "style", REPORT_CSS))

    cgpa = calculate_cumulative_average(data.semesters)
    body = soup.body
    body.append(_tag(soup, "h1", "Academic Report"))
    body.append(_tag(soup, "p", f"Generated {datetime.now().strftime('%Y-%m-%d %H:%M')}"))

    summary = soup.new_tag("table")
    summary.append(_row(soup, ["CGPA", "Graded credits", "Target CGPA", "Progress"], header=True))
    summary.append(
        _row(
            soup,
            [
                f"{cgpa.average:.2f}",
                str(cgpa.total_credits),
                f"{data.target_cgpa:.2f}",
                f"{progress_to_target(cgpa.average, data.target_cgpa):.0f}%",
            ],
        )
    )
    body.append(summary)
    body.append(_analytics_section(soup, data))

    for sid in sorted(data.semesters):
        body.append(_semester_section(soup, data.semesters[sid]))

    body.append(_timetable_section(soup, data))
    return str(soup)


def write_report(data: AppData, out_path: str | Path) -> Path:
    out = Path(out_path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(render_report(data), encoding="utf-8")
    return out
