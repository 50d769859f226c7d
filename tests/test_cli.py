"""
Tests for CLI entry points.

Every test points --data at a temporary file so the real user data is
never touched.
"""

import contextlib
import io
import json
import tempfile
import unittest
from pathlib import Path

from acadnav.cli import main, parse_hour
from acadnav.config import STORAGE_KEY
from acadnav.storage import load_data


def run(argv: list[str]) -> tuple[int, str]:
    out = io.StringIO()
    with contextlib.redirect_stdout(out):
        try:
            main(argv)
        except SystemExit as e:
            return int(e.code or 0), out.getvalue()
    return 0, out.getvalue()


class TestCLI(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.path = str(Path(self._tmp.name) / "data.json")

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def cli(self, *args: str) -> tuple[int, str]:
        return run(["--data", self.path, *args])

    def test_add_subject_requires_name(self) -> None:
        code, _ = self.cli("add-subject", "  ")
        self.assertNotEqual(code, 0)

    def test_add_grade_and_summary(self) -> None:
        code, out = self.cli("add-subject", "Compilers", "--credits", "4", "--grade", "9", "-s", "6")
        self.assertEqual(code, 0, out)
        code, out = self.cli("summary", "-s", "6")
        self.assertEqual(code, 0)
        self.assertIn("SGPA: 9.00 (4 credits this semester)", out)

        data = load_data(self.path)
        self.assertEqual(data.semesters[6].subjects[-1].name, "Compilers")
        raw = json.loads(Path(self.path).read_text(encoding="utf-8"))
        self.assertIn(STORAGE_KEY, raw)

    def test_grade_by_number_and_clear(self) -> None:
        self.assertEqual(self.cli("grade", "1", "8.5", "-s", "1")[0], 0)
        self.assertEqual(load_data(self.path).semesters[1].subjects[0].grade_point, 8.5)
        self.assertEqual(self.cli("grade", "1", "N/A", "-s", "1")[0], 0)
        self.assertIsNone(load_data(self.path).semesters[1].subjects[0].grade_point)

    def test_negative_grade_stays_ungraded(self) -> None:
        self.assertEqual(self.cli("grade", "1", "9", "-s", "1")[0], 0)
        code, _ = self.cli("grade", "1", "-1", "-s", "1")
        self.assertEqual(code, 0)
        self.assertIsNone(load_data(self.path).semesters[1].subjects[0].grade_point)

        code, _ = self.cli("add-subject", "Seminar", "-c", "2", "-g", "-1", "-s", "1")
        self.assertEqual(code, 0)
        self.assertIsNone(load_data(self.path).semesters[1].subjects[-1].grade_point)
        raw = json.loads(Path(self.path).read_text(encoding="utf-8"))
        self.assertEqual(raw[STORAGE_KEY]["semesters"]["1"]["subjects"][-1]["gradePoint"], -1)

    def test_analytics(self) -> None:
        self.cli("grade", "1", "9", "-s", "1")
        self.cli("grade", "1", "7", "-s", "2")
        code, out = self.cli("analytics")
        self.assertEqual(code, 0)
        lines = out.splitlines()
        # Semester 1: Engineering Mathematics - I (4 credits) at 9
        self.assertIn("Semester 1 | 9.00 | 4 | 10 | 9.00", lines)
        # Semester 2: Engineering Mathematics - II (4 credits) at 7
        self.assertIn("Semester 2 | 7.00 | 4 | 10 | 8.00", lines)
        self.assertIn("Semester 3 | 0.00 | 0 | 8 | 8.00", lines)
        self.assertIn("Grade distribution: 9-10: 1, 8-9: 0, 7-8: 1, <7: 0", lines)

    def test_unknown_subject(self) -> None:
        code, out = self.cli("present", "99")
        self.assertEqual(code, 1)
        self.assertIn("Subject not found", out)

    def test_present_and_absent(self) -> None:
        self.cli("present", "1")
        self.cli("present", "1")
        self.cli("absent", "1")
        data = load_data(self.path)
        att = data.semesters[data.current_semester].subjects[0].attendance
        self.assertEqual((att.attended, att.total), (2, 3))

    def test_semester_limit_and_last_semester(self) -> None:
        # seed data already has all 8 semesters
        code, out = self.cli("add-semester")
        self.assertEqual(code, 1)
        self.assertIn("Maximum", out)

        for sid in range(1, 8):
            self.assertEqual(self.cli("remove-semester", str(sid))[0], 0)
        code, out = self.cli("remove-semester", "8")
        self.assertEqual(code, 1)
        self.assertIn("last remaining", out)
        self.assertEqual(list(load_data(self.path).semesters), [8])

    def test_target_is_clamped(self) -> None:
        self.cli("target", "42")
        self.assertEqual(load_data(self.path).target_cgpa, 10.0)

    def test_move_class_conflict_reported(self) -> None:
        # Monday class #2 (DM 09:00-10:00) onto 08:30 clashes with ADA 08:00-09:00
        code, out = self.cli("move-class", "mon", "2", "08:30")
        self.assertEqual(code, 1)
        self.assertIn("overlaps", out)

    def test_move_class_to_other_day(self) -> None:
        code, out = self.cli("move-class", "tue", "1", "16:30", "--to", "sat")
        self.assertEqual(code, 0, out)
        data = load_data(self.path)
        self.assertEqual(len(data.timetable["TUESDAY"]), 1)
        self.assertEqual(data.timetable["SATURDAY"][-1].time, "16:30-17:30")

    def test_add_class_overlap_needs_force(self) -> None:
        code, _ = self.cli("add-class", "mon", "X", "08:30", "09:30")
        self.assertEqual(code, 1)
        code, _ = self.cli("add-class", "mon", "X", "08:30", "09:30", "--force")
        self.assertEqual(code, 0)
        code, out = self.cli("conflicts")
        self.assertIn("Conflicts found: 2", out)

    def test_next_at_fixed_time(self) -> None:
        code, out = self.cli("next", "--day", "mon", "--at", "10:45")
        self.assertEqual(code, 0)
        self.assertIn("EEFM", out)
        code, out = self.cli("next", "--day", "mon", "--at", "17:00")
        self.assertIn("No more classes today", out)

    def test_import_rejects_bad_file(self) -> None:
        bad = Path(self._tmp.name) / "bad.json"
        bad.write_text(json.dumps({"semesters": "not-an-array"}), encoding="utf-8")
        code, out = self.cli("import", str(bad))
        self.assertEqual(code, 1)
        self.assertIn("semesters", out)
        self.assertFalse(Path(self.path).exists())

    def test_share_and_import_share(self) -> None:
        self.cli("target", "7")
        code, url = self.cli("share")
        self.assertEqual(code, 0)
        other = str(Path(self._tmp.name) / "other.json")
        code, _ = run(["--data", other, "import-share", url.strip()])
        self.assertEqual(code, 0)
        self.assertEqual(load_data(other).target_cgpa, 7.0)

    def test_exports(self) -> None:
        out_json = Path(self._tmp.name) / "x.json"
        out_html = Path(self._tmp.name) / "x.html"
        self.assertEqual(self.cli("export-json", str(out_json))[0], 0)
        self.assertEqual(self.cli("export-html", str(out_html))[0], 0)
        self.assertIn("semesters", json.loads(out_json.read_text(encoding="utf-8")))
        self.assertIn("Academic Report", out_html.read_text(encoding="utf-8"))

    def test_parse_hour(self) -> None:
        self.assertEqual(parse_hour("10:30"), 10.5)
        self.assertEqual(parse_hour("9"), 9.0)
        with self.assertRaises(ValueError):
            parse_hour("25:00")


if __name__ == "__main__":
    unittest.main()
