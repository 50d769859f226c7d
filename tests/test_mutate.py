"""
Unit tests for state transitions.

Contract:
- every mutation returns a new AppData and leaves the input untouched
- attended <= total and both >= 0 after any attendance change
- rejected semester changes return the input unchanged
- moving a class onto an occupied interval raises and changes nothing
"""

import random
import unittest

from acadnav import mutate
from acadnav.derive import calculate_semester_average
from acadnav.model import (
    AppData,
    Attendance,
    Semester,
    Subject,
    SubjectPatch,
    TimetableEntry,
    TimetableEntryPatch,
    empty_timetable,
)


def make_data(semester_ids=(1,), max_semester=8) -> AppData:
    semesters = {
        sid: Semester(
            id=sid,
            name=f"Semester {sid}",
            subjects=(Subject(id=f"s{sid}", name="Maths", credits=4, grade_point=None, attendance=Attendance(2, 4)),),
        )
        for sid in semester_ids
    }
    timetable = empty_timetable()
    timetable["MONDAY"] = (
        TimetableEntry("m1", "ADA", "Applied Data Analytics", "08:00-09:00", "R1", 8, 9),
        TimetableEntry("m2", "DM", "Data Mining", "09:00-10:00", "R1", 9, 10),
    )
    timetable["FRIDAY"] = (TimetableEntry("f1", "EH", "Ethical Hacking", "10:30-11:30", "R2", 10.5, 11.5),)
    return AppData(
        semesters=semesters,
        timetable=timetable,
        max_semester=max_semester,
        target_cgpa=9.0,
        current_semester=min(semester_ids),
    )


def attendance(data: AppData, sid: int = 1, subject_id: str = "s1") -> Attendance:
    return next(s for s in data.semesters[sid].subjects if s.id == subject_id).attendance


class TestSubjects(unittest.TestCase):
    def test_add_subject_appends_with_fresh_id(self) -> None:
        data = make_data()
        new = mutate.add_subject(data, 1, " Physics ", 3, 8.5)
        subjects = new.semesters[1].subjects
        self.assertEqual(len(subjects), 2)
        added = subjects[-1]
        self.assertEqual(added.name, "Physics")
        self.assertEqual(added.attendance, Attendance(0, 0))
        self.assertNotEqual(added.id, "s1")
        # input untouched
        self.assertEqual(len(data.semesters[1].subjects), 1)

    def test_add_subject_clamps(self) -> None:
        new = mutate.add_subject(make_data(), 1, "X", -2, 12)
        added = new.semesters[1].subjects[-1]
        self.assertEqual(added.credits, 0)
        self.assertEqual(added.grade_point, 10.0)

    def test_negative_grade_means_ungraded(self) -> None:
        data = mutate.update_subject(make_data(), 1, "s1", SubjectPatch(grade_point=10))
        before = calculate_semester_average(data.semesters[1])
        data = mutate.add_subject(data, 1, "Seminar", 2, -1)
        self.assertIsNone(data.semesters[1].subjects[-1].grade_point)
        self.assertEqual(calculate_semester_average(data.semesters[1]), before)

        data = mutate.update_subject(data, 1, "s1", SubjectPatch(grade_point=-1))
        self.assertIsNone(data.semesters[1].subjects[0].grade_point)

    def test_add_subject_unknown_semester(self) -> None:
        with self.assertRaises(mutate.SemesterNotFoundError):
            mutate.add_subject(make_data(), 5, "X", 3)

    def test_remove_subject(self) -> None:
        data = make_data()
        new = mutate.remove_subject(data, 1, "s1")
        self.assertEqual(new.semesters[1].subjects, ())
        self.assertIs(mutate.remove_subject(data, 1, "missing"), data)

    def test_update_subject_merges_only_given_fields(self) -> None:
        data = make_data()
        new = mutate.update_subject(data, 1, "s1", SubjectPatch(grade_point=7.5))
        s = new.semesters[1].subjects[0]
        self.assertEqual(s.grade_point, 7.5)
        self.assertEqual(s.name, "Maths")
        self.assertEqual(s.credits, 4)
        self.assertEqual(s.attendance, Attendance(2, 4))

    def test_update_subject_clear_grade(self) -> None:
        data = mutate.update_subject(make_data(), 1, "s1", SubjectPatch(grade_point=9))
        cleared = mutate.update_subject(data, 1, "s1", SubjectPatch(clear_grade=True))
        self.assertIsNone(cleared.semesters[1].subjects[0].grade_point)


class TestSemesters(unittest.TestCase):
    def test_add_semester_uses_next_id_and_becomes_current(self) -> None:
        new = mutate.add_semester(make_data((1, 3)))
        self.assertIn(4, new.semesters)
        self.assertEqual(new.semesters[4].name, "Semester 4")
        self.assertEqual(new.semesters[4].subjects, ())
        self.assertEqual(new.current_semester, 4)

    def test_add_semester_at_limit_is_noop(self) -> None:
        data = make_data((1, 2, 3), max_semester=3)
        new = mutate.add_semester(data)
        self.assertIs(new, data)
        self.assertNotIn(4, new.semesters)

    def test_remove_last_semester_is_noop(self) -> None:
        data = make_data((2,))
        self.assertIs(mutate.remove_semester(data, 2), data)

    def test_remove_semester_picks_smallest_remaining(self) -> None:
        data = mutate.set_current_semester(make_data((1, 2, 3)), 3)
        new = mutate.remove_semester(data, 3)
        self.assertEqual(sorted(new.semesters), [1, 2])
        self.assertEqual(new.current_semester, 1)

    def test_set_current_unknown(self) -> None:
        with self.assertRaises(mutate.SemesterNotFoundError):
            mutate.set_current_semester(make_data(), 9)


class TestAttendance(unittest.TestCase):
    def test_delta_zero_is_idempotent(self) -> None:
        data = make_data()
        for field in ("attended", "total"):
            self.assertEqual(attendance(mutate.update_attendance_delta(data, 1, "s1", 0, field)), Attendance(2, 4))

    def test_attended_capped_at_total(self) -> None:
        data = mutate.update_attendance_delta(make_data(), 1, "s1", 5, "attended")
        self.assertEqual(attendance(data), Attendance(4, 4))

    def test_total_floored_at_attended(self) -> None:
        data = mutate.update_attendance_delta(make_data(), 1, "s1", -3, "total")
        self.assertEqual(attendance(data), Attendance(2, 2))

    def test_never_negative(self) -> None:
        data = mutate.update_attendance_delta(make_data(), 1, "s1", -10, "attended")
        self.assertEqual(attendance(data), Attendance(0, 4))

    def test_unknown_field(self) -> None:
        with self.assertRaises(ValueError):
            mutate.update_attendance_delta(make_data(), 1, "s1", 1, "missed")

    def test_present_counts_when_attended_equals_total(self) -> None:
        data = mutate.set_attendance_absolute(make_data(), 1, "s1", 4, 4)
        data = mutate.mark_present(data, 1, "s1")
        self.assertEqual(attendance(data), Attendance(5, 5))

    def test_absent(self) -> None:
        data = mutate.mark_absent(make_data(), 1, "s1")
        self.assertEqual(attendance(data), Attendance(2, 5))

    def test_absolute_clamps_attended_down(self) -> None:
        data = mutate.set_attendance_absolute(make_data(), 1, "s1", 9, 6)
        self.assertEqual(attendance(data), Attendance(6, 6))
        data = mutate.set_attendance_absolute(data, 1, "s1", -1, -1)
        self.assertEqual(attendance(data), Attendance(0, 0))

    def test_invariant_holds_for_random_sequences(self) -> None:
        rng = random.Random(42)
        data = make_data()
        for _ in range(500):
            if rng.random() < 0.8:
                data = mutate.update_attendance_delta(
                    data, 1, "s1", rng.randint(-5, 5), rng.choice(("attended", "total"))
                )
            else:
                data = mutate.set_attendance_absolute(data, 1, "s1", rng.randint(-3, 10), rng.randint(-3, 10))
            att = attendance(data)
            self.assertGreaterEqual(att.attended, 0)
            self.assertGreaterEqual(att.total, 0)
            self.assertLessEqual(att.attended, att.total)

    def test_target_clamped(self) -> None:
        self.assertEqual(mutate.set_target_average(make_data(), 12).target_cgpa, 10.0)
        self.assertEqual(mutate.set_target_average(make_data(), -1).target_cgpa, 0.0)
        self.assertEqual(mutate.set_target_average(make_data(), 8.25).target_cgpa, 8.25)


class TestTimetable(unittest.TestCase):
    def test_parse_day(self) -> None:
        self.assertEqual(mutate.parse_day("mon"), "MONDAY")
        self.assertEqual(mutate.parse_day("Saturday"), "SATURDAY")
        with self.assertRaises(ValueError):
            mutate.parse_day("sunday")

    def test_add_entry_keeps_day_sorted(self) -> None:
        data = make_data()
        e = mutate.new_timetable_entry("EARLY", 7, 8, room="R9")
        new = mutate.add_timetable_entry(data, "monday", e)
        starts = [x.start_hour for x in new.timetable["MONDAY"]]
        self.assertEqual(starts, [7, 8, 9])
        self.assertEqual(new.timetable["MONDAY"][0].time, "07:00-08:00")
        self.assertEqual(len(data.timetable["MONDAY"]), 2)

    def test_add_entry_does_not_reject_overlap(self) -> None:
        e = mutate.new_timetable_entry("X", 8.5, 9.5)
        new = mutate.add_timetable_entry(make_data(), "MONDAY", e)
        self.assertEqual(len(new.timetable["MONDAY"]), 3)

    def test_new_entry_requires_positive_duration(self) -> None:
        with self.assertRaises(ValueError):
            mutate.new_timetable_entry("X", 10, 10)

    def test_update_entry_resorts(self) -> None:
        new = mutate.update_timetable_entry(make_data(), "MONDAY", "m1", TimetableEntryPatch(start_hour=12, end_hour=13))
        self.assertEqual([e.id for e in new.timetable["MONDAY"]], ["m2", "m1"])

    def test_remove_entry(self) -> None:
        new = mutate.remove_timetable_entry(make_data(), "MONDAY", "m1")
        self.assertEqual([e.id for e in new.timetable["MONDAY"]], ["m2"])

    def test_move_same_day_preserves_duration(self) -> None:
        new = mutate.move_timetable_entry(make_data(), "MONDAY", "MONDAY", "m1", 14)
        moved = next(e for e in new.timetable["MONDAY"] if e.id == "m1")
        self.assertEqual((moved.start_hour, moved.end_hour), (14, 15))
        self.assertEqual(moved.time, "14:00-15:00")

    def test_move_onto_itself_is_not_a_conflict(self) -> None:
        new = mutate.move_timetable_entry(make_data(), "MONDAY", "MONDAY", "m1", 7.5)
        moved = next(e for e in new.timetable["MONDAY"] if e.id == "m1")
        self.assertEqual(moved.start_hour, 7.5)

    def test_move_across_days(self) -> None:
        new = mutate.move_timetable_entry(make_data(), "MONDAY", "FRIDAY", "m2", 8)
        self.assertEqual([e.id for e in new.timetable["MONDAY"]], ["m1"])
        self.assertEqual([e.id for e in new.timetable["FRIDAY"]], ["m2", "f1"])

    def test_move_conflict_leaves_data_unchanged(self) -> None:
        data = make_data()
        with self.assertRaises(mutate.ScheduleConflictError) as ctx:
            mutate.move_timetable_entry(data, "MONDAY", "FRIDAY", "m1", 10)
        self.assertEqual([e.id for e in ctx.exception.clashes], ["f1"])
        self.assertEqual([e.id for e in data.timetable["MONDAY"]], ["m1", "m2"])
        self.assertEqual([e.id for e in data.timetable["FRIDAY"]], ["f1"])

    def test_move_touching_end_is_allowed(self) -> None:
        new = mutate.move_timetable_entry(make_data(), "MONDAY", "FRIDAY", "m1", 11.5)
        self.assertEqual([e.id for e in new.timetable["FRIDAY"]], ["f1", "m1"])

    def test_move_unknown_entry(self) -> None:
        with self.assertRaises(mutate.EntryNotFoundError):
            mutate.move_timetable_entry(make_data(), "MONDAY", "MONDAY", "nope", 8)


if __name__ == "__main__":
    unittest.main()
