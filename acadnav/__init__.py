"""
Academic Navigator: grades, attendance and weekly timetable of one student.
"""
