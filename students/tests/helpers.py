# students/tests/helpers.py
"""Small builders shared by the students test modules."""
from datetime import date
from decimal import Decimal

from core.models import AcademicYear, Class
from students.models import Student, Guardian, AcademicOutcome


def make_years():
    current = AcademicYear.objects.create(
        name='2024/2025',
        start_date=date(2024, 9, 1),
        end_date=date(2025, 7, 15),
        is_active=True,
    )
    upcoming = AcademicYear.objects.create(
        name='2025/2026',
        start_date=date(2025, 9, 1),
        end_date=date(2026, 7, 15),
    )
    return current, upcoming


def make_classes():
    grade1 = Class.objects.create(name='Grade 1', track='primary', level=1)
    grade2 = Class.objects.create(name='Grade 2', track='primary', level=2)
    grade6 = Class.objects.create(name='Grade 6', track='primary', level=6)
    return grade1, grade2, grade6


def make_student(code, school_class=None, year=None, **extra):
    return Student.objects.create(
        student_id=code,
        first_name=extra.pop('first_name', 'Amina'),
        last_name=extra.pop('last_name', code),
        current_class=school_class,
        current_academic_year=year,
        **extra
    )


def make_guardian(first_name='Yusuf', last_name='Bakker', **extra):
    return Guardian.objects.create(first_name=first_name, last_name=last_name, **extra)


def record_outcome(student, year, grade=None, attendance=None, is_passed=None):
    return AcademicOutcome.objects.create(
        student=student,
        academic_year=year,
        final_grade=Decimal(str(grade)) if grade is not None else None,
        attendance_percentage=Decimal(str(attendance)) if attendance is not None else None,
        is_passed=is_passed,
    )
