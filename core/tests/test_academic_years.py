# core/tests/test_academic_years.py
from datetime import date

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.test import TestCase
from django.urls import reverse
from rest_framework.test import APITestCase

from core.exceptions import AcademicYearNotFound
from core.models import AcademicYear, Class
from core.services import AcademicYearService
from students.models import Student, EnrollmentRecord


class AcademicYearModelTest(TestCase):
    def setUp(self):
        self.y2024 = AcademicYear.objects.create(
            name='2024/2025', start_date=date(2024, 9, 1), end_date=date(2025, 7, 15), is_active=True
        )
        self.y2025 = AcademicYear.objects.create(
            name='2025/2026', start_date=date(2025, 9, 1), end_date=date(2026, 7, 15)
        )
        self.y2026 = AcademicYear.objects.create(
            name='2026/2027', start_date=date(2026, 9, 1), end_date=date(2027, 7, 15)
        )

    def test_next_year(self):
        self.assertEqual(self.y2024.get_next(), self.y2025)
        self.assertIsNone(self.y2026.get_next())
        self.assertEqual(AcademicYearService.get_next_year(), self.y2025)

    def test_only_one_active_year_in_storage(self):
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                AcademicYear.objects.filter(pk=self.y2025.pk).update(is_active=True)

    def test_get_year_by_id(self):
        self.assertEqual(AcademicYearService.get_year_by_id(self.y2025.pk), self.y2025)
        with self.assertRaises(AcademicYearNotFound):
            AcademicYearService.get_year_by_id(987654)

    def test_duration_months(self):
        self.assertEqual(self.y2024.duration_months, 10)

    def test_reenrollment_opens_on_final_report_date(self):
        self.assertTrue(self.y2024.reenrollment_open())

        self.y2024.final_report_date = date(2025, 7, 1)
        self.assertFalse(self.y2024.reenrollment_open(on_date=date(2025, 6, 30)))
        self.assertTrue(self.y2024.reenrollment_open(on_date=date(2025, 7, 1)))


class ClassModelTest(TestCase):
    def setUp(self):
        self.year = AcademicYear.objects.create(
            name='2025/2026', start_date=date(2025, 9, 1), end_date=date(2026, 7, 15)
        )
        self.grade3 = Class.objects.create(name='Grade 3', track='primary', level=3)
        self.grade4 = Class.objects.create(name='Grade 4', track='primary', level=4)
        self.form1 = Class.objects.create(name='Form 1', track='secondary', level=4)

    def test_next_class_stays_in_track(self):
        self.assertEqual(self.grade3.get_next_class(), self.grade4)
        self.assertIsNone(self.grade4.get_next_class())

    def test_inactive_class_is_not_a_target(self):
        self.grade4.is_active = False
        self.grade4.save()
        self.assertIsNone(self.grade3.get_next_class(self.year))

    def test_repeat_class(self):
        self.assertEqual(self.grade3.get_repeat_class(self.year), self.grade3)

        old_year = AcademicYear.objects.create(
            name='2024/2025', start_date=date(2024, 9, 1), end_date=date(2025, 7, 15)
        )
        old_grade3 = Class.objects.create(name='Grade 3', track='primary', level=3, academic_year=old_year)
        new_grade3 = Class.objects.create(name='Grade 3', track='primary', level=3, academic_year=self.year)
        self.assertEqual(old_grade3.get_repeat_class(self.year), new_grade3)

    def test_year_bound_class_without_successor_has_no_repeat_class(self):
        old_year = AcademicYear.objects.create(
            name='2024/2025', start_date=date(2024, 9, 1), end_date=date(2025, 7, 15)
        )
        old_grade5 = Class.objects.create(name='Grade 5', track='primary', level=5, academic_year=old_year)

        self.assertIsNone(old_grade5.get_repeat_class(self.year))
        self.assertEqual(old_grade5.get_repeat_class(old_year), old_grade5)


class ActivateYearTest(TestCase):
    def setUp(self):
        self.current = AcademicYear.objects.create(
            name='2024/2025', start_date=date(2024, 9, 1), end_date=date(2025, 7, 15), is_active=True
        )
        self.upcoming = AcademicYear.objects.create(
            name='2025/2026', start_date=date(2025, 9, 1), end_date=date(2026, 7, 15)
        )
        self.grade1 = Class.objects.create(name='Grade 1', track='primary', level=1)
        self.grade2 = Class.objects.create(name='Grade 2', track='primary', level=2)
        self.student = Student.objects.create(
            student_id='S-900', first_name='Noor', last_name='Visser',
            current_class=self.grade1, current_academic_year=self.current
        )
        self.untouched = Student.objects.create(
            student_id='S-901', first_name='Sami', last_name='Visser',
            current_class=self.grade1, current_academic_year=self.current
        )
        EnrollmentRecord.objects.create(
            student=self.student, academic_year=self.upcoming, school_class=self.grade2
        )

    def test_activation_switches_year_and_moves_enrolled_students(self):
        year, moved = AcademicYearService.activate_year(self.upcoming.pk)

        self.current.refresh_from_db()
        self.student.refresh_from_db()
        self.untouched.refresh_from_db()

        self.assertTrue(year.is_active)
        self.assertFalse(self.current.is_active)
        self.assertEqual(AcademicYear.objects.filter(is_active=True).count(), 1)
        self.assertEqual(moved, 1)
        self.assertEqual(self.student.current_class, self.grade2)
        self.assertEqual(self.student.current_academic_year, self.upcoming)
        self.assertEqual(self.untouched.current_class, self.grade1)

    def test_activation_api(self):
        user = get_user_model().objects.create_user(username='admin', password='testpass123')
        client = APITestCase.client_class()
        client.force_authenticate(user)

        response = client.get(reverse('core:academic_year_current'))
        self.assertEqual(response.data['name'], '2024/2025')

        response = client.post(reverse('core:academic_year_activate', args=[self.upcoming.pk]))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['studentsMoved'], 1)

        response = client.post(reverse('core:academic_year_activate', args=[987654]))
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.data['error'], 'ACADEMIC_YEAR_NOT_FOUND')
