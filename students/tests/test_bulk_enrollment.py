# students/tests/test_bulk_enrollment.py
import threading
from datetime import date
from unittest import mock

from django.db import DatabaseError, IntegrityError
from django.test import TestCase

from core.exceptions import NoTargetYear, ReEnrollmentClosed
from core.models import Class
from shared.constants import CandidateStatus, SkipReason, BatchStatus
from students.models import EnrollmentRecord, ReEnrollmentBatch
from students.services import (
    BulkEnrollmentService,
    EligibilityEvaluator,
)

from .helpers import make_years, make_classes, make_student, record_outcome


class CancelAfter:
    """Cancellation token that trips after n checks."""

    def __init__(self, checks_allowed):
        self.checks_allowed = checks_allowed
        self.checks = 0

    def is_set(self):
        self.checks += 1
        return self.checks > self.checks_allowed


class BulkEnrollmentTest(TestCase):
    def setUp(self):
        self.current_year, self.next_year = make_years()
        self.grade1, self.grade2, self.grade6 = make_classes()

        self.s1 = make_student('S-301', self.grade1, self.current_year)
        record_outcome(self.s1, self.current_year, grade=82)
        self.s2 = make_student('S-302', self.grade1, self.current_year)
        record_outcome(self.s2, self.current_year, grade=31)
        self.s3 = make_student('S-303', self.grade1, self.current_year)
        record_outcome(self.s3, self.current_year, is_passed=True)

    def failed_reasons(self, result):
        return {entry['studentId']: entry['reason'] for entry in result.failed}

    def test_passed_and_failed_students_are_placed(self):
        """Scenario C."""
        result = BulkEnrollmentService.process_batch([self.s1.pk, self.s2.pk], self.next_year.pk)

        self.assertTrue(result.committed)
        self.assertEqual(len(result.succeeded), 2)
        self.assertEqual(result.failed, [])

        promoted = EnrollmentRecord.objects.get(student=self.s1, academic_year=self.next_year)
        repeated = EnrollmentRecord.objects.get(student=self.s2, academic_year=self.next_year)
        self.assertEqual(promoted.school_class, self.grade2)
        self.assertTrue(promoted.is_promotion)
        self.assertEqual(repeated.school_class, self.grade1)
        self.assertFalse(repeated.is_promotion)

        candidates = EligibilityEvaluator.build_candidates(self.next_year)
        statuses = {c.student.pk: c.status for c in candidates}
        self.assertEqual(statuses[self.s1.pk], CandidateStatus.ENROLLED)
        self.assertEqual(statuses[self.s2.pk], CandidateStatus.ENROLLED)

    def test_students_keep_current_class_until_year_is_activated(self):
        BulkEnrollmentService.process_batch([self.s1.pk], self.next_year.pk)

        self.s1.refresh_from_db()
        self.assertEqual(self.s1.current_class, self.grade1)
        self.assertEqual(self.s1.current_academic_year, self.current_year)

    def test_second_run_reports_already_enrolled(self):
        """Scenario D: an all-skip batch still succeeds."""
        BulkEnrollmentService.process_batch([self.s1.pk], self.next_year.pk)

        result = BulkEnrollmentService.process_batch([self.s1.pk], self.next_year.pk)

        self.assertTrue(result.committed)
        self.assertEqual(result.succeeded, [])
        self.assertEqual(self.failed_reasons(result), {self.s1.pk: SkipReason.ALREADY_ENROLLED})
        self.assertEqual(EnrollmentRecord.objects.filter(student=self.s1).count(), 1)

    def test_overlapping_batches_create_one_record_per_student(self):
        BulkEnrollmentService.process_batch([self.s1.pk, self.s2.pk], self.next_year.pk)
        result = BulkEnrollmentService.process_batch([self.s2.pk, self.s3.pk], self.next_year.pk)

        self.assertEqual([entry['studentId'] for entry in result.succeeded], [self.s3.pk])
        self.assertEqual(self.failed_reasons(result), {self.s2.pk: SkipReason.ALREADY_ENROLLED})
        self.assertEqual(EnrollmentRecord.objects.filter(academic_year=self.next_year).count(), 3)

    def test_duplicate_ids_in_one_batch(self):
        result = BulkEnrollmentService.process_batch([self.s1.pk, self.s1.pk], self.next_year.pk)

        self.assertEqual(len(result.succeeded), 1)
        self.assertEqual(self.failed_reasons(result), {self.s1.pk: SkipReason.ALREADY_ENROLLED})
        self.assertEqual(EnrollmentRecord.objects.count(), 1)

    def test_per_student_skips_are_reported_individually(self):
        not_evaluated = make_student('S-304', self.grade1, self.current_year)
        top = make_student('S-305', self.grade6, self.current_year)
        record_outcome(top, self.current_year, grade=99)
        withdrawn = make_student('S-306', self.grade1, self.current_year, status='withdrawn')
        record_outcome(withdrawn, self.current_year, grade=99)

        result = BulkEnrollmentService.process_batch(
            [self.s1.pk, not_evaluated.pk, top.pk, withdrawn.pk, 987654],
            self.next_year.pk
        )

        self.assertTrue(result.committed)
        self.assertEqual([entry['studentId'] for entry in result.succeeded], [self.s1.pk])
        self.assertEqual(self.failed_reasons(result), {
            not_evaluated.pk: SkipReason.NOT_EVALUATED,
            top.pk: SkipReason.NO_NEXT_CLASS,
            withdrawn.pk: SkipReason.STUDENT_INACTIVE,
            987654: SkipReason.STUDENT_NOT_FOUND,
        })

    def test_target_year_must_exist_and_not_be_active(self):
        with self.assertRaises(NoTargetYear):
            BulkEnrollmentService.process_batch([self.s1.pk], 987654)
        with self.assertRaises(NoTargetYear):
            BulkEnrollmentService.process_batch([self.s1.pk], self.current_year.pk)
        self.assertFalse(ReEnrollmentBatch.objects.exists())

    def test_batch_is_audited_with_fresh_stats(self):
        result = BulkEnrollmentService.process_batch(
            [self.s1.pk, self.s2.pk], self.next_year.pk,
            enrollment_date=date(2025, 8, 20), submitted_by='registrar'
        )

        batch = ReEnrollmentBatch.objects.get(pk=result.batch_id)
        self.assertEqual(batch.status, BatchStatus.COMMITTED)
        self.assertEqual(batch.succeeded_count, 2)
        self.assertEqual(batch.submitted_by, 'registrar')
        self.assertEqual(batch.enrollment_records.count(), 2)
        self.assertEqual(
            set(batch.enrollment_records.values_list('enrollment_date', flat=True)),
            {date(2025, 8, 20)}
        )
        self.assertEqual(result.stats['enrolledStudents'], 2)
        self.assertEqual(result.stats['totalEligible'], 1)

    def test_storage_failure_rolls_back_the_whole_batch(self):
        original = BulkEnrollmentService._create_enrollment_record
        calls = []

        def flaky(*args, **kwargs):
            calls.append(args)
            if len(calls) == 2:
                raise DatabaseError("connection lost")
            return original(*args, **kwargs)

        with mock.patch.object(BulkEnrollmentService, '_create_enrollment_record', side_effect=flaky):
            result = BulkEnrollmentService.process_batch(
                [self.s1.pk, self.s2.pk, self.s3.pk], self.next_year.pk
            )

        self.assertFalse(result.committed)
        self.assertEqual(result.succeeded, [])
        self.assertEqual(
            self.failed_reasons(result),
            {sid: SkipReason.STORAGE_UNAVAILABLE for sid in (self.s1.pk, self.s2.pk, self.s3.pk)}
        )
        self.assertFalse(EnrollmentRecord.objects.exists())

        batch = ReEnrollmentBatch.objects.get(pk=result.batch_id)
        self.assertEqual(batch.status, BatchStatus.ROLLED_BACK)
        self.assertIn('connection lost', batch.error)

    def test_retry_after_failure_does_not_duplicate(self):
        with mock.patch.object(
            BulkEnrollmentService, '_create_enrollment_record', side_effect=DatabaseError("timeout")
        ):
            failed = BulkEnrollmentService.process_batch([self.s1.pk, self.s2.pk], self.next_year.pk)
        self.assertFalse(failed.committed)

        first = BulkEnrollmentService.process_batch([self.s1.pk, self.s2.pk], self.next_year.pk)
        second = BulkEnrollmentService.process_batch([self.s1.pk, self.s2.pk], self.next_year.pk)

        self.assertEqual(len(first.succeeded), 2)
        self.assertEqual(second.succeeded, [])
        self.assertEqual(EnrollmentRecord.objects.count(), 2)

    def test_cancellation_keeps_processed_students(self):
        result = BulkEnrollmentService.process_batch(
            [self.s1.pk, self.s2.pk, self.s3.pk], self.next_year.pk,
            cancel_token=CancelAfter(1)
        )

        self.assertTrue(result.committed)
        self.assertEqual([entry['studentId'] for entry in result.succeeded], [self.s1.pk])
        self.assertEqual(self.failed_reasons(result), {
            self.s2.pk: SkipReason.CANCELLED,
            self.s3.pk: SkipReason.CANCELLED,
        })
        self.assertEqual(ReEnrollmentBatch.objects.get(pk=result.batch_id).status, BatchStatus.CANCELLED)
        self.assertEqual(EnrollmentRecord.objects.count(), 1)

    def test_cancelled_before_start(self):
        token = threading.Event()
        token.set()

        result = BulkEnrollmentService.process_batch([self.s1.pk], self.next_year.pk, cancel_token=token)

        self.assertEqual(self.failed_reasons(result), {self.s1.pk: SkipReason.CANCELLED})
        self.assertFalse(EnrollmentRecord.objects.exists())

    def test_year_bound_classes_are_not_carried_into_the_next_year(self):
        bound1 = Class.objects.create(name='Grade 1', track='primary', level=1, academic_year=self.current_year)
        Class.objects.create(name='Grade 2', track='primary', level=2, academic_year=self.current_year)
        passed = make_student('S-310', bound1, self.current_year)
        record_outcome(passed, self.current_year, grade=90)
        failed = make_student('S-311', bound1, self.current_year)
        record_outcome(failed, self.current_year, grade=20)

        # no year-less grade 2 either, so neither student has a class next year
        self.grade2.delete()
        result = BulkEnrollmentService.process_batch([passed.pk, failed.pk], self.next_year.pk)

        self.assertEqual(result.succeeded, [])
        self.assertEqual(self.failed_reasons(result), {
            passed.pk: SkipReason.NO_NEXT_CLASS,
            failed.pk: SkipReason.NO_NEXT_CLASS,
        })
        self.assertFalse(EnrollmentRecord.objects.exists())

    def test_year_bound_repeat_class_comes_from_the_target_year(self):
        bound1 = Class.objects.create(name='Grade 1', track='primary', level=1, academic_year=self.current_year)
        next_grade1 = Class.objects.create(name='Grade 1', track='primary', level=1, academic_year=self.next_year)
        failed = make_student('S-312', bound1, self.current_year)
        record_outcome(failed, self.current_year, grade=20)

        BulkEnrollmentService.process_batch([failed.pk], self.next_year.pk)

        record = EnrollmentRecord.objects.get(student=failed)
        self.assertEqual(record.school_class, next_grade1)
        self.assertEqual(record.school_class.academic_year, self.next_year)

    def test_batch_waits_for_final_reports(self):
        self.current_year.final_report_date = date(2099, 1, 1)
        self.current_year.save()

        with self.assertRaises(ReEnrollmentClosed):
            BulkEnrollmentService.process_batch([self.s1.pk], self.next_year.pk)
        self.assertFalse(EnrollmentRecord.objects.exists())
        self.assertFalse(ReEnrollmentBatch.objects.exists())

    def test_batch_opens_on_final_report_date(self):
        self.current_year.final_report_date = date(2025, 6, 30)
        self.current_year.save()

        result = BulkEnrollmentService.process_batch([self.s1.pk], self.next_year.pk)

        self.assertEqual(len(result.succeeded), 1)

    def test_other_constraint_failures_roll_the_batch_back(self):
        with mock.patch.object(
            BulkEnrollmentService, '_create_enrollment_record',
            side_effect=IntegrityError("FOREIGN KEY constraint failed")
        ):
            result = BulkEnrollmentService.process_batch([self.s1.pk, self.s2.pk], self.next_year.pk)

        self.assertFalse(result.committed)
        self.assertEqual(
            set(self.failed_reasons(result).values()), {SkipReason.STORAGE_UNAVAILABLE}
        )
        self.assertEqual(ReEnrollmentBatch.objects.get(pk=result.batch_id).status, BatchStatus.ROLLED_BACK)
