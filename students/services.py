# students/services.py
"""
STUDENT SERVICES - Guardian links, eligibility and bulk re-enrollment
Every mutation runs in a single transaction, PROPER error handling, WELL LOGGED
"""
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional, List, Dict, Any, Iterable

from django.apps import apps
from django.conf import settings
from django.db import transaction, DatabaseError, IntegrityError
from django.utils import timezone

# SHARED IMPORTS
from shared.constants import (
    DEFAULT_RELATIONSHIP_TYPES,
    StudentStatus,
    CandidateStatus,
    SkipReason,
    BatchStatus,
)
from core.exceptions import (
    ValidationError,
    DuplicateLink,
    LinkNotFound,
    NotLinkedToStudent,
    PrimaryInvariantViolation,
    StudentNotFound,
    GuardianNotFound,
    NoTargetYear,
    AcademicYearNotFound,
    AlreadyEnrolled,
    ReEnrollmentClosed,
    StorageUnavailable,
)
from core.services import AcademicYearService

logger = logging.getLogger(__name__)


# ============ HELPER FUNCTIONS ============

def _get_model(model_name: str, app_label: str = 'students'):
    """Get model lazily to avoid circular imports."""
    try:
        return apps.get_model(app_label, model_name)
    except LookupError as e:
        logger.error(f"Model not found: {app_label}.{model_name} - {e}")
        raise


def get_relationship_types() -> List[str]:
    """Allowed relationship labels, from settings."""
    configured = getattr(settings, 'STUDENT_GUARDIAN_RELATIONSHIP_TYPES', None)
    return [label.lower() for label in (configured or DEFAULT_RELATIONSHIP_TYPES)]


def validate_relationship_type(value) -> str:
    """Normalize a relationship label and check it against the configured set."""
    label = (value or '').strip().lower()
    allowed = get_relationship_types()
    if label not in allowed:
        raise ValidationError(
            f"Invalid relationship type '{value}'",
            details={'relationshipType': f"Must be one of: {', '.join(allowed)}"}
        )
    return label


def _get_student(student_id, lock: bool = False):
    Student = _get_model('Student')
    queryset = Student.objects.select_for_update() if lock else Student.objects
    try:
        return queryset.get(pk=student_id)
    except (Student.DoesNotExist, ValueError, TypeError):
        raise StudentNotFound(f"Student {student_id} not found", details={'studentId': student_id})


# ============ GUARDIAN LINK SERVICE ============

class GuardianLinkService:
    """
    Owns the student ↔ guardian links.

    Every write locks the student row first so concurrent calls on the
    same student's link set are serialized.
    """

    @staticmethod
    def add_link(
        student_id,
        guardian_id,
        relationship_type: str,
        is_primary: bool = False,
        has_emergency_contact: bool = False,
        notes: str = ''
    ):
        """
        Link a guardian to a student.

        Args:
            student_id: Student primary key
            guardian_id: Guardian primary key
            relationship_type: Label from STUDENT_GUARDIAN_RELATIONSHIP_TYPES
            is_primary: Demote the current primary link and take its place
            has_emergency_contact: Guardian is an emergency contact
            notes: Free text

        Returns:
            The created StudentGuardianLink

        Raises:
            DuplicateLink: If the guardian is already linked to the student
            StudentNotFound, GuardianNotFound, ValidationError
        """
        Guardian = _get_model('Guardian')
        StudentGuardianLink = _get_model('StudentGuardianLink')

        relationship_type = validate_relationship_type(relationship_type)
        auto_primary = getattr(settings, 'STUDENT_GUARDIAN_AUTO_PRIMARY', False)

        try:
            with transaction.atomic():
                student = _get_student(student_id, lock=True)
                try:
                    guardian = Guardian.objects.get(pk=guardian_id)
                except (Guardian.DoesNotExist, ValueError, TypeError):
                    raise GuardianNotFound(
                        f"Guardian {guardian_id} not found",
                        details={'guardianId': guardian_id}
                    )

                if StudentGuardianLink.objects.filter(student=student, guardian=guardian).exists():
                    raise DuplicateLink(details={'studentId': student.pk, 'guardianId': guardian.pk})

                if is_primary:
                    demoted = StudentGuardianLink.objects.filter(
                        student=student, is_primary=True
                    ).update(is_primary=False)
                    if demoted:
                        logger.info(f"Demoted previous primary guardian of student {student.student_id}")

                link = StudentGuardianLink.objects.create(
                    student=student,
                    guardian=guardian,
                    relationship_type=relationship_type,
                    is_primary=bool(is_primary),
                    has_emergency_contact=bool(has_emergency_contact),
                    notes=notes or '',
                )

                # First guardian becomes primary, decided under the same lock
                if auto_primary and not link.is_primary:
                    if StudentGuardianLink.objects.filter(student=student).count() == 1:
                        link.is_primary = True
                        link.save(update_fields=['is_primary', 'updated_at'])

        except DuplicateLink:
            logger.warning(f"Duplicate guardian link rejected: student={student_id} guardian={guardian_id}")
            raise
        except IntegrityError as e:
            raise GuardianLinkService._translate_integrity_error(student_id, guardian_id, e)
        except DatabaseError as e:
            logger.error(f"Guardian link storage error: {e}", exc_info=True)
            raise StorageUnavailable(details={'studentId': student_id, 'guardianId': guardian_id})

        logger.info(
            f"Guardian {guardian.full_name} linked to {student.student_id} "
            f"as {relationship_type}{' (primary)' if link.is_primary else ''}"
        )
        return link

    @staticmethod
    def remove_link(link_id) -> None:
        """
        Hard-remove a link. Removing the primary link leaves the student
        without a primary guardian; nothing is promoted automatically.
        """
        StudentGuardianLink = _get_model('StudentGuardianLink')

        try:
            with transaction.atomic():
                link = StudentGuardianLink.objects.select_for_update().filter(pk=link_id).first()
                if link is None:
                    raise LinkNotFound(f"Link {link_id} not found", details={'linkId': link_id})
                was_primary = link.is_primary
                student_id = link.student_id
                link.delete()
        except (ValueError, TypeError):
            raise LinkNotFound(f"Link {link_id} not found", details={'linkId': link_id})
        except DatabaseError as e:
            logger.error(f"Guardian link removal error: {e}", exc_info=True)
            raise StorageUnavailable(details={'linkId': link_id})

        if was_primary:
            logger.info(f"Primary link {link_id} removed, student {student_id} has no primary guardian")
        else:
            logger.info(f"Link {link_id} removed from student {student_id}")

    @staticmethod
    def set_primary(student_id, link_id):
        """
        Make one link the student's primary link, clearing any other.

        Raises:
            LinkNotFound: Link does not exist
            NotLinkedToStudent: Link belongs to another student
        """
        StudentGuardianLink = _get_model('StudentGuardianLink')

        try:
            with transaction.atomic():
                student = _get_student(student_id, lock=True)
                link = StudentGuardianLink.objects.filter(pk=link_id).first()
                if link is None:
                    raise LinkNotFound(f"Link {link_id} not found", details={'linkId': link_id})
                if link.student_id != student.pk:
                    raise NotLinkedToStudent(details={'studentId': student.pk, 'linkId': link.pk})
                GuardianLinkService._promote(link)
        except (ValueError, TypeError):
            raise LinkNotFound(f"Link {link_id} not found", details={'linkId': link_id})
        except IntegrityError as e:
            raise GuardianLinkService._translate_integrity_error(student_id, None, e)
        except DatabaseError as e:
            logger.error(f"Set primary storage error: {e}", exc_info=True)
            raise StorageUnavailable(details={'studentId': student_id, 'linkId': link_id})

        logger.info(f"Link {link.pk} is now the primary guardian of student {student.student_id}")
        return link

    @staticmethod
    def update_link(link_id, **changes):
        """
        Change a link's label, flags or notes.

        Accepted keys: relationship_type, has_emergency_contact, notes, is_primary.
        Setting is_primary=True goes through the same path as set_primary.
        """
        StudentGuardianLink = _get_model('StudentGuardianLink')

        allowed = {'relationship_type', 'has_emergency_contact', 'notes', 'is_primary'}
        unknown = set(changes) - allowed
        if unknown:
            raise ValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")

        if 'relationship_type' in changes:
            changes['relationship_type'] = validate_relationship_type(changes['relationship_type'])

        try:
            with transaction.atomic():
                link = StudentGuardianLink.objects.filter(pk=link_id).first()
                if link is None:
                    raise LinkNotFound(f"Link {link_id} not found", details={'linkId': link_id})

                # lock the student before touching primary flags
                _get_student(link.student_id, lock=True)
                link.refresh_from_db()

                make_primary = changes.pop('is_primary', None)
                for field_name, value in changes.items():
                    setattr(link, field_name, value if field_name != 'notes' else (value or ''))
                if changes:
                    link.save(update_fields=list(changes) + ['updated_at'])

                if make_primary is True:
                    GuardianLinkService._promote(link)
                elif make_primary is False and link.is_primary:
                    link.is_primary = False
                    link.save(update_fields=['is_primary', 'updated_at'])
        except (ValueError, TypeError):
            raise LinkNotFound(f"Link {link_id} not found", details={'linkId': link_id})
        except IntegrityError as e:
            raise GuardianLinkService._translate_integrity_error(None, None, e)
        except DatabaseError as e:
            logger.error(f"Guardian link update error: {e}", exc_info=True)
            raise StorageUnavailable(details={'linkId': link_id})

        logger.info(f"Link {link.pk} updated")
        return link

    @staticmethod
    def list_links(student_id) -> list:
        """All links of a student, primary first. Snapshot read, no locks."""
        StudentGuardianLink = _get_model('StudentGuardianLink')
        student = _get_student(student_id)
        return list(
            StudentGuardianLink.objects.filter(student=student).select_related('guardian')
        )

    @staticmethod
    def list_students_for_guardian(guardian_id) -> list:
        """All links of a guardian with their students."""
        Guardian = _get_model('Guardian')
        StudentGuardianLink = _get_model('StudentGuardianLink')

        if not Guardian.objects.filter(pk=guardian_id).exists():
            raise GuardianNotFound(f"Guardian {guardian_id} not found", details={'guardianId': guardian_id})
        return list(
            StudentGuardianLink.objects.filter(guardian_id=guardian_id).select_related('student')
        )

    # ============ PRIVATE HELPER METHODS ============

    @staticmethod
    def _promote(link):
        """Clear other primary flags of the student, then set this one. Caller holds the lock."""
        StudentGuardianLink = _get_model('StudentGuardianLink')

        StudentGuardianLink.objects.filter(
            student_id=link.student_id, is_primary=True
        ).exclude(pk=link.pk).update(is_primary=False)

        if not link.is_primary:
            link.is_primary = True
            link.save(update_fields=['is_primary', 'updated_at'])

    @staticmethod
    def _translate_integrity_error(student_id, guardian_id, error):
        """Map a constraint failure that slipped past the service checks."""
        StudentGuardianLink = _get_model('StudentGuardianLink')

        if student_id is not None and guardian_id is not None and StudentGuardianLink.objects.filter(
            student_id=student_id, guardian_id=guardian_id
        ).exists():
            logger.warning(f"Concurrent duplicate link: student={student_id} guardian={guardian_id}")
            return DuplicateLink(details={'studentId': student_id, 'guardianId': guardian_id})

        logger.error(f"Primary guardian constraint hit for student {student_id}: {error}", exc_info=True)
        return PrimaryInvariantViolation(details={'studentId': student_id})


# ============ ELIGIBILITY ============

@dataclass
class ReEnrollmentCandidate:
    """A student joined with the outcome of their current year."""
    student: Any
    status: str
    next_class: Any = None
    next_academic_year: Any = None
    outcome: Any = None
    enrollment: Any = None

    @property
    def is_promotion(self) -> bool:
        return self.status == CandidateStatus.PASSED

    def to_dict(self) -> Dict[str, Any]:
        student = self.student
        outcome = self.outcome
        return {
            'id': student.pk,
            'studentId': student.student_id,
            'firstName': student.first_name,
            'lastName': student.last_name,
            'currentClassId': student.current_class_id,
            'currentClass': student.current_class.name if student.current_class_id else None,
            'status': self.status,
            'isPassed': self.status == CandidateStatus.PASSED if outcome is not None else None,
            'finalGrade': _as_number(getattr(outcome, 'final_grade', None)),
            'attendancePercentage': _as_number(getattr(outcome, 'attendance_percentage', None)),
            'nextClassId': self.next_class.pk if self.next_class else None,
            'nextClass': self.next_class.name if self.next_class else None,
            'nextAcademicYearId': self.next_academic_year.pk if self.next_academic_year else None,
        }


def _as_number(value):
    if value is None:
        return None
    return float(value) if isinstance(value, Decimal) else value


class AcademicOutcomeProvider:
    """Reads stored academic outcomes for the eligibility evaluator."""

    @staticmethod
    def get_outcome(student, academic_year):
        if academic_year is None:
            return None
        AcademicOutcome = _get_model('AcademicOutcome')
        return AcademicOutcome.objects.filter(student=student, academic_year=academic_year).first()

    @staticmethod
    def get_outcomes(students: Iterable, default_year=None) -> Dict[int, Any]:
        """Outcomes keyed by student pk, each read for the student's own current year."""
        AcademicOutcome = _get_model('AcademicOutcome')
        outcomes = {}
        for outcome in AcademicOutcome.objects.filter(student__in=list(students)):
            outcomes[(outcome.student_id, outcome.academic_year_id)] = outcome

        result = {}
        for student in students:
            source_year_id = student.current_academic_year_id or getattr(default_year, 'pk', None)
            result[student.pk] = outcomes.get((student.pk, source_year_id))
        return result


class EligibilityEvaluator:
    """
    Derives re-enrollment status. Never writes.
    """

    @staticmethod
    def determine_status(outcome) -> str:
        """passed / failed from an outcome, eligible when there is nothing to judge."""
        if outcome is None:
            return CandidateStatus.ELIGIBLE
        if outcome.is_passed is not None:
            return CandidateStatus.PASSED if outcome.is_passed else CandidateStatus.FAILED
        if outcome.final_grade is None:
            return CandidateStatus.ELIGIBLE

        rules = getattr(settings, 'REENROLLMENT', {})
        pass_mark = Decimal(str(rules.get('PASS_MARK', 55)))
        min_attendance = Decimal(str(rules.get('MIN_ATTENDANCE', 0)))

        if outcome.final_grade < pass_mark:
            return CandidateStatus.FAILED
        if outcome.attendance_percentage is not None and outcome.attendance_percentage < min_attendance:
            return CandidateStatus.FAILED
        return CandidateStatus.PASSED

    @staticmethod
    def evaluate(student, outcome, target_year=None) -> ReEnrollmentCandidate:
        """
        passed → next class in the track; failed → repeat the current class.
        Both in target_year.
        """
        status = EligibilityEvaluator.determine_status(outcome)
        next_class = None

        current_class = student.current_class if student.current_class_id else None
        if current_class is not None:
            if status == CandidateStatus.PASSED:
                next_class = current_class.get_next_class(target_year)
            elif status == CandidateStatus.FAILED:
                next_class = current_class.get_repeat_class(target_year)

        return ReEnrollmentCandidate(
            student=student,
            status=status,
            next_class=next_class,
            next_academic_year=target_year if status != CandidateStatus.ELIGIBLE else None,
            outcome=outcome,
        )

    @staticmethod
    def resolve_target_year(academic_year_id=None):
        """Explicit year when given, otherwise the year after the active one (may be None)."""
        if academic_year_id not in (None, ''):
            return AcademicYearService.get_year_by_id(academic_year_id)
        return AcademicYearService.get_next_year()

    @staticmethod
    def build_candidates(target_year=None) -> List[ReEnrollmentCandidate]:
        """Every active student evaluated fresh, enrolled ones marked as such."""
        Student = _get_model('Student')
        EnrollmentRecord = _get_model('EnrollmentRecord')

        students = list(
            Student.objects.filter(status=StudentStatus.ACTIVE).select_related('current_class', 'current_academic_year')
        )
        active_year = AcademicYearService.get_active_year()
        outcomes = AcademicOutcomeProvider.get_outcomes(students, default_year=active_year)

        enrollments = {}
        if target_year is not None:
            enrollments = {
                record.student_id: record
                for record in EnrollmentRecord.objects.filter(
                    academic_year=target_year, student__in=students
                ).select_related('school_class')
            }

        candidates = []
        for student in students:
            candidate = EligibilityEvaluator.evaluate(student, outcomes.get(student.pk), target_year)
            record = enrollments.get(student.pk)
            if record is not None:
                candidate.status = CandidateStatus.ENROLLED
                candidate.enrollment = record
                candidate.next_class = record.school_class
                candidate.next_academic_year = target_year
            candidates.append(candidate)
        return candidates

    @staticmethod
    def list_eligible(target_year=None, status: Optional[str] = None) -> List[ReEnrollmentCandidate]:
        """
        Candidates not yet enrolled in the target year.

        Args:
            target_year: AcademicYear; defaults to the year after the active one
            status: Optional filter (eligible, passed, failed)
        """
        if status and status not in CandidateStatus.FILTERABLE:
            raise ValidationError(
                f"Invalid status filter '{status}'",
                details={'status': f"Must be one of: {', '.join(CandidateStatus.FILTERABLE)}"}
            )
        if target_year is None:
            target_year = AcademicYearService.get_next_year()

        candidates = [
            c for c in EligibilityEvaluator.build_candidates(target_year)
            if c.status != CandidateStatus.ENROLLED
        ]
        if status:
            candidates = [c for c in candidates if c.status == status]
        return candidates


# ============ QUERY FAÇADE ============

class ReEnrollmentQueryService:
    """Read-side views for the re-enrollment screens."""

    @staticmethod
    def get_stats(target_year=None) -> Dict[str, int]:
        """Counters recomputed from storage on every call."""
        if target_year is None:
            target_year = AcademicYearService.get_next_year()

        candidates = EligibilityEvaluator.build_candidates(target_year)
        counts = {s: 0 for s in (CandidateStatus.ELIGIBLE, CandidateStatus.PASSED,
                                 CandidateStatus.FAILED, CandidateStatus.ENROLLED)}
        for candidate in candidates:
            counts[candidate.status] += 1

        total = len(candidates)
        current_year = AcademicYearService.get_active_year()

        return {
            'totalStudents': total,
            'totalEligible': total - counts[CandidateStatus.ENROLLED],
            'passedStudents': counts[CandidateStatus.PASSED],
            'failedStudents': counts[CandidateStatus.FAILED],
            'enrolledStudents': counts[CandidateStatus.ENROLLED],
            'pendingEnrollments': counts[CandidateStatus.ELIGIBLE],
            'completionRate': round(counts[CandidateStatus.ENROLLED] / total * 100, 1) if total else 0.0,
            'registrationOpen': current_year is None or current_year.reenrollment_open(),
        }


# ============ BULK RE-ENROLLMENT ============

@dataclass
class BatchResult:
    committed: bool
    academic_year_id: int
    batch_id: Optional[int] = None
    succeeded: List[Dict[str, Any]] = field(default_factory=list)
    failed: List[Dict[str, Any]] = field(default_factory=list)
    stats: Optional[Dict[str, int]] = None
    error: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {
            'batchId': self.batch_id,
            'committed': self.committed,
            'academicYearId': self.academic_year_id,
            'succeededCount': len(self.succeeded),
            'failedCount': len(self.failed),
            'succeeded': self.succeeded,
            'failed': self.failed,
            'stats': self.stats,
            'error': self.error,
        }


def _skip(student_id, reason: str, detail: str = '') -> Dict[str, Any]:
    return {'studentId': student_id, 'reason': reason, 'detail': detail}


class BulkEnrollmentService:
    """
    Moves many students into the next academic year.

    One outer transaction per batch with a savepoint per student. A
    per-student skip never fails the batch; any storage error rolls
    the whole batch back.
    """

    @staticmethod
    def process_batch(
        student_ids,
        academic_year_id,
        enrollment_date=None,
        submitted_by: str = '',
        cancel_token=None
    ) -> BatchResult:
        """
        Args:
            student_ids: Student primary keys, in processing order
            academic_year_id: Target year; must exist and must not be the active year
            enrollment_date: Defaults to today
            submitted_by: Username recorded on the audit row
            cancel_token: Object with is_set(); checked before each student

        Returns:
            BatchResult with one entry per submitted student id

        Raises:
            NoTargetYear: Target year missing or is the current year
            ReEnrollmentClosed: Final report date of the current year not reached
        """
        ReEnrollmentBatch = _get_model('ReEnrollmentBatch')

        try:
            target_year = AcademicYearService.get_year_by_id(academic_year_id)
        except AcademicYearNotFound:
            raise NoTargetYear(
                f"Academic year {academic_year_id} does not exist",
                details={'academicYearId': academic_year_id}
            )
        if target_year.is_active:
            raise NoTargetYear(
                f"{target_year} is the current academic year",
                details={'academicYearId': target_year.pk}
            )

        current_year = AcademicYearService.get_active_year()
        if current_year is not None and not current_year.reenrollment_open():
            raise ReEnrollmentClosed(
                f"Re-enrollment into {target_year} opens on {current_year.final_report_date}",
                details={'finalReportDate': current_year.final_report_date.isoformat()}
            )

        student_ids = list(student_ids or [])
        enrollment_date = enrollment_date or timezone.localdate()
        result = BatchResult(committed=True, academic_year_id=target_year.pk)
        cancelled = False

        try:
            with transaction.atomic():
                batch = ReEnrollmentBatch.objects.create(
                    academic_year=target_year,
                    enrollment_date=enrollment_date,
                    status=BatchStatus.COMMITTED,
                    submitted_student_ids=student_ids,
                    submitted_by=submitted_by or '',
                )
                result.batch_id = batch.pk

                seen = set()
                for index, student_id in enumerate(student_ids):
                    if cancel_token is not None and cancel_token.is_set():
                        cancelled = True
                        result.failed.extend(
                            _skip(sid, SkipReason.CANCELLED, 'Batch cancelled before processing')
                            for sid in student_ids[index:]
                        )
                        break

                    if student_id in seen:
                        result.failed.append(
                            _skip(student_id, SkipReason.ALREADY_ENROLLED, 'Duplicate id in batch')
                        )
                        continue
                    seen.add(student_id)

                    entry, ok = BulkEnrollmentService._enroll_student(
                        student_id, target_year, batch, enrollment_date
                    )
                    (result.succeeded if ok else result.failed).append(entry)

                batch.status = BatchStatus.CANCELLED if cancelled else BatchStatus.COMMITTED
                batch.succeeded_count = len(result.succeeded)
                batch.failed_count = len(result.failed)
                batch.results = {'succeeded': result.succeeded, 'failed': result.failed}
                batch.save()

        except DatabaseError as e:
            logger.error(f"Re-enrollment batch into {target_year} rolled back: {e}", exc_info=True)
            return BulkEnrollmentService._rolled_back(
                student_ids, target_year, enrollment_date, submitted_by, str(e)
            )

        result.stats = ReEnrollmentQueryService.get_stats(target_year)
        logger.info(
            f"Re-enrollment batch #{result.batch_id} into {target_year}: "
            f"{len(result.succeeded)} enrolled, {len(result.failed)} skipped"
            f"{' (cancelled)' if cancelled else ''}"
        )
        return result

    # ============ PRIVATE HELPER METHODS ============

    @staticmethod
    def _enroll_student(student_id, target_year, batch, enrollment_date):
        """
        Re-check eligibility and insert the record in one savepoint.

        Returns:
            Tuple: (result_entry, succeeded)
        """
        Student = _get_model('Student')
        EnrollmentRecord = _get_model('EnrollmentRecord')

        try:
            with transaction.atomic():
                student = Student.objects.select_for_update().filter(pk=student_id).first()
                if student is None:
                    return _skip(student_id, SkipReason.STUDENT_NOT_FOUND), False
                if not student.is_active:
                    return _skip(student_id, SkipReason.STUDENT_INACTIVE, f"Status is {student.status}"), False

                if EnrollmentRecord.objects.filter(student=student, academic_year=target_year).exists():
                    raise AlreadyEnrolled()

                source_year = student.current_academic_year or AcademicYearService.get_active_year()
                outcome = AcademicOutcomeProvider.get_outcome(student, source_year)
                evaluation = EligibilityEvaluator.evaluate(student, outcome, target_year)

                if evaluation.status == CandidateStatus.ELIGIBLE:
                    return _skip(student_id, SkipReason.NOT_EVALUATED, 'No pass/fail outcome recorded'), False
                if evaluation.next_class is None:
                    return _skip(student_id, SkipReason.NO_NEXT_CLASS, 'No class to place the student in'), False

                record = BulkEnrollmentService._create_enrollment_record(
                    student, target_year, evaluation, batch, enrollment_date
                )

        except AlreadyEnrolled as e:
            return _skip(student_id, SkipReason.ALREADY_ENROLLED, e.message), False
        except IntegrityError:
            # another registrar enrolled the student between check and insert
            if not EnrollmentRecord.objects.filter(student_id=student_id, academic_year=target_year).exists():
                raise
            logger.warning(f"Concurrent enrollment of student {student_id} into {target_year}")
            return _skip(student_id, SkipReason.ALREADY_ENROLLED, 'Enrolled concurrently'), False

        return {
            'studentId': student_id,
            'enrollmentRecordId': record.pk,
            'classId': record.school_class_id,
            'className': evaluation.next_class.name,
            'academicYearId': target_year.pk,
            'outcome': evaluation.status,
            'isPromotion': record.is_promotion,
            'status': CandidateStatus.ENROLLED,
        }, True

    @staticmethod
    def _create_enrollment_record(student, target_year, evaluation, batch, enrollment_date):
        EnrollmentRecord = _get_model('EnrollmentRecord')
        return EnrollmentRecord.objects.create(
            student=student,
            academic_year=target_year,
            school_class=evaluation.next_class,
            enrollment_date=enrollment_date,
            is_promotion=evaluation.is_promotion,
            batch=batch,
        )

    @staticmethod
    def _rolled_back(student_ids, target_year, enrollment_date, submitted_by, error) -> BatchResult:
        """Report every student as failed and leave an audit row outside the dead transaction."""
        ReEnrollmentBatch = _get_model('ReEnrollmentBatch')

        result = BatchResult(
            committed=False,
            academic_year_id=target_year.pk,
            failed=[
                _skip(sid, SkipReason.STORAGE_UNAVAILABLE, 'Batch rolled back, safe to retry')
                for sid in student_ids
            ],
            error=StorageUnavailable().message,
        )
        try:
            batch = ReEnrollmentBatch.objects.create(
                academic_year=target_year,
                enrollment_date=enrollment_date,
                status=BatchStatus.ROLLED_BACK,
                submitted_student_ids=student_ids,
                failed_count=len(result.failed),
                results={'succeeded': [], 'failed': result.failed},
                error=error,
                submitted_by=submitted_by or '',
            )
            result.batch_id = batch.pk
        except DatabaseError as audit_error:
            logger.error(f"Could not record rolled back batch: {audit_error}", exc_info=True)
        return result
