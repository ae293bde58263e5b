# core/services.py
"""
ACADEMIC CALENDAR SERVICES
Academic year lookup and activation. Other apps consume years only through here.
"""
import logging
from typing import Optional

from django.apps import apps
from django.db import transaction, DatabaseError

from .exceptions import AcademicYearNotFound, StorageUnavailable

logger = logging.getLogger(__name__)


# ============ HELPER FUNCTIONS ============

def _get_model(model_name: str, app_label: str = 'core'):
    """Get model lazily to avoid circular imports."""
    try:
        return apps.get_model(app_label, model_name)
    except LookupError as e:
        logger.error(f"Model not found: {app_label}.{model_name} - {e}")
        raise


# ============ ACADEMIC YEAR SERVICE ============

class AcademicYearService:
    """
    Service for academic year lookups and the active-year switch.
    """

    @staticmethod
    def get_active_year():
        """Return the single active academic year, or None."""
        AcademicYear = _get_model('AcademicYear')
        return AcademicYear.objects.filter(is_active=True).first()

    @staticmethod
    def get_year_by_id(year_id):
        """Return the academic year or raise AcademicYearNotFound."""
        AcademicYear = _get_model('AcademicYear')
        try:
            return AcademicYear.objects.get(pk=year_id)
        except (AcademicYear.DoesNotExist, ValueError, TypeError):
            raise AcademicYearNotFound(
                f"Academic year {year_id} not found",
                details={'academicYearId': year_id}
            )

    @staticmethod
    def get_next_year(reference=None):
        """Earliest year after the reference year (defaults to the active year)."""
        reference = reference or AcademicYearService.get_active_year()
        if reference is None:
            return None
        return reference.get_next()

    @staticmethod
    def activate_year(year_id, apply_enrollments: bool = True):
        """
        Make a year the active one.

        Deactivates every other year and, when apply_enrollments is set,
        moves students enrolled for that year into their new class.

        Returns:
            Tuple: (academic_year, number_of_students_moved)
        """
        EnrollmentRecord = _get_model('EnrollmentRecord', 'students')
        Student = _get_model('Student', 'students')

        year = AcademicYearService.get_year_by_id(year_id)

        try:
            with transaction.atomic():
                year.__class__.objects.filter(is_active=True).exclude(pk=year.pk).update(is_active=False)
                if not year.is_active:
                    year.is_active = True
                    year.save(update_fields=['is_active', 'updated_at'])

                moved = 0
                if apply_enrollments:
                    records = EnrollmentRecord.objects.filter(academic_year=year).values_list(
                        'student_id', 'school_class_id'
                    )
                    for student_id, class_id in records:
                        moved += Student.objects.filter(pk=student_id).update(
                            current_class_id=class_id,
                            current_academic_year=year,
                        )
        except DatabaseError as e:
            logger.error(f"Academic year activation failed for {year}: {e}", exc_info=True)
            raise StorageUnavailable(details={'academicYearId': year.pk})

        logger.info(f"Academic year {year} activated, {moved} students moved to their new class")
        return year, moved
