# students/models.py
"""
STUDENT RELATIONSHIP MODELS
Students, guardians, the links between them, academic outcomes and
re-enrollment records. Invariants are backed by database constraints.
"""
from django.db import models
from django.db.models import Q
from django.utils import timezone
from django.core.exceptions import ValidationError

# SHARED IMPORTS
from shared.constants import (
    CLASS_MODEL_PATH,
    ACADEMIC_YEAR_MODEL_PATH,
    StudentStatus,
    BatchStatus,
)


class Guardian(models.Model):
    """
    A parent or guardian. Exists independently of any student and
    may be linked to zero or more students.
    """
    first_name = models.CharField(max_length=150)
    last_name = models.CharField(max_length=150)
    phone_number = models.CharField(max_length=20, blank=True)
    email = models.EmailField(blank=True)
    address = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'students_guardian'
        ordering = ['last_name', 'first_name']
        indexes = [
            models.Index(fields=['email']),
            models.Index(fields=['phone_number']),
        ]

    def __str__(self):
        return self.full_name

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}"


class Student(models.Model):
    """
    Represents a student. Never hard-deleted; lifecycle changes go through status.
    """
    student_id = models.CharField(max_length=50, unique=True, help_text="Human-readable student code")
    first_name = models.CharField(max_length=150)
    last_name = models.CharField(max_length=150)
    status = models.CharField(
        max_length=20,
        choices=StudentStatus.CHOICES,
        default=StudentStatus.ACTIVE
    )

    current_class = models.ForeignKey(
        CLASS_MODEL_PATH,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='students',
        help_text="Student's current academic class assignment"
    )
    current_academic_year = models.ForeignKey(
        ACADEMIC_YEAR_MODEL_PATH,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='students'
    )

    guardians = models.ManyToManyField(
        Guardian,
        through='StudentGuardianLink',
        related_name='students'
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'students_student'
        ordering = ['student_id']
        indexes = [
            models.Index(fields=['status']),
            models.Index(fields=['current_class']),
            models.Index(fields=['first_name', 'last_name']),
        ]

    def __str__(self):
        return f"{self.full_name} ({self.student_id})"

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}"

    @property
    def is_active(self):
        return self.status == StudentStatus.ACTIVE


class StudentGuardianLink(models.Model):
    """
    Join between a student and a guardian.
    At most one primary link per student; each (student, guardian) pair at most once.
    """
    student = models.ForeignKey(
        Student,
        on_delete=models.CASCADE,
        related_name='guardian_links'
    )
    guardian = models.ForeignKey(
        Guardian,
        on_delete=models.CASCADE,
        related_name='student_links'
    )
    relationship_type = models.CharField(max_length=50)
    is_primary = models.BooleanField(default=False)
    has_emergency_contact = models.BooleanField(default=False)
    notes = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'students_student_guardian'
        ordering = ['-is_primary', 'created_at', 'id']
        constraints = [
            models.UniqueConstraint(
                fields=['student', 'guardian'],
                name='unique_student_guardian_link',
            ),
            models.UniqueConstraint(
                fields=['student'],
                condition=Q(is_primary=True),
                name='unique_primary_guardian_per_student',
            ),
        ]

    def __str__(self):
        primary = " (primary)" if self.is_primary else ""
        return f"{self.guardian} → {self.student}: {self.relationship_type}{primary}"


class AcademicOutcome(models.Model):
    """
    Academic result of a student for one academic year.
    Backs the outcome provider consumed by the eligibility evaluator.
    """
    student = models.ForeignKey(
        Student,
        on_delete=models.CASCADE,
        related_name='academic_outcomes'
    )
    academic_year = models.ForeignKey(
        ACADEMIC_YEAR_MODEL_PATH,
        on_delete=models.CASCADE,
        related_name='academic_outcomes'
    )
    final_grade = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)
    attendance_percentage = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)
    is_passed = models.BooleanField(
        null=True,
        blank=True,
        help_text="Explicit decision; overrides the grade-based rule when set"
    )
    recorded_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'students_academic_outcome'
        unique_together = ['student', 'academic_year']

    def __str__(self):
        return f"{self.student} - {self.academic_year}: {self.final_grade}"

    def clean(self):
        """Validate grade ranges."""
        for field in ('final_grade', 'attendance_percentage'):
            value = getattr(self, field)
            if value is not None and not (0 <= value <= 100):
                raise ValidationError({field: 'Must be between 0 and 100.'})


class ReEnrollmentBatch(models.Model):
    """Audit record of one bulk re-enrollment submission."""
    academic_year = models.ForeignKey(
        ACADEMIC_YEAR_MODEL_PATH,
        on_delete=models.PROTECT,
        related_name='reenrollment_batches'
    )
    enrollment_date = models.DateField(default=timezone.localdate)
    status = models.CharField(max_length=20, choices=BatchStatus.CHOICES)
    submitted_student_ids = models.JSONField(default=list)
    succeeded_count = models.PositiveIntegerField(default=0)
    failed_count = models.PositiveIntegerField(default=0)
    results = models.JSONField(default=dict)
    error = models.TextField(blank=True)
    submitted_by = models.CharField(max_length=150, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'students_reenrollment_batch'
        ordering = ['-created_at']
        verbose_name = 'Re-enrollment Batch'
        verbose_name_plural = 'Re-enrollment Batches'

    def __str__(self):
        return f"Batch #{self.pk} → {self.academic_year} ({self.status})"


class EnrollmentRecord(models.Model):
    """
    Placement of a student into a class for a target academic year.
    Created only by bulk re-enrollment; one per (student, academic year).
    """
    student = models.ForeignKey(
        Student,
        on_delete=models.CASCADE,
        related_name='enrollment_records'
    )
    academic_year = models.ForeignKey(
        ACADEMIC_YEAR_MODEL_PATH,
        on_delete=models.PROTECT,
        related_name='enrollment_records'
    )
    school_class = models.ForeignKey(
        CLASS_MODEL_PATH,
        on_delete=models.PROTECT,
        related_name='enrollment_records'
    )
    enrollment_date = models.DateField(default=timezone.localdate)
    is_promotion = models.BooleanField(default=True)
    batch = models.ForeignKey(
        ReEnrollmentBatch,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='enrollment_records'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'students_enrollment_record'
        constraints = [
            models.UniqueConstraint(
                fields=['student', 'academic_year'],
                name='unique_enrollment_per_student_year',
            ),
        ]
        indexes = [
            models.Index(fields=['academic_year', 'school_class']),
        ]

    def __str__(self):
        return f"{self.student} → {self.school_class} ({self.academic_year})"
