# core/models.py
"""
ACADEMIC CALENDAR MODELS - AcademicYear and Class
Single source of truth for years and class assignments.
"""
import logging

from django.db import models
from django.db.models import Q
from django.core.exceptions import ValidationError
from django.utils import timezone

logger = logging.getLogger(__name__)


# ============ ACADEMIC YEAR MODEL ============

class AcademicYear(models.Model):
    """Academic year. Exactly one year is active system-wide."""
    name = models.CharField(max_length=50, unique=True, help_text="e.g., 2024/2025")
    start_date = models.DateField()
    end_date = models.DateField()
    is_active = models.BooleanField(default=False)
    final_report_date = models.DateField(
        null=True,
        blank=True,
        help_text="Re-enrollment may start once final reports are out"
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'core_academic_year'
        ordering = ['start_date']
        constraints = [
            models.UniqueConstraint(
                fields=['is_active'],
                condition=Q(is_active=True),
                name='unique_active_academic_year',
            ),
        ]
        verbose_name = 'Academic Year'
        verbose_name_plural = 'Academic Years'

    def __str__(self):
        return self.name

    @property
    def duration_months(self) -> int:
        """Get duration of academic year in months."""
        if self.start_date and self.end_date:
            return (self.end_date.year - self.start_date.year) * 12 + self.end_date.month - self.start_date.month
        return 0

    def reenrollment_open(self, on_date=None) -> bool:
        """Re-enrollment into the next year opens once final reports are out."""
        if self.final_report_date is None:
            return True
        return (on_date or timezone.localdate()) >= self.final_report_date

    def get_next(self):
        """Earliest academic year starting after this one."""
        return AcademicYear.objects.filter(
            start_date__gt=self.start_date
        ).order_by('start_date').first()

    def clean(self):
        """Validate academic year dates."""
        if self.start_date and self.end_date and self.start_date >= self.end_date:
            raise ValidationError({'end_date': 'End date must be after start date.'})


# ============ CLASS MODEL ============

class Class(models.Model):
    """
    Academic class within a track (program/stream).
    Classes in a track are ordered by level; promotion moves a student to level + 1.
    """
    name = models.CharField(max_length=100)
    track = models.CharField(max_length=100, help_text="Program or stream, e.g. 'primary'")
    level = models.PositiveIntegerField(help_text="Sequential position within the track")
    academic_year = models.ForeignKey(
        AcademicYear,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name='classes',
        help_text="Leave empty for classes that exist every year"
    )
    max_students = models.IntegerField(default=40)
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'core_class'
        unique_together = ('name', 'academic_year')
        ordering = ['track', 'level', 'name']
        indexes = [
            models.Index(fields=['track', 'level']),
            models.Index(fields=['academic_year', 'is_active']),
        ]
        verbose_name = "Class"
        verbose_name_plural = "Classes"

    def __str__(self):
        academic_year_str = f" - {self.academic_year.name}" if self.academic_year else ""
        return f"{self.name}{academic_year_str}"

    def get_next_class(self, academic_year=None):
        """
        Next sequential class in the same track.
        Prefers a class bound to academic_year, then a year-independent one.
        """
        candidates = Class.objects.filter(
            track=self.track,
            level=self.level + 1,
            is_active=True,
        )
        if academic_year is not None:
            bound = candidates.filter(academic_year=academic_year).order_by('name').first()
            if bound:
                return bound
        return candidates.filter(academic_year__isnull=True).order_by('name').first()

    def get_repeat_class(self, academic_year=None):
        """
        Same-level class for a student repeating the year.
        A class bound to another year is never reused; None when the target
        year has no class at this level.
        """
        if academic_year is None or self.academic_year_id in (None, academic_year.pk):
            return self

        same_level = Class.objects.filter(
            track=self.track,
            level=self.level,
            academic_year=academic_year,
            is_active=True,
        )
        return (
            same_level.filter(name=self.name).first()
            or same_level.order_by('name').first()
        )

    def clean(self):
        """Validate class data."""
        if self.max_students is not None and self.max_students <= 0:
            raise ValidationError({'max_students': 'Maximum students must be greater than 0.'})
