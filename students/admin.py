# students/admin.py
from django.contrib import admin
from django.utils.html import format_html
from django.urls import reverse
from .models import (
    Student, Guardian, StudentGuardianLink, AcademicOutcome,
    EnrollmentRecord, ReEnrollmentBatch,
)


class GuardianLinkInline(admin.TabularInline):
    """Read-only: links change through GuardianLinkService so the primary rule holds."""
    model = StudentGuardianLink
    extra = 0
    can_delete = False
    fields = ['guardian', 'relationship_type', 'is_primary', 'has_emergency_contact', 'notes']
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


# ===== STUDENT ADMIN =====
@admin.register(Student)
class StudentAdmin(admin.ModelAdmin):
    list_display = [
        'student_id',
        'full_name_display',
        'current_class',
        'current_academic_year',
        'primary_guardian_link',
        'status',
    ]

    list_filter = ['status', 'current_academic_year', 'current_class__track']

    search_fields = [
        'student_id',
        'first_name',
        'last_name',
        'guardians__first_name',
        'guardians__last_name',
    ]

    raw_id_fields = ['current_class', 'current_academic_year']
    readonly_fields = ['created_at', 'updated_at']
    inlines = [GuardianLinkInline]

    def full_name_display(self, obj):
        return obj.full_name
    full_name_display.short_description = 'Name'

    def primary_guardian_link(self, obj):
        link = obj.guardian_links.filter(is_primary=True).select_related('guardian').first()
        if link:
            url = reverse('admin:students_guardian_change', args=[link.guardian_id])
            return format_html('<a href="{}">{}</a>', url, link.guardian.full_name)
        return "No primary guardian"
    primary_guardian_link.short_description = 'Primary Guardian'


# ===== GUARDIAN ADMIN =====
@admin.register(Guardian)
class GuardianAdmin(admin.ModelAdmin):
    list_display = ['full_name_display', 'email', 'phone_number', 'student_count']
    search_fields = ['first_name', 'last_name', 'email', 'phone_number']
    readonly_fields = ['created_at', 'updated_at']

    def full_name_display(self, obj):
        return obj.full_name
    full_name_display.short_description = 'Name'

    def student_count(self, obj):
        return obj.student_links.count()
    student_count.short_description = 'Children'


# ===== OUTCOME ADMIN =====
@admin.register(AcademicOutcome)
class AcademicOutcomeAdmin(admin.ModelAdmin):
    list_display = ['student', 'academic_year', 'final_grade', 'attendance_percentage', 'is_passed']
    list_filter = ['academic_year', 'is_passed']
    search_fields = ['student__student_id', 'student__first_name', 'student__last_name']
    raw_id_fields = ['student']


# ===== RE-ENROLLMENT ADMIN (audit, read-only) =====
@admin.register(EnrollmentRecord)
class EnrollmentRecordAdmin(admin.ModelAdmin):
    list_display = ['student', 'academic_year', 'school_class', 'enrollment_date', 'is_promotion', 'batch']
    list_filter = ['academic_year', 'is_promotion']
    search_fields = ['student__student_id', 'student__last_name']

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False


@admin.register(ReEnrollmentBatch)
class ReEnrollmentBatchAdmin(admin.ModelAdmin):
    list_display = ['id', 'academic_year', 'status', 'succeeded_count', 'failed_count', 'submitted_by', 'created_at']
    list_filter = ['status', 'academic_year']

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
