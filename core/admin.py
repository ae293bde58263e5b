# core/admin.py
from django.contrib import admin
from .models import AcademicYear, Class


@admin.register(AcademicYear)
class AcademicYearAdmin(admin.ModelAdmin):
    list_display = ['name', 'start_date', 'end_date', 'is_active', 'final_report_date']
    list_filter = ['is_active']
    search_fields = ['name']
    ordering = ['-start_date']
    # activation moves students, so it only happens through AcademicYearService
    readonly_fields = ['is_active']


@admin.register(Class)
class ClassAdmin(admin.ModelAdmin):
    list_display = ['name', 'track', 'level', 'academic_year', 'max_students', 'is_active']
    list_filter = ['track', 'academic_year', 'is_active']
    search_fields = ['name', 'track']
    list_editable = ['is_active']
