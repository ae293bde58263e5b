# students/urls.py
"""
STUDENT API URLS - mounted under /api/
Paths mirror the endpoints the dashboard client calls.
"""
from django.urls import path
from . import views

app_name = 'students'

urlpatterns = [
    # ============ GUARDIAN LINKS ============
    path('students/<int:student_id>/guardians', views.student_guardians_view, name='student_guardians'),
    path(
        'students/<int:student_id>/guardians/<int:link_id>/primary',
        views.link_set_primary_view,
        name='link_set_primary'
    ),
    path('student-guardians', views.link_create_view, name='link_create'),
    path('student-guardians/<int:link_id>', views.link_detail_view, name='link_detail'),
    path('guardians/<int:guardian_id>/students', views.guardian_students_view, name='guardian_students'),

    # ============ RE-ENROLLMENT ============
    path(
        'students/eligible-for-reenrollment',
        views.eligible_for_reenrollment_view,
        name='eligible_for_reenrollment'
    ),
    path('re-enrollment/stats', views.reenrollment_stats_view, name='reenrollment_stats'),
    path('re-enrollment/batches/<int:batch_id>', views.reenrollment_batch_detail_view, name='reenrollment_batch'),
    path('re-enrollments/bulk', views.bulk_reenrollment_view, name='bulk_reenrollment'),
]
