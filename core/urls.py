# core/urls.py
from django.urls import path
from . import views

app_name = 'core'

urlpatterns = [
    # ============ ACADEMIC YEARS ============
    path('academic-years', views.academic_year_list_view, name='academic_year_list'),
    path('academic-years/current', views.current_academic_year_view, name='academic_year_current'),
    path('academic-years/<int:year_id>/activate', views.activate_academic_year_view, name='academic_year_activate'),
]
