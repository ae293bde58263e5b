# config/urls.py

from django.contrib import admin
from django.http import JsonResponse
from django.urls import path, include


def health_check_view(request):
    return JsonResponse({'status': 'ok'})


# -------------------------------------------------------------------
# URL CONFIGURATION
# -------------------------------------------------------------------

urlpatterns = [
    # ----------------------------------------------------------------
    # Health & diagnostics
    # ----------------------------------------------------------------
    path("health/", health_check_view, name="health_check"),

    # ----------------------------------------------------------------
    # REST API
    # ----------------------------------------------------------------
    path("api/", include(("students.urls", "students"), namespace="students")),
    path("api/", include(("core.urls", "core"), namespace="core")),

    # ----------------------------------------------------------------
    # Admin
    # ----------------------------------------------------------------
    path("admin/", admin.site.urls),
]
