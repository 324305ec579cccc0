"""AfyaTrack URL Configuration.

API routes:
    /api/auth/     - Authentication & sessions (core)
    /api/health/   - Health check (core)
    /api/patients/ - Patient records (patients)
    /api/visits/   - Visits and SOAP notes (visits)
"""

from django.contrib import admin
from django.http import HttpResponse
from django.urls import include, path


def root(request):
    """Plain-text liveness response for the bare root URL."""
    return HttpResponse("AfyaTrack backend is running.")


urlpatterns = [
    path("", root, name="root"),
    path("admin/", admin.site.urls),

    path("api/", include("afyatrack_backend.core.urls")),
    path("api/", include("afyatrack_backend.patients.urls")),
    path("api/", include("afyatrack_backend.visits.urls")),
]
