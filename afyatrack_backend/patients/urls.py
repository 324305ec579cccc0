"""Patients App URLs.

Prefix: /api/
Routes:
    GET/POST              /api/patients/              - List (filtered, paginated) / create
    GET                   /api/patients/search/?q=    - Quick search
    GET                   /api/patients/statistics/   - Statistics
    GET/PUT/PATCH/DELETE  /api/patients/<pk>/         - Retrieve / update / deactivate
    GET                   /api/patients/<pk>/visits/  - Visit history
"""

from django.urls import path

from afyatrack_backend.patients.views import (
    PatientDetailView,
    PatientListCreateView,
    PatientSearchView,
    PatientStatisticsView,
    PatientVisitsView,
)

app_name = 'patients'

urlpatterns = [
    path('patients/', PatientListCreateView.as_view(), name='list'),
    path('patients/search/', PatientSearchView.as_view(), name='search'),
    path('patients/statistics/', PatientStatisticsView.as_view(), name='statistics'),
    path('patients/<int:pk>/', PatientDetailView.as_view(), name='detail'),
    path('patients/<int:pk>/visits/', PatientVisitsView.as_view(), name='visits'),
]
