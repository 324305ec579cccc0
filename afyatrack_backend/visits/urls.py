"""Visits App URLs.

Prefix: /api/
Routes:
    GET/POST              /api/visits/                   - List (filtered, paginated) / create
    GET                   /api/visits/statistics/        - Statistics
    GET/PUT/PATCH/DELETE  /api/visits/<pk>/              - Retrieve / update / cancel
    POST                  /api/visits/<pk>/complete/     - Complete
    POST                  /api/visits/<pk>/draft-note/   - Draft the SOAP note from a transcript
"""

from django.urls import path

from afyatrack_backend.visits.views import (
    VisitCompleteView,
    VisitDetailView,
    VisitDraftNoteView,
    VisitListCreateView,
    VisitStatisticsView,
)

app_name = 'visits'

urlpatterns = [
    path('visits/', VisitListCreateView.as_view(), name='list'),
    path('visits/statistics/', VisitStatisticsView.as_view(), name='statistics'),
    path('visits/<int:pk>/', VisitDetailView.as_view(), name='detail'),
    path('visits/<int:pk>/complete/', VisitCompleteView.as_view(), name='complete'),
    path('visits/<int:pk>/draft-note/', VisitDraftNoteView.as_view(), name='draft-note'),
]
