"""
Reading URL patterns for the Epistle Walk API.
"""
from django.urls import path

from .views import (
    ScheduleView, DayView, DayContentView, CompleteDayView,
    StatusView, StatusToggleView, ArchiveView, EntriesView,
    HeaderImageView, JourneyMapView,
)

urlpatterns = [
    # Schedule
    path('schedule/', ScheduleView.as_view(), name='schedule'),
    path('days/<int:day>/', DayView.as_view(), name='day'),
    path('days/<int:day>/content/', DayContentView.as_view(), name='day_content'),
    path('days/<int:day>/complete/', CompleteDayView.as_view(), name='day_complete'),

    # Progress
    path('status/', StatusView.as_view(), name='status'),
    path('status/<int:day>/toggle/', StatusToggleView.as_view(), name='status_toggle'),
    path('archive/', ArchiveView.as_view(), name='archive'),

    # Diary and plans
    path('entries/<str:kind>/<str:storage_key>/', EntriesView.as_view(), name='entries'),

    # Generated images
    path('header-image/', HeaderImageView.as_view(), name='header_image'),
    path('journey-maps/<int:journey_id>/', JourneyMapView.as_view(), name='journey_map'),
]
