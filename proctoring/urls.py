"""
URLs for proctoring (participant side).
"""
from django.urls import path
from proctoring.views import (
    log_activity_view,
    update_session_view,
    check_session_view,
)

urlpatterns = [
    path('log-activity', log_activity_view, name='proctoring-log-activity'),
    path('update-session', update_session_view, name='proctoring-update-session'),
    path('check-session', check_session_view, name='proctoring-check-session'),
]
