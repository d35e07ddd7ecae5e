"""
Admin URLs, mounted at /api/admin/.
"""
from django.urls import include, path
from exams.views.admin import admin_force_submit_view, admin_recalculate_view
from proctoring.views import (
    admin_active_exams_view,
    admin_attempt_activities_view,
    admin_browser_settings_view,
)

urlpatterns = [
    path('exam/force-submit', admin_force_submit_view, name='admin-exam-force-submit'),
    path('hasil-ujian/recalculate', admin_recalculate_view, name='admin-recalculate'),
    path('monitoring/active-exams', admin_active_exams_view, name='admin-active-exams'),
    path('monitoring/<int:attempt_id>/activities', admin_attempt_activities_view, name='admin-attempt-activities'),
    path('exam-browser-settings', admin_browser_settings_view, name='admin-browser-settings'),
    path('participants/', include('participants.urls')),
]
