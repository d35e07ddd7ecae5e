"""
Participant exam URLs, mounted at /api/exam/.
"""
from django.urls import path
from exams.views.student import (
    exam_info_view,
    exam_start_view,
    exam_save_progress_view,
    exam_submit_view,
    exam_external_submission_view,
)

urlpatterns = [
    path('<int:schedule_id>/info', exam_info_view, name='exam-info'),
    path('<int:schedule_id>/start', exam_start_view, name='exam-start'),
    path('<int:schedule_id>/save-progress', exam_save_progress_view, name='exam-save-progress'),
    path('<int:schedule_id>/submit', exam_submit_view, name='exam-submit'),
    path('<int:schedule_id>/external-submission', exam_external_submission_view, name='exam-external-submission'),
]
