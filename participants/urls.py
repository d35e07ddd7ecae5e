"""
URLs for participants app (admin).
"""
from django.urls import path
from participants.views import (
    admin_participant_enable_view,
    admin_participant_disable_view,
    admin_participant_bulk_enable_view,
    admin_participant_bulk_disable_view,
)

urlpatterns = [
    path('<int:participant_id>/enable', admin_participant_enable_view, name='participant-enable'),
    path('<int:participant_id>/disable', admin_participant_disable_view, name='participant-disable'),
    path('bulk-enable', admin_participant_bulk_enable_view, name='participant-bulk-enable'),
    path('bulk-disable', admin_participant_bulk_disable_view, name='participant-bulk-disable'),
]
