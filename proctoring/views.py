"""
Proctoring API: participant-side activity/session endpoints and admin monitoring.
"""
import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts.permissions import IsAdmin, IsParticipant
from core.utils import client_ip
from proctoring.serializers import (
    BrowserSettingsSerializer,
    CheckSessionSerializer,
    LogActivitySerializer,
    UpdateSessionSerializer,
)
from proctoring.services import (
    active_exams,
    check_session,
    get_browser_settings,
    log_activity,
    recent_activities,
    update_browser_settings,
    update_session,
)

logger = logging.getLogger(__name__)


def _own_participant_id(request, supplied_id=None):
    participant = request.user.participant_profile
    if supplied_id is not None and supplied_id != participant.id:
        logger.warning("proctoring user_id=%s participant_mismatch supplied=%s", request.user.id, supplied_id)
        raise PermissionDenied('participantId does not belong to the current user')
    return participant.id


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsParticipant])
def log_activity_view(request):
    """
    POST /api/proctoring/log-activity
    Body: attemptId, activityType, count?, metadata?. Returns 201.
    """
    serializer = LogActivitySerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data
    participant_id = _own_participant_id(request, data.get('participantId'))
    result = log_activity(
        data['attemptId'],
        participant_id,
        data['activityType'],
        count=data.get('count', 1),
        metadata=data.get('metadata'),
    )
    body = {
        'id': result.entry.id,
        'violationCount': result.violation_count,
        'autoSubmitted': result.auto_submit is not None,
    }
    if result.auto_submit is not None:
        body['result'] = result.auto_submit.as_dict()
    return Response(body, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsParticipant])
def update_session_view(request):
    serializer = UpdateSessionSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data
    return Response(update_session(
        data['attemptId'],
        data['sessionId'],
        ip_address=data.get('ip') or client_ip(request),
        participant_id=_own_participant_id(request),
    ))


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsParticipant])
def check_session_view(request):
    serializer = CheckSessionSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data
    return Response(check_session(data['attemptId'], data['sessionId'], participant_id=_own_participant_id(request)))


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdmin])
def admin_active_exams_view(request):
    """
    GET /api/admin/monitoring/active-exams
    In-progress attempts with activity counts and risk level (high first).
    """
    return Response(active_exams())


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdmin])
def admin_attempt_activities_view(request, attempt_id):
    """GET /api/admin/monitoring/<attempt_id>/activities - latest 100 entries."""
    return Response(recent_activities(attempt_id, limit=100))


@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated, IsAdmin])
def admin_browser_settings_view(request):
    if request.method == 'GET':
        return Response(get_browser_settings())
    serializer = BrowserSettingsSerializer(data=request.data, partial=True)
    serializer.is_valid(raise_exception=True)
    return Response(update_browser_settings(serializer.validated_data))
