"""
Admin exam API: force-submit and recalculation.
"""
import logging

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts.permissions import IsAdmin
from exams.models import ExamAttempt
from exams.serializers import ForceSubmitSerializer, RecalculateSerializer
from exams.services import force_submit_attempt, recalculate_attempts
from proctoring.services import record_force_submit

logger = logging.getLogger(__name__)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdmin])
def admin_force_submit_view(request):
    """
    POST /api/admin/exam/force-submit {attemptId, scheduleId?}
    Grades the stored answers against the attempt's snapshot.
    """
    serializer = ForceSubmitSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data
    result = force_submit_attempt(data['attemptId'], schedule_id=data.get('scheduleId'), reason='admin')
    record_force_submit(ExamAttempt.objects.get(pk=result.attempt_id), 'admin', actor_id=request.user.id)
    logger.info("admin_force_submit attempt_id=%s admin_id=%s", result.attempt_id, request.user.id)
    return Response(result.as_dict())


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdmin])
def admin_recalculate_view(request):
    """
    POST /api/admin/hasil-ujian/recalculate {attemptIds, updateSnapshot?}
    Re-scores against the current bank key; per-attempt results.
    """
    serializer = RecalculateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data
    return Response(recalculate_attempts(data['attemptIds'], update_snapshot=data['updateSnapshot']))
