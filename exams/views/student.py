"""
Participant exam API: info, start/resume, autosave, submit, external-form bookkeeping.
The participant always comes from the token; a supplied participantId must match it.
"""
import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts.permissions import IsParticipant
from core.utils import client_ip
from exams.serializers import (
    AttemptSerializer,
    ExternalSubmissionSerializer,
    SaveProgressSerializer,
    ScheduleSummarySerializer,
    StartExamSerializer,
    SubmitExamSerializer,
)
from exams.services import (
    record_external_submission,
    save_progress,
    schedule_info,
    start_attempt,
    submit_attempt,
)
from exams.timewindow import attempt_deadline, exam_window
from proctoring.services import ensure_session

logger = logging.getLogger(__name__)


def _participant_id(request, supplied_id=None):
    participant = request.user.participant_profile
    if supplied_id is not None and supplied_id != participant.id:
        logger.warning(
            "exam_request user_id=%s participant_id=%s supplied=%s participant_mismatch",
            request.user.id, participant.id, supplied_id,
        )
        raise PermissionDenied('participantId does not belong to the current user')
    return participant.id


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def exam_info_view(request, schedule_id):
    """
    GET /api/exam/<schedule_id>/info
    Schedule summary without starting; participants also get their attempt state.
    """
    participant = getattr(request.user, 'participant_profile', None)
    return Response(schedule_info(schedule_id, participant_id=participant.id if participant else None))


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsParticipant])
def exam_start_view(request, schedule_id):
    """
    POST /api/exam/<schedule_id>/start
    Creates the attempt (201) or resumes the in-progress one (200) with the same
    question order and option labels.
    """
    serializer = StartExamSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data
    participant_id = _participant_id(request, data.get('participantId'))
    result = start_attempt(
        schedule_id,
        participant_id,
        ip_address=client_ip(request),
        session_id=data.get('sessionId') or None,
    )
    attempt = result.attempt
    schedule = attempt.schedule
    deadline = min(attempt_deadline(attempt), exam_window(schedule).end)
    body = {
        'attemptId': attempt.id,
        'attempt': AttemptSerializer(attempt).data,
        'schedule': ScheduleSummarySerializer(schedule).data,
        'questions': result.questions,
        'existingAnswers': result.answers,
        'deadline': deadline.isoformat(),
        'resumed': not result.created,
    }
    return Response(body, status=status.HTTP_201_CREATED if result.created else status.HTTP_200_OK)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsParticipant])
def exam_save_progress_view(request, schedule_id):
    """POST /api/exam/<schedule_id>/save-progress - 404 once the attempt is no longer in progress."""
    serializer = SaveProgressSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data
    participant_id = _participant_id(request, data.get('participantId'))
    ensure_session(data['attemptId'], data.get('sessionId'), participant_id=participant_id, schedule_id=schedule_id)
    saved_at = save_progress(schedule_id, participant_id, data['attemptId'], data['answers'])
    return Response({'savedAt': saved_at.isoformat()})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsParticipant])
def exam_submit_view(request, schedule_id):
    """
    POST /api/exam/<schedule_id>/submit
    Returns score, maxScore, percentage and showScore.
    """
    serializer = SubmitExamSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data
    participant_id = _participant_id(request, data.get('participantId'))
    ensure_session(data['attemptId'], data.get('sessionId'), participant_id=participant_id, schedule_id=schedule_id)
    result = submit_attempt(schedule_id, participant_id, data['attemptId'], answers=data.get('answers'))
    return Response(result.as_dict())


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsParticipant])
def exam_external_submission_view(request, schedule_id):
    """POST /api/exam/<schedule_id>/external-submission - form-based exams; idempotent."""
    serializer = ExternalSubmissionSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    participant_id = _participant_id(request, serializer.validated_data.get('participantId'))
    attempt, changed = record_external_submission(schedule_id, participant_id)
    return Response({'attempt': AttemptSerializer(attempt).data, 'changed': changed})
