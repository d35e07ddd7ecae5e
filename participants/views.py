"""
Admin participant account endpoints: enable (with violation reset), disable, and
the bulk variants of both.
"""
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts.permissions import IsAdmin
from participants.models import Participant
from participants.serializers import BulkParticipantSerializer, ParticipantSerializer
from participants.services import (
    bulk_disable_participants,
    bulk_enable_participants,
    disable_participant,
    enable_participant,
)


def _with_participant(result):
    participant = Participant.objects.select_related('user').get(pk=result['participantId'])
    result['participant'] = ParticipantSerializer(participant).data
    return result


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdmin])
def admin_participant_enable_view(request, participant_id):
    """
    POST /api/admin/participants/<id>/enable
    Re-activates the account and resets violation counters on schedules that ask for it.
    """
    return Response(_with_participant(enable_participant(participant_id)))


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdmin])
def admin_participant_disable_view(request, participant_id):
    return Response(_with_participant(disable_participant(participant_id)))


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdmin])
def admin_participant_bulk_enable_view(request):
    """
    POST /api/admin/participants/bulk-enable {ids: [..]}
    Per-participant results; one failure does not stop the batch.
    """
    serializer = BulkParticipantSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    return Response(bulk_enable_participants(serializer.validated_data['ids']))


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdmin])
def admin_participant_bulk_disable_view(request):
    """POST /api/admin/participants/bulk-disable {ids: [..]}"""
    serializer = BulkParticipantSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    return Response(bulk_disable_participants(serializer.validated_data['ids']))
