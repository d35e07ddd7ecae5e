"""
Participant account services: enable / disable (singly or in bulk), with violation
reset on re-enable.
Each attempt reset runs in its own transaction; one failure never blocks the others.
"""
import logging
from django.db import DatabaseError, transaction
from django.utils import timezone

from exams.errors import ExamError, NotFound
from exams.models import ExamAttempt
from participants.models import Participant

logger = logging.getLogger(__name__)


def _get_participant(participant_id):
    try:
        return Participant.objects.select_related('user').get(pk=participant_id)
    except Participant.DoesNotExist:
        raise NotFound('Participant not found')


def reset_violations_for_participant(participant):
    """
    Reset violation_count to 0 on every attempt of this participant whose schedule
    has reset_violations_on_enable=True. Attempts of other schedules are untouched.

    Returns (reset_attempt_ids, errors) where errors is [{attemptId, error}].
    """
    attempts = ExamAttempt.objects.filter(
        participant=participant,
        schedule__reset_violations_on_enable=True,
    ).values_list('id', flat=True)

    reset_ids = []
    errors = []
    for attempt_id in attempts:
        try:
            with transaction.atomic():
                ExamAttempt.objects.filter(pk=attempt_id).update(
                    violation_count=0,
                    updated_at=timezone.now(),
                )
            reset_ids.append(attempt_id)
        except DatabaseError as e:
            logger.exception(
                "reset_violations participant_id=%s attempt_id=%s failed", participant.id, attempt_id
            )
            errors.append({'attemptId': attempt_id, 'error': str(e)})
    logger.info(
        "reset_violations participant_id=%s reset=%s errors=%s", participant.id, len(reset_ids), len(errors)
    )
    return reset_ids, errors


def enable_participant(participant_id):
    """Re-activate a participant account and reset violation counters where the schedule asks for it."""
    participant = _get_participant(participant_id)
    Participant.objects.filter(pk=participant.pk).update(is_active=True, updated_at=timezone.now())
    participant.is_active = True
    reset_ids, errors = reset_violations_for_participant(participant)
    logger.info("enable_participant participant_id=%s reset_attempts=%s", participant.id, len(reset_ids))
    return {
        'participantId': participant.id,
        'isActive': True,
        'resetAttemptIds': reset_ids,
        'errors': errors,
    }


def disable_participant(participant_id):
    participant = _get_participant(participant_id)
    Participant.objects.filter(pk=participant.pk).update(is_active=False, updated_at=timezone.now())
    logger.info("disable_participant participant_id=%s", participant.id)
    return {'participantId': participant.id, 'isActive': False}


def _bulk(action, participant_ids, name):
    """Apply action to every id; collect per-participant success/failure."""
    results = []
    for participant_id in participant_ids:
        try:
            result = action(participant_id)
            result['success'] = True
        except (ExamError, DatabaseError) as e:
            logger.warning("%s participant_id=%s failed: %s", name, participant_id, e)
            result = {'participantId': participant_id, 'success': False, 'error': str(getattr(e, 'detail', e))}
        results.append(result)
    return {
        'count': sum(1 for r in results if r['success']),
        'results': results,
    }


def bulk_enable_participants(participant_ids):
    return _bulk(enable_participant, participant_ids, 'bulk_enable')


def bulk_disable_participants(participant_ids):
    return _bulk(disable_participant, participant_ids, 'bulk_disable')
