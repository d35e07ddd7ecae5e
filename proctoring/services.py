"""
Proctoring services: activity logging with auto-submit on the violation limit,
monitoring aggregates, session binding and the cached global browser settings.
"""
import json
import logging
from dataclasses import dataclass

from django.apps import apps
from django.conf import settings
from django.db.models import Sum
from django.utils import timezone

from exams.documents import load_answers, load_question_order
from exams.errors import AlreadySubmitted, NotFound, SessionConflict
from exams.models import ExamAttempt
from exams.services import SubmitResult, force_submit_attempt
from exams.timewindow import elapsed_minutes
from proctoring.models import ActivityLog, ExamBrowserSettings
from proctoring.risk import RISK_ORDER, risk_level, weighted_risk

logger = logging.getLogger(__name__)

BROWSER_SETTINGS_KEY = 'exam-browser-settings:global'
BROWSER_SETTINGS_FIELDS = {
    'isEnabled': 'is_enabled',
    'allowedBrowserPattern': 'allowed_browser_pattern',
    'maxViolations': 'max_violations',
    'allowMultipleSessions': 'allow_multiple_sessions',
    'blockDevtools': 'block_devtools',
    'blockScreenshot': 'block_screenshot',
    'blockRightClick': 'block_right_click',
    'blockCopyPaste': 'block_copy_paste',
    'requireFullscreen': 'require_fullscreen',
}


def _now():
    return timezone.now()


def _settings_cache():
    return apps.get_app_config('proctoring').settings_cache


# ----- Browser settings -----

def _browser_settings_dict(obj):
    data = {key: getattr(obj, attr) for key, attr in BROWSER_SETTINGS_FIELDS.items()}
    data['updatedAt'] = obj.updated_at.isoformat() if obj.updated_at else None
    return data


def get_browser_settings() -> dict:
    return _settings_cache().get_or_set(
        BROWSER_SETTINGS_KEY,
        lambda: _browser_settings_dict(ExamBrowserSettings.load()),
    )


def update_browser_settings(data: dict) -> dict:
    """data uses the camelCase keys of BROWSER_SETTINGS_FIELDS; unknown keys are ignored."""
    obj = ExamBrowserSettings.load()
    changed = []
    for key, attr in BROWSER_SETTINGS_FIELDS.items():
        if key in data:
            setattr(obj, attr, data[key])
            changed.append(attr)
    if changed:
        obj.save(update_fields=changed + ['updated_at'])
    _settings_cache().invalidate(BROWSER_SETTINGS_KEY)
    logger.info("update_browser_settings fields=%s", ','.join(changed) or '-')
    return _browser_settings_dict(obj)


def max_violations_for(schedule) -> int:
    if schedule.max_violations:
        return schedule.max_violations
    return get_browser_settings().get('maxViolations') or settings.EXAM_DEFAULT_MAX_VIOLATIONS


# ----- Activity log -----

@dataclass
class LogResult:
    entry: ActivityLog
    violation_count: int
    auto_submit: SubmitResult | None = None


def _append(attempt, activity_type, count=1, metadata=None, now=None):
    return ActivityLog.objects.create(
        attempt=attempt,
        participant_id=attempt.participant_id,
        activity_type=activity_type,
        count=count,
        metadata=json.dumps(metadata) if metadata is not None else None,
        timestamp=now or _now(),
    )


def record_force_submit(attempt, reason, actor_id=None, now=None):
    """Audit entry for a terminal transition not initiated by the participant."""
    metadata = {'reason': reason}
    if actor_id is not None:
        metadata['actorId'] = actor_id
    return _append(attempt, ActivityLog.TYPE_FORCE_SUBMIT, metadata=metadata, now=now)


def log_activity(attempt_id, participant_id, activity_type, count=1, metadata=None, now=None) -> LogResult:
    """
    Append one activity entry. TAB_BLUR carries the client's running total and sets the
    attempt's violation counter to it. With auto-submit enabled on the schedule, reaching
    the violation limit force-submits the attempt.
    """
    now = now or _now()
    try:
        attempt = ExamAttempt.objects.select_related('schedule').get(pk=attempt_id, participant_id=participant_id)
    except ExamAttempt.DoesNotExist:
        raise NotFound('Exam attempt not found')

    entry = _append(attempt, activity_type, count=count, metadata=metadata, now=now)
    if activity_type == ActivityLog.TYPE_TAB_BLUR:
        ExamAttempt.objects.filter(pk=attempt.pk).update(violation_count=count, updated_at=now)
        attempt.violation_count = count
    result = LogResult(entry=entry, violation_count=attempt.violation_count)

    schedule = attempt.schedule
    if not (schedule.auto_submit_on_violation and attempt.is_in_progress):
        return result
    limit = max_violations_for(schedule)
    if attempt.violation_count < limit:
        return result
    try:
        result.auto_submit = force_submit_attempt(attempt.id, reason='violation_limit', now=now)
    except AlreadySubmitted:
        logger.info("log_activity attempt_id=%s auto_submit_skipped already_submitted", attempt.id)
        return result
    record_force_submit(attempt, 'violation_limit', now=now)
    logger.warning(
        "log_activity attempt_id=%s participant_id=%s violations=%s limit=%s auto_submitted",
        attempt.id, participant_id, attempt.violation_count, limit,
    )
    return result


def activity_counts(attempt_ids) -> dict[int, dict[str, int]]:
    """{attempt_id: {activity_type: sum(count)}}"""
    rows = (
        ActivityLog.objects.filter(attempt_id__in=list(attempt_ids))
        .values('attempt_id', 'activity_type')
        .annotate(total=Sum('count'))
    )
    out = {}
    for row in rows:
        out.setdefault(row['attempt_id'], {})[row['activity_type']] = row['total'] or 0
    return out


def _decode_metadata(raw):
    if not raw:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        return raw


def recent_activities(attempt_id, limit=100) -> list[dict]:
    if not ExamAttempt.objects.filter(pk=attempt_id).exists():
        raise NotFound('Exam attempt not found')
    entries = ActivityLog.objects.filter(attempt_id=attempt_id).order_by('-timestamp', '-id')[:limit]
    return [
        {
            'id': e.id,
            'activityType': e.activity_type,
            'count': e.count,
            'metadata': _decode_metadata(e.metadata),
            'timestamp': e.timestamp.isoformat(),
        }
        for e in entries
    ]


def active_exams(now=None) -> list[dict]:
    """Monitoring rows for every in-progress attempt, highest risk first."""
    now = now or _now()
    attempts = list(
        ExamAttempt.objects.filter(status__in=ExamAttempt.IN_PROGRESS_STATUSES)
        .select_related('participant__user', 'schedule__bank')
    )
    counts = activity_counts(a.id for a in attempts)
    rows = []
    for attempt in attempts:
        attempt_counts = counts.get(attempt.id, {})
        score = weighted_risk(attempt_counts)
        rows.append({
            'attemptId': attempt.id,
            'participantId': attempt.participant_id,
            'participantName': attempt.participant.full_name,
            'examNumber': attempt.participant.exam_number,
            'scheduleId': attempt.schedule_id,
            'scheduleName': attempt.schedule.name,
            'bankCode': attempt.schedule.bank.code,
            'subject': attempt.schedule.bank.subject,
            'status': attempt.status,
            'startedAt': attempt.started_at.isoformat(),
            'elapsedMinutes': elapsed_minutes(attempt.started_at, now),
            'progress': len(load_answers(attempt.answers)),
            'totalQuestions': len(load_question_order(attempt.question_order)),
            'violationCount': attempt.violation_count,
            'sessionId': attempt.session_id,
            'ipAddress': attempt.ip_address,
            'activityCounts': attempt_counts,
            'riskScore': score,
            'riskLevel': risk_level(score),
        })
    rows.sort(key=lambda r: (RISK_ORDER[r['riskLevel']], r['riskScore']), reverse=True)
    return rows


# ----- Session binding -----

def _attempt_for_session(attempt_id, participant_id=None):
    filters = {'pk': attempt_id}
    if participant_id is not None:
        filters['participant_id'] = participant_id
    try:
        return ExamAttempt.objects.get(**filters)
    except ExamAttempt.DoesNotExist:
        raise NotFound('Exam attempt not found')


def update_session(attempt_id, session_id, ip_address=None, participant_id=None, now=None):
    """Latest tab wins: overwrite the stored session id and IP unconditionally."""
    attempt = _attempt_for_session(attempt_id, participant_id)
    ExamAttempt.objects.filter(pk=attempt.pk).update(
        session_id=session_id,
        ip_address=ip_address or None,
        updated_at=now or _now(),
    )
    if attempt.session_id and attempt.session_id != session_id:
        logger.info("update_session attempt_id=%s session_replaced", attempt.id)
    return {'success': True, 'sessionId': session_id}


def check_session(attempt_id, session_id, participant_id=None) -> dict:
    attempt = _attempt_for_session(attempt_id, participant_id)
    return {
        'isValid': attempt.session_id == session_id,
        'currentSessionId': attempt.session_id,
    }


def ensure_session(attempt_id, session_id, participant_id=None, schedule_id=None):
    """
    Optional hard binding for autosave/submit (EXAM_ENFORCE_SESSION_BINDING). Only a
    supplied session id that differs from a stored one is rejected. Attempts outside
    the given participant/schedule are left to the caller's own not-found handling.
    """
    if not settings.EXAM_ENFORCE_SESSION_BINDING or not session_id:
        return
    if get_browser_settings().get('allowMultipleSessions'):
        return
    filters = {'pk': attempt_id}
    if participant_id is not None:
        filters['participant_id'] = participant_id
    if schedule_id is not None:
        filters['schedule_id'] = schedule_id
    stored = ExamAttempt.objects.filter(**filters).values_list('session_id', flat=True).first()
    if stored and stored != session_id:
        logger.warning("ensure_session attempt_id=%s stale_session", attempt_id)
        raise SessionConflict()
