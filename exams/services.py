"""
Exam session lifecycle: start, autosave, submit, force-submit, recalculate.

The submitted transition is always a conditional UPDATE on the in-progress statuses,
so concurrent submits (or submit racing force-submit) have exactly one winner.
Start is idempotent: the (schedule, participant) unique constraint resolves
concurrent first starts and the loser returns the winner's attempt.
"""
import logging
import random
from dataclasses import dataclass, field

from django.db import DatabaseError, IntegrityError, transaction
from django.utils import timezone

from exams.documents import (
    dump_answer_key,
    dump_answers,
    dump_option_mapping,
    dump_question_order,
    load_answer_key,
    load_answers,
    load_option_mapping,
    load_question_order,
    normalize_answers,
)
from exams.errors import (
    AlreadyCompleted,
    AlreadySubmitted,
    ExamError,
    NotFound,
    NotRegistered,
    ParticipantDisabled,
    TooSoon,
)
from exams.models import ExamAttempt, ExamSchedule, ExamScheduleParticipant, Question
from exams.scoring import ScoreResult, build_answer_key, percentage, score_answers
from exams.shuffle import prepare_questions, public_questions, replay_questions
from exams.timewindow import attempt_deadline, check_window, elapsed_minutes, exam_window
from participants.models import Participant

logger = logging.getLogger(__name__)


def _now():
    return timezone.now()


@dataclass
class StartResult:
    attempt: ExamAttempt
    questions: list
    answers: dict
    created: bool


@dataclass
class SubmitResult:
    attempt_id: int
    score: int
    max_score: int
    show_score: bool
    finished_at: object = None
    percentage: int = field(init=False)

    def __post_init__(self):
        self.percentage = percentage(self.score, self.max_score)

    def as_dict(self):
        return {
            'attemptId': self.attempt_id,
            'score': self.score,
            'maxScore': self.max_score,
            'percentage': self.percentage,
            'showScore': self.show_score,
            'finishedAt': self.finished_at.isoformat() if self.finished_at else None,
        }


def get_schedule(schedule_id, active_only=True) -> ExamSchedule:
    try:
        schedule = ExamSchedule.objects.select_related('bank').get(pk=schedule_id)
    except ExamSchedule.DoesNotExist:
        raise NotFound('Exam schedule not found')
    if active_only and not schedule.is_active:
        raise NotFound('Exam schedule not found')
    return schedule


def _get_participant(participant_id) -> Participant:
    try:
        return Participant.objects.get(pk=participant_id)
    except Participant.DoesNotExist:
        raise NotFound('Participant not found')


def _get_attempt(attempt_id, schedule_id=None, participant_id=None) -> ExamAttempt:
    filters = {'pk': attempt_id}
    if schedule_id is not None:
        filters['schedule_id'] = schedule_id
    if participant_id is not None:
        filters['participant_id'] = participant_id
    try:
        return ExamAttempt.objects.select_related('schedule', 'participant').get(**filters)
    except ExamAttempt.DoesNotExist:
        raise NotFound('Exam attempt not found')


def bank_questions(schedule) -> list:
    return list(Question.objects.filter(bank_id=schedule.bank_id).order_by('number'))


def is_registered(schedule, participant) -> bool:
    return ExamScheduleParticipant.objects.filter(schedule=schedule, participant=participant).exists()


def grade_attempt(attempt, answers, questions=None) -> ScoreResult:
    """
    Grade against the attempt's answer-key snapshot; legacy attempts without one
    fall back to the live bank key. Options are translated only when the attempt
    actually stored a mapping.
    """
    key = load_answer_key(attempt.answer_key_snapshot)
    if key is None:
        if questions is None:
            questions = bank_questions(attempt.schedule)
        key = build_answer_key(questions)
        logger.info("grade_attempt attempt_id=%s snapshot_missing using_live_key", attempt.id)
    mapping = load_option_mapping(attempt.option_mapping)
    return score_answers(key, answers, mapping, shuffle_options_enabled=bool(mapping))


def _resume_payload(attempt, questions) -> StartResult:
    items = replay_questions(
        questions,
        load_question_order(attempt.question_order),
        load_option_mapping(attempt.option_mapping),
    )
    return StartResult(
        attempt=attempt,
        questions=public_questions(items),
        answers=load_answers(attempt.answers),
        created=False,
    )


def start_attempt(schedule_id, participant_id, ip_address=None, session_id=None, now=None, rng: random.Random | None = None) -> StartResult:
    """
    Start or resume the participant's attempt. Shuffling and the answer-key snapshot
    happen only when the attempt row is first created.
    """
    now = now or _now()
    schedule = get_schedule(schedule_id)
    participant = _get_participant(participant_id)
    if not participant.is_active:
        logger.warning("start_attempt schedule_id=%s participant_id=%s participant_disabled", schedule.id, participant.id)
        raise ParticipantDisabled()
    if not is_registered(schedule, participant):
        logger.warning("start_attempt schedule_id=%s participant_id=%s not_registered", schedule.id, participant.id)
        raise NotRegistered()

    existing = ExamAttempt.objects.filter(schedule=schedule, participant=participant).first()
    if existing is not None and existing.is_submitted:
        raise AlreadyCompleted()
    check_window(schedule, now)

    questions = bank_questions(schedule)
    if existing is not None:
        logger.info("start_attempt schedule_id=%s participant_id=%s attempt_id=%s resumed", schedule.id, participant.id, existing.id)
        return _resume_payload(existing, questions)

    items, option_mapping = prepare_questions(
        questions,
        shuffle_questions=schedule.shuffle_questions,
        shuffle_options=schedule.shuffle_options,
        rng=rng,
    )
    try:
        with transaction.atomic():
            attempt = ExamAttempt.objects.create(
                schedule=schedule,
                participant=participant,
                started_at=now,
                answers=dump_answers({}),
                question_order=dump_question_order(item['id'] for item in items),
                option_mapping=dump_option_mapping(option_mapping),
                answer_key_snapshot=dump_answer_key(build_answer_key(questions)),
                status=ExamAttempt.STATUS_IN_PROGRESS,
                session_id=session_id,
                ip_address=ip_address,
            )
    except IntegrityError:
        attempt = ExamAttempt.objects.get(schedule=schedule, participant=participant)
        logger.info("start_attempt schedule_id=%s participant_id=%s attempt_id=%s concurrent_start", schedule.id, participant.id, attempt.id)
        if attempt.is_submitted:
            raise AlreadyCompleted()
        return _resume_payload(attempt, questions)

    logger.info(
        "start_attempt schedule_id=%s participant_id=%s attempt_id=%s created questions=%s shuffled_q=%s shuffled_opt=%s",
        schedule.id, participant.id, attempt.id, len(items), schedule.shuffle_questions, schedule.shuffle_options,
    )
    return StartResult(attempt=attempt, questions=public_questions(items), answers={}, created=True)


def save_progress(schedule_id, participant_id, attempt_id, answers, now=None):
    """
    Autosave: replace the stored answer map (last write wins). Rows that are no
    longer in progress are not matched, so a submitted attempt is never modified.
    Returns the save timestamp.
    """
    now = now or _now()
    updated = ExamAttempt.objects.filter(
        pk=attempt_id,
        schedule_id=schedule_id,
        participant_id=participant_id,
        status__in=ExamAttempt.IN_PROGRESS_STATUSES,
    ).update(answers=dump_answers(answers), updated_at=now)
    if not updated:
        logger.warning("save_progress schedule_id=%s attempt_id=%s participant_id=%s no_active_attempt", schedule_id, attempt_id, participant_id)
        raise NotFound('Active exam attempt not found')
    return now


def _check_minimum_duration(attempt, now):
    schedule = attempt.schedule
    if not schedule.minimum_minutes:
        return
    if now > attempt_deadline(attempt):
        return
    elapsed = elapsed_minutes(attempt.started_at, now)
    if elapsed < schedule.minimum_minutes:
        remaining = schedule.minimum_minutes - elapsed
        logger.info("submit_attempt attempt_id=%s too_soon elapsed=%s minimum=%s", attempt.id, elapsed, schedule.minimum_minutes)
        raise TooSoon(remaining_minutes=remaining, minimum_minutes=schedule.minimum_minutes)


def _finalize(attempt, answers, result: ScoreResult, now) -> bool:
    """Conditional transition to submitted. False when another request already submitted."""
    updated = ExamAttempt.objects.filter(
        pk=attempt.pk,
        status__in=ExamAttempt.IN_PROGRESS_STATUSES,
    ).update(
        status=ExamAttempt.STATUS_SUBMITTED,
        finished_at=now,
        answers=dump_answers(answers),
        score=result.correct,
        max_score=result.total,
        updated_at=now,
    )
    return bool(updated)


def submit_attempt(schedule_id, participant_id, attempt_id, answers=None, now=None) -> SubmitResult:
    """
    Student submit. answers=None keeps the autosaved answers. Enforces the minimum
    working time unless the attempt's own deadline has passed.
    """
    now = now or _now()
    attempt = _get_attempt(attempt_id, schedule_id=schedule_id, participant_id=participant_id)
    if attempt.is_submitted:
        raise AlreadySubmitted()
    _check_minimum_duration(attempt, now)

    final_answers = normalize_answers(answers) if answers is not None else load_answers(attempt.answers)
    result = grade_attempt(attempt, final_answers)
    if not _finalize(attempt, final_answers, result, now):
        logger.warning("submit_attempt attempt_id=%s lost_race already_submitted", attempt.id)
        raise AlreadySubmitted()
    logger.info("submit_attempt attempt_id=%s participant_id=%s score=%s/%s", attempt.id, participant_id, result.correct, result.total)
    return SubmitResult(
        attempt_id=attempt.id,
        score=result.correct,
        max_score=result.total,
        show_score=attempt.schedule.show_score,
        finished_at=now,
    )


def force_submit_attempt(attempt_id, schedule_id=None, reason='admin', now=None) -> SubmitResult:
    """
    Terminal transition without the student: grades the stored answers against the
    snapshot (live key for legacy attempts). Used by admins, the violation limit and
    the expiry sweep.
    """
    now = now or _now()
    attempt = _get_attempt(attempt_id, schedule_id=schedule_id)
    if attempt.is_submitted:
        raise AlreadySubmitted()
    answers = load_answers(attempt.answers)
    result = grade_attempt(attempt, answers)
    if not _finalize(attempt, answers, result, now):
        logger.warning("force_submit_attempt attempt_id=%s reason=%s lost_race", attempt.id, reason)
        raise AlreadySubmitted()
    logger.info("force_submit_attempt attempt_id=%s reason=%s score=%s/%s", attempt.id, reason, result.correct, result.total)
    return SubmitResult(
        attempt_id=attempt.id,
        score=result.correct,
        max_score=result.total,
        show_score=attempt.schedule.show_score,
        finished_at=now,
    )


def _recalculate_one(attempt, questions, update_snapshot, now) -> dict:
    live_key = build_answer_key(questions)
    answers = load_answers(attempt.answers)
    mapping = load_option_mapping(attempt.option_mapping)
    result = score_answers(live_key, answers, mapping, shuffle_options_enabled=bool(mapping))
    fields = {'score': result.correct, 'max_score': result.total, 'updated_at': now}
    if update_snapshot:
        fields['answer_key_snapshot'] = dump_answer_key(live_key)
    with transaction.atomic():
        ExamAttempt.objects.filter(pk=attempt.pk).update(**fields)
    return {
        'attemptId': attempt.id,
        'participantId': attempt.participant_id,
        'success': True,
        'previousScore': attempt.score,
        'score': result.correct,
        'maxScore': result.total,
        'percentage': percentage(result.correct, result.total),
        'snapshotUpdated': bool(update_snapshot),
    }


def recalculate_attempts(attempt_ids, update_snapshot=False, now=None) -> dict:
    """
    Re-score attempts against the current bank key. Status, answers and timestamps
    other than updated_at are left alone. Each attempt is processed independently;
    failures are collected into results.
    """
    now = now or _now()
    attempt_ids = list(dict.fromkeys(attempt_ids))
    attempts = {a.id: a for a in ExamAttempt.objects.select_related('schedule').filter(pk__in=attempt_ids)}
    if not attempts:
        raise NotFound('Exam attempts not found')

    questions_by_bank = {}
    results = []
    for attempt_id in attempt_ids:
        attempt = attempts.get(attempt_id)
        if attempt is None:
            results.append({'attemptId': attempt_id, 'success': False, 'error': 'Exam attempt not found'})
            continue
        bank_id = attempt.schedule.bank_id
        try:
            if bank_id not in questions_by_bank:
                questions_by_bank[bank_id] = bank_questions(attempt.schedule)
            results.append(_recalculate_one(attempt, questions_by_bank[bank_id], update_snapshot, now))
        except (DatabaseError, ExamError) as exc:
            logger.exception("recalculate_attempts attempt_id=%s failed", attempt_id)
            results.append({'attemptId': attempt_id, 'success': False, 'error': str(exc)})

    succeeded = sum(1 for r in results if r['success'])
    logger.info("recalculate_attempts total=%s succeeded=%s update_snapshot=%s", len(results), succeeded, update_snapshot)
    return {'totalProcessed': len(results), 'successCount': succeeded, 'results': results}


def record_external_submission(schedule_id, participant_id, now=None):
    """
    Bookkeeping for externally hosted (form-based) exams: mark the participant's
    attempt submitted without a score. Idempotent. Returns (attempt, changed).
    """
    now = now or _now()
    schedule = get_schedule(schedule_id, active_only=False)
    participant = _get_participant(participant_id)
    if not is_registered(schedule, participant):
        raise NotRegistered()
    with transaction.atomic():
        attempt, created = ExamAttempt.objects.select_for_update().get_or_create(
            schedule=schedule,
            participant=participant,
            defaults={
                'started_at': now,
                'finished_at': now,
                'status': ExamAttempt.STATUS_SUBMITTED,
                'answers': dump_answers({}),
            },
        )
        if created:
            logger.info("record_external_submission schedule_id=%s participant_id=%s attempt_id=%s created", schedule.id, participant.id, attempt.id)
            return attempt, True
        if attempt.is_submitted:
            return attempt, False
        attempt.status = ExamAttempt.STATUS_SUBMITTED
        attempt.finished_at = now
        attempt.save(update_fields=['status', 'finished_at', 'updated_at'])
    logger.info("record_external_submission schedule_id=%s participant_id=%s attempt_id=%s marked_submitted", schedule.id, participant.id, attempt.id)
    return attempt, True


def schedule_info(schedule_id, participant_id=None, now=None) -> dict:
    """Schedule summary shown before starting; includes the participant's attempt state when given."""
    now = now or _now()
    schedule = get_schedule(schedule_id, active_only=False)
    window = exam_window(schedule)
    data = {
        'id': schedule.id,
        'name': schedule.name,
        'bankCode': schedule.bank.code,
        'durationMinutes': schedule.duration_minutes,
        'minimumMinutes': schedule.minimum_minutes,
        'startsAt': window.start.isoformat(),
        'endsAt': window.end.isoformat(),
        'allowedStartAt': window.allowed_start.isoformat(),
        'isOpen': schedule.is_active and window.contains(now),
        'showScore': schedule.show_score,
        'requireProctorBrowser': schedule.require_proctor_browser,
        'questionCount': Question.objects.filter(bank_id=schedule.bank_id).count(),
        'serverTime': now.isoformat(),
    }
    if participant_id is not None:
        attempt = ExamAttempt.objects.filter(schedule=schedule, participant_id=participant_id).first()
        data['attempt'] = None if attempt is None else {
            'attemptId': attempt.id,
            'status': attempt.status,
            'startedAt': attempt.started_at.isoformat(),
            'finishedAt': attempt.finished_at.isoformat() if attempt.finished_at else None,
        }
    return data


def expired_attempts(now=None):
    """In-progress attempts whose schedule window has closed."""
    now = now or _now()
    attempts = ExamAttempt.objects.select_related('schedule').filter(status__in=ExamAttempt.IN_PROGRESS_STATUSES)
    return [a for a in attempts if now > exam_window(a.schedule).end]
