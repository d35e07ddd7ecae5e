"""
Exam lifecycle tests: start/resume, autosave, submit, force-submit, recalculate,
external submission and the expiry sweep.
"""
import json
import random
from io import StringIO
from unittest import mock

from django.core.management import call_command
from django.test import TestCase

from exams import services
from exams.documents import load_answer_key, load_answers, load_option_mapping
from exams.errors import (
    AlreadyCompleted,
    AlreadySubmitted,
    NotFound,
    NotRegistered,
    ParticipantDisabled,
    TooEarly,
    TooLate,
    TooSoon,
)
from exams.models import ExamAttempt, Question
from exams.services import (
    expired_attempts,
    force_submit_attempt,
    recalculate_attempts,
    record_external_submission,
    save_progress,
    schedule_info,
    start_attempt,
    submit_attempt,
)
from exams.testutils import ExamFixturesMixin, local_dt
from exams.timewindow import exam_window
from proctoring.models import ActivityLog


def at(hour, minute):
    return local_dt(2025, 3, 10, hour, minute)


class LifecycleTestBase(ExamFixturesMixin, TestCase):
    def setUp(self):
        self.participant = self.make_participant()
        self.bank = self.make_bank(keys=('B', 'C'))
        self.q1, self.q2 = self.questions(self.bank)
        self.schedule = self.make_schedule(self.bank)
        self.register(self.schedule, self.participant)

    def start(self, now=None, **kwargs):
        return start_attempt(self.schedule.id, self.participant.id, now=now or at(10, 0), **kwargs)


class TestStartAttempt(LifecycleTestBase):
    def test_start_creates_attempt_with_snapshot(self):
        result = self.start()
        attempt = result.attempt
        self.assertTrue(result.created)
        self.assertEqual(attempt.status, ExamAttempt.STATUS_IN_PROGRESS)
        self.assertEqual(attempt.started_at, at(10, 0))
        self.assertEqual(
            load_answer_key(attempt.answer_key_snapshot),
            {str(self.q1.id): 'B', str(self.q2.id): 'C'},
        )
        self.assertEqual([q['id'] for q in result.questions], [self.q1.id, self.q2.id])
        self.assertNotIn('correct', result.questions[0])
        self.assertNotIn('explanation', result.questions[0])
        self.assertIsNone(attempt.option_mapping)

    def test_start_twice_returns_same_attempt_order_and_mapping(self):
        self.schedule.shuffle_questions = True
        self.schedule.shuffle_options = True
        self.schedule.save()
        first = self.start(now=at(10, 0), rng=random.Random(1))
        second = self.start(now=at(10, 20), rng=random.Random(99))
        self.assertFalse(second.created)
        self.assertEqual(first.attempt.id, second.attempt.id)
        self.assertEqual(first.questions, second.questions)
        second.attempt.refresh_from_db()
        self.assertEqual(second.attempt.started_at, at(10, 0))
        self.assertEqual(ExamAttempt.objects.count(), 1)
        self.assertEqual(set(load_option_mapping(second.attempt.option_mapping)), {str(self.q1.id), str(self.q2.id)})

    def test_resume_returns_saved_answers(self):
        attempt = self.start().attempt
        save_progress(self.schedule.id, self.participant.id, attempt.id, {str(self.q1.id): 'a'}, now=at(10, 3))
        resumed = self.start(now=at(10, 4))
        self.assertEqual(resumed.answers, {str(self.q1.id): 'A'})

    def test_not_registered(self):
        other = self.make_participant(exam_number='P-002')
        with self.assertRaises(NotRegistered):
            start_attempt(self.schedule.id, other.id, now=at(10, 0))

    def test_disabled_participant(self):
        self.participant.is_active = False
        self.participant.save()
        with self.assertRaises(ParticipantDisabled):
            self.start()

    def test_inactive_or_missing_schedule(self):
        self.schedule.is_active = False
        self.schedule.save()
        with self.assertRaises(NotFound):
            self.start()
        with self.assertRaises(NotFound):
            start_attempt(999999, self.participant.id, now=at(10, 0))

    def test_time_window(self):
        with self.assertRaises(TooEarly) as ctx:
            self.start(now=at(9, 50))
        self.assertEqual(ctx.exception.minutes_until_start, 5)
        with self.assertRaises(TooLate):
            self.start(now=at(11, 5))
        self.assertEqual(ExamAttempt.objects.count(), 0)

    def test_resume_after_window_is_rejected(self):
        self.start(now=at(10, 0))
        with self.assertRaises(TooLate):
            self.start(now=at(11, 5))

    def test_start_after_submit_is_already_completed(self):
        attempt = self.start().attempt
        submit_attempt(self.schedule.id, self.participant.id, attempt.id, {}, now=at(10, 30))
        with self.assertRaises(AlreadyCompleted):
            self.start(now=at(10, 31))

    def test_concurrent_first_start_returns_winner(self):
        def window_then_race(schedule, now):
            ExamAttempt.objects.create(
                schedule=schedule,
                participant=self.participant,
                started_at=now,
                session_id='winner',
            )
            return exam_window(schedule)

        with mock.patch('exams.services.check_window', side_effect=window_then_race):
            result = self.start()
        self.assertFalse(result.created)
        self.assertEqual(result.attempt.session_id, 'winner')
        self.assertEqual(ExamAttempt.objects.count(), 1)


class TestSaveProgress(LifecycleTestBase):
    def setUp(self):
        super().setUp()
        self.attempt = self.start().attempt

    def test_latest_write_wins(self):
        save_progress(self.schedule.id, self.participant.id, self.attempt.id, {str(self.q1.id): 'A'}, now=at(10, 1))
        save_progress(self.schedule.id, self.participant.id, self.attempt.id, {str(self.q2.id): 'D'}, now=at(10, 2))
        self.attempt.refresh_from_db()
        self.assertEqual(load_answers(self.attempt.answers), {str(self.q2.id): 'D'})
        self.assertEqual(self.attempt.updated_at, at(10, 2))
        self.assertIsNone(self.attempt.score)

    def test_wrong_participant_or_schedule(self):
        other = self.make_participant(exam_number='P-002')
        with self.assertRaises(NotFound):
            save_progress(self.schedule.id, other.id, self.attempt.id, {}, now=at(10, 1))
        with self.assertRaises(NotFound):
            save_progress(self.schedule.id + 1, self.participant.id, self.attempt.id, {}, now=at(10, 1))

    def test_submitted_attempt_is_immutable(self):
        answers = {str(self.q1.id): 'B'}
        submit_attempt(self.schedule.id, self.participant.id, self.attempt.id, answers, now=at(10, 30))
        with self.assertRaises(NotFound):
            save_progress(self.schedule.id, self.participant.id, self.attempt.id, {str(self.q1.id): 'D'}, now=at(10, 31))
        self.attempt.refresh_from_db()
        self.assertEqual(load_answers(self.attempt.answers), answers)

    def test_legacy_mulai_status_is_in_progress(self):
        ExamAttempt.objects.filter(pk=self.attempt.pk).update(status=ExamAttempt.STATUS_LEGACY_STARTED)
        save_progress(self.schedule.id, self.participant.id, self.attempt.id, {str(self.q1.id): 'B'}, now=at(10, 1))
        result = submit_attempt(self.schedule.id, self.participant.id, self.attempt.id, now=at(10, 30))
        self.assertEqual(result.score, 1)


class TestSubmitAttempt(LifecycleTestBase):
    def test_two_question_shuffled_scenario(self):
        attempt = self.start().attempt
        ExamAttempt.objects.filter(pk=attempt.pk).update(
            option_mapping=json.dumps({str(self.q1.id): {'A': 'B', 'B': 'A', 'C': 'C', 'D': 'D'}}),
        )
        result = submit_attempt(
            self.schedule.id, self.participant.id, attempt.id,
            {str(self.q1.id): 'A', str(self.q2.id): 'C'}, now=at(10, 30),
        )
        self.assertEqual((result.score, result.max_score, result.percentage), (2, 2, 100))
        attempt.refresh_from_db()
        self.assertEqual(attempt.status, ExamAttempt.STATUS_SUBMITTED)
        self.assertEqual(attempt.finished_at, at(10, 30))
        self.assertEqual(attempt.score, 2)

    def test_option_removed_mid_exam_grades_what_was_shown(self):
        Question.objects.filter(pk=self.q1.pk).update(options=[f'Q1 {label}' for label in 'ABCDE'])
        self.schedule.shuffle_options = True
        self.schedule.save()
        attempt = self.start().attempt
        ExamAttempt.objects.filter(pk=attempt.pk).update(
            option_mapping=json.dumps({str(self.q1.id): {'A': 'A', 'B': 'C', 'C': 'D', 'D': 'E', 'E': 'B'}}),
        )
        Question.objects.filter(pk=self.q1.pk).update(options=[f'Q1 {label}' for label in 'ABCD'])

        resumed = self.start(now=at(10, 5))
        shown = next(q for q in resumed.questions if q['id'] == self.q1.id)
        label = next(o['label'] for o in shown['options'] if o['text'] == 'Q1 B')
        result = submit_attempt(
            self.schedule.id, self.participant.id, attempt.id, {str(self.q1.id): label}, now=at(10, 30),
        )
        self.assertEqual(label, 'E')
        self.assertEqual(result.score, 1)

    def test_minimum_duration(self):
        self.schedule.minimum_minutes = 10
        self.schedule.save()
        attempt = self.start(now=at(10, 0)).attempt
        with self.assertRaises(TooSoon) as ctx:
            submit_attempt(self.schedule.id, self.participant.id, attempt.id, {}, now=at(10, 5))
        self.assertEqual(ctx.exception.remaining_minutes, 5)
        self.assertEqual(ctx.exception.as_dict()['remainingMinutes'], 5)
        result = submit_attempt(self.schedule.id, self.participant.id, attempt.id, {}, now=at(10, 10))
        self.assertEqual(result.score, 0)

    def test_minimum_duration_skipped_after_personal_deadline(self):
        self.schedule.minimum_minutes = 10
        self.schedule.duration_minutes = 5
        self.schedule.save()
        attempt = self.start(now=at(10, 0)).attempt
        result = submit_attempt(self.schedule.id, self.participant.id, attempt.id, {}, now=at(10, 6))
        self.assertEqual(result.max_score, 2)

    def test_second_submit_is_rejected(self):
        attempt = self.start().attempt
        submit_attempt(self.schedule.id, self.participant.id, attempt.id, {}, now=at(10, 30))
        with self.assertRaises(AlreadySubmitted):
            submit_attempt(self.schedule.id, self.participant.id, attempt.id, {}, now=at(10, 31))

    def test_concurrent_submit_has_one_winner(self):
        attempt = self.start().attempt
        real_grade = services.grade_attempt

        def other_request_wins(attempt_obj, answers, questions=None):
            ExamAttempt.objects.filter(pk=attempt_obj.pk).update(
                status=ExamAttempt.STATUS_SUBMITTED, score=0, max_score=2, finished_at=at(10, 29),
            )
            return real_grade(attempt_obj, answers, questions)

        with mock.patch('exams.services.grade_attempt', side_effect=other_request_wins):
            with self.assertRaises(AlreadySubmitted):
                submit_attempt(
                    self.schedule.id, self.participant.id, attempt.id,
                    {str(self.q1.id): 'B', str(self.q2.id): 'C'}, now=at(10, 30),
                )
        attempt.refresh_from_db()
        self.assertEqual(attempt.score, 0)
        self.assertEqual(attempt.finished_at, at(10, 29))

    def test_grades_against_snapshot_not_live_key(self):
        attempt = self.start().attempt
        Question.objects.filter(pk=self.q1.pk).update(correct_option='A')
        result = submit_attempt(
            self.schedule.id, self.participant.id, attempt.id, {str(self.q1.id): 'B'}, now=at(10, 30),
        )
        self.assertEqual(result.score, 1)

    def test_submit_without_answers_uses_autosave(self):
        attempt = self.start().attempt
        save_progress(self.schedule.id, self.participant.id, attempt.id, {str(self.q2.id): 'C'}, now=at(10, 5))
        result = submit_attempt(self.schedule.id, self.participant.id, attempt.id, now=at(10, 30))
        self.assertEqual(result.score, 1)
        self.assertTrue(result.show_score)


class TestForceSubmit(LifecycleTestBase):
    def test_force_submit_grades_stored_answers(self):
        self.schedule.minimum_minutes = 30
        self.schedule.save()
        attempt = self.start().attempt
        save_progress(self.schedule.id, self.participant.id, attempt.id, {str(self.q1.id): 'B'}, now=at(10, 1))
        Question.objects.filter(pk=self.q1.pk).update(correct_option='D')
        result = force_submit_attempt(attempt.id, schedule_id=self.schedule.id, now=at(10, 2))
        self.assertEqual((result.score, result.max_score), (1, 2))
        attempt.refresh_from_db()
        self.assertEqual(attempt.status, ExamAttempt.STATUS_SUBMITTED)

    def test_legacy_attempt_without_snapshot_uses_live_key(self):
        attempt = self.start().attempt
        ExamAttempt.objects.filter(pk=attempt.pk).update(
            answer_key_snapshot=None,
            answers=json.dumps({str(self.q1.id): 'D'}),
        )
        Question.objects.filter(pk=self.q1.pk).update(correct_option='D')
        result = force_submit_attempt(attempt.id, now=at(10, 2))
        self.assertEqual(result.score, 1)

    def test_empty_snapshot_is_not_replaced_by_live_key(self):
        attempt = self.start().attempt
        ExamAttempt.objects.filter(pk=attempt.pk).update(
            answer_key_snapshot='{}',
            answers=json.dumps({str(self.q1.id): 'B'}),
        )
        result = force_submit_attempt(attempt.id, now=at(10, 2))
        self.assertEqual((result.score, result.max_score), (0, 0))

    def test_already_submitted_and_missing(self):
        attempt = self.start().attempt
        force_submit_attempt(attempt.id, now=at(10, 2))
        with self.assertRaises(AlreadySubmitted):
            force_submit_attempt(attempt.id, now=at(10, 3))
        with self.assertRaises(NotFound):
            force_submit_attempt(attempt.id, schedule_id=self.schedule.id + 1)


class TestRecalculate(LifecycleTestBase):
    def setUp(self):
        super().setUp()
        self.attempt = self.start().attempt
        submit_attempt(
            self.schedule.id, self.participant.id, self.attempt.id,
            {str(self.q1.id): 'A', str(self.q2.id): 'C'}, now=at(10, 30),
        )
        self.attempt.refresh_from_db()

    def test_recalculate_uses_current_key_and_is_idempotent(self):
        self.assertEqual(self.attempt.score, 1)
        Question.objects.filter(pk=self.q1.pk).update(correct_option='A')
        first = recalculate_attempts([self.attempt.id], now=at(12, 0))
        second = recalculate_attempts([self.attempt.id], now=at(12, 1))
        self.assertEqual(first['results'][0]['score'], 2)
        self.assertEqual(second['results'][0]['score'], 2)
        self.assertEqual(first['totalProcessed'], 1)

        before = self.attempt
        after = ExamAttempt.objects.get(pk=self.attempt.pk)
        self.assertEqual(after.score, 2)
        self.assertEqual(after.status, before.status)
        self.assertEqual(after.answers, before.answers)
        self.assertEqual(after.finished_at, before.finished_at)
        self.assertEqual(after.started_at, before.started_at)
        self.assertEqual(after.answer_key_snapshot, before.answer_key_snapshot)

    def test_update_snapshot_opt_in(self):
        Question.objects.filter(pk=self.q1.pk).update(correct_option='A')
        result = recalculate_attempts([self.attempt.id], update_snapshot=True, now=at(12, 0))
        self.assertTrue(result['results'][0]['snapshotUpdated'])
        self.attempt.refresh_from_db()
        self.assertEqual(load_answer_key(self.attempt.answer_key_snapshot)[str(self.q1.id)], 'A')

    def test_max_score_follows_bank_size(self):
        Question.objects.create(
            bank=self.bank, number=Question.next_question_number(self.bank),
            text='Q3', options=['a', 'b', 'c', 'd'], correct_option='A',
        )
        result = recalculate_attempts([self.attempt.id], now=at(12, 0))
        self.assertEqual(result['results'][0]['maxScore'], 3)

    def test_missing_ids_are_collected(self):
        result = recalculate_attempts([self.attempt.id, 999999], now=at(12, 0))
        self.assertEqual(result['totalProcessed'], 2)
        self.assertEqual(result['successCount'], 1)
        self.assertFalse(result['results'][1]['success'])
        with self.assertRaises(NotFound):
            recalculate_attempts([999999])


class TestExternalSubmission(LifecycleTestBase):
    def test_creates_submitted_attempt_once(self):
        attempt, changed = record_external_submission(self.schedule.id, self.participant.id, now=at(10, 40))
        self.assertTrue(changed)
        self.assertEqual(attempt.status, ExamAttempt.STATUS_SUBMITTED)
        self.assertIsNone(attempt.score)
        again, changed = record_external_submission(self.schedule.id, self.participant.id, now=at(10, 41))
        self.assertFalse(changed)
        self.assertEqual(again.id, attempt.id)

    def test_marks_in_progress_attempt_submitted(self):
        started = self.start().attempt
        attempt, changed = record_external_submission(self.schedule.id, self.participant.id, now=at(10, 40))
        self.assertTrue(changed)
        self.assertEqual(attempt.id, started.id)
        self.assertEqual(attempt.finished_at, at(10, 40))

    def test_not_registered(self):
        other = self.make_participant(exam_number='P-009')
        with self.assertRaises(NotRegistered):
            record_external_submission(self.schedule.id, other.id)


class TestScheduleInfoAndExpiry(LifecycleTestBase):
    def test_schedule_info(self):
        info = schedule_info(self.schedule.id, now=at(10, 5))
        self.assertTrue(info['isOpen'])
        self.assertEqual(info['questionCount'], 2)
        self.assertEqual(info['startsAt'], at(10, 0).isoformat())
        self.assertNotIn('attempt', info)
        self.start()
        info = schedule_info(self.schedule.id, participant_id=self.participant.id, now=at(10, 5))
        self.assertEqual(info['attempt']['status'], ExamAttempt.STATUS_IN_PROGRESS)

    def test_expired_attempts(self):
        attempt = self.start().attempt
        self.assertEqual(expired_attempts(now=at(10, 59)), [])
        self.assertEqual([a.id for a in expired_attempts(now=at(11, 1))], [attempt.id])

    def test_expire_command_dry_run_and_apply(self):
        attempt = self.start().attempt
        save_progress(self.schedule.id, self.participant.id, attempt.id, {str(self.q1.id): 'B'}, now=at(10, 1))

        out = StringIO()
        call_command('expire_attempts', stdout=out)
        self.assertIn('DRY RUN', out.getvalue())
        attempt.refresh_from_db()
        self.assertTrue(attempt.is_in_progress)

        call_command('expire_attempts', '--apply', stdout=StringIO())
        attempt.refresh_from_db()
        self.assertTrue(attempt.is_submitted)
        self.assertEqual(attempt.score, 1)
        entry = ActivityLog.objects.get(attempt=attempt, activity_type=ActivityLog.TYPE_FORCE_SUBMIT)
        self.assertEqual(json.loads(entry.metadata), {'reason': 'expired'})
