"""
API tests for participant and admin exam endpoints.
Schedules are placed around the real current time.
"""
from django.test import TestCase, override_settings
from rest_framework.test import APIClient

from exams.models import ExamAttempt
from exams.testutils import ExamFixturesMixin
from proctoring.models import ActivityLog


class ExamApiTestBase(ExamFixturesMixin, TestCase):
    def setUp(self):
        self.client = APIClient()
        self.admin = self.make_admin()
        self.participant = self.make_participant()
        self.bank = self.make_bank(keys=('B', 'C'))
        self.q1, self.q2 = self.questions(self.bank)
        self.schedule = self.make_open_schedule(self.bank)
        self.register(self.schedule, self.participant)

    def as_participant(self, participant=None):
        self.client.credentials(**self.auth_header((participant or self.participant).user))

    def as_admin(self):
        self.client.credentials(**self.auth_header(self.admin))

    def url(self, action, schedule=None):
        return f'/api/exam/{(schedule or self.schedule).id}/{action}'

    def start(self):
        self.as_participant()
        return self.client.post(self.url('start'), {}, format='json')


class TestStudentExamApi(ExamApiTestBase):
    def test_requires_authentication(self):
        response = self.client.post(self.url('start'), {}, format='json')
        self.assertEqual(response.status_code, 401)

    def test_admin_cannot_start(self):
        self.as_admin()
        response = self.client.post(self.url('start'), {}, format='json')
        self.assertEqual(response.status_code, 403)

    def test_start_then_resume(self):
        first = self.start()
        self.assertEqual(first.status_code, 201, first.data)
        self.assertFalse(first.data['resumed'])
        self.assertEqual(len(first.data['questions']), 2)
        for question in first.data['questions']:
            self.assertNotIn('correct', question)
            self.assertNotIn('explanation', question)
        self.assertEqual(first.data['existingAnswers'], {})
        self.assertEqual(first.data['schedule']['id'], self.schedule.id)

        second = self.client.post(self.url('start'), {'participantId': self.participant.id}, format='json')
        self.assertEqual(second.status_code, 200)
        self.assertTrue(second.data['resumed'])
        self.assertEqual(second.data['attemptId'], first.data['attemptId'])
        self.assertEqual(second.data['questions'], first.data['questions'])

    def test_start_records_client_ip(self):
        self.as_participant()
        response = self.client.post(self.url('start'), {'sessionId': 'tab-1'}, format='json', HTTP_X_FORWARDED_FOR='10.1.2.3, 10.0.0.1')
        attempt = ExamAttempt.objects.get(pk=response.data['attemptId'])
        self.assertEqual(attempt.ip_address, '10.1.2.3')
        self.assertEqual(attempt.session_id, 'tab-1')

    def test_participant_id_must_match_token(self):
        other = self.make_participant(exam_number='P-002')
        self.register(self.schedule, other)
        self.as_participant()
        response = self.client.post(self.url('start'), {'participantId': other.id}, format='json')
        self.assertEqual(response.status_code, 403)
        self.assertEqual(ExamAttempt.objects.count(), 0)

    def test_not_registered(self):
        other = self.make_participant(exam_number='P-003')
        self.as_participant(other)
        response = self.client.post(self.url('start'), {}, format='json')
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.data['code'], 'not_registered')

    def test_too_early(self):
        later = self.make_open_schedule(self.bank, minutes_ago=-30, name='Later')
        self.register(later, self.participant)
        self.as_participant()
        response = self.client.post(self.url('start', later), {}, format='json')
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data['code'], 'too_early')
        self.assertEqual(response.data['minutesUntilStart'], 25)

    def test_save_progress_and_submit(self):
        attempt_id = self.start().data['attemptId']
        answers = {str(self.q1.id): 'B', str(self.q2.id): 'A'}
        saved = self.client.post(self.url('save-progress'), {'attemptId': attempt_id, 'answers': answers}, format='json')
        self.assertEqual(saved.status_code, 200, saved.data)
        self.assertIn('savedAt', saved.data)

        submitted = self.client.post(self.url('submit'), {'attemptId': attempt_id}, format='json')
        self.assertEqual(submitted.status_code, 200, submitted.data)
        self.assertEqual(submitted.data['score'], 1)
        self.assertEqual(submitted.data['maxScore'], 2)
        self.assertEqual(submitted.data['percentage'], 50)
        self.assertTrue(submitted.data['showScore'])

        again = self.client.post(self.url('submit'), {'attemptId': attempt_id, 'answers': {}}, format='json')
        self.assertEqual(again.status_code, 400)
        self.assertEqual(again.data['code'], 'already_submitted')

        late_save = self.client.post(self.url('save-progress'), {'attemptId': attempt_id, 'answers': {}}, format='json')
        self.assertEqual(late_save.status_code, 404)
        self.assertEqual(late_save.data['code'], 'not_found')

    def test_too_soon(self):
        self.schedule.minimum_minutes = 30
        self.schedule.save()
        attempt_id = self.start().data['attemptId']
        response = self.client.post(self.url('submit'), {'attemptId': attempt_id, 'answers': {}}, format='json')
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data['code'], 'too_soon')
        self.assertEqual(response.data['remainingMinutes'], 30)

    def test_validation_error_shape(self):
        self.as_participant()
        response = self.client.post(self.url('save-progress'), {'answers': {}}, format='json')
        self.assertEqual(response.status_code, 400)
        self.assertIn('attemptId', response.data['errors'])

    @override_settings(EXAM_ENFORCE_SESSION_BINDING=True)
    def test_stale_session_rejected_when_binding_enforced(self):
        self.as_participant()
        attempt_id = self.client.post(self.url('start'), {'sessionId': 'tab-1'}, format='json').data['attemptId']
        stale = self.client.post(
            self.url('save-progress'),
            {'attemptId': attempt_id, 'answers': {}, 'sessionId': 'tab-0'},
            format='json',
        )
        self.assertEqual(stale.status_code, 409)
        self.assertEqual(stale.data['code'], 'session_conflict')
        current = self.client.post(
            self.url('save-progress'),
            {'attemptId': attempt_id, 'answers': {}, 'sessionId': 'tab-1'},
            format='json',
        )
        self.assertEqual(current.status_code, 200)

    @override_settings(EXAM_ENFORCE_SESSION_BINDING=True)
    def test_foreign_attempt_is_not_found_before_session_check(self):
        self.as_participant()
        attempt_id = self.client.post(self.url('start'), {'sessionId': 'tab-1'}, format='json').data['attemptId']
        other = self.make_participant(exam_number='P-002')
        self.register(self.schedule, other)
        self.as_participant(other)
        for action in ('save-progress', 'submit'):
            response = self.client.post(
                self.url(action),
                {'attemptId': attempt_id, 'answers': {}, 'sessionId': 'tab-9'},
                format='json',
            )
            self.assertEqual(response.status_code, 404, action)
            self.assertEqual(response.data['code'], 'not_found')

    def test_session_binding_is_advisory_by_default(self):
        self.as_participant()
        attempt_id = self.client.post(self.url('start'), {'sessionId': 'tab-1'}, format='json').data['attemptId']
        response = self.client.post(
            self.url('save-progress'),
            {'attemptId': attempt_id, 'answers': {}, 'sessionId': 'tab-0'},
            format='json',
        )
        self.assertEqual(response.status_code, 200)

    def test_info(self):
        self.as_participant()
        response = self.client.get(self.url('info'))
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.data['isOpen'])
        self.assertIsNone(response.data['attempt'])

    def test_external_submission(self):
        self.as_participant()
        response = self.client.post(self.url('external-submission'), {}, format='json')
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.data['changed'])
        self.assertEqual(response.data['attempt']['status'], ExamAttempt.STATUS_SUBMITTED)


class TestAdminExamApi(ExamApiTestBase):
    def test_force_submit(self):
        attempt_id = self.start().data['attemptId']
        self.client.post(self.url('save-progress'), {'attemptId': attempt_id, 'answers': {str(self.q1.id): 'B'}}, format='json')
        self.as_admin()
        response = self.client.post(
            '/api/admin/exam/force-submit',
            {'attemptId': attempt_id, 'scheduleId': self.schedule.id},
            format='json',
        )
        self.assertEqual(response.status_code, 200, response.data)
        self.assertEqual(response.data['score'], 1)
        self.assertEqual(response.data['percentage'], 50)
        entry = ActivityLog.objects.get(attempt_id=attempt_id, activity_type=ActivityLog.TYPE_FORCE_SUBMIT)
        self.assertIn('"actorId": %d' % self.admin.id, entry.metadata)

        again = self.client.post('/api/admin/exam/force-submit', {'attemptId': attempt_id}, format='json')
        self.assertEqual(again.status_code, 400)

    def test_participant_cannot_force_submit(self):
        attempt_id = self.start().data['attemptId']
        response = self.client.post('/api/admin/exam/force-submit', {'attemptId': attempt_id}, format='json')
        self.assertEqual(response.status_code, 403)

    def test_recalculate(self):
        attempt_id = self.start().data['attemptId']
        self.client.post(self.url('submit'), {'attemptId': attempt_id, 'answers': {str(self.q1.id): 'A'}}, format='json')
        self.q1.correct_option = 'A'
        self.q1.save()
        self.as_admin()
        response = self.client.post(
            '/api/admin/hasil-ujian/recalculate',
            {'attemptIds': [attempt_id], 'updateSnapshot': True},
            format='json',
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['totalProcessed'], 1)
        self.assertEqual(response.data['results'][0]['score'], 1)
        self.assertEqual(response.data['results'][0]['previousScore'], 0)

    def test_recalculate_requires_ids(self):
        self.as_admin()
        response = self.client.post('/api/admin/hasil-ujian/recalculate', {'attemptIds': []}, format='json')
        self.assertEqual(response.status_code, 400)
