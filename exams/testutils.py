"""
Shared fixtures for exam, proctoring and participant tests.
"""
from datetime import datetime, timedelta

from django.utils import timezone
from rest_framework_simplejwt.tokens import AccessToken

from accounts.models import User
from exams.models import ExamSchedule, ExamScheduleParticipant, Question, QuestionBank
from exams.timewindow import exam_timezone
from participants.models import Participant


def local_dt(year, month, day, hour, minute, second=0):
    """Civil time in the exam timezone (UTC+7)."""
    return datetime(year, month, day, hour, minute, second, tzinfo=exam_timezone())


class ExamFixturesMixin:
    password = 'pass12345'

    def auth_header(self, user):
        token = str(AccessToken.for_user(user))
        return {'HTTP_AUTHORIZATION': f'Bearer {token}'}

    def make_admin(self, email='admin@cbt.test'):
        return User.objects.create_user(
            email=email,
            password=self.password,
            full_name='Admin',
            role=User.ROLE_ADMIN,
        )

    def make_participant(self, exam_number='P-001', is_active=True, full_name='Peserta Satu'):
        user = User.objects.create_user(
            email=f'{exam_number.lower()}@cbt.test',
            password=self.password,
            full_name=full_name,
            role=User.ROLE_PARTICIPANT,
        )
        return Participant.objects.create(
            user=user,
            exam_number=exam_number,
            class_name='XII IPA 1',
            is_active=is_active,
        )

    def make_bank(self, keys=('B', 'C'), code='MTK-01', option_count=4):
        """One question per key; options are 'Q<n> <label>' texts."""
        bank = QuestionBank.objects.create(code=code, subject='Matematika')
        labels = 'ABCDE'[:option_count]
        for key in keys:
            number = Question.next_question_number(bank)
            Question.objects.create(
                bank=bank,
                number=number,
                text=f'Question {number}',
                options=[f'Q{number} {label}' for label in labels],
                correct_option=key,
                explanation=f'Because {key}',
            )
        return bank

    def make_schedule(self, bank, start=None, duration=60, **fields):
        start = start or local_dt(2025, 3, 10, 10, 0)
        return ExamSchedule.objects.create(
            name=fields.pop('name', 'Ujian Matematika'),
            bank=bank,
            exam_date=start.date(),
            start_time=start.timetz().replace(tzinfo=None),
            duration_minutes=duration,
            **fields,
        )

    def make_open_schedule(self, bank, minutes_ago=10, duration=90, **fields):
        """Schedule whose window contains the real current time."""
        start = timezone.now().astimezone(exam_timezone()) - timedelta(minutes=minutes_ago)
        return self.make_schedule(bank, start=start, duration=duration, **fields)

    def register(self, schedule, *participants):
        for participant in participants:
            ExamScheduleParticipant.objects.create(schedule=schedule, participant=participant)

    def questions(self, bank):
        return list(bank.questions.order_by('number'))
