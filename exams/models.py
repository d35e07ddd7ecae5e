"""
Question bank, exam schedule, roster and attempt (jadwalUjian / bankSoal / soalBank / hasilUjianPeserta).

Answers, question order, option mapping and the answer-key snapshot are JSON text
columns (see exams.documents for their shapes); the untagged shape is kept so old
rows stay readable.
"""
from django.db import models
from django.db.models import Max

from participants.models import Participant

OPTION_LABELS = ['A', 'B', 'C', 'D', 'E']


class QuestionBank(models.Model):
    """Named collection of questions (bank soal)."""
    code = models.CharField(max_length=50, unique=True)
    subject = models.CharField(max_length=255, blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'question_banks'
        verbose_name = 'Question Bank'
        verbose_name_plural = 'Question Banks'
        ordering = ['code']

    def __str__(self):
        return self.code


class Question(models.Model):
    """
    Multiple-choice question. options is an ordered list of 4 or 5 option texts;
    labels are positional (A, B, C, D, E).
    """
    LABEL_CHOICES = [(label, label) for label in OPTION_LABELS]

    bank = models.ForeignKey(
        QuestionBank,
        on_delete=models.CASCADE,
        related_name='questions',
    )
    number = models.PositiveIntegerField()
    text = models.TextField()
    options = models.JSONField(default=list)
    correct_option = models.CharField(max_length=1, choices=LABEL_CHOICES)
    explanation = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'bank_questions'
        verbose_name = 'Question'
        verbose_name_plural = 'Questions'
        ordering = ['bank', 'number']
        constraints = [
            models.UniqueConstraint(fields=['bank', 'number'], name='unique_question_number_per_bank'),
        ]

    def __str__(self):
        return f"{self.bank.code} #{self.number}"

    def labeled_options(self):
        """[(label, text), ...] in canonical order."""
        return list(zip(OPTION_LABELS, self.options or []))

    @staticmethod
    def next_question_number(bank):
        """Sequence numbers are appended as max + 1 within a bank."""
        current = Question.objects.filter(bank=bank).aggregate(m=Max('number'))['m']
        return (current or 0) + 1


class ExamSchedule(models.Model):
    """One scheduled exam instance (jadwal ujian). Date and start time are civil values in UTC+7."""
    name = models.CharField(max_length=255)
    bank = models.ForeignKey(
        QuestionBank,
        on_delete=models.PROTECT,
        related_name='schedules',
    )
    exam_date = models.DateField()
    start_time = models.TimeField()
    duration_minutes = models.PositiveIntegerField()
    minimum_minutes = models.PositiveIntegerField(null=True, blank=True, help_text='Minimum working time before submit')
    shuffle_questions = models.BooleanField(default=False)
    shuffle_options = models.BooleanField(default=False)
    show_score = models.BooleanField(default=True)
    reset_violations_on_enable = models.BooleanField(default=True)
    auto_submit_on_violation = models.BooleanField(default=False)
    require_proctor_browser = models.BooleanField(default=False)
    max_violations = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text='Violation limit for auto-submit; empty uses the global browser settings',
    )
    is_active = models.BooleanField(default=True, db_index=True)
    participants = models.ManyToManyField(
        Participant,
        through='ExamScheduleParticipant',
        related_name='schedules',
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'exam_schedules'
        verbose_name = 'Exam Schedule'
        verbose_name_plural = 'Exam Schedules'
        ordering = ['-exam_date', '-start_time']

    def __str__(self):
        return f"{self.name} ({self.exam_date} {self.start_time:%H:%M})"


class ExamScheduleParticipant(models.Model):
    """Roster: participants registered for a schedule."""
    schedule = models.ForeignKey(
        ExamSchedule,
        on_delete=models.CASCADE,
        related_name='roster',
    )
    participant = models.ForeignKey(
        Participant,
        on_delete=models.CASCADE,
        related_name='schedule_registrations',
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'exam_schedule_participants'
        verbose_name = 'Exam Schedule Participant'
        verbose_name_plural = 'Exam Schedule Participants'
        unique_together = [['schedule', 'participant']]

    def __str__(self):
        return f"{self.schedule.name} -> {self.participant.exam_number}"


class ExamAttempt(models.Model):
    """One participant's single attempt at one schedule (hasil ujian peserta)."""
    STATUS_IN_PROGRESS = 'in_progress'
    STATUS_LEGACY_STARTED = 'mulai'
    STATUS_SUBMITTED = 'submitted'
    STATUS_CHOICES = [
        (STATUS_IN_PROGRESS, 'In Progress'),
        (STATUS_LEGACY_STARTED, 'Mulai (legacy in progress)'),
        (STATUS_SUBMITTED, 'Submitted'),
    ]
    IN_PROGRESS_STATUSES = (STATUS_IN_PROGRESS, STATUS_LEGACY_STARTED)

    schedule = models.ForeignKey(
        ExamSchedule,
        on_delete=models.PROTECT,
        related_name='attempts',
    )
    participant = models.ForeignKey(
        Participant,
        on_delete=models.CASCADE,
        related_name='attempts',
    )
    started_at = models.DateTimeField()
    finished_at = models.DateTimeField(null=True, blank=True)
    answers = models.TextField(default='{}')
    question_order = models.TextField(null=True, blank=True)
    option_mapping = models.TextField(null=True, blank=True)
    answer_key_snapshot = models.TextField(null=True, blank=True)
    score = models.PositiveIntegerField(null=True, blank=True)
    max_score = models.PositiveIntegerField(null=True, blank=True)
    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=STATUS_IN_PROGRESS,
        db_index=True,
    )
    violation_count = models.PositiveIntegerField(default=0)
    session_id = models.CharField(max_length=255, null=True, blank=True)
    ip_address = models.CharField(max_length=64, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'exam_attempts'
        verbose_name = 'Exam Attempt'
        verbose_name_plural = 'Exam Attempts'
        ordering = ['-started_at']
        constraints = [
            models.UniqueConstraint(fields=['schedule', 'participant'], name='unique_attempt_per_schedule_participant'),
        ]
        indexes = [
            models.Index(fields=['schedule', 'status'], name='exam_attemp_schedul_3f1c2a_idx'),
            models.Index(fields=['participant'], name='exam_attemp_partici_8d4e7b_idx'),
        ]

    def __str__(self):
        return f"{self.participant.exam_number} - {self.schedule.name} - {self.status}"

    @property
    def is_in_progress(self):
        return self.status in self.IN_PROGRESS_STATUSES

    @property
    def is_submitted(self):
        return self.status == self.STATUS_SUBMITTED
