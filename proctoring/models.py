"""
Proctoring models: append-only activity log and the global exam-browser settings row.
"""
from django.db import models
from django.utils import timezone

from exams.models import ExamAttempt
from participants.models import Participant


class ActivityLog(models.Model):
    """
    One suspicious-activity event reported by the exam client. count may carry a
    running tally (TAB_BLUR sends the cumulative number of blurs). Rows are only
    inserted and aggregated.
    """
    TYPE_TAB_BLUR = 'TAB_BLUR'
    TYPE_EXIT_FULLSCREEN = 'EXIT_FULLSCREEN'
    TYPE_ATTEMPTED_DEVTOOLS = 'ATTEMPTED_DEVTOOLS'
    TYPE_SCREENSHOT_ATTEMPT = 'SCREENSHOT_ATTEMPT'
    TYPE_PAGE_REFRESH = 'PAGE_REFRESH'
    TYPE_ANSWER_CHANGE = 'ANSWER_CHANGE'
    TYPE_RIGHT_CLICK = 'RIGHT_CLICK'
    TYPE_COPY_ATTEMPT = 'COPY_ATTEMPT'
    TYPE_PASTE_ATTEMPT = 'PASTE_ATTEMPT'
    TYPE_SESSION_VIOLATION = 'SESSION_VIOLATION'
    TYPE_FORCE_SUBMIT = 'FORCE_SUBMIT'
    TYPE_CHOICES = [
        (TYPE_TAB_BLUR, 'Tab blur'),
        (TYPE_EXIT_FULLSCREEN, 'Exit fullscreen'),
        (TYPE_ATTEMPTED_DEVTOOLS, 'Attempted devtools'),
        (TYPE_SCREENSHOT_ATTEMPT, 'Screenshot attempt'),
        (TYPE_PAGE_REFRESH, 'Page refresh'),
        (TYPE_ANSWER_CHANGE, 'Answer change'),
        (TYPE_RIGHT_CLICK, 'Right click'),
        (TYPE_COPY_ATTEMPT, 'Copy attempt'),
        (TYPE_PASTE_ATTEMPT, 'Paste attempt'),
        (TYPE_SESSION_VIOLATION, 'Session violation'),
        (TYPE_FORCE_SUBMIT, 'Force submit'),
    ]
    # FORCE_SUBMIT is written by the server only.
    CLIENT_TYPES = [
        TYPE_TAB_BLUR, TYPE_EXIT_FULLSCREEN, TYPE_ATTEMPTED_DEVTOOLS, TYPE_SCREENSHOT_ATTEMPT,
        TYPE_PAGE_REFRESH, TYPE_ANSWER_CHANGE, TYPE_RIGHT_CLICK, TYPE_COPY_ATTEMPT,
        TYPE_PASTE_ATTEMPT, TYPE_SESSION_VIOLATION,
    ]

    attempt = models.ForeignKey(
        ExamAttempt,
        on_delete=models.CASCADE,
        related_name='activity_logs',
    )
    participant = models.ForeignKey(
        Participant,
        on_delete=models.CASCADE,
        related_name='activity_logs',
    )
    activity_type = models.CharField(max_length=32, choices=TYPE_CHOICES)
    count = models.PositiveIntegerField(default=1)
    metadata = models.TextField(null=True, blank=True, help_text='JSON object sent by the client')
    timestamp = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        db_table = 'activity_logs'
        verbose_name = 'Activity Log'
        verbose_name_plural = 'Activity Logs'
        ordering = ['-timestamp']
        indexes = [
            models.Index(fields=['attempt', 'activity_type'], name='activity_lo_attempt_5b2d1e_idx'),
        ]

    def __str__(self):
        return f"{self.activity_type} x{self.count} (attempt {self.attempt_id})"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError('Activity log entries are append-only')
        super().save(*args, **kwargs)


class ExamBrowserSettings(models.Model):
    """Global exam-browser policy (single row, pk=1)."""
    is_enabled = models.BooleanField(default=False)
    allowed_browser_pattern = models.CharField(max_length=255, default='cbt-')
    max_violations = models.PositiveIntegerField(default=5)
    allow_multiple_sessions = models.BooleanField(default=False)
    block_devtools = models.BooleanField(default=True)
    block_screenshot = models.BooleanField(default=True)
    block_right_click = models.BooleanField(default=True)
    block_copy_paste = models.BooleanField(default=True)
    require_fullscreen = models.BooleanField(default=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'exam_browser_settings'
        verbose_name = 'Exam Browser Settings'
        verbose_name_plural = 'Exam Browser Settings'

    def __str__(self):
        return 'Exam browser settings'

    @classmethod
    def load(cls):
        obj, _ = cls.objects.get_or_create(pk=1)
        return obj
