"""
Participant (peserta) profile - OneToOne with User (role=participant).
is_active is the account-enabled flag toggled by admins (e.g. after a proctoring kick-out).
"""
from django.db import models
from accounts.models import User


class Participant(models.Model):
    user = models.OneToOneField(
        User,
        on_delete=models.CASCADE,
        related_name='participant_profile',
        limit_choices_to={'role': 'participant'},
    )
    exam_number = models.CharField(max_length=50, unique=True, help_text='No. ujian printed on the exam card')
    class_name = models.CharField(max_length=100, blank=True, default='')
    is_active = models.BooleanField(default=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'participants'
        verbose_name = 'Participant'
        verbose_name_plural = 'Participants'
        ordering = ['exam_number']

    def __str__(self):
        return f"{self.user.full_name} ({self.exam_number})"

    @property
    def full_name(self):
        return self.user.full_name
