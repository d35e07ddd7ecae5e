"""
Force-submit in-progress attempts whose schedule window has closed.
Nothing does this automatically; run from cron if abandoned attempts should not
stay in progress until an admin intervenes.
Usage: python manage.py expire_attempts [--apply]
Without --apply: dry-run only (report, no changes).
"""
from django.core.management.base import BaseCommand
from django.utils import timezone

from exams.errors import AlreadySubmitted
from exams.models import ExamAttempt
from exams.services import expired_attempts, force_submit_attempt
from proctoring.services import record_force_submit


class Command(BaseCommand):
    help = 'Force-submit in-progress attempts past their schedule end time'

    def add_arguments(self, parser):
        parser.add_argument(
            '--apply',
            action='store_true',
            help='Apply force-submit (default: dry-run only)',
        )

    def handle(self, *args, **options):
        apply = options['apply']
        if not apply:
            self.stdout.write(self.style.WARNING('DRY RUN - no changes will be made. Use --apply to submit.'))

        now = timezone.now()
        attempts = expired_attempts(now)
        self.stdout.write(f'  Expired in-progress attempts: {len(attempts)}')

        submitted = 0
        for attempt in attempts:
            if not apply:
                self.stdout.write(f'    Would submit attempt id={attempt.id} schedule={attempt.schedule_id}')
                continue
            try:
                result = force_submit_attempt(attempt.id, reason='expired', now=now)
            except AlreadySubmitted:
                self.stdout.write(f'    Skipped attempt id={attempt.id} (already submitted)')
                continue
            record_force_submit(ExamAttempt.objects.get(pk=attempt.id), 'expired', now=now)
            submitted += 1
            self.stdout.write(f'    Submitted attempt id={attempt.id} score={result.score}/{result.max_score}')

        if apply:
            self.stdout.write(self.style.SUCCESS(f'Done. Submitted {submitted} attempt(s).'))
