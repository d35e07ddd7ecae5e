"""
Exam time window. Schedules store a civil date and time of day in a fixed offset
(UTC+7 by default); the window is re-derived from the schedule on every call
because admins may edit schedules while attempts exist.
"""
import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone as dt_timezone

from django.conf import settings
from django.utils import timezone

from exams.errors import TooEarly, TooLate


@dataclass(frozen=True)
class ExamWindow:
    start: datetime
    end: datetime
    allowed_start: datetime

    def contains(self, now: datetime) -> bool:
        return self.allowed_start <= now <= self.end


def exam_timezone() -> dt_timezone:
    return dt_timezone(timedelta(hours=settings.EXAM_TIMEZONE_OFFSET_HOURS))


def exam_window(schedule) -> ExamWindow:
    start = datetime.combine(schedule.exam_date, schedule.start_time, tzinfo=exam_timezone())
    end = start + timedelta(minutes=schedule.duration_minutes)
    allowed_start = start - timedelta(minutes=settings.EXAM_EARLY_ENTRY_MINUTES)
    return ExamWindow(start=start, end=end, allowed_start=allowed_start)


def minutes_until(target: datetime, now: datetime) -> int:
    """Whole minutes from now to target, rounded up (never negative)."""
    seconds = (target - now).total_seconds()
    return max(0, math.ceil(seconds / 60))


def check_window(schedule, now: datetime | None = None) -> ExamWindow:
    """Raise TooEarly before allowed_start and TooLate after end; return the window otherwise."""
    now = now or timezone.now()
    window = exam_window(schedule)
    if now < window.allowed_start:
        raise TooEarly(minutes_until(window.allowed_start, now), starts_at=window.start)
    if now > window.end:
        raise TooLate(ended_at=window.end)
    return window


def attempt_deadline(attempt) -> datetime:
    """Personal deadline of an attempt: started_at + schedule duration."""
    return attempt.started_at + timedelta(minutes=attempt.schedule.duration_minutes)


def elapsed_minutes(started_at: datetime, now: datetime) -> int:
    """Completed minutes since started_at (floored)."""
    return max(0, int((now - started_at).total_seconds() // 60))
