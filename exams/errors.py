"""
Exam core error taxonomy.

Every business-rule failure is an APIException subclass so services can raise
and the global handler (config.exceptions) renders {detail, code, ...extra}.
"""
from rest_framework import status
from rest_framework.exceptions import APIException


class ExamError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Exam operation failed.'
    default_code = 'exam_error'

    def __init__(self, detail=None, **extra):
        super().__init__(detail=detail, code=self.default_code)
        self.extra = extra

    def as_dict(self):
        data = {'detail': str(self.detail), 'code': self.default_code}
        data.update(self.extra)
        return data


class NotFound(ExamError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Not found.'
    default_code = 'not_found'


class NotRegistered(ExamError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'Participant is not registered for this exam.'
    default_code = 'not_registered'


class ParticipantDisabled(ExamError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'Participant account is disabled.'
    default_code = 'participant_disabled'


class TooEarly(ExamError):
    default_detail = 'Exam has not started yet.'
    default_code = 'too_early'

    def __init__(self, minutes_until_start, starts_at=None):
        super().__init__(
            f'Exam opens in {minutes_until_start} minute(s).',
            minutesUntilStart=minutes_until_start,
            startsAt=starts_at.isoformat() if starts_at else None,
        )
        self.minutes_until_start = minutes_until_start


class TooLate(ExamError):
    default_detail = 'Exam has already ended.'
    default_code = 'too_late'

    def __init__(self, ended_at=None):
        super().__init__(endedAt=ended_at.isoformat() if ended_at else None)


class AlreadyCompleted(ExamError):
    default_detail = 'Participant has already completed this exam.'
    default_code = 'already_completed'


class AlreadySubmitted(ExamError):
    default_detail = 'Exam has already been submitted.'
    default_code = 'already_submitted'


class TooSoon(ExamError):
    default_detail = 'Minimum working time has not been reached.'
    default_code = 'too_soon'

    def __init__(self, remaining_minutes, minimum_minutes):
        super().__init__(
            f'You must work for at least {minimum_minutes} minutes; '
            f'{remaining_minutes} more minute(s) needed.',
            remainingMinutes=remaining_minutes,
            minimumMinutes=minimum_minutes,
        )
        self.remaining_minutes = remaining_minutes


class SessionConflict(ExamError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'This attempt is active in another browser session.'
    default_code = 'session_conflict'
