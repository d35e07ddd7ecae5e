"""
Request/response serializers for the exam endpoints. Keys are camelCase.
"""
from rest_framework import serializers

from exams.models import ExamAttempt, ExamSchedule


class AnswersField(serializers.DictField):
    """{questionId: label}; null or blank labels mean "no answer"."""

    def __init__(self, **kwargs):
        kwargs.setdefault('child', serializers.CharField(allow_blank=True, allow_null=True, max_length=1))
        super().__init__(**kwargs)


class StartExamSerializer(serializers.Serializer):
    participantId = serializers.IntegerField(required=False, allow_null=True)
    sessionId = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=255)


class SaveProgressSerializer(serializers.Serializer):
    participantId = serializers.IntegerField(required=False, allow_null=True)
    attemptId = serializers.IntegerField()
    answers = AnswersField()
    sessionId = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=255)


class SubmitExamSerializer(serializers.Serializer):
    participantId = serializers.IntegerField(required=False, allow_null=True)
    attemptId = serializers.IntegerField()
    answers = AnswersField(required=False, allow_null=True)
    sessionId = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=255)


class ExternalSubmissionSerializer(serializers.Serializer):
    participantId = serializers.IntegerField(required=False, allow_null=True)


class ForceSubmitSerializer(serializers.Serializer):
    attemptId = serializers.IntegerField()
    scheduleId = serializers.IntegerField(required=False, allow_null=True)


class RecalculateSerializer(serializers.Serializer):
    attemptIds = serializers.ListField(child=serializers.IntegerField(min_value=1), allow_empty=False)
    updateSnapshot = serializers.BooleanField(required=False, default=False)


class ScheduleSummarySerializer(serializers.ModelSerializer):
    durationMinutes = serializers.IntegerField(source='duration_minutes', read_only=True)
    minimumMinutes = serializers.IntegerField(source='minimum_minutes', read_only=True)
    examDate = serializers.DateField(source='exam_date', read_only=True)
    startTime = serializers.TimeField(source='start_time', format='%H:%M', read_only=True)
    showScore = serializers.BooleanField(source='show_score', read_only=True)
    shuffleQuestions = serializers.BooleanField(source='shuffle_questions', read_only=True)
    shuffleOptions = serializers.BooleanField(source='shuffle_options', read_only=True)
    requireProctorBrowser = serializers.BooleanField(source='require_proctor_browser', read_only=True)

    class Meta:
        model = ExamSchedule
        fields = [
            'id', 'name', 'examDate', 'startTime', 'durationMinutes', 'minimumMinutes',
            'showScore', 'shuffleQuestions', 'shuffleOptions', 'requireProctorBrowser',
        ]


class AttemptSerializer(serializers.ModelSerializer):
    attemptId = serializers.IntegerField(source='id', read_only=True)
    scheduleId = serializers.IntegerField(source='schedule_id', read_only=True)
    participantId = serializers.IntegerField(source='participant_id', read_only=True)
    startedAt = serializers.DateTimeField(source='started_at', read_only=True)
    finishedAt = serializers.DateTimeField(source='finished_at', read_only=True)
    maxScore = serializers.IntegerField(source='max_score', read_only=True)
    violationCount = serializers.IntegerField(source='violation_count', read_only=True)

    class Meta:
        model = ExamAttempt
        fields = [
            'attemptId', 'scheduleId', 'participantId', 'status', 'startedAt', 'finishedAt',
            'score', 'maxScore', 'violationCount',
        ]
