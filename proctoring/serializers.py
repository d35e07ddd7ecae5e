"""
Serializers for proctoring endpoints.
"""
from rest_framework import serializers

from proctoring.models import ActivityLog


class LogActivitySerializer(serializers.Serializer):
    attemptId = serializers.IntegerField()
    participantId = serializers.IntegerField(required=False, allow_null=True)
    activityType = serializers.ChoiceField(choices=ActivityLog.CLIENT_TYPES)
    count = serializers.IntegerField(required=False, default=1, min_value=0)
    metadata = serializers.JSONField(required=False, allow_null=True)


class UpdateSessionSerializer(serializers.Serializer):
    attemptId = serializers.IntegerField()
    sessionId = serializers.CharField(max_length=255)
    ip = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=64)


class CheckSessionSerializer(serializers.Serializer):
    attemptId = serializers.IntegerField()
    sessionId = serializers.CharField(max_length=255)


class BrowserSettingsSerializer(serializers.Serializer):
    isEnabled = serializers.BooleanField(required=False)
    allowedBrowserPattern = serializers.CharField(required=False, max_length=255)
    maxViolations = serializers.IntegerField(required=False, min_value=1)
    allowMultipleSessions = serializers.BooleanField(required=False)
    blockDevtools = serializers.BooleanField(required=False)
    blockScreenshot = serializers.BooleanField(required=False)
    blockRightClick = serializers.BooleanField(required=False)
    blockCopyPaste = serializers.BooleanField(required=False)
    requireFullscreen = serializers.BooleanField(required=False)
