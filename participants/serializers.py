"""
Serializers for participants app
"""
from rest_framework import serializers

from participants.models import Participant


class ParticipantSerializer(serializers.ModelSerializer):
    fullName = serializers.CharField(source='full_name', read_only=True)
    examNumber = serializers.CharField(source='exam_number', read_only=True)
    className = serializers.CharField(source='class_name', read_only=True)
    isActive = serializers.BooleanField(source='is_active', read_only=True)

    class Meta:
        model = Participant
        fields = ['id', 'fullName', 'examNumber', 'className', 'isActive']


class BulkParticipantSerializer(serializers.Serializer):
    ids = serializers.ListField(child=serializers.IntegerField(min_value=1), allow_empty=False)
