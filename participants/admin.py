from django.contrib import admin

from .models import Participant


@admin.register(Participant)
class ParticipantAdmin(admin.ModelAdmin):
    list_display = ['exam_number', 'user', 'class_name', 'is_active']
    list_filter = ['is_active', 'class_name']
    search_fields = ['exam_number', 'user__full_name', 'user__email']
    raw_id_fields = ['user']
