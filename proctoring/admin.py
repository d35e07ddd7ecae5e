from django.contrib import admin
from proctoring.models import ActivityLog, ExamBrowserSettings


@admin.register(ActivityLog)
class ActivityLogAdmin(admin.ModelAdmin):
    list_display = ['id', 'attempt', 'participant', 'activity_type', 'count', 'timestamp']
    list_filter = ['activity_type']
    search_fields = ['participant__exam_number', 'participant__user__full_name']
    raw_id_fields = ['attempt', 'participant']

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(ExamBrowserSettings)
class ExamBrowserSettingsAdmin(admin.ModelAdmin):
    list_display = ['id', 'is_enabled', 'max_violations', 'allow_multiple_sessions', 'updated_at']
