from django.contrib import admin

from exams.models import ExamAttempt, ExamSchedule, ExamScheduleParticipant, Question, QuestionBank


class QuestionInline(admin.TabularInline):
    model = Question
    extra = 0
    fields = ['number', 'text', 'correct_option']


@admin.register(QuestionBank)
class QuestionBankAdmin(admin.ModelAdmin):
    list_display = ['code', 'subject', 'created_at']
    search_fields = ['code', 'subject']
    inlines = [QuestionInline]


@admin.register(Question)
class QuestionAdmin(admin.ModelAdmin):
    list_display = ['bank', 'number', 'correct_option']
    list_filter = ['bank']
    search_fields = ['text']


class RosterInline(admin.TabularInline):
    model = ExamScheduleParticipant
    extra = 0
    raw_id_fields = ['participant']


@admin.register(ExamSchedule)
class ExamScheduleAdmin(admin.ModelAdmin):
    list_display = ['name', 'bank', 'exam_date', 'start_time', 'duration_minutes', 'is_active']
    list_filter = ['is_active', 'exam_date']
    search_fields = ['name']
    inlines = [RosterInline]


@admin.register(ExamAttempt)
class ExamAttemptAdmin(admin.ModelAdmin):
    list_display = ['id', 'schedule', 'participant', 'status', 'score', 'max_score', 'violation_count', 'started_at']
    list_filter = ['status', 'schedule']
    search_fields = ['participant__exam_number', 'participant__user__full_name']
    raw_id_fields = ['schedule', 'participant']
    readonly_fields = ['answers', 'question_order', 'option_mapping', 'answer_key_snapshot']
