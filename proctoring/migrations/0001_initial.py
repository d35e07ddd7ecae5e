# Generated migration for activity log and exam browser settings
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('exams', '0001_initial'),
        ('participants', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='ExamBrowserSettings',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('is_enabled', models.BooleanField(default=False)),
                ('allowed_browser_pattern', models.CharField(default='cbt-', max_length=255)),
                ('max_violations', models.PositiveIntegerField(default=5)),
                ('allow_multiple_sessions', models.BooleanField(default=False)),
                ('block_devtools', models.BooleanField(default=True)),
                ('block_screenshot', models.BooleanField(default=True)),
                ('block_right_click', models.BooleanField(default=True)),
                ('block_copy_paste', models.BooleanField(default=True)),
                ('require_fullscreen', models.BooleanField(default=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Exam Browser Settings',
                'verbose_name_plural': 'Exam Browser Settings',
                'db_table': 'exam_browser_settings',
            },
        ),
        migrations.CreateModel(
            name='ActivityLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('activity_type', models.CharField(choices=[('TAB_BLUR', 'Tab blur'), ('EXIT_FULLSCREEN', 'Exit fullscreen'), ('ATTEMPTED_DEVTOOLS', 'Attempted devtools'), ('SCREENSHOT_ATTEMPT', 'Screenshot attempt'), ('PAGE_REFRESH', 'Page refresh'), ('ANSWER_CHANGE', 'Answer change'), ('RIGHT_CLICK', 'Right click'), ('COPY_ATTEMPT', 'Copy attempt'), ('PASTE_ATTEMPT', 'Paste attempt'), ('SESSION_VIOLATION', 'Session violation'), ('FORCE_SUBMIT', 'Force submit')], max_length=32)),
                ('count', models.PositiveIntegerField(default=1)),
                ('metadata', models.TextField(blank=True, help_text='JSON object sent by the client', null=True)),
                ('timestamp', models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ('attempt', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='activity_logs', to='exams.examattempt')),
                ('participant', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='activity_logs', to='participants.participant')),
            ],
            options={
                'verbose_name': 'Activity Log',
                'verbose_name_plural': 'Activity Logs',
                'db_table': 'activity_logs',
                'ordering': ['-timestamp'],
                'indexes': [models.Index(fields=['attempt', 'activity_type'], name='activity_lo_attempt_5b2d1e_idx')],
            },
        ),
    ]
