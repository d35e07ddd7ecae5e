from django.apps import AppConfig
from django.conf import settings


class ProctoringConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'proctoring'
    verbose_name = 'Proctoring'

    def ready(self):
        from core.cache import CacheService
        self.settings_cache = CacheService(
            settings.EXAM_SETTINGS_CACHE_TTL,
            alias='exam_settings',
            name='exam-browser-settings',
        )
