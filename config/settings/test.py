"""
Test settings: in-memory SQLite, fast password hashing.
"""
import os

os.environ.setdefault('DATABASE_URL', 'sqlite://:memory:')

from .base import *  # noqa: E402,F401,F403

DEBUG = False

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

EXAM_ENFORCE_SESSION_BINDING = False

# Browser settings are re-read on every call; rows are rolled back between tests.
EXAM_SETTINGS_CACHE_TTL = 0

CACHES = {
    'default': {'BACKEND': 'django.core.cache.backends.locmem.LocMemCache', 'LOCATION': 'test-default'},
    'exam_settings': {'BACKEND': 'django.core.cache.backends.locmem.LocMemCache', 'LOCATION': 'test-exam-settings'},
}
