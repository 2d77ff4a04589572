"""
Test settings for Epistle Walk.
"""
from datetime import date

from .base import *

DEBUG = False

SECRET_KEY = 'test-secret-key'

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

TIME_ZONE = 'Asia/Seoul'

READING_PLAN_ANCHOR_DATE = date(2025, 1, 1)
READING_LOCAL_STORE_QUOTA = 5 * 1024 * 1024

GEMINI_API_KEY = 'test-key'

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
}
