"""
Development settings for Epistle Walk.
"""
from .base import *

DEBUG = True

# Use SQLite for development if no DATABASE_URL is set
DATABASES = {
    'default': env.db('DATABASE_URL', default=f'sqlite:///{BASE_DIR}/db.sqlite3'),
}

# Browsable API in development
REST_FRAMEWORK = {
    **REST_FRAMEWORK,
    'DEFAULT_RENDERER_CLASSES': [
        'rest_framework.renderers.JSONRenderer',
        'rest_framework.renderers.BrowsableAPIRenderer',
    ],
}

LOGGING['loggers']['apps']['level'] = 'DEBUG'
