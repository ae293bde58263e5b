# settings/development.py
"""
Development settings for the registrar project.
"""
from .base import *

# Debug settings
DEBUG = True
ALLOWED_HOSTS = ['localhost', '127.0.0.1', '0.0.0.0']

CORS_ALLOW_ALL_ORIGINS = True

# Database configuration for development
DATABASES['default'].update({
    'ATOMIC_REQUESTS': True,
})

# Development logs are noisier
LOGGING['handlers']['file']['level'] = 'DEBUG'
LOGGING['loggers']['students']['level'] = 'DEBUG'
LOGGING['loggers']['core']['level'] = 'DEBUG'

# Disable security settings for development
SESSION_COOKIE_SECURE = False
CSRF_COOKIE_SECURE = False
SECURE_SSL_REDIRECT = False
