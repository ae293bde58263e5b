# settings/test.py
"""
Test settings - in-memory database, console-only logging.
"""
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

REST_FRAMEWORK = {
    **REST_FRAMEWORK,
    'DEFAULT_THROTTLE_CLASSES': [],
}

STUDENT_GUARDIAN_RELATIONSHIP_TYPES = ['parent', 'guardian', 'grandparent', 'sibling', 'other']
STUDENT_GUARDIAN_AUTO_PRIMARY = False
REENROLLMENT = {'PASS_MARK': 55, 'MIN_ATTENDANCE': 0}

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'handlers': {
        'null': {'class': 'logging.NullHandler'},
    },
    'root': {
        'handlers': ['null'],
        'level': 'WARNING',
    },
}
