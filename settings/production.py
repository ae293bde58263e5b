# settings/production.py
"""
Production settings - Secure and optimized.
"""

import os
from .base import *

# Security settings
DEBUG = False
ALLOWED_HOSTS = [
    host.strip()
    for host in os.getenv('ALLOWED_HOSTS', '').split(',')
    if host.strip()
]

# SSL/HTTPS settings
SECURE_SSL_REDIRECT = True
SECURE_PROXY_SSL_HEADER = ('HTTP_X_FORWARDED_PROTO', 'https')
SESSION_COOKIE_SECURE = True
CSRF_COOKIE_SECURE = True
SECURE_HSTS_SECONDS = 31536000  # 1 year
SECURE_HSTS_INCLUDE_SUBDOMAINS = True

# Database
DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.postgresql',
        'NAME': os.getenv('DB_NAME'),
        'USER': os.getenv('DB_USER'),
        'PASSWORD': os.getenv('DB_PASSWORD'),
        'HOST': os.getenv('DB_HOST'),
        'PORT': os.getenv('DB_PORT'),
        'CONN_MAX_AGE': 600,  # 10 minutes
        'ATOMIC_REQUESTS': True,
        'OPTIONS': {
            'sslmode': os.getenv('DB_SSLMODE', 'require'),
        }
    }
}

# Logging
LOG_DIR = Path(os.getenv('LOG_DIR', '/var/log/registrar'))
LOGGING['handlers']['file']['filename'] = str(LOG_DIR / 'registrar.log')
LOGGING['handlers']['error_file']['filename'] = str(LOG_DIR / 'error.log')
LOGGING['handlers']['reenrollment_file']['filename'] = str(LOG_DIR / 'reenrollment.log')
LOG_DIR.mkdir(parents=True, exist_ok=True)
LOGGING['handlers']['console']['level'] = 'INFO'
LOGGING['handlers']['console']['formatter'] = 'detailed'
