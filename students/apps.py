# students/apps.py
from django.apps import AppConfig
import logging

logger = logging.getLogger(__name__)


class StudentsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'students'
    verbose_name = 'Students & Guardians'

    def ready(self):
        logger.debug("Students app initialized")
