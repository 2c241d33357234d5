"""
Celery configuration for the BizChat application.

Celery runs the periodic maintenance jobs (stale upload cleanup). The beat
schedule lives in settings as CELERY_BEAT_SCHEDULE; tasks are auto-discovered
from every installed app's tasks.py.

Usage:
    celery -A config worker -l info
    celery -A config beat -l info
"""

import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("config")

# All Celery settings are prefixed with CELERY_ in settings.py
app.config_from_object("django.conf:settings", namespace="CELERY")

app.autodiscover_tasks()
