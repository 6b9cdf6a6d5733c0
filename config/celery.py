"""Celery application for booking notification tasks (``apps.bookings.tasks``)."""

import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings.dev")

app = Celery("scheduling")

# CELERY_* keys of the Django settings, e.g. CELERY_TASK_ALWAYS_EAGER in tests
app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks(["apps.bookings"])
