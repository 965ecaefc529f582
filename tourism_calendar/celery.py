# tourism_calendar/celery.py
import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "tourism_calendar.settings")

app = Celery("tourism_calendar")
app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()
