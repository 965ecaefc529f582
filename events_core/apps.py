# events_core/apps.py

from django.apps import AppConfig


class EventsCoreConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "events_core"
    verbose_name = "Calendar events"

    def ready(self):
        # Transition side effects (notifications)
        from . import signals  # noqa
