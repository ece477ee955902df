from django.apps import AppConfig


class WorkshopConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'workshop'
    verbose_name = 'Workshop'

    def ready(self):
        from . import signals  # noqa: F401
