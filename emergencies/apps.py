from django.apps import AppConfig


class EmergenciesConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'emergencies'

    def ready(self):
        from emergencies import signals  # noqa: F401
