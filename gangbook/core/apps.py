from django.apps import AppConfig


class CoreConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "gangbook.core"
    verbose_name = "Core"

    def ready(self):
        # Import signals to ensure they are connected
        from . import signals  # noqa: F401
