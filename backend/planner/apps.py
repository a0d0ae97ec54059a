from django.apps import AppConfig


class PlannerConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "planner"

    def ready(self):
        # Подключаем сигналы планирования напоминаний
        from . import signals  # noqa: F401
