# Celery-приложение поднимаем вместе с Django, чтобы @shared_task привязались к нему
from .celery import app as celery_app

__all__ = ("celery_app",)
