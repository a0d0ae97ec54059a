import logging
from functools import partial

from celery import current_app
from django.db import transaction
from django.db.models.signals import post_delete, post_save, pre_save
from django.dispatch import receiver
from django.utils import timezone
from kombu.exceptions import OperationalError

from .models import Reminder
from .tasks import deliver_reminder

logger = logging.getLogger(__name__)


@receiver(pre_save, sender=Reminder)
def reminder_snapshot_before_save(sender, instance: Reminder, **kwargs):
    """
    Снимем "старые" поля из базы, чтобы в post_save понять, что поменялось.
    Если запись новая — старых значений нет.
    pk у UUID-модели есть ещё до вставки, поэтому новизну смотрим по _state.adding.
    """
    old = None
    if not instance._state.adding:
        old = Reminder.objects.filter(pk=instance.pk).values("remind_at", "job_id").first()

    instance._old_remind_at = old["remind_at"] if old else None
    instance._old_job_id = old["job_id"] if old else ""


@receiver(post_save, sender=Reminder)
def reminder_schedule_after_save(sender, instance: Reminder, created: bool, **kwargs):
    """
    Логика перепланирования:
    - Напоминание уже отправлено → отменить старый job, если был.
    - Время не изменилось и job уже стоит → ничего не делаем.
    - Иначе → отменить старый job и поставить новый на eta=remind_at.
    Всё это — после коммита транзакции, чтобы воркер увидел запись.
    """
    old_job = getattr(instance, "_old_job_id", "")

    if instance.sent:
        if old_job:
            transaction.on_commit(partial(_cancel, instance.pk, old_job))
        return

    if not created and old_job and instance.remind_at == getattr(instance, "_old_remind_at", None):
        return

    transaction.on_commit(partial(_schedule, instance.pk, instance.remind_at, old_job))


@receiver(post_delete, sender=Reminder)
def reminder_cleanup_after_delete(sender, instance: Reminder, **kwargs):
    """При удалении напоминания (в т.ч. каскадом вместе с задачей) отменяем отложенный job."""
    if instance.job_id:
        transaction.on_commit(partial(_revoke, instance.job_id))


def _schedule(reminder_id, remind_at, old_job: str):
    if old_job:
        _revoke(old_job)

    # Если remind_at уже в прошлом — запускаем немедленно
    eta = remind_at if remind_at > timezone.now() else None
    try:
        result = deliver_reminder.apply_async(args=[str(reminder_id)], eta=eta)
    except OperationalError:
        # Брокер недоступен: запись остаётся без job_id и видна в find_due()
        logger.exception("Failed to schedule reminder %s", reminder_id)
        return

    # update() вместо save(): не вызываем сигналы повторно
    Reminder.objects.filter(pk=reminder_id).update(job_id=result.id)
    logger.info("Reminder %s scheduled as job %s (eta=%s)", reminder_id, result.id, eta)


def _cancel(reminder_id, job_id: str):
    _revoke(job_id)
    Reminder.objects.filter(pk=reminder_id).update(job_id="")


def _revoke(job_id: str):
    """
    Отмена отложенной задачи.
    terminate=False — не убиваем воркеров, просто отменяем задачу в очереди/скедулере.
    """
    try:
        current_app.control.revoke(job_id, terminate=False)
    except OperationalError as exc:
        logger.warning("Failed to revoke job %s: %s", job_id, exc)
