"""
Задача “доставить напоминание”:
- Проверяет актуальность напоминания (не отправлено, время не перенесли, задача не выполнена)
- notification → POST на REMINDER_WEBHOOK_URL, email → send_mail на REMINDER_EMAIL_TO
- Ретраи при временных ошибках сети
"""
import logging

import httpx
from celery import shared_task
from django.conf import settings
from django.core.mail import send_mail
from django.utils import timezone

from .models import Reminder
from .repositories import get_reminders_repository

logger = logging.getLogger(__name__)


@shared_task(bind=True, max_retries=3, default_retry_delay=30)
def deliver_reminder(self, reminder_id: str) -> str:
    # Берём актуальную версию напоминания
    reminder = Reminder.objects.select_related("task").filter(pk=reminder_id).first()
    if not reminder:
        return "missing"  # удалили — некого уведомлять

    if reminder.sent:
        return "skipped"
    if reminder.remind_at > timezone.now():
        # Этот job поставили раньше, но напоминание перенесли вперёд
        return "skipped"
    if reminder.task.completed:
        return "skipped"

    try:
        if reminder.type == Reminder.Type.EMAIL:
            _send_email(reminder)
        else:
            _send_webhook(reminder)
    except (httpx.HTTPError, OSError) as exc:
        # Дадим 3 попытки (см. декоратор)
        logger.warning("Reminder %s delivery failed: %s", reminder.pk, exc)
        raise self.retry(exc=exc)

    get_reminders_repository().mark_sent(reminder.pk)
    logger.info("Reminder %s delivered (%s)", reminder.pk, reminder.type)
    return "sent"


def _payload(reminder: Reminder) -> dict:
    task = reminder.task
    return {
        "reminder_id": str(reminder.pk),
        "task_id": str(task.pk),
        "name": task.name,
        "remind_at": reminder.remind_at.isoformat(),
        "deadline": task.deadline.isoformat() if task.deadline else None,
    }


def _send_webhook(reminder: Reminder):
    url = getattr(settings, "REMINDER_WEBHOOK_URL", "")
    if not url:
        logger.info("Reminder %s for task %s is due (no webhook configured)", reminder.pk, reminder.task_id)
        return

    headers = {}
    token = getattr(settings, "REMINDER_WEBHOOK_TOKEN", "")
    if token:
        headers["Authorization"] = f"Bearer {token}"

    with httpx.Client(timeout=5.0) as client:
        response = client.post(url, json=_payload(reminder), headers=headers)
        response.raise_for_status()


def _send_email(reminder: Reminder):
    recipient = getattr(settings, "REMINDER_EMAIL_TO", "")
    if not recipient:
        logger.info("Reminder %s for task %s is due (no email recipient configured)", reminder.pk, reminder.task_id)
        return

    task = reminder.task
    lines = [f"Reminder: {task.name}"]
    if task.deadline:
        lines.append(f"Deadline: {task.deadline.isoformat()}")
    if task.description:
        lines.append("")
        lines.append(task.description)

    send_mail(
        subject=f"Reminder: {task.name}",
        message="\n".join(lines),
        from_email=None,
        recipient_list=[recipient],
    )


@shared_task
def dispatch_due_reminders() -> int:
    """
    Периодическая задача (celery beat): подбирает наступившие напоминания без job_id,
    например, если брокер был недоступен в момент сохранения.
    """
    due = [reminder for reminder in get_reminders_repository().find_due() if not reminder.job_id]
    for reminder in due:
        deliver_reminder.delay(str(reminder.pk))
    if due:
        logger.info("Dispatched %s overdue reminders", len(due))
    return len(due)
