"""
Репозитории поверх Django ORM.

Вью не работают с QuerySet напрямую: они получают репозиторий через
фабричную функцию (get_tasks_repository() и т.д.) и вызывают его методы.
Методы find_* возвращают экземпляр модели или None, delete — bool.
"""
import json
import math
from dataclasses import dataclass
from functools import lru_cache

from django.core.serializers.json import DjangoJSONEncoder
from django.db import transaction
from django.db.models import Count, F, Max, Q
from django.utils import timezone

from .filters import Pagination, TaskFilters
from .models import Attachment, Label, Reminder, Subtask, Task, TaskHistory, TaskList


@dataclass
class Page:
    """Страница результатов + метаданные пагинации."""
    items: list
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit)

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    def meta(self) -> dict:
        return {
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "totalPages": self.total_pages,
            "hasNext": self.has_next,
            "hasPrev": self.has_prev,
        }


class BaseRepository:
    """Общие CRUD-операции; наследники задают model."""
    model = None

    def queryset(self):
        return self.model.objects.all()

    def find_all(self) -> list:
        return list(self.queryset())

    def find_by_id(self, pk):
        return self.queryset().filter(pk=pk).first()

    def exists(self, pk) -> bool:
        return self.model.objects.filter(pk=pk).exists()

    def create(self, data: dict):
        return self.model.objects.create(**data)

    def update(self, pk, data: dict):
        """Частичное обновление: меняем только пришедшие поля. Нет записи — None."""
        instance = self.find_by_id(pk)
        if instance is None:
            return None
        if data:
            for k, v in data.items():
                setattr(instance, k, v)
            instance.save()
        return instance

    def delete(self, pk) -> bool:
        # delete() возвращает (всего, {модель: штук}) с учётом каскада — считаем только свою модель
        _, per_model = self.model.objects.filter(pk=pk).delete()
        return per_model.get(self.model._meta.label, 0) > 0


class ListsRepository(BaseRepository):
    model = TaskList

    def find_all_with_task_counts(self) -> list:
        # Inbox первым, дальше по имени
        return list(
            TaskList.objects
            .annotate(
                task_count=Count("tasks"),
                completed_count=Count("tasks", filter=Q(tasks__completed=True)),
            )
            .order_by("-is_default", "name")
        )


class LabelsRepository(BaseRepository):
    model = Label

    def queryset(self):
        return Label.objects.order_by("name")

    def name_exists(self, name: str, exclude_id=None) -> bool:
        qs = Label.objects.filter(name=name)
        if exclude_id is not None:
            qs = qs.exclude(pk=exclude_id)
        return qs.exists()


class TasksRepository(BaseRepository):
    """
    Задачи: CRUD, фильтры с пагинацией и журнал изменений.
    Каждое изменённое поле при update пишется в TaskHistory в той же транзакции.
    """
    model = Task

    # Поля, изменения которых попадают в историю (completed обрабатывается отдельно)
    TRACKED_FIELDS = (
        "name",
        "description",
        "list",
        "date",
        "deadline",
        "estimate_minutes",
        "actual_minutes",
        "priority",
        "recurring_rule",
    )

    def queryset(self):
        return Task.objects.prefetch_related("labels")

    @transaction.atomic
    def create(self, data: dict):
        data = dict(data)
        label_ids = data.pop("label_ids", None)
        task = Task.objects.create(**data)
        if label_ids:
            task.labels.set(Label.objects.filter(id__in=label_ids))
        return task

    def update(self, pk, data: dict):
        data = dict(data)
        label_ids = data.pop("label_ids", None)

        with transaction.atomic():
            task = Task.objects.select_for_update().filter(pk=pk).first()
            if task is None:
                return None

            changes = []
            for field in self.TRACKED_FIELDS:
                if field not in data:
                    continue
                new = data[field]
                if field == "list":
                    old, new_value, history_field = task.list_id, new.pk, "list_id"
                else:
                    old, new_value, history_field = getattr(task, field), new, field
                if old != new_value:
                    changes.append((history_field, old, new_value))
                    setattr(task, field, new)

            # Отметка о выполнении: completed_at ставим/сбрасываем вместе с флагом
            if "completed" in data and data["completed"] != task.completed:
                changes.append(("completed", task.completed, data["completed"]))
                completed_at = timezone.now() if data["completed"] else None
                changes.append(("completed_at", task.completed_at, completed_at))
                task.completed = data["completed"]
                task.completed_at = completed_at

            if changes:
                task.save()
                TaskHistory.objects.bulk_create([
                    TaskHistory(
                        task=task,
                        field_name=name,
                        old_value=_encode(old),
                        new_value=_encode(new),
                    )
                    for name, old, new in changes
                ])

            # Если label_ids пришли (в т.ч. пустой список) — перезаписываем связи
            if label_ids is not None:
                task.labels.set(Label.objects.filter(id__in=label_ids))

        return self.find_by_id(pk)

    def _filtered(self, filters: TaskFilters):
        qs = Task.objects.all()

        if filters.list_id:
            qs = qs.filter(list_id=filters.list_id)
        if filters.date_from:
            qs = qs.filter(date__gte=filters.date_from)
        if filters.date_to:
            qs = qs.filter(date__lte=filters.date_to)
        if filters.completed is not None:
            qs = qs.filter(completed=filters.completed)
        if filters.priority:
            qs = qs.filter(priority=filters.priority)
        if filters.overdue:
            qs = qs.filter(deadline__lt=timezone.now(), completed=False)
        if filters.search:
            # icontains сам экранирует % и _
            qs = qs.filter(Q(name__icontains=filters.search) | Q(description__icontains=filters.search))
        if filters.label_id:
            qs = qs.filter(labels__id=filters.label_id)

        return qs.order_by(F("date").asc(nulls_last=True), "-created_at")

    def find_with_filters_paginated(self, filters: TaskFilters, pagination: Pagination) -> Page:
        qs = self._filtered(filters)
        total = qs.count()
        if pagination.offset >= total:
            # Страница за пределами выборки: OFFSET не отправляем в БД
            return Page(items=[], page=pagination.page, limit=pagination.limit, total=total)
        items = list(qs.prefetch_related("labels")[pagination.offset:pagination.offset + pagination.limit])
        return Page(items=items, page=pagination.page, limit=pagination.limit, total=total)

    def find_with_relations(self, pk):
        return (
            Task.objects
            .select_related("list")
            .prefetch_related("labels", "subtasks", "reminders", "attachments")
            .filter(pk=pk)
            .first()
        )


class SubtasksRepository(BaseRepository):
    model = Subtask

    def create(self, data: dict):
        data = dict(data)
        if data.get("order") is None:
            data["order"] = self.get_max_order(data["task"].pk) + 1
        return Subtask.objects.create(**data)

    def get_max_order(self, task_id) -> int:
        result = Subtask.objects.filter(task_id=task_id).aggregate(max_order=Max("order"))
        return result["max_order"] if result["max_order"] is not None else -1

    def find_by_task_id(self, task_id) -> list:
        return list(Subtask.objects.filter(task_id=task_id).order_by("order"))


class RemindersRepository(BaseRepository):
    model = Reminder

    def update(self, pk, data: dict):
        data = dict(data)
        existing = self.find_by_id(pk)
        # Перенесли время — напоминание снова ждёт отправки
        if existing is not None and "remind_at" in data and data["remind_at"] != existing.remind_at:
            data["sent"] = False
        return super().update(pk, data)

    def find_by_task_id(self, task_id) -> list:
        return list(Reminder.objects.filter(task_id=task_id).order_by("remind_at"))

    def find_pending(self) -> list:
        return list(Reminder.objects.filter(sent=False).order_by("remind_at"))

    def find_due(self) -> list:
        return list(Reminder.objects.filter(sent=False, remind_at__lte=timezone.now()).order_by("remind_at"))

    def mark_sent(self, pk) -> bool:
        # update() без save(): сигналы перепланирования не срабатывают
        return Reminder.objects.filter(pk=pk).update(sent=True) > 0


class AttachmentsRepository(BaseRepository):
    model = Attachment

    def find_by_task_id(self, task_id) -> list:
        return list(Attachment.objects.filter(task_id=task_id).order_by("-created_at"))

    def filename_exists(self, task_id, filename: str) -> bool:
        return Attachment.objects.filter(task_id=task_id, filename=filename).exists()


class TaskHistoryRepository(BaseRepository):
    model = TaskHistory

    def find_by_task_id(self, task_id) -> list:
        return list(TaskHistory.objects.filter(task_id=task_id).order_by("-changed_at"))

    def find_by_task_id_and_field(self, task_id, field_name: str) -> list:
        return list(
            TaskHistory.objects.filter(task_id=task_id, field_name=field_name).order_by("-changed_at")
        )


def _encode(value):
    # Значения истории храним как JSON-строки; None остаётся NULL
    if value is None:
        return None
    return json.dumps(value, cls=DjangoJSONEncoder)


# Фабрики: по одному экземпляру репозитория на процесс
@lru_cache(maxsize=None)
def get_lists_repository() -> ListsRepository:
    return ListsRepository()


@lru_cache(maxsize=None)
def get_tasks_repository() -> TasksRepository:
    return TasksRepository()


@lru_cache(maxsize=None)
def get_labels_repository() -> LabelsRepository:
    return LabelsRepository()


@lru_cache(maxsize=None)
def get_subtasks_repository() -> SubtasksRepository:
    return SubtasksRepository()


@lru_cache(maxsize=None)
def get_reminders_repository() -> RemindersRepository:
    return RemindersRepository()


@lru_cache(maxsize=None)
def get_attachments_repository() -> AttachmentsRepository:
    return AttachmentsRepository()


@lru_cache(maxsize=None)
def get_task_history_repository() -> TaskHistoryRepository:
    return TaskHistoryRepository()
