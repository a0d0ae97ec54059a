import logging

from django.conf import settings
from django.core.exceptions import PermissionDenied
from django.http import Http404
from rest_framework.exceptions import APIException
from rest_framework.views import APIView

from .exceptions import BusinessRuleViolation, Conflict, InternalError, InvalidIdentifier, ResourceNotFound
from .filters import build_pagination, build_task_filters, parse_int
from .ids import parse_id
from .repositories import (
    get_attachments_repository,
    get_labels_repository,
    get_lists_repository,
    get_reminders_repository,
    get_subtasks_repository,
    get_task_history_repository,
    get_tasks_repository,
)
from .responses import created, deleted, ok
from .serializers import (
    AttachmentSerializer,
    LabelSerializer,
    ReminderSerializer,
    SubtaskSerializer,
    TaskDetailSerializer,
    TaskHistorySerializer,
    TaskListSerializer,
    TaskListWithCountsSerializer,
    TaskSerializer,
    TaskUpdateSerializer,
)

logger = logging.getLogger(__name__)


def require_id(raw, message: str):
    """ID из пути -> uuid.UUID, иначе 400 с заданным сообщением (до обращения к БД)."""
    pk = parse_id(raw)
    if pk is None:
        raise InvalidIdentifier(message)
    return pk


class PlannerAPIView(APIView):
    """
    Базовая вью API.
    - Ошибки DRF (APIException) отдаёт обработчик из exceptions.py.
    - Любое другое исключение пишем в лог с трейсбеком и отвечаем 500
      с общим сообщением из failure_messages (по методу запроса).
    """
    failure_messages: dict = {}

    def perform_authentication(self, request):
        # При выключенной аутентификации заголовки Authorization вообще не разбираем
        if getattr(settings, "API_AUTH_ENABLED", False):
            request.user

    def handle_exception(self, exc):
        if not isinstance(exc, (APIException, Http404, PermissionDenied)):
            message = self.failure_messages.get(self.request.method.lower(), InternalError.default_detail)
            logger.exception("%s %s: %s", self.request.method, self.request.path, message)
            exc = InternalError(message)
        return super().handle_exception(exc)


def _require_task(task_pk):
    if not get_tasks_repository().exists(task_pk):
        raise ResourceNotFound("Task not found")


# ---------- Задачи ----------

class TaskCollectionView(PlannerAPIView):
    """
    GET  /api/tasks — список задач с фильтрами и пагинацией
    POST /api/tasks — создать задачу
    """
    throttle_scopes = {"GET": "relaxed", "POST": "standard"}
    failure_messages = {"get": "Failed to fetch tasks", "post": "Failed to create task"}

    def get(self, request):
        filters = build_task_filters(request.query_params)
        pagination = build_pagination(request.query_params)
        page = get_tasks_repository().find_with_filters_paginated(filters, pagination)
        return ok(TaskSerializer(page.items, many=True).data, pagination=page.meta())

    def post(self, request):
        serializer = TaskSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        task = get_tasks_repository().create(serializer.validated_data)
        return created(TaskSerializer(task).data)


class TaskDetailView(PlannerAPIView):
    failure_messages = {
        "get": "Failed to fetch task",
        "put": "Failed to update task",
        "delete": "Failed to delete task",
    }

    def get(self, request, task_id):
        pk = require_id(task_id, "Invalid task ID")
        repo = get_tasks_repository()

        # ?includeRelations=true — задача вместе со списком, подзадачами, напоминаниями и вложениями
        if request.query_params.get("includeRelations") == "true":
            task, serializer_class = repo.find_with_relations(pk), TaskDetailSerializer
        else:
            task, serializer_class = repo.find_by_id(pk), TaskSerializer

        if task is None:
            raise ResourceNotFound("Task not found")
        return ok(serializer_class(task).data)

    def put(self, request, task_id):
        pk = require_id(task_id, "Invalid task ID")
        serializer = TaskUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        task = get_tasks_repository().update(pk, serializer.validated_data)
        if task is None:
            raise ResourceNotFound("Task not found")
        return ok(TaskSerializer(task).data)

    def delete(self, request, task_id):
        pk = require_id(task_id, "Invalid task ID")
        if not get_tasks_repository().delete(pk):
            raise ResourceNotFound("Task not found")
        return deleted("Task")


class TaskHistoryView(PlannerAPIView):
    """GET /api/tasks/{id}/history?field=priority&limit=10 — журнал изменений, новые сверху."""
    failure_messages = {"get": "Failed to fetch task history"}

    def get(self, request, task_id):
        pk = require_id(task_id, "Invalid task ID")
        _require_task(pk)

        repo = get_task_history_repository()
        field = request.query_params.get("field")
        entries = repo.find_by_task_id_and_field(pk, field) if field else repo.find_by_task_id(pk)

        limit = parse_int(request.query_params.get("limit"), 0)
        if limit > 0:
            entries = entries[:limit]

        return ok(TaskHistorySerializer(entries, many=True).data, count=len(entries))


# ---------- Дочерние ресурсы задачи: подзадачи, напоминания, вложения ----------

class TaskChildCollectionView(PlannerAPIView):
    """
    GET  /api/tasks/{id}/<children> — все дочерние записи задачи
    POST /api/tasks/{id}/<children> — создать запись в задаче
    Наследник задаёт serializer_class и repository().
    """
    serializer_class = None

    def repository(self):
        raise NotImplementedError

    def check_create(self, task_pk, data):
        """Дополнительные проверки перед созданием (по умолчанию нет)."""

    def get(self, request, task_id):
        pk = require_id(task_id, "Invalid task ID")
        _require_task(pk)
        items = self.repository().find_by_task_id(pk)
        return ok(self.serializer_class(items, many=True).data, count=len(items))

    def post(self, request, task_id):
        pk = require_id(task_id, "Invalid task ID")
        _require_task(pk)

        serializer = self.serializer_class(data=request.data)
        serializer.is_valid(raise_exception=True)
        self.check_create(pk, serializer.validated_data)

        task = get_tasks_repository().find_by_id(pk)
        item = self.repository().create({**serializer.validated_data, "task": task})
        return created(self.serializer_class(item).data)


class TaskChildDetailView(PlannerAPIView):
    """
    GET/DELETE /api/tasks/{id}/<children>/{childId}
    Запись другой задачи считается ненайденной (404), а не чужой.
    """
    serializer_class = None
    entity = ""

    def repository(self):
        raise NotImplementedError

    def parse_ids(self, task_id, child_id):
        task_pk, child_pk = parse_id(task_id), parse_id(child_id)
        if task_pk is None or child_pk is None:
            raise InvalidIdentifier("Invalid ID")
        return task_pk, child_pk

    def find_owned(self, task_pk, child_pk):
        item = self.repository().find_by_id(child_pk)
        if item is None or item.task_id != task_pk:
            raise ResourceNotFound(f"{self.entity} not found")
        return item

    def get_object(self, task_id, child_id):
        return self.find_owned(*self.parse_ids(task_id, child_id))

    def get(self, request, task_id, child_id):
        return ok(self.serializer_class(self.get_object(task_id, child_id)).data)

    def delete(self, request, task_id, child_id):
        item = self.get_object(task_id, child_id)
        self.repository().delete(item.pk)
        return deleted(self.entity)


class EditableTaskChildDetailView(TaskChildDetailView):
    """+ PUT /api/tasks/{id}/<children>/{childId} — частичное обновление."""

    def put(self, request, task_id, child_id):
        task_pk, child_pk = self.parse_ids(task_id, child_id)
        # Сначала тело запроса, потом принадлежность задаче
        serializer = self.serializer_class(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        item = self.find_owned(task_pk, child_pk)
        item = self.repository().update(item.pk, serializer.validated_data)
        return ok(self.serializer_class(item).data)


class SubtaskCollectionView(TaskChildCollectionView):
    serializer_class = SubtaskSerializer
    failure_messages = {"get": "Failed to fetch subtasks", "post": "Failed to create subtask"}

    def repository(self):
        return get_subtasks_repository()


class SubtaskDetailView(EditableTaskChildDetailView):
    serializer_class = SubtaskSerializer
    entity = "Subtask"
    failure_messages = {
        "get": "Failed to fetch subtask",
        "put": "Failed to update subtask",
        "delete": "Failed to delete subtask",
    }

    def repository(self):
        return get_subtasks_repository()


class ReminderCollectionView(TaskChildCollectionView):
    serializer_class = ReminderSerializer
    failure_messages = {"get": "Failed to fetch reminders", "post": "Failed to create reminder"}

    def repository(self):
        return get_reminders_repository()


class ReminderDetailView(EditableTaskChildDetailView):
    serializer_class = ReminderSerializer
    entity = "Reminder"
    failure_messages = {
        "get": "Failed to fetch reminder",
        "put": "Failed to update reminder",
        "delete": "Failed to delete reminder",
    }

    def repository(self):
        return get_reminders_repository()


class AttachmentCollectionView(TaskChildCollectionView):
    serializer_class = AttachmentSerializer
    failure_messages = {"get": "Failed to fetch attachments", "post": "Failed to create attachment"}

    def repository(self):
        return get_attachments_repository()

    def check_create(self, task_pk, data):
        # Имя файла уникально в пределах задачи
        if self.repository().filename_exists(task_pk, data["filename"]):
            raise Conflict("A file with this name already exists for this task")


class AttachmentDetailView(TaskChildDetailView):
    # Вложения не редактируются: только GET и DELETE
    serializer_class = AttachmentSerializer
    entity = "Attachment"
    failure_messages = {"get": "Failed to fetch attachment", "delete": "Failed to delete attachment"}

    def repository(self):
        return get_attachments_repository()


# ---------- Списки ----------

class ListCollectionView(PlannerAPIView):
    failure_messages = {"get": "Failed to fetch lists", "post": "Failed to create list"}

    def get(self, request):
        lists = get_lists_repository().find_all_with_task_counts()
        return ok(TaskListWithCountsSerializer(lists, many=True).data)

    def post(self, request):
        serializer = TaskListSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        task_list = get_lists_repository().create(serializer.validated_data)
        return created(TaskListSerializer(task_list).data)


class ListDetailView(PlannerAPIView):
    failure_messages = {
        "get": "Failed to fetch list",
        "put": "Failed to update list",
        "delete": "Failed to delete list",
    }

    def get(self, request, list_id):
        pk = require_id(list_id, "Invalid list ID")
        task_list = get_lists_repository().find_by_id(pk)
        if task_list is None:
            raise ResourceNotFound("List not found")
        return ok(TaskListSerializer(task_list).data)

    def put(self, request, list_id):
        pk = require_id(list_id, "Invalid list ID")
        serializer = TaskListSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        task_list = get_lists_repository().update(pk, serializer.validated_data)
        if task_list is None:
            raise ResourceNotFound("List not found")
        return ok(TaskListSerializer(task_list).data)

    def delete(self, request, list_id):
        pk = require_id(list_id, "Invalid list ID")
        repo = get_lists_repository()

        task_list = repo.find_by_id(pk)
        if task_list is None:
            raise ResourceNotFound("List not found")
        if task_list.is_default:
            raise BusinessRuleViolation("Cannot delete the default Inbox list")

        # Задачи списка удаляются каскадом
        repo.delete(pk)
        return deleted("List")


# ---------- Метки ----------

class LabelCollectionView(PlannerAPIView):
    failure_messages = {"get": "Failed to fetch labels", "post": "Failed to create label"}

    def get(self, request):
        labels = get_labels_repository().find_all()
        return ok(LabelSerializer(labels, many=True).data)

    def post(self, request):
        serializer = LabelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        repo = get_labels_repository()
        if repo.name_exists(serializer.validated_data["name"]):
            raise Conflict("Label with this name already exists")

        label = repo.create(serializer.validated_data)
        return created(LabelSerializer(label).data)


class LabelDetailView(PlannerAPIView):
    failure_messages = {
        "get": "Failed to fetch label",
        "put": "Failed to update label",
        "delete": "Failed to delete label",
    }

    def get(self, request, label_id):
        pk = require_id(label_id, "Invalid label ID")
        label = get_labels_repository().find_by_id(pk)
        if label is None:
            raise ResourceNotFound("Label not found")
        return ok(LabelSerializer(label).data)

    def put(self, request, label_id):
        pk = require_id(label_id, "Invalid label ID")
        serializer = LabelSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        repo = get_labels_repository()
        if not repo.exists(pk):
            raise ResourceNotFound("Label not found")

        name = serializer.validated_data.get("name")
        if name is not None and repo.name_exists(name, exclude_id=pk):
            raise Conflict("Label with this name already exists")

        label = repo.update(pk, serializer.validated_data)
        return ok(LabelSerializer(label).data)

    def delete(self, request, label_id):
        pk = require_id(label_id, "Invalid label ID")
        if not get_labels_repository().delete(pk):
            raise ResourceNotFound("Label not found")
        return deleted("Label")
