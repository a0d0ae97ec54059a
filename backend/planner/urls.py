from django.http import JsonResponse
from django.urls import path, re_path
from rest_framework_simplejwt.views import (
    TokenObtainPairView,
    TokenRefreshView,
)

from .views import (
    AttachmentCollectionView,
    AttachmentDetailView,
    LabelCollectionView,
    LabelDetailView,
    ListCollectionView,
    ListDetailView,
    ReminderCollectionView,
    ReminderDetailView,
    SubtaskCollectionView,
    SubtaskDetailView,
    TaskCollectionView,
    TaskDetailView,
    TaskHistoryView,
)


# Health-check ручка.
# Возвращает JSON {"ok": True, "service": "backend"}.
def healthz(_):
    return JsonResponse({"ok": True, "service": "backend"})


# ID в пути ловим как любой сегмент ([^/]+), а не как <uuid:...>:
# кривой ID должен дойти до вью и получить 400, а не 404 от роутера.
# Завершающий слэш необязателен: /api/tasks и /api/tasks/ — один маршрут.
ID = r"[^/]+"

urlpatterns = [
    # Health-check endpoint
    path("healthz", healthz),

    # JWT-эндпоинты: пара токенов (access + refresh) и обновление access
    path("api/token/", TokenObtainPairView.as_view(), name="token_obtain_pair"),
    path("api/token/refresh/", TokenRefreshView.as_view(), name="token_refresh"),

    # Задачи
    re_path(r"^api/tasks/?$", TaskCollectionView.as_view(), name="task-list"),
    re_path(rf"^api/tasks/(?P<task_id>{ID})/?$", TaskDetailView.as_view(), name="task-detail"),
    re_path(rf"^api/tasks/(?P<task_id>{ID})/history/?$", TaskHistoryView.as_view(), name="task-history"),

    # Подзадачи
    re_path(rf"^api/tasks/(?P<task_id>{ID})/subtasks/?$", SubtaskCollectionView.as_view(), name="subtask-list"),
    re_path(
        rf"^api/tasks/(?P<task_id>{ID})/subtasks/(?P<child_id>{ID})/?$",
        SubtaskDetailView.as_view(),
        name="subtask-detail",
    ),

    # Напоминания
    re_path(rf"^api/tasks/(?P<task_id>{ID})/reminders/?$", ReminderCollectionView.as_view(), name="reminder-list"),
    re_path(
        rf"^api/tasks/(?P<task_id>{ID})/reminders/(?P<child_id>{ID})/?$",
        ReminderDetailView.as_view(),
        name="reminder-detail",
    ),

    # Вложения
    re_path(
        rf"^api/tasks/(?P<task_id>{ID})/attachments/?$",
        AttachmentCollectionView.as_view(),
        name="attachment-list",
    ),
    re_path(
        rf"^api/tasks/(?P<task_id>{ID})/attachments/(?P<child_id>{ID})/?$",
        AttachmentDetailView.as_view(),
        name="attachment-detail",
    ),

    # Списки
    re_path(r"^api/lists/?$", ListCollectionView.as_view(), name="list-list"),
    re_path(rf"^api/lists/(?P<list_id>{ID})/?$", ListDetailView.as_view(), name="list-detail"),

    # Метки
    re_path(r"^api/labels/?$", LabelCollectionView.as_view(), name="label-list"),
    re_path(rf"^api/labels/(?P<label_id>{ID})/?$", LabelDetailView.as_view(), name="label-detail"),
]
