from rest_framework import serializers

from .models import Attachment, Label, Reminder, Subtask, Task, TaskHistory, TaskList


class TaskListSerializer(serializers.ModelSerializer):
    """
    Сериализатор списка задач.
    is_default только для чтения: Inbox создаётся миграцией и не переназначается через API.
    """
    class Meta:
        model = TaskList
        fields = ("id", "name", "color", "emoji", "is_default", "created_at", "updated_at")
        read_only_fields = ("is_default",)


class TaskListWithCountsSerializer(TaskListSerializer):
    # Счётчики приходят из annotate() в репозитории
    task_count = serializers.IntegerField(read_only=True)
    completed_count = serializers.IntegerField(read_only=True)

    class Meta(TaskListSerializer.Meta):
        fields = TaskListSerializer.Meta.fields + ("task_count", "completed_count")


class LabelSerializer(serializers.ModelSerializer):
    class Meta:
        model = Label
        fields = ("id", "name", "color", "icon", "created_at")
        # Уникальность имени проверяет вью и отвечает 409, а не 400
        extra_kwargs = {"name": {"validators": []}}


class TaskSerializer(serializers.ModelSerializer):
    """
    Сериализатор задачи.
    Метки передаются двумя полями:
    1) метки отдаём вложенными объектами (labels) — только для чтения;
    2) принимаем метки списком ID (label_ids) — только для записи.
    Список задаётся через list_id (ID существующего списка).
    """
    list_id = serializers.PrimaryKeyRelatedField(
        source="list",
        queryset=TaskList.objects.all(),
        pk_field=serializers.UUIDField(),
    )
    labels = LabelSerializer(many=True, read_only=True)

    # - write_only=True: поле не попадает в ответы
    # - required=False: если не пришло, метки при update не трогаем
    label_ids = serializers.ListField(
        child=serializers.UUIDField(),
        write_only=True,
        required=False,
    )

    class Meta:
        model = Task
        fields = (
            "id",
            "list_id",
            "name",
            "description",
            "date",
            "deadline",
            "estimate_minutes",
            "actual_minutes",
            "priority",
            "recurring_rule",
            "completed",
            "completed_at",
            "labels",     # read-only, вложенные объекты
            "label_ids",  # write-only, список ID для входа
            "created_at",
            "updated_at",
        )
        # При создании задача всегда не выполнена
        read_only_fields = ("completed", "completed_at", "created_at", "updated_at")


class TaskUpdateSerializer(TaskSerializer):
    """При обновлении разрешаем менять и флаг completed (completed_at выставит репозиторий)."""
    class Meta(TaskSerializer.Meta):
        read_only_fields = ("completed_at", "created_at", "updated_at")


class SubtaskSerializer(serializers.ModelSerializer):
    task_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = Subtask
        fields = ("id", "task_id", "name", "completed", "order", "created_at")


class ReminderSerializer(serializers.ModelSerializer):
    task_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = Reminder
        fields = ("id", "task_id", "remind_at", "type", "sent", "created_at")
        read_only_fields = ("sent",)


class AttachmentSerializer(serializers.ModelSerializer):
    task_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = Attachment
        fields = ("id", "task_id", "filename", "file_path", "file_size", "mime_type", "created_at")


class TaskHistorySerializer(serializers.ModelSerializer):
    task_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = TaskHistory
        fields = ("id", "task_id", "field_name", "old_value", "new_value", "changed_at")
        read_only_fields = fields


class TaskDetailSerializer(TaskSerializer):
    """Задача со всеми связями (?includeRelations=true)."""
    list = TaskListSerializer(read_only=True)
    subtasks = SubtaskSerializer(many=True, read_only=True)
    reminders = ReminderSerializer(many=True, read_only=True)
    attachments = AttachmentSerializer(many=True, read_only=True)

    class Meta(TaskSerializer.Meta):
        fields = TaskSerializer.Meta.fields + ("list", "subtasks", "reminders", "attachments")
