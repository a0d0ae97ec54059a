from django.core.validators import MaxValueValidator, MinValueValidator, RegexValidator
from django.db import models

from .ids import new_id

# Цвет в формате #RRGGBB
hex_color = RegexValidator(r"^#[0-9A-Fa-f]{6}$", "Invalid hex color")

MAX_MINUTES = 525600  # год в минутах
MAX_ATTACHMENT_SIZE = 104857600  # 100 МБ


# Модель списка задач (Inbox, Работа, Дом ...)
class TaskList(models.Model):
    """
    Список задач.
    Ровно один список помечен как is_default — это Inbox, его нельзя удалить.
    """
    id = models.UUIDField(primary_key=True, default=new_id, editable=False)
    name = models.CharField(max_length=100)
    color = models.CharField(max_length=7, default="#6366f1", validators=[hex_color])
    emoji = models.CharField(max_length=10, null=True, blank=True)
    is_default = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "lists"

    def __str__(self) -> str:
        return self.name


# Модель метки (тега) задачи
class Label(models.Model):
    id = models.UUIDField(primary_key=True, default=new_id, editable=False)
    name = models.CharField(max_length=50, unique=True)  # Уникальное имя метки
    color = models.CharField(max_length=7, default="#8b5cf6", validators=[hex_color])
    icon = models.CharField(max_length=50, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "labels"

    def __str__(self) -> str:
        return self.name


# Модель задачи
class Task(models.Model):
    """
    Модель задачи.
    Каждая задача лежит в одном списке и может иметь несколько меток.
    """
    # Приоритеты задач
    class Priority(models.TextChoices):
        HIGH = "high", "High"
        MEDIUM = "medium", "Medium"
        LOW = "low", "Low"
        NONE = "none", "None"

    id = models.UUIDField(primary_key=True, default=new_id, editable=False)
    list = models.ForeignKey(TaskList, on_delete=models.CASCADE, related_name="tasks")
    name = models.CharField(max_length=500)
    description = models.TextField(max_length=10000, null=True, blank=True)
    date = models.DateTimeField(null=True, blank=True)  # Дата, на которую запланирована задача
    deadline = models.DateTimeField(null=True, blank=True)  # Жёсткий срок
    estimate_minutes = models.PositiveIntegerField(
        null=True, blank=True, validators=[MinValueValidator(1), MaxValueValidator(MAX_MINUTES)]
    )
    actual_minutes = models.PositiveIntegerField(
        null=True, blank=True, validators=[MaxValueValidator(MAX_MINUTES)]
    )
    priority = models.CharField(max_length=10, choices=Priority.choices, default=Priority.NONE)
    recurring_rule = models.CharField(max_length=1000, null=True, blank=True)
    completed = models.BooleanField(default=False)
    completed_at = models.DateTimeField(null=True, blank=True)
    labels = models.ManyToManyField(Label, related_name="tasks", blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "tasks"
        indexes = [
            models.Index(fields=["list", "completed"], name="tasks_list_completed_idx"),
            models.Index(fields=["date", "completed"], name="tasks_date_completed_idx"),
            models.Index(fields=["deadline"], name="tasks_deadline_idx"),
        ]

    def __str__(self) -> str:
        return f"[{self.pk}] {self.name}"


class Subtask(models.Model):
    id = models.UUIDField(primary_key=True, default=new_id, editable=False)
    task = models.ForeignKey(Task, on_delete=models.CASCADE, related_name="subtasks")
    name = models.CharField(max_length=500)
    completed = models.BooleanField(default=False)
    order = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "subtasks"
        ordering = ["order"]


class Reminder(models.Model):
    """
    Напоминание по задаче.
    job_id — ID отложенной задачи Celery, которая доставит напоминание.
    """
    class Type(models.TextChoices):
        NOTIFICATION = "notification", "Notification"
        EMAIL = "email", "Email"

    id = models.UUIDField(primary_key=True, default=new_id, editable=False)
    task = models.ForeignKey(Task, on_delete=models.CASCADE, related_name="reminders")
    remind_at = models.DateTimeField()
    type = models.CharField(max_length=20, choices=Type.choices, default=Type.NOTIFICATION)
    sent = models.BooleanField(default=False)
    job_id = models.CharField(max_length=64, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "reminders"
        ordering = ["remind_at"]
        indexes = [
            models.Index(fields=["remind_at", "sent"], name="reminders_pending_idx"),  # для выборки "пора отправлять"
        ]


class Attachment(models.Model):
    id = models.UUIDField(primary_key=True, default=new_id, editable=False)
    task = models.ForeignKey(Task, on_delete=models.CASCADE, related_name="attachments")
    filename = models.CharField(max_length=255)
    file_path = models.CharField(max_length=1000)
    file_size = models.PositiveBigIntegerField(validators=[MaxValueValidator(MAX_ATTACHMENT_SIZE)])
    mime_type = models.CharField(max_length=100)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "attachments"
        ordering = ["-created_at"]


# Журнал изменений задачи: пишется репозиторием задач при каждом update
class TaskHistory(models.Model):
    id = models.UUIDField(primary_key=True, default=new_id, editable=False)
    task = models.ForeignKey(Task, on_delete=models.CASCADE, related_name="history")
    field_name = models.CharField(max_length=100)
    old_value = models.TextField(max_length=10000, null=True, blank=True)  # JSON-строка
    new_value = models.TextField(max_length=10000, null=True, blank=True)  # JSON-строка
    changed_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "task_history"
        ordering = ["-changed_at"]
        indexes = [
            models.Index(fields=["changed_at"], name="task_history_changed_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.task_id}.{self.field_name}"
