from django.contrib import admin

from .models import Label, Reminder, Subtask, Task, TaskList


# Регистрируем модель TaskList в админке
@admin.register(TaskList)
class TaskListAdmin(admin.ModelAdmin):
    """Настройки отображения и управления списками в админке."""

    list_display = ("name", "emoji", "color", "is_default", "created_at")

    search_fields = ("name",)

    # Inbox первым, дальше по имени
    ordering = ("-is_default", "name")


@admin.register(Label)
class LabelAdmin(admin.ModelAdmin):
    list_display = ("name", "color", "icon", "created_at")
    search_fields = ("name",)
    ordering = ("name",)


class SubtaskInline(admin.TabularInline):
    model = Subtask
    extra = 0


# Регистрируем модель Task в админке
@admin.register(Task)
class TaskAdmin(admin.ModelAdmin):
    """Настройки отображения и управления задачами в админке."""

    # Поля, которые будут видны в списке задач
    list_display = ("name", "list", "priority", "date", "deadline", "completed", "created_at")

    # Фильтры справа: по статусу, приоритету, списку и дедлайну
    list_filter = ("completed", "priority", "list", "deadline")

    # Поля, по которым работает поиск
    search_fields = ("name", "description")

    # Сортировка по умолчанию — новые задачи сверху
    ordering = ("-created_at",)

    # Для связей ManyToMany (labels) — поле с автодополнением
    autocomplete_fields = ("labels",)

    inlines = (SubtaskInline,)


@admin.register(Reminder)
class ReminderAdmin(admin.ModelAdmin):
    list_display = ("task", "remind_at", "type", "sent", "job_id")
    list_filter = ("sent", "type")
    ordering = ("remind_at",)
    # job_id проставляет планировщик, руками не правим
    readonly_fields = ("job_id",)
