import django.core.validators
import django.db.models.deletion
from django.db import migrations, models

import planner.ids
import planner.models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="TaskList",
            fields=[
                ("id", models.UUIDField(default=planner.ids.new_id, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=100)),
                ("color", models.CharField(default="#6366f1", max_length=7, validators=[planner.models.hex_color])),
                ("emoji", models.CharField(blank=True, max_length=10, null=True)),
                ("is_default", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={"db_table": "lists"},
        ),
        migrations.CreateModel(
            name="Label",
            fields=[
                ("id", models.UUIDField(default=planner.ids.new_id, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=50, unique=True)),
                ("color", models.CharField(default="#8b5cf6", max_length=7, validators=[planner.models.hex_color])),
                ("icon", models.CharField(blank=True, max_length=50, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={"db_table": "labels"},
        ),
        migrations.CreateModel(
            name="Task",
            fields=[
                ("id", models.UUIDField(default=planner.ids.new_id, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=500)),
                ("description", models.TextField(blank=True, max_length=10000, null=True)),
                ("date", models.DateTimeField(blank=True, null=True)),
                ("deadline", models.DateTimeField(blank=True, null=True)),
                (
                    "estimate_minutes",
                    models.PositiveIntegerField(
                        blank=True,
                        null=True,
                        validators=[
                            django.core.validators.MinValueValidator(1),
                            django.core.validators.MaxValueValidator(525600),
                        ],
                    ),
                ),
                (
                    "actual_minutes",
                    models.PositiveIntegerField(
                        blank=True,
                        null=True,
                        validators=[django.core.validators.MaxValueValidator(525600)],
                    ),
                ),
                (
                    "priority",
                    models.CharField(
                        choices=[("high", "High"), ("medium", "Medium"), ("low", "Low"), ("none", "None")],
                        default="none",
                        max_length=10,
                    ),
                ),
                ("recurring_rule", models.CharField(blank=True, max_length=1000, null=True)),
                ("completed", models.BooleanField(default=False)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "list",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="tasks",
                        to="planner.tasklist",
                    ),
                ),
                ("labels", models.ManyToManyField(blank=True, related_name="tasks", to="planner.label")),
            ],
            options={"db_table": "tasks"},
        ),
        migrations.CreateModel(
            name="Subtask",
            fields=[
                ("id", models.UUIDField(default=planner.ids.new_id, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=500)),
                ("completed", models.BooleanField(default=False)),
                ("order", models.PositiveIntegerField(default=0)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "task",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="subtasks",
                        to="planner.task",
                    ),
                ),
            ],
            options={"db_table": "subtasks", "ordering": ["order"]},
        ),
        migrations.CreateModel(
            name="Reminder",
            fields=[
                ("id", models.UUIDField(default=planner.ids.new_id, editable=False, primary_key=True, serialize=False)),
                ("remind_at", models.DateTimeField()),
                (
                    "type",
                    models.CharField(
                        choices=[("notification", "Notification"), ("email", "Email")],
                        default="notification",
                        max_length=20,
                    ),
                ),
                ("sent", models.BooleanField(default=False)),
                ("job_id", models.CharField(blank=True, default="", max_length=64)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "task",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="reminders",
                        to="planner.task",
                    ),
                ),
            ],
            options={"db_table": "reminders", "ordering": ["remind_at"]},
        ),
        migrations.CreateModel(
            name="Attachment",
            fields=[
                ("id", models.UUIDField(default=planner.ids.new_id, editable=False, primary_key=True, serialize=False)),
                ("filename", models.CharField(max_length=255)),
                ("file_path", models.CharField(max_length=1000)),
                (
                    "file_size",
                    models.PositiveBigIntegerField(validators=[django.core.validators.MaxValueValidator(104857600)]),
                ),
                ("mime_type", models.CharField(max_length=100)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "task",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="attachments",
                        to="planner.task",
                    ),
                ),
            ],
            options={"db_table": "attachments", "ordering": ["-created_at"]},
        ),
        migrations.CreateModel(
            name="TaskHistory",
            fields=[
                ("id", models.UUIDField(default=planner.ids.new_id, editable=False, primary_key=True, serialize=False)),
                ("field_name", models.CharField(max_length=100)),
                ("old_value", models.TextField(blank=True, max_length=10000, null=True)),
                ("new_value", models.TextField(blank=True, max_length=10000, null=True)),
                ("changed_at", models.DateTimeField(auto_now_add=True)),
                (
                    "task",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="history",
                        to="planner.task",
                    ),
                ),
            ],
            options={"db_table": "task_history", "ordering": ["-changed_at"]},
        ),
        migrations.AddIndex(
            model_name="task",
            index=models.Index(fields=["list", "completed"], name="tasks_list_completed_idx"),
        ),
        migrations.AddIndex(
            model_name="task",
            index=models.Index(fields=["date", "completed"], name="tasks_date_completed_idx"),
        ),
        migrations.AddIndex(
            model_name="task",
            index=models.Index(fields=["deadline"], name="tasks_deadline_idx"),
        ),
        migrations.AddIndex(
            model_name="reminder",
            index=models.Index(fields=["remind_at", "sent"], name="reminders_pending_idx"),
        ),
        migrations.AddIndex(
            model_name="taskhistory",
            index=models.Index(fields=["changed_at"], name="task_history_changed_idx"),
        ),
    ]
