from django.db import migrations


def create_inbox(apps, schema_editor):
    # Список по умолчанию (Inbox) создаётся один раз; его нельзя удалить через API
    TaskList = apps.get_model("planner", "TaskList")
    if not TaskList.objects.filter(is_default=True).exists():
        TaskList.objects.create(name="Inbox", color="#6366f1", emoji="📥", is_default=True)


def noop(apps, schema_editor):
    pass


class Migration(migrations.Migration):
    dependencies = [
        ("planner", "0001_initial"),
    ]

    operations = [
        migrations.RunPython(create_inbox, reverse_code=noop),
    ]
