import json
from datetime import datetime, timedelta
from unittest.mock import patch

from django.utils import timezone

from planner.models import Label, Task, TaskHistory, TaskList

from .base import PlannerAPITestCase


class TaskCrudTests(PlannerAPITestCase):
    def test_create_defaults(self):
        r = self.client.post("/api/tasks", {"name": "Write report", "list_id": str(self.inbox.id)}, format="json")
        self.assertEqual(r.status_code, 201)
        body = r.json()
        self.assertTrue(body["success"])
        data = body["data"]
        self.assertEqual(data["name"], "Write report")
        self.assertEqual(data["list_id"], str(self.inbox.id))
        self.assertEqual(data["priority"], "none")
        self.assertFalse(data["completed"])
        self.assertIsNone(data["completed_at"])
        self.assertEqual(data["labels"], [])
        self.assertNotIn("label_ids", data)

    def test_create_invalid_priority(self):
        r = self.client.post(
            "/api/tasks",
            {"name": "A", "list_id": str(self.inbox.id), "priority": "urgent"},
            format="json",
        )
        body = self.assertError(r, 400, "Validation error")
        self.assertIn(["priority"], [issue["path"] for issue in body["details"]])

    def test_create_missing_name_and_unknown_list(self):
        r = self.client.post("/api/tasks", {"list_id": "2b1c7a9e-3f3e-4c5a-9d7e-0a1b2c3d4e5f"}, format="json")
        body = self.assertError(r, 400, "Validation error")
        paths = [issue["path"] for issue in body["details"]]
        self.assertIn(["name"], paths)
        self.assertIn(["list_id"], paths)

    def test_create_estimate_out_of_range(self):
        r = self.client.post(
            "/api/tasks",
            {"name": "A", "list_id": str(self.inbox.id), "estimate_minutes": 0},
            format="json",
        )
        body = self.assertError(r, 400, "Validation error")
        self.assertEqual(body["details"][0]["path"], ["estimate_minutes"])

    def test_malformed_json_body(self):
        r = self.client.post("/api/tasks", data="{not json", content_type="application/json")
        self.assertError(r, 400, "Invalid JSON body")

    def test_get_update_delete(self):
        task = self.create_task(name="Old")

        r = self.client.get(f"/api/tasks/{task['id']}")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["data"]["name"], "Old")

        # trailing slash is optional
        r = self.client.put(f"/api/tasks/{task['id']}/", {"name": "New", "priority": "high"}, format="json")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["data"]["name"], "New")
        self.assertEqual(r.json()["data"]["priority"], "high")

        r = self.client.delete(f"/api/tasks/{task['id']}")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json(), {"success": True, "message": "Task deleted successfully"})

        self.assertError(self.client.get(f"/api/tasks/{task['id']}"), 404, "Task not found")
        self.assertError(self.client.delete(f"/api/tasks/{task['id']}"), 404, "Task not found")

    def test_update_missing_task(self):
        r = self.client.put("/api/tasks/2b1c7a9e-3f3e-4c5a-9d7e-0a1b2c3d4e5f", {"name": "X"}, format="json")
        self.assertError(r, 404, "Task not found")

    def test_move_to_other_list(self):
        work = TaskList.objects.create(name="Work")
        task = self.create_task()
        r = self.client.put(f"/api/tasks/{task['id']}", {"list_id": str(work.id)}, format="json")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["data"]["list_id"], str(work.id))

    def test_include_relations(self):
        task = self.create_task()
        self.client.post(f"/api/tasks/{task['id']}/subtasks", {"name": "step"}, format="json")

        plain = self.client.get(f"/api/tasks/{task['id']}").json()["data"]
        self.assertNotIn("subtasks", plain)

        full = self.client.get(f"/api/tasks/{task['id']}?includeRelations=true").json()["data"]
        self.assertEqual(full["list"]["id"], str(self.inbox.id))
        self.assertEqual([s["name"] for s in full["subtasks"]], ["step"])
        self.assertEqual(full["reminders"], [])
        self.assertEqual(full["attachments"], [])
        self.assertEqual(full["labels"], [])


class TaskIdentifierTests(PlannerAPITestCase):
    def test_malformed_id_never_reaches_repository(self):
        with patch("planner.views.get_tasks_repository") as factory:
            self.assertError(self.client.get("/api/tasks/not-a-uuid"), 400, "Invalid task ID")
            self.assertError(self.client.put("/api/tasks/123", {"name": "x"}, format="json"), 400, "Invalid task ID")
            self.assertError(self.client.delete("/api/tasks/abc"), 400, "Invalid task ID")
            self.assertError(self.client.get("/api/tasks/abc/history"), 400, "Invalid task ID")
        factory.assert_not_called()

    def test_unexpected_error_is_logged_not_leaked(self):
        with patch("planner.views.get_tasks_repository") as factory:
            factory.return_value.find_with_filters_paginated.side_effect = RuntimeError("disk I/O error")
            with self.assertLogs("planner.views", level="ERROR") as logs:
                r = self.client.get("/api/tasks")

        body = self.assertError(r, 500, "Failed to fetch tasks")
        self.assertNotIn("disk I/O error", json.dumps(body))
        self.assertEqual(str(logs.records[0].exc_info[1]), "disk I/O error")


class TaskLabelTests(PlannerAPITestCase):
    def setUp(self):
        super().setUp()
        self.urgent = Label.objects.create(name="urgent")
        self.home = Label.objects.create(name="home")

    def test_labels_on_create_and_replace_on_update(self):
        task = self.create_task(label_ids=[str(self.urgent.id)])
        self.assertEqual([label["name"] for label in task["labels"]], ["urgent"])

        # absent label_ids leaves labels untouched
        r = self.client.put(f"/api/tasks/{task['id']}", {"name": "Renamed"}, format="json")
        self.assertEqual([label["name"] for label in r.json()["data"]["labels"]], ["urgent"])

        r = self.client.put(f"/api/tasks/{task['id']}", {"label_ids": [str(self.home.id)]}, format="json")
        self.assertEqual([label["name"] for label in r.json()["data"]["labels"]], ["home"])

        r = self.client.put(f"/api/tasks/{task['id']}", {"label_ids": []}, format="json")
        self.assertEqual(r.json()["data"]["labels"], [])

    def test_unknown_label_ids_are_ignored(self):
        task = self.create_task(label_ids=[str(self.home.id), "2b1c7a9e-3f3e-4c5a-9d7e-0a1b2c3d4e5f"])
        self.assertEqual([label["name"] for label in task["labels"]], ["home"])


class TaskHistoryTests(PlannerAPITestCase):
    def test_update_writes_history(self):
        task = self.create_task(name="Old")
        self.client.put(f"/api/tasks/{task['id']}", {"name": "New", "priority": "low"}, format="json")

        entries = {h.field_name: h for h in TaskHistory.objects.filter(task_id=task["id"])}
        self.assertEqual(set(entries), {"name", "priority"})
        self.assertEqual(entries["name"].old_value, '"Old"')
        self.assertEqual(entries["name"].new_value, '"New"')
        self.assertEqual(entries["priority"].old_value, '"none"')

    def test_unchanged_fields_not_recorded(self):
        task = self.create_task(name="Same")
        self.client.put(f"/api/tasks/{task['id']}", {"name": "Same"}, format="json")
        self.assertFalse(TaskHistory.objects.filter(task_id=task["id"]).exists())

    def test_completion_toggles_completed_at(self):
        task = self.create_task()

        r = self.client.put(f"/api/tasks/{task['id']}", {"completed": True}, format="json")
        data = r.json()["data"]
        self.assertTrue(data["completed"])
        self.assertIsNotNone(data["completed_at"])

        fields = set(TaskHistory.objects.filter(task_id=task["id"]).values_list("field_name", flat=True))
        self.assertEqual(fields, {"completed", "completed_at"})

        r = self.client.put(f"/api/tasks/{task['id']}", {"completed": False}, format="json")
        self.assertFalse(r.json()["data"]["completed"])
        self.assertIsNone(r.json()["data"]["completed_at"])

    def test_move_records_list_id(self):
        work = TaskList.objects.create(name="Work")
        task = self.create_task()
        self.client.put(f"/api/tasks/{task['id']}", {"list_id": str(work.id)}, format="json")

        entry = TaskHistory.objects.get(task_id=task["id"])
        self.assertEqual(entry.field_name, "list_id")
        self.assertEqual(entry.old_value, f'"{self.inbox.id}"')
        self.assertEqual(entry.new_value, f'"{work.id}"')

    def test_history_endpoint(self):
        task = self.create_task(name="v0")
        for i in range(1, 4):
            self.client.put(f"/api/tasks/{task['id']}", {"name": f"v{i}"}, format="json")
        self.client.put(f"/api/tasks/{task['id']}", {"priority": "high"}, format="json")

        r = self.client.get(f"/api/tasks/{task['id']}/history")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["count"], 4)

        r = self.client.get(f"/api/tasks/{task['id']}/history?field=name&limit=2")
        body = r.json()
        self.assertEqual(body["count"], 2)
        self.assertTrue(all(h["field_name"] == "name" for h in body["data"]))

    def test_history_missing_task(self):
        r = self.client.get("/api/tasks/2b1c7a9e-3f3e-4c5a-9d7e-0a1b2c3d4e5f/history")
        self.assertError(r, 404, "Task not found")


class TaskListingTests(PlannerAPITestCase):
    def make(self, name, **fields):
        return Task.objects.create(list=self.inbox, name=name, **fields)

    def names(self, query=""):
        r = self.client.get(f"/api/tasks{query}")
        self.assertEqual(r.status_code, 200, r.content)
        return [t["name"] for t in r.json()["data"]]

    def test_completed_and_priority_are_combined(self):
        self.make("high open", priority="high")
        self.make("high done", priority="high", completed=True)
        self.make("low done", priority="low", completed=True)

        self.assertEqual(self.names("?completed=true&priority=high"), ["high done"])
        self.assertCountEqual(self.names("?completed=false"), ["high open"])
        # anything other than "true" means not completed
        self.assertCountEqual(self.names("?completed=yes"), ["high open"])
        # unknown priority is dropped
        self.assertEqual(len(self.names("?priority=urgent")), 3)

    def test_limit_and_page_are_clamped(self):
        self.make("only")
        r = self.client.get("/api/tasks?limit=500&page=0")
        pagination = r.json()["pagination"]
        self.assertEqual(pagination["limit"], 100)
        self.assertEqual(pagination["page"], 1)

        r = self.client.get("/api/tasks?limit=abc&page=xyz")
        pagination = r.json()["pagination"]
        self.assertEqual(pagination["limit"], 50)
        self.assertEqual(pagination["page"], 1)

    def test_page_past_the_end_is_empty(self):
        self.make("only")
        r = self.client.get("/api/tasks?page=99999999999999999999999")
        self.assertEqual(r.status_code, 200, r.content)
        body = r.json()
        self.assertEqual(body["data"], [])
        self.assertFalse(body["pagination"]["hasNext"])
        self.assertTrue(body["pagination"]["hasPrev"])
        self.assertEqual(body["pagination"]["total"], 1)

    def test_pagination_meta(self):
        for i in range(3):
            self.make(f"t{i}")

        first = self.client.get("/api/tasks?limit=2").json()
        self.assertEqual(len(first["data"]), 2)
        self.assertEqual(
            first["pagination"],
            {"page": 1, "limit": 2, "total": 3, "totalPages": 2, "hasNext": True, "hasPrev": False},
        )

        second = self.client.get("/api/tasks?limit=2&page=2").json()
        self.assertEqual(len(second["data"]), 1)
        self.assertFalse(second["pagination"]["hasNext"])
        self.assertTrue(second["pagination"]["hasPrev"])

    def test_ordering_date_ascending_nulls_last(self):
        now = timezone.now()
        self.make("no date")
        self.make("later", date=now + timedelta(days=2))
        self.make("sooner", date=now + timedelta(days=1))
        self.assertEqual(self.names(), ["sooner", "later", "no date"])

    def test_date_range_with_bare_dates_is_inclusive(self):
        tz = timezone.get_current_timezone()
        self.make("morning", date=timezone.make_aware(datetime(2025, 3, 10, 8, 0), tz))
        self.make("night", date=timezone.make_aware(datetime(2025, 3, 10, 23, 59), tz))
        self.make("next day", date=timezone.make_aware(datetime(2025, 3, 11, 0, 0), tz))

        self.assertEqual(self.names("?dateFrom=2025-03-10&dateTo=2025-03-10"), ["morning", "night"])
        self.assertEqual(self.names("?dateFrom=2025-03-11"), ["next day"])
        # unparseable bounds are ignored
        self.assertEqual(len(self.names("?dateFrom=someday")), 3)

    def test_overdue(self):
        now = timezone.now()
        self.make("late", deadline=now - timedelta(hours=1))
        self.make("late but done", deadline=now - timedelta(hours=1), completed=True)
        self.make("on time", deadline=now + timedelta(hours=1))
        self.make("no deadline")

        self.assertEqual(self.names("?overdue=true"), ["late"])
        self.assertEqual(len(self.names("?overdue=1")), 4)

    def test_search_is_case_insensitive_and_literal(self):
        self.make("Buy MILK")
        self.make("100% done")
        self.make("1000 done")
        self.make("call", description="about the milk delivery")

        self.assertCountEqual(self.names("?search=milk"), ["Buy MILK", "call"])
        self.assertEqual(self.names("?search=0%25"), ["100% done"])
        self.assertEqual(self.names("?search=_"), [])

    def test_list_and_label_filters(self):
        work = TaskList.objects.create(name="Work")
        label = Label.objects.create(name="focus")
        Task.objects.create(list=work, name="in work")
        tagged = self.make("tagged")
        tagged.labels.add(label)

        self.assertEqual(self.names(f"?listId={work.id}"), ["in work"])
        self.assertEqual(self.names(f"?labelId={label.id}"), ["tagged"])
        # malformed ids are dropped, not rejected
        self.assertEqual(len(self.names("?listId=nope&labelId=42")), 2)
