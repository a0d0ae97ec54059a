import uuid
from datetime import datetime, timezone as dt_timezone

from django.test import SimpleTestCase, override_settings

from planner.filters import build_pagination, build_task_filters
from planner.ids import is_valid_id, parse_id


class IdTests(SimpleTestCase):
    def test_parse(self):
        raw = "2B1C7A9E-3F3E-4C5A-9D7E-0A1B2C3D4E5F"
        self.assertTrue(is_valid_id(raw))
        self.assertEqual(parse_id(raw), uuid.UUID(raw))

    def test_rejects_non_canonical(self):
        for raw in ("", "123", "{2b1c7a9e-3f3e-4c5a-9d7e-0a1b2c3d4e5f}", "2b1c7a9e3f3e4c5a9d7e0a1b2c3d4e5f", None, 42):
            self.assertIsNone(parse_id(raw), raw)


@override_settings(TIME_ZONE="UTC")
class TaskFilterTests(SimpleTestCase):
    def test_empty(self):
        f = build_task_filters({})
        self.assertIsNone(f.list_id)
        self.assertIsNone(f.completed)
        self.assertIsNone(f.priority)
        self.assertFalse(f.overdue)
        self.assertIsNone(f.search)

    def test_ids_kept_only_when_valid(self):
        list_id = "2b1c7a9e-3f3e-4c5a-9d7e-0a1b2c3d4e5f"
        f = build_task_filters({"listId": list_id, "labelId": "label-1"})
        self.assertEqual(f.list_id, uuid.UUID(list_id))
        self.assertIsNone(f.label_id)

    def test_completed_and_overdue_flags(self):
        self.assertTrue(build_task_filters({"completed": "true"}).completed)
        self.assertFalse(build_task_filters({"completed": "TRUE"}).completed)
        self.assertTrue(build_task_filters({"overdue": "true"}).overdue)
        self.assertFalse(build_task_filters({"overdue": "false"}).overdue)

    def test_priority(self):
        self.assertEqual(build_task_filters({"priority": "medium"}).priority, "medium")
        self.assertIsNone(build_task_filters({"priority": "MEDIUM"}).priority)

    def test_date_bounds(self):
        f = build_task_filters({"dateFrom": "2025-03-10", "dateTo": "2025-03-10"})
        self.assertEqual(f.date_from, datetime(2025, 3, 10, tzinfo=dt_timezone.utc))
        self.assertEqual(f.date_to, datetime(2025, 3, 10, 23, 59, 59, 999999, tzinfo=dt_timezone.utc))

        f = build_task_filters({"dateFrom": "2025-03-10T12:30:00Z"})
        self.assertEqual(f.date_from, datetime(2025, 3, 10, 12, 30, tzinfo=dt_timezone.utc))

    def test_bad_dates_dropped(self):
        f = build_task_filters({"dateFrom": "2025-13-40", "dateTo": "tomorrow"})
        self.assertIsNone(f.date_from)
        self.assertIsNone(f.date_to)


class PaginationTests(SimpleTestCase):
    def test_defaults(self):
        p = build_pagination({})
        self.assertEqual((p.page, p.limit, p.offset), (1, 50, 0))

    def test_clamping(self):
        self.assertEqual(build_pagination({"limit": "500"}).limit, 100)
        self.assertEqual(build_pagination({"limit": "0"}).limit, 1)
        self.assertEqual(build_pagination({"limit": "-5"}).limit, 1)
        self.assertEqual(build_pagination({"page": "0"}).page, 1)
        self.assertEqual(build_pagination({"page": "-3"}).page, 1)

    def test_parse_int_semantics(self):
        p = build_pagination({"page": "3abc", "limit": "x"})
        self.assertEqual((p.page, p.limit), (3, 50))
        self.assertEqual(build_pagination({"page": "3", "limit": "20"}).offset, 40)
