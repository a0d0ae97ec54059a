"""
Разбор query-параметров списка задач в фильтр и пагинацию.

GET /api/tasks?listId&dateFrom&dateTo&completed&priority&overdue&search&labelId&page&limit

Некорректные значения фильтров не дают 400 — они просто отбрасываются.
"""
import re
from dataclasses import dataclass
from datetime import datetime, time, timedelta

from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

from .ids import parse_id
from .models import Task

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 50
MAX_LIMIT = 100

_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")


@dataclass
class TaskFilters:
    list_id: object = None  # uuid.UUID
    date_from: datetime | None = None
    date_to: datetime | None = None
    completed: bool | None = None
    priority: str | None = None
    overdue: bool = False
    search: str | None = None
    label_id: object = None  # uuid.UUID


@dataclass(frozen=True)
class Pagination:
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def parse_int(raw, default: int) -> int:
    # Как parseInt: "10abc" -> 10, "abc" -> значение по умолчанию
    if raw is None:
        return default
    match = _LEADING_INT_RE.match(raw)
    return int(match.group(1)) if match else default


def _parse_bound(raw: str | None, *, end_of_day: bool) -> datetime | None:
    """
    Граница диапазона дат: ISO-дата или дата-время.
    Голая дата расширяется до начала/конца дня, чтобы граница была включительной.
    """
    if not raw:
        return None
    try:
        # Сначала голая дата: parse_datetime("2025-03-10") тоже вернёт полночь
        day = parse_date(raw)
        if day is not None:
            dt = datetime.combine(day, time.min)
            if end_of_day:
                dt += timedelta(days=1) - timedelta(microseconds=1)
        else:
            dt = parse_datetime(raw)
            if dt is None:
                return None
    except ValueError:
        # Формат верный, но значение нет (например, 2025-13-01)
        return None
    if timezone.is_naive(dt):
        dt = timezone.make_aware(dt)
    return dt


def build_task_filters(params) -> TaskFilters:
    """
    Собрать TaskFilters из query-параметров.
    :param params: request.query_params (QueryDict) или любой dict-подобный объект
    :return: TaskFilters
    """
    filters = TaskFilters()

    # listId / labelId берём только если это валидный UUID
    filters.list_id = parse_id(params.get("listId"))
    filters.label_id = parse_id(params.get("labelId"))

    filters.date_from = _parse_bound(params.get("dateFrom"), end_of_day=False)
    filters.date_to = _parse_bound(params.get("dateTo"), end_of_day=True)

    completed = params.get("completed")
    if completed is not None:
        filters.completed = completed == "true"

    priority = params.get("priority")
    if priority in Task.Priority.values:
        filters.priority = priority

    filters.overdue = params.get("overdue") == "true"

    search = params.get("search")
    if search:
        filters.search = search

    return filters


def build_pagination(params) -> Pagination:
    """page >= 1 (по умолчанию 1), limit в диапазоне [1, 100] (по умолчанию 50)."""
    page = max(1, parse_int(params.get("page"), DEFAULT_PAGE))
    limit = min(MAX_LIMIT, max(1, parse_int(params.get("limit"), DEFAULT_LIMIT)))
    return Pagination(page=page, limit=limit)
