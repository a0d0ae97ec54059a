"""
Ошибки API и единый обработчик исключений DRF.

Любая ошибка, дошедшая до DRF, отдаётся клиенту в конверте
{"success": false, "error": "...", ...} с подходящим HTTP-статусом.
"""
import math

from rest_framework import status
from rest_framework.exceptions import (
    APIException,
    AuthenticationFailed,
    NotAuthenticated,
    ParseError,
    Throttled,
    ValidationError,
)
from rest_framework.views import exception_handler


class InvalidIdentifier(APIException):
    """Идентификатор в пути не является UUID."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid ID"
    default_code = "invalid_id"


class ResourceNotFound(APIException):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"
    default_code = "not_found"


class BusinessRuleViolation(APIException):
    """Запрос корректен по форме, но нарушает правило предметной области (например, удаление Inbox)."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Operation not allowed"
    default_code = "business_rule"


class Conflict(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Resource already exists"
    default_code = "conflict"


class InternalError(APIException):
    # Сообщение всегда общее; причина пишется только в лог
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Internal server error"
    default_code = "internal_error"


def validation_issues(detail, path=()) -> list[dict]:
    """
    Разворачивает serializer.errors (вложенные dict/list из ErrorDetail)
    в плоский список проблем: [{"path": [...], "message": "...", "code": "..."}].
    """
    issues = []
    if isinstance(detail, dict):
        for key, value in detail.items():
            sub_path = path if key == "non_field_errors" else (*path, key)
            issues.extend(validation_issues(value, sub_path))
    elif isinstance(detail, list):
        for item in detail:
            issues.extend(validation_issues(item, path))
    else:
        issues.append({
            "path": list(path),
            "message": str(detail),
            "code": getattr(detail, "code", "invalid"),
        })
    return issues


def _message(detail) -> str:
    # SimpleJWT кладёт в detail словарь {"detail": ..., "code": ..., "messages": [...]}
    if isinstance(detail, dict):
        return str(detail.get("detail", "Unauthorized"))
    if isinstance(detail, list) and detail:
        return str(detail[0])
    return str(detail)


def envelope_exception_handler(exc, context):
    """
    EXCEPTION_HANDLER для REST_FRAMEWORK.
    Стандартный обработчик DRF выставляет статус и заголовки (Retry-After,
    WWW-Authenticate), а мы подменяем тело ответа на конверт.
    """
    response = exception_handler(exc, context)
    if response is None:
        return None

    body = {"success": False}
    if isinstance(exc, ValidationError):
        body["error"] = "Validation error"
        body["details"] = validation_issues(exc.detail)
    elif isinstance(exc, ParseError):
        body["error"] = "Invalid JSON body"
    elif isinstance(exc, (NotAuthenticated, AuthenticationFailed)):
        body["error"] = _message(exc.detail) if isinstance(exc, AuthenticationFailed) else "Authentication required"
        body["code"] = "UNAUTHORIZED"
    elif isinstance(exc, Throttled):
        body["error"] = "Too many requests, please try again later"
        body["code"] = "RATE_LIMIT_EXCEEDED"
        body["retryAfter"] = math.ceil(exc.wait) if exc.wait is not None else None
    else:
        body["error"] = _message(getattr(exc, "detail", "Request failed"))

    response.data = body
    return response
