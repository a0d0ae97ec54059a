"""Успешные ответы API в едином конверте {"success": true, ...}."""
from rest_framework import status
from rest_framework.response import Response


def ok(data=None, status_code: int = status.HTTP_200_OK, **extra) -> Response:
    body = {"success": True}
    if data is not None:
        body["data"] = data
    body.update(extra)
    return Response(body, status=status_code)


def created(data) -> Response:
    return ok(data, status_code=status.HTTP_201_CREATED)


def deleted(entity: str) -> Response:
    return ok(message=f"{entity} deleted successfully")
