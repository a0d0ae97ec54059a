"""
Аутентификация по API-ключу.

По умолчанию выключена (API_AUTH_ENABLED=False) — API открыт.
Если включена, пускаем:
- с заголовком X-API-Key: <API_KEY>;
- с Authorization: Bearer <API_KEY>;
- с Authorization: Bearer <JWT> (проверяет SimpleJWT, следующий класс в списке).
"""
import hmac

from django.conf import settings
from rest_framework.authentication import BaseAuthentication
from rest_framework.exceptions import AuthenticationFailed
from rest_framework.permissions import BasePermission


def auth_enabled() -> bool:
    return bool(getattr(settings, "API_AUTH_ENABLED", False))


class ServicePrincipal:
    """Клиент, прошедший по API-ключу. Пользователя Django за ним нет."""
    is_authenticated = True
    is_anonymous = False
    pk = None
    username = "api-key"

    def __str__(self) -> str:
        return self.username


def _same_key(given: str, expected: str) -> bool:
    if not expected:
        return False
    return hmac.compare_digest(given.encode(), expected.encode())


class ApiKeyAuthentication(BaseAuthentication):
    keyword = "Bearer"

    def authenticate(self, request):
        if not auth_enabled():
            return None

        expected = getattr(settings, "API_KEY", "")

        given = request.headers.get("X-API-Key")
        if given is not None:
            if _same_key(given, expected):
                return ServicePrincipal(), None
            raise AuthenticationFailed("Invalid API key")

        header = request.headers.get("Authorization", "")
        prefix = f"{self.keyword} "
        if header.startswith(prefix) and _same_key(header[len(prefix):].strip(), expected):
            return ServicePrincipal(), None

        # Не наш токен — пусть попробует JWTAuthentication
        return None

    def authenticate_header(self, request):
        # Нужен, чтобы DRF отвечал 401, а не 403
        return 'Api-Key realm="api"'


class HasApiAccess(BasePermission):
    """Пропускает всех при выключенной аутентификации, иначе — только аутентифицированных."""

    def has_permission(self, request, view):
        if not auth_enabled():
            return True
        return bool(request.user and request.user.is_authenticated)
