import logging
import time

logger = logging.getLogger("planner.requests")


def _client_ip(request) -> str:
    forwarded = request.META.get("HTTP_X_FORWARDED_FOR")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.META.get("HTTP_X_REAL_IP") or request.META.get("REMOTE_ADDR", "unknown")


class RequestLogMiddleware:
    """
    Пишет в лог каждый запрос: метод, путь, статус, длительность, IP и user agent.
    Уровень по статусу: >=500 error, >=400 warning, иначе info.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        started = time.perf_counter()
        response = self.get_response(request)
        duration_ms = (time.perf_counter() - started) * 1000

        if response.status_code >= 500:
            level = logging.ERROR
        elif response.status_code >= 400:
            level = logging.WARNING
        else:
            level = logging.INFO

        logger.log(
            level,
            "%s %s %s %.1fms ip=%s ua=%s",
            request.method,
            request.get_full_path(),
            response.status_code,
            duration_ms,
            _client_ip(request),
            request.META.get("HTTP_USER_AGENT", "-"),
        )
        return response
