from rest_framework.throttling import SimpleRateThrottle


class PlannerRateThrottle(SimpleRateThrottle):
    """
    Лимит запросов по IP клиента.
    Вью объявляет throttle_scopes = {"GET": "relaxed", "POST": "standard"};
    метод, которого нет в словаре, не ограничивается.
    Частоты берутся из REST_FRAMEWORK["DEFAULT_THROTTLE_RATES"].
    """

    def __init__(self):
        # scope зависит от метода запроса, поэтому rate определяем в allow_request
        pass

    def allow_request(self, request, view):
        self.scope = getattr(view, "throttle_scopes", {}).get(request.method)
        if not self.scope:
            return True

        self.rate = self.get_rate()
        self.num_requests, self.duration = self.parse_rate(self.rate)
        return super().allow_request(request, view)

    def get_cache_key(self, request, view):
        return self.cache_format % {
            "scope": self.scope,
            "ident": self.get_ident(request),
        }
