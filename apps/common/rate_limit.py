"""Fixed-window request throttling on the shared cache."""
import time

from django.core.cache import cache

from .http import json_error


class Throttle:
    def __init__(self, namespace: str, limit: int, window: int):
        self.namespace = namespace
        self.limit = limit
        self.window = window

    def hit(self, ident: str) -> int:
        """Count one hit for ``ident``; returns seconds to wait, 0 when allowed."""
        now = int(time.time())
        window_start = now - now % self.window
        key = f"throttle:{self.namespace}:{ident}:{window_start}"
        if cache.get(key, 0) >= self.limit:
            return window_start + self.window - now
        if not cache.add(key, 1, timeout=self.window):
            cache.incr(key)
        return 0


def too_many_requests(message: str, retry_after: int):
    resp = json_error(message, status=429)
    resp["Retry-After"] = str(max(1, retry_after))
    return resp


def client_ip(request) -> str:
    forwarded = request.META.get("HTTP_X_FORWARDED_FOR")
    if forwarded:
        return forwarded.split(",", 1)[0].strip()
    return request.META.get("REMOTE_ADDR") or "unknown"
