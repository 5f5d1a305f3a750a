from __future__ import annotations

import logging
from time import time

from django.conf import settings
from django.core.cache import cache

from .errors import RateLimited

log = logging.getLogger(__name__)

SIGNUP_WINDOW_SECONDS = 3600


def count_hit(namespace: str, ident: str, window_seconds: int) -> tuple[int, int]:
    """Count one hit in the current fixed window.

    Returns ``(hits_so_far, seconds_until_the_window_resets)``.
    """
    now = int(time())
    window = now // window_seconds
    key = f"rl:{namespace}:{ident}:{window}"
    cache.add(key, 0, timeout=window_seconds)
    try:
        hits = cache.incr(key)
    except ValueError:
        # Key expired between add and incr
        cache.set(key, 1, timeout=window_seconds)
        hits = 1
    return hits, (window + 1) * window_seconds - now


def limit_signups(ip: str) -> None:
    """Raise RateLimited once ``ip`` exceeds SIGNUP_RATE_LIMIT signups per hour."""
    hits, reset_in = count_hit("signup", ip, SIGNUP_WINDOW_SECONDS)
    if hits > settings.SIGNUP_RATE_LIMIT:
        log.warning("[accounts] Signup rate limit hit ip=%s hits=%s", ip, hits)
        raise RateLimited(retry_after=reset_in)
