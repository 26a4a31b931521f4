"""
Sliding-window rate limiter for MisIntel.
Per-client request timestamps held in process memory.
"""

import logging
import math
import time
from collections import deque
from threading import Lock
from typing import Callable, Mapping, Optional

from models.schemas import RateLimitDecision

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT = "unknown"

CLIENT_IP_HEADERS = ("x-real-ip", "cf-connecting-ip", "fastly-client-ip")


def client_id_from_headers(headers: Mapping[str, str]) -> str:
    """
    Resolve the rate-limit key for a request.

    First hop of ``X-Forwarded-For``, then ``X-Real-IP``, ``CF-Connecting-IP``,
    ``Fastly-Client-IP``. Requests carrying none of them share the
    ``"unknown"`` bucket.
    """
    lowered = {k.lower(): v for k, v in headers.items()}
    forwarded = lowered.get("x-forwarded-for", "")
    first_hop = forwarded.split(",")[0].strip()
    if first_hop:
        return first_hop
    for header in CLIENT_IP_HEADERS:
        value = (lowered.get(header) or "").strip()
        if value:
            return value
    return UNKNOWN_CLIENT


class SlidingWindowRateLimiter:
    """
    Admit at most ``max_requests`` per client in any trailing ``window_seconds``.

    Rejected requests are not recorded, so a throttled client regains a slot
    as soon as its oldest admitted request leaves the window. Clients with
    no request left in the window are swept out at most once per window.
    """

    def __init__(
        self,
        window_seconds: float = 60.0,
        max_requests: int = 6,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.window_seconds = window_seconds
        self.max_requests = max_requests
        self._clock = clock or time.monotonic
        self._hits: dict[str, deque[float]] = {}
        self._lock = Lock()
        self._last_sweep = self._clock()

    def check(self, client_id: str) -> RateLimitDecision:
        now = self._clock()
        window_start = now - self.window_seconds

        with self._lock:
            if now - self._last_sweep >= self.window_seconds:
                self._sweep(window_start)
                self._last_sweep = now

            hits = self._hits.setdefault(client_id, deque())
            self._drop_expired(hits, window_start)

            if len(hits) >= self.max_requests:
                retry_after = math.ceil(hits[0] + self.window_seconds - now)
                logger.info("Rate limit exceeded for %s, retry in %ss", client_id, retry_after)
                return RateLimitDecision(limited=True, retry_after=max(retry_after, 1))

            hits.append(now)
            return RateLimitDecision(limited=False, retry_after=0)

    @staticmethod
    def _drop_expired(hits: deque, window_start: float):
        while hits and hits[0] <= window_start:
            hits.popleft()

    def _sweep(self, window_start: float):
        """Drop clients with no request left in the window. Caller holds the lock."""
        for client_id in list(self._hits):
            hits = self._hits[client_id]
            self._drop_expired(hits, window_start)
            if not hits:
                del self._hits[client_id]

    @property
    def tracked_clients(self) -> int:
        with self._lock:
            return len(self._hits)

    def reset(self, client_id: Optional[str] = None):
        """Forget one client's history, or everyone's."""
        with self._lock:
            if client_id is None:
                self._hits.clear()
            else:
                self._hits.pop(client_id, None)
