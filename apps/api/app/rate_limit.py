from __future__ import annotations

import time
from dataclasses import dataclass
from threading import Lock

from fastapi import HTTPException, status


@dataclass
class _Bucket:
  reset_at: float
  count: int


class RateLimiter:
  """
  Tiny in-memory fixed-window rate limiter.

  Notes:
  - One instance per app; state lives and dies with the process.
  - Keys are free-form, e.g. "invite:lookup:ip:<addr>".
  """

  def __init__(self) -> None:
    self._lock = Lock()
    self._buckets: dict[str, _Bucket] = {}

  def hit(self, key: str, *, limit: int, window_seconds: int) -> tuple[bool, int]:
    """
    Returns (allowed, retry_after_seconds).
    """
    now = time.time()
    with self._lock:
      b = self._buckets.get(key)
      if b is None or now >= b.reset_at:
        self._buckets[key] = _Bucket(reset_at=now + window_seconds, count=1)
        return True, 0
      if b.count >= limit:
        retry = max(1, int(b.reset_at - now))
        return False, retry
      b.count += 1
      return True, 0


def rate_limit_or_429(limiter: RateLimiter, *, key: str, limit: int, window_seconds: int = 60) -> None:
  allowed, retry_after = limiter.hit(key, limit=limit, window_seconds=window_seconds)
  if allowed:
    return
  raise HTTPException(
    status_code=status.HTTP_429_TOO_MANY_REQUESTS,
    detail={"code": "rate_limited", "message": "Too many requests", "retryAfterSeconds": retry_after},
    headers={"Retry-After": str(retry_after)},
  )
