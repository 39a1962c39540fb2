from __future__ import annotations

import logging
import math
import time
from typing import Callable, Dict, Optional, Tuple

from fastapi import HTTPException, Request, Response

logger = logging.getLogger(__name__)

WINDOW_SECONDS = 60.0


class RateLimitExceeded(HTTPException):
	def __init__(self, retry_after: int, headers: Optional[Dict[str, str]] = None) -> None:
		super().__init__(
			status_code=429,
			detail=f"Rate limit exceeded. Try again in {retry_after} seconds.",
			headers=headers,
		)
		self.retry_after = retry_after


class RateLimiter:
	"""Fixed one-minute window per client IP, used as a router dependency.

	Expired windows are swept at most once per window length, so the table
	only holds clients seen during the last minute or so. ``X-Forwarded-For``
	is honoured only when ``trust_forwarded`` is set (deployments behind a
	known proxy).
	"""

	def __init__(
		self,
		limit: int,
		*,
		trust_forwarded: bool = False,
		clock: Callable[[], float] = time.monotonic,
	) -> None:
		self.limit = limit
		self.trust_forwarded = trust_forwarded
		self._clock = clock
		self._windows: Dict[str, Tuple[int, float]] = {}
		self._next_purge = clock() + WINDOW_SECONDS

	def client_ip(self, request: Request) -> str:
		if self.trust_forwarded:
			forwarded = request.headers.get("x-forwarded-for")
			if forwarded:
				return forwarded.split(",")[0].strip()
		return request.client.host if request.client else "unknown"

	def _purge(self, now: float) -> None:
		expired = [ip for ip, (_, reset_at) in self._windows.items() if now > reset_at]
		for ip in expired:
			del self._windows[ip]
		self._next_purge = now + WINDOW_SECONDS

	def __len__(self) -> int:
		return len(self._windows)

	def hit(self, ip: str) -> Tuple[int, int]:
		"""Count one request; returns (remaining, seconds until reset)."""
		now = self._clock()
		if now >= self._next_purge:
			self._purge(now)
		count, reset_at = self._windows.get(ip, (0, now + WINDOW_SECONDS))
		if now > reset_at:
			count, reset_at = 0, now + WINDOW_SECONDS
		count += 1
		self._windows[ip] = (count, reset_at)
		remaining = self.limit - count
		return remaining, max(0, math.ceil(reset_at - now))

	def reset(self) -> None:
		self._windows.clear()
		self._next_purge = self._clock() + WINDOW_SECONDS

	async def __call__(self, request: Request, response: Response) -> None:
		ip = self.client_ip(request)
		remaining, reset_in = self.hit(ip)
		headers = {
			"X-RateLimit-Limit": str(self.limit),
			"X-RateLimit-Remaining": str(max(0, remaining)),
			"X-RateLimit-Reset": str(reset_in),
		}
		if remaining < 0:
			logger.info("[RateLimit] Blocked: %s (%d over limit)", ip, -remaining)
			raise RateLimitExceeded(reset_in, headers=headers)
		response.headers.update(headers)
