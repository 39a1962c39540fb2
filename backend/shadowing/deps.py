from __future__ import annotations
from typing import AsyncIterator
from .rate_limit import RateLimiter
from .settings import settings
from .xai_client import XaiClient


rate_limiter = RateLimiter(settings.rate_limit_per_minute, trust_forwarded=settings.trust_proxy)


async def get_tutor_client() -> AsyncIterator[XaiClient]:
	# One client per request, closed when the request ends
	client = XaiClient(config=settings)
	try:
		yield client
	finally:
		await client.aclose()


async def get_line_client() -> AsyncIterator[XaiClient]:
	client = XaiClient(config=settings, model=settings.xai_line_model, timeout=settings.xai_line_timeout_seconds)
	try:
		yield client
	finally:
		await client.aclose()
