from __future__ import annotations
import asyncio
import logging
import httpx
from typing import Any, Dict, List, Optional
from .errors import FeedbackError, FeedbackErrorCode, TutorCallFailed, error_for_status
from .settings import Settings, settings as default_settings

logger = logging.getLogger(__name__)


class XaiClient:
	"""Request-scoped client for xAI chat completions.

	Built per request from a Settings value and closed when the request ends.
	A missing API key does not raise here; callers check ``configured`` and
	must not issue a call when it is False.
	"""

	def __init__(
		self,
		api_key: Optional[str] = None,
		*,
		config: Optional[Settings] = None,
		base_url: Optional[str] = None,
		model: Optional[str] = None,
		timeout: Optional[float] = None,
		transport: Optional[httpx.AsyncBaseTransport] = None,
	) -> None:
		self.config = config or default_settings
		self.api_key = api_key if api_key is not None else self.config.xai_api_key
		self.base_url = base_url or self.config.xai_base_url
		self.model = model or self.config.xai_model
		self.timeout = timeout if timeout is not None else self.config.xai_timeout_seconds
		self._client = httpx.AsyncClient(timeout=self.timeout, transport=transport)

	@property
	def configured(self) -> bool:
		return bool(self.api_key)

	async def complete(
		self,
		messages: List[Dict[str, Any]],
		*,
		model: Optional[str] = None,
		temperature: Optional[float] = None,
		max_tokens: Optional[int] = None,
		timeout: Optional[float] = None,
	) -> Dict[str, Any]:
		"""Single bounded chat-completion call. No retries.

		Raises:
			TutorCallFailed: on timeout or a non-2xx status
		"""
		payload: Dict[str, Any] = {
			"model": model or self.model,
			"messages": messages,
			"max_tokens": max_tokens if max_tokens is not None else self.config.xai_max_tokens,
			"temperature": temperature if temperature is not None else self.config.xai_temperature,
		}
		headers = {
			"Authorization": f"Bearer {self.api_key}",
			"Content-Type": "application/json",
		}
		bound = timeout if timeout is not None else self.timeout
		try:
			r = await asyncio.wait_for(
				self._client.post(self.base_url, headers=headers, json=payload),
				timeout=bound,
			)
		except (asyncio.TimeoutError, httpx.TimeoutException):
			raise TutorCallFailed(
				FeedbackError(code=FeedbackErrorCode.TIMEOUT, message="Request timed out")
			) from None
		if r.is_error:
			error = error_for_status(r.status_code, r.text, limit=self.config.error_excerpt_chars)
			logger.error("xAI API error %s: %s", r.status_code, error.raw_excerpt)
			raise TutorCallFailed(error)
		return r.json()

	async def aclose(self) -> None:
		await self._client.aclose()


def message_content(data: Dict[str, Any]) -> str:
	"""First choice's message text, stripped; empty string when absent."""
	try:
		content = data["choices"][0]["message"]["content"]
	except (KeyError, IndexError, TypeError):
		return ""
	if not isinstance(content, str):
		return ""
	return content.strip()
