"""Closed error taxonomy for the tutor-feedback model call."""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict


class FeedbackErrorCode(str, Enum):
	TIMEOUT = "TIMEOUT"
	UNAUTHORIZED = "UNAUTHORIZED"
	FORBIDDEN = "FORBIDDEN"
	RATE_LIMITED = "RATE_LIMITED"
	HTTP_ERROR = "HTTP_ERROR"  # rendered on the wire as HTTP_<status>
	EMPTY_RESPONSE = "EMPTY_RESPONSE"
	PARSE_ERROR = "PARSE_ERROR"
	NOT_CONFIGURED = "NOT_CONFIGURED"
	EXCEPTION = "EXCEPTION"


class ParseStage(str, Enum):
	NO_OBJECT = "no_object"
	OBJECT_INVALID = "object_invalid"


class FeedbackError(BaseModel):
	model_config = ConfigDict(frozen=True)

	code: FeedbackErrorCode
	message: str
	status: Optional[int] = None
	raw_excerpt: Optional[str] = None
	parse_stage: Optional[ParseStage] = None

	@property
	def wire_code(self) -> str:
		if self.code == FeedbackErrorCode.HTTP_ERROR:
			return f"HTTP_{self.status}"
		return self.code.value

	def to_wire(self) -> Dict[str, Any]:
		data: Dict[str, Any] = {"code": self.wire_code, "message": self.message}
		if self.raw_excerpt:
			data["details"] = self.raw_excerpt
		return data


class TutorCallFailed(Exception):
	"""Raised by the model client; carries the classified error."""

	def __init__(self, error: FeedbackError) -> None:
		super().__init__(error.message)
		self.error = error


def excerpt(text: Optional[str], limit: int) -> Optional[str]:
	if not text:
		return None
	return text[: max(0, limit)]


def error_for_status(status: int, body: Optional[str], *, limit: int) -> FeedbackError:
	"""Map a non-success model HTTP status onto the taxonomy."""
	if status == 401:
		code = FeedbackErrorCode.UNAUTHORIZED
	elif status == 403:
		code = FeedbackErrorCode.FORBIDDEN
	elif status == 429:
		code = FeedbackErrorCode.RATE_LIMITED
	else:
		code = FeedbackErrorCode.HTTP_ERROR
	return FeedbackError(
		code=code,
		message=f"xAI API error: {status}",
		status=status,
		raw_excerpt=excerpt(body, limit),
	)
