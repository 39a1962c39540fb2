from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from ..deps import get_line_client, rate_limiter
from ..errors import FeedbackError, FeedbackErrorCode, TutorCallFailed
from ..xai_client import XaiClient, message_content


router = APIRouter(prefix="/api", tags=["tutor-line"], dependencies=[Depends(rate_limiter)])

logger = logging.getLogger(__name__)


class TutorLineRequest(BaseModel):
	messages: Optional[List[Dict[str, Any]]] = None
	model: Optional[str] = None
	temperature: Optional[float] = None
	max_tokens: Optional[int] = None


def _error_response(error: FeedbackError) -> JSONResponse:
	if error.code == FeedbackErrorCode.NOT_CONFIGURED:
		status = 503
	elif error.code == FeedbackErrorCode.TIMEOUT:
		status = 504
	elif error.status is not None:
		status = error.status
	else:
		status = 500
	content: Dict[str, Any] = {"ok": False, "error": error.message, "errorCode": error.wire_code}
	if error.raw_excerpt:
		content["details"] = error.raw_excerpt
	return JSONResponse(status_code=status, content=content)


@router.post("/grok")
async def tutor_line(req: TutorLineRequest, client: XaiClient = Depends(get_line_client)):
	# Proxies a short tutor line generation; the app sends its own system/user prompts
	if not client.configured:
		logger.warning("[Grok] XAI_API_KEY not configured")
		return _error_response(FeedbackError(code=FeedbackErrorCode.NOT_CONFIGURED, message="XAI_API_KEY not configured"))
	if not req.messages:
		return JSONResponse(status_code=400, content={"ok": False, "error": 'Missing or invalid "messages" array'})

	logger.info("[Grok] Calling xAI (%s) with %d messages", req.model or client.model, len(req.messages))
	try:
		data = await client.complete(
			req.messages,
			model=req.model,
			temperature=req.temperature if req.temperature is not None else 0.7,
			max_tokens=req.max_tokens if req.max_tokens is not None else 150,
		)
	except TutorCallFailed as failed:
		logger.error("[Grok] %s: %s", failed.error.wire_code, failed.error.message)
		return _error_response(failed.error)
	except Exception as exc:
		logger.error("[Grok] Exception: %s", exc, exc_info=True)
		return _error_response(FeedbackError(code=FeedbackErrorCode.EXCEPTION, message="Grok request failed", raw_excerpt=str(exc)))

	if not isinstance(data, dict):
		logger.error("[Grok] Unexpected response body type: %s", type(data).__name__)
		return _error_response(
			FeedbackError(code=FeedbackErrorCode.EXCEPTION, message="Grok request failed", raw_excerpt="Response body is not a JSON object")
		)

	text = message_content(data)
	logger.info("[Grok] Response: %s", text[:50])
	return {**data, "text": text, "ok": True}
