"""
Shadowing Feedback Endpoint
===========================

POST /api/feedback compares what the learner said with the target sentence and
asks the tutor model to explain the result.

The score, diff and tier are computed locally and are always returned. The
model only writes the explanation; when it fails the response carries
``tutor: null`` plus a ``tutorError`` instead of a default compliment.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..alignment import Comparison, compare_texts
from ..deps import get_tutor_client, rate_limiter
from ..errors import FeedbackError
from ..normalize import strip_transcript_annotations
from ..settings import settings
from ..tiers import classify
from ..tutor import FeedbackResult, TutorFeedback, generate_feedback
from ..xai_client import XaiClient


router = APIRouter(prefix="/api", tags=["feedback"], dependencies=[Depends(rate_limiter)])

logger = logging.getLogger(__name__)

PRONUNCIATION_NOTE = "발음 평가는 오디오 기반 분석이 필요합니다."


class FeedbackRequest(BaseModel):
	targetText: Optional[str] = None
	transcriptText: Optional[str] = None
	# Older clients send the transcript under this name
	sttText: Optional[str] = None


def _client_error(message: str) -> JSONResponse:
	return JSONResponse(status_code=400, content={"ok": False, "error": message})


async def _compare(target_text: str, transcript_text: str) -> Comparison:
	threshold = settings.offload_threshold_chars
	if len(target_text) > threshold or len(transcript_text) > threshold:
		return await run_in_threadpool(compare_texts, target_text, transcript_text)
	return compare_texts(target_text, transcript_text)


def _legacy_grammar(tutor: Optional[TutorFeedback]) -> Dict[str, Any]:
	if tutor is None:
		return {"corrections": [], "comment_ko": ""}
	return {
		"corrections": [
			{"wrong": c.said, "correct": c.correct, "reason_ko": c.reason} for c in tutor.corrections
		],
		"comment_ko": tutor.comment,
	}


def assemble_response(
	target_text: str,
	transcript_text: str,
	comparison: Comparison,
	outcome: FeedbackResult,
) -> Dict[str, Any]:
	"""Merge metrics, diff and exactly one of tutor/tutorError into the response body.

	The legacy ``grammar``/``pronunciation`` blocks are projections of the
	same data for older app builds.
	"""
	metrics = comparison.metrics
	diff = comparison.diff
	tutor = outcome if isinstance(outcome, TutorFeedback) else None
	tutor_error = outcome if isinstance(outcome, FeedbackError) else None

	return {
		"ok": True,
		"targetText": target_text,
		"transcriptText": transcript_text,
		"textAccuracyPercent": metrics.accuracy_percent,
		"mistakePercent": metrics.wrong_percent,
		"score": metrics.accuracy_percent,
		"tier": classify(metrics.accuracy_percent).value,
		"metrics": {
			"accuracyPercent": metrics.accuracy_percent,
			"wrongPercent": metrics.wrong_percent,
			"textAccuracyPercent": metrics.accuracy_percent,
			"mistakePercent": metrics.wrong_percent,
			"cer": metrics.cer,
			"wer": metrics.wer,
		},
		"diff": {
			"units": [u.to_dict() for u in diff.units],
			"wrongUnits": list(diff.wrong_units),
			"wrongParts": list(diff.wrong_units),
		},
		"tutor": tutor.to_wire() if tutor else None,
		"tutorError": tutor_error.to_wire() if tutor_error else None,
		"pronunciation": {"available": False, "good": [], "weak": [], "note": PRONUNCIATION_NOTE},
		"grammar": _legacy_grammar(tutor),
	}


@router.post("/feedback")
async def feedback(req: FeedbackRequest, client: XaiClient = Depends(get_tutor_client)):
	"""Score a shadowing attempt and attach tutor feedback (or the reason it is missing)."""
	target_text = req.targetText
	transcript_text = req.transcriptText or req.sttText
	if not target_text or not target_text.strip():
		return _client_error('Missing or invalid "targetText" field')
	if not transcript_text or not transcript_text.strip():
		return _client_error('Missing or invalid "transcriptText" field (also accepts "sttText")')

	try:
		comparison = await _compare(target_text, transcript_text)
		metrics = comparison.metrics
		logger.info(
			'[Feedback] Target: "%s" | Transcript: "%s" | Accuracy: %d%%',
			target_text[:30],
			transcript_text[:30],
			metrics.accuracy_percent,
		)
		outcome = await generate_feedback(
			client,
			target_text,
			strip_transcript_annotations(transcript_text),
			comparison.diff.wrong_units,
			metrics.accuracy_percent,
		)
		body = assemble_response(target_text, transcript_text, comparison, outcome)
	except Exception as exc:
		logger.error("[Feedback] Error: %s", exc, exc_info=True)
		return JSONResponse(
			status_code=500,
			content={"ok": False, "error": "Feedback processing failed", "details": str(exc)},
		)

	logger.info(
		"[Feedback] Response: accuracy=%d%%, tutor=%s, tutorError=%s",
		metrics.accuracy_percent,
		"OK" if body["tutor"] else "null",
		body["tutorError"]["code"] if body["tutorError"] else "none",
	)
	return body
