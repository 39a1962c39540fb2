"""
Tutor Feedback Orchestration
============================

Builds the tutor prompt from a locally scored attempt, makes one bounded call
to the xAI chat model and turns the reply into ``TutorFeedback``. Every failure
comes back as a ``FeedbackError`` value; nothing here ever substitutes a canned
compliment for a failed evaluation.

Flow:
1. Not configured -> NOT_CONFIGURED, no network call
2. Prompt = system tone rules + user block (target, transcript, accuracy, tier, wrong units)
3. One call bounded by the configured timeout, no retry
4. Non-2xx -> UNAUTHORIZED / FORBIDDEN / RATE_LIMITED / HTTP_<status>
5. Blank content -> EMPTY_RESPONSE
6. Strict JSON parse, then first well-formed object substring -> PARSE_ERROR
7. Field aliases resolved in declared order (first match wins)
8. Anything else -> EXCEPTION
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from .errors import FeedbackError, FeedbackErrorCode, ParseStage, TutorCallFailed, excerpt
from .tiers import FeedbackTier, classify, parse_tier
from .xai_client import XaiClient, message_content

logger = logging.getLogger(__name__)


# ============================================================================
# FEEDBACK MODELS
# ============================================================================

class Correction(BaseModel):
	model_config = ConfigDict(frozen=True)

	said: str
	correct: str
	reason: str = ""


class TutorFeedback(BaseModel):
	"""Model-written explanation of a locally computed score.

	``tier`` is always the locally computed tier. ``reported_tier`` keeps what
	the model claimed, for logging and diagnostics only.
	"""
	model_config = ConfigDict(frozen=True)

	tier: FeedbackTier
	corrections: List[Correction] = Field(default_factory=list)
	comment: str = ""
	reported_tier: Optional[FeedbackTier] = None

	def to_wire(self) -> Dict[str, Any]:
		return {
			"tier": self.tier.value,
			"feedbackLevel": self.tier.value,
			"reportedTier": self.reported_tier.value if self.reported_tier else None,
			"correctionList": [c.model_dump() for c in self.corrections],
			"comment": self.comment,
			# Field names used by earlier app builds
			"grammarMistakes": [
				{"youSaid": c.said, "correct": c.correct, "reasonKo": c.reason} for c in self.corrections
			],
			"commentKo": self.comment,
		}


FeedbackResult = Union[TutorFeedback, FeedbackError]


# ============================================================================
# PROMPTS
# ============================================================================

SYSTEM_PROMPT = """
너는 아이들에게 한국어 따라 말하기를 가르치는 다정한 튜터야.
점수와 단계는 이미 계산되어 있어. 너는 그 결과를 설명만 해. 점수를 다시 매기지 마.

말투:
- 반말, 짧고 친근하게
- "틀렸어"라는 말은 쓰지 않아

단계별 규칙 (주어진 단계를 반드시 따를 것):
- correct: 짧게 칭찬만 해. 교정 목록은 비워 둬.
- partial: 먼저 노력을 인정하고, 틀린 부분마다 학생이 말한 것과 올바른 형태를 비교해 줘.
- severe: 칭찬하는 말은 절대 쓰지 마. 올바른 문장을 그대로 알려 주고 다시 해 보자고 격려해.

출력은 JSON 객체 하나만. 마크다운이나 설명 문장 금지:
{
  "feedbackLevel": "correct" | "partial" | "severe",
  "grammarMistakes": [
    {"youSaid": "학생이 말한 부분", "correct": "올바른 형태", "reasonKo": "짧은 설명"}
  ],
  "commentKo": "튜터 한마디"
}
""".strip()

TIER_INSTRUCTIONS: Dict[FeedbackTier, str] = {
	FeedbackTier.CORRECT: "짧은 칭찬 한마디만 해 줘. grammarMistakes는 빈 배열로 둬.",
	FeedbackTier.PARTIAL: "먼저 잘한 점을 인정하고, 틀린 글자가 들어간 부분을 올바른 형태와 함께 알려 줘.",
	FeedbackTier.SEVERE: "칭찬은 금지야. 올바른 문장을 그대로 알려 주고 다시 해 보자고 해 줘.",
}


def build_user_prompt(
	target_text: str,
	transcript_text: str,
	wrong_units: Sequence[str],
	accuracy_percent: int,
	tier: FeedbackTier,
) -> str:
	diff_line = f"틀린 글자: {', '.join(wrong_units)}" if wrong_units else "틀린 글자: 없음"
	return (
		f'TARGET: "{target_text}"\n'
		f'STUDENT: "{transcript_text}"\n'
		f"정확도: {accuracy_percent}%\n"
		f"피드백 단계: {tier.value}\n"
		f"{diff_line}\n\n"
		f"{TIER_INSTRUCTIONS[tier]}\n\n"
		"JSON만 출력:"
	)


def build_messages(
	target_text: str,
	transcript_text: str,
	wrong_units: Sequence[str],
	accuracy_percent: int,
	tier: FeedbackTier,
) -> List[Dict[str, str]]:
	return [
		{"role": "system", "content": SYSTEM_PROMPT},
		{"role": "user", "content": build_user_prompt(target_text, transcript_text, wrong_units, accuracy_percent, tier)},
	]


# ============================================================================
# PAYLOAD PARSING
# ============================================================================

_CODE_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)
# Candidate object starts tried during recovery
MAX_EXTRACTION_ATTEMPTS = 32


class PayloadParseError(ValueError):
	def __init__(self, stage: ParseStage, message: str) -> None:
		super().__init__(message)
		self.stage = stage


def _extract_first_object(text: str) -> Dict[str, Any]:
	decoder = json.JSONDecoder()
	starts = [m.start() for m in re.finditer(r"\{", text)][:MAX_EXTRACTION_ATTEMPTS]
	if not starts:
		raise PayloadParseError(ParseStage.NO_OBJECT, "No JSON found in response")
	for start in starts:
		try:
			obj, _ = decoder.raw_decode(text, start)
		except ValueError:
			continue
		if isinstance(obj, dict):
			return obj
	raise PayloadParseError(ParseStage.OBJECT_INVALID, "Failed to parse JSON response")


def parse_model_payload(text: str) -> Dict[str, Any]:
	"""Parse model output as a JSON object.

	Strict parse of the (fence-stripped) text first; if that fails or is not an
	object, the first well-formed ``{...}`` substring is used instead.

	Raises:
		PayloadParseError: with ``stage`` NO_OBJECT or OBJECT_INVALID
	"""
	cleaned = _CODE_FENCE.sub("", text.strip()).strip()
	try:
		data = json.loads(cleaned)
	except ValueError:
		data = None
	if isinstance(data, dict):
		return data
	return _extract_first_object(text)


# Accepted spellings per field, resolved in order
TIER_KEYS: Tuple[str, ...] = ("feedbackLevel", "feedback_level", "tier", "level")
CORRECTIONS_KEYS: Tuple[str, ...] = ("grammarMistakes", "grammar_mistakes", "correctionList", "corrections", "mistakes")
SAID_KEYS: Tuple[str, ...] = ("youSaid", "you_said", "said", "wrong")
CORRECT_KEYS: Tuple[str, ...] = ("correct", "correction", "expected")
REASON_KEYS: Tuple[str, ...] = ("reasonKo", "reason_ko", "reason", "why")
COMMENT_KEYS: Tuple[str, ...] = ("commentKo", "comment_ko", "tutorComment", "comment")


def first_present(data: Mapping[str, Any], keys: Sequence[str]) -> Any:
	for key in keys:
		if key in data and data[key] is not None:
			return data[key]
	return None


def _text(value: Any) -> str:
	if value is None:
		return ""
	return str(value).strip()


def _corrections_from(raw: Any) -> List[Correction]:
	if not isinstance(raw, list):
		return []
	out: List[Correction] = []
	for item in raw:
		if not isinstance(item, Mapping):
			continue
		out.append(
			Correction(
				said=_text(first_present(item, SAID_KEYS)),
				correct=_text(first_present(item, CORRECT_KEYS)),
				reason=_text(first_present(item, REASON_KEYS)),
			)
		)
	return out


AFFIRMING_MARKERS = ("잘했어", "완벽해", "정확해", "훌륭해", "최고야")


def feedback_from_payload(data: Mapping[str, Any], tier: FeedbackTier) -> TutorFeedback:
	"""Canonicalize a parsed model object under the locally computed tier."""
	reported = parse_tier(first_present(data, TIER_KEYS))
	if reported is not None and reported != tier:
		logger.warning("Model reported tier %s but local tier is %s; using local tier", reported.value, tier.value)

	corrections = _corrections_from(first_present(data, CORRECTIONS_KEYS))
	if tier == FeedbackTier.CORRECT and corrections:
		logger.warning("Dropping %d corrections returned for a correct-tier attempt", len(corrections))
		corrections = []

	comment = _text(first_present(data, COMMENT_KEYS))
	if not comment:
		logger.warning("Model response has no comment field")
	elif tier == FeedbackTier.SEVERE and any(m in comment for m in AFFIRMING_MARKERS):
		logger.warning("Severe-tier comment contains affirming language: %s", comment[:60])

	return TutorFeedback(tier=tier, corrections=corrections, comment=comment, reported_tier=reported)


# ============================================================================
# ORCHESTRATION
# ============================================================================

async def generate_feedback(
	client: Optional[XaiClient],
	target_text: str,
	transcript_text: str,
	wrong_units: Sequence[str],
	accuracy_percent: int,
) -> FeedbackResult:
	"""Ask the model to explain an attempt; return feedback or a typed error.

	Args:
		client: Request-scoped model client (None or keyless = not configured)
		target_text: Sentence the learner was asked to say
		transcript_text: What speech-to-text heard
		wrong_units: Target characters involved in substitutions/deletions
		accuracy_percent: Locally computed accuracy, 0-100

	Returns:
		TutorFeedback on success, otherwise FeedbackError. Never raises for a
		model failure; cancellation still propagates.
	"""
	tier = classify(accuracy_percent)
	if client is None or not client.configured:
		logger.warning("[Feedback] xAI not configured")
		return FeedbackError(code=FeedbackErrorCode.NOT_CONFIGURED, message="XAI_API_KEY not set")

	limit = client.config.error_excerpt_chars
	try:
		messages = build_messages(target_text, transcript_text, wrong_units, accuracy_percent, tier)
		logger.info("[Feedback] Calling xAI (%s) for tutor feedback, tier=%s", client.model, tier.value)
		try:
			data = await client.complete(messages)
		except TutorCallFailed as failed:
			logger.warning("[Feedback] xAI failed: %s - %s", failed.error.wire_code, failed.error.message)
			return failed.error

		content = message_content(data)
		if not content:
			logger.warning("[Feedback] Empty response from xAI")
			return FeedbackError(code=FeedbackErrorCode.EMPTY_RESPONSE, message="Empty response from xAI")

		try:
			parsed = parse_model_payload(content)
		except PayloadParseError as err:
			logger.warning("[Feedback] Parse failed (%s): %s", err.stage.value, excerpt(content, limit))
			return FeedbackError(
				code=FeedbackErrorCode.PARSE_ERROR,
				message=str(err),
				raw_excerpt=excerpt(content, limit),
				parse_stage=err.stage,
			)

		feedback = feedback_from_payload(parsed, tier)
		logger.info("[Feedback] xAI success: %d corrections", len(feedback.corrections))
		return feedback
	except Exception as exc:
		logger.exception("[Feedback] xAI exception")
		return FeedbackError(code=FeedbackErrorCode.EXCEPTION, message=str(exc) or exc.__class__.__name__)
