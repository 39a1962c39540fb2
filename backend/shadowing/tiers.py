from __future__ import annotations

from enum import Enum
from typing import Optional


class FeedbackTier(str, Enum):
	CORRECT = "correct"
	PARTIAL = "partial"
	SEVERE = "severe"


CORRECT_MIN_ACCURACY = 90
PARTIAL_MIN_ACCURACY = 50


def classify(accuracy_percent: int) -> FeedbackTier:
	"""Map accuracy to a tier: >=90 correct, 50..89 partial, <50 severe."""
	if accuracy_percent >= CORRECT_MIN_ACCURACY:
		return FeedbackTier.CORRECT
	if accuracy_percent >= PARTIAL_MIN_ACCURACY:
		return FeedbackTier.PARTIAL
	return FeedbackTier.SEVERE


def parse_tier(value: object) -> Optional[FeedbackTier]:
	# Model output is free text; unknown labels are simply not a tier
	if not isinstance(value, str):
		return None
	try:
		return FeedbackTier(value.strip().lower())
	except ValueError:
		return None
