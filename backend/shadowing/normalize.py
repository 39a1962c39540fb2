"""Text canonicalization for target/transcript comparison."""
from __future__ import annotations

import re
import unicodedata


_ANNOTATION_PATTERNS = (
	re.compile(r"\([^)]*\)"),
	re.compile(r"\[[^\]]*\]"),
	re.compile(r"\{[^}]*\}"),
	re.compile(r"<[^>]*>"),
)
_WHITESPACE = re.compile(r"\s+")


def _is_punct_or_symbol(ch: str) -> bool:
	# P* = punctuation, S* = symbols. Marks (M*) and letters are kept.
	return unicodedata.category(ch)[0] in ("P", "S")


def normalize_for_compare(text: str | None) -> str:
	"""Canonicalize text so only linguistic content is compared.

	Lowercases, drops Unicode punctuation and symbols (ASCII, CJK and
	full-width forms alike), NFC-composes and collapses whitespace.
	Combining marks and Hangul syllables/jamo are left untouched.

	Example: "커피 사 주세요." and "커피  사 주세요" both become "커피 사 주세요".

	Idempotent and total: never raises, ``None`` becomes "".
	"""
	if not text:
		return ""
	lowered = text.lower()
	stripped = "".join(ch for ch in lowered if not _is_punct_or_symbol(ch))
	composed = unicodedata.normalize("NFC", stripped)
	return _WHITESPACE.sub(" ", composed).strip()


def strip_transcript_annotations(text: str | None) -> str:
	"""Remove bracketed STT noise markers such as (noise), [music], {cough}, <unk>."""
	if not text:
		return ""
	s = text
	for pat in _ANNOTATION_PATTERNS:
		s = pat.sub(" ", s)
	return _WHITESPACE.sub(" ", s).strip()


def tokenize_words(normalized: str) -> list[str]:
	return [w for w in normalized.split(" ") if w]
