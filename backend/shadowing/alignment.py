"""Edit-distance alignment, error rates and diff reconstruction.

One dynamic-programming pass over the normalized target/transcript yields a
single canonical operation path. The character error rate and the diff used
for highlighting are both derived from that same path, so they cannot disagree.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence

from .normalize import normalize_for_compare, strip_transcript_annotations, tokenize_words


class EditOp(str, Enum):
	MATCH = "match"
	SUBSTITUTE = "substitute"
	INSERT = "insert"  # present only in transcript
	DELETE = "delete"  # present only in target


# Legacy status names still rendered by older clients
_STATUS_BY_OP = {
	EditOp.MATCH: "correct",
	EditOp.SUBSTITUTE: "wrong",
	EditOp.DELETE: "missing",
	EditOp.INSERT: "extra",
}


@dataclass(frozen=True)
class EditStep:
	op: EditOp
	ref_index: Optional[int]
	hyp_index: Optional[int]


@dataclass(frozen=True)
class Alignment:
	cost: int
	steps: List[EditStep]


def align_sequences(ref: Sequence[str], hyp: Sequence[str]) -> Alignment:
	"""Minimum edit distance between two token sequences with its operation path.

	Unit cost for substitute/insert/delete, zero for match. When several
	paths share the minimum cost, each cell keeps a single back-pointer chosen
	in the order match, substitute, delete, insert, so identical inputs always
	produce the same path.

	Args:
		ref: Reference (target) tokens
		hyp: Hypothesis (transcript) tokens

	Returns:
		Alignment with the total cost and the ordered steps from start to end.
	"""
	n, m = len(ref), len(hyp)
	dp = [[0] * (m + 1) for _ in range(n + 1)]
	back: List[List[Optional[EditOp]]] = [[None] * (m + 1) for _ in range(n + 1)]

	for i in range(1, n + 1):
		dp[i][0] = i
		back[i][0] = EditOp.DELETE
	for j in range(1, m + 1):
		dp[0][j] = j
		back[0][j] = EditOp.INSERT

	for i in range(1, n + 1):
		for j in range(1, m + 1):
			if ref[i - 1] == hyp[j - 1]:
				# the diagonal is always optimal on equal tokens
				dp[i][j] = dp[i - 1][j - 1]
				back[i][j] = EditOp.MATCH
				continue
			sub = dp[i - 1][j - 1] + 1
			dele = dp[i - 1][j] + 1
			ins = dp[i][j - 1] + 1
			best = min(sub, dele, ins)
			dp[i][j] = best
			if sub == best:
				back[i][j] = EditOp.SUBSTITUTE
			elif dele == best:
				back[i][j] = EditOp.DELETE
			else:
				back[i][j] = EditOp.INSERT

	steps: List[EditStep] = []
	i, j = n, m
	while i > 0 or j > 0:
		op = back[i][j]
		if op in (EditOp.MATCH, EditOp.SUBSTITUTE):
			steps.append(EditStep(op, i - 1, j - 1))
			i -= 1
			j -= 1
		elif op == EditOp.DELETE:
			steps.append(EditStep(op, i - 1, None))
			i -= 1
		else:
			steps.append(EditStep(EditOp.INSERT, None, j - 1))
			j -= 1
	steps.reverse()
	return Alignment(cost=dp[n][m], steps=steps)


def error_rate(cost: int, ref_len: int, hyp_len: int) -> float:
	"""Edit cost over reference length, clamped to [0, 1].

	An empty reference scores 1 against a non-empty hypothesis and 0 otherwise.
	"""
	if ref_len == 0:
		return 1.0 if hyp_len > 0 else 0.0
	return min(1.0, max(0.0, cost / ref_len))


def _round_half_up(value: float) -> int:
	return int(value + 0.5)


@dataclass(frozen=True)
class Metrics:
	cer: float
	wer: float
	accuracy_percent: int
	wrong_percent: int

	@classmethod
	def from_rates(cls, cer: float, wer: float) -> "Metrics":
		cer = round(cer, 3)
		wer = round(wer, 3)
		wrong = max(0, min(100, _round_half_up(cer * 100)))
		return cls(cer=cer, wer=wer, accuracy_percent=100 - wrong, wrong_percent=wrong)


@dataclass(frozen=True)
class ComparisonUnit:
	op: EditOp
	target: Optional[str]
	transcript: Optional[str]

	@property
	def status(self) -> str:
		return _STATUS_BY_OP[self.op]

	def to_dict(self) -> dict:
		unit = self.transcript if self.op == EditOp.INSERT else self.target
		data = {"unit": unit, "op": self.op.value, "status": self.status}
		if self.op == EditOp.SUBSTITUTE:
			data["got"] = self.transcript
		return data


@dataclass(frozen=True)
class Diff:
	units: List[ComparisonUnit]
	wrong_units: List[str] = field(default_factory=list)

	def target_text(self) -> str:
		return "".join(u.target for u in self.units if u.op != EditOp.INSERT)

	def transcript_text(self) -> str:
		return "".join(u.transcript for u in self.units if u.op != EditOp.DELETE)


def build_diff(target: str, transcript: str, alignment: Alignment) -> Diff:
	"""Turn a character alignment into highlightable units plus the wrong-unit list.

	Target-side characters of substitute/delete steps become wrong units, in
	target order and without duplicates.
	"""
	units: List[ComparisonUnit] = []
	wrong: List[str] = []
	seen = set()
	for step in alignment.steps:
		ref_ch = target[step.ref_index] if step.ref_index is not None else None
		hyp_ch = transcript[step.hyp_index] if step.hyp_index is not None else None
		units.append(ComparisonUnit(step.op, ref_ch, hyp_ch))
		if step.op in (EditOp.SUBSTITUTE, EditOp.DELETE) and ref_ch not in seen:
			seen.add(ref_ch)
			wrong.append(ref_ch)
	return Diff(units=units, wrong_units=wrong)


@dataclass(frozen=True)
class Comparison:
	target: str
	transcript: str
	char_alignment: Alignment
	word_alignment: Alignment
	metrics: Metrics
	diff: Diff


def compare_texts(target_text: str, transcript_text: str) -> Comparison:
	"""Normalize both texts, align them and derive metrics and diff.

	Pure and total. CPU-bound in the product of the two lengths.
	"""
	target = normalize_for_compare(target_text)
	transcript = normalize_for_compare(strip_transcript_annotations(transcript_text))

	char_alignment = align_sequences(target, transcript)
	target_words = tokenize_words(target)
	transcript_words = tokenize_words(transcript)
	word_alignment = align_sequences(target_words, transcript_words)

	cer = error_rate(char_alignment.cost, len(target), len(transcript))
	wer = error_rate(word_alignment.cost, len(target_words), len(transcript_words))

	return Comparison(
		target=target,
		transcript=transcript,
		char_alignment=char_alignment,
		word_alignment=word_alignment,
		metrics=Metrics.from_rates(cer, wer),
		diff=build_diff(target, transcript, char_alignment),
	)
